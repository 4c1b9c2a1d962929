"""Balance Reconciler.

Keeps wallet balances consistent with the transaction set. For every wallet
the following holds after each committed mutation::

    balance == opening_balance + sum(income) - sum(expense)

where the opening balance is the value set at the wallet's last explicit
balance edit. Each mutation is computed, applied to the Entity Store and
handed to the persistence collaborator as one unit; if persistence fails the
store is rolled back to its pre-mutation snapshot.
"""

import uuid
from dataclasses import replace
from datetime import datetime, date, UTC
from decimal import Decimal
from typing import Any, Optional

import structlog

from walletwise.database.base import Database
from walletwise.domain.entities import (
    BalanceDelta,
    MutationKind,
    MutationResult,
    Transaction,
    TransactionMutation,
    TransactionType,
    fits_money_precision,
)
from walletwise.domain.errors import (
    ConflictError,
    InsufficientFundsWarning,
    NotFoundError,
    ValidationError,
    category_not_found,
    non_positive_amount,
    transaction_not_found,
    too_precise_amount,
    wallet_delete_blocked,
    wallet_not_found,
)
from walletwise.domain.store import EntityStore

logger = structlog.get_logger(__name__)

_UNSET: Any = object()


def compute_update_deltas(original: Transaction, updated: Transaction) -> list[BalanceDelta]:
    """Compute the balance deltas for replacing ``original`` with ``updated``.

    When the wallet changes, the old wallet is fully reverted and the new
    wallet fully applied with the new amount; a cross-wallet difference is
    never computed. Otherwise the single wallet receives the signed amount
    difference.
    """
    if original.wallet_id != updated.wallet_id:
        deltas = []
        if original.wallet_id is not None:
            deltas.append(BalanceDelta(original.wallet_id, -original.signed_amount))
        if updated.wallet_id is not None:
            deltas.append(BalanceDelta(updated.wallet_id, updated.signed_amount))
        return [d for d in deltas if d.amount != 0]

    if original.wallet_id is None:
        return []

    diff = updated.amount - original.amount
    adjustment = -diff if original.is_expense else diff
    if adjustment == 0:
        return []
    return [BalanceDelta(original.wallet_id, adjustment)]


class BalanceReconciler:
    """Applies transaction mutations and their wallet balance effects atomically."""

    def __init__(self, store: EntityStore, db: Optional[Database] = None):
        """Initialize balance reconciler.

        Args:
            store: Session Entity Store
            db: Persistence collaborator. When None, mutations are committed
                to the store only.
        """
        self.store = store
        self.db = db

    def create_transaction(
        self,
        type: TransactionType,
        amount: Decimal,
        date: date,
        description: Optional[str] = None,
        category_id: Optional[str] = None,
        wallet_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> MutationResult:
        """Record a new transaction and apply its effect to its wallet.

        Args:
            type: Expense or income
            amount: Positive magnitude
            date: Calendar date of the transaction
            description: Optional description
            category_id: Category ID (required for expenses, ignored for income)
            wallet_id: Optional wallet ID; without a wallet no balance changes
            created_at: Creation timestamp (defaults to now)

        Returns:
            MutationResult with the stored transaction and applied deltas

        Raises:
            ValidationError: If amount is not positive or an expense has no category
            NotFoundError: If the wallet or category doesn't exist
            PersistenceFailure: If the commit failed (state is rolled back)
        """
        type = TransactionType(type)
        self._validate_amount(amount)
        if type == TransactionType.INCOME:
            category_id = None
        elif category_id is None:
            raise ValidationError("Expense transactions require a category")

        transaction = Transaction(
            id=uuid.uuid4().hex,
            user_id=self.store.user_id,
            type=type,
            amount=amount,
            description=description,
            date=date,
            category_id=category_id,
            wallet_id=wallet_id,
            created_at=created_at if created_at is not None else datetime.now(UTC),
        )

        with self.store.locked():
            self._require_references(transaction)
            deltas = []
            if wallet_id is not None:
                deltas.append(BalanceDelta(wallet_id, transaction.signed_amount))
            mutation = TransactionMutation(kind=MutationKind.CREATE, transaction=transaction)
            return self._commit(mutation, deltas)

    def update_transaction(
        self,
        original: Transaction | str,
        amount: Optional[Decimal] = None,
        description: Any = _UNSET,
        date: Optional[date] = None,
        category_id: Any = _UNSET,
        wallet_id: Any = _UNSET,
    ) -> MutationResult:
        """Update a transaction and reconcile the affected wallet balances.

        Fields left unset keep their current value. ``wallet_id=None`` detaches
        the transaction from its wallet. Income transactions ignore any
        supplied category.

        Args:
            original: Transaction (or its ID) to update
            amount: Optional new amount
            description: Optional new description
            date: Optional new date
            category_id: Optional new category ID
            wallet_id: Optional new wallet ID, or None to detach

        Returns:
            MutationResult with the updated transaction and applied deltas

        Raises:
            ValidationError: If the resulting amount is not positive
            NotFoundError: If the transaction, wallet or category doesn't exist
            PersistenceFailure: If the commit failed (state is rolled back)
        """
        transaction_id = original if isinstance(original, str) else original.id

        with self.store.locked():
            # Reconcile against the stored record, not a possibly stale copy.
            current = self.store.get_transaction(transaction_id)
            if current is None:
                raise NotFoundError(transaction_not_found(transaction_id))

            changes: dict[str, Any] = {}
            if amount is not None:
                changes["amount"] = amount
            if description is not _UNSET:
                changes["description"] = description
            if date is not None:
                changes["date"] = date
            if wallet_id is not _UNSET:
                changes["wallet_id"] = wallet_id
            if category_id is not _UNSET and current.is_expense:
                if category_id is None:
                    raise ValidationError("Expense transactions require a category")
                changes["category_id"] = category_id

            updated = replace(current, **changes)
            self._validate_amount(updated.amount)
            self._require_references(updated)

            deltas = compute_update_deltas(current, updated)
            mutation = TransactionMutation(
                kind=MutationKind.UPDATE, transaction=updated, previous=current
            )
            return self._commit(mutation, deltas)

    def delete_transaction(self, transaction: Transaction | str) -> MutationResult:
        """Delete a transaction and revert its wallet effect.

        Raises:
            NotFoundError: If the transaction doesn't exist
            PersistenceFailure: If the commit failed (state is rolled back)
        """
        transaction_id = transaction if isinstance(transaction, str) else transaction.id

        with self.store.locked():
            current = self.store.get_transaction(transaction_id)
            if current is None:
                raise NotFoundError(transaction_not_found(transaction_id))

            deltas = []
            if current.wallet_id is not None and self.store.get_wallet(current.wallet_id) is not None:
                deltas.append(BalanceDelta(current.wallet_id, -current.signed_amount))
            mutation = TransactionMutation(kind=MutationKind.DELETE, transaction=current)
            return self._commit(mutation, deltas)

    def check_sufficient_funds(self, wallet_id: str, expense_amount: Decimal) -> bool:
        """Return False if the expense would exceed the wallet's current balance.

        Advisory only; the core never blocks a mutation on this.

        Raises:
            NotFoundError: If the wallet doesn't exist
        """
        wallet = self.store.get_wallet(wallet_id)
        if wallet is None:
            raise NotFoundError(wallet_not_found(wallet_id))
        return expense_amount <= wallet.balance

    def insufficient_funds_warning(
        self, wallet_id: str, expense_amount: Decimal
    ) -> Optional[InsufficientFundsWarning]:
        """Build a warning for the caller when funds are insufficient, else None."""
        if self.check_sufficient_funds(wallet_id, expense_amount):
            return None
        wallet = self.store.get_wallet(wallet_id)
        return InsufficientFundsWarning(
            wallet_id=wallet_id, balance=wallet.balance, amount=expense_amount
        )

    def delete_wallet(self, wallet_id: str) -> None:
        """Delete a wallet that no transaction references.

        Raises:
            NotFoundError: If the wallet doesn't exist
            ConflictError: If transactions still reference the wallet
            PersistenceFailure: If the commit failed (state is rolled back)
        """
        with self.store.locked():
            if self.store.get_wallet(wallet_id) is None:
                raise NotFoundError(wallet_not_found(wallet_id))

            linked = self.store.transactions_for_wallet(wallet_id)
            if linked:
                total = sum((t.amount for t in linked), Decimal("0"))
                raise ConflictError(
                    wallet_delete_blocked(wallet_id, len(linked), total),
                    transaction_count=len(linked),
                    total_value=total,
                )

            with self.store.committing():
                self.store.remove_wallet(wallet_id)
                if self.db is not None:
                    self.db.delete_wallet(self.store.user_id, wallet_id)
            logger.debug("wallet_deleted", wallet_id=wallet_id)

    def _validate_amount(self, amount: Decimal) -> None:
        if amount is None or amount <= 0:
            raise ValidationError(non_positive_amount(amount))
        if not fits_money_precision(amount):
            raise ValidationError(too_precise_amount("Amount", amount))

    def _require_references(self, transaction: Transaction) -> None:
        if transaction.wallet_id is not None and self.store.get_wallet(transaction.wallet_id) is None:
            raise NotFoundError(wallet_not_found(transaction.wallet_id))
        if transaction.category_id is not None and self.store.get_category(transaction.category_id) is None:
            raise NotFoundError(category_not_found(transaction.category_id))

    def _commit(self, mutation: TransactionMutation, deltas: list[BalanceDelta]) -> MutationResult:
        """Apply a mutation and its deltas to the store, then persist.

        The transaction record and every balance write are applied together;
        if persisting fails the store is restored and the error propagates.
        """
        with self.store.committing():
            if mutation.kind == MutationKind.DELETE:
                self.store.remove_transaction(mutation.transaction.id)
            else:
                self.store.put_transaction(mutation.transaction)

            for delta in deltas:
                wallet = self.store.get_wallet(delta.wallet_id)
                self.store.put_wallet(replace(wallet, balance=wallet.balance + delta.amount))
                logger.debug("wallet_balance_adjusted", wallet_id=delta.wallet_id, amount=str(delta.amount))

            if self.db is not None:
                self.db.save_transaction_mutation(self.store.user_id, mutation, deltas)

            result = MutationResult(
                kind=mutation.kind,
                transaction=mutation.transaction,
                deltas=tuple(deltas),
                snapshot=self.store.snapshot(),
            )

        logger.debug(f"transaction_{mutation.kind.value}d", transaction_id=mutation.transaction.id)
        return result
