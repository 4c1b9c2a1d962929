"""Wallet domain service."""

import uuid
from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

import structlog

from walletwise.database.base import Database
from walletwise.domain.entities import Wallet, WalletType, fits_money_precision
from walletwise.domain.errors import NotFoundError, ValidationError, too_precise_amount, wallet_not_found
from walletwise.domain.reconciler import BalanceReconciler
from walletwise.domain.store import EntityStore

logger = structlog.get_logger(__name__)

MAX_WALLETS = 4
WALLET_COLORS = ("#007AFF", "#34C759", "#FF9500", "#FF2D55", "#AF52DE", "#5856D6")


def _check_balance_precision(balance: Decimal) -> None:
    if not fits_money_precision(balance):
        raise ValidationError(too_precise_amount("Balance", balance))


class WalletService:
    """Service for managing wallets."""

    def __init__(self, store: EntityStore, db: Optional[Database] = None):
        """Initialize wallet service.

        Args:
            store: Session Entity Store
            db: Optional persistence collaborator
        """
        self.store = store
        self.db = db

    def create_wallet(
        self,
        name: str,
        balance: Decimal = Decimal("0"),
        type: WalletType = WalletType.CASH,
        color: Optional[str] = None,
    ) -> Wallet:
        """Create a new wallet.

        Args:
            name: Wallet name
            balance: Opening balance
            type: Wallet type
            color: Display color (defaults to the next palette color)

        Returns:
            Created wallet

        Raises:
            ValidationError: If the name is empty or taken, or the wallet limit is reached
        """
        name = name.strip()
        if not name:
            raise ValidationError("Wallet name cannot be empty")
        _check_balance_precision(balance)

        with self.store.committing():
            wallets = self.store.list_wallets()
            if len(wallets) >= MAX_WALLETS:
                raise ValidationError(f"Cannot have more than {MAX_WALLETS} wallets")
            self._check_unique_name(name)

            wallet = Wallet(
                id=uuid.uuid4().hex,
                user_id=self.store.user_id,
                name=name,
                balance=balance,
                type=WalletType(type),
                color=color or WALLET_COLORS[len(wallets) % len(WALLET_COLORS)],
                created_at=datetime.now(UTC),
            )
            self.store.put_wallet(wallet)
            if self.db is not None:
                self.db.save_wallet(wallet)

        logger.debug("wallet_created", wallet_id=wallet.id)
        return wallet

    def get_wallet(self, wallet_id: str) -> Optional[Wallet]:
        return self.store.get_wallet(wallet_id)

    def require_wallet(self, wallet_id: str) -> Wallet:
        wallet = self.store.get_wallet(wallet_id)
        if wallet is None:
            raise NotFoundError(wallet_not_found(wallet_id))
        return wallet

    def list_wallets(self) -> list[Wallet]:
        return self.store.list_wallets()

    def find_wallet(self, identifier: str) -> Optional[Wallet]:
        """Find a wallet by ID, ID prefix, or case-insensitive name."""
        wallet = self.store.get_wallet(identifier)
        if wallet is not None:
            return wallet
        lowered = identifier.strip().lower()
        for wallet in self.store.list_wallets():
            if wallet.name.lower() == lowered:
                return wallet
        prefixed = [w for w in self.store.list_wallets() if w.id.startswith(identifier)]
        return prefixed[0] if len(prefixed) == 1 else None

    def update_wallet(
        self,
        wallet_id: str,
        name: Optional[str] = None,
        type: Optional[WalletType] = None,
        color: Optional[str] = None,
    ) -> Wallet:
        """Rename, retype or recolor a wallet. The balance is not touched.

        Raises:
            NotFoundError: If the wallet doesn't exist
            ValidationError: If the new name is empty or taken
        """
        with self.store.committing():
            wallet = self.require_wallet(wallet_id)
            changes = {}
            if name is not None:
                name = name.strip()
                if not name:
                    raise ValidationError("Wallet name cannot be empty")
                self._check_unique_name(name, exclude_id=wallet_id)
                changes["name"] = name
            if type is not None:
                changes["type"] = WalletType(type)
            if color is not None:
                changes["color"] = color

            updated = replace(wallet, **changes)
            self.store.put_wallet(updated)
            if self.db is not None:
                self.db.save_wallet(updated)
        return updated

    def set_balance(self, wallet_id: str, balance: Decimal) -> Wallet:
        """Set a wallet's balance directly.

        This re-anchors the wallet's opening balance: later transactions are
        reconciled against the new value.

        Raises:
            NotFoundError: If the wallet doesn't exist
            ValidationError: If the balance has more than two decimal places
        """
        _check_balance_precision(balance)
        with self.store.committing():
            wallet = self.require_wallet(wallet_id)
            updated = replace(wallet, balance=balance)
            self.store.put_wallet(updated)
            if self.db is not None:
                self.db.save_wallet(updated)

        logger.debug("wallet_balance_set", wallet_id=wallet_id, balance=str(balance))
        return updated

    def delete_wallet(self, wallet_id: str) -> None:
        """Delete a wallet (blocked while transactions reference it)."""
        BalanceReconciler(self.store, self.db).delete_wallet(wallet_id)

    def _check_unique_name(self, name: str, exclude_id: Optional[str] = None) -> None:
        for wallet in self.store.list_wallets():
            if wallet.id != exclude_id and wallet.name.lower() == name.lower():
                raise ValidationError(f"Wallet with name '{name}' already exists")
