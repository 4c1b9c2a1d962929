"""Session-scoped Entity Store.

Holds the authoritative in-memory state of one user's wallets, categories,
transactions and profile. The store performs no cross-entity validation;
that belongs to the services built on top of it. One store is created per
session and discarded on logout.
"""

import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterable, Iterator, Optional

import structlog

from walletwise.database.base import Database
from walletwise.domain.entities import (
    Category,
    Profile,
    StoreSnapshot,
    Transaction,
    Wallet,
)

logger = structlog.get_logger(__name__)


class EntityStore:
    """In-memory state for one user session."""

    def __init__(
        self,
        user_id: str,
        wallets: Iterable[Wallet] = (),
        categories: Iterable[Category] = (),
        transactions: Iterable[Transaction] = (),
        profile: Optional[Profile] = None,
    ):
        """Initialize the store.

        Args:
            user_id: Owner of every entity in this store
            wallets: Initial wallets
            categories: Initial categories
            transactions: Initial transactions
            profile: Budget profile (defaults to an empty profile)
        """
        self.user_id = user_id
        self._wallets: dict[str, Wallet] = {w.id: w for w in wallets}
        self._categories: dict[str, Category] = {c.id: c for c in categories}
        self._transactions: dict[str, Transaction] = {t.id: t for t in transactions}
        self._profile = profile if profile is not None else Profile(user_id=user_id)
        self._write_lock = threading.RLock()

    @classmethod
    def load(cls, db: Database, user_id: str) -> "EntityStore":
        """Build a store from the persistence collaborator."""
        return cls(
            user_id=user_id,
            wallets=db.load_wallets(user_id),
            categories=db.load_categories(user_id),
            transactions=db.load_transactions(user_id),
            profile=db.load_profile(user_id),
        )

    # Read accessors
    def get_wallet(self, wallet_id: str) -> Optional[Wallet]:
        return self._wallets.get(wallet_id)

    def list_wallets(self) -> list[Wallet]:
        return sorted(self._wallets.values(), key=lambda w: (w.created_at, w.name))

    def get_category(self, category_id: str) -> Optional[Category]:
        return self._categories.get(category_id)

    def list_categories(self) -> list[Category]:
        return sorted(self._categories.values(), key=lambda c: c.name.lower())

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def list_transactions(self) -> list[Transaction]:
        """List transactions, newest first (by date, then creation time)."""
        return sorted(
            self._transactions.values(),
            key=lambda t: (t.date, t.created_at),
            reverse=True,
        )

    def recent_transactions(self, limit: int) -> list[Transaction]:
        return self.list_transactions()[:limit]

    def transactions_for_wallet(self, wallet_id: str) -> list[Transaction]:
        return [t for t in self.list_transactions() if t.wallet_id == wallet_id]

    def transactions_for_category(self, category_id: str) -> list[Transaction]:
        return [t for t in self.list_transactions() if t.category_id == category_id]

    @property
    def profile(self) -> Profile:
        return self._profile

    def total_balance(self) -> Decimal:
        return sum((w.balance for w in self._wallets.values()), Decimal("0"))

    # Raw mutators
    def put_wallet(self, wallet: Wallet) -> None:
        self._wallets[wallet.id] = wallet

    def remove_wallet(self, wallet_id: str) -> None:
        self._wallets.pop(wallet_id, None)

    def put_category(self, category: Category) -> None:
        self._categories[category.id] = category

    def remove_category(self, category_id: str) -> None:
        self._categories.pop(category_id, None)

    def put_transaction(self, transaction: Transaction) -> None:
        self._transactions[transaction.id] = transaction

    def remove_transaction(self, transaction_id: str) -> None:
        self._transactions.pop(transaction_id, None)

    def set_profile(self, profile: Profile) -> None:
        self._profile = profile

    def clear(self) -> None:
        """Drop every wallet, category and transaction."""
        self._wallets.clear()
        self._categories.clear()
        self._transactions.clear()

    # Snapshots
    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            user_id=self.user_id,
            wallets=tuple(self.list_wallets()),
            categories=tuple(self.list_categories()),
            transactions=tuple(self.list_transactions()),
            profile=self._profile,
        )

    def restore(self, snapshot: StoreSnapshot) -> None:
        """Replace the store's state with a previously taken snapshot."""
        if snapshot.user_id != self.user_id:
            raise ValueError("Snapshot belongs to a different user")
        self._wallets = {w.id: w for w in snapshot.wallets}
        self._categories = {c.id: c for c in snapshot.categories}
        self._transactions = {t.id: t for t in snapshot.transactions}
        self._profile = snapshot.profile

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the session's single-writer lock.

        Every wallet balance write happens under this lock, so two deltas are
        never computed against the same stale balance. Re-entrant so services
        can compose mutations.
        """
        with self._write_lock:
            yield

    @contextmanager
    def committing(self) -> Iterator[None]:
        """Hold the write lock for one unit of work.

        Any exception raised inside the block (typically a PersistenceFailure
        from the commit call) restores the state from before the block, so no
        partial change is ever visible to later reads.
        """
        with self._write_lock:
            snapshot = self.snapshot()
            try:
                yield
            except Exception:
                self.restore(snapshot)
                logger.debug("mutation_rolled_back", user_id=self.user_id)
                raise
