"""Abstract database interface (the persistence collaborator)."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from walletwise.domain.entities import (
    BalanceDelta,
    Category,
    Profile,
    Transaction,
    TransactionMutation,
    Wallet,
)


class Database(ABC):
    """Abstract database interface for walletwise.

    Every call is scoped to one user. Implementations raise
    ``PersistenceFailure`` when a write cannot be committed.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Loaders
    @abstractmethod
    def load_wallets(self, user_id: str) -> list[Wallet]:
        """Load all wallets of a user."""
        pass

    @abstractmethod
    def load_categories(self, user_id: str) -> list[Category]:
        """Load all categories of a user."""
        pass

    @abstractmethod
    def load_transactions(self, user_id: str) -> list[Transaction]:
        """Load all transactions of a user, newest first."""
        pass

    @abstractmethod
    def load_profile(self, user_id: str) -> Profile:
        """Load the user's profile, or a default profile if none is stored."""
        pass

    # Writes
    @abstractmethod
    def save_transaction_mutation(
        self, user_id: str, mutation: TransactionMutation, deltas: Sequence[BalanceDelta]
    ) -> None:
        """Persist a transaction mutation and its wallet deltas, all or nothing."""
        pass

    @abstractmethod
    def save_wallet(self, wallet: Wallet) -> None:
        """Insert or update a wallet."""
        pass

    @abstractmethod
    def delete_wallet(self, user_id: str, wallet_id: str) -> None:
        """Delete a wallet."""
        pass

    @abstractmethod
    def save_category(self, category: Category) -> None:
        """Insert or update a category."""
        pass

    @abstractmethod
    def delete_category(self, user_id: str, category_id: str, reassign_to: Optional[str] = None) -> None:
        """Delete a category, moving its transactions to ``reassign_to``
        (None clears their category), all or nothing."""
        pass

    @abstractmethod
    def save_profile(self, profile: Profile) -> None:
        """Insert or update the user's profile."""
        pass

    @abstractmethod
    def reset_user(self, user_id: str) -> None:
        """Delete the user's transactions, wallets and categories and zero the budget."""
        pass
