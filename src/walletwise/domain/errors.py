"""Shared domain error messages and error types."""

from dataclasses import dataclass
from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for callers that only catch ValueError.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Referential conflict, such as deleting a wallet still in use.

    Carries the number of blocking transactions and their total value so
    callers can offer a remediation path.
    """

    def __init__(self, message: str, transaction_count: int = 0, total_value: Decimal = Decimal("0")):
        super().__init__(message)
        self.transaction_count = transaction_count
        self.total_value = total_value


class PersistenceFailure(DomainError):
    """The atomic commit to the persistence collaborator failed."""


@dataclass(frozen=True)
class InsufficientFundsWarning:
    """Advisory result: an expense would exceed the wallet balance.

    Never raised. The calling layer decides whether to ask for confirmation.
    """

    wallet_id: str
    balance: Decimal
    amount: Decimal

    @property
    def shortfall(self) -> Decimal:
        return self.amount - self.balance


def wallet_not_found(wallet_id: str) -> str:
    """Return message for missing wallet."""
    return f"Wallet {wallet_id} not found"


def category_not_found(category_id: str) -> str:
    """Return message for missing category."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def non_positive_amount(amount: Decimal) -> str:
    """Return message for a zero or negative amount."""
    return f"Amount must be greater than zero (got {amount})"


def too_precise_amount(label: str, amount: Decimal) -> str:
    """Return message for a value with more than two decimal places."""
    return f"{label} cannot have more than two decimal places (got {amount})"


def _blocking_parts(transaction_count: int, total_value: Decimal) -> str:
    noun = "transaction" if transaction_count == 1 else "transactions"
    return f"{transaction_count} {noun} totalling {total_value:,.2f}"


def wallet_delete_blocked(wallet_id: str, transaction_count: int, total_value: Decimal) -> str:
    """Return message when a wallet still has linked transactions."""
    return (
        f"Cannot delete wallet {wallet_id}: it has {_blocking_parts(transaction_count, total_value)}. "
        "Please reassign or delete them first."
    )


def category_delete_blocked(category_id: str, transaction_count: int, total_value: Decimal) -> str:
    """Return message when a category still has linked transactions."""
    return (
        f"Cannot delete category {category_id}: it has {_blocking_parts(transaction_count, total_value)}. "
        "Reassign them to another category or detach them first."
    )
