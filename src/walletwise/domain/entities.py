"""Domain model entities for walletwise.

These are pure data classes representing business concepts, independent of
database schema. Entities are immutable; services produce modified copies
with ``dataclasses.replace`` and hand them to the Entity Store.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

# Smallest stored unit of money; every column is Numeric(14, 2)
MONEY_QUANTUM = Decimal("0.01")


def fits_money_precision(amount: Decimal) -> bool:
    """True if ``amount`` has no digits below ``MONEY_QUANTUM``."""
    return amount.normalize().as_tuple().exponent >= MONEY_QUANTUM.as_tuple().exponent


class WalletType(str, Enum):
    """Kind of wallet."""

    CARD = "card"
    CASH = "cash"
    BANK = "bank"
    SAVINGS = "savings"
    EWALLET = "ewallet"
    CRYPTO = "crypto"


class TransactionType(str, Enum):
    """Direction of a transaction. Amounts are always positive magnitudes."""

    EXPENSE = "expense"
    INCOME = "income"


class WeekStart(str, Enum):
    """First day of the user's week."""

    MONDAY = "monday"
    SUNDAY = "sunday"


class PeriodType(str, Enum):
    """Budget reset period."""

    MONTHLY = "monthly"
    WEEKLY = "weekly"


class Granularity(str, Enum):
    """Report time granularity."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class ThresholdLevel(str, Enum):
    """Budget usage level used for coloring and alerts."""

    NORMAL = "normal"
    WARNING = "warning"
    OVER = "over"


class MutationKind(str, Enum):
    """Kind of transaction mutation handed to the persistence layer."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Wallet:
    """Wallet domain entity."""

    id: str
    user_id: str
    name: str
    balance: Decimal
    type: WalletType
    color: str
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Category domain entity.

    A ``monthly_budget`` of None means the category only tracks spending.
    """

    id: str
    user_id: str
    name: str
    icon: str
    color: str
    monthly_budget: Optional[Decimal]
    created_at: datetime

    @property
    def has_budget(self) -> bool:
        return self.monthly_budget is not None and self.monthly_budget > 0


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity."""

    id: str
    user_id: str
    type: TransactionType
    amount: Decimal
    description: Optional[str]
    date: date
    category_id: Optional[str]
    wallet_id: Optional[str]
    created_at: datetime

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def signed_amount(self) -> Decimal:
        """Effect of this transaction on its wallet balance."""
        return -self.amount if self.is_expense else self.amount

    @property
    def wallet_effect(self) -> Decimal:
        """Balance change this transaction caused (0 without a wallet)."""
        if self.wallet_id is None:
            return Decimal("0")
        return self.signed_amount


@dataclass(frozen=True)
class Profile:
    """Budget anchor and preferences for one user."""

    user_id: str
    total_budget: Decimal = Decimal("0")
    reset_day: int = 1
    period_type: PeriodType = PeriodType.MONTHLY
    week_start: WeekStart = WeekStart.MONDAY
    currency: str = "IDR"
    display_name: Optional[str] = None


@dataclass(frozen=True)
class Period:
    """Inclusive calendar date range."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class BalanceDelta:
    """Signed change to apply to a wallet balance."""

    wallet_id: str
    amount: Decimal


@dataclass(frozen=True)
class TransactionMutation:
    """A transaction create/update/delete ready to be persisted.

    ``transaction`` is the resulting record (the removed record for deletes);
    ``previous`` is the record before an update.
    """

    kind: MutationKind
    transaction: Transaction
    previous: Optional[Transaction] = None


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable copy of an Entity Store's state."""

    user_id: str
    wallets: tuple[Wallet, ...]
    categories: tuple[Category, ...]
    transactions: tuple[Transaction, ...]
    profile: Profile


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a committed ledger mutation."""

    kind: MutationKind
    transaction: Transaction
    deltas: tuple[BalanceDelta, ...]
    snapshot: StoreSnapshot


@dataclass(frozen=True)
class CategoryAllocation:
    """Per-category share of the total budget."""

    category_id: str
    name: str
    monthly_budget: Optional[Decimal]
    percent_of_total: int


@dataclass(frozen=True)
class AllocationSummary:
    """Result of allocating category budgets against the total budget."""

    allocated_total: Decimal
    percent: int
    over_allocated: bool
    per_category_status: tuple[CategoryAllocation, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CategorySpendStatus:
    """Spending of one category within a period.

    ``remaining``, ``is_over``, ``is_warning`` and ``percent_used`` are None
    when the category has no budget.
    """

    category_id: str
    spent: Decimal
    remaining: Optional[Decimal] = None
    is_over: Optional[bool] = None
    is_warning: Optional[bool] = None
    percent_used: Optional[Decimal] = None

    @property
    def level(self) -> Optional[ThresholdLevel]:
        if self.is_over is None:
            return None
        if self.is_over:
            return ThresholdLevel.OVER
        if self.is_warning:
            return ThresholdLevel.WARNING
        return ThresholdLevel.NORMAL


@dataclass(frozen=True)
class ProjectedAllocation:
    """Allocation preview for a candidate category budget."""

    projected_total: Decimal
    would_exceed: bool
    percent: int
    remaining: Decimal


@dataclass(frozen=True)
class CategoryTotal:
    """Spending total for one category. ``category`` is None for spend whose
    category is unset or no longer exists."""

    category: Optional[Category]
    total: Decimal
    count: int

    @property
    def name(self) -> str:
        return self.category.name if self.category is not None else "Uncategorized"


@dataclass(frozen=True)
class TimeBucket:
    """One point of a time series. ``label`` is empty where the display
    skips a label; the point itself is always present."""

    key: str
    label: str
    total: Decimal


@dataclass(frozen=True)
class Trend:
    """Net movement over a recent window of transactions."""

    net: Decimal
    percent_of_total_budget: Decimal

    @property
    def is_positive(self) -> bool:
        return self.net >= 0
