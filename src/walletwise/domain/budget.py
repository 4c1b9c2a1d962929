"""Budget Allocator.

Pure functions relating category budgets to the profile's total budget
anchor. The total budget is set explicitly by the user and is never
recomputed from transactions, except through the single fallback rule in
``effective_total_budget``.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from walletwise.domain.entities import (
    AllocationSummary,
    Category,
    CategoryAllocation,
    CategorySpendStatus,
    Period,
    Profile,
    ProjectedAllocation,
    ThresholdLevel,
    Transaction,
    TransactionType,
    Wallet,
)
from walletwise.domain.errors import ValidationError

WARNING_PERCENT = Decimal("80")
OVER_PERCENT = Decimal("100")
LAST_DAY_OF_MONTH = -1

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def round_percent(value: Decimal) -> int:
    """Round a percentage half up to an integer."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part / whole * 100``, or 0 when ``whole`` is not positive."""
    if whole is None or whole <= 0:
        return _ZERO
    return part / whole * _HUNDRED


def threshold_level(percent: Decimal) -> ThresholdLevel:
    """Classify budget usage: >= 100% over, 80-99% warning, else normal."""
    if percent >= OVER_PERCENT:
        return ThresholdLevel.OVER
    if percent >= WARNING_PERCENT:
        return ThresholdLevel.WARNING
    return ThresholdLevel.NORMAL


def allocated_total(categories: Iterable[Category]) -> Decimal:
    return sum((c.monthly_budget or _ZERO for c in categories), _ZERO)


def compute_allocation(categories: Iterable[Category], profile: Profile | Decimal) -> AllocationSummary:
    """Allocate category budgets against the total budget.

    Args:
        categories: Categories (those without a budget contribute 0)
        profile: Profile, or the total budget itself

    Returns:
        AllocationSummary with percent rounded half up
    """
    total_budget = profile.total_budget if isinstance(profile, Profile) else profile
    categories = list(categories)
    allocated = allocated_total(categories)

    per_category = tuple(
        CategoryAllocation(
            category_id=c.id,
            name=c.name,
            monthly_budget=c.monthly_budget,
            percent_of_total=round_percent(percent_of(c.monthly_budget or _ZERO, total_budget)),
        )
        for c in categories
    )
    return AllocationSummary(
        allocated_total=allocated,
        percent=round_percent(percent_of(allocated, total_budget)),
        over_allocated=allocated > total_budget,
        per_category_status=per_category,
    )


def compute_category_spend_status(
    category: Category,
    transactions_in_period: Iterable[Transaction],
) -> CategorySpendStatus:
    """Compute how much of a category's budget the period's expenses used.

    Only expenses linked to the category are counted. Without a budget only
    ``spent`` is reported.
    """
    spent = sum(
        (
            t.amount
            for t in transactions_in_period
            if t.type == TransactionType.EXPENSE and t.category_id == category.id
        ),
        _ZERO,
    )
    if not category.has_budget:
        return CategorySpendStatus(category_id=category.id, spent=spent)

    budget = category.monthly_budget
    used = percent_of(spent, budget)
    level = threshold_level(used)
    return CategorySpendStatus(
        category_id=category.id,
        spent=spent,
        remaining=budget - spent,
        is_over=level == ThresholdLevel.OVER,
        is_warning=level == ThresholdLevel.WARNING,
        percent_used=used,
    )


def compute_projected_allocation(
    categories_excluding_current: Iterable[Category],
    candidate_budget: Optional[Decimal],
    total_budget: Decimal,
) -> ProjectedAllocation:
    """Preview the allocation if a category's budget became ``candidate_budget``."""
    projected = allocated_total(categories_excluding_current) + (candidate_budget or _ZERO)
    return ProjectedAllocation(
        projected_total=projected,
        would_exceed=projected > total_budget,
        percent=round_percent(percent_of(projected, total_budget)),
        remaining=total_budget - projected,
    )


def remaining_to_allocate(allocation: AllocationSummary, total_budget: Decimal) -> Decimal:
    return total_budget - allocation.allocated_total


def budget_used_percent(spent: Decimal, total_budget: Decimal) -> int:
    """Share of the total budget spent, rounded half up (0 without a budget)."""
    return round_percent(percent_of(spent, total_budget))


def derived_total_budget(wallets: Iterable[Wallet], transactions: Iterable[Transaction]) -> Decimal:
    """Reconstruct the budget the user started from.

    The current balance with every expense added back and every income taken
    out, i.e. unaffected by spending or income.
    """
    live_balance = sum((w.balance for w in wallets), _ZERO)
    expenses = _ZERO
    income = _ZERO
    for t in transactions:
        if t.type == TransactionType.EXPENSE:
            expenses += t.amount
        else:
            income += t.amount
    return live_balance + expenses - income


def resolve_total_budget(anchor: Optional[Decimal], fallback: Decimal) -> Decimal:
    """Use the stored anchor if present and positive, otherwise the fallback."""
    if anchor is not None and anchor > 0:
        return anchor
    return fallback


def effective_total_budget(
    profile: Profile,
    wallets: Iterable[Wallet],
    transactions: Iterable[Transaction],
) -> Decimal:
    return resolve_total_budget(profile.total_budget, derived_total_budget(wallets, transactions))


def validate_reset_day(reset_day: int) -> int:
    if reset_day != LAST_DAY_OF_MONTH and not 1 <= reset_day <= 31:
        raise ValidationError(f"Reset day must be between 1 and 31, or -1 for the last day (got {reset_day})")
    return reset_day


def _reset_date(year: int, month: int, reset_day: int) -> date:
    last = calendar.monthrange(year, month)[1]
    day = last if reset_day == LAST_DAY_OF_MONTH else min(reset_day, last)
    return date(year, month, day)


def budget_period(reference: date, reset_day: int = 1) -> Period:
    """Return the budget period containing ``reference``.

    A period starts on the reset day (clamped to the month's length, -1 is the
    last day) and ends the day before the next reset.

    Examples:
        reset_day=1, 2024-03-15 -> 2024-03-01 .. 2024-03-31
        reset_day=25, 2024-03-10 -> 2024-02-25 .. 2024-03-24
    """
    validate_reset_day(reset_day)
    start = _reset_date(reference.year, reference.month, reset_day)
    if reference < start:
        previous = reference - relativedelta(months=1)
        start = _reset_date(previous.year, previous.month, reset_day)
    following = start + relativedelta(months=1)
    next_start = _reset_date(following.year, following.month, reset_day)
    return Period(start=start, end=next_start - timedelta(days=1))
