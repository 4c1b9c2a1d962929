"""Aggregation Engine.

Pure functions deriving report views from an immutable transaction snapshot.
None of them mutate their inputs or keep state between calls, so they can be
cancelled and recomputed at any time.
"""

import math
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from walletwise.domain.budget import percent_of, round_percent
from walletwise.domain.entities import (
    Category,
    CategoryTotal,
    Granularity,
    Period,
    TimeBucket,
    Transaction,
    TransactionType,
    Trend,
    WeekStart,
)
from walletwise.domain.errors import ValidationError

RECENT_WINDOW = 5
NEUTRAL_HEALTH_SCORE = 50
DAILY_LABEL_HOURS = (0, 6, 12, 18, 23)
WEEKDAY_LABELS = ("M", "T", "W", "T", "F", "S", "S")
MAX_DENSE_LABEL_DAYS = 14
SPARSE_LABEL_COUNT = 5

_ZERO = Decimal("0")


def _expenses(transactions: Iterable[Transaction], period: Optional[Period] = None) -> list[Transaction]:
    return [
        t
        for t in transactions
        if t.type == TransactionType.EXPENSE and (period is None or period.contains(t.date))
    ]


def week_period(reference: date, week_start: WeekStart = WeekStart.MONDAY) -> Period:
    """Return the calendar week containing ``reference``."""
    first_weekday = 0 if WeekStart(week_start) == WeekStart.MONDAY else 6
    offset = (reference.weekday() - first_weekday) % 7
    start = reference - timedelta(days=offset)
    return Period(start=start, end=start + timedelta(days=6))


def month_period(reference: date) -> Period:
    start = reference.replace(day=1)
    return Period(start=start, end=start + relativedelta(months=1) - timedelta(days=1))


def period_for(
    granularity: Granularity,
    reference: date,
    week_start: WeekStart = WeekStart.MONDAY,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Period:
    """Resolve the reporting window for a granularity.

    Raises:
        ValidationError: If a custom range is incomplete or reversed
    """
    granularity = Granularity(granularity)
    if granularity == Granularity.DAILY:
        return Period(start=reference, end=reference)
    if granularity == Granularity.WEEKLY:
        return week_period(reference, week_start)
    if granularity == Granularity.MONTHLY:
        return month_period(reference)

    if start is None or end is None:
        raise ValidationError("Custom range requires both a start and an end date")
    if end < start:
        raise ValidationError(f"Custom range end {end} is before start {start}")
    return Period(start=start, end=end)


def filter_period(transactions: Iterable[Transaction], period: Period) -> list[Transaction]:
    """Transactions whose date falls inside the period (inclusive)."""
    return [t for t in transactions if period.contains(t.date)]


def bucket_by_category(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    period: Period,
) -> list[CategoryTotal]:
    """Group the period's expenses by category, largest total first.

    Spend whose category is unset or no longer exists is grouped under a
    single entry with ``category=None``.
    """
    category_index = {c.id: c for c in categories}
    totals: dict[Optional[str], Decimal] = defaultdict(lambda: _ZERO)
    counts: dict[Optional[str], int] = defaultdict(int)

    for txn in _expenses(transactions, period):
        key = txn.category_id if txn.category_id in category_index else None
        totals[key] += txn.amount
        counts[key] += 1

    results = [
        CategoryTotal(
            category=category_index.get(key) if key is not None else None,
            total=total,
            count=counts[key],
        )
        for key, total in totals.items()
    ]
    results.sort(key=lambda r: (-r.total, r.name.lower()))
    return results


def _day_totals(expenses: Iterable[Transaction]) -> dict[date, Decimal]:
    totals: dict[date, Decimal] = defaultdict(lambda: _ZERO)
    for txn in expenses:
        totals[txn.date] += txn.amount
    return totals


def _days(period: Period) -> list[date]:
    return [period.start + timedelta(days=i) for i in range(period.days)]


def _custom_labels(days: Sequence[date]) -> list[str]:
    """Day labels for a custom range, thinned out as the range grows."""
    count = len(days)
    if count <= 7:
        return [str(d.day) for d in days]
    if count <= MAX_DENSE_LABEL_DAYS:
        return [str(d.day) if i % 2 == 0 else "" for i, d in enumerate(days)]

    step = math.ceil(count / SPARSE_LABEL_COUNT)
    return [
        d.strftime("%d/%m") if i == 0 or i == count - 1 or i % step == 0 else ""
        for i, d in enumerate(days)
    ]


def bucket_by_time(
    transactions: Iterable[Transaction],
    granularity: Granularity,
    period: Period,
) -> list[TimeBucket]:
    """Build an expense time series for a reporting window.

    - daily: 24 hourly buckets by ``created_at`` hour in UTC, for expenses
      dated on ``period.start``
    - weekly, monthly, custom: one bucket per calendar day of the period

    Use ``period_for`` to resolve the window (it applies the week start).
    Labels are a display hint; the series always has every point.
    """
    granularity = Granularity(granularity)

    if granularity == Granularity.DAILY:
        day = period.start
        points = [_ZERO] * 24
        for txn in _expenses(transactions):
            if txn.date == day:
                points[txn.created_at.hour] += txn.amount
        return [
            TimeBucket(
                key=f"{hour:02d}",
                label=f"{hour:02d}" if hour in DAILY_LABEL_HOURS else "",
                total=points[hour],
            )
            for hour in range(24)
        ]

    days = _days(period)
    totals = _day_totals(_expenses(transactions, period))

    if granularity == Granularity.WEEKLY:
        labels = [WEEKDAY_LABELS[d.weekday()] for d in days]
    elif granularity == Granularity.MONTHLY:
        labels = [
            str(d.day) if i % 6 == 0 or i == len(days) - 1 else ""
            for i, d in enumerate(days)
        ]
    else:
        labels = _custom_labels(days)

    return [
        TimeBucket(key=d.isoformat(), label=label, total=totals.get(d, _ZERO))
        for d, label in zip(days, labels)
    ]


def compute_balance_history(
    current_total: Decimal,
    transactions_desc: Sequence[Transaction],
    points: int,
) -> list[Decimal]:
    """Reconstruct a balance series, oldest first, ending at ``current_total``.

    Walks back through the newest ``points - 1`` transactions undoing each
    one's effect. Transactions without a wallet never moved a balance and
    leave the value unchanged. When fewer transactions exist the front of the
    series repeats the oldest reconstructed balance.

    Args:
        current_total: Current total of all wallet balances
        transactions_desc: Transactions, newest first
        points: Length of the series

    Raises:
        ValidationError: If points is less than 1
    """
    if points < 1:
        raise ValidationError(f"Balance history needs at least one point (got {points})")

    balance = current_total
    series = [balance]
    for txn in transactions_desc[: points - 1]:
        balance -= txn.wallet_effect
        series.append(balance)

    series.reverse()
    padding = [series[0]] * (points - len(series))
    return padding + series


def compute_trend(recent_transactions: Iterable[Transaction], total_budget: Decimal) -> Trend:
    """Net income minus expenses over a recent window, relative to the budget."""
    net = _ZERO
    for txn in recent_transactions:
        net += txn.signed_amount
    return Trend(net=net, percent_of_total_budget=percent_of(net, total_budget))


def total_outflow(transactions: Iterable[Transaction], period: Optional[Period] = None) -> Decimal:
    return sum((t.amount for t in _expenses(transactions, period)), _ZERO)


def compute_health_score(total_outflow: Decimal, total_budget: Decimal) -> int:
    """Score 0-100: the unspent share of the budget, 50 without a budget."""
    if total_budget is None or total_budget <= 0:
        return NEUTRAL_HEALTH_SCORE
    used = min(total_outflow / total_budget, Decimal("1"))
    return 100 - round_percent(used * 100)


def top_merchant(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    period: Optional[Period] = None,
) -> Optional[tuple[str, Decimal]]:
    """Return the (name, total) spent most on, keyed by description.

    Falls back to the category name, then "Unknown". None without expenses.
    """
    names = {c.id: c.name for c in categories}
    totals: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    for txn in _expenses(transactions, period):
        name = txn.description or names.get(txn.category_id) or "Unknown"
        totals[name] += txn.amount

    if not totals:
        return None
    # First seen wins ties.
    name = max(totals, key=lambda k: totals[k])
    return name, totals[name]
