"""Notification Trigger boundary.

Turns budget and aggregation results into notification events. Delivery is
the job of whatever ``NotificationSink`` the caller plugs in; this module
only decides which events exist.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Protocol

import structlog

from walletwise.domain.budget import (
    OVER_PERCENT,
    WARNING_PERCENT,
    compute_category_spend_status,
    percent_of,
    remaining_to_allocate,
)
from walletwise.domain.entities import (
    AllocationSummary,
    Category,
    Period,
    Transaction,
)

logger = structlog.get_logger(__name__)


class AlertLevel(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class NudgeKind(str, Enum):
    NO_BUDGET = "no_budget"
    NOTHING_ALLOCATED = "nothing_allocated"
    PARTIALLY_ALLOCATED = "partially_allocated"


@dataclass(frozen=True)
class CategoryBudgetEvent:
    category_id: str
    category_name: str
    percent_used: Decimal
    level: AlertLevel


@dataclass(frozen=True)
class TotalBudgetEvent:
    total_budget_used_percent: Decimal
    level: AlertLevel


@dataclass(frozen=True)
class AllocationNudge:
    kind: NudgeKind
    remaining: Decimal


class NotificationSink(Protocol):
    """Receives events and decides independently whether to deliver them."""

    def publish(self, event: CategoryBudgetEvent | TotalBudgetEvent | AllocationNudge) -> None:
        ...


def _alert_level(percent: Decimal) -> Optional[AlertLevel]:
    if percent >= OVER_PERCENT:
        return AlertLevel.CRITICAL
    if percent >= WARNING_PERCENT:
        return AlertLevel.WARNING
    return None


def category_alerts(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    period: Period,
) -> list[CategoryBudgetEvent]:
    """Events for budgeted categories at 80% or more of their budget."""
    in_period = [t for t in transactions if period.contains(t.date)]
    events = []
    for category in categories:
        if not category.has_budget:
            continue
        status = compute_category_spend_status(category, in_period)
        level = _alert_level(status.percent_used)
        if level is not None:
            events.append(
                CategoryBudgetEvent(
                    category_id=category.id,
                    category_name=category.name,
                    percent_used=status.percent_used,
                    level=level,
                )
            )
    return events


def total_budget_event(spent: Decimal, total_budget: Decimal) -> Optional[TotalBudgetEvent]:
    """Event for overall budget usage at 80% or more, else None."""
    if total_budget is None or total_budget <= 0:
        return None
    used = percent_of(spent, total_budget)
    level = _alert_level(used)
    if level is None:
        return None
    return TotalBudgetEvent(total_budget_used_percent=used, level=level)


def allocation_nudge(allocation: AllocationSummary, total_budget: Decimal) -> Optional[AllocationNudge]:
    """Nudge the user to set a budget or finish allocating it."""
    remaining = remaining_to_allocate(allocation, total_budget)
    if total_budget <= 0:
        return AllocationNudge(kind=NudgeKind.NO_BUDGET, remaining=remaining)
    if allocation.allocated_total <= 0:
        return AllocationNudge(kind=NudgeKind.NOTHING_ALLOCATED, remaining=remaining)
    if remaining > 0:
        return AllocationNudge(kind=NudgeKind.PARTIALLY_ALLOCATED, remaining=remaining)
    return None


class NotificationTrigger:
    """Collects events and hands them to a sink."""

    def __init__(self, sink: NotificationSink):
        self.sink = sink

    def dispatch(self, events: Iterable[CategoryBudgetEvent | TotalBudgetEvent | AllocationNudge | None]) -> int:
        """Publish every non-empty event. Returns the number published."""
        published = 0
        for event in events:
            if event is None:
                continue
            self.sink.publish(event)
            published += 1
        logger.debug("notifications_dispatched", count=published)
        return published
