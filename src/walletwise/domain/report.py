"""Report domain service.

Binds the Aggregation Engine and Budget Allocator to the current session
state, the way dashboard and report views consume them.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from walletwise.domain import aggregation, budget
from walletwise.domain.entities import (
    AllocationSummary,
    CategorySpendStatus,
    CategoryTotal,
    Granularity,
    Period,
    TimeBucket,
    Trend,
)
from walletwise.domain.notifications import (
    AllocationNudge,
    CategoryBudgetEvent,
    TotalBudgetEvent,
    allocation_nudge,
    category_alerts,
    total_budget_event,
)
from walletwise.domain.store import EntityStore


@dataclass(frozen=True)
class BudgetOverview:
    """Budget page model for one budget period."""

    period: Period
    total_budget: Decimal
    spent: Decimal
    used_percent: int
    allocation: AllocationSummary
    category_statuses: tuple[CategorySpendStatus, ...]


@dataclass(frozen=True)
class PeriodReport:
    """Financial report model for one reporting window."""

    granularity: Granularity
    period: Period
    total_outflow: Decimal
    health_score: int
    categories: tuple[CategoryTotal, ...]
    series: tuple[TimeBucket, ...]
    top_merchant: Optional[tuple[str, Decimal]]


class ReportService:
    """Service producing dashboard, budget and report views."""

    def __init__(self, store: EntityStore):
        """Initialize report service.

        Args:
            store: Session Entity Store (read only)
        """
        self.store = store

    def total_budget(self) -> Decimal:
        """Total budget after applying the anchor-or-derived precedence rule."""
        return budget.effective_total_budget(
            self.store.profile,
            self.store.list_wallets(),
            self.store.list_transactions(),
        )

    def budget_overview(self, reference: date) -> BudgetOverview:
        """Build the budget view for the period containing ``reference``."""
        profile = self.store.profile
        period = budget.budget_period(reference, profile.reset_day)
        total_budget = self.total_budget()
        in_period = aggregation.filter_period(self.store.list_transactions(), period)
        categories = self.store.list_categories()
        spent = aggregation.total_outflow(in_period)

        return BudgetOverview(
            period=period,
            total_budget=total_budget,
            spent=spent,
            used_percent=budget.budget_used_percent(spent, total_budget),
            allocation=budget.compute_allocation(categories, total_budget),
            category_statuses=tuple(
                budget.compute_category_spend_status(c, in_period) for c in categories
            ),
        )

    def period_report(
        self,
        granularity: Granularity,
        reference: date,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> PeriodReport:
        """Build the financial report for a granularity."""
        granularity = Granularity(granularity)
        period = aggregation.period_for(
            granularity, reference, self.store.profile.week_start, start=start, end=end
        )
        transactions = self.store.list_transactions()
        categories = self.store.list_categories()
        outflow = aggregation.total_outflow(transactions, period)

        return PeriodReport(
            granularity=granularity,
            period=period,
            total_outflow=outflow,
            health_score=aggregation.compute_health_score(outflow, self.store.profile.total_budget),
            categories=tuple(aggregation.bucket_by_category(transactions, categories, period)),
            series=tuple(aggregation.bucket_by_time(transactions, granularity, period)),
            top_merchant=aggregation.top_merchant(transactions, categories, period),
        )

    def balance_history(self, points: int = 7) -> list[Decimal]:
        return aggregation.compute_balance_history(
            self.store.total_balance(),
            self.store.recent_transactions(points - 1) if points > 1 else [],
            points,
        )

    def trend(self, window: int = aggregation.RECENT_WINDOW) -> Trend:
        return aggregation.compute_trend(self.store.recent_transactions(window), self.total_budget())

    def budget_events(
        self, reference: date
    ) -> list[CategoryBudgetEvent | TotalBudgetEvent | AllocationNudge]:
        """Notification events for the budget period containing ``reference``."""
        overview = self.budget_overview(reference)
        events: list[CategoryBudgetEvent | TotalBudgetEvent | AllocationNudge] = list(
            category_alerts(self.store.list_categories(), self.store.list_transactions(), overview.period)
        )
        total_event = total_budget_event(overview.spent, overview.total_budget)
        if total_event is not None:
            events.append(total_event)
        nudge = allocation_nudge(overview.allocation, self.store.profile.total_budget)
        if nudge is not None:
            events.append(nudge)
        return events
