"""Budget alert command."""

from datetime import date as date_cls

import click

from walletwise.cli.resolution import parse_date_or_exit
from walletwise.domain.budget import round_percent
from walletwise.domain.notifications import (
    AlertLevel,
    AllocationNudge,
    CategoryBudgetEvent,
    NotificationTrigger,
    NudgeKind,
    TotalBudgetEvent,
)
from walletwise.domain.report import ReportService
from walletwise.utils.amount_parser import format_amount


class EchoSink:
    """Notification sink that prints events to the terminal."""

    def __init__(self, currency: str):
        self.currency = currency

    def publish(self, event: CategoryBudgetEvent | TotalBudgetEvent | AllocationNudge) -> None:
        if isinstance(event, CategoryBudgetEvent):
            verb = "is over budget" if event.level == AlertLevel.CRITICAL else "is nearing its budget"
            click.echo(f"[{event.level.value}] {event.category_name} {verb} ({round_percent(event.percent_used)}% used)")
        elif isinstance(event, TotalBudgetEvent):
            click.echo(
                f"[{event.level.value}] {round_percent(event.total_budget_used_percent)}% of your total budget is spent"
            )
        elif event.kind == NudgeKind.NO_BUDGET:
            click.echo("[info] No total budget set. Try 'walletwise budget set'.")
        elif event.kind == NudgeKind.NOTHING_ALLOCATED:
            click.echo("[info] None of your budget is allocated to categories yet.")
        else:
            click.echo(f"[info] {format_amount(event.remaining, self.currency)} of your budget is not allocated yet.")


@click.command("alerts")
@click.option("--date", help="Any date inside the budget period (defaults to today)")
@click.pass_context
def alerts(ctx, date: str | None):
    """Show budget alerts for the current budget period."""
    store = ctx.obj["store"]
    reference = parse_date_or_exit(ctx, date) if date else date_cls.today()

    events = ReportService(store).budget_events(reference)
    published = NotificationTrigger(EchoSink(store.profile.currency)).dispatch(events)
    if published == 0:
        click.echo("No alerts. Spending is on track.")


def register_commands(cli):
    """Register alerts command with main CLI."""
    cli.add_command(alerts)
