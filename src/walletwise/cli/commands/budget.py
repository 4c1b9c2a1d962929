"""Budget planning commands."""

from datetime import date as date_cls

import click

from walletwise.cli.error_handling import handle_domain_error
from walletwise.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_category_or_exit,
)
from walletwise.domain.budget import remaining_to_allocate, round_percent
from walletwise.domain.category import CategoryService
from walletwise.domain.entities import ThresholdLevel, WeekStart
from walletwise.domain.errors import DomainError
from walletwise.domain.profile import ProfileService
from walletwise.domain.report import ReportService
from walletwise.utils.amount_parser import format_amount

LEVEL_MARKERS = {
    ThresholdLevel.NORMAL: "ok",
    ThresholdLevel.WARNING: "WARNING",
    ThresholdLevel.OVER: "OVER",
}


@click.group()
def budget_group():
    """Plan and track budgets."""
    pass


def _reference(ctx, value: str | None):
    return parse_date_or_exit(ctx, value) if value else date_cls.today()


@budget_group.command("show")
@click.option("--date", help="Any date inside the budget period (defaults to today)")
@click.pass_context
def show_budget(ctx, date: str | None):
    """Show the total budget, spending and how it is allocated."""
    store = ctx.obj["store"]
    currency = store.profile.currency
    overview = ReportService(store).budget_overview(_reference(ctx, date))

    click.echo(f"\nBudget period: {overview.period.start} to {overview.period.end}")
    click.echo("-" * 60)
    click.echo(f"Total budget:  {format_amount(overview.total_budget, currency)}")
    if store.profile.total_budget <= 0:
        click.echo("  (derived from wallet balances; set one with 'walletwise budget set')")
    click.echo(f"Spent:         {format_amount(overview.spent, currency)} ({overview.used_percent}%)")
    click.echo(
        f"Allocated:     {format_amount(overview.allocation.allocated_total, currency)} "
        f"({overview.allocation.percent}%)"
    )
    remaining = remaining_to_allocate(overview.allocation, overview.total_budget)
    if overview.allocation.over_allocated:
        click.echo(f"Over-allocated by {format_amount(-remaining, currency)}")
    else:
        click.echo(f"Left to allocate: {format_amount(remaining, currency)}")

    budgeted = [a for a in overview.allocation.per_category_status if a.monthly_budget]
    if budgeted:
        click.echo("\nAllocation:")
        for allocation in budgeted:
            click.echo(
                f"  {allocation.name:24s} {format_amount(allocation.monthly_budget, currency):>16s} "
                f"{allocation.percent_of_total:4d}%"
            )


@budget_group.command("set")
@click.argument("amount", metavar="TOTAL_BUDGET", required=False)
@click.option("--reset-day", type=int, help="Day of month the budget period starts (1-31, -1 for last day)")
@click.option("--week-start", type=click.Choice([w.value for w in WeekStart]), help="First day of the week")
@click.option("--currency", help="Display currency (e.g., IDR, USD)")
@click.pass_context
def set_budget(ctx, amount: str | None, reset_day: int | None, week_start: str | None, currency: str | None):
    """Set the total budget and budget period settings.

    Examples:
        walletwise budget set 5000000
        walletwise budget set --reset-day 25
    """
    if amount is None and reset_day is None and week_start is None and currency is None:
        click.echo("Error: Nothing to update. Pass a TOTAL_BUDGET or an option.", err=True)
        ctx.exit(1)

    service = ProfileService(ctx.obj["store"], ctx.obj["db"])
    total_budget = parse_amount_or_exit(ctx, amount, allow_negative=True) if amount is not None else None

    try:
        profile = service.update_profile(
            total_budget=total_budget,
            reset_day=reset_day,
            week_start=WeekStart(week_start) if week_start else None,
            currency=currency,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Total budget: {format_amount(profile.total_budget, profile.currency)}")
    reset = "last day" if profile.reset_day == -1 else f"day {profile.reset_day}"
    click.echo(f"Period resets on {reset} of the month; weeks start on {profile.week_start.value}")


@budget_group.command("status")
@click.option("--date", help="Any date inside the budget period (defaults to today)")
@click.pass_context
def budget_status(ctx, date: str | None):
    """Show spending against each category budget."""
    store = ctx.obj["store"]
    currency = store.profile.currency
    overview = ReportService(store).budget_overview(_reference(ctx, date))

    if not overview.category_statuses:
        click.echo("No categories found.")
        return

    click.echo(f"\nSpending {overview.period.start} to {overview.period.end}:")
    click.echo("-" * 80)
    for status in overview.category_statuses:
        category = store.get_category(status.category_id)
        spent = format_amount(status.spent, currency)
        if status.level is None:
            click.echo(f"{category.name:24s} {spent:>16s}   (no budget)")
            continue
        click.echo(
            f"{category.name:24s} {spent:>16s} / {format_amount(category.monthly_budget, currency):>16s} "
            f"{round_percent(status.percent_used):4d}%  {LEVEL_MARKERS[status.level]}"
        )


@budget_group.command("preview")
@click.argument("amount", metavar="CATEGORY_BUDGET")
@click.option("--category", help="Category being edited (omit for a new category)")
@click.pass_context
def preview_budget(ctx, amount: str, category: str | None):
    """Preview how a category budget would affect the allocation.

    Examples:
        walletwise budget preview 750000
        walletwise budget preview 750000 --category Groceries
    """
    store = ctx.obj["store"]
    currency = store.profile.currency
    service = CategoryService(store, ctx.obj["db"])
    candidate = parse_amount_or_exit(ctx, amount, allow_negative=True)
    category_obj = resolve_category_or_exit(ctx, service, category) if category else None

    projection = service.preview_budget(candidate, category_id=category_obj.id if category_obj else None)
    click.echo(f"Projected allocation: {format_amount(projection.projected_total, currency)} ({projection.percent}%)")
    if projection.would_exceed:
        click.echo(f"Exceeds total budget by {format_amount(-projection.remaining, currency)}")
    else:
        click.echo(f"Left to allocate: {format_amount(projection.remaining, currency)}")


def register_commands(cli):
    """Register budget commands with main CLI."""
    cli.add_command(budget_group, name="budget")
