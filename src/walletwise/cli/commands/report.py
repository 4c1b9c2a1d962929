"""Spending report commands."""

from datetime import date as date_cls
from decimal import Decimal

import click

from walletwise.cli.error_handling import handle_domain_error
from walletwise.cli.resolution import parse_date_or_exit
from walletwise.domain.aggregation import RECENT_WINDOW
from walletwise.domain.budget import round_percent
from walletwise.domain.entities import Granularity
from walletwise.domain.errors import DomainError
from walletwise.domain.report import ReportService
from walletwise.utils.amount_parser import format_amount

BAR_WIDTH = 40


@click.group()
def report_group():
    """Review where your money goes."""
    pass


PERIOD_OPTIONS = [
    click.option(
        "--period",
        type=click.Choice([g.value for g in Granularity]),
        default=Granularity.MONTHLY.value,
        show_default=True,
        help="Reporting window",
    ),
    click.option("--date", "reference", help="Any date inside the window (defaults to today)"),
    click.option("--start-date", help="Custom window start (with --period custom)"),
    click.option("--end-date", help="Custom window end (with --period custom)"),
]


def period_options(func):
    """Attach the reporting window options shared by report commands."""
    for option in reversed(PERIOD_OPTIONS):
        func = option(func)
    return func


def _build_report(ctx, period: str, reference: str | None, start_date: str | None, end_date: str | None):
    store = ctx.obj["store"]
    granularity = Granularity(period)
    if granularity != Granularity.CUSTOM and (start_date or end_date):
        click.echo("Error: --start-date and --end-date require --period custom.", err=True)
        ctx.exit(1)

    try:
        return ReportService(store).period_report(
            granularity,
            parse_date_or_exit(ctx, reference) if reference else date_cls.today(),
            start=parse_date_or_exit(ctx, start_date, "start date") if start_date else None,
            end=parse_date_or_exit(ctx, end_date, "end date") if end_date else None,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)


@report_group.command("categories")
@period_options
@click.pass_context
def category_report(ctx, period: str, reference: str | None, start_date: str | None, end_date: str | None):
    """Show spending per category, largest first.

    Examples:
        walletwise report categories
        walletwise report categories --period weekly --date "last week"
        walletwise report categories --period custom --start-date 2024-01-01 --end-date 2024-03-31
    """
    currency = ctx.obj["store"].profile.currency
    report = _build_report(ctx, period, reference, start_date, end_date)

    click.echo(f"\nSpending {report.period.start} to {report.period.end}")
    click.echo("-" * 60)
    if not report.categories:
        click.echo("No expenses in this period.")
        return
    for entry in report.categories:
        share = round_percent(entry.total / report.total_outflow * 100)
        click.echo(
            f"{entry.name:24s} {format_amount(entry.total, currency):>16s} {share:4d}%  "
            f"({entry.count} transaction{'s' if entry.count != 1 else ''})"
        )
    click.echo("-" * 60)
    click.echo(f"{'Total':24s} {format_amount(report.total_outflow, currency):>16s}")


@report_group.command("chart")
@period_options
@click.pass_context
def chart_report(ctx, period: str, reference: str | None, start_date: str | None, end_date: str | None):
    """Show spending over time as a bar chart.

    The daily period buckets expenses by the UTC hour they were recorded at.
    """
    currency = ctx.obj["store"].profile.currency
    report = _build_report(ctx, period, reference, start_date, end_date)

    click.echo(f"\nSpending {report.period.start} to {report.period.end}")
    peak = max((bucket.total for bucket in report.series), default=Decimal("0"))
    for bucket in report.series:
        width = int(bucket.total / peak * BAR_WIDTH) if peak > 0 else 0
        click.echo(f"{bucket.label:>5s} |{'#' * width:{BAR_WIDTH}s}| {format_amount(bucket.total, currency)}")


@report_group.command("health")
@period_options
@click.pass_context
def health_report(ctx, period: str, reference: str | None, start_date: str | None, end_date: str | None):
    """Show the spending health score and top spend."""
    currency = ctx.obj["store"].profile.currency
    report = _build_report(ctx, period, reference, start_date, end_date)

    click.echo(f"Health score: {report.health_score}/100")
    click.echo(f"Spent: {format_amount(report.total_outflow, currency)}")
    if report.top_merchant is not None:
        name, total = report.top_merchant
        click.echo(f"Top spend: {name} ({format_amount(total, currency)})")


@report_group.command("history")
@click.option("--points", type=int, default=7, show_default=True, help="Number of points in the series")
@click.pass_context
def balance_history(ctx, points: int):
    """Show how the total balance moved over recent transactions."""
    store = ctx.obj["store"]
    try:
        series = ReportService(store).balance_history(points)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for value in series:
        click.echo(format_amount(value, store.profile.currency))


@report_group.command("trend")
@click.option("--window", type=int, default=RECENT_WINDOW, show_default=True, help="Recent transactions to include")
@click.pass_context
def trend_report(ctx, window: int):
    """Show the net movement over recent transactions."""
    store = ctx.obj["store"]
    trend = ReportService(store).trend(window)
    direction = "up" if trend.is_positive else "down"
    click.echo(
        f"Net {direction} {format_amount(abs(trend.net), store.profile.currency)} over the last "
        f"{window} transactions ({round_percent(abs(trend.percent_of_total_budget))}% of total budget)"
    )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
