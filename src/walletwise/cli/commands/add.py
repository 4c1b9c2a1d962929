"""Add transaction commands."""

from datetime import date as date_cls

import click

from walletwise.cli.error_handling import handle_domain_error
from walletwise.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_category_or_exit,
    resolve_wallet_or_exit,
    short_id,
)
from walletwise.domain.category import CategoryService
from walletwise.domain.entities import TransactionType
from walletwise.domain.errors import DomainError
from walletwise.domain.reconciler import BalanceReconciler
from walletwise.domain.wallet import WalletService
from walletwise.utils.amount_parser import format_amount


@click.group()
def add_group():
    """Record an expense or an income."""
    pass


def _record(ctx, txn_type: TransactionType, amount: str, wallet: str | None, category: str | None,
            date: str | None, description: str | None, yes: bool) -> None:
    store = ctx.obj["store"]
    reconciler = BalanceReconciler(store, ctx.obj["db"])
    currency = store.profile.currency

    txn_amount = parse_amount_or_exit(ctx, amount)
    txn_date = parse_date_or_exit(ctx, date) if date else date_cls.today()

    wallet_obj = resolve_wallet_or_exit(ctx, WalletService(store), wallet) if wallet else None
    category_obj = resolve_category_or_exit(ctx, CategoryService(store), category) if category else None

    if txn_type == TransactionType.EXPENSE and wallet_obj is not None:
        warning = reconciler.insufficient_funds_warning(wallet_obj.id, txn_amount)
        if warning is not None and not yes:
            click.echo(
                f"Warning: '{wallet_obj.name}' only has {format_amount(warning.balance, currency)}; "
                f"this expense leaves it {format_amount(warning.shortfall, currency)} short.",
                err=True,
            )
            if not click.confirm("Record it anyway?"):
                click.echo("Cancelled.")
                return

    try:
        result = reconciler.create_transaction(
            type=txn_type,
            amount=txn_amount,
            date=txn_date,
            description=description,
            category_id=category_obj.id if category_obj else None,
            wallet_id=wallet_obj.id if wallet_obj else None,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    txn = result.transaction
    click.echo(f"Recorded {txn.type.value} {short_id(txn.id)}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Amount: {format_amount(txn.amount, currency)}")
    if description:
        click.echo(f"  Description: {description}")
    if category_obj is not None and txn.category_id is not None:
        click.echo(f"  Category: {category_obj.name}")
    if wallet_obj is not None:
        balance = store.get_wallet(wallet_obj.id).balance
        click.echo(f"  Wallet: {wallet_obj.name} (balance {format_amount(balance, currency)})")


@add_group.command("expense")
@click.argument("amount", metavar="AMOUNT")
@click.option("--category", required=True, help="Category name or ID")
@click.option("--wallet", help="Wallet name or ID to pay from")
@click.option("--date", help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--description", help="Transaction description")
@click.option("--yes", is_flag=True, help="Record even if the wallet balance is insufficient")
@click.pass_context
def add_expense(ctx, amount: str, category: str, wallet: str | None, date: str | None,
                description: str | None, yes: bool):
    """Record an expense.

    If the wallet balance does not cover the amount you are asked to
    confirm; --yes records it without asking.

    Examples:
        walletwise add expense 45000 --category "Food & Drinks" --wallet Cash --description "Lunch"
        walletwise add expense "Rp 1.200.000" --category Bills --date yesterday
    """
    _record(ctx, TransactionType.EXPENSE, amount, wallet, category, date, description, yes)


@add_group.command("income")
@click.argument("amount", metavar="AMOUNT")
@click.option("--wallet", help="Wallet name or ID to receive the money")
@click.option("--date", help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--description", help="Transaction description")
@click.pass_context
def add_income(ctx, amount: str, wallet: str | None, date: str | None, description: str | None):
    """Record an income.

    Examples:
        walletwise add income 8000000 --wallet BCA --description "Salary"
    """
    _record(ctx, TransactionType.INCOME, amount, wallet, None, date, description, yes=True)


def register_commands(cli):
    """Register add commands with main CLI."""
    cli.add_command(add_group, name="add")
