"""Transaction management commands."""

import click

from walletwise.cli.error_handling import handle_domain_error
from walletwise.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_category_or_exit,
    resolve_transaction_or_exit,
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
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this week')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--category", help="Category name or ID")
@click.option("--wallet", help="Wallet name or ID")
@click.option("--type", "txn_type", type=click.Choice([t.value for t in TransactionType]), help="Only expenses or incomes")
@click.option("--limit", type=int, help="Show at most this many transactions")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    category: str | None,
    wallet: str | None,
    txn_type: str | None,
    limit: int | None,
):
    """List transactions, newest first.

    Examples:
        walletwise transaction list --start-date "this month"
        walletwise transaction list --wallet Cash --type expense --limit 10
    """
    store = ctx.obj["store"]
    currency = store.profile.currency

    start = parse_date_or_exit(ctx, start_date, "start date") if start_date else None
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else None
    category_obj = resolve_category_or_exit(ctx, CategoryService(store), category) if category else None
    wallet_obj = resolve_wallet_or_exit(ctx, WalletService(store), wallet) if wallet else None

    transactions = [
        t
        for t in store.list_transactions()
        if (start is None or t.date >= start)
        and (end is None or t.date <= end)
        and (category_obj is None or t.category_id == category_obj.id)
        and (wallet_obj is None or t.wallet_id == wallet_obj.id)
        and (txn_type is None or t.type.value == txn_type)
    ]
    if limit is not None:
        transactions = transactions[:limit]

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\n{'ID':8s} | {'Date':10s} | {'Amount':>16s} | {'Category':16s} | {'Wallet':12s} | Description")
    click.echo("-" * 90)
    for t in transactions:
        category_obj = store.get_category(t.category_id) if t.category_id else None
        wallet_obj = store.get_wallet(t.wallet_id) if t.wallet_id else None
        click.echo(
            f"{short_id(t.id):8s} | {t.date} | {format_amount(t.signed_amount, currency):>16s} | "
            f"{(category_obj.name if category_obj else '-')[:16]:16s} | "
            f"{(wallet_obj.name if wallet_obj else '-')[:12]:12s} | {t.description or ''}"
        )


@transaction_group.command("edit")
@click.argument("transaction_id", metavar="TRANSACTION_ID")
@click.option("--amount", help="New amount")
@click.option("--date", help="New date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--description", help="New description")
@click.option("--category", help="New category name or ID (expenses only)")
@click.option("--wallet", help="New wallet name or ID, or empty string to detach")
@click.option("--yes", is_flag=True, help="Skip the insufficient-funds confirmation")
@click.pass_context
def edit_transaction(
    ctx,
    transaction_id: str,
    amount: str | None,
    date: str | None,
    description: str | None,
    category: str | None,
    wallet: str | None,
    yes: bool,
):
    """Edit a transaction and reconcile wallet balances.

    Updates only the fields that are provided. Moving a transaction to
    another wallet restores the old wallet and charges the new one. If an
    expense edit charges its wallet more than the wallet holds, you are
    asked to confirm first.

    Examples:
        walletwise transaction edit 3f2a9c1b --amount 50000
        walletwise transaction edit 3f2a9c1b --wallet BCA
        walletwise transaction edit 3f2a9c1b --wallet ""  # Detach from wallet
    """
    store = ctx.obj["store"]
    reconciler = BalanceReconciler(store, ctx.obj["db"])
    current = resolve_transaction_or_exit(ctx, store, transaction_id)

    kwargs = {}
    if amount is not None:
        kwargs["amount"] = parse_amount_or_exit(ctx, amount)
    if date is not None:
        kwargs["date"] = parse_date_or_exit(ctx, date)
    if description is not None:
        kwargs["description"] = description
    if category is not None:
        kwargs["category_id"] = resolve_category_or_exit(ctx, CategoryService(store), category).id
    if wallet is not None:
        kwargs["wallet_id"] = resolve_wallet_or_exit(ctx, WalletService(store), wallet).id if wallet else None

    currency = store.profile.currency
    if current.is_expense and not yes:
        # Only the part of the new amount not already charged to the target wallet
        target_id = kwargs.get("wallet_id", current.wallet_id)
        new_amount = kwargs.get("amount", current.amount)
        extra = new_amount - current.amount if target_id == current.wallet_id else new_amount
        if target_id is not None and extra > 0:
            warning = reconciler.insufficient_funds_warning(target_id, extra)
            if warning is not None:
                click.echo(
                    f"Warning: '{store.get_wallet(target_id).name}' only has "
                    f"{format_amount(warning.balance, currency)}; "
                    f"this edit leaves it {format_amount(warning.shortfall, currency)} short.",
                    err=True,
                )
                if not click.confirm("Save it anyway?"):
                    click.echo("Cancelled.")
                    return

    try:
        result = reconciler.update_transaction(current.id, **kwargs)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated transaction {short_id(result.transaction.id)}")
    for delta in result.deltas:
        changed = store.get_wallet(delta.wallet_id)
        click.echo(f"  {changed.name}: {format_amount(changed.balance, currency)}")


@transaction_group.command("delete")
@click.argument("transaction_id", metavar="TRANSACTION_ID")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: str, yes: bool):
    """Delete a transaction and restore its wallet balance."""
    store = ctx.obj["store"]
    reconciler = BalanceReconciler(store, ctx.obj["db"])
    current = resolve_transaction_or_exit(ctx, store, transaction_id)
    currency = store.profile.currency

    if not yes and not click.confirm(
        f"Delete {current.type.value} of {format_amount(current.amount, currency)} on {current.date}?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        reconciler.delete_transaction(current.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {short_id(current.id)}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
