"""Wallet management commands."""

import click

from walletwise.cli.error_handling import handle_domain_error
from walletwise.cli.resolution import parse_amount_or_exit, resolve_wallet_or_exit, short_id
from walletwise.domain.entities import WalletType
from walletwise.domain.errors import DomainError
from walletwise.domain.wallet import MAX_WALLETS, WalletService
from walletwise.utils.amount_parser import format_amount

WALLET_TYPES = [t.value for t in WalletType]


@click.group()
def wallet_group():
    """Manage wallets."""
    pass


@wallet_group.command("create")
@click.argument("name", metavar="WALLET_NAME")
@click.option("--balance", default="0", help="Opening balance (e.g., 'Rp 1.500.000' or 1500000)")
@click.option("--type", "wallet_type", type=click.Choice(WALLET_TYPES), default="cash", show_default=True)
@click.option("--color", help="Display color (hex)")
@click.pass_context
def create_wallet(ctx, name: str, balance: str, wallet_type: str, color: str | None):
    """Create a new wallet.

    Examples:
        walletwise wallet create "Cash"
        walletwise wallet create "BCA" --type bank --balance 2500000
    """
    service = WalletService(ctx.obj["store"], ctx.obj["db"])
    opening = parse_amount_or_exit(ctx, balance, allow_negative=True)

    try:
        wallet = service.create_wallet(name=name, balance=opening, type=WalletType(wallet_type), color=color)
    except DomainError as e:
        handle_domain_error(ctx, e)

    currency = ctx.obj["store"].profile.currency
    click.echo(f"Created wallet '{wallet.name}' (ID: {short_id(wallet.id)})")
    click.echo(f"  Balance: {format_amount(wallet.balance, currency)}")


@wallet_group.command("list")
@click.pass_context
def list_wallets(ctx):
    """List all wallets with their balances."""
    store = ctx.obj["store"]
    service = WalletService(store, ctx.obj["db"])
    currency = store.profile.currency

    wallets = service.list_wallets()
    if not wallets:
        click.echo("No wallets found.")
        return

    click.echo(f"\nWallets ({len(wallets)}/{MAX_WALLETS}):")
    click.echo("-" * 60)
    for w in wallets:
        click.echo(f"{short_id(w.id)} | {w.name:20s} | {w.type.value:8s} | {format_amount(w.balance, currency):>18s}")
    click.echo("-" * 60)
    click.echo(f"Total balance: {format_amount(store.total_balance(), currency)}")


@wallet_group.command("edit")
@click.argument("wallet", metavar="WALLET")
@click.option("--name", help="New wallet name")
@click.option("--type", "wallet_type", type=click.Choice(WALLET_TYPES), help="New wallet type")
@click.option("--color", help="New display color (hex)")
@click.pass_context
def edit_wallet(ctx, wallet: str, name: str | None, wallet_type: str | None, color: str | None):
    """Rename, retype or recolor a wallet.

    WALLET can be a wallet name or ID. The balance is not changed; use
    'wallet set-balance' for that.
    """
    service = WalletService(ctx.obj["store"], ctx.obj["db"])
    target = resolve_wallet_or_exit(ctx, service, wallet)

    try:
        updated = service.update_wallet(
            target.id,
            name=name,
            type=WalletType(wallet_type) if wallet_type else None,
            color=color,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated wallet '{updated.name}'")


@wallet_group.command("set-balance")
@click.argument("wallet", metavar="WALLET")
@click.argument("balance", metavar="BALANCE")
@click.pass_context
def set_balance(ctx, wallet: str, balance: str):
    """Set a wallet's balance directly.

    The new value becomes the wallet's opening balance; existing
    transactions are not replayed against it.

    Examples:
        walletwise wallet set-balance Cash 350000
    """
    service = WalletService(ctx.obj["store"], ctx.obj["db"])
    target = resolve_wallet_or_exit(ctx, service, wallet)
    amount = parse_amount_or_exit(ctx, balance, allow_negative=True)

    try:
        updated = service.set_balance(target.id, amount)
    except DomainError as e:
        handle_domain_error(ctx, e)

    currency = ctx.obj["store"].profile.currency
    click.echo(
        f"Balance of '{updated.name}' set to {format_amount(updated.balance, currency)} "
        f"(was {format_amount(target.balance, currency)})"
    )


@wallet_group.command("delete")
@click.argument("wallet", metavar="WALLET")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_wallet(ctx, wallet: str, yes: bool):
    """Delete a wallet.

    WALLET can be a wallet name or ID. The wallet can only be deleted if no
    transactions reference it.
    """
    service = WalletService(ctx.obj["store"], ctx.obj["db"])
    target = resolve_wallet_or_exit(ctx, service, wallet)

    if not yes and not click.confirm(f"Are you sure you want to delete wallet '{target.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_wallet(target.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted wallet '{target.name}'")


def register_commands(cli):
    """Register wallet commands with main CLI."""
    cli.add_command(wallet_group, name="wallet")
