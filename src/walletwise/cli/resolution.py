"""CLI helpers for resolving wallets, categories, dates and amounts.

Each helper either returns the resolved value or renders the error and
exits, which keeps messaging consistent across commands.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import click

from walletwise.cli.error_handling import handle_domain_error
from walletwise.domain.category import CategoryService
from walletwise.domain.entities import Category, Transaction, Wallet
from walletwise.domain.errors import NotFoundError
from walletwise.domain.wallet import WalletService
from walletwise.utils.amount_parser import parse_amount, parse_balance
from walletwise.utils.date_parser import parse_date


def resolve_wallet_or_exit(ctx: click.Context, wallet_service: WalletService, wallet: str) -> Wallet:
    """Resolve a wallet name, ID or ID prefix, or exit with a CLI error."""
    found = wallet_service.find_wallet(wallet)
    if found is None:
        handle_domain_error(ctx, NotFoundError(f"Wallet '{wallet}' not found"))
    return found


def resolve_category_or_exit(
    ctx: click.Context, category_service: CategoryService, category: str
) -> Category:
    """Resolve a category name, ID or ID prefix, or exit with a CLI error."""
    found = category_service.find_category(category)
    if found is None:
        handle_domain_error(ctx, NotFoundError(f"Category '{category}' not found"))
    return found


def parse_date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    week_start = ctx.obj["store"].profile.week_start
    try:
        return parse_date(value, week_start=week_start)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str, allow_negative: bool = False) -> Decimal:
    try:
        return parse_balance(value) if allow_negative else parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


def short_id(entity_id: str) -> str:
    """Display form of an opaque ID; any unique prefix resolves back."""
    return entity_id[:8]


def resolve_transaction_or_exit(ctx: click.Context, store, transaction: str) -> Transaction:
    """Resolve a transaction ID or unique ID prefix, or exit with a CLI error."""
    found = store.get_transaction(transaction)
    if found is None:
        prefixed = [t for t in store.list_transactions() if t.id.startswith(transaction)]
        found = prefixed[0] if len(prefixed) == 1 else None
    if found is None:
        handle_domain_error(ctx, NotFoundError(f"Transaction '{transaction}' not found"))
    return found
