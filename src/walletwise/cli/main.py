"""Main CLI entry point."""

import click

from walletwise.database.factories import create_sqlite_database
from walletwise.domain.store import EntityStore
from walletwise.logging_config import LOG_LEVELS, configure_logging

# Import and register all commands at module level
from walletwise.cli.commands import (
    wallet,
    category,
    add,
    transaction,
    budget,
    report,
    alerts,
    reset,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides WALLETWISE_DB_PATH environment variable)",
    envvar="WALLETWISE_DB_PATH",
)
@click.option(
    "--user",
    default="local",
    show_default=True,
    help="User whose ledger to open (overrides WALLETWISE_USER environment variable)",
    envvar="WALLETWISE_USER",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for diagnostics on stderr",
    envvar="WALLETWISE_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, user: str, log_level: str):
    """Walletwise - Personal budget and wallet tracker.

    Record expenses and income against your wallets, keep wallet balances
    in sync, plan category budgets and review where your money goes.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)
        ctx.obj["db"] = db
        ctx.obj["store"] = EntityStore.load(db, user)


# Register all commands
wallet.register_commands(cli)
category.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
budget.register_commands(cli)
report.register_commands(cli)
alerts.register_commands(cli)
reset.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
