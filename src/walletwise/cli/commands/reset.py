"""Account reset command."""

import click

from walletwise.cli.error_handling import handle_domain_error
from walletwise.domain.errors import DomainError
from walletwise.domain.profile import ProfileService


@click.command("reset")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def reset_account(ctx, yes: bool):
    """Delete all wallets, categories and transactions and clear the budget.

    Profile settings such as the reset day and currency are kept.
    """
    if not yes and not click.confirm("This deletes all your data. Continue?"):
        click.echo("Reset cancelled.")
        return

    try:
        ProfileService(ctx.obj["store"], ctx.obj["db"]).reset_account()
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo("Account reset.")


def register_commands(cli):
    """Register reset command with main CLI."""
    cli.add_command(reset_account)
