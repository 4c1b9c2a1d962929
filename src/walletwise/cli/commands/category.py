"""Category management commands."""

import click

from walletwise.cli.error_handling import handle_domain_error
from walletwise.cli.resolution import parse_amount_or_exit, resolve_category_or_exit, short_id
from walletwise.domain.category import CategoryService
from walletwise.domain.errors import DomainError
from walletwise.utils.amount_parser import format_amount


@click.group()
def category_group():
    """Manage spending categories and their monthly budgets."""
    pass


def _echo_projection(ctx, service: CategoryService, budget, category_id=None) -> None:
    """Warn when a category budget would push allocation past the total budget."""
    projection = service.preview_budget(budget, category_id=category_id)
    if projection.would_exceed:
        currency = ctx.obj["store"].profile.currency
        click.echo(
            f"Warning: category budgets now total {format_amount(projection.projected_total, currency)} "
            f"({projection.percent}% of your total budget)",
            err=True,
        )


@category_group.command("create")
@click.argument("name", metavar="CATEGORY_NAME")
@click.option("--budget", help="Monthly budget (omit to only track spending)")
@click.option("--icon", default="tag", show_default=True, help="Icon name")
@click.option("--color", default="#8E8E93", show_default=True, help="Display color (hex)")
@click.pass_context
def create_category(ctx, name: str, budget: str | None, icon: str, color: str):
    """Create a new category.

    Examples:
        walletwise category create "Groceries" --budget 1500000
        walletwise category create "Gifts"
    """
    service = CategoryService(ctx.obj["store"], ctx.obj["db"])
    monthly_budget = parse_amount_or_exit(ctx, budget, allow_negative=True) if budget is not None else None

    try:
        category = service.create_category(name=name, icon=icon, color=color, monthly_budget=monthly_budget)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created category '{category.name}' (ID: {short_id(category.id)})")
    if category.has_budget:
        _echo_projection(ctx, service, category.monthly_budget, category_id=category.id)


@category_group.command("init")
@click.pass_context
def init_categories(ctx):
    """Create the starter set of categories."""
    service = CategoryService(ctx.obj["store"], ctx.obj["db"])
    try:
        created = service.create_default_categories()
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not created:
        click.echo("All starter categories already exist.")
        return
    click.echo(f"Created {len(created)} categories:")
    for category in created:
        click.echo(f"  {category.name}")


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories with their budgets."""
    store = ctx.obj["store"]
    service = CategoryService(store, ctx.obj["db"])
    currency = store.profile.currency

    categories = service.list_categories()
    if not categories:
        click.echo("No categories found.")
        return

    click.echo("\nCategories:")
    click.echo("-" * 60)
    for c in categories:
        budget = format_amount(c.monthly_budget, currency) if c.has_budget else "no budget"
        click.echo(f"{short_id(c.id)} | {c.name:24s} | {budget}")


@category_group.command("edit")
@click.argument("category", metavar="CATEGORY")
@click.option("--name", help="New category name")
@click.option("--budget", help="New monthly budget")
@click.option("--clear-budget", is_flag=True, help="Remove the monthly budget")
@click.option("--icon", help="New icon name")
@click.option("--color", help="New display color (hex)")
@click.pass_context
def edit_category(
    ctx,
    category: str,
    name: str | None,
    budget: str | None,
    clear_budget: bool,
    icon: str | None,
    color: str | None,
):
    """Edit a category.

    CATEGORY can be a category name or ID.

    Examples:
        walletwise category edit Groceries --budget 2000000
        walletwise category edit Gifts --clear-budget
    """
    if budget is not None and clear_budget:
        click.echo("Error: --budget and --clear-budget cannot be combined.", err=True)
        ctx.exit(1)

    service = CategoryService(ctx.obj["store"], ctx.obj["db"])
    target = resolve_category_or_exit(ctx, service, category)

    kwargs = {"name": name, "icon": icon, "color": color}
    if clear_budget:
        kwargs["monthly_budget"] = None
    elif budget is not None:
        kwargs["monthly_budget"] = parse_amount_or_exit(ctx, budget, allow_negative=True)

    try:
        updated = service.update_category(target.id, **kwargs)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated category '{updated.name}'")
    if budget is not None and updated.has_budget:
        _echo_projection(ctx, service, updated.monthly_budget, category_id=updated.id)


@category_group.command("delete")
@click.argument("category", metavar="CATEGORY")
@click.option("--reassign-to", help="Move linked transactions to this category")
@click.option("--detach", is_flag=True, help="Clear the category of linked transactions")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_category(ctx, category: str, reassign_to: str | None, detach: bool, yes: bool):
    """Delete a category.

    CATEGORY can be a category name or ID. If transactions use the category,
    pass --reassign-to or --detach to decide what happens to them.
    """
    service = CategoryService(ctx.obj["store"], ctx.obj["db"])
    target = resolve_category_or_exit(ctx, service, category)
    destination = resolve_category_or_exit(ctx, service, reassign_to) if reassign_to else None

    if not yes and not click.confirm(f"Are you sure you want to delete category '{target.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        moved = service.delete_category(
            target.id,
            reassign_to=destination.id if destination else None,
            detach=detach,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deleted category '{target.name}'")
    if moved:
        where = f"moved to '{destination.name}'" if destination else "left uncategorized"
        click.echo(f"  {moved} transaction{'s' if moved != 1 else ''} {where}")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
