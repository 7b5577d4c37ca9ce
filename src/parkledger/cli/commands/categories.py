"""Income and expense category commands."""

import click
from parkledger.cli.error_handling import echo_warnings
from parkledger.domain.category_sync import CategorySyncService
from parkledger.domain.entities import EXPENSE, INCOME


@click.group()
def categories_group():
    """Sync and inspect income/expense categories."""
    pass


@categories_group.command("sync")
@click.pass_context
def sync_categories(ctx):
    """Re-derive income and expense categories from the accounting catalog."""
    service = CategorySyncService(ctx.obj["db"])
    result = service.sync_financial_categories()
    echo_warnings(result.warnings)
    click.echo(
        f"Synced {result.income_count} income and {result.expense_count} expense "
        f"categories from {result.accounting_count} accounting categories"
    )


@categories_group.command("list")
@click.option("--type", "kind", type=click.Choice([INCOME, EXPENSE]), help="Only list one kind")
@click.option("--all", "show_all", is_flag=True, help="Include inactive categories")
@click.pass_context
def list_categories(ctx, kind: str | None, show_all: bool):
    """List income and expense categories."""
    service = CategorySyncService(ctx.obj["db"])
    listings = {
        INCOME: service.list_income_categories,
        EXPENSE: service.list_expense_categories,
    }

    found = False
    for listing_kind, listing in listings.items():
        if kind is not None and kind != listing_kind:
            continue
        categories = listing(active_only=not show_all)
        if not categories:
            continue
        found = True
        click.echo(f"\n{listing_kind.capitalize()} categories:")
        for cat in categories:
            inactive = "" if cat.is_active else " [inactive]"
            click.echo(f"  {cat.code:<12} {cat.name} (ID: {cat.id}){inactive}")

    if not found:
        click.echo("No categories found. Run 'categories sync' first.")


@categories_group.command("stats")
@click.pass_context
def category_stats(ctx):
    """Show sync counts."""
    stats = CategorySyncService(ctx.obj["db"]).get_sync_stats()
    click.echo(f"Accounting categories: {stats.accounting}")
    click.echo(f"Income categories:     {stats.income}")
    click.echo(f"Expense categories:    {stats.expense}")
    last_sync = stats.last_sync.isoformat(timespec="seconds") if stats.last_sync else "never"
    click.echo(f"Last sync:             {last_sync}")


@categories_group.command("status")
@click.pass_context
def sync_status(ctx):
    """Check whether income/expense categories match the catalog (exit 1 if not)."""
    if CategorySyncService(ctx.obj["db"]).check_sync_status():
        click.echo("In sync")
    else:
        click.echo("Out of sync. Run 'categories sync'.")
        ctx.exit(1)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(categories_group, name="categories")
