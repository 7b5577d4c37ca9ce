"""Accounting catalog commands."""

import click
from parkledger.cli.error_handling import handle_domain_error
from parkledger.domain.catalog import AccountingCatalogService
from parkledger.domain.entities import CATEGORY_TYPES, NATURES
from parkledger.domain.errors import DomainError


def print_catalog_tree(categories: list[dict], indent: int = 0) -> None:
    """Recursively print catalog tree."""
    for cat in categories:
        prefix = "  " * indent
        inactive = "" if cat["is_active"] else " [inactive]"
        click.echo(f"{prefix}{cat['code']} {cat['name']} ({cat['category_type']}){inactive}")
        if cat.get("children"):
            print_catalog_tree(cat["children"], indent + 1)


@click.group()
def catalog_group():
    """Manage the accounting catalog."""
    pass


@catalog_group.command("list")
@click.option("--type", "category_type", type=click.Choice(CATEGORY_TYPES), help="Only list this type")
@click.option("--tree", is_flag=True, help="Show the full hierarchy, including inactive entries")
@click.pass_context
def list_catalog(ctx, category_type: str | None, tree: bool):
    """List active accounting categories."""
    service = AccountingCatalogService(ctx.obj["db"])

    if tree:
        nodes = service.get_tree()
        if not nodes:
            click.echo("Accounting catalog is empty.")
            return
        print_catalog_tree(nodes)
        return

    categories = service.list_active(category_type=category_type)
    if not categories:
        click.echo("No accounting categories found.")
        return

    click.echo(f"\n{'Code':<12} {'Type':<10} {'Nature':<7} Name")
    click.echo("-" * 60)
    for cat in categories:
        click.echo(f"{cat.code:<12} {cat.category_type:<10} {cat.nature:<7} {cat.name}")


@catalog_group.command("add")
@click.argument("code")
@click.argument("name")
@click.option("--type", "category_type", type=click.Choice(CATEGORY_TYPES), required=True, help="Category type")
@click.option("--nature", type=click.Choice(NATURES), help="debit or credit (derived from type by default)")
@click.option("--description", help="Description")
@click.pass_context
def add_category(ctx, code: str, name: str, category_type: str, nature: str | None, description: str | None):
    """Add an accounting category, e.g. 4.1.2 "Event tickets" --type Income."""
    service = AccountingCatalogService(ctx.obj["db"])
    try:
        category_id = service.add_category(
            code=code, name=name, category_type=category_type, nature=nature, description=description
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created accounting category {code} '{name}' (ID: {category_id})")


@catalog_group.command("deactivate")
@click.argument("code")
@click.pass_context
def deactivate_category(ctx, code: str):
    """Deactivate an accounting category."""
    service = AccountingCatalogService(ctx.obj["db"])
    try:
        service.deactivate_category(code)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated accounting category {code}. Run 'categories sync' to apply.")


@catalog_group.command("reactivate")
@click.argument("code")
@click.pass_context
def reactivate_category(ctx, code: str):
    """Reactivate an accounting category."""
    service = AccountingCatalogService(ctx.obj["db"])
    try:
        service.reactivate_category(code)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reactivated accounting category {code}. Run 'categories sync' to apply.")


@catalog_group.command("load")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def load_catalog(ctx, file_path: str):
    """Load accounting categories from a YAML file."""
    service = AccountingCatalogService(ctx.obj["db"])
    try:
        created = service.load_catalog(file_path)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Loaded {created} accounting categories from {file_path}")


def register_commands(cli):
    """Register catalog commands with main CLI."""
    cli.add_command(catalog_group, name="catalog")
