"""Module category binding commands."""

import click
from parkledger.cli.error_handling import handle_domain_error
from parkledger.domain.bindings import ModuleBindingService, SOURCE_MODULES
from parkledger.domain.entities import EXPENSE, INCOME
from parkledger.domain.errors import DomainError


@click.group()
def binding_group():
    """Manage which categories each source module posts to."""
    pass


@binding_group.command("list")
@click.option("--module", type=click.Choice(SOURCE_MODULES), help="Only list this module")
@click.pass_context
def list_bindings(ctx, module: str | None):
    """List module category bindings."""
    bindings = ModuleBindingService(ctx.obj["db"]).list_bindings(module=module)
    if not bindings:
        click.echo("No bindings found. Run 'binding seed' to create the defaults.")
        return

    click.echo(f"\n{'Module':<12} {'Type':<8} {'Category':<12} {'Order':>5}  Auto")
    click.echo("-" * 50)
    for b in bindings:
        direction = INCOME if b.is_income else EXPENSE
        auto = "yes" if b.auto_generate else "no"
        click.echo(f"{b.source_module:<12} {direction:<8} {b.category_code:<12} {b.sort_order:>5}  {auto}")


@binding_group.command("set")
@click.argument("module", type=click.Choice(SOURCE_MODULES))
@click.argument("category_code")
@click.option("--type", "direction", type=click.Choice([INCOME, EXPENSE]), required=True, help="Binding direction")
@click.option("--auto/--no-auto", "auto_generate", default=True, help="Post matching events automatically (default: on)")
@click.option("--sort-order", type=int, help="Position among the module's bindings; 0 is the default")
@click.pass_context
def set_binding(ctx, module: str, category_code: str, direction: str, auto_generate: bool, sort_order: int | None):
    """Create or update a binding."""
    service = ModuleBindingService(ctx.obj["db"])
    try:
        binding_id = service.set_binding(
            module, category_code, direction == INCOME, auto_generate=auto_generate, sort_order=sort_order
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Bound {module} {direction} to {category_code} (ID: {binding_id})")


@binding_group.command("remove")
@click.argument("module", type=click.Choice(SOURCE_MODULES))
@click.argument("category_code")
@click.option("--type", "direction", type=click.Choice([INCOME, EXPENSE]), required=True, help="Binding direction")
@click.pass_context
def remove_binding(ctx, module: str, category_code: str, direction: str):
    """Remove a binding."""
    service = ModuleBindingService(ctx.obj["db"])
    try:
        service.remove_binding(module, category_code, direction == INCOME)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed {module} {direction} binding to {category_code}")


@binding_group.command("seed")
@click.option("--force", is_flag=True, help="Seed even if bindings already exist")
@click.pass_context
def seed_bindings(ctx, force: bool):
    """Create the default bindings for every source module."""
    written = ModuleBindingService(ctx.obj["db"]).seed_defaults(force=force)
    if written == 0:
        click.echo("Bindings already exist. Use --force to seed anyway.")
    else:
        click.echo(f"Seeded {written} default bindings")


@binding_group.command("load")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def load_bindings(ctx, file_path: str):
    """Load bindings from a YAML file."""
    service = ModuleBindingService(ctx.obj["db"])
    try:
        written = service.load_bindings(file_path)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Loaded {written} bindings from {file_path}")


def register_commands(cli):
    """Register binding commands with main CLI."""
    cli.add_command(binding_group, name="binding")
