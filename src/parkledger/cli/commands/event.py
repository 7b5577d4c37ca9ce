"""Commands for posting source module events by hand."""

import json

import click
from parkledger.cli.error_handling import echo_warnings, handle_domain_error
from parkledger.domain.bindings import SOURCE_MODULES
from parkledger.domain.entities import ACTIONS, EXPENSE, INCOME, FinancialData, FinancialImpactEvent
from parkledger.domain.errors import DomainError
from parkledger.domain.ingestion import EventIngestor, event_from_payload


@click.group()
def event_group():
    """Feed financial impact events to the ledger."""
    pass


def _apply(ctx, event: FinancialImpactEvent) -> None:
    ingestor = EventIngestor(ctx.obj["db"])
    try:
        result = ingestor.ingest(event)
    except DomainError as e:
        handle_domain_error(ctx, e)

    echo_warnings(result.warnings)
    line = f"{result.outcome}"
    if result.transaction_id is not None:
        line += f": ledger transaction {result.transaction_id}"
    if result.reference:
        line += f" ({result.reference})"
    click.echo(line)


@event_group.command("emit")
@click.option("--module", type=click.Choice(SOURCE_MODULES), required=True, help="Source module")
@click.option("--action", type=click.Choice(ACTIONS), required=True, help="What happened to the entity")
@click.option("--entity-type", required=True, help="Source table, e.g. concession_contracts")
@click.option("--entity-id", required=True, help="Source row ID")
@click.option("--type", "transaction_type", type=click.Choice([INCOME, EXPENSE]), required=True, help="Transaction type")
@click.option("--amount", help="Amount (e.g., 1500 or 1,500.00)")
@click.option("--description", help="Description")
@click.option("--category", help="Category code (defaults to the module's bound category)")
@click.option("--date", "on_date", help="Date (YYYY-MM-DD or relative like 'today')")
@click.option("--reference", help="Reference (generated when omitted)")
@click.pass_context
def emit_event(
    ctx,
    module: str,
    action: str,
    entity_type: str,
    entity_id: str,
    transaction_type: str,
    amount: str | None,
    description: str | None,
    category: str | None,
    on_date: str | None,
    reference: str | None,
):
    """Emit one event, as a source module would after its own write.

    Examples:
        parkledger event emit --module concessions --action create \\
            --entity-type concession_contracts --entity-id 42 --type income \\
            --amount 1500 --description "Monthly rent" --date 2025-01-15
        parkledger event emit --module concessions --action delete \\
            --entity-type concession_contracts --entity-id 42 --type income
    """
    event = FinancialImpactEvent(
        module=module,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        transaction_type=transaction_type,
        financial_data=FinancialData(
            amount=amount,
            description=description,
            category_code=category,
            date=on_date,
            reference=reference,
        ),
    )
    _apply(ctx, event)


@event_group.command("apply")
@click.argument("file_path", type=click.File("r"))
@click.pass_context
def apply_events(ctx, file_path):
    """Apply events from a JSON file (one object or a list; '-' reads stdin)."""
    try:
        payload = json.load(file_path)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON: {e}", err=True)
        ctx.exit(1)

    payloads = payload if isinstance(payload, list) else [payload]
    for item in payloads:
        try:
            event = event_from_payload(item)
        except DomainError as e:
            handle_domain_error(ctx, e)
        _apply(ctx, event)


def register_commands(cli):
    """Register event commands with main CLI."""
    cli.add_command(event_group, name="event")
