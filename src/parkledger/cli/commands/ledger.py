"""Ledger inspection commands."""

import click
from parkledger.domain.bindings import SOURCE_MODULES
from parkledger.domain.entities import EXPENSE, INCOME
from parkledger.domain.source_ledger import TransactionSourceLedger


@click.group()
def ledger_group():
    """Inspect posted transactions and their sources."""
    pass


@ledger_group.command("list")
@click.option("--module", type=click.Choice(SOURCE_MODULES), help="Only transactions posted by this module")
@click.option("--type", "transaction_type", type=click.Choice([INCOME, EXPENSE]), help="Only this type")
@click.pass_context
def list_ledger(ctx, module: str | None, transaction_type: str | None):
    """List ledger transactions, newest first."""
    db = ctx.obj["db"]
    transactions = db.list_ledger_transactions(transaction_type=transaction_type, source_module=module)
    if not transactions:
        click.echo("No ledger transactions found.")
        return

    click.echo(f"\n{'ID':<6} {'Date':<12} {'Type':<8} {'Amount':>12}  {'Category':<10} {'Reference':<20} Description")
    click.echo("-" * 100)
    for txn in transactions:
        amount_str = f"${txn.amount:,.2f}"
        click.echo(
            f"{txn.id:<6} {txn.date.isoformat():<12} {txn.transaction_type:<8} {amount_str:>12}  "
            f"{txn.category_code:<10} {txn.reference or '':<20} {txn.description}"
        )
    click.echo(f"\nTotal: {len(transactions)} transaction(s)")


@ledger_group.command("sources")
@click.option("--module", type=click.Choice(SOURCE_MODULES), help="Only this module")
@click.pass_context
def list_sources(ctx, module: str | None):
    """List which source entity produced each ledger transaction."""
    sources = TransactionSourceLedger(ctx.obj["db"]).list_for_module(module)
    if not sources:
        click.echo("No transaction sources found.")
        return

    click.echo(f"\n{'Txn':<6} {'Module':<12} {'Table':<24} {'Source ID':<10} {'Type':<8} {'Amount':>12}")
    click.echo("-" * 80)
    for src in sources:
        amount_str = f"${src.original_amount:,.2f}"
        click.echo(
            f"{src.transaction_id:<6} {src.source_module:<12} {src.source_table:<24} "
            f"{src.source_id:<10} {src.transaction_type:<8} {amount_str:>12}"
        )


def register_commands(cli):
    """Register ledger commands with main CLI."""
    cli.add_command(ledger_group, name="ledger")
