"""Category reconciliation command."""

import time

import click
from parkledger.cli.error_handling import echo_warnings
from parkledger.domain.reconciler import ReconciliationReport, SyncReconciler


def _print_report(report: ReconciliationReport) -> None:
    echo_warnings(report.warnings)
    status = "in sync" if report.in_sync else "OUT OF SYNC"
    click.echo(
        f"{report.last_sync.isoformat(timespec='seconds')}: {report.income_count} income, "
        f"{report.expense_count} expense from {report.accounting_count} accounting categories ({status})"
    )


@click.command("reconcile")
@click.option("--interval", type=click.FloatRange(min=0, min_open=True), help="Repeat every N seconds")
@click.option("--iterations", type=click.IntRange(min=1), help="Stop after N passes (with --interval)")
@click.pass_context
def reconcile(ctx, interval: float | None, iterations: int | None):
    """Sync categories and report drift, once or on an interval."""
    reconciler = SyncReconciler(ctx.obj["db_factory"], interval_seconds=interval)

    if interval is None:
        report = reconciler.run_once()
        _print_report(report)
        if not report.in_sync:
            ctx.exit(1)
        return

    passes = 0
    try:
        while iterations is None or passes < iterations:
            try:
                _print_report(reconciler.run_once())
            except Exception as e:
                # Keep the loop alive; the next pass may succeed
                click.echo(f"Error: Reconciliation failed: {e}", err=True)
            passes += 1
            if iterations is None or passes < iterations:
                time.sleep(interval)
    except KeyboardInterrupt:
        click.echo("Stopped.")


def register_commands(cli):
    """Register reconcile command with main CLI."""
    cli.add_command(reconcile)
