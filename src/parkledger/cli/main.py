"""Main CLI entry point."""

import click
from parkledger.database.factories import create_database
from parkledger.logging_config import configure_logging

# Import and register all commands at module level
from parkledger.cli.commands import (
    catalog,
    categories,
    binding,
    event,
    ledger,
    reconcile,
)


@click.group()
@click.option(
    "--db-url",
    help="SQLAlchemy database URL (overrides PARKLEDGER_DB_URL environment variable)",
    envvar="PARKLEDGER_DB_URL",
)
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides PARKLEDGER_DB_PATH environment variable)",
    envvar="PARKLEDGER_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="PARKLEDGER_LOG_LEVEL",
    help="Log level (default: WARNING)",
)
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx, db_url: str | None, db_path: str | None, log_level: str, json_logs: bool):
    """Parkledger - financial integration for park operations.

    Keeps income and expense categories in step with the accounting catalog
    and posts the financial impact of module activity to a single ledger.
    """
    ctx.ensure_object(dict)
    configure_logging(level=log_level, json_format=json_logs)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:

        def db_factory():
            db = create_database(database_url=db_url, database_path=db_path)
            db.connect()
            db.initialize_schema()
            return db

        ctx.obj["db"] = db_factory()
        ctx.obj["db_factory"] = db_factory
        ctx.call_on_close(ctx.obj["db"].disconnect)


# Register all commands
catalog.register_commands(cli)
categories.register_commands(cli)
binding.register_commands(cli)
event.register_commands(cli)
ledger.register_commands(cli)
reconcile.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
