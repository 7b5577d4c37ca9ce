"""CLI error handling helpers."""

import click

from parkledger.domain.errors import DomainError, IntegrationWarning


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def echo_warnings(warnings: list[IntegrationWarning]) -> None:
    """Render integration warnings on stderr."""
    for warning in warnings:
        click.echo(f"Warning: {warning}", err=True)
