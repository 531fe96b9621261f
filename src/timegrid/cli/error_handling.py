"""CLI error handling helpers."""

import click

from timegrid.domain.errors import DomainError
from timegrid.domain.scheduler import FlushReport


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def flush_or_exit(ctx: click.Context) -> FlushReport:
    """Persist the session's unsaved rows; exit with failure if any write failed."""
    report = ctx.obj["session"].flush()
    for row_index, message in report.failed:
        click.echo(f"Error: Could not save row {row_index + 1}: {message}", err=True)
    if report.failed:
        ctx.exit(1)
    return report
