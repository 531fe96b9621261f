"""Submission readiness check."""

import click

from timegrid.cli.output import echo_errors
from timegrid.domain.validators import check_hours, row_duration_hours


@click.command("check")
@click.pass_context
def check_rows(ctx):
    """Check that every row is ready to submit.

    Exits with failure if any row has a validation error.
    """
    session = ctx.obj["session"]
    errors = session.validate_all()

    rows = [row for row in session.rows if row.has_meaningful_data()]
    if not rows:
        click.echo("No rows to submit.")
        return

    total = 0.0
    for row in rows:
        hours = row_duration_hours(row)
        if hours is not None and check_hours(hours) is None:
            total += hours

    if errors:
        flagged = {e.row for e in errors}
        click.echo(f"{len(flagged)} of {len(rows)} row(s) need attention:", err=True)
        echo_errors(errors)
        ctx.exit(1)
        return

    click.echo(f"All {len(rows)} row(s) ready to submit ({total:.2f} hours).")


def register_commands(cli):
    """Register check command with main CLI."""
    cli.add_command(check_rows)
