"""Row listing command."""

import click

from timegrid.cli.output import echo_rows


@click.command("rows")
@click.option("--errors-only", is_flag=True, help="Only show rows with validation errors")
@click.pass_context
def list_rows(ctx, errors_only: bool):
    """List timesheet rows with their validation errors."""
    session = ctx.obj["session"]
    errors = session.validate_all()

    rows = session.rows
    if not rows:
        click.echo("No rows found.")
        return

    if errors_only:
        flagged = {e.row for e in errors}
        if not flagged:
            click.echo("No validation errors.")
            return
        for index in sorted(flagged):
            row = rows[index]
            click.echo(f"Row {index + 1}: {row.date} {row.time_in}-{row.time_out} {row.project}")
            for error in errors:
                if error.row == index:
                    click.echo(f"     ! {error.field}: {error.message}")
        return

    echo_rows(rows, errors)


def register_commands(cli):
    """Register rows command with main CLI."""
    cli.add_command(list_rows)
