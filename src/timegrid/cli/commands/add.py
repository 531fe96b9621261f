"""Add row command."""

import click

from timegrid.cli.error_handling import flush_or_exit
from timegrid.cli.output import echo_errors
from timegrid.domain.entities import MAX_TASK_DESCRIPTION_LENGTH, CellEdit
from timegrid.domain.quarters import smart_placeholder
from timegrid.domain.reconciler import ChangeSource
from timegrid.utils.date_parser import format_grid_date, parse_date


@click.command("add")
@click.option(
    "--date",
    help="Entry date (MM/DD/YYYY, YYYY-MM-DD or relative like 'today', 'yesterday'). "
    "Defaults to the suggested next date.",
)
@click.option("--time-in", required=True, help="Start time (e.g., 09:00, 900 or 9)")
@click.option("--time-out", required=True, help="End time (e.g., 17:00, 1700 or 17)")
@click.option("--project", required=True, help="Project name")
@click.option("--tool", help="Tool (required for projects that use tools)")
@click.option("--charge-code", help="Charge code (required for tools that need one)")
@click.option("--description", required=True, help="What you did")
@click.pass_context
def add_row(
    ctx,
    date: str | None,
    time_in: str,
    time_out: str,
    project: str,
    tool: str | None,
    charge_code: str | None,
    description: str,
):
    """Add a timesheet row.

    The row is saved even when it has validation errors so the work is not
    lost; the errors are reported and the command exits with failure.

    Examples:
        timegrid add --date today --time-in 9 --time-out 1230 --project Training --description "Safety course"
        timegrid add --time-in 800 --time-out 1700 --project SWFL-EQUIP --tool AFM101 --charge-code PM --description "Quarterly PM"
    """
    session = ctx.obj["session"]

    if date is None:
        entry_date = smart_placeholder(session.rows[-1] if session.rows else None)
    else:
        try:
            entry_date = format_grid_date(parse_date(date))
        except ValueError:
            # Let the validator report the bad value
            entry_date = date

    row_index = session.append_row()
    values = {
        "date": entry_date,
        "time_in": time_in,
        "time_out": time_out,
        "project": project,
        "tool": tool or "",
        "charge_code": charge_code or "",
        "task_description": description[:MAX_TASK_DESCRIPTION_LENGTH],
    }
    edits = [
        CellEdit(row=row_index, field=field, old_value=None, new_value=value)
        for field, value in values.items()
    ]
    outcome = session.handle_changes(edits, ChangeSource.EDIT)
    flush_or_exit(ctx)

    row = session.rows[row_index]
    click.echo(f"Added row {row_index + 1}")
    click.echo(f"  Date: {row.date}")
    click.echo(f"  Time: {row.time_in} - {row.time_out}")
    click.echo(f"  Project: {row.project}")
    if row.tool.is_value:
        click.echo(f"  Tool: {row.tool}")
    if row.charge_code.is_value:
        click.echo(f"  Charge code: {row.charge_code}")

    row_errors = outcome.errors_for_row(row_index)
    if row_errors:
        click.echo("Validation errors:", err=True)
        echo_errors(row_errors)
        ctx.exit(1)


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_row)
