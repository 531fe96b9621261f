"""Edit cell command."""

import click

from timegrid.cli.error_handling import flush_or_exit, handle_domain_error
from timegrid.cli.output import echo_errors
from timegrid.domain.entities import FIELDS, MAX_TASK_DESCRIPTION_LENGTH
from timegrid.domain.errors import NotFoundError, row_not_found, unknown_field
from timegrid.domain.reconciler import ChangeSource


FIELD_ALIASES = {
    "in": "time_in",
    "out": "time_out",
    "charge": "charge_code",
    "task": "task_description",
    "description": "task_description",
}


def resolve_field(name: str) -> str | None:
    """Map a command-line field name (e.g. 'time-in', 'charge') to a field key."""
    key = name.strip().lower().replace("-", "_")
    key = FIELD_ALIASES.get(key, key)
    return key if key in FIELDS else None


@click.command("edit")
@click.argument("row", type=click.IntRange(min=1))
@click.argument("field")
@click.argument("value")
@click.pass_context
def edit_cell(ctx, row: int, field: str, value: str):
    """Change one cell of a row.

    ROW is the row number shown by 'timegrid rows'. FIELD is one of date,
    time-in, time-out, project, tool, charge-code, task. Use an empty VALUE to
    clear a cell.

    Examples:
        timegrid edit 3 time-out 1730
        timegrid edit 2 project PTO/RTO
    """
    session = ctx.obj["session"]
    row_index = row - 1
    if row_index >= len(session.rows):
        handle_domain_error(ctx, NotFoundError(row_not_found(row)))
        return

    key = resolve_field(field)
    if key is None:
        handle_domain_error(ctx, NotFoundError(unknown_field(field)))
        return
    if key == "task_description":
        value = value[:MAX_TASK_DESCRIPTION_LENGTH]

    outcome = session.edit_cell(row_index, key, value, ChangeSource.EDIT)
    flush_or_exit(ctx)

    if outcome.reverted:
        click.echo(f"Rejected {key} value {value!r} for row {row}", err=True)
    else:
        click.echo(f"Updated row {row}: {key} = {session.rows[row_index].get(key)}")
    row_errors = outcome.errors_for_row(row_index)
    if row_errors:
        click.echo("Validation errors:", err=True)
        echo_errors(row_errors)
        ctx.exit(1)


def register_commands(cli):
    """Register edit command with main CLI."""
    cli.add_command(edit_cell)
