"""Remove rows command."""

import click

from timegrid.cli.error_handling import handle_domain_error
from timegrid.domain.errors import NotFoundError, row_not_found


@click.command("remove")
@click.argument("row_numbers", nargs=-1, required=True, type=click.IntRange(min=1))
@click.pass_context
def remove_rows(ctx, row_numbers: tuple[int, ...]):
    """Remove rows and delete them from the database.

    Examples:
        timegrid remove 4
        timegrid remove 2 5 7
    """
    session = ctx.obj["session"]
    for number in row_numbers:
        if number > len(session.rows):
            handle_domain_error(ctx, NotFoundError(row_not_found(number)))
            return

    deleted = 0
    # Highest first so earlier row numbers stay valid
    for number in sorted(set(row_numbers), reverse=True):
        result = session.remove_rows(number - 1)
        if result.deleted is not None and not result.deleted.success:
            click.echo(f"Error: Could not delete row {number}: {result.deleted.error}", err=True)
            ctx.exit(1)
            return
        deleted += len(result.removed)

    click.echo(f"Removed {deleted} row(s)")


def register_commands(cli):
    """Register remove command with main CLI."""
    cli.add_command(remove_rows)
