"""Main CLI entry point."""

import logging

import click

from timegrid.config import Settings
from timegrid.database.factories import create_sqlite_store
from timegrid.domain.errors import ConfigError
from timegrid.domain.session import TimesheetSession
from timegrid.cli.error_handling import handle_domain_error

# Import and register all commands at module level
from timegrid.cli.commands import (
    rows,
    add,
    edit,
    paste,
    remove,
    check,
    window,
)


LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


@click.group()
@click.option(
    "--db-path",
    type=click.Path(dir_okay=False),
    help="Path to database file (overrides TIMEGRID_DB_PATH environment variable)",
    envvar="TIMEGRID_DB_PATH",
)
@click.option(
    "--reference-file",
    type=click.Path(dir_okay=False),
    help="YAML file with projects, tools and charge codes",
    envvar="TIMEGRID_REFERENCE_FILE",
)
@click.option("--verbose", "-v", is_flag=True, help="Log reconciliation and save details")
@click.pass_context
def cli(ctx, db_path: str | None, reference_file: str | None, verbose: bool):
    """Timegrid - timesheet entry validation.

    Enter, paste and check time entries. Every edit is validated, normalized
    against the project/tool/charge code rules, and saved.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)

    # Open the store only when actually running a command (not when showing help)
    if ctx.invoked_subcommand is None:
        return

    try:
        settings = Settings.from_env(db_path=db_path, reference_file=reference_file)
        reference = settings.load_reference_data()
    except ConfigError as e:
        handle_domain_error(ctx, e)
        return

    store = create_sqlite_store(
        database_path=str(settings.db_path) if settings.db_path else None,
        reference=reference,
    )
    session = TimesheetSession(
        store,
        reference=reference,
        date_gate=settings.quarter_window(),
        debounce_seconds=settings.debounce_seconds,
        # One-shot commands flush explicitly; nobody watches the save button
        min_saving_seconds=0,
    )
    if not session.load():
        click.echo("Error: Could not read the timesheet database", err=True)
        ctx.exit(1)

    ctx.obj["settings"] = settings
    ctx.obj["store"] = store
    ctx.obj["session"] = session
    ctx.call_on_close(session.close)
    ctx.call_on_close(store.close)


# Register all commands
rows.register_commands(cli)
add.register_commands(cli)
edit.register_commands(cli)
paste.register_commands(cli)
remove.register_commands(cli)
check.register_commands(cli)
window.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
