"""Editable date window command."""

import click

from timegrid.domain.quarters import detect_weekday_pattern, increment_date, smart_placeholder
from timegrid.utils.date_parser import format_grid_date


@click.command("window")
@click.pass_context
def show_window(ctx):
    """Show which dates can be entered and the suggested next date."""
    settings = ctx.obj["settings"]
    session = ctx.obj["session"]

    first, last = settings.quarter_window().bounds()
    click.echo(f"Editable dates: {format_grid_date(first)} - {format_grid_date(last)}")

    previous = session.rows[-1] if session.rows else None
    click.echo(f"Suggested date: {smart_placeholder(previous)}")

    if previous is not None and previous.date:
        weekdays_only = detect_weekday_pattern(session.rows)
        following = increment_date(previous.date, 1, skip_weekends=weekdays_only)
        if following:
            label = "Next working day" if weekdays_only else "Next day"
            click.echo(f"{label} after last row: {following}")


def register_commands(cli):
    """Register window command with main CLI."""
    cli.add_command(show_window)
