"""Plain-text rendering of rows and validation errors."""

from typing import Sequence

import click

from timegrid.domain.entities import TimesheetRow, ValidationError


def format_row(row_number: int, row: TimesheetRow) -> str:
    description = row.task_description
    if len(description) > 40:
        description = description[:37] + "..."
    return (
        f"{row_number:<4} {row.date:<10}  {row.time_in:<5}  {row.time_out:<5}  "
        f"{row.project:<18} {str(row.tool):<22} {str(row.charge_code):<10} {description}"
    )


def echo_rows(rows: Sequence[TimesheetRow], errors: Sequence[ValidationError]) -> None:
    click.echo(
        f"{'Row':<4} {'Date':<10}  {'In':<5}  {'Out':<5}  "
        f"{'Project':<18} {'Tool':<22} {'Charge':<10} Task"
    )
    click.echo("-" * 100)
    for index, row in enumerate(rows):
        click.echo(format_row(index + 1, row))
        for error in errors:
            if error.row == index:
                click.echo(f"     ! {error.field}: {error.message}")


def echo_errors(errors: Sequence[ValidationError]) -> None:
    for error in sorted(errors, key=lambda e: e.key):
        click.echo(f"  Row {error.row + 1}, {error.field}: {error.message}", err=True)
