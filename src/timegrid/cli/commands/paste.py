"""Paste command: ingest a block of rows from a TSV or CSV file."""

import csv
from pathlib import Path

import click

from timegrid.cli.error_handling import flush_or_exit
from timegrid.cli.output import echo_errors


def read_block(path: Path) -> list[list[str]]:
    """Read a delimited file, sniffing tab, comma or semicolon separators."""
    text = path.read_text(encoding="utf-8-sig")
    if not text.strip():
        return []
    try:
        dialect = csv.Sniffer().sniff(text[:4096], delimiters="\t,;")
    except csv.Error:
        dialect = csv.excel_tab
    return [row for row in csv.reader(text.splitlines(), dialect)]


@click.command("paste")
@click.argument("block_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def paste_rows(ctx, block_file: str):
    """Append the rows of a copied spreadsheet block.

    Columns are taken in grid order: date, time in, time out, project, tool,
    charge code, task. A header row is detected and skipped. Rows without a
    date or times are ignored.
    """
    session = ctx.obj["session"]
    data = read_block(Path(block_file))

    result = session.paste(data)
    if not result.success:
        for problem in result.problems:
            click.echo(f"Error: {problem}", err=True)
        ctx.exit(1)
        return

    flush_or_exit(ctx)
    click.echo(f"Pasted {len(result.added)} row(s)")

    added = set(result.added)
    errors = [e for e in session.errors if e.row in added]
    if errors:
        click.echo("Validation errors:", err=True)
        echo_errors(errors)


def register_commands(cli):
    """Register paste command with main CLI."""
    cli.add_command(paste_rows)
