"""Tests for individual CLI commands."""

import pytest

from timegrid.cli.commands.edit import resolve_field
from timegrid.cli.commands.paste import read_block
from timegrid.cli.main import cli


def _add(cli_runner, db_path, *extra):
    args = [
        "--db-path",
        db_path,
        "add",
        "--date",
        "today",
        "--time-in",
        "9",
        "--time-out",
        "10",
        "--project",
        "Training",
        "--description",
        "Course",
    ]
    return cli_runner.invoke(cli, args + list(extra))


@pytest.mark.parametrize(
    "name, key",
    [
        ("date", "date"),
        ("time-in", "time_in"),
        ("OUT", "time_out"),
        ("charge", "charge_code"),
        ("charge-code", "charge_code"),
        ("task", "task_description"),
        ("receipt", None),
    ],
)
def test_resolve_field(name, key):
    assert resolve_field(name) == key


def test_read_block_sniffs_delimiter(tmp_path):
    path = tmp_path / "block.csv"
    path.write_text("01/15/2025,900,1000,Training\n01/16/2025,900,1000,Training\n")
    assert read_block(path)[1] == ["01/16/2025", "900", "1000", "Training"]


def test_read_block_empty_file(tmp_path):
    path = tmp_path / "block.tsv"
    path.write_text("\n")
    assert read_block(path) == []


def test_add_with_missing_tool_fails(cli_runner, db_path):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            db_path,
            "add",
            "--date",
            "today",
            "--time-in",
            "9",
            "--time-out",
            "10",
            "--project",
            "SWFL-EQUIP",
            "--description",
            "PM",
        ],
    )
    assert result.exit_code == 1
    assert "Please pick a tool for this project" in result.output


def test_add_with_bad_time_is_rejected(cli_runner, db_path):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            db_path,
            "add",
            "--date",
            "today",
            "--time-in",
            "9:07",
            "--time-out",
            "10",
            "--project",
            "Training",
            "--description",
            "Course",
        ],
    )
    assert result.exit_code == 1
    assert "15 minute steps" in result.output


def test_edit_missing_row(cli_runner, db_path):
    result = cli_runner.invoke(cli, ["--db-path", db_path, "edit", "5", "date", "today"])
    assert result.exit_code == 1
    assert "Row 5 not found" in result.output


def test_edit_unknown_field(cli_runner, db_path):
    _add(cli_runner, db_path)
    result = cli_runner.invoke(cli, ["--db-path", db_path, "edit", "1", "receipt", "x"])
    assert result.exit_code == 1
    assert "Unknown field 'receipt'" in result.output


def test_edit_rejected_value_keeps_old(cli_runner, db_path):
    _add(cli_runner, db_path)

    result = cli_runner.invoke(cli, ["--db-path", db_path, "edit", "1", "time-in", "25:00"])
    assert result.exit_code == 1
    assert "Rejected time_in value '25:00' for row 1" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "rows"])
    assert "09:00" in result.output


def test_edit_project_cascade(cli_runner, db_path):
    _add(cli_runner, db_path)
    result = cli_runner.invoke(cli, ["--db-path", db_path, "edit", "1", "project", "SWFL-EQUIP"])
    assert result.exit_code == 1
    assert "Please pick a tool for this project" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "edit", "1", "tool", "Meeting"])
    assert result.exit_code == 0, result.output
    assert "Updated row 1: tool = Meeting" in result.output


def test_remove_missing_row(cli_runner, db_path):
    result = cli_runner.invoke(cli, ["--db-path", db_path, "remove", "3"])
    assert result.exit_code == 1
    assert "Row 3 not found" in result.output


def test_check_empty(cli_runner, db_path):
    result = cli_runner.invoke(cli, ["--db-path", db_path, "check"])
    assert result.exit_code == 0
    assert "No rows to submit." in result.output


def test_window(cli_runner, db_path):
    result = cli_runner.invoke(cli, ["--db-path", db_path, "window"])
    assert result.exit_code == 0
    assert "Editable dates:" in result.output
    assert "Suggested date:" in result.output


def test_help_does_not_open_database(cli_runner, tmp_path):
    db_path = tmp_path / "unused.db"
    result = cli_runner.invoke(cli, ["--db-path", str(db_path), "--help"])
    assert result.exit_code == 0
    assert not db_path.exists()
