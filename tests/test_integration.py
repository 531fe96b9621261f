"""Integration tests for end-to-end workflows."""

from timegrid.cli.main import cli


WIDE_WINDOW = {"TIMEGRID_ALLOWED_PREVIOUS_QUARTERS": "200"}


def test_full_workflow(cli_runner, db_path):
    """Test complete workflow: add → list → check → bad edit → remove."""
    # Step 1: Add a row for today
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
            "1230",
            "--project",
            "Training",
            "--description",
            "Safety course",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Added row 1" in result.output
    assert "Time: 09:00 - 12:30" in result.output

    # Step 2: The row is persisted and listed
    result = cli_runner.invoke(cli, ["--db-path", db_path, "rows"])
    assert result.exit_code == 0
    assert "Safety course" in result.output
    assert "N/A" in result.output

    # Step 3: Ready to submit
    result = cli_runner.invoke(cli, ["--db-path", db_path, "check"])
    assert result.exit_code == 0
    assert "All 1 row(s) ready to submit (3.50 hours)." in result.output

    # Step 4: An end time before the start time is kept but flagged
    result = cli_runner.invoke(cli, ["--db-path", db_path, "edit", "1", "time-out", "800"])
    assert result.exit_code == 1
    assert "Updated row 1: time_out = 08:00" in result.output
    assert "End time must be after start time" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "check"])
    assert result.exit_code == 1
    assert "1 of 1 row(s) need attention" in result.output

    # Step 5: Remove it
    result = cli_runner.invoke(cli, ["--db-path", db_path, "remove", "1"])
    assert result.exit_code == 0
    assert "Removed 1 row(s)" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "rows"])
    assert "No rows found." in result.output


def test_paste_workflow(cli_runner, db_path, fixtures_dir):
    """Test pasting a copied block with a header row."""
    block = str(fixtures_dir / "paste_block.tsv")

    result = cli_runner.invoke(cli, ["--db-path", db_path, "paste", block], env=WIDE_WINDOW)
    assert result.exit_code == 0, result.output
    assert "Pasted 2 row(s)" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "check"], env=WIDE_WINDOW)
    assert result.exit_code == 0, result.output
    assert "All 2 row(s) ready to submit (5.50 hours)." in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "window"], env=WIDE_WINDOW)
    assert result.exit_code == 0
    assert "Next day after last row: 01/16/2025" in result.output


def test_paste_outside_window_is_reported(cli_runner, db_path, fixtures_dir):
    block = str(fixtures_dir / "paste_block.tsv")

    result = cli_runner.invoke(cli, ["--db-path", db_path, "paste", block])

    assert result.exit_code == 0
    assert "Pasted 2 row(s)" in result.output
    assert "Date must be between" in result.output


def test_overlapping_rows(cli_runner, db_path):
    base = ["--db-path", db_path, "add", "--date", "today", "--project", "PTO/RTO"]

    result = cli_runner.invoke(
        cli, base + ["--time-in", "9", "--time-out", "12", "--description", "Morning"]
    )
    assert result.exit_code == 0

    result = cli_runner.invoke(
        cli, base + ["--time-in", "11", "--time-out", "13", "--description", "Overlap"]
    )
    assert result.exit_code == 1
    assert "Time overlaps another entry on this date" in result.output

    result = cli_runner.invoke(cli, ["--db-path", db_path, "rows", "--errors-only"])
    assert "Row 1:" in result.output
    assert "Row 2:" in result.output


def test_reference_file(cli_runner, db_path, tmp_path):
    reference = tmp_path / "reference.yaml"
    reference.write_text("projects: [Leave]\nprojects_without_tools: [Leave]\n")

    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            db_path,
            "--reference-file",
            str(reference),
            "add",
            "--date",
            "today",
            "--time-in",
            "8",
            "--time-out",
            "16",
            "--project",
            "Leave",
            "--description",
            "Vacation",
        ],
    )
    assert result.exit_code == 0, result.output


def test_bad_reference_file(cli_runner, db_path, tmp_path):
    reference = tmp_path / "reference.yaml"
    reference.write_text("projects: Leave\n")

    result = cli_runner.invoke(
        cli, ["--db-path", db_path, "--reference-file", str(reference), "rows"]
    )
    assert result.exit_code == 1
    assert "Error: projects must be a list of strings." in result.output
