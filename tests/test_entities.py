"""Tests for domain entities."""

import pytest

from timegrid.domain.entities import (
    FIELDS,
    NOT_APPLICABLE,
    UNSET,
    IssueKind,
    Selection,
    SelectionKind,
    TimesheetRow,
    ValidationError,
    column_of,
    field_at,
)


def test_columns_follow_field_order():
    """Test that column indexes match the field order."""
    assert column_of("date") == 0
    assert column_of("task_description") == 6
    assert column_of("hours") == -1
    assert field_at(3) == "project"
    assert field_at(7) is None
    assert field_at(-1) is None
    assert len(FIELDS) == 7


def test_selection_of_empty_is_unset():
    """Test that empty cell values are undecided, not not-applicable."""
    assert Selection.of(None) is UNSET
    assert Selection.of("") is UNSET
    assert Selection.of("   ") is UNSET


def test_selection_of_value():
    selection = Selection.of(" ToolX ")
    assert selection.kind is SelectionKind.VALUE
    assert selection.value == "ToolX"
    assert selection.as_text() == "ToolX"
    assert Selection.of(selection) is selection


def test_not_applicable_text():
    assert NOT_APPLICABLE.is_not_applicable
    assert NOT_APPLICABLE.as_text() == ""
    assert str(NOT_APPLICABLE) == "N/A"
    assert str(UNSET) == ""


def test_with_field_returns_new_row():
    """Test that rows are immutable and with_field builds a copy."""
    row = TimesheetRow(project="Alpha")
    updated = row.with_field("tool", "ToolX").with_field("date", None)

    assert row.tool is UNSET
    assert updated.tool == Selection.of("ToolX")
    assert updated.date == ""
    assert updated.project == "Alpha"


def test_unknown_field_raises_key_error():
    row = TimesheetRow()
    with pytest.raises(KeyError):
        row.get("hours")
    with pytest.raises(KeyError):
        row.with_field("hours", "1.5")


@pytest.mark.parametrize(
    "row_id,expected",
    [(5, True), (None, False), ("3f2a-transient", False), (True, False)],
)
def test_is_persisted(row_id, expected):
    assert TimesheetRow(id=row_id).is_persisted is expected


def test_meaningful_data():
    """Test that only date, times, project and description count as data."""
    assert not TimesheetRow().has_meaningful_data()
    assert TimesheetRow().is_empty()
    assert TimesheetRow(time_in="09:00").has_meaningful_data()
    tool_only = TimesheetRow().with_field("tool", "ToolX")
    assert not tool_only.has_meaningful_data()
    assert not tool_only.is_empty()


def test_validation_error_key():
    error = ValidationError(row=2, col=3, field="project", message="Please pick a project")
    assert error.key == (2, 3)
    assert error.kind is IssueKind.RULE
