"""Tests for mapping between domain rows and database models."""

from timegrid.database.mappers import apply_row, entry_to_domain, selection_to_column
from timegrid.database.models import TimesheetEntry
from timegrid.domain.entities import NOT_APPLICABLE, UNSET, Selection, TimesheetRow


def test_selection_to_column():
    assert selection_to_column(Selection.of("ToolX")) == "ToolX"
    assert selection_to_column(UNSET) is None
    assert selection_to_column(NOT_APPLICABLE) is None


def test_apply_row(complete_row):
    entry = apply_row(TimesheetEntry(), complete_row)

    assert entry.date == "01/15/2025"
    assert entry.time_in == "09:00"
    assert entry.tool == "ToolX"
    assert entry.charge_code == "C1"
    assert entry.task_description == "Build"


def test_entry_to_domain():
    entry = TimesheetEntry(
        id=4,
        date="01/15/2025",
        time_in="09:00",
        time_out="10:00",
        project="Beta",
        tool="ToolY",
        charge_code=None,
        task_description="Fix",
    )
    row = entry_to_domain(entry)

    assert row.id == 4
    assert row.tool == Selection.of("ToolY")
    assert row.charge_code.is_unset


def test_entry_to_domain_normalizes_with_reference(reference):
    entry = TimesheetEntry(id=5, project="PTO/RTO", tool=None, charge_code=None)
    row = entry_to_domain(entry, reference)

    assert row.date == ""
    assert row.tool.is_not_applicable
    assert row.charge_code.is_not_applicable


def test_empty_row_maps_to_empty_strings():
    entry = apply_row(TimesheetEntry(), TimesheetRow())
    assert entry.project == ""
    assert entry.tool is None
