"""Mapper functions to convert between domain rows and SQLAlchemy models.

The database keeps plain strings; the tri-state selection fields exist only in
the domain model.
"""

from typing import Optional

from timegrid.domain.business_config import ReferenceData
from timegrid.domain.entities import Selection, TimesheetRow
from timegrid.domain.normalizer import normalize_row
from timegrid.database.models import TimesheetEntry


def selection_to_column(selection: Selection) -> Optional[str]:
    """Store a chosen option as text, anything else as NULL."""
    return selection.value if selection.is_value else None


def entry_to_domain(
    orm_entry: TimesheetEntry, reference: Optional[ReferenceData] = None
) -> TimesheetRow:
    """Convert a TimesheetEntry model to a domain row.

    NULL selections load as undecided; with ``reference`` the row is
    normalized so not-applicable fields come back as such.
    """
    row = TimesheetRow(
        id=orm_entry.id,
        date=orm_entry.date or "",
        time_in=orm_entry.time_in or "",
        time_out=orm_entry.time_out or "",
        project=orm_entry.project or "",
        tool=Selection.of(orm_entry.tool),
        charge_code=Selection.of(orm_entry.charge_code),
        task_description=orm_entry.task_description or "",
    )
    if reference is not None:
        row = normalize_row(row, reference)
    return row


def apply_row(orm_entry: TimesheetEntry, row: TimesheetRow) -> TimesheetEntry:
    """Copy the cell values of a domain row onto a TimesheetEntry model."""
    orm_entry.date = row.date
    orm_entry.time_in = row.time_in
    orm_entry.time_out = row.time_out
    orm_entry.project = row.project
    orm_entry.tool = selection_to_column(row.tool)
    orm_entry.charge_code = selection_to_column(row.charge_code)
    orm_entry.task_description = row.task_description
    return orm_entry
