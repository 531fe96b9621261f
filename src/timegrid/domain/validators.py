"""Field-level validation for timesheet rows.

Every validator is a pure function of the cell value, the row it belongs to
and the reference lists. Validators never raise: they return an error message
or None.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from timegrid.domain import errors
from timegrid.domain.business_config import ReferenceData
from timegrid.domain.entities import (
    FIELDS,
    IssueKind,
    Selection,
    TimesheetRow,
    ValidationError,
    column_of,
)
from timegrid.domain.quarters import DateGate
from timegrid.utils.date_parser import parse_grid_date
from timegrid.utils.time_parser import is_valid_time, parse_time_to_minutes


HOURS_MIN = 0.25
HOURS_MAX = 24.0
HOURS_STEP = 0.25
HOURS_EPSILON = 0.0001


@dataclass(frozen=True)
class FieldIssue:
    """A validator rejection with its category."""

    message: str
    kind: IssueKind

    @classmethod
    def format(cls, message: str) -> "FieldIssue":
        return cls(message, IssueKind.FORMAT)

    @classmethod
    def rule(cls, message: str) -> "FieldIssue":
        return cls(message, IssueKind.RULE)


def _text(value: Any) -> str:
    if isinstance(value, Selection):
        return value.as_text()
    if value is None:
        return ""
    return str(value).strip()


def _row_at(rows: Sequence[TimesheetRow], row_index: int) -> Optional[TimesheetRow]:
    if 0 <= row_index < len(rows):
        return rows[row_index]
    return None


def check_date(value: Any, date_gate: Optional[DateGate] = None) -> Optional[FieldIssue]:
    """Require a real calendar date, optionally inside the editable window."""
    text = _text(value)
    if not text:
        return FieldIssue.rule(errors.DATE_REQUIRED)
    parsed = parse_grid_date(text)
    if parsed is None:
        return FieldIssue.format(errors.DATE_FORMAT)
    if date_gate is not None:
        message = date_gate(parsed)
        if message:
            return FieldIssue.rule(message)
    return None


def check_time_in(value: Any) -> Optional[FieldIssue]:
    """Require a start time on a 15 minute step."""
    text = _text(value)
    if not text:
        return FieldIssue.rule(errors.TIME_IN_REQUIRED)
    if not is_valid_time(text):
        return FieldIssue.format(errors.TIME_IN_FORMAT)
    return None


def is_time_out_after_time_in(time_in: Any, time_out: Any) -> bool:
    """Check ordering of a time pair.

    A pair where either side is missing or malformed counts as ordered, so the
    more specific format error is the one that surfaces.
    """
    if not is_valid_time(time_in) or not is_valid_time(time_out):
        return True
    return parse_time_to_minutes(time_out) > parse_time_to_minutes(time_in)


def check_time_out(value: Any, row: Optional[TimesheetRow]) -> Optional[FieldIssue]:
    """Require an end time on a 15 minute step, later than the row's start."""
    text = _text(value)
    if not text:
        return FieldIssue.rule(errors.TIME_OUT_REQUIRED)
    if not is_valid_time(text):
        return FieldIssue.format(errors.TIME_OUT_FORMAT)
    if row is not None and not is_time_out_after_time_in(row.time_in, text):
        return FieldIssue.rule(errors.TIME_ORDER)
    return None


def is_valid_hours(hours: Any) -> bool:
    """Check that an hours value lies in [0.25, 24.0] on a 0.25 step."""
    if isinstance(hours, bool) or not isinstance(hours, (int, float)):
        return False
    if math.isnan(hours) or math.isinf(hours):
        return False
    quarters = hours / HOURS_STEP
    if abs(quarters - round(quarters)) > HOURS_EPSILON:
        return False
    return HOURS_MIN <= hours <= HOURS_MAX


def check_hours(value: Any) -> Optional[FieldIssue]:
    """Validate the decimal ``hours`` field used by the single-duration schema."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return FieldIssue.rule(errors.HOURS_REQUIRED)
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return FieldIssue.format(errors.HOURS_FORMAT)
    if math.isnan(hours) or math.isinf(hours):
        return FieldIssue.format(errors.HOURS_FORMAT)
    if not is_valid_hours(hours):
        return FieldIssue.rule(errors.HOURS_RANGE)
    return None


def check_project(value: Any, reference: ReferenceData) -> Optional[FieldIssue]:
    """Require a project from the reference list."""
    text = _text(value)
    if not text:
        return FieldIssue.rule(errors.PROJECT_REQUIRED)
    if not reference.is_valid_project(text):
        return FieldIssue.rule(errors.NOT_IN_LIST)
    return None


def check_tool(
    value: Any, row: Optional[TimesheetRow], reference: ReferenceData
) -> Optional[FieldIssue]:
    """Require a tool of the row's project, unless the project takes none."""
    project = row.project if row is not None else ""
    if not reference.project_needs_tools(project):
        # N/A for this project; the normalizer clears it
        return None
    text = _text(value)
    if not text:
        return FieldIssue.rule(errors.TOOL_REQUIRED)
    if project in reference.tools_by_project and not reference.is_valid_tool_for_project(
        text, project
    ):
        return FieldIssue.rule(errors.NOT_IN_LIST)
    return None


def check_charge_code(
    value: Any, row: Optional[TimesheetRow], reference: ReferenceData
) -> Optional[FieldIssue]:
    """Require a listed charge code, unless the row's tool takes none."""
    tool = row.tool.as_text() if row is not None else ""
    if not reference.tool_needs_charge_code(tool):
        return None
    text = _text(value)
    if not text:
        return FieldIssue.rule(errors.CHARGE_CODE_REQUIRED)
    if not reference.is_valid_charge_code(text):
        return FieldIssue.rule(errors.NOT_IN_LIST)
    return None


def check_task_description(value: Any) -> Optional[FieldIssue]:
    """Require a non-blank description."""
    if not _text(value):
        return FieldIssue.rule(errors.TASK_REQUIRED)
    return None


def check_field(
    field: str,
    value: Any,
    row_index: int,
    rows: Sequence[TimesheetRow],
    reference: ReferenceData,
    date_gate: Optional[DateGate] = None,
) -> Optional[FieldIssue]:
    """Validate one cell and categorize the failure.

    Args:
        field: Field key of the cell
        value: Candidate cell value (already formatted)
        row_index: Index of the row the cell belongs to
        rows: Current rows, used for row context (project, tool, time in)
        reference: Allowed projects, tools and charge codes
        date_gate: Optional quarter window check for dates

    Returns:
        FieldIssue, or None when the value is valid
    """
    row = _row_at(rows, row_index)

    if field == "date":
        return check_date(value, date_gate)
    if field == "time_in":
        return check_time_in(value)
    if field == "time_out":
        return check_time_out(value, row)
    if field == "hours":
        return check_hours(value)
    if field == "project":
        return check_project(value, reference)
    if field == "tool":
        return check_tool(value, row, reference)
    if field == "charge_code":
        return check_charge_code(value, row, reference)
    if field == "task_description":
        return check_task_description(value)
    return None


def validate_field(
    field: str,
    value: Any,
    row_index: int,
    rows: Sequence[TimesheetRow],
    reference: ReferenceData,
    date_gate: Optional[DateGate] = None,
) -> Optional[str]:
    """Validate one cell. Returns an error message, or None when valid."""
    issue = check_field(field, value, row_index, rows, reference, date_gate)
    return issue.message if issue is not None else None


def validate_row(
    row_index: int,
    rows: Sequence[TimesheetRow],
    reference: ReferenceData,
    date_gate: Optional[DateGate] = None,
) -> list[ValidationError]:
    """Validate every field of a stored row."""
    row = _row_at(rows, row_index)
    if row is None:
        return []

    found = []
    for field in FIELDS:
        issue = check_field(field, row.get(field), row_index, rows, reference, date_gate)
        if issue is not None:
            found.append(
                ValidationError(
                    row=row_index,
                    col=column_of(field),
                    field=field,
                    message=issue.message,
                    kind=issue.kind,
                )
            )
    return found


def row_duration_hours(row: TimesheetRow) -> Optional[float]:
    """Hours between the row's start and end time, or None if not computable."""
    if not is_valid_time(row.time_in) or not is_valid_time(row.time_out):
        return None
    minutes = parse_time_to_minutes(row.time_out) - parse_time_to_minutes(row.time_in)
    return minutes / 60
