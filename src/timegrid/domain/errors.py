"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    The engine itself reports problems as values; these exceptions are used by
    the outer layers (configuration, persistence setup, command line).
    """


class NotFoundError(DomainError):
    """Requested row or file does not exist."""


class ConfigError(DomainError):
    """Invalid setting or reference data file."""


DATE_REQUIRED = "Please enter a date"
DATE_FORMAT = "Date must be like 01/15/2024"
TIME_IN_REQUIRED = "Please enter start time"
TIME_IN_FORMAT = "Time must be like 09:00, 800, or 1430 and in 15 minute steps"
TIME_OUT_REQUIRED = "Please enter end time"
TIME_OUT_FORMAT = "Time must be like 17:00, 1700, or 530 and in 15 minute steps"
TIME_ORDER = "End time must be after start time"
TIME_OVERLAP = "Time overlaps another entry on this date"
HOURS_REQUIRED = "Please enter hours worked"
HOURS_FORMAT = "Hours must be a number like 1.25, 1.5, or 2.0"
HOURS_RANGE = "Hours must be 0.25 to 24.0 in 15 minute steps"
PROJECT_REQUIRED = "Please pick a project"
TOOL_REQUIRED = "Please pick a tool for this project"
CHARGE_CODE_REQUIRED = "Please pick a charge code for this tool"
NOT_IN_LIST = "Please pick from the list"
TASK_REQUIRED = "Please describe what you did"


def date_outside_window(first: str, last: str) -> str:
    """Return message for a date outside the editable quarter window."""
    return f"Date must be between {first} and {last}"


def row_not_found(row_number: int) -> str:
    """Return message for a row number that is not in the grid."""
    return f"Row {row_number} not found"


def unknown_field(field: str) -> str:
    """Return message for an unknown field key."""
    return f"Unknown field '{field}'"
