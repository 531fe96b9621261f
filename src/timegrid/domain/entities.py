"""Domain model entities for timegrid.

These are pure data classes representing timesheet concepts, independent of
the grid widget and of the database schema. Rows are immutable; every engine
operation returns new rows instead of mutating the ones it was given.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Union


# Field keys in column order. The position of a key is its grid column.
FIELDS = (
    "date",
    "time_in",
    "time_out",
    "project",
    "tool",
    "charge_code",
    "task_description",
)

TIME_FIELDS = frozenset({"time_in", "time_out"})
SELECTION_FIELDS = frozenset({"tool", "charge_code"})
TEXT_FIELDS = frozenset({"date", "time_in", "time_out", "project", "task_description"})

MAX_TASK_DESCRIPTION_LENGTH = 120


def column_of(field: str) -> int:
    """Return the grid column of a field key, or -1 for unknown keys."""
    try:
        return FIELDS.index(field)
    except ValueError:
        return -1


def field_at(col: int) -> Optional[str]:
    """Return the field key shown in a grid column."""
    if 0 <= col < len(FIELDS):
        return FIELDS[col]
    return None


class SelectionKind(Enum):
    """State of a dropdown-backed field."""

    UNSET = "unset"
    NOT_APPLICABLE = "not_applicable"
    VALUE = "value"


@dataclass(frozen=True)
class Selection:
    """Tri-state value of the tool and charge code fields.

    ``UNSET`` means the user has not decided yet, ``NOT_APPLICABLE`` means the
    business rules exclude the field for this row, and a ``VALUE`` carries the
    chosen option.
    """

    kind: SelectionKind
    value: Optional[str] = None

    @classmethod
    def of(cls, value: Any) -> "Selection":
        """Build a selection from a raw cell value."""
        if isinstance(value, Selection):
            return value
        if value is None:
            return UNSET
        text = str(value).strip()
        if not text:
            return UNSET
        return cls(SelectionKind.VALUE, text)

    @property
    def is_unset(self) -> bool:
        return self.kind is SelectionKind.UNSET

    @property
    def is_not_applicable(self) -> bool:
        return self.kind is SelectionKind.NOT_APPLICABLE

    @property
    def is_value(self) -> bool:
        return self.kind is SelectionKind.VALUE

    def as_text(self) -> str:
        """Return the chosen option, or an empty string."""
        return self.value or ""

    def __str__(self) -> str:
        if self.is_not_applicable:
            return "N/A"
        return self.as_text()


UNSET = Selection(SelectionKind.UNSET)
NOT_APPLICABLE = Selection(SelectionKind.NOT_APPLICABLE)

RowId = Union[int, str]


@dataclass(frozen=True)
class TimesheetRow:
    """One time entry of the grid.

    ``id`` is an ``int`` once the row has been persisted, a transient ``str``
    for paste-ingested rows that have not been saved yet, and ``None`` for new
    rows typed by hand.
    """

    id: Optional[RowId] = None
    date: str = ""
    time_in: str = ""
    time_out: str = ""
    project: str = ""
    tool: Selection = UNSET
    charge_code: Selection = UNSET
    task_description: str = ""

    @property
    def is_persisted(self) -> bool:
        return isinstance(self.id, int) and not isinstance(self.id, bool)

    def get(self, field: str) -> Any:
        """Return the value stored for a field key."""
        if field not in FIELDS:
            raise KeyError(field)
        return getattr(self, field)

    def with_field(self, field: str, value: Any) -> "TimesheetRow":
        """Return a copy with one field replaced by a cell value."""
        if field in SELECTION_FIELDS:
            return replace(self, **{field: Selection.of(value)})
        if field in TEXT_FIELDS:
            return replace(self, **{field: "" if value is None else str(value)})
        raise KeyError(field)

    def has_meaningful_data(self) -> bool:
        """True when the date, a time, the project, or the description is filled."""
        return bool(
            self.date.strip()
            or self.time_in.strip()
            or self.time_out.strip()
            or self.project.strip()
            or self.task_description.strip()
        )

    def is_empty(self) -> bool:
        return not self.has_meaningful_data() and not self.tool.is_value and not self.charge_code.is_value


@dataclass(frozen=True)
class MacroRow:
    """Template used to bulk-fill a row. It never carries a date."""

    time_in: str = ""
    time_out: str = ""
    project: str = ""
    tool: Selection = UNSET
    charge_code: Selection = UNSET
    task_description: str = ""


class IssueKind(Enum):
    """Category of a validation failure."""

    FORMAT = "format"
    RULE = "rule"


@dataclass(frozen=True)
class ValidationError:
    """Error attached to one grid cell."""

    row: int
    col: int
    field: str
    message: str
    kind: IssueKind = IssueKind.RULE

    @property
    def key(self) -> tuple[int, int]:
        return (self.row, self.col)


@dataclass(frozen=True)
class CellEdit:
    """One raw cell change reported by the grid."""

    row: int
    field: str
    old_value: Any
    new_value: Any


class SaveState(str, Enum):
    """State of the save button: nothing pending, edits pending, or writing."""

    SAVED = "saved"
    SAVE = "save"
    SAVING = "saving"
