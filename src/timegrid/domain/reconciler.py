"""Turn a batch of raw grid edits into the next consistent state.

One pass runs in a fixed order: source filter, per-cell validation, cascade,
cross-row checks, error-set merge, dirty tracking and save-state transition.
Nothing here raises; every outcome is a value.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

from timegrid.domain import errors as messages
from timegrid.domain.business_config import ReferenceData
from timegrid.domain.entities import (
    FIELDS,
    TIME_FIELDS,
    CellEdit,
    IssueKind,
    SaveState,
    TimesheetRow,
    ValidationError,
    column_of,
)
from timegrid.domain.normalizer import changed_fields, normalize_row
from timegrid.domain.overlap import check_time_order, find_overlaps
from timegrid.domain.quarters import DateGate
from timegrid.domain.validators import FieldIssue, check_field, validate_row
from timegrid.utils.date_parser import normalize_date_input
from timegrid.utils.time_parser import format_time_input


log = logging.getLogger("timegrid.reconciler")

ErrorKey = tuple[int, int]

DATE_COL = column_of("date")
TIME_OUT_COL = column_of("time_out")


class ChangeSource(str, Enum):
    """Origin of a change batch, as tagged by the grid."""

    EDIT = "edit"
    PASTE = "CopyPaste.paste"
    AUTOFILL = "Autofill.fill"
    UNDO = "UndoRedo.undo"
    REDO = "UndoRedo.redo"
    MACRO = "macro"
    LOAD_DATA = "loadData"
    UPDATE_DATA = "updateData"
    INTERNAL = "internal"


# Rehydration writes that must never be reconciled again
PROGRAMMATIC_SOURCES = frozenset(
    {ChangeSource.LOAD_DATA, ChangeSource.UPDATE_DATA, ChangeSource.INTERNAL}
)


def is_programmatic(source: Any) -> bool:
    return source in PROGRAMMATIC_SOURCES


@dataclass(frozen=True)
class ReconcileOutcome:
    """Result of one reconciliation pass.

    ``errors`` is the full merged error set; ``added`` and ``removed`` are the
    delta against the previous set. ``dirty`` lists the rows to persist and
    ``reverted`` the edits whose value was rejected outright.
    """

    rows: list[TimesheetRow]
    errors: list[ValidationError]
    added: list[ValidationError] = field(default_factory=list)
    removed: list[ValidationError] = field(default_factory=list)
    dirty: list[int] = field(default_factory=list)
    reverted: list[CellEdit] = field(default_factory=list)
    save_state: SaveState = SaveState.SAVED
    skipped: bool = False

    def errors_for_row(self, row_index: int) -> list[ValidationError]:
        return [e for e in self.errors if e.row == row_index]


def merge_errors(
    previous: Iterable[ValidationError],
    cleared_keys: Iterable[ErrorKey],
    new_errors: Iterable[ValidationError],
) -> list[ValidationError]:
    """Merge a pass's errors into the previous error set.

    Entries for cleared cells are dropped first, then entries colliding with a
    new error, and finally the new errors are appended. At most one error per cell
    remains, and among new errors for the same cell the last one wins.
    """
    latest: dict[ErrorKey, ValidationError] = {}
    for error in new_errors:
        latest.pop(error.key, None)
        latest[error.key] = error

    cleared = set(cleared_keys)
    kept = [
        e for e in previous if e.key not in cleared and e.key not in latest
    ]
    seen: set[ErrorKey] = set()
    merged = []
    for error in kept:
        if error.key in seen:
            continue
        seen.add(error.key)
        merged.append(error)
    merged.extend(latest.values())
    return merged


def format_cell_value(field_name: str, value: Any) -> Any:
    """Apply input shorthand for a field before validation."""
    if field_name in TIME_FIELDS:
        return format_time_input(value)
    if field_name == "date":
        return normalize_date_input(value)
    if isinstance(value, str):
        return value.strip()
    return value


def is_row_index(value: Any, count: int) -> bool:
    """True for a non-negative int (not bool) below ``count``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 <= value < count


def _previously_flagged(
    errors: Iterable[ValidationError], col: int, message: str
) -> set[int]:
    return {e.row for e in errors if e.col == col and e.message == message}


class ChangeReconciler:
    """Reconcile change batches against the current rows and error set.

    Args:
        reference: Allowed values and cascade rules
        date_gate: Optional check that rejects dates outside the editable window
        logger: Logger for reconciliation passes
    """

    def __init__(
        self,
        reference: ReferenceData,
        date_gate: Optional[DateGate] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.reference = reference
        self.date_gate = date_gate
        self.log = logger or log
        self._guard = threading.Lock()

    def reconcile(
        self,
        rows: Sequence[TimesheetRow],
        edits: Sequence[CellEdit],
        source: Any,
        errors: Sequence[ValidationError] = (),
        save_state: SaveState = SaveState.SAVED,
    ) -> ReconcileOutcome:
        """Run one reconciliation pass.

        Programmatic batches, empty batches and batches arriving while another
        pass is running are discarded: the outcome then has ``skipped=True``
        and carries the inputs unchanged.
        """
        if is_programmatic(source):
            self.log.debug("Discarding %d edit(s) from %s", len(edits), source)
            return self._skipped(rows, errors, save_state)
        if not edits:
            return self._skipped(rows, errors, save_state)
        if not self._guard.acquire(blocking=False):
            self.log.debug("Discarding %d edit(s): reconciliation already running", len(edits))
            return self._skipped(rows, errors, save_state)
        try:
            return self._reconcile(rows, edits, errors, save_state)
        finally:
            self._guard.release()

    def _skipped(
        self,
        rows: Sequence[TimesheetRow],
        errors: Sequence[ValidationError],
        save_state: SaveState,
    ) -> ReconcileOutcome:
        return ReconcileOutcome(
            rows=list(rows), errors=list(errors), save_state=save_state, skipped=True
        )

    def _error(self, row_index: int, field_name: str, issue: FieldIssue) -> ValidationError:
        return ValidationError(
            row=row_index,
            col=column_of(field_name),
            field=field_name,
            message=issue.message,
            kind=issue.kind,
        )

    def _reconcile(
        self,
        rows: Sequence[TimesheetRow],
        edits: Sequence[CellEdit],
        errors: Sequence[ValidationError],
        save_state: SaveState,
    ) -> ReconcileOutcome:
        working = list(rows)
        new_errors: dict[ErrorKey, ValidationError] = {}
        cleared_keys: set[ErrorKey] = set()
        touched: list[int] = []
        reverted: list[CellEdit] = []

        for edit in edits:
            if not is_row_index(edit.row, len(working)):
                # Row removed before this batch arrived
                self.log.debug("Skipping edit to missing row %s", edit.row)
                continue
            col = column_of(edit.field)
            if col < 0:
                self.log.warning("Skipping edit to unknown field %r", edit.field)
                continue

            value = format_cell_value(edit.field, edit.new_value)
            issue = check_field(
                edit.field, value, edit.row, working, self.reference, self.date_gate
            )
            key = (edit.row, col)
            new_errors.pop(key, None)
            if issue is not None:
                new_errors[key] = self._error(edit.row, edit.field, issue)
            if issue is not None and issue.kind is IssueKind.FORMAT:
                reverted.append(edit)
                continue

            working[edit.row] = working[edit.row].with_field(edit.field, value)
            cleared_keys.add(key)
            if edit.row not in touched:
                touched.append(edit.row)

        for row_index in touched:
            before = working[row_index]
            after = normalize_row(before, self.reference)
            if after is before:
                continue
            working[row_index] = after
            for field_name in changed_fields(before, after):
                key = (row_index, column_of(field_name))
                cleared_keys.add(key)
                new_errors.pop(key, None)
                issue = check_field(
                    field_name,
                    after.get(field_name),
                    row_index,
                    working,
                    self.reference,
                    self.date_gate,
                )
                if issue is not None:
                    new_errors[key] = self._error(row_index, field_name, issue)

        self._cross_check(working, errors, new_errors, cleared_keys)
        merged = merge_errors(errors, cleared_keys, new_errors.values())
        self.log.debug(
            "Reconciled %d edit(s): %d row(s) dirty, %d rejected, %d error(s)",
            len(edits),
            len(touched),
            len(reverted),
            len(merged),
        )
        return self._outcome(working, errors, merged, touched, save_state, True, reverted)

    def revalidate(
        self,
        rows: Sequence[TimesheetRow],
        row_indexes: Iterable[int],
        errors: Sequence[ValidationError] = (),
        save_state: SaveState = SaveState.SAVED,
    ) -> ReconcileOutcome:
        """Validate whole rows that changed outside the cell edit path.

        Pasted rows and macro targets are normalized, every field is checked,
        and the cross-row checks run over the full set. The rows are reported
        dirty.
        """
        working = list(rows)
        indexes = sorted({i for i in row_indexes if is_row_index(i, len(working))})
        new_errors: dict[ErrorKey, ValidationError] = {}
        cleared_keys: set[ErrorKey] = set()
        for row_index in indexes:
            working[row_index] = normalize_row(working[row_index], self.reference)
            cleared_keys.update((row_index, col) for col in range(len(FIELDS)))
            for error in validate_row(row_index, working, self.reference, self.date_gate):
                new_errors[error.key] = error

        self._cross_check(working, errors, new_errors, cleared_keys)
        merged = merge_errors(errors, cleared_keys, new_errors.values())
        self.log.debug("Revalidated %d row(s), %d error(s)", len(indexes), len(merged))
        return self._outcome(working, errors, merged, indexes, save_state, bool(indexes))

    def recheck(
        self, rows: Sequence[TimesheetRow], errors: Sequence[ValidationError] = ()
    ) -> list[ValidationError]:
        """Re-run the cross-row checks after rows changed outside a change batch.

        Used after an auto-clear or a row removal. Returns the merged error set.
        """
        new_errors: dict[ErrorKey, ValidationError] = {}
        cleared_keys: set[ErrorKey] = set()
        self._cross_check(rows, errors, new_errors, cleared_keys)
        return merge_errors(errors, cleared_keys, new_errors.values())

    def _check(
        self, working: Sequence[TimesheetRow], row_index: int, field_name: str
    ) -> Optional[FieldIssue]:
        return check_field(
            field_name,
            working[row_index].get(field_name),
            row_index,
            working,
            self.reference,
            self.date_gate,
        )

    def _cross_check(
        self,
        working: Sequence[TimesheetRow],
        errors: Sequence[ValidationError],
        new_errors: dict[ErrorKey, ValidationError],
        cleared_keys: set[ErrorKey],
    ) -> None:
        previous = {e.key: e for e in errors}

        overlaps = find_overlaps(
            working, _previously_flagged(errors, DATE_COL, messages.TIME_OVERLAP)
        )
        for row_index in overlaps.overlapping:
            self._flag_cell(
                working, previous, new_errors, cleared_keys,
                row_index, "date", messages.TIME_OVERLAP,
            )
        for row_index in overlaps.cleared:
            self._recheck_cell(
                working, new_errors, cleared_keys, row_index, "date", messages.TIME_OVERLAP
            )

        order = check_time_order(
            working, _previously_flagged(errors, TIME_OUT_COL, messages.TIME_ORDER)
        )
        violations = set(order.violations)
        for row_index in order.violations:
            self._flag_cell(
                working, previous, new_errors, cleared_keys,
                row_index, "time_out", messages.TIME_ORDER,
            )
        # A later edit in the same batch can fix an order error raised per cell
        stale = {
            key[0]
            for key, error in new_errors.items()
            if key[1] == TIME_OUT_COL
            and error.message == messages.TIME_ORDER
            and key[0] not in violations
        }
        for row_index in sorted(set(order.cleared) | stale):
            self._recheck_cell(
                working, new_errors, cleared_keys, row_index, "time_out", messages.TIME_ORDER
            )

    def _flag_cell(
        self,
        working: Sequence[TimesheetRow],
        previous: dict[ErrorKey, ValidationError],
        new_errors: dict[ErrorKey, ValidationError],
        cleared_keys: set[ErrorKey],
        row_index: int,
        field_name: str,
        message: str,
    ) -> None:
        key = (row_index, column_of(field_name))
        existing = new_errors.get(key)
        if existing is None and key not in cleared_keys:
            existing = previous.get(key)
        if existing is not None and existing.kind is IssueKind.FORMAT:
            # The rejected raw value is what the user needs to see
            return

        new_errors.pop(key, None)
        issue = self._check(working, row_index, field_name)
        if issue is not None and issue.message != message:
            # The cell's own error wins over the cross-row one
            new_errors[key] = self._error(row_index, field_name, issue)
            return
        new_errors[key] = ValidationError(
            row=row_index, col=key[1], field=field_name, message=message
        )

    def _recheck_cell(
        self,
        working: Sequence[TimesheetRow],
        new_errors: dict[ErrorKey, ValidationError],
        cleared_keys: set[ErrorKey],
        row_index: int,
        field_name: str,
        message: str,
    ) -> None:
        key = (row_index, column_of(field_name))
        current = new_errors.get(key)
        if current is not None and current.message != message:
            return
        new_errors.pop(key, None)
        cleared_keys.add(key)
        if not is_row_index(row_index, len(working)):
            return
        issue = self._check(working, row_index, field_name)
        if issue is not None:
            new_errors[key] = self._error(row_index, field_name, issue)

    def _outcome(
        self,
        working: list[TimesheetRow],
        errors: Sequence[ValidationError],
        merged: list[ValidationError],
        dirty: Iterable[int],
        save_state: SaveState,
        edited: bool,
        reverted: Optional[list[CellEdit]] = None,
    ) -> ReconcileOutcome:
        next_state = save_state
        if edited and save_state is SaveState.SAVED:
            next_state = SaveState.SAVE
        previous_set = set(errors)
        merged_set = set(merged)
        return ReconcileOutcome(
            rows=working,
            errors=merged,
            added=[e for e in merged if e not in previous_set],
            removed=[e for e in errors if e not in merged_set],
            dirty=sorted(dirty),
            reverted=reverted or [],
            save_state=next_state,
        )
