"""Timesheet editing session.

The session owns the row array and the error set. Grid events come in as
change batches, selection moves and removal notifications; the session runs
them through the reconciler and hands dirty rows to the persistence scheduler.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Hashable, Optional, Sequence

from timegrid.database.base import DeleteResult, RowStore
from timegrid.domain.business_config import DEFAULT_REFERENCE_DATA, ReferenceData
from timegrid.domain.entities import (
    FIELDS,
    CellEdit,
    MacroRow,
    SaveState,
    TimesheetRow,
    ValidationError,
    field_at,
)
from timegrid.domain.normalizer import apply_macro, is_macro_valid, normalize_row
from timegrid.domain.paste import PasteResult, ingest_paste
from timegrid.domain.quarters import DateGate
from timegrid.domain.reconciler import (
    ChangeReconciler,
    ChangeSource,
    ReconcileOutcome,
    is_row_index,
)
from timegrid.domain.scheduler import (
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_MIN_SAVING_SECONDS,
    FlushReport,
    PersistenceScheduler,
    TimerFactory,
    thread_timer,
)


log = logging.getLogger("timegrid.session")

AUTO_CLEAR_DELAY_SECONDS = 0.1


def is_cell_coordinate(value: Any) -> bool:
    """Grid widgets report header selections as negative indexes."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass(frozen=True)
class RemovalResult:
    """Outcome of a row removal."""

    removed: list[TimesheetRow]
    deleted: Optional[DeleteResult] = None
    skipped: bool = False


class TimesheetSession:
    """State holder for one grid of timesheet rows.

    Args:
        store: Durable store for rows
        reference: Allowed values and cascade rules
        date_gate: Optional editable-window check for dates
        debounce_seconds: Quiet period before a dirty row is saved
        min_saving_seconds: Minimum time the SAVING state stays visible
        timer_factory: Timer source shared by auto-clear and the scheduler
        clock: Monotonic clock for the scheduler
        logger: Logger for the session and the components it creates
    """

    def __init__(
        self,
        store: RowStore,
        reference: ReferenceData = DEFAULT_REFERENCE_DATA,
        date_gate: Optional[DateGate] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        min_saving_seconds: float = DEFAULT_MIN_SAVING_SECONDS,
        timer_factory: Optional[TimerFactory] = None,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.reference = reference
        self.date_gate = date_gate
        self.log = logger or log
        self._timer_factory = timer_factory or thread_timer
        self._lock = threading.RLock()

        self.rows: list[TimesheetRow] = []
        self.errors: list[ValidationError] = []
        self._selected: Optional[tuple[int, int]] = None
        self._pending_removal: Optional[tuple[int, int, list[TimesheetRow]]] = None

        self.reconciler = ChangeReconciler(
            reference, date_gate=date_gate, logger=self.log.getChild("reconciler")
        )
        self.scheduler = PersistenceScheduler(
            store,
            debounce_seconds=debounce_seconds,
            min_saving_seconds=min_saving_seconds,
            timer_factory=self._timer_factory,
            clock=clock,
            on_saved=self._on_saved,
            logger=self.log.getChild("scheduler"),
        )

    @property
    def save_state(self) -> SaveState:
        return self.scheduler.state

    def load(self) -> bool:
        """Replace the rows with the store's contents.

        Returns:
            False if the store could not be read (rows are left untouched)
        """
        result = self.store.load_rows()
        if not result.success:
            self.log.error("Could not load rows: %s", result.error)
            return False
        with self._lock:
            self.rows = [normalize_row(row, self.reference) for row in result.rows]
            self.errors = []
            self._selected = None
        self.log.info("Loaded %d row(s)", result.count)
        return True

    def validate_all(self) -> list[ValidationError]:
        """Validate every row with data and replace the error set.

        Used before submission and by the command line, where rows come from
        the store rather than from cell edits. Nothing is scheduled for saving.
        """
        with self._lock:
            indexes = [i for i, row in enumerate(self.rows) if row.has_meaningful_data()]
            outcome = self.reconciler.revalidate(self.rows, indexes)
            self.rows = outcome.rows
            self.errors = outcome.errors
            return list(self.errors)

    def errors_for_row(self, row_index: int) -> list[ValidationError]:
        with self._lock:
            return [e for e in self.errors if e.row == row_index]

    def append_row(self, row: Optional[TimesheetRow] = None) -> int:
        """Append a row without validating it. Returns its index."""
        with self._lock:
            self.rows.append(row or TimesheetRow())
            return len(self.rows) - 1

    def handle_changes(
        self, edits: Sequence[CellEdit], source: Any = ChangeSource.EDIT
    ) -> ReconcileOutcome:
        """Reconcile a change batch reported by the grid and schedule saves."""
        with self._lock:
            outcome = self.reconciler.reconcile(
                self.rows, edits, source, self.errors, self.scheduler.state
            )
            if outcome.skipped:
                return outcome
            self._apply(outcome)
        return outcome

    def edit_cell(
        self, row_index: int, field: str, value: Any, source: Any = ChangeSource.EDIT
    ) -> ReconcileOutcome:
        """Reconcile a single cell edit."""
        with self._lock:
            old_value = None
            if is_row_index(row_index, len(self.rows)) and field in FIELDS:
                old_value = self.rows[row_index].get(field)
            edit = CellEdit(row=row_index, field=field, old_value=old_value, new_value=value)
        return self.handle_changes([edit], source)

    def paste(self, data: Sequence[Sequence[Any]]) -> PasteResult:
        """Append a pasted block, validate the new rows and schedule them."""
        with self._lock:
            result = ingest_paste(self.rows, data, self.reference)
            if not result.added:
                return result
            outcome = self.reconciler.revalidate(
                result.rows, result.added, self.errors, self.scheduler.state
            )
            self._apply(outcome)
        return result

    def apply_macro(self, target_index: int, macro: MacroRow) -> Optional[ReconcileOutcome]:
        """Fill a row from a macro. Returns None for an incomplete macro."""
        if not is_macro_valid(macro) or not is_cell_coordinate(target_index):
            self.log.debug("Ignoring macro for row %s", target_index)
            return None
        with self._lock:
            rows = apply_macro(self.rows, target_index, macro, self.reference)
            outcome = self.reconciler.revalidate(
                rows, [target_index], self.errors, self.scheduler.state
            )
            self._apply(outcome)
        return outcome

    def _apply(self, outcome: ReconcileOutcome) -> None:
        self.rows = outcome.rows
        self.errors = outcome.errors
        for row_index in outcome.dirty:
            self.scheduler.schedule(row_index, self.rows[row_index])
        if outcome.save_state is SaveState.SAVE:
            self.scheduler.mark_edited()

    def handle_selection(self, row: Any, col: Any) -> bool:
        """Record a selection move and auto-clear the cell that was left.

        If the previously selected cell carries an error, its value is cleared
        after a short delay. Negative or non-integer coordinates are ignored.

        Returns:
            True if an auto-clear was scheduled
        """
        if not is_cell_coordinate(row) or not is_cell_coordinate(col):
            self.log.debug("Ignoring selection at (%r, %r)", row, col)
            return False

        with self._lock:
            previous = self._selected
            self._selected = (row, col)
            if previous is None or previous == (row, col):
                return False
            if not any(e.key == previous for e in self.errors):
                return False

        self._timer_factory(AUTO_CLEAR_DELAY_SECONDS, lambda: self._auto_clear(previous))
        return True

    def _auto_clear(self, key: tuple[int, int]) -> None:
        row_index, col = key
        field = field_at(col)
        with self._lock:
            if field is None or not is_row_index(row_index, len(self.rows)):
                return
            if not any(e.key == key for e in self.errors):
                # Fixed while the timer was pending
                return
            row = normalize_row(self.rows[row_index].with_field(field, ""), self.reference)
            self.rows[row_index] = row
            remaining = [e for e in self.errors if e.key != key]
            self.errors = self.reconciler.recheck(self.rows, remaining)
            self.log.debug("Cleared invalid %s in row %s", field, row_index)
            self.scheduler.schedule(row_index, row)

    def before_remove_rows(self, index: int, amount: int) -> None:
        """Capture the rows the grid is about to remove."""
        with self._lock:
            if not is_cell_coordinate(index) or not is_cell_coordinate(amount):
                self._pending_removal = None
                return
            captured = self.rows[index:index + amount]
            self._pending_removal = (index, amount, captured)

    def after_remove_rows(
        self, index: int, amount: int, source_data: Sequence[TimesheetRow]
    ) -> RemovalResult:
        """Delete captured rows from the store and resync from the grid.

        If nothing was captured the store is left alone and only a warning is
        logged.
        """
        with self._lock:
            pending = self._pending_removal
            self._pending_removal = None
            if pending is None or pending[:2] != (index, amount) or not pending[2]:
                self.log.warning(
                    "No rows captured before removing %s row(s) at %s; skipping delete",
                    amount,
                    index,
                )
                return RemovalResult(removed=[], skipped=True)

            captured = pending[2]
            for offset, row in enumerate(captured):
                self.scheduler.cancel(index + offset, row)
            self.scheduler.shift_rows(index, amount)
            self.rows = list(source_data)
            shifted = _drop_removed_errors(self.errors, index, amount)
            self.errors = self.reconciler.recheck(self.rows, shifted)
            if self._selected is not None and self._selected[0] >= index:
                self._selected = None

        ids = [row.id for row in captured if row.is_persisted]
        deleted = self.store.delete_rows(ids) if ids else None
        if deleted is not None and not deleted.success:
            self.log.warning("Could not delete rows %s: %s", ids, deleted.error)
        self.log.info("Removed %d row(s) at %d", len(captured), index)
        return RemovalResult(removed=captured, deleted=deleted)

    def remove_rows(self, index: int, amount: int = 1) -> RemovalResult:
        """Remove rows the way the grid does: capture, remove, resync."""
        with self._lock:
            self.before_remove_rows(index, amount)
            remaining = self.rows[:index] + self.rows[index + amount:]
            return self.after_remove_rows(index, amount, remaining)

    def flush(self) -> FlushReport:
        """Persist every unsaved row now."""
        return self.scheduler.flush()

    def close(self) -> None:
        self.scheduler.close()

    def _on_saved(self, row_index: int, saved_row: TimesheetRow, previous_key: Hashable) -> None:
        with self._lock:
            target = None
            if isinstance(previous_key, tuple):
                if is_row_index(row_index, len(self.rows)) and self.rows[row_index].id is None:
                    target = row_index
            else:
                for i, row in enumerate(self.rows):
                    if row.id == previous_key:
                        target = i
                        break
            if target is None:
                # Row removed while its save was in flight
                self.log.debug("Saved row %s is no longer in the grid", saved_row.id)
                return
            if self.rows[target].id != saved_row.id:
                self.rows[target] = replace(self.rows[target], id=saved_row.id)


def _drop_removed_errors(
    errors: Sequence[ValidationError], index: int, amount: int
) -> list[ValidationError]:
    kept = []
    for error in errors:
        if index <= error.row < index + amount:
            continue
        if error.row >= index + amount:
            error = replace(error, row=error.row - amount)
        kept.append(error)
    return kept
