"""Debounced persistence of dirty rows.

Every dirty row gets its own cancellable timer. A later edit to the same row
restarts the timer, so only the last snapshot inside the debounce window is
written. Timers come from a factory so tests can drive them by hand.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Hashable, Optional, Protocol

from timegrid.database.base import RowStore, SaveResult
from timegrid.domain.entities import SaveState, TimesheetRow


log = logging.getLogger("timegrid.scheduler")

DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_MIN_SAVING_SECONDS = 1.0
MAX_FLUSH_WORKERS = 8


class Cancellable(Protocol):
    def cancel(self) -> Any: ...


TimerFactory = Callable[[float, Callable[[], None]], Cancellable]


def thread_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Start a daemon ``threading.Timer``."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


@dataclass(frozen=True)
class FlushReport:
    """Outcome of persisting a set of rows.

    ``saved`` holds the row indexes written successfully, ``failed`` pairs each
    failing row index with the store's error message.
    """

    saved: list[int] = field(default_factory=list)
    failed: list[tuple[int, str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


def row_key(row_index: int, row: TimesheetRow) -> Hashable:
    """Identify a row for debouncing.

    Persisted and transient ids survive insertions and removals; rows without
    an id fall back to their position.
    """
    if row.id is not None:
        return row.id
    return ("index", row_index)


class PersistenceScheduler:
    """Coalesce row edits and write them to a RowStore.

    Callbacks run on whichever thread completed the save (a timer thread for
    debounced saves, the caller for ``flush``), never while the scheduler's
    lock is held.

    Args:
        store: Durable store for rows
        debounce_seconds: Quiet period before a dirty row is written
        min_saving_seconds: Minimum time the SAVING state stays visible
        timer_factory: Callable ``(delay, callback) -> timer`` with ``cancel()``
        clock: Monotonic clock in seconds
        on_saved: Called as ``on_saved(row_index, saved_row, previous_key)``
        on_failed: Called as ``on_failed(row_index, row, message)``
        on_state_change: Called with the new SaveState
        logger: Logger for persistence events
    """

    def __init__(
        self,
        store: RowStore,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        min_saving_seconds: float = DEFAULT_MIN_SAVING_SECONDS,
        timer_factory: Optional[TimerFactory] = None,
        clock: Optional[Callable[[], float]] = None,
        on_saved: Optional[Callable[[int, TimesheetRow, Hashable], None]] = None,
        on_failed: Optional[Callable[[int, TimesheetRow, str], None]] = None,
        on_state_change: Optional[Callable[[SaveState], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.debounce_seconds = debounce_seconds
        self.min_saving_seconds = min_saving_seconds
        self._timer_factory = timer_factory or thread_timer
        self._clock = clock or time.monotonic
        self.on_saved = on_saved
        self.on_failed = on_failed
        self.on_state_change = on_state_change
        self.log = logger or log

        self._lock = threading.RLock()
        self._unsaved: dict[Hashable, tuple[int, TimesheetRow]] = {}
        self._timers: dict[Hashable, Cancellable] = {}
        self._state = SaveState.SAVED
        self._in_flight = 0
        self._saving_started: Optional[float] = None
        self._settle_timer: Optional[Cancellable] = None

    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._unsaved)

    def pending_rows(self) -> list[tuple[int, TimesheetRow]]:
        """Snapshot of the unsaved rows, ordered by row index."""
        with self._lock:
            return sorted(self._unsaved.values(), key=lambda entry: entry[0])

    def is_pending(self, row_index: int, row: TimesheetRow) -> bool:
        with self._lock:
            return row_key(row_index, row) in self._unsaved

    def schedule(self, row_index: int, row: TimesheetRow) -> bool:
        """Mark a row dirty and (re)start its debounce timer.

        Rows without meaningful data are not scheduled, and any earlier
        snapshot still waiting for the same row is dropped.

        Returns:
            True if a save was scheduled
        """
        if not row.has_meaningful_data():
            self.log.debug("Row %s has no data; not scheduling a save", row_index)
            self.cancel(row_index, row)
            return False

        key = row_key(row_index, row)
        with self._lock:
            self._unsaved[key] = (row_index, row)
            self._restart_timer(key)
            changed = self._set_state_locked(
                SaveState.SAVE if self._state is SaveState.SAVED else self._state
            )
        self.log.debug("Scheduled save of row %s in %.2fs", row_index, self.debounce_seconds)
        self._notify_state(changed)
        return True

    def mark_edited(self) -> None:
        """Show SAVE after an edit batch, even one that left nothing to write."""
        with self._lock:
            changed = None
            if self._state is SaveState.SAVED:
                changed = self._set_state_locked(SaveState.SAVE)
        self._notify_state(changed)

    def cancel(self, row_index: int, row: TimesheetRow) -> None:
        """Drop pending work for a row (e.g. because it was removed)."""
        key = row_key(row_index, row)
        with self._lock:
            timer = self._timers.pop(key, None)
            if timer is not None:
                timer.cancel()
            self._unsaved.pop(key, None)
            changed = None
            if not self._unsaved and self._state is SaveState.SAVE:
                changed = self._set_state_locked(SaveState.SAVED)
        self._notify_state(changed)

    def shift_rows(self, index: int, amount: int) -> None:
        """Re-index pending rows after ``amount`` rows were removed at ``index``."""
        with self._lock:
            moved: dict[Hashable, tuple[int, TimesheetRow]] = {}
            for key, (row_index, row) in list(self._unsaved.items()):
                if row_index < index + amount:
                    continue
                new_index = row_index - amount
                if isinstance(key, tuple):
                    # Positional key: the timer has to follow the row
                    del self._unsaved[key]
                    timer = self._timers.pop(key, None)
                    if timer is not None:
                        timer.cancel()
                    moved[("index", new_index)] = (new_index, row)
                else:
                    self._unsaved[key] = (new_index, row)
            for key, entry in moved.items():
                self._unsaved[key] = entry
                self._restart_timer(key)

    def flush(self) -> FlushReport:
        """Persist every unsaved row now, concurrently.

        Pending debounce timers are cancelled. Rows that fail stay unsaved.
        """
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            keys = list(self._unsaved)
            changed = None
            if not keys and self._in_flight == 0 and self._state is SaveState.SAVE:
                changed = self._set_state_locked(SaveState.SAVED)
        if not keys:
            self._notify_state(changed)
            return FlushReport()
        self.log.info("Flushing %d unsaved row(s)", len(keys))
        return self._save(keys)

    def close(self) -> None:
        """Cancel every timer without saving."""
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            if self._settle_timer is not None:
                self._settle_timer.cancel()
                self._settle_timer = None

    def _restart_timer(self, key: Hashable) -> None:
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()
        self._timers[key] = self._timer_factory(
            self.debounce_seconds, lambda: self._on_timer(key)
        )

    def _on_timer(self, key: Hashable) -> None:
        with self._lock:
            self._timers.pop(key, None)
            if key not in self._unsaved:
                return
        self._save([key])

    def _save(self, keys: list[Hashable]) -> FlushReport:
        with self._lock:
            batch = [(key, self._unsaved[key]) for key in keys if key in self._unsaved]
            if not batch:
                return FlushReport()
            self._in_flight += 1
            if self._saving_started is None:
                self._saving_started = self._clock()
            if self._settle_timer is not None:
                self._settle_timer.cancel()
                self._settle_timer = None
            changed = self._set_state_locked(SaveState.SAVING)
        self._notify_state(changed)

        rows = [row for _, (_, row) in batch]
        if len(rows) == 1:
            results = [self._save_one(rows[0])]
        else:
            with ThreadPoolExecutor(max_workers=min(MAX_FLUSH_WORKERS, len(rows))) as pool:
                results = list(pool.map(self._save_one, rows))

        saved_calls = []
        failed_calls = []
        report = FlushReport()
        with self._lock:
            for (key, (row_index, row)), result in zip(batch, results):
                if result.success:
                    saved_row = result.row or row
                    self._settle_saved_locked(key, row, saved_row)
                    report.saved.append(row_index)
                    saved_calls.append((row_index, saved_row, key))
                else:
                    message = result.error or "Save failed"
                    report.failed.append((row_index, message))
                    failed_calls.append((row_index, row, message))
            self._in_flight -= 1

        for row_index, row, message in failed_calls:
            self.log.warning("Failed to save row %s: %s", row_index, message)
            if self.on_failed is not None:
                self.on_failed(row_index, row, message)
        for row_index, saved_row, key in saved_calls:
            if self.on_saved is not None:
                self.on_saved(row_index, saved_row, key)
        self.log.info("Saved %d row(s), %d failed", len(report.saved), len(report.failed))

        self._finish_saving()
        return report

    def _save_one(self, row: TimesheetRow) -> SaveResult:
        try:
            return self.store.save_row(row)
        except Exception as e:
            self.log.exception("Store raised while saving row %s", row.id)
            return SaveResult(success=False, error=str(e))

    def _settle_saved_locked(
        self, key: Hashable, written: TimesheetRow, saved_row: TimesheetRow
    ) -> None:
        current = self._unsaved.get(key)
        if current is None:
            return
        row_index, latest = current
        if latest == written:
            del self._unsaved[key]
            return
        if saved_row.id != written.id:
            # Edited while saving: carry the new id so the next write updates
            del self._unsaved[key]
            timer = self._timers.pop(key, None)
            if timer is not None:
                timer.cancel()
            new_key = saved_row.id
            self._unsaved[new_key] = (row_index, replace(latest, id=saved_row.id))
            self._restart_timer(new_key)

    def _finish_saving(self) -> None:
        with self._lock:
            if self._in_flight > 0 or self._saving_started is None:
                return
            remaining = self.min_saving_seconds - (self._clock() - self._saving_started)
            if remaining > 0:
                self._settle_timer = self._timer_factory(remaining, self._settle)
                return
        self._settle()

    def _settle(self) -> None:
        with self._lock:
            self._settle_timer = None
            if self._in_flight > 0:
                return
            self._saving_started = None
            changed = self._set_state_locked(
                SaveState.SAVE if self._unsaved else SaveState.SAVED
            )
        self._notify_state(changed)

    def _set_state_locked(self, state: SaveState) -> Optional[SaveState]:
        if state is self._state:
            return None
        self.log.debug("Save state %s -> %s", self._state.value, state.value)
        self._state = state
        return state

    def _notify_state(self, changed: Optional[SaveState]) -> None:
        if changed is not None and self.on_state_change is not None:
            self.on_state_change(changed)
