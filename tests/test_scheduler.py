"""Tests for debounced row persistence."""

import pytest

from timegrid.domain.entities import SaveState, TimesheetRow
from timegrid.domain.scheduler import PersistenceScheduler, row_key

from conftest import RecordingStore


@pytest.fixture
def saved_calls():
    return []


@pytest.fixture
def scheduler(recording_store, timers, saved_calls):
    """Create a scheduler with the default delays on manual timers."""
    return PersistenceScheduler(
        recording_store,
        timer_factory=timers,
        clock=timers.clock,
        on_saved=lambda *args: saved_calls.append(args),
    )


def _row(description, row_id=None):
    return TimesheetRow(id=row_id, date="01/15/2025", task_description=description)


def test_row_key_prefers_id():
    assert row_key(3, _row("a", 12)) == 12
    assert row_key(3, _row("a", "tmp-1")) == "tmp-1"
    assert row_key(3, _row("a")) == ("index", 3)


def test_edits_within_window_are_coalesced(scheduler, timers, recording_store):
    """Test that three quick edits produce one write with the final values."""
    for text in ("a", "ab", "abc"):
        scheduler.schedule(0, _row(text))
        timers.advance(0.1)

    assert recording_store.saved == []
    assert scheduler.state is SaveState.SAVE

    timers.advance(0.5)

    assert [row.task_description for row in recording_store.saved] == ["abc"]
    assert scheduler.pending_count == 0


def test_rows_without_data_are_not_scheduled(scheduler, timers, recording_store):
    assert not scheduler.schedule(0, TimesheetRow())
    assert scheduler.state is SaveState.SAVED
    timers.advance(1)
    assert recording_store.saved == []


def test_saving_state_is_shown_for_minimum_duration(scheduler, timers):
    scheduler.schedule(0, _row("a"))
    timers.advance(0.5)
    assert scheduler.state is SaveState.SAVING

    timers.advance(0.99)
    assert scheduler.state is SaveState.SAVING

    timers.advance(0.02)
    assert scheduler.state is SaveState.SAVED


def test_state_changes_are_reported(recording_store, timers):
    states = []
    scheduler = PersistenceScheduler(
        recording_store,
        min_saving_seconds=0,
        timer_factory=timers,
        clock=timers.clock,
        on_state_change=states.append,
    )
    scheduler.schedule(0, _row("a"))
    timers.advance(0.5)
    assert states == [SaveState.SAVE, SaveState.SAVING, SaveState.SAVED]


def test_saved_callback_gets_persisted_id(scheduler, timers, saved_calls):
    scheduler.schedule(4, _row("a"))
    timers.advance(0.5)

    assert len(saved_calls) == 1
    row_index, saved_row, previous_key = saved_calls[0]
    assert row_index == 4
    assert saved_row.id == 101
    assert previous_key == ("index", 4)


def test_failed_save_keeps_row_unsaved(scheduler, timers, recording_store):
    failures = []
    scheduler.on_failed = lambda *args: failures.append(args)
    recording_store.fail_when = lambda row: True

    scheduler.schedule(0, _row("a"))
    timers.advance(0.5)
    assert scheduler.pending_count == 1
    assert failures[0][2] == "disk full"

    timers.advance(1.0)
    assert scheduler.state is SaveState.SAVE


def test_failed_row_is_written_on_flush(scheduler, timers, recording_store):
    recording_store.fail_when = lambda row: True
    scheduler.schedule(0, _row("a"))
    timers.advance(0.5)

    recording_store.fail_when = None
    report = scheduler.flush()

    assert report.success
    assert report.saved == [0]
    assert scheduler.pending_count == 0


def test_flush_writes_every_row(scheduler, timers, recording_store):
    """Test that flush saves all pending rows without waiting for timers."""
    for index in range(3):
        scheduler.schedule(index, _row(f"row {index}"))

    report = scheduler.flush()

    assert report.success
    assert sorted(report.saved) == [0, 1, 2]
    assert len(recording_store.saved) == 3
    assert scheduler.pending_count == 0
    assert timers.pending() and all(t.due == pytest.approx(1.0) for t in timers.pending())

    timers.advance(1.0)
    assert scheduler.state is SaveState.SAVED
    assert len(recording_store.saved) == 3


def test_flush_with_nothing_pending(scheduler, recording_store):
    report = scheduler.flush()
    assert report.success
    assert report.saved == []
    assert recording_store.saved == []


def test_cancel_drops_pending_row(scheduler, timers, recording_store):
    row = _row("a")
    scheduler.schedule(0, row)
    scheduler.cancel(0, row)

    assert scheduler.pending_count == 0
    assert scheduler.state is SaveState.SAVED
    timers.advance(1)
    assert recording_store.saved == []


def test_shift_rows_reindexes_pending_rows(scheduler):
    scheduler.schedule(0, _row("first"))
    scheduler.schedule(2, _row("third"))
    scheduler.schedule(3, _row("fourth", 7))

    scheduler.shift_rows(1, 1)

    pending = scheduler.pending_rows()
    assert [(index, row.task_description) for index, row in pending] == [
        (0, "first"),
        (1, "third"),
        (2, "fourth"),
    ]
    assert scheduler.is_pending(1, _row("third"))


def test_edit_during_save_keeps_new_id(timers):
    """Test that a row edited while its insert runs is updated, not inserted twice."""

    class EditingStore(RecordingStore):
        def save_row(self, row):
            result = super().save_row(row)
            if len(self.saved) == 1:
                scheduler.schedule(0, _row("edited"))
            return result

    store = EditingStore()
    scheduler = PersistenceScheduler(store, timer_factory=timers, clock=timers.clock)
    scheduler.schedule(0, _row("original"))
    timers.advance(0.5)

    assert scheduler.pending_rows() == [(0, _row("edited", 101))]

    timers.advance(0.5)
    assert [(row.id, row.task_description) for row in store.saved] == [
        (None, "original"),
        (101, "edited"),
    ]
    assert scheduler.pending_count == 0


def test_close_cancels_timers(scheduler, timers, recording_store):
    scheduler.schedule(0, _row("a"))
    scheduler.close()
    timers.advance(1)
    assert recording_store.saved == []
    assert scheduler.pending_count == 1


def test_edit_with_nothing_to_write_shows_save(scheduler, recording_store):
    scheduler.mark_edited()
    assert scheduler.state is SaveState.SAVE

    report = scheduler.flush()

    assert report.success
    assert recording_store.saved == []
    assert scheduler.state is SaveState.SAVED


def test_mark_edited_leaves_saving_alone(scheduler, timers):
    scheduler.schedule(0, _row("a"))
    timers.advance(0.5)
    assert scheduler.state is SaveState.SAVING

    scheduler.mark_edited()
    assert scheduler.state is SaveState.SAVING
