"""Shared pytest fixtures for timegrid tests."""

import itertools
import tempfile
import os
from dataclasses import replace
from pathlib import Path
import pytest

from timegrid.database.base import DeleteResult, LoadResult, RowStore, SaveResult
from timegrid.database.factories import create_sqlite_store
from timegrid.domain.business_config import ReferenceData
from timegrid.domain.entities import TimesheetRow
from timegrid.domain.reconciler import ChangeReconciler
from timegrid.domain.session import TimesheetSession


class ManualTimer:
    """Timer driven by ManualTimers.advance instead of a thread."""

    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualTimers:
    """Timer factory and clock for deterministic scheduling tests."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def __call__(self, delay, callback):
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def clock(self):
        return self.now

    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds):
        """Move the clock forward, firing due timers in order."""
        target = self.now + seconds + 1e-9
        while True:
            due = [t for t in self.pending() if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = max(self.now, timer.due)
            timer.fired = True
            timer.callback()
        self.now = target


class RecordingStore(RowStore):
    """In-memory store that records every call."""

    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.saved = []
        self.deleted = []
        self.fail_when = None
        self._ids = itertools.count(101)

    def save_row(self, row):
        self.saved.append(row)
        if self.fail_when is not None and self.fail_when(row):
            return SaveResult(success=False, error="disk full")
        row_id = row.id
        if not row.is_persisted:
            row_id = next(self._ids)
        return SaveResult(success=True, count=1, row=replace(row, id=row_id))

    def delete_rows(self, ids):
        ids = list(ids)
        self.deleted.append(ids)
        return DeleteResult(success=True, count=len(ids))

    def load_rows(self):
        return LoadResult(success=True, count=len(self.rows), rows=list(self.rows))


@pytest.fixture
def reference():
    """Small reference data set: Alpha needs tools, PTO/RTO does not."""
    return ReferenceData(
        projects=("Alpha", "Beta", "PTO/RTO"),
        charge_codes=("C1", "C2"),
        tools_by_project={"Alpha": ("ToolX", "Meeting"), "Beta": ("ToolY",)},
        projects_without_tools=frozenset({"PTO/RTO"}),
        tools_without_charges=frozenset({"Meeting"}),
    )


@pytest.fixture
def complete_row():
    """A row that passes every validator with the reference fixture."""
    return TimesheetRow(
        date="01/15/2025",
        time_in="09:00",
        time_out="17:00",
        project="Alpha",
    ).with_field("tool", "ToolX").with_field("charge_code", "C1").with_field(
        "task_description", "Build"
    )


@pytest.fixture
def reconciler(reference):
    """Create a ChangeReconciler without a date window."""
    return ChangeReconciler(reference)


@pytest.fixture
def timers():
    return ManualTimers()


@pytest.fixture
def recording_store():
    return RecordingStore()


@pytest.fixture
def session(recording_store, reference, timers):
    """Create a TimesheetSession driven by manual timers."""
    return TimesheetSession(
        recording_store,
        reference=reference,
        timer_factory=timers,
        clock=timers.clock,
    )


@pytest.fixture
def db_path():
    """Path to a temporary SQLite file."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    yield path

    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
def temp_store(db_path, reference):
    """Create a SQLAlchemyRowStore on a temporary database."""
    store = create_sqlite_store(database_path=db_path, reference=reference)

    yield store

    store.close()


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
