"""Tests for the SQLAlchemy row store."""

from dataclasses import replace

from sqlalchemy import text

from timegrid.database.factories import create_sqlite_store
from timegrid.domain.entities import NOT_APPLICABLE, TimesheetRow


def _leave_row(**overrides):
    values = dict(
        date="01/15/2025",
        time_in="09:00",
        time_out="10:00",
        project="PTO/RTO",
        tool=NOT_APPLICABLE,
        charge_code=NOT_APPLICABLE,
        task_description="Leave",
    )
    values.update(overrides)
    return TimesheetRow(**values)


def test_insert_assigns_id(temp_store, complete_row):
    result = temp_store.save_row(complete_row)

    assert result.success
    assert result.count == 1
    assert isinstance(result.row.id, int)
    assert result.row.task_description == "Build"


def test_transient_id_is_inserted(temp_store):
    result = temp_store.save_row(_leave_row(id="c0ffee"))

    assert result.success
    assert isinstance(result.row.id, int)
    assert temp_store.load_rows().count == 1


def test_update_existing_row(temp_store, complete_row):
    first = temp_store.save_row(complete_row).row
    second = temp_store.save_row(first.with_field("task_description", "Review"))

    assert second.row.id == first.id
    loaded = temp_store.load_rows()
    assert loaded.count == 1
    assert loaded.rows[0].task_description == "Review"


def test_missing_persisted_id_is_inserted(temp_store, complete_row):
    """Test that a row deleted elsewhere is written again instead of lost."""
    result = temp_store.save_row(replace(complete_row, id=999))

    assert result.success
    assert temp_store.load_rows().count == 1


def test_load_preserves_order_and_values(temp_store, complete_row):
    temp_store.save_row(complete_row)
    temp_store.save_row(_leave_row())

    result = temp_store.load_rows()

    assert result.success
    assert [row.project for row in result.rows] == ["Alpha", "PTO/RTO"]
    assert result.rows[0].tool.as_text() == "ToolX"
    assert result.rows[0].charge_code.as_text() == "C1"


def test_not_applicable_round_trip(temp_store):
    """Test that not-applicable selections come back through normalization."""
    temp_store.save_row(_leave_row())

    row = temp_store.load_rows().rows[0]

    assert row.tool.is_not_applicable
    assert row.charge_code.is_not_applicable


def test_load_without_reference_keeps_unset(db_path):
    store = create_sqlite_store(database_path=db_path)
    try:
        store.save_row(_leave_row())
        row = store.load_rows().rows[0]
        assert row.tool.is_unset
    finally:
        store.close()


def test_delete_rows(temp_store, complete_row):
    keep = temp_store.save_row(complete_row).row
    drop = temp_store.save_row(_leave_row()).row

    result = temp_store.delete_rows([drop.id, "transient", None])

    assert result.success
    assert result.count == 1
    assert [row.id for row in temp_store.load_rows().rows] == [keep.id]


def test_delete_only_transient_ids(temp_store):
    result = temp_store.delete_rows(["transient"])
    assert result.success
    assert result.count == 0


def test_database_failure_is_reported(temp_store, complete_row):
    engine = temp_store.session_factory.kw["bind"]
    with engine.begin() as connection:
        connection.execute(text("DROP TABLE timesheet_entries"))

    saved = temp_store.save_row(complete_row)
    loaded = temp_store.load_rows()
    deleted = temp_store.delete_rows([1])

    assert not saved.success
    assert saved.error
    assert not loaded.success
    assert not deleted.success


def test_store_honors_environment_path(db_path, monkeypatch):
    monkeypatch.setenv("TIMEGRID_DB_PATH", db_path)
    store = create_sqlite_store()
    try:
        assert store.database_url == f"sqlite:///{db_path}"
    finally:
        store.close()
