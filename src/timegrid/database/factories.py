"""Store factory functions."""

import os
from pathlib import Path
from typing import Optional

from timegrid.database.sqlalchemy_db import SQLAlchemyRowStore
from timegrid.domain.business_config import ReferenceData


def default_database_path() -> Path:
    """Return ~/.timegrid/timegrid.db, creating the directory."""
    db_dir = Path.home() / ".timegrid"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "timegrid.db"


def create_sqlite_store(
    database_path: Optional[str] = None, reference: Optional[ReferenceData] = None
) -> SQLAlchemyRowStore:
    """Create a SQLite row store.

    Args:
        database_path: Path to SQLite database file. If None, checks TIMEGRID_DB_PATH
            environment variable, then defaults to ~/.timegrid/timegrid.db
        reference: Cascade rules applied to loaded rows

    Returns:
        SQLAlchemyRowStore configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("TIMEGRID_DB_PATH")

    if database_path is None:
        database_path = str(default_database_path())

    return SQLAlchemyRowStore(f"sqlite:///{database_path}", reference=reference)
