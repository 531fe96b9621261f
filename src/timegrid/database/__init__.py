"""Database layer for the timegrid application."""

from timegrid.database.base import DeleteResult, LoadResult, RowStore, SaveResult
from timegrid.database.factories import create_sqlite_store

__all__ = ["RowStore", "SaveResult", "DeleteResult", "LoadResult", "create_sqlite_store"]
