"""Abstract row store interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional

from timegrid.domain.entities import RowId, TimesheetRow


@dataclass(frozen=True)
class SaveResult:
    """Outcome of writing one row. ``row`` carries the persisted id."""

    success: bool
    count: int = 0
    row: Optional[TimesheetRow] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DeleteResult:
    success: bool
    count: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    success: bool
    count: int = 0
    rows: list[TimesheetRow] = field(default_factory=list)
    error: Optional[str] = None


class RowStore(ABC):
    """Durable store for timesheet rows.

    Implementations report failures through the result objects instead of
    raising, so one failing row never aborts a batch.
    """

    @abstractmethod
    def save_row(self, row: TimesheetRow) -> SaveResult:
        """Insert or update one row.

        Rows whose id is not a persisted integer are inserted and come back
        with their new id.
        """
        pass

    @abstractmethod
    def delete_rows(self, ids: Iterable[RowId]) -> DeleteResult:
        """Delete rows by persisted id. Unknown ids are ignored."""
        pass

    @abstractmethod
    def load_rows(self) -> LoadResult:
        """Load all rows in insertion order."""
        pass

    def close(self) -> None:
        """Release any resources held by the store."""
        pass
