"""Cross-row checks over the whole row set.

Both checks are quadratic at worst in the number of rows sharing a date, which
is fine for a person's daily entries.
"""

from dataclasses import dataclass, field
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from timegrid.domain.entities import TimesheetRow
from timegrid.utils.date_parser import format_grid_date, parse_grid_date
from timegrid.utils.time_parser import is_valid_time, parse_time_to_minutes


@dataclass(frozen=True)
class OverlapResult:
    """Rows to flag and rows whose earlier overlap flag should be removed."""

    overlapping: list[int] = field(default_factory=list)
    cleared: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class TimeOrderResult:
    """Rows whose end time is not after their start time, and rows now fixed."""

    violations: list[int] = field(default_factory=list)
    cleared: list[int] = field(default_factory=list)


def time_interval(row: TimesheetRow) -> Optional[tuple[int, int]]:
    """Return the half-open ``[start, end)`` interval of a complete row in minutes.

    Returns None unless both times are valid and the end is after the start.
    """
    if not is_valid_time(row.time_in) or not is_valid_time(row.time_out):
        return None
    start = parse_time_to_minutes(row.time_in)
    end = parse_time_to_minutes(row.time_out)
    if end <= start:
        return None
    return start, end


def intervals_overlap(a: tuple[int, int], b: tuple[int, int]) -> bool:
    """Half-open overlap test; touching endpoints do not overlap."""
    return a[0] < b[1] and b[0] < a[1]


def find_overlaps(
    rows: Sequence[TimesheetRow], previously_flagged: Iterable[int] = ()
) -> OverlapResult:
    """Find same-day time collisions across all rows.

    Every row with a valid date and a valid, ordered time pair is compared with
    every other such row on the same date.

    Args:
        rows: All rows of the grid
        previously_flagged: Row indexes that carried an overlap error before

    Returns:
        OverlapResult with the overlapping rows and the previously flagged rows
        that no longer overlap
    """
    by_date: dict[str, list[tuple[int, tuple[int, int]]]] = defaultdict(list)
    for index, row in enumerate(rows):
        day = parse_grid_date(row.date)
        if day is None:
            continue
        interval = time_interval(row)
        if interval is None:
            continue
        by_date[format_grid_date(day)].append((index, interval))

    overlapping: set[int] = set()
    for entries in by_date.values():
        for i, (index_a, interval_a) in enumerate(entries):
            for index_b, interval_b in entries[i + 1:]:
                if intervals_overlap(interval_a, interval_b):
                    overlapping.add(index_a)
                    overlapping.add(index_b)

    cleared = sorted(
        index for index in set(previously_flagged) if index not in overlapping
    )
    return OverlapResult(overlapping=sorted(overlapping), cleared=cleared)


def check_time_order(
    rows: Sequence[TimesheetRow], previously_flagged: Iterable[int] = ()
) -> TimeOrderResult:
    """Check ``time_out > time_in`` for every row with two valid times."""
    violations = []
    for index, row in enumerate(rows):
        if not is_valid_time(row.time_in) or not is_valid_time(row.time_out):
            continue
        if parse_time_to_minutes(row.time_out) <= parse_time_to_minutes(row.time_in):
            violations.append(index)

    cleared = sorted(index for index in set(previously_flagged) if index not in violations)
    return TimeOrderResult(violations=violations, cleared=cleared)
