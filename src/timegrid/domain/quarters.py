"""Editable date window and next-date suggestions.

Which calendar dates may still be entered depends on how many previous
quarters remain open for submission. The window always ends on the last day of
the current quarter.
"""

from datetime import date, timedelta
from typing import Callable, Iterable, Optional

from dateutil.relativedelta import relativedelta

from timegrid.domain.entities import TimesheetRow
from timegrid.domain.errors import date_outside_window
from timegrid.utils.date_parser import format_grid_date, parse_grid_date


DateGate = Callable[[date], Optional[str]]


def quarter_of(value: date) -> int:
    """Return the calendar quarter (1-4) of a date."""
    return (value.month - 1) // 3 + 1


def quarter_bounds(year: int, quarter: int) -> tuple[date, date]:
    """Return the first and last day of a quarter."""
    start = date(year, (quarter - 1) * 3 + 1, 1)
    end = start + relativedelta(months=3) - timedelta(days=1)
    return start, end


def allowed_date_range(today: date, allowed_previous_quarters: int = 1) -> tuple[date, date]:
    """Compute the editable date window.

    Args:
        today: Reference date
        allowed_previous_quarters: How many quarters before the current one
            remain open (0 = current quarter only)

    Returns:
        Tuple of (min_date, max_date), both inclusive
    """
    current_start, current_end = quarter_bounds(today.year, quarter_of(today))
    if allowed_previous_quarters <= 0:
        return current_start, current_end
    min_date = current_start - relativedelta(months=3 * allowed_previous_quarters)
    return min_date, current_end


class QuarterWindow:
    """Date gate that rejects dates outside the editable quarter window.

    Instances are callables suitable for the ``date_gate`` argument of the
    validators: they return an error message, or None when the date may be
    edited.
    """

    def __init__(
        self,
        allowed_previous_quarters: int = 1,
        today: Optional[Callable[[], date]] = None,
    ):
        self.allowed_previous_quarters = allowed_previous_quarters
        self._today = today or date.today

    def bounds(self) -> tuple[date, date]:
        return allowed_date_range(self._today(), self.allowed_previous_quarters)

    def contains(self, value: date) -> bool:
        first, last = self.bounds()
        return first <= value <= last

    def __call__(self, value: date) -> Optional[str]:
        first, last = self.bounds()
        if first <= value <= last:
            return None
        return date_outside_window(format_grid_date(first), format_grid_date(last))


def increment_date(value: str, days: int, skip_weekends: bool = False) -> str:
    """Move a grid date by a number of days.

    Args:
        value: Grid date string
        days: Number of days to move (negative moves backwards)
        skip_weekends: If True, Saturdays and Sundays are not counted

    Returns:
        Canonical grid date, or an empty string if ``value`` is not a date
    """
    current = parse_grid_date(value)
    if current is None:
        return ""

    remaining = abs(days)
    step = timedelta(days=1 if days > 0 else -1)
    while remaining > 0:
        current += step
        if skip_weekends and current.weekday() >= 5:
            continue
        remaining -= 1
    return format_grid_date(current)


def detect_weekday_pattern(rows: Iterable[TimesheetRow]) -> bool:
    """True when at least three rows carry dates and none fall on a weekend."""
    dates = [d for d in (parse_grid_date(row.date) for row in rows) if d is not None]
    if len(dates) < 3:
        return False
    return all(d.weekday() < 5 for d in dates)


def smart_placeholder(previous_row: Optional[TimesheetRow], today: Optional[date] = None) -> str:
    """Suggest the date for a new row.

    The previous row's date is suggested while it is recent (today or
    yesterday); otherwise today is suggested.
    """
    if today is None:
        today = date.today()
    if previous_row is None or not previous_row.date:
        return format_grid_date(today)

    previous = parse_grid_date(previous_row.date)
    if previous is None:
        return format_grid_date(today)

    if (today - previous).days > 1:
        return format_grid_date(today)
    return format_grid_date(previous)
