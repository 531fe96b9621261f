"""Date parsing utilities."""

import re
from datetime import date, timedelta
from typing import Any, Optional

from dateutil import parser as date_parser


US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")

MIN_YEAR = 1900
MAX_YEAR = 2500

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def parse_grid_date(value: Any) -> Optional[date]:
    """Parse a grid date cell into a date object.

    Accepts ``MM/DD/YYYY`` (month and day may be unpadded) and ``YYYY-MM-DD``.
    Month must be 1-12, day 1-31 and year inside 1900-2500. Overflow dates such
    as 02/30/2025 are rejected by building the date and letting the calendar
    check fail.

    Args:
        value: Raw cell value

    Returns:
        Date object, or None if the value is not a valid calendar date
    """
    if value is None:
        return None
    text = str(value).strip()

    match = US_DATE_RE.match(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
    else:
        match = ISO_DATE_RE.match(text)
        if not match:
            return None
        year, month, day = (int(part) for part in match.groups())

    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    if not MIN_YEAR <= year <= MAX_YEAR:
        return None

    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    if (parsed.month, parsed.day, parsed.year) != (month, day, year):
        return None
    return parsed


def format_grid_date(value: date) -> str:
    """Format a date in the canonical grid format (MM/DD/YYYY)."""
    return f"{value.month:02d}/{value.day:02d}/{value.year:04d}"


def normalize_date_input(value: Any) -> str:
    """Return the canonical form of a date cell, or the stripped raw text."""
    if value is None:
        return ""
    parsed = parse_grid_date(value)
    if parsed is None:
        return str(value).strip()
    return format_grid_date(parsed)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string typed on the command line.

    Supports various formats including relative dates:
    - Grid dates: "01/15/2025", "2025-01-15"
    - Absolute dates: "January 15, 2025", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "last friday"

    Args:
        date_str: Date string in various formats
        today: Reference date for relative dates (defaults to today)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    if today is None:
        today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("last "):
        period = date_str[5:]
        if period in WEEKDAYS:
            target_day = WEEKDAYS.index(period)
            days_ago = (today.weekday() - target_day) % 7
            if days_ago == 0:
                days_ago = 7
            return today - timedelta(days=days_ago)

    grid_date = parse_grid_date(date_str)
    if grid_date is not None:
        return grid_date

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
