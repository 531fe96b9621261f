"""Wall-clock time parsing utilities."""

import re
from typing import Any, Optional


CLOCK_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
LOOSE_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
SHORTHAND_RE = re.compile(r"^\d{1,4}$")

STEP_MINUTES = 15


def format_time_input(value: Any) -> str:
    """Expand numeric time shorthand into ``HH:MM``.

    - 1 digit: hour, e.g. "8" -> "08:00"
    - 2 digits: hour, e.g. "14" -> "14:00"
    - 3 digits: hour then minutes, e.g. "900" -> "09:00"
    - 4 digits: hours then minutes, e.g. "1430" -> "14:30"

    ``H:MM`` is zero padded. Anything else is returned stripped but otherwise
    unchanged so the validator can report it.
    """
    if value is None:
        return ""
    text = str(value).strip()

    if SHORTHAND_RE.match(text):
        if len(text) <= 2:
            return f"{text.zfill(2)}:00"
        if len(text) == 3:
            return f"0{text[0]}:{text[1:]}"
        return f"{text[:2]}:{text[2:]}"

    match = LOOSE_CLOCK_RE.match(text)
    if match:
        return f"{match.group(1).zfill(2)}:{match.group(2)}"

    return text


def parse_time_to_minutes(value: Any) -> Optional[int]:
    """Convert a time (canonical or shorthand) to minutes since midnight.

    Returns None when the hour is outside 0-23 or the minute outside 0-59.
    """
    match = CLOCK_RE.match(format_time_input(value))
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def is_valid_time(value: Any) -> bool:
    """Check that a time parses and falls on a 15 minute step."""
    minutes = parse_time_to_minutes(value)
    return minutes is not None and minutes % STEP_MINUTES == 0


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
