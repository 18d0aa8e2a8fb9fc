from __future__ import annotations

import calendar
from datetime import date, time
import re
from typing import Union

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

TimeLike = Union[str, time]


def parse_hhmm(value: str, *, allow_end_of_day: bool = False) -> int:
    """
    Parse an ``HH:MM`` string into minutes since midnight.

    ``24:00`` is accepted only when ``allow_end_of_day`` is set and maps to 1440.
    """
    if allow_end_of_day and value == "24:00":
        return 24 * 60
    match = _HHMM_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time format (expected HH:MM): {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def time_to_minutes(t: TimeLike, *, is_end_time: bool = False) -> int:
    """
    Convert a time (or ``HH:MM`` string) to minutes since midnight.

    Args:
        t: Time object or ``HH:MM`` string.
        is_end_time: If True, treat midnight as 1440 (end of day).

    Returns:
        Minutes since midnight (0-1440).
    """
    if isinstance(t, str):
        minutes = parse_hhmm(t, allow_end_of_day=is_end_time)
    else:
        minutes = t.hour * 60 + t.minute
    if is_end_time and minutes == 0:
        return 24 * 60
    return minutes


def minutes_to_time_str(minutes: int) -> str:
    """
    Convert minutes since midnight to HH:MM.

    1440 is rendered as "24:00".
    """
    if not 0 <= minutes <= 24 * 60:
        raise ValueError(f"minutes out of range: {minutes}")
    if minutes == 24 * 60:
        return "24:00"
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
