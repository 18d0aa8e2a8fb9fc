"""
Centralized timezone handling for the scheduling engine.

Rules:
- All storage: UTC
- All comparisons: UTC (millisecond granularity)
- Local wall-clock values are only produced at the edges: slot fitting,
  recurrence composition, DST re-anchoring and presentation.
"""

from datetime import date, datetime, time, timezone
from typing import Optional

import pytz

from ..core.config import settings
from ..core.exceptions import UnknownTimezoneException, ValidationException


class TimezoneService:
    """Handles all timezone conversions consistently."""

    @staticmethod
    def get_timezone(tz_str: Optional[str]) -> pytz.BaseTzInfo:
        """Resolve an IANA name; empty values fall back to the configured default."""
        name = tz_str or settings.default_timezone
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            raise UnknownTimezoneException(name)

    @staticmethod
    def is_valid_timezone(tz_str: Optional[str]) -> bool:
        if not tz_str:
            return False
        try:
            pytz.timezone(tz_str)
            return True
        except pytz.UnknownTimeZoneError:
            return False

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """Return ``dt`` as an aware UTC datetime; naive values are taken as UTC."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def local_to_utc(
        local_date: date, local_time: time, timezone_str: str, *, strict: bool = False
    ) -> datetime:
        """
        Convert a local date/time to UTC.

        Uses the timezone rules valid on ``local_date`` (not today).
        Ambiguous times (fall back) resolve to the first occurrence.
        Nonexistent times (spring forward gap) are moved forward by the gap
        unless ``strict`` is set, in which case ValidationException is raised.
        """
        tz = TimezoneService.get_timezone(timezone_str)
        naive_dt = datetime.combine(local_date, local_time)  # utc-naive-ok: pytz.localize input

        try:
            local_dt = tz.localize(naive_dt, is_dst=None)
        except pytz.exceptions.AmbiguousTimeError:
            local_dt = tz.localize(naive_dt, is_dst=True)
        except pytz.exceptions.NonExistentTimeError:
            if strict:
                raise ValidationException(
                    f"The time {local_time.strftime('%H:%M')} does not exist on "
                    f"{local_date} in {timezone_str} due to Daylight Saving Time.",
                    code="NONEXISTENT_LOCAL_TIME",
                    details={"date": local_date.isoformat(), "time": local_time.strftime("%H:%M")},
                )
            local_dt = tz.normalize(tz.localize(naive_dt, is_dst=False))

        return local_dt.astimezone(timezone.utc)

    @staticmethod
    def utc_to_local(utc_dt: datetime, timezone_str: str) -> datetime:
        """Convert UTC datetime to local timezone."""
        tz = TimezoneService.get_timezone(timezone_str)
        return TimezoneService.ensure_utc(utc_dt).astimezone(tz)

    @staticmethod
    def utc_offset_minutes(utc_dt: datetime, timezone_str: str) -> int:
        """UTC offset (minutes east of UTC) that ``timezone_str`` applies at ``utc_dt``."""
        offset = TimezoneService.utc_to_local(utc_dt, timezone_str).utcoffset()
        return int(offset.total_seconds() // 60) if offset is not None else 0

    @staticmethod
    def day_of_week(local_dt: datetime) -> int:
        """Day of week with 0 = Sunday, matching slot storage."""
        return (local_dt.weekday() + 1) % 7

    @staticmethod
    def format_time(utc_dt: datetime, timezone_str: str) -> str:
        return TimezoneService.utc_to_local(utc_dt, timezone_str).strftime("%H:%M")

    @staticmethod
    def format_for_display(utc_dt: datetime, timezone_str: str, include_tz_abbrev: bool = True) -> str:
        """
        Format a UTC datetime for display in a specific timezone.

        Returns: e.g., "Mon, Mar 10, 2025 at 09:00 AM EDT"
        """
        local_dt = TimezoneService.utc_to_local(utc_dt, timezone_str)
        if include_tz_abbrev:
            return local_dt.strftime("%a, %b %d, %Y at %I:%M %p %Z")
        return local_dt.strftime("%a, %b %d, %Y at %I:%M %p")
