# backend/tests/unit/test_timezone_service.py
"""
Tests for TimezoneService conversions around DST edges.
"""

from datetime import date, datetime, time, timezone

import pytest

from tutorsched.core.exceptions import UnknownTimezoneException, ValidationException
from tutorsched.services.timezone_service import TimezoneService


class TestLocalToUtc:
    def test_regular_time_uses_rules_of_that_date(self):
        winter = TimezoneService.local_to_utc(date(2025, 1, 15), time(9, 0), "America/New_York")
        summer = TimezoneService.local_to_utc(date(2025, 7, 15), time(9, 0), "America/New_York")

        assert winter == datetime(2025, 1, 15, 14, 0, tzinfo=timezone.utc)
        assert summer == datetime(2025, 7, 15, 13, 0, tzinfo=timezone.utc)

    def test_nonexistent_time_moves_forward(self):
        result = TimezoneService.local_to_utc(date(2025, 3, 9), time(2, 30), "America/New_York")

        assert result == datetime(2025, 3, 9, 7, 30, tzinfo=timezone.utc)
        assert TimezoneService.format_time(result, "America/New_York") == "03:30"

    def test_nonexistent_time_raises_when_strict(self):
        with pytest.raises(ValidationException) as exc_info:
            TimezoneService.local_to_utc(
                date(2025, 3, 9), time(2, 30), "America/New_York", strict=True
            )

        assert exc_info.value.code == "NONEXISTENT_LOCAL_TIME"

    def test_ambiguous_time_takes_first_occurrence(self):
        result = TimezoneService.local_to_utc(date(2025, 11, 2), time(1, 30), "America/New_York")

        assert result == datetime(2025, 11, 2, 5, 30, tzinfo=timezone.utc)

    def test_unknown_timezone_raises(self):
        with pytest.raises(UnknownTimezoneException):
            TimezoneService.local_to_utc(date(2025, 1, 1), time(9, 0), "Mars/Olympus_Mons")


def test_utc_offset_minutes():
    instant = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)

    assert TimezoneService.utc_offset_minutes(instant, "Africa/Cairo") == 120
    assert TimezoneService.utc_offset_minutes(instant, "America/New_York") == -300
    assert TimezoneService.utc_offset_minutes(instant, "Asia/Kolkata") == 330


def test_day_of_week_starts_on_sunday():
    sunday = datetime(2025, 1, 5, 10, 0)
    saturday = datetime(2025, 1, 11, 10, 0)

    assert TimezoneService.day_of_week(sunday) == 0
    assert TimezoneService.day_of_week(saturday) == 6


def test_ensure_utc_treats_naive_as_utc():
    naive = datetime(2025, 1, 1, 12, 0)

    assert TimezoneService.ensure_utc(naive) == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_is_valid_timezone():
    assert TimezoneService.is_valid_timezone("Europe/London")
    assert not TimezoneService.is_valid_timezone("Nowhere/Special")
    assert not TimezoneService.is_valid_timezone(None)


def test_format_for_display():
    instant = datetime(2025, 3, 10, 13, 0, tzinfo=timezone.utc)

    assert (
        TimezoneService.format_for_display(instant, "America/New_York")
        == "Mon, Mar 10, 2025 at 09:00 AM EDT"
    )
