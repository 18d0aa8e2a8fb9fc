# backend/tests/unit/test_scheduler.py
"""Tests for the Scheduler jobs driven by an injected clock."""

from datetime import date, datetime, timezone

import pytest

from tutorsched.core.clock import FixedClock
from tutorsched.schemas.dst import DSTCheckSummary
from tutorsched.services.scheduler import (
    DAILY_DST_CHECK,
    GENERATION_SWEEP,
    HOURLY_DST_CHECK,
    TIMEZONE_VALIDATION,
    Scheduler,
)


def at(*args):
    return FixedClock(datetime(*args, tzinfo=timezone.utc))


def test_hourly_check_skipped_outside_heavy_months(session_factory):
    scheduler = Scheduler(session_factory, clock=at(2025, 1, 15, 6, 0))

    assert scheduler.run(HOURLY_DST_CHECK) is None


def test_hourly_check_runs_in_march(session_factory, make_teacher):
    make_teacher("Nadia", tz="America/New_York")
    scheduler = Scheduler(session_factory, clock=at(2025, 3, 9, 12, 0))

    summary = scheduler.run(HOURLY_DST_CHECK)

    assert isinstance(summary, DSTCheckSummary)
    assert summary.timezones_checked == 1


def test_daily_check_returns_summary(session_factory, make_teacher):
    make_teacher("Nadia", tz="America/New_York")
    scheduler = Scheduler(session_factory, clock=at(2025, 1, 15, 6, 0))

    summary = scheduler.run(DAILY_DST_CHECK)

    assert summary.failed == 0
    assert summary.adjusted == 0


def test_generation_sweep_materializes_patterns(db, session_factory, make_teacher, add_pattern):
    teacher = make_teacher("Alice")
    pattern = add_pattern(teacher, slots=((3, 15, 30, 55),))
    scheduler = Scheduler(session_factory, clock=at(2025, 1, 1, 0, 0))

    report = scheduler.run(GENERATION_SWEEP)

    assert report.succeeded == 1
    assert report.created == 9
    db.refresh(pattern)
    assert pattern.generated_through == date(2025, 3, 1)


def test_should_stop_is_forwarded(session_factory, make_teacher, add_pattern):
    teacher = make_teacher("Alice")
    add_pattern(teacher, slots=((3, 15, 30, 55),))
    scheduler = Scheduler(session_factory, clock=at(2025, 1, 1), should_stop=lambda: True)

    report = scheduler.generation_sweep()

    assert report.stopped_early is True
    assert report.created == 0


def test_timezone_validation_counts_invalid_zones(session_factory, make_teacher):
    make_teacher("Nadia", tz="America/New_York")
    make_teacher("Omar", tz="Atlantis/Capital")
    scheduler = Scheduler(session_factory, clock=at(2025, 1, 5, 2, 0))

    report = scheduler.run(TIMEZONE_VALIDATION)

    assert report.checked == 2
    assert report.invalid == 1


def test_unknown_task_name(session_factory):
    with pytest.raises(ValueError):
        Scheduler(session_factory).run("weekly_report")
