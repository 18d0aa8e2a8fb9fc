# backend/tests/conftest.py
"""
Pytest configuration for the scheduling core.

Every test gets a fresh in-memory SQLite database with savepoint support,
a session bound to it and a clock frozen at 2025-01-01T00:00Z (a
Wednesday). Builders create teachers, slots, periods, occurrences and
patterns with sensible defaults.
"""

import os

# Set before any tutorsched import reads settings
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tutorsched import models  # noqa: F401 - registers tables on Base.metadata
from tutorsched.core.clock import FixedClock
from tutorsched.core.enums import AnchorTimezone, AvailabilityMode, OccurrenceStatus, RecordStatus
from tutorsched.database import Base, enable_sqlite_savepoints
from tutorsched.models import (
    ClassOccurrence,
    RecurringPattern,
    RecurringPatternSlot,
    TeacherProfile,
    UnavailabilityPeriod,
    WeeklyAvailabilitySlot,
)
from tutorsched.services.base import BaseService
from tutorsched.services.timezone_service import TimezoneService

REFERENCE_INSTANT = datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(REFERENCE_INSTANT)


@pytest.fixture(autouse=True)
def clear_service_metrics():
    BaseService._class_metrics.clear()
    yield


@pytest.fixture
def make_teacher(db):
    def _make(name="Teacher", tz="Africa/Cairo", **kwargs):
        teacher = TeacherProfile(display_name=name, timezone=tz, **kwargs)
        db.add(teacher)
        db.commit()
        return teacher

    return _make


@pytest.fixture
def add_slot(db):
    def _add(teacher, day_of_week, start_time, end_time, tz=None, **kwargs):
        slot = WeeklyAvailabilitySlot(
            teacher_id=teacher.id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            timezone=tz or teacher.timezone,
            status=RecordStatus.ACTIVE.value,
            **kwargs,
        )
        db.add(slot)
        teacher.availability_mode = AvailabilityMode.CUSTOM.value
        db.commit()
        return slot

    return _add


@pytest.fixture
def add_unavailability(db):
    def _add(teacher, start, end, **kwargs):
        period = UnavailabilityPeriod(teacher_id=teacher.id, start_at=start, end_at=end, **kwargs)
        db.add(period)
        db.commit()
        return period

    return _add


@pytest.fixture
def add_occurrence(db):
    def _add(
        teacher,
        start,
        duration_minutes=60,
        student_id="01HSTUDENT0000000000000001",
        tz=None,
        anchor=AnchorTimezone.STUDENT.value,
        offset=None,
        status=OccurrenceStatus.SCHEDULED.value,
        **kwargs,
    ):
        zone = tz or teacher.timezone
        occurrence = ClassOccurrence(
            teacher_id=teacher.id,
            student_id=student_id,
            scheduled_at=start,
            duration_minutes=duration_minutes,
            ends_at=start + timedelta(minutes=duration_minutes),
            anchor_timezone=anchor,
            timezone=zone,
            anchor_utc_offset_minutes=(
                offset if offset is not None else TimezoneService.utc_offset_minutes(start, zone)
            ),
            status=status,
            dst_adjustments=[],
            **kwargs,
        )
        db.add(occurrence)
        db.commit()
        return occurrence

    return _add


@pytest.fixture
def add_pattern(db):
    def _add(teacher, tz="Africa/Cairo", slots=(), **kwargs):
        pattern = RecurringPattern(
            teacher_id=teacher.id,
            student_id=kwargs.pop("student_id", "01HSTUDENT0000000000000001"),
            timezone=tz,
            **kwargs,
        )
        for day_of_week, hour, minute, duration in slots:
            pattern.slots.append(
                RecurringPatternSlot(
                    day_of_week=day_of_week,
                    hour=hour,
                    minute=minute,
                    duration_minutes=duration,
                    timezone=tz,
                )
            )
        db.add(pattern)
        db.commit()
        return pattern

    return _add
