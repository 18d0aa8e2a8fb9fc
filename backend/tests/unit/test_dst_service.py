# backend/tests/unit/test_dst_service.py
"""
Tests for DSTService: transition detection, re-anchoring, warnings and
the periodic check.

America/New_York in 2025 springs forward at 2025-03-09T07:00Z
(-300 -> -240) and falls back at 2025-11-02T06:00Z (-240 -> -300).
"""

from datetime import datetime, timezone

import pytest

from tutorsched.core.clock import FixedClock
from tutorsched.core.enums import TransitionType
from tutorsched.core.exceptions import UnknownTimezoneException
from tutorsched.models import ClassOccurrence, NotificationOutbox
from tutorsched.services.dst_service import DSTService
from tutorsched.services.timezone_service import TimezoneService

NEW_YORK = "America/New_York"


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def spring_forward():
    return DSTService.detect_transitions(NEW_YORK, 2025)[0]


def fall_back():
    return DSTService.detect_transitions(NEW_YORK, 2025)[1]


@pytest.fixture
def service(db):
    return DSTService(db, clock=FixedClock(utc(2025, 3, 1)))


@pytest.fixture
def ny_teacher(make_teacher):
    return make_teacher("Nadia", tz=NEW_YORK)


class TestDetectTransitions:
    def test_new_york_2025(self):
        forward, backward = DSTService.detect_transitions(NEW_YORK, 2025)

        assert forward.instant == utc(2025, 3, 9, 7, 0)
        assert forward.type == TransitionType.FORWARD
        assert (forward.offset_before_minutes, forward.offset_after_minutes) == (-300, -240)
        assert backward.instant == utc(2025, 11, 2, 6, 0)
        assert backward.type == TransitionType.BACKWARD
        assert backward.delta_minutes == -60

    def test_southern_hemisphere_order(self):
        transitions = DSTService.detect_transitions("Australia/Sydney", 2025)

        assert [t.type for t in transitions] == [TransitionType.BACKWARD, TransitionType.FORWARD]
        assert transitions[0].instant == utc(2025, 4, 5, 16, 0)

    def test_zone_without_dst(self):
        assert DSTService.detect_transitions("Asia/Tokyo", 2025) == []

    def test_unknown_zone(self):
        with pytest.raises(UnknownTimezoneException):
            DSTService.detect_transitions("Nowhere/Land", 2025)


class TestReanchor:
    def test_occurrence_after_transition_keeps_local_time(self, db, service, ny_teacher, add_occurrence):
        before = add_occurrence(ny_teacher, utc(2025, 3, 8, 14, 0))
        after = add_occurrence(ny_teacher, utc(2025, 3, 10, 14, 0), offset=-300)

        adjusted = service.reanchor(NEW_YORK, spring_forward())

        assert adjusted == 1
        db.refresh(before)
        db.refresh(after)
        assert before.scheduled_at == utc(2025, 3, 8, 14, 0)
        assert after.scheduled_at == utc(2025, 3, 10, 13, 0)
        assert after.ends_at == utc(2025, 3, 10, 14, 0)
        assert TimezoneService.format_time(after.scheduled_at, NEW_YORK) == "09:00"
        assert after.anchor_utc_offset_minutes == -240

        assert len(after.dst_adjustments) == 1
        entry = after.dst_adjustments[0]
        assert entry["old_instant"] == "2025-03-10T14:00:00+00:00"
        assert entry["new_instant"] == "2025-03-10T13:00:00+00:00"
        assert entry["transition"]["type"] == "forward"

        recipients = {row.recipient_id for row in db.query(NotificationOutbox).all()}
        assert recipients == {ny_teacher.id, after.student_id}

    def test_fall_back_moves_instant_later(self, db, service, ny_teacher, add_occurrence):
        before = add_occurrence(ny_teacher, utc(2025, 11, 1, 13, 0), offset=-240)
        after = add_occurrence(ny_teacher, utc(2025, 11, 3, 13, 0), offset=-240)
        current = add_occurrence(ny_teacher, utc(2025, 11, 4, 14, 0), offset=-300)

        report = service.reanchor_with_report(NEW_YORK, fall_back())

        assert (report.succeeded, report.skipped) == (1, 1)
        for occurrence in (before, after, current):
            db.refresh(occurrence)
        assert before.scheduled_at == utc(2025, 11, 1, 13, 0)
        assert after.scheduled_at == utc(2025, 11, 3, 14, 0)
        assert after.ends_at == utc(2025, 11, 3, 15, 0)
        assert after.anchor_utc_offset_minutes == -300
        assert TimezoneService.format_time(after.scheduled_at, NEW_YORK) == "09:00"
        assert after.dst_adjustments[0]["transition"]["type"] == "backward"
        assert current.scheduled_at == utc(2025, 11, 4, 14, 0)

    def test_second_application_is_a_no_op(self, db, service, ny_teacher, add_occurrence):
        occurrence = add_occurrence(ny_teacher, utc(2025, 3, 10, 14, 0), offset=-300)
        transition = spring_forward()
        service.reanchor(NEW_YORK, transition)

        report = service.reanchor_with_report(NEW_YORK, transition)

        assert report.succeeded == 0
        assert report.skipped == 1
        db.refresh(occurrence)
        assert occurrence.scheduled_at == utc(2025, 3, 10, 13, 0)
        assert len(occurrence.dst_adjustments) == 1
        assert db.query(NotificationOutbox).count() == 2

    def test_rows_outside_scope_are_untouched(self, db, service, ny_teacher, add_occurrence):
        untouched = [
            add_occurrence(ny_teacher, utc(2025, 3, 10, 14, 0), tz="Europe/London", offset=0),
            add_occurrence(ny_teacher, utc(2025, 3, 11, 14, 0), anchor=None, offset=-300),
            add_occurrence(ny_teacher, utc(2025, 3, 12, 14, 0), anchor="bogus", offset=-300),
            add_occurrence(ny_teacher, utc(2025, 12, 1, 14, 0), offset=-300),
        ]
        originals = [o.scheduled_at for o in untouched]

        assert service.reanchor(NEW_YORK, spring_forward()) == 0

        for occurrence, original in zip(untouched, originals):
            db.refresh(occurrence)
            assert occurrence.scheduled_at == original
            assert occurrence.dst_adjustments == []

    def test_missing_recorded_offset_assumed_pre_transition(self, db, service, ny_teacher, add_occurrence):
        occurrence = add_occurrence(ny_teacher, utc(2025, 3, 10, 14, 0))
        occurrence.anchor_utc_offset_minutes = None
        db.commit()

        assert service.reanchor(NEW_YORK, spring_forward()) == 1
        db.refresh(occurrence)
        assert occurrence.scheduled_at == utc(2025, 3, 10, 13, 0)

    def test_failure_is_isolated_per_occurrence(self, db, service, ny_teacher, add_occurrence, monkeypatch):
        first = add_occurrence(ny_teacher, utc(2025, 3, 10, 14, 0), offset=-300)
        second = add_occurrence(ny_teacher, utc(2025, 3, 11, 14, 0), offset=-300)
        original = service._reanchor_one

        def flaky(occurrence, *args):
            result = original(occurrence, *args)
            if occurrence.id == first.id:
                raise RuntimeError("write failed")
            return result

        monkeypatch.setattr(service, "_reanchor_one", flaky)

        report = service.reanchor_with_report(NEW_YORK, spring_forward())

        assert (report.processed, report.succeeded, report.failed) == (2, 1, 1)
        assert report.errors[0].item_id == first.id
        assert db.get(ClassOccurrence, first.id).scheduled_at == utc(2025, 3, 10, 14, 0)
        assert db.get(ClassOccurrence, second.id).scheduled_at == utc(2025, 3, 11, 13, 0)
        assert db.query(NotificationOutbox).count() == 2


class TestWarnings:
    def test_warning_queued_once_per_recipient(self, db, ny_teacher, add_occurrence):
        service = DSTService(db, clock=FixedClock(utc(2025, 3, 5, 12, 0)))
        add_occurrence(ny_teacher, utc(2025, 3, 10, 14, 0), offset=-300)

        queued = service.upcoming_transition_warnings()

        assert queued == 2
        rows = db.query(NotificationOutbox).all()
        assert len(rows) == 2
        assert all("Clocks move forward by 1 hour" in row.body for row in rows)
        assert all(row.event_type == "dst_warning" for row in rows)

        service.upcoming_transition_warnings()
        assert db.query(NotificationOutbox).count() == 2

    def test_no_warning_outside_window(self, db, ny_teacher):
        service = DSTService(db, clock=FixedClock(utc(2025, 1, 15)))

        assert service.upcoming_transition_warnings() == 0


class TestPeriodicCheck:
    def test_check_reanchors_recent_transition(self, db, ny_teacher, add_occurrence):
        service = DSTService(db, clock=FixedClock(utc(2025, 3, 9, 12, 0)))
        occurrence = add_occurrence(ny_teacher, utc(2025, 3, 10, 14, 0), offset=-300)

        summary = service.perform_dst_check()

        assert summary.adjusted == 1
        assert summary.transitions_processed == 1
        assert summary.failed == 0
        db.refresh(occurrence)
        assert occurrence.scheduled_at == utc(2025, 3, 10, 13, 0)

    def test_check_stops_between_zones(self, db, ny_teacher):
        service = DSTService(db, clock=FixedClock(utc(2025, 3, 9, 12, 0)))

        summary = service.perform_dst_check(should_stop=lambda: True)

        assert summary.stopped_early is True
        assert summary.timezones_checked == 0


class TestTimezoneValidation:
    def test_invalid_zones_are_reported(self, service, make_teacher, caplog):
        make_teacher("Nadia", tz=NEW_YORK)
        broken = make_teacher("Omar", tz="Mars/Olympus_Mons")
        make_teacher("Pia", tz="Not/AZone", status="inactive")

        with caplog.at_level("WARNING"):
            report = service.validate_teacher_timezones()

        assert report.checked == 2
        assert report.invalid == 1
        assert [e.item_id for e in report.errors] == [broken.id]
        assert "Mars/Olympus_Mons" in report.errors[0].error
        assert "Teacher has an invalid timezone" in caplog.text

    def test_all_valid(self, service, ny_teacher):
        report = service.validate_teacher_timezones()

        assert (report.checked, report.invalid) == (1, 0)
        assert report.errors == []


def test_get_dst_info(service):
    info = service.get_dst_info(NEW_YORK)

    assert info.current_offset_minutes == -300
    assert info.is_dst is False
    assert info.next_transition.instant == utc(2025, 3, 9, 7, 0)
    assert info.last_transition.instant == utc(2024, 11, 3, 6, 0)
    assert len(info.transitions) == 2
