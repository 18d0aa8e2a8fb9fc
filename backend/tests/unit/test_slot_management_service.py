# backend/tests/unit/test_slot_management_service.py
from datetime import datetime, timezone

import pytest

from tutorsched.core.enums import AvailabilityMode, RecordStatus
from tutorsched.core.exceptions import (
    InvalidTimeRangeException,
    NotFoundException,
    SlotOverlapException,
    UnknownTimezoneException,
)
from tutorsched.schemas.availability import UnavailabilityCreate, WeeklySlotCreate, WeeklySlotUpdate
from tutorsched.services.slot_management_service import SlotManagementService


@pytest.fixture
def service(db):
    return SlotManagementService(db)


def slot_payload(teacher, day=1, start="17:00", end="19:00", **kwargs):
    return WeeklySlotCreate(teacher_id=teacher.id, day_of_week=day, start_time=start, end_time=end, **kwargs)


class TestCreateSlot:
    def test_first_slot_switches_mode_to_custom(self, service, make_teacher):
        teacher = make_teacher("Alice")

        slot = service.create_slot(slot_payload(teacher))

        assert slot.timezone == "Africa/Cairo"
        assert slot.status == RecordStatus.ACTIVE.value
        assert teacher.availability_mode == AvailabilityMode.CUSTOM.value

    def test_overlapping_slot_rejected(self, service, make_teacher):
        teacher = make_teacher("Alice")
        service.create_slot(slot_payload(teacher))

        with pytest.raises(SlotOverlapException) as exc_info:
            service.create_slot(slot_payload(teacher, start="18:00", end="20:00"))

        assert exc_info.value.code == "SLOT_OVERLAP"
        assert exc_info.value.details["conflicting_slot"] == "17:00-19:00"

    def test_touching_slots_allowed(self, service, make_teacher):
        teacher = make_teacher("Alice")
        service.create_slot(slot_payload(teacher))

        slot = service.create_slot(slot_payload(teacher, start="19:00", end="24:00"))

        assert slot.end_minutes == 24 * 60

    def test_same_hours_on_another_day_allowed(self, service, make_teacher):
        teacher = make_teacher("Alice")
        service.create_slot(slot_payload(teacher))

        service.create_slot(slot_payload(teacher, day=3))

    def test_inverted_range_rejected(self, service, make_teacher):
        teacher = make_teacher("Alice")

        with pytest.raises(InvalidTimeRangeException):
            service.create_slot(slot_payload(teacher, start="19:00", end="17:00"))

    def test_unknown_timezone_rejected(self, service, make_teacher):
        teacher = make_teacher("Alice")

        with pytest.raises(UnknownTimezoneException):
            service.create_slot(slot_payload(teacher, timezone="Atlantis/Capital"))

    def test_unknown_teacher(self, service):
        with pytest.raises(NotFoundException):
            service.create_slot(
                WeeklySlotCreate(teacher_id="missing", day_of_week=1, start_time="09:00", end_time="10:00")
            )


class TestUpdateAndDeactivate:
    def test_update_checks_overlap_excluding_itself(self, service, make_teacher):
        teacher = make_teacher("Alice")
        slot = service.create_slot(slot_payload(teacher))
        service.create_slot(slot_payload(teacher, start="20:00", end="22:00"))

        updated = service.update_slot(slot.id, WeeklySlotUpdate(start_time="16:00"))
        assert updated.start_time == "16:00"

        with pytest.raises(SlotOverlapException):
            service.update_slot(slot.id, WeeklySlotUpdate(end_time="21:00"))

    def test_deactivating_last_slot_restores_default_mode(self, service, make_teacher):
        teacher = make_teacher("Alice")
        first = service.create_slot(slot_payload(teacher))
        second = service.create_slot(slot_payload(teacher, day=2))

        service.deactivate_slot(first.id)
        assert teacher.availability_mode == AvailabilityMode.CUSTOM.value

        service.deactivate_slot(second.id)
        assert teacher.availability_mode == AvailabilityMode.DEFAULT_ALWAYS_AVAILABLE.value

    def test_deactivate_unknown_slot(self, service):
        with pytest.raises(NotFoundException) as exc_info:
            service.deactivate_slot("missing")

        assert exc_info.value.code == "SLOT_NOT_FOUND"


class TestUnavailability:
    def test_create_and_deactivate(self, service, make_teacher):
        teacher = make_teacher("Alice")
        period = service.create_unavailability(
            UnavailabilityCreate(
                teacher_id=teacher.id,
                start_at=datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc),
                end_at=datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc),
                reason="sick",
            )
        )

        assert period.reason == "sick"
        assert period.approval_status == "approved"

        assert service.deactivate_unavailability(period.id).status == RecordStatus.INACTIVE.value

    def test_inverted_period_rejected(self, service, make_teacher):
        teacher = make_teacher("Alice")

        with pytest.raises(InvalidTimeRangeException):
            service.create_unavailability(
                UnavailabilityCreate(
                    teacher_id=teacher.id,
                    start_at=datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc),
                    end_at=datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc),
                )
            )
