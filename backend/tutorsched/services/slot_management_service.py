# backend/tutorsched/services/slot_management_service.py
"""
Slot Management Service.

Creates, edits and soft-deactivates weekly availability slots and
unavailability periods, enforcing:
- start < end (InvalidTimeRangeException)
- no overlap between active slots of one teacher on one weekday
  (SlotOverlapException)

The teacher's availability mode follows the slots: the first active slot
switches it to ``custom``; deactivating the last one switches it back to
``default_always_available``.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..core.enums import AvailabilityMode, RecordStatus
from ..core.exceptions import InvalidTimeRangeException, NotFoundException, SlotOverlapException
from ..models.availability import UnavailabilityPeriod, WeeklyAvailabilitySlot
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import UnavailabilityCreate, WeeklySlotCreate, WeeklySlotUpdate
from ..utils.time_utils import time_to_minutes
from .availability_engine import format_slot_range
from .base import BaseService
from .timezone_service import TimezoneService


class SlotManagementService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_availability_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)

    def _get_teacher(self, teacher_id: str):
        with self.repository_errors("teacher lookup"):
            teacher = self.teacher_repository.get_active(teacher_id)
        if teacher is None:
            raise NotFoundException(f"Teacher {teacher_id} not found", code="TEACHER_NOT_FOUND")
        return teacher

    def _ensure_no_overlap(
        self,
        teacher_id: str,
        day_of_week: int,
        start_minutes: int,
        end_minutes: int,
        new_range: str,
        exclude_slot_id: Optional[str] = None,
    ) -> None:
        with self.repository_errors("slot overlap check"):
            existing = self.repository.get_active_slots(teacher_id, day_of_week=day_of_week)
        for slot in existing:
            if slot.id == exclude_slot_id:
                continue
            if slot.start_minutes < end_minutes and slot.end_minutes > start_minutes:
                raise SlotOverlapException(
                    day_of_week=day_of_week,
                    new_range=new_range,
                    conflicting_range=format_slot_range(slot),
                    conflicting_id=slot.id,
                )

    @BaseService.measure_operation("create_slot")
    def create_slot(self, data: WeeklySlotCreate) -> WeeklyAvailabilitySlot:
        teacher = self._get_teacher(data.teacher_id)
        start_minutes = time_to_minutes(data.start_time)
        end_minutes = time_to_minutes(data.end_time, is_end_time=True)
        if end_minutes <= start_minutes:
            raise InvalidTimeRangeException(data.start_time, data.end_time)
        if data.timezone:
            TimezoneService.get_timezone(data.timezone)

        self._ensure_no_overlap(
            teacher.id,
            data.day_of_week,
            start_minutes,
            end_minutes,
            new_range=f"{data.start_time}-{data.end_time}",
        )

        with self.transaction():
            slot = self.repository.create(
                teacher_id=teacher.id,
                day_of_week=data.day_of_week,
                start_time=data.start_time,
                end_time=data.end_time,
                timezone=data.timezone or teacher.timezone,
                effective_from=data.effective_from,
                effective_to=data.effective_to,
                status=RecordStatus.ACTIVE.value,
            )
            teacher.availability_mode = AvailabilityMode.CUSTOM.value

        self.log_operation("create_slot", teacher_id=teacher.id, slot_id=slot.id)
        return slot

    def _get_slot(self, slot_id: str) -> WeeklyAvailabilitySlot:
        with self.repository_errors("slot lookup"):
            slot = self.repository.get_by_id(slot_id)
        if slot is None:
            raise NotFoundException(f"Slot {slot_id} not found", code="SLOT_NOT_FOUND")
        return slot

    @BaseService.measure_operation("update_slot")
    def update_slot(self, slot_id: str, data: WeeklySlotUpdate) -> WeeklyAvailabilitySlot:
        slot = self._get_slot(slot_id)
        start_time = data.start_time or slot.start_time
        end_time = data.end_time or slot.end_time
        start_minutes = time_to_minutes(start_time)
        end_minutes = time_to_minutes(end_time, is_end_time=True)
        if end_minutes <= start_minutes:
            raise InvalidTimeRangeException(start_time, end_time)
        if data.timezone:
            TimezoneService.get_timezone(data.timezone)

        if slot.status == RecordStatus.ACTIVE.value:
            self._ensure_no_overlap(
                slot.teacher_id,
                slot.day_of_week,
                start_minutes,
                end_minutes,
                new_range=f"{start_time}-{end_time}",
                exclude_slot_id=slot.id,
            )

        with self.transaction():
            slot.start_time = start_time
            slot.end_time = end_time
            for field in ("timezone", "effective_from", "effective_to"):
                value = getattr(data, field)
                if value is not None:
                    setattr(slot, field, value)
        return slot

    @BaseService.measure_operation("deactivate_slot")
    def deactivate_slot(self, slot_id: str) -> WeeklyAvailabilitySlot:
        slot = self._get_slot(slot_id)
        teacher = self._get_teacher(slot.teacher_id)

        with self.transaction():
            slot.status = RecordStatus.INACTIVE.value
            self.repository.flush()
            remaining = self.repository.get_active_slots(teacher.id)
            if not remaining:
                teacher.availability_mode = AvailabilityMode.DEFAULT_ALWAYS_AVAILABLE.value

        self.log_operation("deactivate_slot", teacher_id=teacher.id, slot_id=slot.id)
        return slot

    @BaseService.measure_operation("create_unavailability")
    def create_unavailability(self, data: UnavailabilityCreate) -> UnavailabilityPeriod:
        teacher = self._get_teacher(data.teacher_id)
        start = TimezoneService.ensure_utc(data.start_at)
        end = TimezoneService.ensure_utc(data.end_at)
        if end <= start:
            raise InvalidTimeRangeException(start, end)

        with self.transaction():
            period = self.repository.create_unavailability(
                teacher_id=teacher.id,
                start_at=start,
                end_at=end,
                reason=data.reason.value,
                description=data.description,
                approval_status=data.approval_status.value,
                status=RecordStatus.ACTIVE.value,
            )
        return period

    @BaseService.measure_operation("deactivate_unavailability")
    def deactivate_unavailability(self, period_id: str) -> UnavailabilityPeriod:
        with self.repository_errors("unavailability lookup"):
            period = self.repository.get_unavailability(period_id)
        if period is None:
            raise NotFoundException(
                f"Unavailability period {period_id} not found", code="UNAVAILABILITY_NOT_FOUND"
            )
        with self.transaction():
            period.status = RecordStatus.INACTIVE.value
        return period
