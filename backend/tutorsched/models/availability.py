# backend/tutorsched/models/availability.py
"""
Availability models.

Classes:
    WeeklyAvailabilitySlot: Recurring weekly window in the teacher's local time
    UnavailabilityPeriod: Absolute UTC range during which the teacher is blocked

Both are soft-deactivated through ``status``; rows are never hard-deleted
while history may reference them.
"""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import ApprovalStatus, RecordStatus, UnavailabilityReason
from ..database import Base
from ..utils.time_utils import time_to_minutes
from .types import UTCDateTime


class WeeklyAvailabilitySlot(Base):
    """Weekly slot; ``day_of_week`` uses 0 = Sunday and times are local ``HH:MM``."""

    __tablename__ = "weekly_availability_slots"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    timezone = Column(String(64), nullable=True)
    effective_from = Column(Date, nullable=True)
    effective_to = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=RecordStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    teacher = relationship("TeacherProfile")

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_slot_day_of_week"),
        Index("idx_weekly_slots_teacher_day_status", "teacher_id", "day_of_week", "status"),
    )

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time, is_end_time=True)

    def is_effective_on(self, local_date) -> bool:
        if self.effective_from is not None and local_date < self.effective_from:
            return False
        if self.effective_to is not None and local_date > self.effective_to:
            return False
        return True

    def __repr__(self) -> str:
        return f"<WeeklyAvailabilitySlot day={self.day_of_week} {self.start_time}-{self.end_time}>"


class UnavailabilityPeriod(Base):
    """Vacation, sick leave or other block; only approved, active rows block bookings."""

    __tablename__ = "unavailability_periods"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False
    )
    start_at = Column(UTCDateTime, nullable=False)
    end_at = Column(UTCDateTime, nullable=False)
    reason = Column(String(32), nullable=False, default=UnavailabilityReason.PERSONAL.value)
    description = Column(Text, nullable=True)
    approval_status = Column(String(20), nullable=False, default=ApprovalStatus.APPROVED.value)
    status = Column(String(20), nullable=False, default=RecordStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_unavailability_range"),
        Index("idx_unavailability_teacher_range", "teacher_id", "start_at", "end_at"),
    )

    def __repr__(self) -> str:
        return f"<UnavailabilityPeriod {self.reason} {self.start_at} - {self.end_at}>"
