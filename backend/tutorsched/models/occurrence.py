# backend/tutorsched/models/occurrence.py
"""
Concrete class occurrences.

``scheduled_at``/``ends_at`` are UTC. ``anchor_timezone`` says whose wall
clock is authoritative and ``timezone`` names that zone; together with
``anchor_utc_offset_minutes`` they let the DST service recover the local
time an occurrence was booked for.
"""

from datetime import datetime, timedelta
from typing import Any, Dict

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.sql import func
import ulid

from ..core.enums import OccurrenceStatus
from ..database import Base
from .types import JSONType, UTCDateTime


class ClassOccurrence(Base):
    __tablename__ = "class_occurrences"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False
    )
    student_id = Column(String(26), nullable=False, index=True)
    student_name = Column(String(200), nullable=True)
    subject = Column(String(200), nullable=True)

    scheduled_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)

    anchor_timezone = Column(String(16), nullable=True)
    timezone = Column(String(64), nullable=True)
    anchor_utc_offset_minutes = Column(Integer, nullable=True)

    pattern_id = Column(
        String(26), ForeignKey("recurring_patterns.id", ondelete="SET NULL"), nullable=True
    )
    slot_key = Column(String(120), nullable=True)

    status = Column(String(20), nullable=False, default=OccurrenceStatus.SCHEDULED.value)
    dst_adjustments = Column(MutableList.as_mutable(JSONType), nullable=False, default=list)
    last_dst_check_at = Column(UTCDateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("pattern_id", "slot_key", name="uq_occurrence_pattern_slot_key"),
        Index("idx_occurrences_teacher_range", "teacher_id", "scheduled_at", "ends_at"),
        Index("idx_occurrences_timezone_scheduled", "timezone", "scheduled_at"),
    )

    def reschedule(self, new_start: datetime) -> None:
        self.scheduled_at = new_start
        self.ends_at = new_start + timedelta(minutes=self.duration_minutes)

    def record_dst_adjustment(self, entry: Dict[str, Any]) -> None:
        if self.dst_adjustments is None:
            self.dst_adjustments = []
        self.dst_adjustments.append(entry)

    def __repr__(self) -> str:
        return f"<ClassOccurrence {self.id} {self.scheduled_at} ({self.status})>"
