# backend/tutorsched/models/recurring_pattern.py
"""
Recurring class patterns.

A pattern either carries explicit per-weekday slots (RecurringPatternSlot
rows) or relies on a single slot derived from ``anchor_scheduled_at``.
``generated_through`` is the last UTC date fully materialized.
"""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import AnchorTimezone, RecordStatus
from ..database import Base
from .types import UTCDateTime


class RecurringPattern(Base):
    __tablename__ = "recurring_patterns"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(
        String(26), ForeignKey("teacher_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = Column(String(26), nullable=False)
    student_name = Column(String(200), nullable=True)
    subject = Column(String(200), nullable=True)

    anchor_timezone = Column(String(16), nullable=False, default=AnchorTimezone.STUDENT.value)
    timezone = Column(String(64), nullable=False)
    anchor_scheduled_at = Column(UTCDateTime, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=60)

    horizon_months = Column(Integer, nullable=False, default=2)
    end_date = Column(Date, nullable=True)
    generated_through = Column(Date, nullable=True)
    last_generated_at = Column(UTCDateTime, nullable=True)

    status = Column(String(20), nullable=False, default=RecordStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    slots = relationship(
        "RecurringPatternSlot",
        back_populates="pattern",
        cascade="all, delete-orphan",
        order_by="RecurringPatternSlot.day_of_week",
    )

    __table_args__ = (
        CheckConstraint("horizon_months >= 1 AND horizon_months <= 12", name="ck_pattern_horizon"),
    )

    def __repr__(self) -> str:
        return f"<RecurringPattern {self.id} teacher={self.teacher_id} through={self.generated_through}>"


class RecurringPatternSlot(Base):
    """One weekday entry of an explicit pattern, in the slot's own timezone."""

    __tablename__ = "recurring_pattern_slots"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    pattern_id = Column(
        String(26), ForeignKey("recurring_patterns.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week = Column(Integer, nullable=False)
    hour = Column(Integer, nullable=False)
    minute = Column(Integer, nullable=False, default=0)
    duration_minutes = Column(Integer, nullable=True)
    timezone = Column(String(64), nullable=True)

    pattern = relationship("RecurringPattern", back_populates="slots")

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_pattern_slot_day"),
        CheckConstraint("hour >= 0 AND hour <= 23", name="ck_pattern_slot_hour"),
        CheckConstraint("minute >= 0 AND minute <= 59", name="ck_pattern_slot_minute"),
    )
