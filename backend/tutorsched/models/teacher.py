# backend/tutorsched/models/teacher.py
"""
Teacher profile as seen by the scheduling engine.

Only the fields the engine and the search filters need live here: the
default timezone, the availability baseline and the matching preferences.
"""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func
import ulid

from ..core.config import settings
from ..core.constants import DEFAULT_MAX_STUDENT_AGE, DEFAULT_MIN_STUDENT_AGE
from ..core.enums import AvailabilityMode, RecordStatus
from ..database import Base
from .types import JSONType


class TeacherProfile(Base):
    __tablename__ = "teacher_profiles"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    display_name = Column(String(200), nullable=False)
    timezone = Column(String(64), nullable=False, default=lambda: settings.default_timezone)
    availability_mode = Column(
        String(32), nullable=False, default=AvailabilityMode.DEFAULT_ALWAYS_AVAILABLE.value
    )
    gender = Column(String(16), nullable=True)
    subjects = Column(JSONType, nullable=False, default=list)

    # Preferred student ages; gender-specific ranges fall back to the overall range
    min_student_age = Column(Integer, nullable=False, default=DEFAULT_MIN_STUDENT_AGE)
    max_student_age = Column(Integer, nullable=False, default=DEFAULT_MAX_STUDENT_AGE)
    male_min_student_age = Column(Integer, nullable=True)
    male_max_student_age = Column(Integer, nullable=True)
    female_min_student_age = Column(Integer, nullable=True)
    female_max_student_age = Column(Integer, nullable=True)

    status = Column(String(20), nullable=False, default=RecordStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def age_range_for(self, gender: str | None) -> tuple[int, int]:
        """Accepted (min, max) student age, using the gender-specific range when set."""
        overall = (
            self.min_student_age if self.min_student_age is not None else DEFAULT_MIN_STUDENT_AGE,
            self.max_student_age if self.max_student_age is not None else DEFAULT_MAX_STUDENT_AGE,
        )
        if gender == "male":
            specific = (self.male_min_student_age, self.male_max_student_age)
        elif gender == "female":
            specific = (self.female_min_student_age, self.female_max_student_age)
        else:
            return overall
        return (
            specific[0] if specific[0] is not None else overall[0],
            specific[1] if specific[1] is not None else overall[1],
        )

    def __repr__(self) -> str:
        return f"<TeacherProfile {self.id} {self.display_name} ({self.timezone})>"
