# backend/tutorsched/schemas/availability.py
"""
Availability schemas.

"Not available" is a normal outcome: AvailabilityResult carries the conflict
type and details instead of raising.
"""

import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.enums import ApprovalStatus, ConflictType, UnavailabilityReason
from ..utils.time_utils import parse_hhmm
from ._strict_base import StrictModel, StrictRequestModel

DateType = datetime.date
DateTimeType = datetime.datetime


class ConflictDetails(StrictModel):
    """Minimal description of whatever blocked a candidate window."""

    id: Optional[str] = None
    start: Optional[DateTimeType] = None
    end: Optional[DateTimeType] = None
    reason: Optional[str] = None
    description: Optional[str] = None
    student_name: Optional[str] = None
    subject: Optional[str] = None


class AvailabilityResult(StrictModel):
    available: bool
    reason: str
    conflict_type: Optional[ConflictType] = None
    conflict_details: Optional[ConflictDetails] = None


class AvailabilityCheckRequest(StrictRequestModel):
    teacher_id: str
    start_utc: DateTimeType
    end_utc: DateTimeType
    exclude_occurrence_id: Optional[str] = None


class FreeSegmentsRequest(StrictRequestModel):
    teacher_id: str
    window_start_utc: DateTimeType
    window_end_utc: DateTimeType
    display_timezone: Optional[str] = Field(
        None, description="IANA zone used only for the display_* fields"
    )


class SegmentResponse(StrictModel):
    start: DateTimeType
    end: DateTimeType
    duration_minutes: int
    display_start: Optional[str] = None
    display_end: Optional[str] = None


class FreeSegmentsResponse(StrictModel):
    teacher_id: str
    display_timezone: Optional[str] = None
    segments: List[SegmentResponse]


class AlternativeSlot(StrictModel):
    start: DateTimeType
    end: DateTimeType
    timezone: str
    local_date: DateType
    local_start: str
    local_end: str


class ComplianceReport(StrictModel):
    compliant: bool
    mode: str
    days_meeting_minimum: int = 0
    required_days: int = 0
    hours_by_day: Dict[int, float] = Field(default_factory=dict)
    required_hours_per_day: float = 0.0
    detail: str = ""


class WeeklySlotCreate(StrictRequestModel):
    """Weekly slot in local ``HH:MM``; ``end_time`` may be ``24:00``."""

    teacher_id: str
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday")
    start_time: str
    end_time: str
    timezone: Optional[str] = None
    effective_from: Optional[DateType] = None
    effective_to: Optional[DateType] = None

    @field_validator("start_time")
    @classmethod
    def validate_start(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @field_validator("end_time")
    @classmethod
    def validate_end(cls, v: str) -> str:
        parse_hhmm(v, allow_end_of_day=True)
        return v


class WeeklySlotUpdate(StrictRequestModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    timezone: Optional[str] = None
    effective_from: Optional[DateType] = None
    effective_to: Optional[DateType] = None


class WeeklySlotResponse(StrictModel):
    id: str
    teacher_id: str
    day_of_week: int
    start_time: str
    end_time: str
    timezone: Optional[str] = None
    effective_from: Optional[DateType] = None
    effective_to: Optional[DateType] = None
    status: str

    model_config = ConfigDict(from_attributes=True, extra="forbid")


class UnavailabilityCreate(StrictRequestModel):
    teacher_id: str
    start_at: DateTimeType
    end_at: DateTimeType
    reason: UnavailabilityReason = UnavailabilityReason.PERSONAL
    description: Optional[str] = Field(None, max_length=1000)
    approval_status: ApprovalStatus = ApprovalStatus.APPROVED


class UnavailabilityResponse(StrictModel):
    id: str
    teacher_id: str
    start_at: DateTimeType
    end_at: DateTimeType
    reason: str
    description: Optional[str] = None
    approval_status: str
    status: str

    model_config = ConfigDict(from_attributes=True, extra="forbid")


def conflict_details_from(entity: Any, **extra: Any) -> ConflictDetails:
    """Build details for an occurrence or unavailability row."""
    start = getattr(entity, "scheduled_at", None) or getattr(entity, "start_at", None)
    end = getattr(entity, "ends_at", None) or getattr(entity, "end_at", None)
    return ConflictDetails(id=entity.id, start=start, end=end, **extra)
