# backend/tutorsched/schemas/search.py
"""Teacher search schemas."""

import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from ..core.enums import MatchType
from ..utils.time_utils import parse_hhmm
from ._strict_base import StrictModel, StrictRequestModel

DateTimeType = datetime.datetime


class RequestedTimeSlot(StrictRequestModel):
    """A local ``HH:MM`` window; without ``day_of_week`` it applies to every preferred day."""

    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: str
    end_time: str

    @model_validator(mode="after")
    def validate_range(self) -> "RequestedTimeSlot":
        if parse_hhmm(self.end_time, allow_end_of_day=True) <= parse_hhmm(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class AgeRange(StrictRequestModel):
    min: int = Field(..., ge=0)
    max: int = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_order(self) -> "AgeRange":
        if self.max < self.min:
            raise ValueError("Age range max must be >= min")
        return self


class SearchFilters(StrictRequestModel):
    age_range: Optional[AgeRange] = None
    student_age: Optional[int] = Field(None, ge=0)
    gender_preference: Literal["male", "female", "any"] = "any"
    subjects: List[str] = Field(default_factory=list)


class TeacherSearchRequest(StrictRequestModel):
    preferred_days: List[int] = Field(default_factory=list, description="Empty = all days")
    time_slots: List[RequestedTimeSlot] = Field(default_factory=list)
    duration_minutes: int = Field(60, gt=0, le=24 * 60)
    filters: SearchFilters = Field(default_factory=SearchFilters)
    allow_flexible: bool = True
    timezone: Optional[str] = Field(
        None, description="Zone the requested HH:MM windows are expressed in"
    )
    teacher_ids: Optional[List[str]] = None

    @field_validator("preferred_days")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError(f"Invalid day of week: {day}")
        return sorted(set(v))


class SearchTeachersRequest(StrictRequestModel):
    request: TeacherSearchRequest
    display_timezone: Optional[str] = None


class MatchedSegment(StrictModel):
    day_of_week: int
    day_name: str
    start: DateTimeType
    end: DateTimeType
    display_start: str
    display_end: str
    display_timezone: str
    duration_minutes: int
    match_score: int
    match_type: MatchType


class TeacherMatch(StrictModel):
    teacher_id: str
    name: str
    timezone: str
    score: int
    segments: List[MatchedSegment]


class SearchStats(StrictModel):
    total_teachers: int = 0
    exact_matches: int = 0
    flexible_matches: int = 0
    excluded_by_filters: int = 0
    no_availability: int = 0
    errors: int = 0


class TeacherSearchResult(StrictModel):
    exact_matches: List[TeacherMatch] = Field(default_factory=list)
    flexible_matches: List[TeacherMatch] = Field(default_factory=list)
    stats: SearchStats = Field(default_factory=SearchStats)
    display_timezone: Optional[str] = None
    message: str = ""
