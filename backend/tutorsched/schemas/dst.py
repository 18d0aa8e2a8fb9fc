# backend/tutorsched/schemas/dst.py
"""DST transition and re-anchoring schemas."""

import datetime
from typing import List, Optional

from pydantic import Field

from ..core.enums import TransitionType
from ._strict_base import StrictModel, StrictRequestModel
from .recurrence import SweepError

DateTimeType = datetime.datetime


class DSTTransition(StrictModel):
    """An instant where a zone's UTC offset changes."""

    instant: DateTimeType
    type: TransitionType
    offset_before_minutes: int
    offset_after_minutes: int
    timezone: Optional[str] = None

    @property
    def delta_minutes(self) -> int:
        return self.offset_after_minutes - self.offset_before_minutes


class ReanchorRequest(StrictRequestModel):
    timezone: str
    transition: DSTTransition


class ReanchorResponse(StrictModel):
    timezone: str
    adjusted: int


class ReanchorReport(StrictModel):
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[SweepError] = Field(default_factory=list)


class DSTInfo(StrictModel):
    timezone: str
    year: int
    current_offset_minutes: int
    is_dst: bool
    transitions: List[DSTTransition]
    next_transition: Optional[DSTTransition] = None
    last_transition: Optional[DSTTransition] = None


class DSTCheckSummary(StrictModel):
    timezones_checked: int = 0
    warnings_queued: int = 0
    transitions_processed: int = 0
    adjusted: int = 0
    failed: int = 0
    errors: List[SweepError] = Field(default_factory=list)
    stopped_early: bool = False


class TimezoneValidationReport(StrictModel):
    """Active teachers whose stored zone is not a known IANA name."""

    checked: int = 0
    invalid: int = 0
    errors: List[SweepError] = Field(default_factory=list)
