# backend/tutorsched/services/availability_engine.py
"""
Availability Engine for the scheduling core.

Decides whether a teacher can be booked for a candidate UTC window and
computes free segments. Weekly slots live in local wall-clock time; every
other comparison happens in UTC at millisecond granularity.

Decision order for ``is_available``:
1. No active weekly slots and ``default_always_available`` mode -> baseline
   (a ``custom`` teacher without usable slots is never bookable)
2. Otherwise the window must fit inside one slot in that slot's timezone
   (same local day, same weekday, inside [start, end] in minutes of day)
3. Approved, active unavailability periods
4. Scheduled / in-progress class occurrences
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.clock import Clock, SystemClock
from ..core.config import settings
from ..core.constants import (
    ALTERNATIVE_STEP_MINUTES,
    COMMON_TEACHING_HOURS,
    MAX_ALTERNATIVES,
    MINUTES_PER_DAY,
)
from ..core.enums import AvailabilityMode, BusyIntervalType, ConflictType
from ..core.exceptions import InvalidTimeRangeException, NotFoundException, ValidationException
from ..models.availability import WeeklyAvailabilitySlot
from ..models.teacher import TeacherProfile
from ..repositories.factory import RepositoryFactory
from ..schemas.availability import (
    AlternativeSlot,
    AvailabilityResult,
    ComplianceReport,
    SegmentResponse,
    conflict_details_from,
)
from ..utils.intervals import BusyInterval, TimeSegment, merge_intervals, subtract, to_epoch_ms
from ..utils.time_utils import minutes_to_time_str
from .base import BaseService
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)


def slot_timezone(slot: WeeklyAvailabilitySlot, teacher_timezone: Optional[str]) -> str:
    return slot.timezone or teacher_timezone or settings.default_timezone


def slot_fits(
    slot: WeeklyAvailabilitySlot,
    teacher_timezone: Optional[str],
    start_utc: datetime,
    end_utc: datetime,
) -> bool:
    """
    Whether a UTC window fits entirely inside ``slot`` in the slot's timezone.

    Windows that start and end on different local calendar days never fit.
    """
    tz = slot_timezone(slot, teacher_timezone)
    start_local = TimezoneService.utc_to_local(start_utc, tz)
    end_local = TimezoneService.utc_to_local(end_utc, tz)

    if start_local.date() != end_local.date():
        return False
    if slot.day_of_week != TimezoneService.day_of_week(start_local):
        return False
    if not slot.is_effective_on(start_local.date()):
        return False

    requested_start = start_local.hour * 60 + start_local.minute
    requested_end = end_local.hour * 60 + end_local.minute
    return requested_start >= slot.start_minutes and requested_end <= slot.end_minutes


def fits_any_slot(
    slots: Iterable[WeeklyAvailabilitySlot],
    teacher_timezone: Optional[str],
    start_utc: datetime,
    end_utc: datetime,
) -> bool:
    return any(slot_fits(slot, teacher_timezone, start_utc, end_utc) for slot in slots)


def uses_default_baseline(
    teacher: TeacherProfile, slots: Sequence[WeeklyAvailabilitySlot]
) -> bool:
    """True when the teacher has no active slots and has not opted into custom hours."""
    mode = teacher.availability_mode or AvailabilityMode.DEFAULT_ALWAYS_AVAILABLE.value
    return not slots and mode == AvailabilityMode.DEFAULT_ALWAYS_AVAILABLE.value


def local_window(local_date: date, start_minutes: int, end_minutes: int, tz: str) -> TimeSegment:
    """UTC range for ``[start_minutes, end_minutes)`` on ``local_date``; 1440 is next midnight."""

    def _at(minutes: int) -> datetime:
        day = local_date + timedelta(days=minutes // MINUTES_PER_DAY)
        minutes %= MINUTES_PER_DAY
        return TimezoneService.local_to_utc(day, time(minutes // 60, minutes % 60), tz)

    return TimeSegment(start=_at(start_minutes), end=_at(end_minutes))


def slot_window_on(
    slot: WeeklyAvailabilitySlot, local_date: date, teacher_timezone: Optional[str]
) -> Optional[TimeSegment]:
    """The slot's UTC window on ``local_date``, or None when it does not apply that day."""
    if slot.day_of_week != (local_date.weekday() + 1) % 7 or not slot.is_effective_on(local_date):
        return None
    return local_window(
        local_date, slot.start_minutes, slot.end_minutes, slot_timezone(slot, teacher_timezone)
    )


class AvailabilityEngine(BaseService):
    """
    Point-in-time bookability and free-segment computation.

    Holds no scheduling state between calls: every method re-reads slots,
    unavailability and occurrences from the session.
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        availability_repository=None,
        teacher_repository=None,
    ):
        super().__init__(db)
        self.clock = clock or SystemClock()
        self.repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )
        self.teacher_repository = (
            teacher_repository or RepositoryFactory.create_teacher_repository(db)
        )

    # Lookups

    def get_teacher(self, teacher_id: str) -> TeacherProfile:
        with self.repository_errors("teacher lookup"):
            teacher = self.teacher_repository.get_active(teacher_id)
        if teacher is None:
            raise NotFoundException(
                f"Teacher {teacher_id} not found", code="TEACHER_NOT_FOUND"
            )
        return teacher

    def get_active_slots(self, teacher_id: str) -> List[WeeklyAvailabilitySlot]:
        """Active slots not yet expired; an empty list means the default baseline applies."""
        today = self.clock.now().date()
        with self.repository_errors("slot lookup"):
            return self.repository.get_active_slots(teacher_id, as_of=today)

    @staticmethod
    def _validate_window(start_utc: datetime, end_utc: datetime) -> Tuple[datetime, datetime]:
        start = TimezoneService.ensure_utc(start_utc)
        end = TimezoneService.ensure_utc(end_utc)
        if to_epoch_ms(end) <= to_epoch_ms(start):
            raise InvalidTimeRangeException(start, end)
        return start, end

    # Core operations

    @BaseService.measure_operation("is_available")
    def is_available(
        self,
        teacher_id: str,
        start_utc: datetime,
        end_utc: datetime,
        exclude_occurrence_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Check whether the teacher can be booked for ``[start_utc, end_utc)``.

        Never raises for a normal "not available" outcome.

        Raises:
            InvalidTimeRangeException: end <= start
            NotFoundException: unknown teacher
            UpstreamUnavailableException: persistence failure
        """
        start, end = self._validate_window(start_utc, end_utc)
        teacher = self.get_teacher(teacher_id)
        slots = self.get_active_slots(teacher_id)
        return self._evaluate(teacher, slots, start, end, exclude_occurrence_id)

    def _evaluate(
        self,
        teacher: TeacherProfile,
        slots: Sequence[WeeklyAvailabilitySlot],
        start: datetime,
        end: datetime,
        exclude_occurrence_id: Optional[str] = None,
    ) -> AvailabilityResult:
        if not uses_default_baseline(teacher, slots) and not fits_any_slot(
            slots, teacher.timezone, start, end
        ):
            return AvailabilityResult(
                available=False,
                reason="Teacher not available during this time",
                conflict_type=ConflictType.NO_WEEKLY_SLOT,
            )
        return self.check_conflicts(teacher.id, start, end, exclude_occurrence_id)

    def check_conflicts(
        self,
        teacher_id: str,
        start: datetime,
        end: datetime,
        exclude_occurrence_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """Unavailability first, then existing classes; the earliest conflict is reported."""
        with self.repository_errors("conflict check"):
            periods = self.repository.get_blocking_unavailability(teacher_id, start, end)
            if periods:
                period = periods[0]
                return AvailabilityResult(
                    available=False,
                    reason=f"Teacher marked unavailable: {period.reason}",
                    conflict_type=ConflictType.UNAVAILABLE_PERIOD,
                    conflict_details=conflict_details_from(
                        period, reason=period.reason, description=period.description
                    ),
                )

            occurrences = self.repository.get_busy_occurrences(
                teacher_id, start, end, exclude_occurrence_id
            )
        if occurrences:
            occurrence = occurrences[0]
            counterpart = occurrence.student_name or occurrence.student_id
            return AvailabilityResult(
                available=False,
                reason=(
                    f"Teacher has existing class with {counterpart} from "
                    f"{occurrence.scheduled_at.strftime('%H:%M')} to "
                    f"{occurrence.ends_at.strftime('%H:%M')} UTC"
                ),
                conflict_type=ConflictType.EXISTING_CLASS,
                conflict_details=conflict_details_from(
                    occurrence, student_name=occurrence.student_name, subject=occurrence.subject
                ),
            )

        return AvailabilityResult(available=True, reason="Teacher is available")

    def busy_intervals(
        self, teacher_id: str, start: datetime, end: datetime
    ) -> List[BusyInterval]:
        """Merged busy intervals (classes and approved unavailability) overlapping the window."""
        with self.repository_errors("busy interval lookup"):
            occurrences = self.repository.get_busy_occurrences(teacher_id, start, end)
            periods = self.repository.get_blocking_unavailability(teacher_id, start, end)

        intervals = [
            BusyInterval(
                start=occ.scheduled_at,
                end=occ.ends_at,
                type=BusyIntervalType.CLASS.value,
                meta={"id": occ.id, "subject": occ.subject, "student_name": occ.student_name},
            )
            for occ in occurrences
        ]
        intervals.extend(
            BusyInterval(
                start=period.start_at,
                end=period.end_at,
                type=BusyIntervalType.UNAVAILABLE.value,
                meta={"id": period.id, "reason": period.reason, "description": period.description},
            )
            for period in periods
        )
        return merge_intervals(intervals)

    def free_segments_in(self, teacher_id: str, window: TimeSegment) -> List[TimeSegment]:
        """Free segments for an already validated window, without the teacher lookup."""
        if to_epoch_ms(window.end) <= to_epoch_ms(window.start):
            return []
        return subtract(window, self.busy_intervals(teacher_id, window.start, window.end))

    @BaseService.measure_operation("free_segments")
    def free_segments(
        self, teacher_id: str, window_start_utc: datetime, window_end_utc: datetime
    ) -> List[TimeSegment]:
        """Ordered, non-overlapping free UTC segments inside the window."""
        start, end = self._validate_window(window_start_utc, window_end_utc)
        self.get_teacher(teacher_id)
        return self.free_segments_in(teacher_id, TimeSegment(start=start, end=end))

    @BaseService.measure_operation("describe_free_time")
    def describe_free_time(
        self,
        teacher_id: str,
        window_start_utc: datetime,
        window_end_utc: datetime,
        display_timezone: Optional[str] = None,
    ) -> List[SegmentResponse]:
        """Free segments with ``display_*`` fields rendered in ``display_timezone``."""
        segments = self.free_segments(teacher_id, window_start_utc, window_end_utc)
        tz = display_timezone or self.get_teacher(teacher_id).timezone
        TimezoneService.get_timezone(tz)
        return [
            SegmentResponse(
                start=segment.start,
                end=segment.end,
                duration_minutes=segment.duration_minutes,
                display_start=TimezoneService.utc_to_local(segment.start, tz).strftime(
                    "%a %Y-%m-%d %H:%M"
                ),
                display_end=TimezoneService.utc_to_local(segment.end, tz).strftime(
                    "%a %Y-%m-%d %H:%M"
                ),
            )
            for segment in segments
        ]

    # Alternatives and compliance

    @BaseService.measure_operation("suggest_alternatives")
    def suggest_alternatives(
        self,
        teacher_id: str,
        duration_minutes: int,
        preferred_days: Optional[Sequence[int]] = None,
        look_ahead_days: Optional[int] = None,
        limit: int = MAX_ALTERNATIVES,
    ) -> List[AlternativeSlot]:
        """
        Propose bookable windows over the next ``look_ahead_days`` days.

        Teachers with weekly slots get candidates at 30-minute steps inside
        each slot; default-available teachers get common teaching hours in
        their own timezone. Every candidate is validated like a booking.
        """
        if duration_minutes <= 0:
            raise ValidationException("Duration must be positive", code="INVALID_DURATION")
        look_ahead = look_ahead_days or settings.alternatives_look_ahead_days
        preferred = set(preferred_days or [])

        teacher = self.get_teacher(teacher_id)
        slots = self.get_active_slots(teacher_id)
        now = self.clock.now()

        alternatives: List[AlternativeSlot] = []
        for offset in range(look_ahead):
            for tz, local_date, start_minutes in self._candidate_starts(
                teacher, slots, now, offset, duration_minutes
            ):
                if preferred and (local_date.weekday() + 1) % 7 not in preferred:
                    continue
                start = TimezoneService.local_to_utc(
                    local_date, time(start_minutes // 60, start_minutes % 60), tz
                )
                end = start + timedelta(minutes=duration_minutes)
                if start < now:
                    continue
                if not self._evaluate(teacher, slots, start, end).available:
                    continue
                alternatives.append(
                    AlternativeSlot(
                        start=start,
                        end=end,
                        timezone=tz,
                        local_date=local_date,
                        local_start=TimezoneService.format_time(start, tz),
                        local_end=TimezoneService.format_time(end, tz),
                    )
                )
                if len(alternatives) >= limit:
                    return alternatives
        return alternatives

    def _candidate_starts(
        self,
        teacher: TeacherProfile,
        slots: Sequence[WeeklyAvailabilitySlot],
        now: datetime,
        day_offset: int,
        duration_minutes: int,
    ) -> Iterable[Tuple[str, date, int]]:
        if uses_default_baseline(teacher, slots):
            tz = teacher.timezone or settings.default_timezone
            local_date = TimezoneService.utc_to_local(now, tz).date() + timedelta(days=day_offset)
            for hour in COMMON_TEACHING_HOURS:
                yield tz, local_date, hour * 60
            return

        for slot in slots:
            tz = slot_timezone(slot, teacher.timezone)
            local_date = TimezoneService.utc_to_local(now, tz).date() + timedelta(days=day_offset)
            if slot.day_of_week != (local_date.weekday() + 1) % 7:
                continue
            last_start = min(slot.end_minutes, MINUTES_PER_DAY - 1) - duration_minutes
            for minutes in range(slot.start_minutes, last_start + 1, ALTERNATIVE_STEP_MINUTES):
                yield tz, local_date, minutes

    @BaseService.measure_operation("check_compliance")
    def check_compliance(
        self, teacher_id: str, min_days_per_week: int, min_hours_per_day: float
    ) -> ComplianceReport:
        """Whether the teacher's weekly slots meet a days-per-week / hours-per-day minimum."""
        teacher = self.get_teacher(teacher_id)
        slots = self.get_active_slots(teacher_id)

        if uses_default_baseline(teacher, slots):
            return ComplianceReport(
                compliant=True,
                mode=AvailabilityMode.DEFAULT_ALWAYS_AVAILABLE.value,
                required_days=min_days_per_week,
                required_hours_per_day=min_hours_per_day,
                detail=f"{teacher.display_name} is using default always-available mode",
            )

        hours_by_day: dict[int, float] = {}
        for slot in slots:
            minutes = slot.end_minutes - slot.start_minutes
            hours_by_day[slot.day_of_week] = hours_by_day.get(slot.day_of_week, 0.0) + minutes / 60

        days_meeting = sum(1 for hours in hours_by_day.values() if hours >= min_hours_per_day)
        compliant = days_meeting >= min_days_per_week
        detail = (
            "Teacher meets all availability requirements"
            if compliant
            else (
                f"Teacher needs {min_days_per_week - days_meeting} more days with "
                f"{min_hours_per_day:g} hours each"
            )
        )
        return ComplianceReport(
            compliant=compliant,
            mode=AvailabilityMode.CUSTOM.value,
            days_meeting_minimum=days_meeting,
            required_days=min_days_per_week,
            hours_by_day=dict(sorted(hours_by_day.items())),
            required_hours_per_day=min_hours_per_day,
            detail=detail,
        )


def format_slot_range(slot: WeeklyAvailabilitySlot) -> str:
    return f"{minutes_to_time_str(slot.start_minutes)}-{minutes_to_time_str(slot.end_minutes)}"
