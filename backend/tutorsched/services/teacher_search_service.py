# backend/tutorsched/services/teacher_search_service.py
"""
Teacher Search Service.

Answers "which teachers are free for X" by running the Availability
Engine once per candidate teacher:
- filters (age range, gender, subjects) are applied first; failing
  teachers are counted as excluded and never evaluated
- a day with no requested windows is searched "any time": the teacher's
  slot windows on that day, or the whole local day for a teacher in
  default-always-available mode without weekly slots
- a requested window must fit one of the teacher's slots (default-
  available teachers without slots skip this test) and is then cut down
  to its free segments
- when no requested window yields anything, the day is retried as
  "any time" and its results are flexible matches

Each teacher is evaluated independently; one teacher's failure or
timeout is counted in the stats and does not affect the others.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from datetime import date, timedelta
import logging
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.clock import Clock, SystemClock
from ..core.config import settings
from ..core.constants import DAY_NAMES, MINUTES_PER_DAY, SEGMENT_MATCH_SCORE
from ..core.enums import MatchType
from ..models.availability import WeeklyAvailabilitySlot
from ..models.teacher import TeacherProfile
from ..repositories.factory import RepositoryFactory
from ..schemas.search import (
    MatchedSegment,
    RequestedTimeSlot,
    SearchFilters,
    TeacherMatch,
    TeacherSearchRequest,
    TeacherSearchResult,
)
from ..utils.intervals import TimeSegment
from ..utils.time_utils import parse_hhmm
from .availability_engine import (
    AvailabilityEngine,
    fits_any_slot,
    local_window,
    slot_window_on,
    uses_default_baseline,
)
from .base import BaseService
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

ALL_DAYS = list(range(7))
SEARCH_FAILED_MESSAGE = "Error generating share message"


def format_duration_label(minutes: int) -> str:
    if minutes <= 0:
        return ""
    hours, mins = divmod(minutes, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if mins:
        parts.append(f"{mins}m")
    return " ".join(parts)


def passes_filters(teacher: TeacherProfile, filters: SearchFilters) -> bool:
    """Age, gender and subject preferences; all must hold."""
    if filters.age_range is not None or filters.student_age is not None:
        if filters.age_range is not None:
            requested_min, requested_max = filters.age_range.min, filters.age_range.max
        else:
            requested_min = requested_max = filters.student_age
        gender = filters.gender_preference if filters.gender_preference != "any" else None
        accepted_min, accepted_max = teacher.age_range_for(gender)
        if requested_min < accepted_min or requested_max > accepted_max:
            return False

    if filters.gender_preference != "any" and teacher.gender != filters.gender_preference:
        return False

    if filters.subjects:
        taught = [s.lower() for s in (teacher.subjects or [])]
        wanted = [s.lower() for s in filters.subjects]
        if not any(w in t for w in wanted for t in taught):
            return False

    return True


def plan_days(request: TeacherSearchRequest) -> Dict[int, List[RequestedTimeSlot]]:
    """Map each weekday under consideration to its requested windows ([] = any time)."""
    days = request.preferred_days or ALL_DAYS
    plan: Dict[int, List[RequestedTimeSlot]] = {day: [] for day in days}
    for requested in request.time_slots:
        if requested.day_of_week is not None:
            plan.setdefault(requested.day_of_week, []).append(requested)
        else:
            for day in days:
                plan[day].append(requested)
    return dict(sorted(plan.items()))


class TeacherSearchService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        session_factory: Optional[Callable[[], Session]] = None,
        max_workers: Optional[int] = None,
    ):
        super().__init__(db)
        self.clock = clock or SystemClock()
        self.session_factory = session_factory
        self.max_workers = max_workers or settings.search_max_workers
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)

    def sample_date(self, day_of_week: int, timezone_name: str) -> date:
        """Next local date (today included) falling on ``day_of_week``."""
        today = TimezoneService.utc_to_local(self.clock.now(), timezone_name).date()
        days_ahead = (day_of_week - TimezoneService.day_of_week(today)) % 7
        return today + timedelta(days=days_ahead)

    @staticmethod
    def _to_segment(
        segment: TimeSegment, day_of_week: int, display_tz: str, match_type: MatchType
    ) -> MatchedSegment:
        duration = segment.duration_minutes
        return MatchedSegment(
            day_of_week=day_of_week,
            day_name=DAY_NAMES[day_of_week],
            start=segment.start,
            end=segment.end,
            display_start=TimezoneService.format_time(segment.start, display_tz),
            display_end=(
                "24:00" if duration >= MINUTES_PER_DAY else TimezoneService.format_time(segment.end, display_tz)
            ),
            display_timezone=display_tz,
            duration_minutes=duration,
            match_score=SEGMENT_MATCH_SCORE,
            match_type=match_type,
        )

    def _any_time_windows(
        self, teacher: TeacherProfile, slots: List[WeeklyAvailabilitySlot], day: date
    ) -> List[TimeSegment]:
        if uses_default_baseline(teacher, slots):
            return [local_window(day, 0, MINUTES_PER_DAY, teacher.timezone or settings.default_timezone)]
        windows = [slot_window_on(slot, day, teacher.timezone) for slot in slots]
        return [w for w in windows if w is not None]

    def _requested_windows(
        self,
        teacher: TeacherProfile,
        slots: List[WeeklyAvailabilitySlot],
        requested: List[RequestedTimeSlot],
        day: date,
        reference_tz: str,
    ) -> List[TimeSegment]:
        windows = []
        for item in requested:
            window = local_window(
                day,
                parse_hhmm(item.start_time),
                parse_hhmm(item.end_time, allow_end_of_day=True),
                reference_tz,
            )
            if not uses_default_baseline(teacher, slots) and not fits_any_slot(
                slots, teacher.timezone, window.start, window.end
            ):
                continue
            windows.append(window)
        return windows

    def evaluate_teacher(
        self,
        db: Session,
        teacher: TeacherProfile,
        request: TeacherSearchRequest,
        display_timezone: Optional[str],
    ) -> Optional[TeacherMatch]:
        """Matched segments for one teacher, or None when nothing is free."""
        engine = AvailabilityEngine(db, clock=self.clock)
        slots = engine.get_active_slots(teacher.id)
        teacher_tz = teacher.timezone or settings.default_timezone
        reference_tz = request.timezone or teacher_tz
        display_tz = display_timezone or teacher_tz

        def free(windows: List[TimeSegment]) -> List[TimeSegment]:
            found = []
            for window in windows:
                for segment in engine.free_segments_in(teacher.id, window):
                    if segment.duration_minutes >= request.duration_minutes:
                        found.append(segment)
            return found

        exact: List[MatchedSegment] = []
        flexible: List[MatchedSegment] = []
        for day_of_week, requested in plan_days(request).items():
            day = self.sample_date(day_of_week, reference_tz)
            if not requested:
                windows = self._any_time_windows(teacher, slots, day)
                exact.extend(
                    self._to_segment(s, day_of_week, display_tz, MatchType.EXACT) for s in free(windows)
                )
                continue

            segments = free(self._requested_windows(teacher, slots, requested, day, reference_tz))
            if segments:
                exact.extend(self._to_segment(s, day_of_week, display_tz, MatchType.EXACT) for s in segments)
            elif request.allow_flexible:
                relaxed = free(self._any_time_windows(teacher, slots, day))
                flexible.extend(
                    self._to_segment(s, day_of_week, display_tz, MatchType.FLEXIBLE) for s in relaxed
                )

        segments = exact or flexible
        if not segments:
            return None
        return TeacherMatch(
            teacher_id=teacher.id,
            name=teacher.display_name,
            timezone=teacher_tz,
            score=SEGMENT_MATCH_SCORE * len(segments),
            segments=segments,
        )

    def _evaluate_isolated(
        self, teacher: TeacherProfile, request: TeacherSearchRequest, display_timezone: Optional[str]
    ) -> Optional[TeacherMatch]:
        db = self.session_factory()
        try:
            return self.evaluate_teacher(db, teacher, request, display_timezone)
        finally:
            db.close()

    def _evaluate_all(
        self,
        teachers: List[TeacherProfile],
        request: TeacherSearchRequest,
        display_timezone: Optional[str],
    ) -> List[Tuple[TeacherProfile, Optional[TeacherMatch], Optional[Exception]]]:
        outcomes = []
        if self.session_factory is None or self.max_workers <= 1:
            for teacher in teachers:
                try:
                    outcomes.append((teacher, self.evaluate_teacher(self.db, teacher, request, display_timezone), None))
                except Exception as exc:
                    self.db.rollback()
                    outcomes.append((teacher, None, exc))
            return outcomes

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="teacher-search")
        try:
            futures = [
                (teacher, executor.submit(self._evaluate_isolated, teacher, request, display_timezone))
                for teacher in teachers
            ]
            done, _ = wait([f for _, f in futures], timeout=settings.search_timeout_seconds)
            for teacher, future in futures:
                if future not in done:
                    future.cancel()
                    outcomes.append((teacher, None, TimeoutError(f"Search timed out for teacher {teacher.id}")))
                    continue
                try:
                    outcomes.append((teacher, future.result(), None))
                except Exception as exc:
                    outcomes.append((teacher, None, exc))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return outcomes

    @BaseService.measure_operation("search")
    def search(
        self, request: TeacherSearchRequest, display_timezone: Optional[str] = None
    ) -> TeacherSearchResult:
        """
        Search active teachers for free time matching ``request``.

        An unknown display or request timezone is rejected up front; any
        other failure degrades to an empty result with a diagnostic message.
        """
        if display_timezone:
            TimezoneService.get_timezone(display_timezone)
        if request.timezone:
            TimezoneService.get_timezone(request.timezone)

        try:
            with self.repository_errors("teacher listing"):
                teachers = self.teacher_repository.list_active(request.teacher_ids)

            result = TeacherSearchResult(display_timezone=display_timezone)
            stats = result.stats
            stats.total_teachers = len(teachers)

            candidates = []
            for teacher in teachers:
                if passes_filters(teacher, request.filters):
                    candidates.append(teacher)
                else:
                    stats.excluded_by_filters += 1

            for teacher, match, error in self._evaluate_all(candidates, request, display_timezone):
                if error is not None:
                    stats.errors += 1
                    self.logger.warning(
                        f"Search evaluation failed for teacher {teacher.id}: {str(error)}",
                        extra={"teacher_id": teacher.id},
                    )
                elif match is None:
                    stats.no_availability += 1
                elif match.segments[0].match_type == MatchType.EXACT:
                    result.exact_matches.append(match)
                    stats.exact_matches += 1
                else:
                    result.flexible_matches.append(match)
                    stats.flexible_matches += 1

            result.exact_matches.sort(key=lambda m: -m.score)
            result.flexible_matches.sort(key=lambda m: -m.score)
            result.message = self.build_share_message(result)
        except Exception as exc:
            self.logger.error(f"Teacher search failed: {str(exc)}")
            return TeacherSearchResult(display_timezone=display_timezone, message=SEARCH_FAILED_MESSAGE)

        self.log_operation(
            "search",
            total=stats.total_teachers,
            exact=stats.exact_matches,
            flexible=stats.flexible_matches,
        )
        return result

    @staticmethod
    def build_share_message(result: TeacherSearchResult) -> str:
        """Plain-text list of matching teachers and their free segments."""
        matches = result.exact_matches + result.flexible_matches
        lines = [f"Available teachers ({len(matches)}):"]
        for match in matches:
            lines.append(f"- {match.name} ({match.timezone})")
            for segment in match.segments:
                label = format_duration_label(segment.duration_minutes)
                suffix = f" • {label}" if label else ""
                lines.append(
                    f"   • {segment.day_name}: {segment.display_start} - {segment.display_end} "
                    f"({segment.display_timezone}){suffix}"
                )
        return "\n".join(lines)
