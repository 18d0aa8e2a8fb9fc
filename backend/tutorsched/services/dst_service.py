# backend/tutorsched/services/dst_service.py
"""
DST Re-anchor Service.

Detects UTC-offset transitions of a zone and keeps anchored occurrences
on the wall-clock time they were booked for when a transition moves the
zone's offset.

An occurrence records the offset that applied when its instant was
computed (``anchor_utc_offset_minutes``). Re-anchoring only shifts rows
still carrying the pre-transition offset, so applying the same
transition twice shifts nothing the second time.
"""

from datetime import date, datetime, time, timedelta, timezone
import logging
import math
from typing import Callable, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.clock import Clock, SystemClock
from ..core.config import settings
from ..core.constants import NOTIFICATION_DST_ADJUSTMENT, NOTIFICATION_DST_WARNING
from ..core.enums import TransitionType
from ..models.occurrence import ClassOccurrence
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.dst import (
    DSTCheckSummary,
    DSTInfo,
    DSTTransition,
    ReanchorReport,
    TimezoneValidationReport,
)
from ..schemas.recurrence import SweepError
from .base import BaseService
from .notification_service import NotificationService
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

# Classes this far past a transition are announced in its warning
WARNING_AFFECTED_DAYS = 30


def _at(epoch_seconds: int) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)


def _transition_key(transition: DSTTransition) -> str:
    return TimezoneService.ensure_utc(transition.instant).isoformat()


def _describe_shift(transition: DSTTransition) -> str:
    hours = abs(transition.delta_minutes) / 60
    amount = f"{hours:g} hour" + ("" if hours == 1 else "s")
    if transition.type == TransitionType.FORWARD:
        return f"Clocks move forward by {amount}"
    return f"Clocks move back by {amount}"


class DSTService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None, notification_service=None):
        super().__init__(db)
        self.clock = clock or SystemClock()
        self.occurrence_repository = RepositoryFactory.create_occurrence_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.notification_service = notification_service or NotificationService(db)

    # ------------------------------------------------------------------
    # Transition detection
    # ------------------------------------------------------------------

    @staticmethod
    def _offset_at(epoch_seconds: int, timezone_name: str) -> int:
        return TimezoneService.utc_offset_minutes(_at(epoch_seconds), timezone_name)

    @classmethod
    def _bisect(cls, timezone_name: str, lo: int, hi: int) -> int:
        """First second in ``(lo, hi]`` carrying the offset seen at ``hi``."""
        before = cls._offset_at(lo, timezone_name)
        while hi - lo > 1:
            mid = (lo + hi) // 2
            if cls._offset_at(mid, timezone_name) == before:
                lo = mid
            else:
                hi = mid
        return hi

    @classmethod
    def detect_transitions(cls, timezone_name: str, year: int) -> List[DSTTransition]:
        """
        Offset changes of ``timezone_name`` during local calendar ``year``.

        Offsets are sampled on the 1st and 16th of each local month and on
        the 1st of the following month; each change between samples is
        narrowed to the exact second. Zones without DST yield [].
        """
        TimezoneService.get_timezone(timezone_name)

        samples: List[int] = []
        for month in range(1, 13):
            for day in (1, 16):
                instant = TimezoneService.local_to_utc(date(year, month, day), time(0, 0), timezone_name)
                samples.append(int(instant.timestamp()))
        year_end = TimezoneService.local_to_utc(date(year + 1, 1, 1), time(0, 0), timezone_name)
        samples.append(int(year_end.timestamp()))

        transitions: List[DSTTransition] = []
        for lo, hi in zip(samples, samples[1:]):
            before = cls._offset_at(lo, timezone_name)
            after = cls._offset_at(hi, timezone_name)
            if before == after:
                continue
            instant = cls._bisect(timezone_name, lo, hi)
            offset_before = cls._offset_at(instant - 1, timezone_name)
            offset_after = cls._offset_at(instant, timezone_name)
            transitions.append(
                DSTTransition(
                    instant=_at(instant),
                    type=TransitionType.FORWARD if offset_after > offset_before else TransitionType.BACKWARD,
                    offset_before_minutes=offset_before,
                    offset_after_minutes=offset_after,
                    timezone=timezone_name,
                )
            )
        return transitions

    def _transitions_between(
        self, timezone_name: str, start: datetime, end: datetime
    ) -> List[DSTTransition]:
        found: List[DSTTransition] = []
        for year in range(start.year - 1, end.year + 1):
            for transition in self.detect_transitions(timezone_name, year):
                if start <= transition.instant < end:
                    found.append(transition)
        return sorted(found, key=lambda t: t.instant)

    def _next_transition_after(self, timezone_name: str, instant: datetime) -> Optional[DSTTransition]:
        upcoming = self._transitions_between(
            timezone_name, instant + timedelta(seconds=1), instant + timedelta(days=400)
        )
        return upcoming[0] if upcoming else None

    # ------------------------------------------------------------------
    # Re-anchoring
    # ------------------------------------------------------------------

    @staticmethod
    def _already_applied(occurrence: ClassOccurrence, key: str) -> bool:
        for entry in occurrence.dst_adjustments or []:
            if (entry.get("transition") or {}).get("instant") == key:
                return True
        return False

    def _reanchor_one(
        self, occurrence: ClassOccurrence, timezone_name: str, transition: DSTTransition, key: str
    ) -> bool:
        """Shift one occurrence; returns False when it needs no change."""
        recorded = occurrence.anchor_utc_offset_minutes
        if recorded is None:
            recorded = transition.offset_before_minutes
        if recorded != transition.offset_before_minutes or self._already_applied(occurrence, key):
            return False

        old_start = TimezoneService.ensure_utc(occurrence.scheduled_at)
        wall_clock = (old_start + timedelta(minutes=transition.offset_before_minutes)).replace(tzinfo=None)
        new_start = TimezoneService.local_to_utc(wall_clock.date(), wall_clock.time(), timezone_name)
        now = self.clock.now()

        occurrence.reschedule(new_start)
        occurrence.anchor_utc_offset_minutes = TimezoneService.utc_offset_minutes(new_start, timezone_name)
        occurrence.last_dst_check_at = now
        occurrence.record_dst_adjustment(
            {
                "old_instant": old_start.isoformat(),
                "new_instant": new_start.isoformat(),
                "reason": f"DST {transition.type.value} transition in {timezone_name}",
                "transition": {
                    "instant": key,
                    "type": transition.type.value,
                    "offset_before_minutes": transition.offset_before_minutes,
                    "offset_after_minutes": transition.offset_after_minutes,
                },
                "adjusted_at": now.isoformat(),
            }
        )
        self.occurrence_repository.flush()

        local_time = TimezoneService.format_time(new_start, timezone_name)
        body = (
            f"Due to a daylight saving time change in {timezone_name}, your class"
            f"{' (' + occurrence.subject + ')' if occurrence.subject else ''} now starts at "
            f"{TimezoneService.format_for_display(new_start, 'UTC')} instead of "
            f"{TimezoneService.format_for_display(old_start, 'UTC')}. "
            f"It still begins at {local_time} local time."
        )
        for recipient_id in (occurrence.teacher_id, occurrence.student_id):
            self.notification_service.dispatch(
                recipient_id,
                "Class time adjusted for daylight saving time",
                body,
                metadata={
                    "occurrence_id": occurrence.id,
                    "old_instant": old_start.isoformat(),
                    "new_instant": new_start.isoformat(),
                    "timezone": timezone_name,
                },
                event_type=NOTIFICATION_DST_ADJUSTMENT,
                idempotency_key=f"dst:{occurrence.id}:{key}:{recipient_id}",
            )
        return True

    @BaseService.measure_operation("reanchor")
    def reanchor_with_report(self, timezone_name: str, transition: DSTTransition) -> ReanchorReport:
        """
        Re-anchor the occurrences of ``timezone_name`` affected by ``transition``.

        Candidates are scheduled occurrences with a recognized anchor, at or
        after the transition and before the zone's next transition. Each is
        written inside its own savepoint; a failing occurrence is rolled back,
        reported and left for the next run.
        """
        TimezoneService.get_timezone(timezone_name)
        report = ReanchorReport()
        start = TimezoneService.ensure_utc(transition.instant)
        if transition.offset_before_minutes == transition.offset_after_minutes:
            return report

        following = self._next_transition_after(timezone_name, start)
        until = following.instant if following is not None else None
        key = _transition_key(transition)

        with self.repository_errors("reanchor candidates"):
            candidates = self.occurrence_repository.get_reanchor_candidates(timezone_name, start, until)

        with self.transaction():
            for occurrence in candidates:
                report.processed += 1
                try:
                    with self.db.begin_nested():
                        adjusted = self._reanchor_one(occurrence, timezone_name, transition, key)
                except Exception as exc:
                    report.failed += 1
                    report.errors.append(SweepError(item_id=occurrence.id, error=str(exc)))
                    self.logger.error(
                        f"Reanchor failed for occurrence {occurrence.id}: {str(exc)}",
                        extra={"occurrence_id": occurrence.id, "timezone": timezone_name},
                    )
                    continue
                if adjusted:
                    report.succeeded += 1
                else:
                    report.skipped += 1

        if report.succeeded:
            prometheus_metrics.inc_occurrences_reanchored(timezone_name, report.succeeded)
        prometheus_metrics.record_sweep_outcome("reanchor", report.succeeded, report.failed)
        self.logger.info(
            "Reanchor finished",
            extra={
                "timezone": timezone_name,
                "transition": key,
                "processed": report.processed,
                "adjusted": report.succeeded,
                "skipped": report.skipped,
                "failed": report.failed,
            },
        )
        return report

    def reanchor(self, timezone_name: str, transition: DSTTransition) -> int:
        """Number of occurrences whose instant was changed."""
        return self.reanchor_with_report(timezone_name, transition).succeeded

    # ------------------------------------------------------------------
    # Warnings and the periodic check
    # ------------------------------------------------------------------

    def _zones_in_use(self, since: datetime) -> List[str]:
        with self.repository_errors("zone lookup"):
            zones: Set[str] = set(self.occurrence_repository.distinct_timezones(since))
            zones.update(self.teacher_repository.distinct_timezones())
        return sorted(z for z in zones if TimezoneService.is_valid_timezone(z))

    def _warning_recipients(self, timezone_name: str, transition: DSTTransition) -> List[str]:
        with self.repository_errors("warning recipients"):
            recipients = [t.id for t in self.teacher_repository.list_by_timezone(timezone_name)]
            for occurrence in self.occurrence_repository.participants_in_range(
                timezone_name,
                transition.instant,
                transition.instant + timedelta(days=WARNING_AFFECTED_DAYS),
            ):
                recipients.extend([occurrence.teacher_id, occurrence.student_id])
        return list(dict.fromkeys(r for r in recipients if r))

    def _warning_body(self, transition: DSTTransition) -> str:
        now = self.clock.now()
        days_until = max(0, math.ceil((transition.instant - now).total_seconds() / 86400))
        if days_until == 0:
            when = "today"
        elif days_until == 1:
            when = "tomorrow"
        else:
            local = TimezoneService.utc_to_local(transition.instant, transition.timezone or "UTC")
            when = f"on {local.strftime('%A, %B %d')}"
        return (
            f"Daylight saving time changes {when} in {transition.timezone}. "
            f"{_describe_shift(transition)}. "
            "Your class times will stay correct in your local time."
        )

    @BaseService.measure_operation("upcoming_transition_warnings")
    def upcoming_transition_warnings(
        self, warning_days: Optional[int] = None, zones: Optional[Iterable[str]] = None
    ) -> int:
        """Queue one warning per recipient for transitions due within ``warning_days``."""
        days = settings.dst_warning_days if warning_days is None else warning_days
        now = self.clock.now()
        horizon = now + timedelta(days=days)
        queued = 0

        for timezone_name in zones if zones is not None else self._zones_in_use(now):
            for transition in self._transitions_between(timezone_name, now, horizon):
                body = self._warning_body(transition)
                key = _transition_key(transition)
                with self.transaction():
                    for recipient_id in self._warning_recipients(timezone_name, transition):
                        if self.notification_service.dispatch(
                            recipient_id,
                            "Daylight saving time update",
                            body,
                            metadata={
                                "timezone": timezone_name,
                                "transition_instant": key,
                                "type": transition.type.value,
                            },
                            event_type=NOTIFICATION_DST_WARNING,
                            idempotency_key=f"dst_warning:{timezone_name}:{key}:{recipient_id}",
                        ):
                            queued += 1
        return queued

    @BaseService.measure_operation("perform_dst_check")
    def perform_dst_check(
        self,
        should_stop: Optional[Callable[[], bool]] = None,
        lookback_hours: Optional[int] = None,
    ) -> DSTCheckSummary:
        """
        Warn about upcoming transitions and re-anchor around recent ones.

        Transitions within ``lookback_hours`` either side of now are applied
        in every zone in use. ``should_stop`` is checked between zones.
        """
        hours = settings.dst_lookback_hours if lookback_hours is None else lookback_hours
        now = self.clock.now()
        window_start = now - timedelta(hours=hours)
        window_end = now + timedelta(hours=hours)
        summary = DSTCheckSummary()

        zones = self._zones_in_use(window_start)
        summary.warnings_queued = self.upcoming_transition_warnings(zones=zones)

        for timezone_name in zones:
            if should_stop is not None and should_stop():
                summary.stopped_early = True
                break
            summary.timezones_checked += 1
            for transition in self._transitions_between(timezone_name, window_start, window_end):
                try:
                    report = self.reanchor_with_report(timezone_name, transition)
                except Exception as exc:
                    self.db.rollback()
                    summary.failed += 1
                    summary.errors.append(SweepError(item_id=timezone_name, error=str(exc)))
                    self.logger.error(f"DST check failed for {timezone_name}: {str(exc)}")
                    continue
                summary.transitions_processed += 1
                summary.adjusted += report.succeeded
                summary.failed += report.failed
                summary.errors.extend(report.errors)

        self.logger.info(
            "DST check finished",
            extra={
                "timezones": summary.timezones_checked,
                "warnings": summary.warnings_queued,
                "adjusted": summary.adjusted,
                "failed": summary.failed,
            },
        )
        return summary

    @BaseService.measure_operation("validate_teacher_timezones")
    def validate_teacher_timezones(self) -> TimezoneValidationReport:
        """
        Flag active teachers whose stored timezone pytz does not know.

        Such teachers are skipped by transition detection and would fail any
        conversion, so each one is logged for manual correction. Nothing is
        rewritten here.
        """
        report = TimezoneValidationReport()
        for teacher in self.teacher_repository.list_active():
            report.checked += 1
            if TimezoneService.is_valid_timezone(teacher.timezone):
                continue
            report.invalid += 1
            report.errors.append(
                SweepError(item_id=teacher.id, error=f"Unknown timezone: {teacher.timezone!r}")
            )
            self.logger.warning(
                "Teacher has an invalid timezone",
                extra={"teacher_id": teacher.id, "timezone": teacher.timezone},
            )

        prometheus_metrics.record_sweep_outcome(
            "timezone_validation", report.checked - report.invalid, report.invalid
        )
        self.logger.info(
            "Timezone validation finished",
            extra={"checked": report.checked, "invalid": report.invalid},
        )
        return report

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_dst_info(self, timezone_name: str) -> DSTInfo:
        TimezoneService.get_timezone(timezone_name)
        now = self.clock.now()
        local_now = TimezoneService.utc_to_local(now, timezone_name)
        transitions = self.detect_transitions(timezone_name, local_now.year)
        nearby = self._transitions_between(
            timezone_name, now - timedelta(days=400), now + timedelta(days=400)
        )
        dst = local_now.dst()

        return DSTInfo(
            timezone=timezone_name,
            year=local_now.year,
            current_offset_minutes=TimezoneService.utc_offset_minutes(now, timezone_name),
            is_dst=bool(dst) and dst != timedelta(0),
            transitions=transitions,
            next_transition=next((t for t in nearby if t.instant > now), None),
            last_transition=next((t for t in reversed(nearby) if t.instant <= now), None),
        )
