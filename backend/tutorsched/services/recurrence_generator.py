# backend/tutorsched/services/recurrence_generator.py
"""
Recurrence Generator.

Materializes future ClassOccurrence rows from a RecurringPattern over a
rolling horizon of months.

Idempotence:
- every occurrence carries ``slot_key = "{YYYY-MM-DD}:{day}:{HH:MM}:{tz}"``
  and (pattern_id, slot_key) is unique, so a tuple is created at most once
- ``generated_through`` is written in the same transaction as the rows it
  covers, so it only advances when the whole range commits
- days at or before the watermark are not revisited
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy.orm import Session

from ..core.clock import Clock, SystemClock
from ..core.config import settings
from ..core.constants import MAX_HORIZON_MONTHS, MIN_HORIZON_MONTHS
from ..core.enums import OccurrenceStatus, RecordStatus
from ..core.exceptions import NotFoundException, ValidationException
from ..models.recurring_pattern import RecurringPattern
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.recurrence import SweepError, SweepReport
from ..utils.time_utils import add_months
from .base import BaseService
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotSpec:
    """One weekday entry: local time, duration and the zone it is expressed in."""

    day_of_week: int
    hour: int
    minute: int
    duration_minutes: int
    timezone: str


@dataclass(frozen=True)
class ExplicitPerDaySlots:
    slots: Tuple[SlotSpec, ...]


@dataclass(frozen=True)
class DerivedFromAnchor:
    slot: SlotSpec


RecurrenceSource = Union[ExplicitPerDaySlots, DerivedFromAnchor]


def resolve_source(pattern: RecurringPattern) -> RecurrenceSource:
    """
    Resolve a pattern's recurrence input once.

    Explicit weekday slots win; otherwise a single slot is derived from the
    anchor instant expressed in the pattern timezone.
    """
    if pattern.slots:
        return ExplicitPerDaySlots(
            slots=tuple(
                SlotSpec(
                    day_of_week=slot.day_of_week,
                    hour=slot.hour,
                    minute=slot.minute,
                    duration_minutes=slot.duration_minutes or pattern.duration_minutes,
                    timezone=slot.timezone or pattern.timezone,
                )
                for slot in pattern.slots
            )
        )

    if pattern.anchor_scheduled_at is None:
        raise ValidationException(
            f"Pattern {pattern.id} has neither weekday slots nor an anchor instant",
            code="PATTERN_WITHOUT_SLOTS",
        )

    local_anchor = TimezoneService.utc_to_local(pattern.anchor_scheduled_at, pattern.timezone)
    return DerivedFromAnchor(
        slot=SlotSpec(
            day_of_week=TimezoneService.day_of_week(local_anchor),
            hour=local_anchor.hour,
            minute=local_anchor.minute,
            duration_minutes=pattern.duration_minutes,
            timezone=pattern.timezone,
        )
    )


def source_slots(source: RecurrenceSource) -> Sequence[SlotSpec]:
    if isinstance(source, ExplicitPerDaySlots):
        return source.slots
    return (source.slot,)


def build_slot_key(local_date: date, slot: SlotSpec) -> str:
    return f"{local_date.isoformat()}:{slot.day_of_week}:{slot.hour:02d}:{slot.minute:02d}:{slot.timezone}"


@dataclass(frozen=True)
class PlannedOccurrence:
    slot_key: str
    scheduled_at: datetime
    slot: SlotSpec


class RecurrenceGenerator(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db)
        self.clock = clock or SystemClock()
        self.pattern_repository = RepositoryFactory.create_recurring_pattern_repository(db)
        self.occurrence_repository = RepositoryFactory.create_occurrence_repository(db)

    @staticmethod
    def _resolve_horizon(pattern: RecurringPattern, horizon_months: Optional[int]) -> int:
        horizon = horizon_months or pattern.horizon_months or settings.default_horizon_months
        if not MIN_HORIZON_MONTHS <= horizon <= MAX_HORIZON_MONTHS:
            raise ValidationException(
                f"Horizon must be between {MIN_HORIZON_MONTHS} and {MAX_HORIZON_MONTHS} months",
                code="INVALID_HORIZON",
                details={"horizon_months": horizon},
            )
        return horizon

    def horizon_end(self, pattern: RecurringPattern, horizon_months: Optional[int] = None) -> date:
        """Last UTC calendar day covered by the pattern's horizon (clamped to end_date)."""
        today = self.clock.now().date()
        last_day = add_months(today, self._resolve_horizon(pattern, horizon_months))
        if pattern.end_date is not None and pattern.end_date < last_day:
            last_day = pattern.end_date
        return last_day

    def needs_generation(self, pattern: RecurringPattern) -> bool:
        if pattern.status != RecordStatus.ACTIVE.value:
            return False
        last_day = self.horizon_end(pattern)
        if last_day < self.clock.now().date():
            return False
        return pattern.generated_through is None or pattern.generated_through < last_day

    def plan(self, source: RecurrenceSource, first_day: date, last_day: date) -> List[PlannedOccurrence]:
        """
        Instants to materialize for UTC days ``first_day..last_day``.

        Each UTC day is anchored at UTC midnight and viewed in the slot's
        timezone; the resulting local date decides the weekday and is the
        date the slot's local time is composed on.
        """
        now = self.clock.now()
        planned: List[PlannedOccurrence] = []
        seen: set[str] = set()

        current = first_day
        while current <= last_day:
            utc_midnight = datetime.combine(current, time(0, 0), tzinfo=timezone.utc)
            for slot in source_slots(source):
                local_midnight = TimezoneService.utc_to_local(utc_midnight, slot.timezone)
                if TimezoneService.day_of_week(local_midnight) != slot.day_of_week:
                    continue
                local_date = local_midnight.date()
                scheduled_at = TimezoneService.local_to_utc(
                    local_date, time(slot.hour, slot.minute), slot.timezone
                )
                if scheduled_at < now:
                    continue
                slot_key = build_slot_key(local_date, slot)
                if slot_key in seen:
                    continue
                seen.add(slot_key)
                planned.append(PlannedOccurrence(slot_key, scheduled_at, slot))
            current += timedelta(days=1)
        return planned

    @BaseService.measure_operation("generate")
    def generate(self, pattern_id: str, horizon_months: Optional[int] = None) -> List[str]:
        """
        Create the missing occurrences of a pattern up to its horizon.

        Returns the ids created by this call; an already materialized
        horizon yields an empty list.
        """
        with self.repository_errors("pattern lookup"):
            pattern = self.pattern_repository.get_with_slots(pattern_id)
        if pattern is None:
            raise NotFoundException(f"Recurring pattern {pattern_id} not found", code="PATTERN_NOT_FOUND")
        if pattern.status != RecordStatus.ACTIVE.value:
            return []

        source = resolve_source(pattern)
        today = self.clock.now().date()
        last_day = self.horizon_end(pattern, horizon_months)
        first_day = today
        if pattern.generated_through is not None and pattern.generated_through >= first_day:
            first_day = pattern.generated_through + timedelta(days=1)
        if first_day > last_day:
            return []

        planned = self.plan(source, first_day, last_day)
        with self.repository_errors("slot key lookup"):
            existing = self.occurrence_repository.get_existing_slot_keys(
                pattern.id, (p.slot_key for p in planned)
            )

        created_ids: List[str] = []
        with self.transaction():
            for item in planned:
                if item.slot_key in existing:
                    continue
                occurrence = self.occurrence_repository.create(
                    teacher_id=pattern.teacher_id,
                    student_id=pattern.student_id,
                    student_name=pattern.student_name,
                    subject=pattern.subject,
                    scheduled_at=item.scheduled_at,
                    duration_minutes=item.slot.duration_minutes,
                    ends_at=item.scheduled_at + timedelta(minutes=item.slot.duration_minutes),
                    anchor_timezone=pattern.anchor_timezone,
                    timezone=item.slot.timezone,
                    anchor_utc_offset_minutes=TimezoneService.utc_offset_minutes(
                        item.scheduled_at, item.slot.timezone
                    ),
                    pattern_id=pattern.id,
                    slot_key=item.slot_key,
                    status=OccurrenceStatus.SCHEDULED.value,
                    dst_adjustments=[],
                )
                created_ids.append(occurrence.id)

            if pattern.generated_through is None or pattern.generated_through < last_day:
                pattern.generated_through = last_day
            pattern.last_generated_at = self.clock.now()

        prometheus_metrics.inc_occurrences_generated(len(created_ids))
        self.logger.info(
            "Generated occurrences",
            extra={
                "pattern_id": pattern.id,
                "created": len(created_ids),
                "generated_through": last_day.isoformat(),
            },
        )
        return created_ids

    @BaseService.measure_operation("run_sweep")
    def run_sweep(
        self,
        pattern_ids: Optional[Iterable[str]] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> SweepReport:
        """
        Generate for every pattern that is behind its horizon.

        One pattern's failure is rolled back, logged and reported; its
        watermark stays where it was so the next sweep retries it.
        ``should_stop`` is checked between patterns, never mid-write.
        """
        report = SweepReport()

        if pattern_ids is None:
            with self.repository_errors("generation candidates"):
                candidates = self.pattern_repository.get_generation_candidates(
                    self.clock.now().date(), limit=settings.generation_batch_size
                )
            ids = [p.id for p in candidates if self.needs_generation(p)]
        else:
            ids = list(pattern_ids)

        for pattern_id in ids:
            if should_stop is not None and should_stop():
                report.stopped_early = True
                break
            report.processed += 1
            try:
                created = self.generate(pattern_id)
            except Exception as exc:
                self.db.rollback()
                report.failed += 1
                report.errors.append(SweepError(item_id=pattern_id, error=str(exc)))
                self.logger.error(
                    f"Generation failed for pattern {pattern_id}: {str(exc)}",
                    extra={"pattern_id": pattern_id},
                )
                continue
            report.succeeded += 1
            report.created += len(created)

        prometheus_metrics.record_sweep_outcome("generation", report.succeeded, report.failed)
        self.logger.info(
            "Generation sweep finished",
            extra={
                "processed": report.processed,
                "succeeded": report.succeeded,
                "failed": report.failed,
                "created": report.created,
            },
        )
        return report
