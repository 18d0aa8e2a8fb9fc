# backend/tutorsched/services/scheduler.py
"""
Named background jobs of the scheduling core.

Each job opens its own session from the injected factory and reads time
from the injected clock, so Celery beat (or a test) can drive it without
real timers:
- ``daily_dst_check``: DST warnings plus re-anchoring in every zone in use
- ``hourly_dst_check``: the same check, but only in DST-heavy months
- ``generation_sweep``: materialize recurring patterns behind their horizon
- ``timezone_validation``: log active teachers whose stored zone is unknown
"""

import logging
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock, SystemClock
from ..core.config import Settings, settings as default_settings
from ..schemas.dst import DSTCheckSummary, TimezoneValidationReport
from ..schemas.recurrence import SweepReport
from .dst_service import DSTService
from .recurrence_generator import RecurrenceGenerator

logger = logging.getLogger(__name__)

DAILY_DST_CHECK = "daily_dst_check"
HOURLY_DST_CHECK = "hourly_dst_check"
GENERATION_SWEEP = "generation_sweep"
TIMEZONE_VALIDATION = "timezone_validation"


class Scheduler:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.settings = settings or default_settings
        self.should_stop = should_stop

    @property
    def tasks(self) -> Dict[str, Callable[[], object]]:
        return {
            DAILY_DST_CHECK: self.daily_dst_check,
            HOURLY_DST_CHECK: self.hourly_dst_check,
            GENERATION_SWEEP: self.generation_sweep,
            TIMEZONE_VALIDATION: self.timezone_validation,
        }

    def run(self, name: str) -> object:
        try:
            task = self.tasks[name]
        except KeyError:
            raise ValueError(f"Unknown scheduled task: {name}")
        return task()

    def _dst_check(self) -> DSTCheckSummary:
        db = self.session_factory()
        try:
            return DSTService(db, clock=self.clock).perform_dst_check(
                should_stop=self.should_stop,
                lookback_hours=self.settings.dst_lookback_hours,
            )
        finally:
            db.close()

    def daily_dst_check(self) -> DSTCheckSummary:
        summary = self._dst_check()
        logger.info(
            f"Daily DST check: {summary.adjusted} adjusted, {summary.failed} failed, "
            f"{summary.warnings_queued} warnings queued"
        )
        return summary

    def hourly_dst_check(self) -> Optional[DSTCheckSummary]:
        """Runs only during DST-heavy months; returns None when skipped."""
        month = self.clock.now().month
        if month not in self.settings.dst_heavy_months:
            logger.debug(f"Hourly DST check skipped outside DST-heavy months (month={month})")
            return None
        return self._dst_check()

    def generation_sweep(self) -> SweepReport:
        db = self.session_factory()
        try:
            report = RecurrenceGenerator(db, clock=self.clock).run_sweep(should_stop=self.should_stop)
        finally:
            db.close()
        logger.info(
            f"Generation sweep: {report.succeeded}/{report.processed} patterns, "
            f"{report.created} occurrences created"
        )
        return report

    def timezone_validation(self) -> TimezoneValidationReport:
        db = self.session_factory()
        try:
            report = DSTService(db, clock=self.clock).validate_teacher_timezones()
        finally:
            db.close()
        if report.invalid:
            logger.warning(f"Timezone validation: {report.invalid} of {report.checked} teachers invalid")
        return report
