# backend/tutorsched/repositories/availability_repository.py
"""
Availability Repository for the scheduling engine.

Data access for everything that decides whether a teacher is bookable:
weekly slots, unavailability periods and busy class occurrences.

Soft deactivation is checked uniformly through ``RecordStatus.ACTIVE``.
Range queries use the half-open overlap test
``existing.start < window.end AND existing.end > window.start``.
"""

from datetime import date, datetime
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..core.constants import BUSY_OCCURRENCE_STATUSES
from ..core.enums import ApprovalStatus, RecordStatus
from ..models.availability import UnavailabilityPeriod, WeeklyAvailabilitySlot
from ..models.occurrence import ClassOccurrence
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[WeeklyAvailabilitySlot]):
    def __init__(self, db: Session):
        super().__init__(db, WeeklyAvailabilitySlot)

    # Weekly slots

    def get_active_slots(
        self,
        teacher_id: str,
        day_of_week: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> List[WeeklyAvailabilitySlot]:
        """
        Active slots for a teacher, ordered by day and start time.

        ``as_of`` drops slots whose ``effective_to`` already lies in the past.
        """
        query = self._build_query().filter(
            WeeklyAvailabilitySlot.teacher_id == teacher_id,
            WeeklyAvailabilitySlot.status == RecordStatus.ACTIVE.value,
        )
        if day_of_week is not None:
            query = query.filter(WeeklyAvailabilitySlot.day_of_week == day_of_week)
        if as_of is not None:
            query = query.filter(
                or_(
                    WeeklyAvailabilitySlot.effective_to.is_(None),
                    WeeklyAvailabilitySlot.effective_to >= as_of,
                )
            )
        query = query.order_by(WeeklyAvailabilitySlot.day_of_week, WeeklyAvailabilitySlot.start_time)
        return self._execute_query(query)

    # Unavailability

    def get_blocking_unavailability(
        self, teacher_id: str, start_utc: datetime, end_utc: datetime
    ) -> List[UnavailabilityPeriod]:
        """Active, approved periods overlapping the window, earliest first."""
        query = (
            self.db.query(UnavailabilityPeriod)
            .filter(
                UnavailabilityPeriod.teacher_id == teacher_id,
                UnavailabilityPeriod.status == RecordStatus.ACTIVE.value,
                UnavailabilityPeriod.approval_status == ApprovalStatus.APPROVED.value,
                UnavailabilityPeriod.start_at < end_utc,
                UnavailabilityPeriod.end_at > start_utc,
            )
            .order_by(UnavailabilityPeriod.start_at)
        )
        return self._execute_query(query)

    def get_unavailability(self, period_id: str) -> Optional[UnavailabilityPeriod]:
        return self._execute_first(
            self.db.query(UnavailabilityPeriod).filter(UnavailabilityPeriod.id == period_id)
        )

    def create_unavailability(self, **kwargs) -> UnavailabilityPeriod:
        period = UnavailabilityPeriod(**kwargs)
        self.db.add(period)
        self.flush()
        return period

    # Occurrences

    def get_busy_occurrences(
        self,
        teacher_id: str,
        start_utc: datetime,
        end_utc: datetime,
        exclude_occurrence_id: Optional[str] = None,
    ) -> List[ClassOccurrence]:
        """Scheduled or in-progress occurrences overlapping the window, earliest first."""
        query = self.db.query(ClassOccurrence).filter(
            ClassOccurrence.teacher_id == teacher_id,
            ClassOccurrence.status.in_(BUSY_OCCURRENCE_STATUSES),
            ClassOccurrence.scheduled_at < end_utc,
            ClassOccurrence.ends_at > start_utc,
        )
        if exclude_occurrence_id:
            query = query.filter(ClassOccurrence.id != exclude_occurrence_id)
        return self._execute_query(query.order_by(ClassOccurrence.scheduled_at))
