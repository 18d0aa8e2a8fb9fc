# backend/tutorsched/repositories/occurrence_repository.py
"""
Class occurrence data access.

Used by the recurrence generator (materialization keyed by
``(pattern_id, slot_key)``) and by the DST service (range scans per zone).
"""

from datetime import datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.enums import AnchorTimezone, OccurrenceStatus
from ..models.occurrence import ClassOccurrence
from .base_repository import BaseRepository


class OccurrenceRepository(BaseRepository[ClassOccurrence]):
    def __init__(self, db: Session):
        super().__init__(db, ClassOccurrence)

    def get_existing_slot_keys(self, pattern_id: str, slot_keys: Iterable[str]) -> Set[str]:
        keys = list(slot_keys)
        if not keys:
            return set()
        rows = self._execute_query(
            self.db.query(ClassOccurrence.slot_key).filter(
                ClassOccurrence.pattern_id == pattern_id,
                ClassOccurrence.slot_key.in_(keys),
            )
        )
        return {row[0] for row in rows}

    def get_reanchor_candidates(
        self, timezone_name: str, from_utc: datetime, until_utc: Optional[datetime] = None
    ) -> List[ClassOccurrence]:
        """
        Scheduled occurrences anchored to ``timezone_name`` at/after ``from_utc``.

        Rows with a missing or unrecognized anchor designation are excluded here,
        so they are never reanchored.
        """
        query = self._build_query().filter(
            ClassOccurrence.timezone == timezone_name,
            ClassOccurrence.anchor_timezone.in_([a.value for a in AnchorTimezone]),
            ClassOccurrence.status == OccurrenceStatus.SCHEDULED.value,
            ClassOccurrence.scheduled_at >= from_utc,
        )
        if until_utc is not None:
            query = query.filter(ClassOccurrence.scheduled_at < until_utc)
        return self._execute_query(query.order_by(ClassOccurrence.scheduled_at, ClassOccurrence.id))

    def distinct_timezones(self, from_utc: datetime) -> List[str]:
        """Anchor zones of scheduled occurrences from ``from_utc`` onwards."""
        rows = self._execute_query(
            self.db.query(ClassOccurrence.timezone)
            .filter(
                ClassOccurrence.status == OccurrenceStatus.SCHEDULED.value,
                ClassOccurrence.scheduled_at >= from_utc,
                ClassOccurrence.timezone.isnot(None),
            )
            .distinct()
        )
        return sorted(row[0] for row in rows)

    def participants_in_range(
        self, timezone_name: str, start_utc: datetime, end_utc: datetime
    ) -> List[ClassOccurrence]:
        """Scheduled occurrences in a zone within a range (for DST warnings)."""
        query = self._build_query().filter(
            ClassOccurrence.timezone == timezone_name,
            ClassOccurrence.status == OccurrenceStatus.SCHEDULED.value,
            ClassOccurrence.scheduled_at >= start_utc,
            ClassOccurrence.scheduled_at < end_utc,
        )
        return self._execute_query(query)
