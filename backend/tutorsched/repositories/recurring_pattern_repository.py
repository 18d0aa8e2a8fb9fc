# backend/tutorsched/repositories/recurring_pattern_repository.py
"""Recurring pattern data access."""

from datetime import date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ..core.enums import RecordStatus
from ..models.recurring_pattern import RecurringPattern
from .base_repository import BaseRepository


class RecurringPatternRepository(BaseRepository[RecurringPattern]):
    def __init__(self, db: Session):
        super().__init__(db, RecurringPattern)

    def get_with_slots(self, pattern_id: str) -> Optional[RecurringPattern]:
        query = (
            self._build_query()
            .options(selectinload(RecurringPattern.slots))
            .filter(RecurringPattern.id == pattern_id)
        )
        return self._execute_first(query)

    def get_generation_candidates(self, today: date, limit: Optional[int] = None) -> List[RecurringPattern]:
        """
        Active patterns that have not ended.

        Whether a candidate is actually behind its horizon depends on its own
        ``horizon_months``; callers make that final decision.
        """
        query = (
            self._build_query()
            .options(selectinload(RecurringPattern.slots))
            .filter(
                RecurringPattern.status == RecordStatus.ACTIVE.value,
                or_(RecurringPattern.end_date.is_(None), RecurringPattern.end_date >= today),
            )
            .order_by(RecurringPattern.generated_through.is_(None).desc(), RecurringPattern.id)
        )
        if limit:
            query = query.limit(limit)
        return self._execute_query(query)
