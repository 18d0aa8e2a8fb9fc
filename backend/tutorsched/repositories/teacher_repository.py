# backend/tutorsched/repositories/teacher_repository.py
"""Profile lookup for teachers."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import RecordStatus
from ..models.teacher import TeacherProfile
from .base_repository import BaseRepository


class TeacherRepository(BaseRepository[TeacherProfile]):
    def __init__(self, db: Session):
        super().__init__(db, TeacherProfile)

    def get_active(self, teacher_id: str) -> Optional[TeacherProfile]:
        query = self._build_query().filter(
            TeacherProfile.id == teacher_id,
            TeacherProfile.status == RecordStatus.ACTIVE.value,
        )
        return self._execute_first(query)

    def list_active(self, teacher_ids: Optional[List[str]] = None) -> List[TeacherProfile]:
        """Active teachers ordered by name, optionally restricted to ``teacher_ids``."""
        query = self._build_query().filter(TeacherProfile.status == RecordStatus.ACTIVE.value)
        if teacher_ids:
            query = query.filter(TeacherProfile.id.in_(teacher_ids))
        return self._execute_query(query.order_by(TeacherProfile.display_name, TeacherProfile.id))

    def list_by_timezone(self, timezone_name: str) -> List[TeacherProfile]:
        query = self._build_query().filter(
            TeacherProfile.timezone == timezone_name,
            TeacherProfile.status == RecordStatus.ACTIVE.value,
        )
        return self._execute_query(query)

    def distinct_timezones(self) -> List[str]:
        rows = self._execute_query(
            self.db.query(TeacherProfile.timezone)
            .filter(TeacherProfile.status == RecordStatus.ACTIVE.value)
            .distinct()
        )
        return [row[0] for row in rows if row[0]]
