"""
Repository layer for the scheduling engine.

Key Components:
- BaseRepository: Generic CRUD foundation
- RepositoryFactory: Factory for creating repository instances
- AvailabilityRepository: Weekly slots, unavailability, busy occurrences
- OccurrenceRepository: Materialization keys and DST range scans
- RecurringPatternRepository: Patterns and their weekday slots
- TeacherRepository: Profile lookup
- NotificationRepository: Idempotent notification outbox

Usage:
    from tutorsched.repositories import RepositoryFactory

    repository = RepositoryFactory.create_availability_repository(db)
    slots = repository.get_active_slots(teacher_id, day_of_week=1)
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .notification_repository import NotificationRepository
from .occurrence_repository import OccurrenceRepository
from .recurring_pattern_repository import RecurringPatternRepository
from .teacher_repository import TeacherRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "NotificationRepository",
    "OccurrenceRepository",
    "RecurringPatternRepository",
    "RepositoryFactory",
    "TeacherRepository",
]
