# backend/tutorsched/repositories/factory.py
"""
Repository Factory for the scheduling engine.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session


# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .notification_repository import NotificationRepository
    from .occurrence_repository import OccurrenceRepository
    from .recurring_pattern_repository import RecurringPatternRepository
    from .teacher_repository import TeacherRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for slots, unavailability and busy occurrences."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_teacher_repository(db: Session) -> "TeacherRepository":
        from .teacher_repository import TeacherRepository

        return TeacherRepository(db)

    @staticmethod
    def create_occurrence_repository(db: Session) -> "OccurrenceRepository":
        from .occurrence_repository import OccurrenceRepository

        return OccurrenceRepository(db)

    @staticmethod
    def create_recurring_pattern_repository(db: Session) -> "RecurringPatternRepository":
        from .recurring_pattern_repository import RecurringPatternRepository

        return RecurringPatternRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)
