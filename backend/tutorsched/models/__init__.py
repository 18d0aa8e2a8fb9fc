"""
Database models for the scheduling engine.

- Teacher profiles (timezone, availability baseline, matching preferences)
- Weekly availability slots and unavailability periods
- Class occurrences and the recurring patterns that materialize them
- Notification outbox
"""

from .availability import UnavailabilityPeriod, WeeklyAvailabilitySlot
from .notification import NotificationOutbox
from .occurrence import ClassOccurrence
from .recurring_pattern import RecurringPattern, RecurringPatternSlot
from .teacher import TeacherProfile

__all__ = [
    "ClassOccurrence",
    "NotificationOutbox",
    "RecurringPattern",
    "RecurringPatternSlot",
    "TeacherProfile",
    "UnavailabilityPeriod",
    "WeeklyAvailabilitySlot",
]
