# backend/tutorsched/core/enums.py
"""
Core enums for the scheduling engine.

All persisted enums inherit from (str, Enum) so the stored value is the
lowercase string, never the member name.
"""

from enum import Enum


class RecordStatus(str, Enum):
    """Soft-deactivation status shared by slots, periods, patterns and profiles."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class OccurrenceStatus(str, Enum):
    """Lifecycle of a single class occurrence."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AnchorTimezone(str, Enum):
    """Which participant's wall clock is authoritative for an occurrence."""

    STUDENT = "student"
    TEACHER = "teacher"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UnavailabilityReason(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    EMERGENCY = "emergency"
    SYSTEM_MAINTENANCE = "system_maintenance"


class AvailabilityMode(str, Enum):
    """
    Teacher-level availability baseline.

    DEFAULT_ALWAYS_AVAILABLE teachers are bookable any time that is not
    blocked by unavailability or existing classes.
    """

    DEFAULT_ALWAYS_AVAILABLE = "default_always_available"
    CUSTOM = "custom"


class ConflictType(str, Enum):
    NO_WEEKLY_SLOT = "no_weekly_slot"
    UNAVAILABLE_PERIOD = "unavailable_period"
    EXISTING_CLASS = "existing_class"


class BusyIntervalType(str, Enum):
    CLASS = "class"
    UNAVAILABLE = "unavailable"
    MIXED = "mixed"


class TransitionType(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class MatchType(str, Enum):
    EXACT = "exact"
    FLEXIBLE = "flexible"
