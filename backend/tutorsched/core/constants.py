"""Scheduling constants shared across services."""

from __future__ import annotations

from .enums import OccurrenceStatus

# Occurrence statuses that block a teacher's time
BUSY_OCCURRENCE_STATUSES = (OccurrenceStatus.SCHEDULED.value, OccurrenceStatus.IN_PROGRESS.value)

# Day-of-week numbering follows 0 = Sunday ... 6 = Saturday
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

MINUTES_PER_DAY = 24 * 60

# Recurrence horizon bounds (months)
MIN_HORIZON_MONTHS = 1
MAX_HORIZON_MONTHS = 12

# Alternatives search
ALTERNATIVE_STEP_MINUTES = 30
MAX_ALTERNATIVES = 10
COMMON_TEACHING_HOURS = (9, 10, 11, 14, 15, 16, 17, 19, 20)

# Teacher search
SEGMENT_MATCH_SCORE = 100

# Student age preference defaults
DEFAULT_MIN_STUDENT_AGE = 3
DEFAULT_MAX_STUDENT_AGE = 70

# Notification relation tags
NOTIFICATION_DST_ADJUSTMENT = "dst_adjustment"
NOTIFICATION_DST_WARNING = "dst_warning"
