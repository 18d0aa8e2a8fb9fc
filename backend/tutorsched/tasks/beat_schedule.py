# backend/tutorsched/tasks/beat_schedule.py
"""
Celery Beat schedule for the scheduling core.

All crontab times are UTC (``enable_utc``). The hourly DST check is
scheduled every hour; the task itself returns early outside DST-heavy
months.
"""

from typing import Any

from celery.schedules import crontab

CELERYBEAT_SCHEDULE: dict[str, dict[str, Any]] = {
    # Full DST check - warnings for upcoming transitions and re-anchoring
    "daily-dst-check": {
        "task": "scheduling.daily_dst_check",
        "schedule": crontab(hour=6, minute=0),
        "options": {"queue": "scheduling", "priority": 5},
    },
    # Zones transition at different local times, so check hourly in DST season
    "hourly-dst-check": {
        "task": "scheduling.hourly_dst_check",
        "schedule": crontab(minute=0),
        "options": {"queue": "scheduling", "priority": 5},
    },
    # Keep recurring patterns materialized to their horizon
    "generation-sweep": {
        "task": "scheduling.generation_sweep",
        "schedule": crontab(hour=2, minute=15),
        "options": {"queue": "scheduling", "priority": 3},
    },
    # Weekly scan for teachers stored with an unknown IANA zone (Sunday)
    "timezone-validation": {
        "task": "scheduling.timezone_validation",
        "schedule": crontab(hour=2, minute=0, day_of_week=0),
        "options": {"queue": "scheduling", "priority": 1},
    },
}

# Environment-specific overrides
SCHEDULE_CONFIG: dict[str, dict[str, dict[str, Any]]] = {
    "development": {
        "generation-sweep": {
            "task": "scheduling.generation_sweep",
            "schedule": crontab(minute="*/30"),
            "options": {"queue": "scheduling", "priority": 3},
        },
    },
}


def get_beat_schedule(environment: str = "production") -> dict[str, dict[str, Any]]:
    """
    Get the beat schedule for the specified environment.

    Args:
        environment: The environment name (production, development, test)

    Returns:
        Mapping of task name to Celery beat configuration dict
    """
    base: dict[str, dict[str, Any]] = dict(CELERYBEAT_SCHEDULE)
    overrides = SCHEDULE_CONFIG.get(environment)
    if overrides:
        base.update(overrides)
    return base
