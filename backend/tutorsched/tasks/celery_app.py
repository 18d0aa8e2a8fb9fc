# backend/tutorsched/tasks/celery_app.py
"""
Celery application for the scheduling background jobs.

Redis is broker and result backend; beat drives the DST checks and the
recurrence generation sweep defined in ``beat_schedule``.
"""

from typing import Any

from celery import Celery
from celery.signals import setup_logging

from ..core.config import is_running_tests, settings


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Returns:
        Celery: Configured Celery application instance
    """
    celery_app = Celery(
        "tutorsched",
        broker=settings.broker_url,
        backend=settings.result_backend,
    )

    celery_app.conf.update(
        {
            # Task settings
            "task_serializer": "json",
            "accept_content": ["json"],
            "result_serializer": "json",
            "timezone": "UTC",
            "enable_utc": True,
            # Worker settings
            "worker_prefetch_multiplier": 1,
            "worker_max_tasks_per_child": 1000,
            # Task execution settings
            "task_soft_time_limit": 300,
            "task_time_limit": 600,
            "task_acks_late": True,
            "task_reject_on_worker_lost": True,
            # Error handling
            "task_default_retry_delay": 60,
            "task_max_retries": 3,
            "beat_schedule_filename": "celerybeat-schedule",
            "worker_hijack_root_logger": False,
            # Run inline under pytest
            "task_always_eager": is_running_tests(),
        }
    )

    celery_app.conf.imports = ("tutorsched.tasks.scheduling_tasks",)
    celery_app.conf.task_routes = {"scheduling.*": {"queue": "scheduling"}}

    from .beat_schedule import get_beat_schedule

    celery_app.conf.beat_schedule = get_beat_schedule(settings.environment)
    return celery_app


# Disable Celery's default logging configuration
@setup_logging.connect  # type: ignore[misc]
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Configure logging to integrate with the application's logging setup."""
    import logging

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


celery_app = create_celery_app()
