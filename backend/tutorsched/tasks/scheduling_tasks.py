# backend/tutorsched/tasks/scheduling_tasks.py
"""
Celery tasks wrapping the Scheduler jobs.

Each task builds a Scheduler over ``SessionLocal`` and the system clock
and returns a JSON-serializable summary. Per-item failures are already
isolated inside the sweeps; only an unexpected failure of the whole job
is retried.
"""

from typing import Any, Dict, Optional

from celery.app.task import Task  # noqa: F401 - used for type hints
from celery.utils.log import get_task_logger

from ..database import SessionLocal
from ..services.scheduler import (
    DAILY_DST_CHECK,
    GENERATION_SWEEP,
    HOURLY_DST_CHECK,
    TIMEZONE_VALIDATION,
    Scheduler,
)
from .celery_app import celery_app

logger = get_task_logger(__name__)


def _run(name: str) -> Optional[Dict[str, Any]]:
    result = Scheduler(SessionLocal).run(name)
    return result.model_dump(mode="json") if result is not None else None


@celery_app.task(name="scheduling.daily_dst_check", bind=True, max_retries=3, default_retry_delay=60)
def daily_dst_check(self: "Task[Any, Any]") -> Optional[Dict[str, Any]]:
    try:
        return _run(DAILY_DST_CHECK)
    except Exception as exc:
        logger.exception("Daily DST check failed")
        raise self.retry(exc=exc)


@celery_app.task(name="scheduling.hourly_dst_check", bind=True, max_retries=1, default_retry_delay=300)
def hourly_dst_check(self: "Task[Any, Any]") -> Optional[Dict[str, Any]]:
    try:
        return _run(HOURLY_DST_CHECK)
    except Exception as exc:
        logger.exception("Hourly DST check failed")
        raise self.retry(exc=exc)


@celery_app.task(name="scheduling.generation_sweep", bind=True, max_retries=3, default_retry_delay=60)
def generation_sweep(self: "Task[Any, Any]") -> Optional[Dict[str, Any]]:
    try:
        return _run(GENERATION_SWEEP)
    except Exception as exc:
        logger.exception("Generation sweep failed")
        raise self.retry(exc=exc)


@celery_app.task(name="scheduling.timezone_validation", bind=True, max_retries=1, default_retry_delay=600)
def timezone_validation(self: "Task[Any, Any]") -> Optional[Dict[str, Any]]:
    try:
        return _run(TIMEZONE_VALIDATION)
    except Exception as exc:
        logger.exception("Timezone validation failed")
        raise self.retry(exc=exc)
