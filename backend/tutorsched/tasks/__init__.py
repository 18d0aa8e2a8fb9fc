"""
Celery tasks package for the scheduling core.

Import the task module so tasks are registered with the app.
"""

from .celery_app import celery_app
from .scheduling_tasks import daily_dst_check, generation_sweep, hourly_dst_check

__all__ = ["celery_app", "daily_dst_check", "hourly_dst_check", "generation_sweep"]
