# backend/tests/unit/test_scheduling_tasks.py
"""Celery task wrappers run eagerly against a stubbed Scheduler."""

from tutorsched.schemas.dst import TimezoneValidationReport
from tutorsched.schemas.recurrence import SweepError, SweepReport
from tutorsched.services.scheduler import GENERATION_SWEEP, HOURLY_DST_CHECK, TIMEZONE_VALIDATION
from tutorsched.tasks import scheduling_tasks


class RecordingScheduler:
    calls = []

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def run(self, name):
        RecordingScheduler.calls.append(name)
        if name == HOURLY_DST_CHECK:
            return None
        if name == TIMEZONE_VALIDATION:
            return TimezoneValidationReport(
                checked=3, invalid=1, errors=[SweepError(item_id="t1", error="Unknown timezone")]
            )
        return SweepReport(processed=2, succeeded=2, created=5)


def test_generation_sweep_task_returns_json_summary(monkeypatch):
    RecordingScheduler.calls = []
    monkeypatch.setattr(scheduling_tasks, "Scheduler", RecordingScheduler)

    result = scheduling_tasks.generation_sweep.apply().get()

    assert RecordingScheduler.calls == [GENERATION_SWEEP]
    assert result["created"] == 5
    assert result["errors"] == []


def test_skipped_hourly_check_returns_none(monkeypatch):
    RecordingScheduler.calls = []
    monkeypatch.setattr(scheduling_tasks, "Scheduler", RecordingScheduler)

    assert scheduling_tasks.hourly_dst_check.apply().get() is None


def test_timezone_validation_task_reports_invalid_count(monkeypatch):
    RecordingScheduler.calls = []
    monkeypatch.setattr(scheduling_tasks, "Scheduler", RecordingScheduler)

    result = scheduling_tasks.timezone_validation.apply().get()

    assert RecordingScheduler.calls == [TIMEZONE_VALIDATION]
    assert result["invalid"] == 1
    assert result["errors"][0]["item_id"] == "t1"


def test_tasks_registered_under_scheduling_names():
    registered = scheduling_tasks.celery_app.tasks

    for name in (
        "scheduling.daily_dst_check",
        "scheduling.hourly_dst_check",
        "scheduling.generation_sweep",
        "scheduling.timezone_validation",
    ):
        assert name in registered
