# backend/tests/unit/test_base_service.py
"""
Tests for BaseService transaction handling and operation metrics.
"""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from tutorsched.core.exceptions import RepositoryException, UpstreamUnavailableException
from tutorsched.services.base import BaseService


class SampleService(BaseService):
    @BaseService.measure_operation("work")
    def work(self, fail: bool = False) -> str:
        if fail:
            raise ValueError("nope")
        return "done"


class TestTransaction:
    def test_commits_on_success(self):
        db = Mock()
        service = SampleService(db)

        with service.transaction():
            pass

        db.commit.assert_called_once()
        db.rollback.assert_not_called()

    def test_database_error_becomes_upstream_unavailable(self):
        db = Mock()
        service = SampleService(db)

        with pytest.raises(UpstreamUnavailableException):
            with service.transaction():
                raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        db.rollback.assert_called_once()

    def test_other_errors_are_reraised_after_rollback(self):
        db = Mock()
        service = SampleService(db)

        with pytest.raises(KeyError):
            with service.transaction():
                raise KeyError("missing")

        db.rollback.assert_called_once()
        db.commit.assert_not_called()


def test_repository_errors_are_translated():
    service = SampleService(Mock())

    with pytest.raises(UpstreamUnavailableException) as exc_info:
        with service.repository_errors("lookup"):
            raise RepositoryException("connection refused")

    assert exc_info.value.code == "PERSISTENCE_UNAVAILABLE"


def test_measure_operation_records_metrics():
    service = SampleService(Mock())

    assert service.work() == "done"
    with pytest.raises(ValueError):
        service.work(fail=True)

    metrics = service.get_metrics()["work"]
    assert metrics["count"] == 2
    assert metrics["failure_count"] == 1
    assert metrics["success_rate"] == 0.5
    assert SampleService.work._is_measured is True
