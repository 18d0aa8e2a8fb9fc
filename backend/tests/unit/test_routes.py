# backend/tests/unit/test_routes.py
"""
HTTP-level tests for the v1 routes.

The app runs against the per-test SQLite session and the fixed clock via
dependency overrides.
"""

from fastapi.testclient import TestClient
import pytest

from tutorsched.api.dependencies import get_clock, get_db
from tutorsched.main import create_app


@pytest.fixture
def client(db, clock):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def alice(make_teacher, add_slot):
    teacher = make_teacher("Alice")
    add_slot(teacher, 1, "17:00", "19:00")
    return teacher


class TestAvailabilityRoutes:
    def test_check_available(self, client, alice):
        response = client.post(
            "/api/v1/availability/check",
            json={
                "teacher_id": alice.id,
                "start_utc": "2025-01-06T15:30:00Z",
                "end_utc": "2025-01-06T16:15:00Z",
            },
        )

        assert response.status_code == 200
        assert response.json()["available"] is True

    def test_check_busy_is_still_200(self, client, alice):
        response = client.post(
            "/api/v1/availability/check",
            json={
                "teacher_id": alice.id,
                "start_utc": "2025-01-06T16:30:00Z",
                "end_utc": "2025-01-06T17:30:00Z",
            },
        )

        assert response.status_code == 200
        assert response.json()["conflict_type"] == "no_weekly_slot"

    def test_inverted_range_is_400(self, client, alice):
        response = client.post(
            "/api/v1/availability/check",
            json={
                "teacher_id": alice.id,
                "start_utc": "2025-01-06T16:00:00Z",
                "end_utc": "2025-01-06T15:00:00Z",
            },
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TIME_RANGE"

    def test_unknown_teacher_is_404(self, client):
        response = client.post(
            "/api/v1/availability/check",
            json={
                "teacher_id": "missing",
                "start_utc": "2025-01-06T15:00:00Z",
                "end_utc": "2025-01-06T16:00:00Z",
            },
        )

        assert response.status_code == 404
        assert response.json()["code"] == "TEACHER_NOT_FOUND"

    def test_extra_fields_are_rejected(self, client, alice):
        response = client.post(
            "/api/v1/availability/check",
            json={
                "teacher_id": alice.id,
                "start_utc": "2025-01-06T15:00:00Z",
                "end_utc": "2025-01-06T16:00:00Z",
                "priority": "high",
            },
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_free_segments(self, client, alice):
        response = client.post(
            "/api/v1/availability/free-segments",
            json={
                "teacher_id": alice.id,
                "window_start_utc": "2025-01-06T08:00:00Z",
                "window_end_utc": "2025-01-06T10:00:00Z",
                "display_timezone": "Africa/Cairo",
            },
        )

        body = response.json()
        assert response.status_code == 200
        assert body["segments"][0]["duration_minutes"] == 120
        assert body["segments"][0]["display_start"] == "Mon 2025-01-06 10:00"

    def test_overlapping_slot_is_409(self, client, alice):
        response = client.post(
            "/api/v1/availability/slots",
            json={
                "teacher_id": alice.id,
                "day_of_week": 1,
                "start_time": "18:00",
                "end_time": "20:00",
            },
        )

        assert response.status_code == 409
        assert response.json()["code"] == "SLOT_OVERLAP"

    def test_create_slot(self, client, alice):
        response = client.post(
            "/api/v1/availability/slots",
            json={"teacher_id": alice.id, "day_of_week": 2, "start_time": "09:00", "end_time": "24:00"},
        )

        assert response.status_code == 201
        assert response.json()["end_time"] == "24:00"

    def test_alternatives(self, client, alice):
        response = client.get(f"/api/v1/availability/{alice.id}/alternatives", params={"limit": 2})

        assert response.status_code == 200
        assert [item["local_start"] for item in response.json()] == ["17:00", "17:30"]

    def test_compliance(self, client, alice):
        response = client.get(
            f"/api/v1/availability/{alice.id}/compliance",
            params={"min_days_per_week": 1, "min_hours_per_day": 2},
        )

        assert response.json()["compliant"] is True


class TestPatternRoutes:
    def test_generate_then_regenerate(self, client, make_teacher, add_pattern):
        teacher = make_teacher("Alice")
        pattern = add_pattern(teacher, slots=((3, 15, 30, 55),))

        first = client.post(f"/api/v1/patterns/{pattern.id}/generate")
        second = client.post(f"/api/v1/patterns/{pattern.id}/generate")

        assert first.status_code == 200
        assert first.json()["created_count"] == 9
        assert second.json()["created_count"] == 0

    def test_invalid_horizon_is_422(self, client, make_teacher, add_pattern):
        teacher = make_teacher("Alice")
        pattern = add_pattern(teacher, slots=((3, 15, 30, 55),))

        response = client.post(f"/api/v1/patterns/{pattern.id}/generate", json={"horizon_months": 13})

        assert response.status_code == 422

    def test_unknown_pattern_is_404(self, client):
        assert client.post("/api/v1/patterns/missing/generate").status_code == 404


class TestDSTRoutes:
    def test_transitions(self, client):
        response = client.get(
            "/api/v1/dst/transitions", params={"timezone": "America/New_York", "year": 2025}
        )

        body = response.json()
        assert response.status_code == 200
        assert [t["type"] for t in body] == ["forward", "backward"]
        assert body[0]["instant"].startswith("2025-03-09T07:00:00")

    def test_unknown_timezone_is_400(self, client):
        response = client.get("/api/v1/dst/info", params={"timezone": "Nowhere/Land"})

        assert response.status_code == 400
        assert response.json()["code"] == "UNKNOWN_TIMEZONE"


def test_teacher_search(client, alice):
    response = client.post(
        "/api/v1/teachers/search",
        json={
            "request": {
                "preferred_days": [1],
                "time_slots": [{"start_time": "17:00", "end_time": "18:00"}],
            }
        },
    )

    body = response.json()
    assert response.status_code == 200
    assert body["stats"]["exact_matches"] == 1
    assert body["message"].startswith("Available teachers (1):")


def test_metrics_and_health(client):
    assert client.get("/health").json()["status"] == "healthy"

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "tutorsched_service_operations_total" in metrics.text
