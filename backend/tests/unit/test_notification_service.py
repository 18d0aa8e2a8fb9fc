# backend/tests/unit/test_notification_service.py
from unittest.mock import Mock

from tutorsched.models import NotificationOutbox
from tutorsched.services.notification_service import NotificationService


def test_missing_recipient_is_not_queued(db):
    service = NotificationService(db)

    assert service.dispatch(None, "Title", "Body") is False
    assert db.query(NotificationOutbox).count() == 0


def test_enqueue_failure_is_reported_not_raised(db):
    repository = Mock()
    repository.enqueue.side_effect = RuntimeError("outbox unavailable")
    service = NotificationService(db, notification_repository=repository)

    assert service.dispatch("01HRECIPIENT00000000000001", "Title", "Body") is False


def test_dispatch_queues_pending_row(db):
    service = NotificationService(db)

    queued = service.dispatch(
        "01HRECIPIENT00000000000001",
        "Class reminder",
        "Your class starts soon",
        metadata={"occurrence_id": "abc"},
        event_type="reminder",
        idempotency_key="reminder:abc",
    )
    db.commit()

    row = db.query(NotificationOutbox).one()
    assert queued is True
    assert row.status == "pending"
    assert row.payload == {"occurrence_id": "abc"}
    assert row.event_type == "reminder"


def test_same_idempotency_key_queues_once(db):
    service = NotificationService(db)

    for _ in range(2):
        assert service.dispatch("01HRECIPIENT00000000000001", "T", "B", idempotency_key="k1") is True
    db.commit()

    assert db.query(NotificationOutbox).count() == 1


def test_generated_keys_are_distinct(db):
    service = NotificationService(db)

    service.dispatch("01HRECIPIENT00000000000001", "T", "B", event_type="generic")
    service.dispatch("01HRECIPIENT00000000000001", "T", "B", event_type="generic")
    db.commit()

    assert db.query(NotificationOutbox).count() == 2
