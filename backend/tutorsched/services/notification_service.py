# backend/tutorsched/services/notification_service.py
"""
Notification Service.

Fire-and-forget dispatch of ``{recipient_id, title, body, metadata}``
through the notification outbox. Delivery transport is external; this
service only queues. A failed enqueue is logged and reported as False,
never raised, so it cannot abort the caller's primary operation.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.ulid_helper import generate_ulid
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    def __init__(self, db: Session, notification_repository=None):
        super().__init__(db)
        self.repository = (
            notification_repository or RepositoryFactory.create_notification_repository(db)
        )

    @BaseService.measure_operation("dispatch")
    def dispatch(
        self,
        recipient_id: Optional[str],
        title: str,
        body: str,
        metadata: Optional[Dict[str, Any]] = None,
        event_type: str = "generic",
        idempotency_key: Optional[str] = None,
    ) -> bool:
        """
        Queue a notification inside a savepoint of the caller's transaction.

        Returns True when queued (or already queued under the same key).
        """
        if not recipient_id:
            return False

        key = idempotency_key or f"{event_type}:{recipient_id}:{generate_ulid()}"
        try:
            with self.db.begin_nested():
                self.repository.enqueue(
                    recipient_id=recipient_id,
                    title=title,
                    body=body,
                    event_type=event_type,
                    idempotency_key=key,
                    payload=metadata or {},
                )
        except Exception as exc:
            self.logger.warning(
                "Notification enqueue failed",
                extra={"recipient_id": recipient_id, "event_type": event_type, "error": str(exc)},
            )
            prometheus_metrics.record_notification_outcome(event_type, "failed")
            return False

        prometheus_metrics.record_notification_outcome(event_type, "queued")
        return True
