# backend/tutorsched/repositories/notification_repository.py
"""
Repository for the notification outbox.

``enqueue`` is idempotent on ``idempotency_key``: an existing row is
returned instead of inserting a duplicate.
"""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import NotificationStatus
from ..models.notification import NotificationOutbox
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[NotificationOutbox]):
    def __init__(self, db: Session):
        super().__init__(db, NotificationOutbox)

    def get_by_idempotency_key(self, key: str) -> Optional[NotificationOutbox]:
        return self._execute_first(
            self._build_query().filter(NotificationOutbox.idempotency_key == key)
        )

    def enqueue(
        self,
        recipient_id: str,
        title: str,
        body: str,
        event_type: str,
        idempotency_key: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> NotificationOutbox:
        existing = self.get_by_idempotency_key(idempotency_key)
        if existing is not None:
            return existing
        return self.create(
            recipient_id=recipient_id,
            title=title,
            body=body,
            event_type=event_type,
            idempotency_key=idempotency_key,
            payload=payload or {},
            status=NotificationStatus.PENDING.value,
        )

    def get_pending(self, limit: int = 100) -> List[NotificationOutbox]:
        query = (
            self._build_query()
            .filter(NotificationOutbox.status == NotificationStatus.PENDING.value)
            .order_by(NotificationOutbox.created_at, NotificationOutbox.id)
            .limit(limit)
        )
        return self._execute_query(query)

    def list_for_recipient(self, recipient_id: str) -> List[NotificationOutbox]:
        return self._execute_query(
            self._build_query()
            .filter(NotificationOutbox.recipient_id == recipient_id)
            .order_by(NotificationOutbox.created_at, NotificationOutbox.id)
        )
