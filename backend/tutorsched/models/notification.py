# backend/tutorsched/models/notification.py
"""
Notification outbox.

Rows are written in the caller's transaction and delivered by an external
transport; ``idempotency_key`` keeps a retried sweep from queuing twice.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func
import ulid

from ..core.enums import NotificationStatus
from ..database import Base
from .types import JSONType


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class NotificationOutbox(Base):
    __tablename__ = "notification_outbox"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    recipient_id = Column(String(26), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    event_type = Column(String(100), nullable=False, index=True)
    payload = Column(JSONType, nullable=False, default=dict)
    idempotency_key = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=NotificationStatus.PENDING.value, index=True)
    attempt_count = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_notification_outbox_idempotency_key"),
    )

    def mark_sent(self) -> None:
        self.status = NotificationStatus.SENT.value
        self.attempt_count += 1
        self.updated_at = _now_utc()

    def mark_failed(self, error: str | None = None) -> None:
        self.status = NotificationStatus.FAILED.value
        self.attempt_count += 1
        if error:
            self.last_error = error[:1000]
        self.updated_at = _now_utc()
