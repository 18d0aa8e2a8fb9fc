"""
Injectable clocks.

Sweeps and generators read "now" through a clock so that background jobs
can be driven deterministically in tests without real timers.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current instant as a timezone-aware UTC datetime."""


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._instant

    def advance(self, **kwargs: float) -> None:
        self._instant = self._instant + timedelta(**kwargs)
