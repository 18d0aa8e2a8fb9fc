"""
Interval algebra over UTC ranges.

All comparisons use integer milliseconds since the epoch so that values
coming from different timezone conversions compare exactly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional

from ..core.enums import BusyIntervalType

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def to_epoch_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // _ONE_MS


@dataclass
class TimeSegment:
    """Half-open UTC range ``[start, end)``."""

    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return (to_epoch_ms(self.end) - to_epoch_ms(self.start)) // 60_000

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return to_epoch_ms(self.start) < to_epoch_ms(end) and to_epoch_ms(self.end) > to_epoch_ms(
            start
        )


@dataclass
class BusyInterval(TimeSegment):
    """A range during which a teacher cannot be booked."""

    type: str = BusyIntervalType.CLASS.value
    meta: Any = field(default=None)


def _meta_list(meta: Any) -> List[Any]:
    if meta is None:
        return []
    if isinstance(meta, list):
        return list(meta)
    return [meta]


def merge_intervals(intervals: Iterable[BusyInterval]) -> List[BusyInterval]:
    """
    Sort and combine overlapping or touching intervals.

    The merged ``meta`` is the list of contributing metas and the merged
    ``type`` is the shared type, or ``mixed`` when sources differ. Empty
    intervals are dropped.
    """
    ordered = sorted(
        (iv for iv in intervals if to_epoch_ms(iv.end) > to_epoch_ms(iv.start)),
        key=lambda iv: (to_epoch_ms(iv.start), to_epoch_ms(iv.end)),
    )

    merged: List[BusyInterval] = []
    for interval in ordered:
        if merged and to_epoch_ms(interval.start) <= to_epoch_ms(merged[-1].end):
            current = merged[-1]
            if to_epoch_ms(interval.end) > to_epoch_ms(current.end):
                current.end = interval.end
            if current.type != interval.type:
                current.type = BusyIntervalType.MIXED.value
            current.meta.extend(_meta_list(interval.meta))
            continue
        merged.append(
            BusyInterval(
                start=interval.start,
                end=interval.end,
                type=interval.type,
                meta=_meta_list(interval.meta),
            )
        )
    return merged


def clip(interval: BusyInterval, window: TimeSegment) -> Optional[BusyInterval]:
    """Restrict ``interval`` to ``window``; None when they do not overlap."""
    start_ms = max(to_epoch_ms(interval.start), to_epoch_ms(window.start))
    end_ms = min(to_epoch_ms(interval.end), to_epoch_ms(window.end))
    if end_ms <= start_ms:
        return None
    start = interval.start if to_epoch_ms(interval.start) == start_ms else window.start
    end = interval.end if to_epoch_ms(interval.end) == end_ms else window.end
    return BusyInterval(start=start, end=end, type=interval.type, meta=interval.meta)


def subtract(window: TimeSegment, busy: Iterable[BusyInterval]) -> List[TimeSegment]:
    """
    Free sub-ranges of ``window`` not covered by any busy interval.

    Busy intervals are clipped to the window before merging, so the result
    plus the clipped busy set partitions the window exactly.
    """
    if to_epoch_ms(window.end) <= to_epoch_ms(window.start):
        return []

    clipped = [c for c in (clip(iv, window) for iv in busy) if c is not None]

    free: List[TimeSegment] = []
    cursor = window.start
    for interval in merge_intervals(clipped):
        if to_epoch_ms(interval.start) > to_epoch_ms(cursor):
            free.append(TimeSegment(start=cursor, end=interval.start))
        if to_epoch_ms(interval.end) > to_epoch_ms(cursor):
            cursor = interval.end
    if to_epoch_ms(cursor) < to_epoch_ms(window.end):
        free.append(TimeSegment(start=cursor, end=window.end))
    return free
