# backend/tests/unit/test_intervals.py
"""Interval algebra: merge and subtract over UTC ranges."""

from datetime import datetime, timedelta, timezone

from hypothesis import given, settings, strategies as st

from tutorsched.utils.intervals import BusyInterval, TimeSegment, clip, merge_intervals, subtract, to_epoch_ms

BASE = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)

# (start, length) in minutes after BASE; zero lengths and touching ends included
spans = st.lists(
    st.tuples(st.integers(min_value=0, max_value=600), st.integers(min_value=0, max_value=120)),
    max_size=30,
)


def at(minutes: int) -> datetime:
    return BASE + timedelta(minutes=minutes)


def busy(start: int, end: int, **kwargs) -> BusyInterval:
    return BusyInterval(start=at(start), end=at(end), **kwargs)


def covered_minutes(intervals) -> set:
    minutes = set()
    for iv in intervals:
        start = (to_epoch_ms(iv.start) - to_epoch_ms(BASE)) // 60000
        end = (to_epoch_ms(iv.end) - to_epoch_ms(BASE)) // 60000
        minutes.update(range(start, end))
    return minutes


class TestMergeIntervals:
    def test_unsorted_overlapping_input_is_sorted_and_combined(self):
        merged = merge_intervals([busy(60, 120), busy(0, 30), busy(100, 150)])

        assert [(m.start, m.end) for m in merged] == [(at(0), at(30)), (at(60), at(150))]

    def test_touching_intervals_are_combined(self):
        merged = merge_intervals([busy(0, 30), busy(30, 60)])

        assert len(merged) == 1
        assert merged[0].end == at(60)

    def test_metadata_is_preserved_as_list(self):
        merged = merge_intervals(
            [busy(0, 30, meta={"id": "a"}), busy(10, 40, meta={"id": "b"}, type="unavailable")]
        )

        assert merged[0].meta == [{"id": "a"}, {"id": "b"}]
        assert merged[0].type == "mixed"

    def test_single_source_meta_still_wrapped_in_list(self):
        merged = merge_intervals([busy(0, 30, meta={"id": "a"})])

        assert merged[0].meta == [{"id": "a"}]
        assert merged[0].type == "class"

    def test_empty_intervals_dropped(self):
        assert merge_intervals([busy(10, 10)]) == []

    def test_does_not_mutate_inputs(self):
        first = busy(0, 30, meta={"id": "a"})
        merge_intervals([first, busy(10, 40, meta={"id": "b"})])

        assert first.end == at(30)
        assert first.meta == {"id": "a"}

    @settings(max_examples=200, deadline=None)
    @given(spans)
    def test_output_sorted_disjoint_and_same_union(self, raw):
        intervals = [busy(start, start + length) for start, length in raw]

        merged = merge_intervals(intervals)

        for left, right in zip(merged, merged[1:]):
            assert to_epoch_ms(left.end) < to_epoch_ms(right.start)
        assert covered_minutes(merged) == covered_minutes(intervals)


class TestSubtract:
    def test_empty_busy_list_returns_whole_window(self):
        window = TimeSegment(at(0), at(120))

        assert subtract(window, []) == [TimeSegment(at(0), at(120))]

    def test_fully_covered_window_returns_nothing(self):
        window = TimeSegment(at(30), at(90))

        assert subtract(window, [busy(0, 120)]) == []

    def test_zero_length_window_returns_nothing(self):
        window = TimeSegment(at(30), at(30))

        assert subtract(window, []) == []

    def test_busy_intervals_clipped_to_window(self):
        window = TimeSegment(at(60), at(240))

        free = subtract(window, [busy(0, 90), busy(200, 300)])

        assert free == [TimeSegment(at(90), at(200))]

    def test_gaps_between_busy_intervals(self):
        window = TimeSegment(at(0), at(600))

        free = subtract(window, [busy(120, 180), busy(150, 240), busy(570, 600)])

        assert free == [TimeSegment(at(0), at(120)), TimeSegment(at(240), at(570))]

    @settings(max_examples=200, deadline=None)
    @given(
        st.integers(min_value=0, max_value=600),
        st.integers(min_value=0, max_value=480),
        spans,
    )
    def test_free_and_clipped_busy_partition_window(self, window_start, window_length, raw):
        window = TimeSegment(at(window_start), at(window_start + window_length))
        intervals = [busy(start, start + length) for start, length in raw]

        free = subtract(window, intervals)
        clipped = [c for c in (clip(iv, window) for iv in intervals) if c is not None]

        for left, right in zip(free, free[1:]):
            assert to_epoch_ms(left.end) < to_epoch_ms(right.start)
        free_minutes = covered_minutes(free)
        busy_minutes = covered_minutes(clipped)
        assert free_minutes.isdisjoint(busy_minutes)
        assert free_minutes | busy_minutes == set(range(window_start, window_start + window_length))


def test_clip_returns_none_without_overlap():
    assert clip(busy(0, 30), TimeSegment(at(30), at(60))) is None


def test_time_segment_duration_and_overlap():
    segment = TimeSegment(at(0), at(90))

    assert segment.duration_minutes == 90
    assert segment.overlaps(at(89), at(120))
    assert not segment.overlaps(at(90), at(120))
