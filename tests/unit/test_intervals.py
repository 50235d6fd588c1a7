from datetime import date, datetime, time

import pytest

from booking_engine.services.intervals import (
    MINUTES_PER_DAY,
    TimeRange,
    any_contains,
    at_minutes,
    day_of_week,
    format_minutes,
    merge_ranges,
    minutes_of,
    time_range,
)


pytestmark = pytest.mark.unit


class TestTimeRange:
    def test_half_open_covers(self):
        window = TimeRange(start=540, end=600)

        assert window.covers(540)
        assert window.covers(599)
        assert not window.covers(600)
        assert not window.covers(539)

    def test_contains(self):
        shift = TimeRange(start=540, end=1020)

        assert shift.contains(TimeRange(start=540, end=1020))
        assert shift.contains(TimeRange(start=960, end=1020))
        assert not shift.contains(TimeRange(start=990, end=1050))

    def test_touching_ranges_do_not_overlap(self):
        morning = TimeRange(start=540, end=600)
        late_morning = TimeRange(start=600, end=660)

        assert not morning.overlaps(late_morning)
        assert not late_morning.overlaps(morning)
        assert morning.overlaps(TimeRange(start=570, end=630))

    def test_clip_to_business_hours(self):
        business_hours = TimeRange(start=540, end=1080)

        assert TimeRange(start=420, end=600).clip(business_hours) == TimeRange(start=540, end=600)
        assert TimeRange(start=0, end=1440).clip(business_hours) == business_hours
        assert TimeRange(start=1080, end=1200).clip(business_hours) is None

    def test_empty(self):
        assert TimeRange(start=600, end=600).is_empty
        assert TimeRange(start=660, end=600).is_empty

    def test_str(self):
        assert str(TimeRange(start=540, end=1440)) == "09:00-24:00"


def test_time_range_treats_midnight_end_as_end_of_day():
    assert time_range(time(22, 0), time(0, 0)) == TimeRange(start=1320, end=MINUTES_PER_DAY)
    assert time_range(time(0, 0), time(8, 0)) == TimeRange(start=0, end=480)


def test_format_minutes():
    assert format_minutes(0) == "00:00"
    assert format_minutes(545) == "09:05"
    assert format_minutes(960) == "16:00"


def test_at_minutes_and_minutes_of():
    moment = at_minutes(date(2025, 6, 9), 570)

    assert moment == datetime(2025, 6, 9, 9, 30)
    assert minutes_of(moment) == 570


def test_at_minutes_end_of_day_rolls_to_next_midnight():
    assert at_minutes(date(2025, 6, 9), MINUTES_PER_DAY) == datetime(2025, 6, 10, 0, 0)


class TestMergeRanges:
    def test_merges_overlapping_and_touching(self):
        merged = merge_ranges(
            [
                TimeRange(start=780, end=900),
                TimeRange(start=540, end=720),
                TimeRange(start=720, end=750),
                TimeRange(start=600, end=660),
            ]
        )

        assert merged == [TimeRange(start=540, end=750), TimeRange(start=780, end=900)]

    def test_drops_empty_ranges(self):
        assert merge_ranges([TimeRange(start=600, end=600)]) == []

    def test_any_contains(self):
        windows = [TimeRange(start=540, end=720), TimeRange(start=780, end=1020)]

        assert any_contains(windows, TimeRange(start=780, end=840))
        assert not any_contains(windows, TimeRange(start=690, end=810))


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2025, 6, 8), 0),  # Sunday
        (date(2025, 6, 9), 1),  # Monday
        (date(2025, 6, 14), 6),  # Saturday
    ],
)
def test_day_of_week_counts_sunday_as_zero(day, expected):
    assert day_of_week(day) == expected
