"""Time-of-day range math used by the scheduling engine.

Ranges are half-open ``[start, end)`` and measured in minutes since local
midnight, so ``TimeRange(start=540, end=600)`` is 09:00-10:00.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

MINUTES_PER_DAY = 24 * 60


class TimeRange(BaseModel):
    start: int
    end: int

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def covers(self, minute: int) -> bool:
        return self.start <= minute < self.end

    def contains(self, other: "TimeRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end

    def clip(self, bounds: "TimeRange") -> Optional["TimeRange"]:
        """Part of this range inside ``bounds``, or None if they do not overlap."""
        if not self.overlaps(bounds):
            return None
        return TimeRange(start=max(self.start, bounds.start), end=min(self.end, bounds.end))

    def __str__(self):
        return f"{format_minutes(self.start)}-{format_minutes(self.end)}"


WHOLE_DAY = TimeRange(start=0, end=MINUTES_PER_DAY)


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def to_end_minutes(value: time) -> int:
    """Like to_minutes, but an end time of 00:00 means midnight at day end."""
    minutes = to_minutes(value)
    return MINUTES_PER_DAY if minutes == 0 else minutes


def time_range(start: time, end: time) -> TimeRange:
    return TimeRange(start=to_minutes(start), end=to_end_minutes(end))


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def at_minutes(day: date, minutes: int) -> datetime:
    return datetime.combine(day, time.min) + timedelta(minutes=minutes)


def minutes_of(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def merge_ranges(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    """Union of ranges; touching ranges are joined."""
    merged: list[TimeRange] = []
    non_empty = [r for r in ranges if not r.is_empty]
    for current in sorted(non_empty, key=lambda r: (r.start, r.end)):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeRange(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def any_contains(windows: Iterable[TimeRange], candidate: TimeRange) -> bool:
    return any(window.contains(candidate) for window in windows)


def day_of_week(day: date) -> int:
    """Schedule weekday number: 0 = Sunday .. 6 = Saturday."""
    return (day.weekday() + 1) % 7
