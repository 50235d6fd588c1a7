from datetime import date, datetime
import logging

from booking_engine.schemas.scheduling import DateExceptionEntry
from booking_engine.services.intervals import (
    MINUTES_PER_DAY,
    WHOLE_DAY,
    TimeRange,
    any_contains,
    merge_ranges,
    minutes_of,
    time_range,
)
from booking_engine.services.snapshot import StaffCalendar


logger = logging.getLogger(__name__)


class ScheduleResolver:
    """Decides staff availability from layered scheduling rules.

    Precedence, highest first:

    1. An approved vacation covering the date makes the whole day unavailable.
    2. Date exceptions for the date. An all-day exception decides the whole
       day; otherwise the first time-scoped exception (creation order) whose
       ``[start, end)`` covers the instant decides it.
    3. The base schedule: available iff the instant falls inside any active,
       date-effective entry for that weekday.
    """

    def is_available(self, calendar: StaffCalendar, moment: datetime) -> bool:
        day = moment.date()
        if calendar.is_on_vacation(day):
            logger.debug(f"Staff {calendar.staff_id} is on vacation on {day}")
            return False
        return self._resolve_minute(calendar, day, minutes_of(moment))

    def available_windows(self, calendar: StaffCalendar, day: date) -> list[TimeRange]:
        """Merged time ranges of the day during which the staff member works."""
        if calendar.is_on_vacation(day):
            logger.debug(f"Staff {calendar.staff_id} is on vacation on {day}")
            return []

        exceptions = calendar.exceptions_on(day)
        all_day = self._all_day_exception(exceptions)
        if all_day is not None:
            logger.debug(
                f"All-day exception for staff {calendar.staff_id} on {day} "
                f"(available={all_day.is_available})"
            )
            return [WHOLE_DAY] if all_day.is_available else []

        # Availability only changes at rule boundaries, so checking the start
        # of each elementary segment resolves the whole segment.
        boundaries = {0, MINUTES_PER_DAY}
        for schedule in calendar.schedules_on(day):
            window = time_range(schedule.start_time, schedule.end_time)
            boundaries.update((window.start, window.end))
        for exception in exceptions:
            window = time_range(exception.start_time, exception.end_time)
            boundaries.update((window.start, window.end))

        points = sorted(b for b in boundaries if 0 <= b <= MINUTES_PER_DAY)
        segments = [
            TimeRange(start=start, end=end)
            for start, end in zip(points, points[1:])
            if self._resolve_minute(calendar, day, start)
        ]
        windows = merge_ranges(segments)
        logger.debug(
            f"Staff {calendar.staff_id} windows on {day}: "
            f"{[str(w) for w in windows]}"
        )
        return windows

    def is_range_available(
        self, calendar: StaffCalendar, day: date, candidate: TimeRange
    ) -> bool:
        """True if every instant of ``candidate`` is inside a working window."""
        return any_contains(self.available_windows(calendar, day), candidate)

    def _resolve_minute(self, calendar: StaffCalendar, day: date, minute: int) -> bool:
        exceptions = calendar.exceptions_on(day)
        if exceptions:
            all_day = self._all_day_exception(exceptions)
            if all_day is not None:
                return all_day.is_available

            for exception in exceptions:
                if time_range(exception.start_time, exception.end_time).covers(minute):
                    return exception.is_available

        # No exception covers this instant
        return self._in_base_schedule(calendar, day, minute)

    def _in_base_schedule(self, calendar: StaffCalendar, day: date, minute: int) -> bool:
        # Split shifts: any matching entry makes the instant available
        return any(
            time_range(schedule.start_time, schedule.end_time).covers(minute)
            for schedule in calendar.schedules_on(day)
        )

    @staticmethod
    def _all_day_exception(exceptions: list[DateExceptionEntry]):
        return next((e for e in exceptions if e.is_all_day), None)
