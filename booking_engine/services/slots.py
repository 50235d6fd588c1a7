from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional
import logging

from booking_engine.core.config import BookingPolicy
from booking_engine.core.exceptions import InvalidRangeError
from booking_engine.schemas.scheduling import Slot
from booking_engine.services.conflicts import has_conflict
from booking_engine.services.intervals import (
    TimeRange,
    any_contains,
    at_minutes,
    format_minutes,
    time_range,
)
from booking_engine.services.schedule_resolver import ScheduleResolver
from booking_engine.services.snapshot import ScheduleSnapshot


logger = logging.getLogger(__name__)


class SlotGenerator:
    """Enumerates bookable slots of a service across one day.

    Works purely from a ``ScheduleSnapshot``; it never touches the database.
    """

    def __init__(self, policy: BookingPolicy, resolver: Optional[ScheduleResolver] = None):
        self.policy = policy
        self.resolver = resolver or ScheduleResolver()

    @property
    def business_range(self) -> TimeRange:
        hours = self.policy.business_hours
        return time_range(hours.start, hours.end)

    def candidate_ranges(self, duration_minutes: int) -> list[TimeRange]:
        """Slots of ``duration_minutes`` stepped by the slot interval."""
        if duration_minutes <= 0:
            raise InvalidRangeError(
                f"Service duration must be positive, got {duration_minutes} minutes"
            )

        bounds = self.business_range
        step = self.policy.slot_interval_minutes
        ranges = []
        current = bounds.start
        while current + duration_minutes <= bounds.end:
            candidate = TimeRange(start=current, end=current + duration_minutes)
            if bounds.contains(candidate):
                ranges.append(candidate)
            current += step
        return ranges

    def is_within_business_hours(self, start: datetime, end: datetime) -> bool:
        bounds = self.business_range
        day = start.date()
        return start >= at_minutes(day, bounds.start) and end <= at_minutes(
            day, bounds.end
        )

    def minimum_start(self, now: datetime) -> datetime:
        """Earliest datetime a slot may start at."""
        return now + timedelta(hours=self.policy.advance_booking_hours)

    def meets_advance_booking(self, start: datetime, now: datetime) -> bool:
        return start >= self.minimum_start(now)

    def earliest_slot_start(self, day: date) -> datetime:
        return at_minutes(day, self.business_range.start)

    def day_meets_advance_booking(self, day: date, now: datetime) -> bool:
        """Whole-day cutoff, judged by the day's earliest possible slot."""
        return self.meets_advance_booking(self.earliest_slot_start(day), now)

    def bookable_windows(
        self, snapshot: ScheduleSnapshot, staff_id: int, day: date
    ) -> list[TimeRange]:
        """Working windows of a staff member clipped to business hours."""
        bounds = self.business_range
        clipped = (
            window.clip(bounds)
            for window in self.resolver.available_windows(snapshot.calendar(staff_id), day)
        )
        return [window for window in clipped if window is not None]

    def staff_can_take(
        self,
        snapshot: ScheduleSnapshot,
        staff_id: int,
        day: date,
        slot: TimeRange,
        windows: Optional[list[TimeRange]] = None,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        """A staff member can take a slot if it lies inside one of their
        working windows and no blocking appointment overlaps it."""
        if windows is None:
            windows = self.resolver.available_windows(snapshot.calendar(staff_id), day)
        if not any_contains(windows, slot):
            return False
        return not has_conflict(
            staff_id,
            day,
            slot,
            snapshot.appointments_for(staff_id, day),
            exclude_appointment_id,
        )

    def eligible_staff_ids(
        self, snapshot: ScheduleSnapshot, staff_ids: Optional[Iterable[int]] = None
    ) -> list[int]:
        if snapshot.service is None:
            return []
        wanted = set(staff_ids) if staff_ids is not None else None
        return [
            member.id
            for member in snapshot.staff
            if (wanted is None or member.id in wanted)
            and member.can_perform(snapshot.service.id)
        ]

    def first_available_staff(
        self,
        snapshot: ScheduleSnapshot,
        day: date,
        slot: TimeRange,
        staff_ids: Optional[Iterable[int]] = None,
        exclude_appointment_id: Optional[int] = None,
    ) -> Optional[int]:
        for staff_id in self.eligible_staff_ids(snapshot, staff_ids):
            if self.staff_can_take(
                snapshot, staff_id, day, slot, exclude_appointment_id=exclude_appointment_id
            ):
                return staff_id
        return None

    def walk_day(
        self,
        snapshot: ScheduleSnapshot,
        day: date,
        now: datetime,
        staff_ids: Optional[Iterable[int]] = None,
        exclude_appointment_id: Optional[int] = None,
    ) -> Iterator[tuple[TimeRange, Optional[int]]]:
        """Yield each candidate slot with the first staff member able to take it.

        Yields nothing when the day as a whole is inside the advance-booking
        cutoff or nobody can perform the service.
        """
        if snapshot.service is None:
            return

        candidates = self.eligible_staff_ids(snapshot, staff_ids)
        ranges = self.candidate_ranges(snapshot.service.duration_minutes)
        if not candidates:
            logger.debug(f"No eligible staff for service {snapshot.service.id}")
            return

        if not self.day_meets_advance_booking(day, now):
            logger.debug(f"{day} is inside the advance booking cutoff")
            return

        windows = {
            staff_id: self.bookable_windows(snapshot, staff_id, day)
            for staff_id in candidates
        }

        # No slot starts before the earliest one checked above
        for slot in ranges:
            assigned = next(
                (
                    staff_id
                    for staff_id in candidates
                    if self.staff_can_take(
                        snapshot,
                        staff_id,
                        day,
                        slot,
                        windows=windows[staff_id],
                        exclude_appointment_id=exclude_appointment_id,
                    )
                ),
                None,
            )
            yield slot, assigned

    def generate_slots(
        self,
        snapshot: ScheduleSnapshot,
        day: date,
        now: datetime,
        staff_ids: Optional[Iterable[int]] = None,
        include_unavailable: bool = False,
    ) -> list[Slot]:
        slots = []
        for slot, staff_id in self.walk_day(snapshot, day, now, staff_ids):
            available = staff_id is not None
            if available or include_unavailable:
                slots.append(self.build_slot(day, slot, available))
        return slots

    def count_available_slots(
        self,
        snapshot: ScheduleSnapshot,
        day: date,
        now: datetime,
        staff_ids: Optional[Iterable[int]] = None,
    ) -> int:
        return sum(
            1
            for _, staff_id in self.walk_day(snapshot, day, now, staff_ids)
            if staff_id is not None
        )

    @staticmethod
    def build_slot(day: date, slot: TimeRange, available: bool = True) -> Slot:
        start = format_minutes(slot.start)
        end = format_minutes(slot.end)
        return Slot(
            start=start,
            end=end,
            available=available,
            datetime_start=f"{day.isoformat()} {start}",
            datetime_end=f"{day.isoformat()} {end}",
        )
