from datetime import date, datetime, timedelta
from typing import Iterator, Optional
import logging

from booking_engine.core.config import BookingPolicy
from booking_engine.core.exceptions import InvalidRangeError
from booking_engine.schemas.scheduling import AvailabilityCategory
from booking_engine.services.slots import SlotGenerator
from booking_engine.services.snapshot import ScheduleSnapshot


logger = logging.getLogger(__name__)


def iter_dates(start_date: date, end_date: date) -> Iterator[date]:
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def validate_date_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise InvalidRangeError(
            f"End date {end_date} is before start date {start_date}"
        )


def categorize(available_slots: int, limited_threshold: int = 3) -> AvailabilityCategory:
    """Bucket a day's available slot count into a calendar category."""
    if available_slots <= 0:
        return AvailabilityCategory.UNAVAILABLE
    if available_slots <= limited_threshold:
        return AvailabilityCategory.LIMITED
    return AvailabilityCategory.AVAILABLE


class AvailabilityAggregator:
    """Per-day availability categories for a service over a date range."""

    def __init__(self, policy: BookingPolicy, generator: Optional[SlotGenerator] = None):
        self.policy = policy
        self.generator = generator or SlotGenerator(policy)

    def aggregate(
        self,
        snapshot: ScheduleSnapshot,
        start_date: date,
        end_date: date,
        now: datetime,
    ) -> dict[date, AvailabilityCategory]:
        validate_date_range(start_date, end_date)

        if snapshot.service is None or not snapshot.staff:
            logger.info(
                f"No service or eligible staff; marking {start_date}..{end_date} unavailable"
            )
            return {
                day: AvailabilityCategory.UNAVAILABLE
                for day in iter_dates(start_date, end_date)
            }

        # Surface a bad duration before walking any day
        self.generator.candidate_ranges(snapshot.service.duration_minutes)

        availability = {}
        for day in iter_dates(start_date, end_date):
            count = self.generator.count_available_slots(snapshot, day, now)
            availability[day] = categorize(count, self.policy.limited_threshold)
            logger.debug(f"{day}: {count} available slots -> {availability[day].value}")

        logger.info(
            f"Aggregated availability for service {snapshot.service.id} "
            f"over {len(availability)} days: "
            f"{sum(1 for c in availability.values() if c != AvailabilityCategory.UNAVAILABLE)} "
            f"bookable"
        )
        return availability
