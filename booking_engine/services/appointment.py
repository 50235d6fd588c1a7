from datetime import date, datetime, time, timedelta
from typing import Callable, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.clock import local_now
from booking_engine.core.config import BookingPolicy, settings
from booking_engine.core.exceptions import InvalidRangeError, NotFoundError
from booking_engine.schemas.scheduling import (
    AppointmentValidationRequest,
    AppointmentValidationResult,
    AvailabilityCategory,
    DaySlotsResponse,
    Slot,
    UnavailableDatesResponse,
)
from booking_engine.services.availability import (
    AvailabilityAggregator,
    validate_date_range,
)
from booking_engine.services.intervals import time_range
from booking_engine.services.schedule_data import ScheduleRepository
from booking_engine.services.slots import SlotGenerator
from booking_engine.services.snapshot import ScheduleSnapshot


logger = logging.getLogger(__name__)

ADVANCE_BOOKING_NOT_MET = "advance_booking_not_met"


class AppointmentService:
    """Bookable-slot computation and booking validation.

    Availability answers are advisory: they can race with concurrent
    bookings, so appointment creation must re-check conflicts at write time.
    """

    def __init__(
        self,
        db: AsyncSession,
        policy: Optional[BookingPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
        repository: Optional[ScheduleRepository] = None,
        availability_window_days: Optional[int] = None,
    ):
        self.db = db
        self.policy = policy or settings.booking_policy()
        self.clock = clock or local_now
        self.repository = repository or ScheduleRepository(db)
        self.availability_window_days = (
            availability_window_days
            if availability_window_days is not None
            else settings.BOOKING_AVAILABILITY_WINDOW_DAYS
        )
        self.generator = SlotGenerator(self.policy)
        self.aggregator = AvailabilityAggregator(self.policy, self.generator)

    async def check_staff_availability(
        self,
        staff_id: int,
        service_id: int,
        day: date,
        start_time: time,
        end_time: time,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        """
        Check if a staff member can take the given interval.

        The staff member must be able to perform the service, work for the
        whole interval (vacation > exception > base schedule) and have no
        overlapping pending/confirmed appointment.
        """
        proposed = time_range(start_time, end_time)
        if proposed.is_empty:
            return False

        staff = await self.repository.get_staff_member(staff_id)
        if staff is None:
            logger.warning(f"Staff not found: {staff_id}")
            return False

        if not staff.can_perform(service_id):
            logger.debug(f"Staff {staff_id} cannot perform service {service_id}")
            return False

        snapshot = await self.repository.load_snapshot(None, [staff], day, day)
        available = self.generator.staff_can_take(
            snapshot,
            staff_id,
            day,
            proposed,
            exclude_appointment_id=exclude_appointment_id,
        )
        logger.debug(
            f"Staff {staff_id} availability for {day} {proposed}: {available}"
        )
        return available

    async def get_available_time_slots(
        self, service_id: int, staff_id: int, day: date
    ) -> list[Slot]:
        """Available slots of one staff member for a service on a date."""
        snapshot = await self._load_day(service_id, day, staff_id=staff_id)
        return self.generator.generate_slots(
            snapshot, day, self.clock(), staff_ids=[staff_id]
        )

    async def is_any_staff_available(
        self,
        service_id: int,
        day: date,
        start_time: time,
        end_time: time,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        staff_id = await self.find_first_available_staff(
            service_id, day, start_time, end_time, exclude_appointment_id
        )
        return staff_id is not None

    async def find_first_available_staff(
        self,
        service_id: int,
        day: date,
        start_time: time,
        end_time: time,
        exclude_appointment_id: Optional[int] = None,
    ) -> Optional[int]:
        """
        Find the first eligible staff member (by id) free for the interval.

        Returns:
            Staff ID if someone is available, None otherwise
        """
        proposed = time_range(start_time, end_time)
        if proposed.is_empty:
            return None

        snapshot = await self._load_day(service_id, day)
        staff_id = self.generator.first_available_staff(
            snapshot, day, proposed, exclude_appointment_id=exclude_appointment_id
        )
        logger.info(
            f"First available staff for service {service_id} on {day} {proposed}: {staff_id}"
        )
        return staff_id

    async def get_available_slots_across_all_staff(
        self, service_id: int, day: date
    ) -> list[Slot]:
        """Slots where at least one eligible staff member is free."""
        snapshot = await self._load_day(service_id, day)
        slots = self.generator.generate_slots(snapshot, day, self.clock())
        logger.info(f"Found {len(slots)} available slots for service {service_id} on {day}")
        return slots

    async def count_available_slots(self, service_id: int, day: date) -> int:
        snapshot = await self._load_day(service_id, day)
        return self.generator.count_available_slots(snapshot, day, self.clock())

    async def get_day_slots(self, service_id: int, day: date) -> DaySlotsResponse:
        """Slots for the booking calendar, explaining an advance-booking cutoff."""
        service = await self.repository.get_service(service_id)
        if service is None:
            raise NotFoundError("Service", service_id)

        now = self.clock()
        if not self.generator.day_meets_advance_booking(day, now):
            minimum = self.generator.minimum_start(now)
            return DaySlotsResponse(
                date=day,
                slots=[],
                message=f"Bookings are possible from {minimum:%d.%m.%Y %H:%M}",
                reason=ADVANCE_BOOKING_NOT_MET,
            )

        staff = await self.repository.list_eligible_staff(service_id)
        snapshot = await self.repository.load_snapshot(service, staff, day, day)
        return DaySlotsResponse(
            date=day, slots=self.generator.generate_slots(snapshot, day, now)
        )

    def is_within_business_hours(self, start: datetime, end: datetime) -> bool:
        return self.generator.is_within_business_hours(start, end)

    def meets_advance_booking_requirement(self, appointment_datetime: datetime) -> bool:
        return self.generator.meets_advance_booking(appointment_datetime, self.clock())

    async def validate_appointment(
        self, request: AppointmentValidationRequest
    ) -> AppointmentValidationResult:
        """Validate a booking; failures are reported, not raised."""
        errors = []
        now = self.clock()
        day = request.appointment_date
        start = datetime.combine(day, request.start_time)
        end = datetime.combine(day, request.end_time)

        if day < now.date():
            errors.append("Appointments cannot be booked in the past.")

        if not self.generator.meets_advance_booking(start, now):
            errors.append(
                "Bookings must be made at least "
                f"{self.policy.advance_booking_hours} hours before the appointment."
            )

        if not self.is_within_business_hours(start, end):
            hours = self.policy.business_hours
            errors.append(
                "Appointments must take place within business hours: "
                f"{hours.start:%H:%M} - {hours.end:%H:%M}."
            )

        if start >= end:
            errors.append("Start time must be before end time.")

        available = await self.check_staff_availability(
            request.staff_id,
            request.service_id,
            day,
            request.start_time,
            request.end_time,
            request.exclude_appointment_id,
        )
        if not available:
            errors.append(
                "The selected time is not available. "
                "The staff member is busy or not working at that time."
            )

        if errors:
            logger.info(
                f"Appointment validation failed for staff {request.staff_id} on "
                f"{day} {request.start_time:%H:%M}: {errors}"
            )
        return AppointmentValidationResult(valid=not errors, errors=errors)

    async def get_bulk_availability(
        self, service_id: int, start_date: date, end_date: date
    ) -> dict[date, AvailabilityCategory]:
        """
        Availability category for every date in the range.

        Issues a fixed number of queries (service, roster, appointments,
        vacations, exceptions, schedules) regardless of the range length and
        resolves every day in memory.
        """
        validate_date_range(start_date, end_date)
        now = self.clock()

        service = await self.repository.get_service(service_id)
        if service is None:
            return self.aggregator.aggregate(
                ScheduleSnapshot.empty(None, start_date, end_date),
                start_date,
                end_date,
                now,
            )
        if service.duration_minutes <= 0:
            raise InvalidRangeError(
                f"Service {service_id} has non-positive duration "
                f"{service.duration_minutes}"
            )

        staff = await self.repository.list_eligible_staff(service_id)
        snapshot = await self.repository.load_snapshot(service, staff, start_date, end_date)
        return self.aggregator.aggregate(snapshot, start_date, end_date, now)

    async def get_unavailable_dates(self, service_id: int) -> UnavailableDatesResponse:
        """Calendar payload for the booking horizon starting today."""
        start_date = self.clock().date()
        end_date = start_date + timedelta(days=self.availability_window_days)
        availability = await self.get_bulk_availability(service_id, start_date, end_date)
        return UnavailableDatesResponse(
            unavailable_dates=[
                day
                for day, category in availability.items()
                if category == AvailabilityCategory.UNAVAILABLE
            ],
            availability=availability,
        )

    async def _load_day(
        self, service_id: int, day: date, staff_id: Optional[int] = None
    ) -> ScheduleSnapshot:
        service = await self.repository.get_service(service_id)
        if service is None:
            return ScheduleSnapshot.empty(None, day, day)

        if staff_id is not None:
            member = await self.repository.get_staff_member(staff_id)
            staff = [member] if member is not None else []
        else:
            staff = await self.repository.list_eligible_staff(service_id)

        return await self.repository.load_snapshot(service, staff, day, day)
