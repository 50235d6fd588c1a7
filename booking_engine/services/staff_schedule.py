from datetime import date, datetime
from typing import Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.exceptions import InvalidRangeError
from booking_engine.schemas.scheduling import StaffMember
from booking_engine.services.intervals import at_minutes
from booking_engine.services.schedule_data import ScheduleRepository
from booking_engine.services.schedule_resolver import ScheduleResolver


logger = logging.getLogger(__name__)


class StaffScheduleService:
    """Calendar-based availability for individual staff members.

    Combines base schedules, date exceptions and vacation periods with
    vacation > exception > base schedule precedence.
    """

    def __init__(
        self,
        db: AsyncSession,
        repository: Optional[ScheduleRepository] = None,
        resolver: Optional[ScheduleResolver] = None,
    ):
        self.db = db
        self.repository = repository or ScheduleRepository(db)
        self.resolver = resolver or ScheduleResolver()

    async def is_staff_available(self, staff_id: int, moment: datetime) -> bool:
        """Check if a staff member is working at a specific date and time."""
        staff = await self.repository.get_staff_member(staff_id)
        if staff is None:
            logger.warning(f"Staff not found: {staff_id}")
            return False

        day = moment.date()
        snapshot = await self.repository.load_snapshot(None, [staff], day, day)
        available = self.resolver.is_available(snapshot.calendar(staff_id), moment)
        logger.debug(f"Staff {staff_id} available at {moment}: {available}")
        return available

    async def can_perform_service(self, staff_id: int, service_id: int) -> bool:
        staff = await self.repository.get_staff_member(staff_id)
        return staff is not None and staff.can_perform(service_id)

    async def get_available_slots(
        self,
        staff_id: int,
        day: date,
        service_duration_minutes: int,
        slot_interval_minutes: int = 30,
    ) -> list[datetime]:
        """
        Start times at which the staff member's schedule fits the service.

        Slots are stepped from the start of each working window. Existing
        appointments are not considered here; see AppointmentService for
        bookable slots.
        """
        if service_duration_minutes <= 0 or slot_interval_minutes <= 0:
            raise InvalidRangeError(
                "Service duration and slot interval must be positive "
                f"(got {service_duration_minutes} and {slot_interval_minutes})"
            )

        staff = await self.repository.get_staff_member(staff_id)
        if staff is None:
            logger.warning(f"Staff not found: {staff_id}")
            return []

        snapshot = await self.repository.load_snapshot(None, [staff], day, day)
        windows = self.resolver.available_windows(snapshot.calendar(staff_id), day)

        slots = []
        for window in windows:
            current = window.start
            while current + service_duration_minutes <= window.end:
                slots.append(at_minutes(day, current))
                current += slot_interval_minutes

        logger.info(f"Found {len(slots)} schedule slots for staff {staff_id} on {day}")
        return slots

    async def get_available_staff_for_service(
        self, service_id: int, moment: datetime
    ) -> list[StaffMember]:
        """Staff who can perform the service and are working at ``moment``."""
        staff = await self.repository.list_eligible_staff(service_id)
        if not staff:
            return []

        day = moment.date()
        snapshot = await self.repository.load_snapshot(None, staff, day, day)
        return [
            member
            for member in staff
            if self.resolver.is_available(snapshot.calendar(member.id), moment)
        ]
