from datetime import date
from typing import Iterable, Optional
import logging

from booking_engine.schemas.scheduling import BookedAppointment
from booking_engine.services.intervals import TimeRange, time_range


logger = logging.getLogger(__name__)


def overlaps_appointment(appointment: BookedAppointment, proposed: TimeRange) -> bool:
    """Check if a proposed interval collides with a booked appointment."""
    # Touching intervals do not collide
    return time_range(appointment.start_time, appointment.end_time).overlaps(proposed)


def has_conflict(
    staff_id: int,
    day: date,
    proposed: TimeRange,
    appointments: Iterable[BookedAppointment],
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    """Check if any pending/confirmed appointment of the staff member overlaps."""
    for appointment in appointments:
        if appointment.staff_id != staff_id or appointment.appointment_date != day:
            continue
        if not appointment.blocks_slot:
            continue
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        if overlaps_appointment(appointment, proposed):
            logger.debug(
                f"Slot {proposed} on {day} conflicts with appointment "
                f"{appointment.id} ({appointment.start_time}-{appointment.end_time})"
            )
            return True
    return False
