from datetime import date, datetime
from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from booking_engine.api.deps.scheduling import (
    get_appointment_service,
    get_staff_schedule_service,
)
from booking_engine.schemas.scheduling import Slot, StaffAvailabilityResponse
from booking_engine.services.appointment import AppointmentService
from booking_engine.services.staff_schedule import StaffScheduleService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/{staff_id}/availability", response_model=StaffAvailabilityResponse)
async def get_staff_availability(
    staff_id: int,
    at: datetime = Query(..., description="Local date and time to check"),
    staff_schedule_service: StaffScheduleService = Depends(get_staff_schedule_service),
) -> StaffAvailabilityResponse:
    """
    Check whether a staff member is working at a moment.

    Vacation periods override date exceptions, which override the weekly
    schedule. Existing appointments are not considered.
    """
    try:
        available = await staff_schedule_service.is_staff_available(staff_id, at)
        return StaffAvailabilityResponse(staff_id=staff_id, at=at, available=available)
    except Exception as e:
        logger.error("Failed to check staff availability", staff_id=staff_id, exc_info=e)
        raise HTTPException(
            status_code=500, detail=f"Failed to check staff availability: {str(e)}"
        )


@router.get("/{staff_id}/slots", response_model=List[Slot])
async def get_staff_slots(
    staff_id: int,
    service_id: int = Query(..., description="Service ID"),
    date: date = Query(..., description="Date to list slots for"),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> List[Slot]:
    """Bookable slots of a single staff member for a service."""
    try:
        return await appointment_service.get_available_time_slots(
            service_id, staff_id, date
        )
    except Exception as e:
        logger.error("Failed to get staff slots", staff_id=staff_id, exc_info=e)
        raise HTTPException(status_code=500, detail=f"Failed to get staff slots: {str(e)}")
