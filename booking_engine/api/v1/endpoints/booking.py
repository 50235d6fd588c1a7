from datetime import date, datetime
from typing import Callable

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from booking_engine.api.deps.scheduling import (
    get_appointment_service,
    get_availability_cache,
    get_clock,
)
from booking_engine.core.config import settings
from booking_engine.core.exceptions import InvalidRangeError, NotFoundError
from booking_engine.core.redis import RedisClient, availability_cache_key
from booking_engine.schemas.scheduling import (
    AppointmentValidationRequest,
    AppointmentValidationResult,
    AvailabilityRangeResponse,
    DaySlotsResponse,
    StaffAssignmentRequest,
    StaffAssignmentResponse,
    UnavailableDatesResponse,
)
from booking_engine.services.appointment import AppointmentService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/slots", response_model=DaySlotsResponse)
async def get_day_slots(
    service_id: int = Query(..., description="Service ID"),
    date: date = Query(..., description="Date to list slots for"),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> DaySlotsResponse:
    """
    Get bookable slots for a service on a date.

    A slot is listed when at least one staff member who performs the service
    is working for the whole slot and has no overlapping appointment. Days
    inside the advance-booking cutoff return no slots and a message with the
    earliest bookable time.
    """
    try:
        return await appointment_service.get_day_slots(service_id, date)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidRangeError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        )
    except Exception as e:
        logger.error("Failed to get slots", service_id=service_id, date=str(date), exc_info=e)
        raise HTTPException(status_code=500, detail=f"Failed to get slots: {str(e)}")


@router.get("/availability", response_model=AvailabilityRangeResponse)
async def get_availability(
    service_id: int = Query(..., description="Service ID"),
    start_date: date = Query(..., description="First date of the range"),
    end_date: date = Query(..., description="Last date of the range (inclusive)"),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AvailabilityRangeResponse:
    """Availability category (unavailable / limited / available) per date."""
    try:
        availability = await appointment_service.get_bulk_availability(
            service_id, start_date, end_date
        )
        return AvailabilityRangeResponse(
            service_id=service_id,
            start_date=start_date,
            end_date=end_date,
            availability=availability,
        )
    except InvalidRangeError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        )
    except Exception as e:
        logger.error("Failed to get availability", service_id=service_id, exc_info=e)
        raise HTTPException(
            status_code=500, detail=f"Failed to get availability: {str(e)}"
        )


@router.get("/unavailable-dates", response_model=UnavailableDatesResponse)
async def get_unavailable_dates(
    service_id: int = Query(..., description="Service ID"),
    appointment_service: AppointmentService = Depends(get_appointment_service),
    cache: RedisClient = Depends(get_availability_cache),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> UnavailableDatesResponse:
    """
    Booking calendar for the configured horizon starting today.

    Cached per service for the current hour.
    """
    cache_key = availability_cache_key(service_id, clock())
    cached = await cache.get(cache_key)
    if cached is not None:
        logger.debug("Availability cache hit", key=cache_key)
        return UnavailableDatesResponse.model_validate(cached)

    try:
        response = await appointment_service.get_unavailable_dates(service_id)
    except InvalidRangeError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        )
    except Exception as e:
        logger.error("Failed to get unavailable dates", service_id=service_id, exc_info=e)
        raise HTTPException(
            status_code=500, detail=f"Failed to get unavailable dates: {str(e)}"
        )

    await cache.set(
        cache_key,
        response.model_dump(mode="json"),
        expire=settings.BOOKING_AVAILABILITY_CACHE_TTL_SECONDS,
    )
    return response


@router.post("/validate", response_model=AppointmentValidationResult)
async def validate_appointment(
    request: AppointmentValidationRequest,
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentValidationResult:
    """
    Validate if an appointment can be booked at the requested time.

    Checks the booking date, the advance-booking policy, business hours,
    the time order and staff availability. All failures are returned.
    """
    try:
        return await appointment_service.validate_appointment(request)
    except Exception as e:
        logger.error("Failed to validate appointment", staff_id=request.staff_id, exc_info=e)
        raise HTTPException(
            status_code=500, detail=f"Failed to validate appointment: {str(e)}"
        )


@router.post("/assign-staff", response_model=StaffAssignmentResponse)
async def assign_staff(
    request: StaffAssignmentRequest,
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> StaffAssignmentResponse:
    """First staff member (by id) free for the requested interval, if any."""
    try:
        staff_id = await appointment_service.find_first_available_staff(
            request.service_id,
            request.appointment_date,
            request.start_time,
            request.end_time,
            request.exclude_appointment_id,
        )
        return StaffAssignmentResponse(staff_id=staff_id)
    except Exception as e:
        logger.error("Failed to assign staff", service_id=request.service_id, exc_info=e)
        raise HTTPException(status_code=500, detail=f"Failed to assign staff: {str(e)}")
