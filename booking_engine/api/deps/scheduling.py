from datetime import datetime
from typing import Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.api.deps.database import get_db
from booking_engine.core.clock import local_now
from booking_engine.core.config import BookingPolicy, settings
from booking_engine.core.redis import RedisClient, redis_client
from booking_engine.services.appointment import AppointmentService
from booking_engine.services.staff_schedule import StaffScheduleService


def get_clock() -> Callable[[], datetime]:
    return local_now


def get_booking_policy() -> BookingPolicy:
    return settings.booking_policy()


def get_availability_cache() -> RedisClient:
    return redis_client


async def get_appointment_service(
    db: AsyncSession = Depends(get_db),
    policy: BookingPolicy = Depends(get_booking_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AppointmentService:
    return AppointmentService(db, policy=policy, clock=clock)


async def get_staff_schedule_service(
    db: AsyncSession = Depends(get_db),
) -> StaffScheduleService:
    return StaffScheduleService(db)
