from datetime import date
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from booking_engine.models.appointment import Appointment, BLOCKING_STATUSES
from booking_engine.models.service import Service
from booking_engine.models.staff import Staff, StaffRole
from booking_engine.models.staff_date_exception import StaffDateException
from booking_engine.models.staff_schedule import StaffSchedule
from booking_engine.models.staff_service import StaffService
from booking_engine.models.staff_vacation_period import StaffVacationPeriod
from booking_engine.schemas.scheduling import (
    BaseScheduleEntry,
    BookedAppointment,
    DateExceptionEntry,
    ServiceInfo,
    StaffMember,
    VacationEntry,
)
from booking_engine.services.snapshot import ScheduleSnapshot

logger = structlog.get_logger(__name__)


class ScheduleRepository:
    """Bulk queries feeding the scheduling engine.

    Every list query covers a whole staff roster and date range in one round
    trip, so the number of queries never depends on the number of days.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_service(self, service_id: int) -> Optional[ServiceInfo]:
        result = await self.db.execute(
            select(Service).where(and_(Service.id == service_id, Service.is_active))
        )
        service = result.scalar_one_or_none()
        if service is None:
            logger.warning("Service not found", service_id=service_id)
            return None
        return ServiceInfo.model_validate(service)

    async def get_staff_member(self, staff_id: int) -> Optional[StaffMember]:
        result = await self.db.execute(
            select(Staff)
            .options(selectinload(Staff.staff_services))
            .where(and_(Staff.id == staff_id, Staff.is_active))
        )
        staff = result.scalar_one_or_none()
        if staff is None:
            logger.warning("Staff member not found", staff_id=staff_id)
            return None
        return StaffMember.model_validate(staff)

    async def list_eligible_staff(self, service_id: int) -> list[StaffMember]:
        """Active, bookable staff who can perform the service."""
        query = (
            select(Staff)
            .join(StaffService, StaffService.staff_id == Staff.id)
            .options(selectinload(Staff.staff_services))
            .where(
                and_(
                    StaffService.service_id == service_id,
                    Staff.role == StaffRole.STAFF.value,
                    Staff.is_active,
                    Staff.is_bookable,
                )
            )
            .order_by(Staff.id)
        )
        result = await self.db.execute(query)
        staff = [StaffMember.model_validate(s) for s in result.scalars().unique().all()]
        logger.debug("Loaded eligible staff", service_id=service_id, count=len(staff))
        return staff

    async def list_appointments(
        self, staff_ids: Sequence[int], start_date: date, end_date: date
    ) -> list[BookedAppointment]:
        """Pending/confirmed appointments in the range."""
        result = await self.db.execute(
            select(Appointment)
            .where(
                and_(
                    Appointment.staff_id.in_(staff_ids),
                    Appointment.appointment_date >= start_date,
                    Appointment.appointment_date <= end_date,
                    Appointment.status.in_(BLOCKING_STATUSES),
                )
            )
            .order_by(Appointment.appointment_date, Appointment.start_time)
        )
        return [BookedAppointment.model_validate(a) for a in result.scalars().all()]

    async def list_vacations(
        self, staff_ids: Sequence[int], start_date: date, end_date: date
    ) -> list[VacationEntry]:
        """Approved vacation periods overlapping the range."""
        result = await self.db.execute(
            select(StaffVacationPeriod).where(
                and_(
                    StaffVacationPeriod.staff_id.in_(staff_ids),
                    StaffVacationPeriod.is_approved,
                    StaffVacationPeriod.start_date <= end_date,
                    StaffVacationPeriod.end_date >= start_date,
                )
            )
        )
        return [VacationEntry.model_validate(v) for v in result.scalars().all()]

    async def list_date_exceptions(
        self, staff_ids: Sequence[int], start_date: date, end_date: date
    ) -> list[DateExceptionEntry]:
        """Date exceptions in the range, in creation order."""
        result = await self.db.execute(
            select(StaffDateException)
            .where(
                and_(
                    StaffDateException.staff_id.in_(staff_ids),
                    StaffDateException.exception_date >= start_date,
                    StaffDateException.exception_date <= end_date,
                )
            )
            .order_by(StaffDateException.id)
        )
        exceptions = []
        for row in result.scalars().all():
            try:
                exceptions.append(DateExceptionEntry.model_validate(row))
            except ValidationError as e:
                # Rows written before the time-pair constraint existed
                logger.warning(
                    "Skipping malformed date exception",
                    exception_id=row.id,
                    staff_id=row.staff_id,
                    error=str(e),
                )
        return exceptions

    async def list_base_schedules(self, staff_ids: Sequence[int]) -> list[BaseScheduleEntry]:
        """Active weekly schedules; date effectiveness is applied per day."""
        result = await self.db.execute(
            select(StaffSchedule)
            .where(
                and_(
                    StaffSchedule.staff_id.in_(staff_ids),
                    StaffSchedule.is_active,
                )
            )
            .order_by(StaffSchedule.id)
        )
        return [BaseScheduleEntry.model_validate(s) for s in result.scalars().all()]

    async def load_snapshot(
        self,
        service: Optional[ServiceInfo],
        staff: Sequence[StaffMember],
        start_date: date,
        end_date: date,
    ) -> ScheduleSnapshot:
        """Fetch all scheduling data for a roster in four queries."""
        staff_ids = [member.id for member in staff]
        if not staff_ids:
            return ScheduleSnapshot.empty(service, start_date, end_date)

        appointments = await self.list_appointments(staff_ids, start_date, end_date)
        vacations = await self.list_vacations(staff_ids, start_date, end_date)
        exceptions = await self.list_date_exceptions(staff_ids, start_date, end_date)
        schedules = await self.list_base_schedules(staff_ids)

        logger.info(
            "Loaded schedule snapshot",
            staff=len(staff_ids),
            start_date=str(start_date),
            end_date=str(end_date),
            appointments=len(appointments),
            vacations=len(vacations),
            exceptions=len(exceptions),
            schedules=len(schedules),
        )
        return ScheduleSnapshot(
            service,
            staff,
            start_date,
            end_date,
            base_schedules=schedules,
            date_exceptions=exceptions,
            vacations=vacations,
            appointments=appointments,
        )
