from collections import Counter
from datetime import date, time, timedelta
from typing import Optional, Sequence

import pytest

from booking_engine.schemas.scheduling import (
    AppointmentStatus,
    BaseScheduleEntry,
    BookedAppointment,
    DateExceptionEntry,
    ServiceInfo,
    StaffMember,
    VacationEntry,
)
from booking_engine.services.appointment import AppointmentService
from booking_engine.services.schedule_data import ScheduleRepository
from booking_engine.services.staff_schedule import StaffScheduleService

# 2025-06-09 is a Monday (weekday 1 with Sunday = 0)
MONDAY = date(2025, 6, 9)
SUNDAY_BEFORE = MONDAY - timedelta(days=1)
TUESDAY = MONDAY + timedelta(days=1)

SERVICE_ID = 1
STAFF_ID = 1


def hm(value: str) -> time:
    return time.fromisoformat(value)


def service_info(id: int = SERVICE_ID, duration_minutes: int = 60, name: str = "Full detail"):
    return ServiceInfo(id=id, name=name, duration_minutes=duration_minutes)


def staff_member(id: int = STAFF_ID, service_ids: Sequence[int] = (SERVICE_ID,), name=None):
    return StaffMember(
        id=id, name=name or f"Detailer {id}", service_ids=frozenset(service_ids)
    )


def weekly_schedule(
    staff_id: int,
    day_of_week: int,
    start: str,
    end: str,
    id: Optional[int] = None,
    **kwargs,
) -> BaseScheduleEntry:
    return BaseScheduleEntry(
        id=id,
        staff_id=staff_id,
        day_of_week=day_of_week,
        start_time=hm(start),
        end_time=hm(end),
        **kwargs,
    )


def date_exception(
    staff_id: int,
    day: date,
    is_available: bool,
    start: Optional[str] = None,
    end: Optional[str] = None,
    id: Optional[int] = None,
) -> DateExceptionEntry:
    return DateExceptionEntry(
        id=id,
        staff_id=staff_id,
        exception_date=day,
        is_available=is_available,
        start_time=hm(start) if start else None,
        end_time=hm(end) if end else None,
    )


def vacation(
    staff_id: int, start_date: date, end_date: date, is_approved: bool = True, id=None
) -> VacationEntry:
    return VacationEntry(
        id=id,
        staff_id=staff_id,
        start_date=start_date,
        end_date=end_date,
        is_approved=is_approved,
    )


def booked(
    staff_id: int,
    day: date,
    start: str,
    end: str,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    id: Optional[int] = None,
    service_id: int = SERVICE_ID,
) -> BookedAppointment:
    return BookedAppointment(
        id=id,
        staff_id=staff_id,
        service_id=service_id,
        appointment_date=day,
        start_time=hm(start),
        end_time=hm(end),
        status=status,
    )


class InMemoryScheduleRepository(ScheduleRepository):
    """ScheduleRepository over plain lists, counting every fetch."""

    def __init__(self):
        super().__init__(db=None)
        self.services: dict[int, ServiceInfo] = {}
        self.staff: list[StaffMember] = []
        self.base_schedules: list[BaseScheduleEntry] = []
        self.date_exceptions: list[DateExceptionEntry] = []
        self.vacations: list[VacationEntry] = []
        self.appointments: list[BookedAppointment] = []
        self.calls = Counter()

    @property
    def query_count(self) -> int:
        return sum(self.calls.values())

    def add_service(self, service: ServiceInfo) -> ServiceInfo:
        self.services[service.id] = service
        return service

    def add_staff(self, member: StaffMember) -> StaffMember:
        self.staff.append(member)
        return member

    async def get_service(self, service_id: int) -> Optional[ServiceInfo]:
        self.calls["get_service"] += 1
        return self.services.get(service_id)

    async def get_staff_member(self, staff_id: int) -> Optional[StaffMember]:
        self.calls["get_staff_member"] += 1
        return next((s for s in self.staff if s.id == staff_id), None)

    async def list_eligible_staff(self, service_id: int) -> list[StaffMember]:
        self.calls["list_eligible_staff"] += 1
        return sorted(
            (s for s in self.staff if s.can_perform(service_id)), key=lambda s: s.id
        )

    async def list_appointments(self, staff_ids, start_date, end_date):
        self.calls["list_appointments"] += 1
        return [
            a
            for a in self.appointments
            if a.staff_id in staff_ids
            and start_date <= a.appointment_date <= end_date
            and a.blocks_slot
        ]

    async def list_vacations(self, staff_ids, start_date, end_date):
        self.calls["list_vacations"] += 1
        return [
            v
            for v in self.vacations
            if v.staff_id in staff_ids
            and v.is_approved
            and v.start_date <= end_date
            and v.end_date >= start_date
        ]

    async def list_date_exceptions(self, staff_ids, start_date, end_date):
        self.calls["list_date_exceptions"] += 1
        return [
            e
            for e in self.date_exceptions
            if e.staff_id in staff_ids and start_date <= e.exception_date <= end_date
        ]

    async def list_base_schedules(self, staff_ids):
        self.calls["list_base_schedules"] += 1
        return [s for s in self.base_schedules if s.staff_id in staff_ids and s.is_active]


@pytest.fixture
def repository() -> InMemoryScheduleRepository:
    """Empty in-memory repository."""
    return InMemoryScheduleRepository()


@pytest.fixture
def detailer_repository(repository) -> InMemoryScheduleRepository:
    """One 60 minute service and one detailer working Mondays 09:00-17:00."""
    repository.add_service(service_info())
    repository.add_staff(staff_member())
    repository.base_schedules.append(weekly_schedule(STAFF_ID, 1, "09:00", "17:00", id=1))
    return repository


@pytest.fixture
def appointment_service(detailer_repository, booking_policy, clock) -> AppointmentService:
    return AppointmentService(
        db=None,
        policy=booking_policy,
        clock=clock,
        repository=detailer_repository,
        availability_window_days=60,
    )


@pytest.fixture
def staff_schedule_service(detailer_repository) -> StaffScheduleService:
    return StaffScheduleService(db=None, repository=detailer_repository)
