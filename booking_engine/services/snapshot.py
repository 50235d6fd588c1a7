from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from booking_engine.schemas.scheduling import (
    BaseScheduleEntry,
    BookedAppointment,
    DateExceptionEntry,
    ServiceInfo,
    StaffMember,
    VacationEntry,
)
from booking_engine.services.intervals import day_of_week


def _creation_order(entry) -> tuple:
    # Unsaved records (no id) sort after persisted ones, keeping input order
    return (entry.id is None, entry.id or 0)


class StaffCalendar:
    """Scheduling rules for one staff member, grouped for per-day lookups."""

    def __init__(
        self,
        staff_id: int,
        base_schedules: Iterable[BaseScheduleEntry] = (),
        date_exceptions: Iterable[DateExceptionEntry] = (),
        vacations: Iterable[VacationEntry] = (),
    ):
        self.staff_id = staff_id
        self.base_schedules: dict[int, list[BaseScheduleEntry]] = defaultdict(list)
        self.date_exceptions: dict[date, list[DateExceptionEntry]] = defaultdict(list)
        self.vacations: list[VacationEntry] = []

        for schedule in base_schedules:
            self.add_base_schedule(schedule)
        for exception in date_exceptions:
            self.add_date_exception(exception)
        for vacation in vacations:
            self.add_vacation(vacation)

    def add_base_schedule(self, schedule: BaseScheduleEntry) -> None:
        self.base_schedules[schedule.day_of_week].append(schedule)

    def add_date_exception(self, exception: DateExceptionEntry) -> None:
        day_exceptions = self.date_exceptions[exception.exception_date]
        day_exceptions.append(exception)
        day_exceptions.sort(key=_creation_order)

    def add_vacation(self, vacation: VacationEntry) -> None:
        self.vacations.append(vacation)

    def is_on_vacation(self, day: date) -> bool:
        return any(v.is_approved and v.includes_date(day) for v in self.vacations)

    def exceptions_on(self, day: date) -> list[DateExceptionEntry]:
        return self.date_exceptions.get(day, [])

    def schedules_on(self, day: date) -> list[BaseScheduleEntry]:
        return [
            schedule
            for schedule in self.base_schedules.get(day_of_week(day), [])
            if schedule.is_effective_on(day)
        ]

    def __repr__(self):
        return (
            f"<StaffCalendar(staff_id={self.staff_id}, "
            f"schedules={sum(len(v) for v in self.base_schedules.values())}, "
            f"exceptions={sum(len(v) for v in self.date_exceptions.values())}, "
            f"vacations={len(self.vacations)})>"
        )


class ScheduleSnapshot:
    """Everything needed to resolve availability for a service over a date range.

    Built from a fixed set of bulk fetches; the per-day resolution reads only
    from these pre-grouped structures.
    """

    def __init__(
        self,
        service: Optional[ServiceInfo],
        staff: Iterable[StaffMember],
        start_date: date,
        end_date: date,
        base_schedules: Iterable[BaseScheduleEntry] = (),
        date_exceptions: Iterable[DateExceptionEntry] = (),
        vacations: Iterable[VacationEntry] = (),
        appointments: Iterable[BookedAppointment] = (),
    ):
        self.service = service
        self.staff = list(staff)
        self.start_date = start_date
        self.end_date = end_date
        self.calendars: dict[int, StaffCalendar] = {
            member.id: StaffCalendar(member.id) for member in self.staff
        }
        self.appointments: dict[tuple[int, date], list[BookedAppointment]] = (
            defaultdict(list)
        )

        # Records for staff outside the roster are irrelevant and dropped
        for schedule in base_schedules:
            if schedule.staff_id in self.calendars:
                self.calendars[schedule.staff_id].add_base_schedule(schedule)
        for exception in date_exceptions:
            if exception.staff_id in self.calendars:
                self.calendars[exception.staff_id].add_date_exception(exception)
        for vacation in vacations:
            if vacation.staff_id in self.calendars:
                self.calendars[vacation.staff_id].add_vacation(vacation)
        for appointment in appointments:
            if appointment.staff_id in self.calendars:
                key = (appointment.staff_id, appointment.appointment_date)
                self.appointments[key].append(appointment)

    @classmethod
    def empty(
        cls, service: Optional[ServiceInfo], start_date: date, end_date: date
    ) -> "ScheduleSnapshot":
        return cls(service, [], start_date, end_date)

    def calendar(self, staff_id: int) -> StaffCalendar:
        calendar = self.calendars.get(staff_id)
        return calendar if calendar is not None else StaffCalendar(staff_id)

    def appointments_for(self, staff_id: int, day: date) -> list[BookedAppointment]:
        return self.appointments.get((staff_id, day), [])
