from datetime import date, datetime, time
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AvailabilityCategory(str, Enum):
    UNAVAILABLE = "unavailable"
    LIMITED = "limited"
    AVAILABLE = "available"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Records loaded once per request and resolved in memory


class ServiceInfo(BaseModel):
    id: int
    name: Optional[str] = None
    duration_minutes: int

    model_config = ConfigDict(from_attributes=True)


class StaffMember(BaseModel):
    id: int
    name: Optional[str] = None
    service_ids: frozenset[int] = frozenset()

    model_config = ConfigDict(from_attributes=True)

    def can_perform(self, service_id: int) -> bool:
        return service_id in self.service_ids


class BaseScheduleEntry(BaseModel):
    id: Optional[int] = None
    staff_id: int
    day_of_week: int = Field(..., ge=0, le=6)  # 0 = Sunday
    start_time: time
    end_time: time
    effective_from: Optional[date] = None
    effective_until: Optional[date] = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)

    def is_effective_on(self, day: date) -> bool:
        if not self.is_active:
            return False
        if self.effective_from and day < self.effective_from:
            return False
        if self.effective_until and day > self.effective_until:
            return False
        return True


class DateExceptionEntry(BaseModel):
    id: Optional[int] = None
    staff_id: int
    exception_date: date
    is_available: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def check_time_pair(self):
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must both be set or both be empty")
        return self

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None and self.end_time is None


class VacationEntry(BaseModel):
    id: Optional[int] = None
    staff_id: int
    start_date: date
    end_date: date
    is_approved: bool = False

    model_config = ConfigDict(from_attributes=True)

    def includes_date(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class BookedAppointment(BaseModel):
    id: Optional[int] = None
    staff_id: int
    service_id: Optional[int] = None
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus = AppointmentStatus.PENDING

    model_config = ConfigDict(from_attributes=True)

    @property
    def blocks_slot(self) -> bool:
        return self.status in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


# Results


class Slot(BaseModel):
    start: str
    end: str
    available: bool = True
    datetime_start: str
    datetime_end: str


class DaySlotsResponse(BaseModel):
    date: date
    slots: List[Slot] = Field(default_factory=list)
    message: Optional[str] = None
    reason: Optional[str] = None


class AvailabilityRangeResponse(BaseModel):
    service_id: int
    start_date: date
    end_date: date
    availability: Dict[date, AvailabilityCategory]


class UnavailableDatesResponse(BaseModel):
    unavailable_dates: List[date] = Field(default_factory=list)
    availability: Dict[date, AvailabilityCategory] = Field(default_factory=dict)


class AppointmentValidationRequest(BaseModel):
    staff_id: int
    service_id: int
    appointment_date: date
    start_time: time
    end_time: time
    exclude_appointment_id: Optional[int] = None


class AppointmentValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


class StaffAssignmentRequest(BaseModel):
    service_id: int
    appointment_date: date
    start_time: time
    end_time: time
    exclude_appointment_id: Optional[int] = None


class StaffAssignmentResponse(BaseModel):
    staff_id: Optional[int] = None


class StaffAvailabilityResponse(BaseModel):
    staff_id: int
    at: datetime
    available: bool
