import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from booking_engine.core.database import Base


class StaffRole(enum.Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CUSTOMER = "CUSTOMER"


class Staff(Base):
    """Staff member who performs services and owns a schedule."""

    __tablename__ = "staff"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    phone = Column(String, nullable=True)

    # Role and booking flags
    role = Column(String(20), nullable=False, default=StaffRole.STAFF.value)
    is_bookable = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    staff_services = relationship(
        "StaffService", back_populates="staff", cascade="all, delete-orphan"
    )
    schedules = relationship(
        "StaffSchedule", back_populates="staff", cascade="all, delete-orphan"
    )
    date_exceptions = relationship(
        "StaffDateException", back_populates="staff", cascade="all, delete-orphan"
    )
    vacation_periods = relationship(
        "StaffVacationPeriod", back_populates="staff", cascade="all, delete-orphan"
    )
    appointments = relationship("Appointment", back_populates="staff")

    @property
    def service_ids(self) -> set[int]:
        """IDs of the services this staff member can perform."""
        return {link.service_id for link in self.staff_services}

    def __repr__(self):
        return (
            f"<Staff(id={self.id}, name='{self.name}', role={self.role}, "
            f"bookable={self.is_bookable})>"
        )
