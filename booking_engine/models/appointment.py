from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Text,
    Time,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from booking_engine.core.database import Base
import enum
import uuid


class AppointmentStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that occupy the staff member's time
BLOCKING_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)


class Appointment(Base):
    """Booked service visit for one staff member on one date."""

    __tablename__ = "appointments"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )

    # Participants; customers live in the host system
    customer_id = Column(Integer, nullable=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    # Scheduling details (local wall clock)
    appointment_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)
    notes = Column(Text, nullable=True)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    staff = relationship("Staff", back_populates="appointments")
    service = relationship("Service", back_populates="appointments")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_appointment_time_order"),
        Index("ix_appointments_staff_date", "staff_id", "appointment_date"),
    )

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, staff_id={self.staff_id}, "
            f"{self.appointment_date} {self.start_time}-{self.end_time}, "
            f"status={self.status})>"
        )
