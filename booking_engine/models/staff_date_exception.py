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


class ExceptionType(enum.Enum):
    AVAILABLE = "available"  # Working outside the usual schedule
    UNAVAILABLE = "unavailable"  # Off during normally scheduled time


class StaffDateException(Base):
    """One-off override of a staff member's schedule on a single date."""

    __tablename__ = "staff_date_exceptions"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False)

    # Override details; both times null means the whole day, an end of 00:00
    # runs to midnight
    exception_date = Column(Date, nullable=False)
    exception_type = Column(
        String(20), nullable=False, default=ExceptionType.UNAVAILABLE.value
    )
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    reason = Column(Text, nullable=True)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    staff = relationship("Staff", back_populates="date_exceptions")

    __table_args__ = (
        CheckConstraint(
            "(start_time IS NULL) = (end_time IS NULL)",
            name="ck_staff_date_exception_time_pair",
        ),
        CheckConstraint(
            "start_time IS NULL OR start_time < end_time OR end_time = '00:00'",
            name="ck_staff_date_exception_time_order",
        ),
        Index("ix_staff_date_exceptions_staff_date", "staff_id", "exception_date"),
    )

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None and self.end_time is None

    @property
    def is_available(self) -> bool:
        return self.exception_type == ExceptionType.AVAILABLE.value

    def __repr__(self):
        span = "all day" if self.is_all_day else f"{self.start_time}-{self.end_time}"
        return (
            f"<StaffDateException(id={self.id}, staff_id={self.staff_id}, "
            f"{self.exception_date} {span}, type={self.exception_type})>"
        )
