import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Time,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from booking_engine.core.database import Base


class WeekDay(enum.IntEnum):
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


class StaffSchedule(Base):
    """Recurring weekly availability window for a staff member."""

    __tablename__ = "staff_schedules"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False)

    # Schedule details
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    # Effective date range (inclusive, both optional)
    effective_from = Column(Date, nullable=True)
    effective_until = Column(Date, nullable=True)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    staff = relationship("Staff", back_populates="schedules")

    __table_args__ = (
        Index("ix_staff_schedules_staff_day", "staff_id", "day_of_week"),
    )

    def __repr__(self):
        try:
            weekday_str = WeekDay(self.day_of_week).name
        except ValueError:
            weekday_str = str(self.day_of_week)

        return (
            f"<StaffSchedule(id={self.id}, staff_id={self.staff_id}, "
            f"{weekday_str}: {self.start_time}-{self.end_time})>"
        )
