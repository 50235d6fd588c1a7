import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from booking_engine.core.database import Base


class StaffVacationPeriod(Base):
    """Multi-day absence; only approved periods block availability."""

    __tablename__ = "staff_vacation_periods"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False)

    # Inclusive date range
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    reason = Column(Text, nullable=True)

    # Approval workflow
    is_approved = Column(Boolean, default=False, nullable=False)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    staff = relationship("Staff", back_populates="vacation_periods")

    __table_args__ = (
        Index("ix_staff_vacation_periods_staff", "staff_id"),
        Index("ix_staff_vacation_periods_dates", "start_date", "end_date"),
    )

    def __repr__(self):
        return (
            f"<StaffVacationPeriod(id={self.id}, staff_id={self.staff_id}, "
            f"{self.start_date} - {self.end_date}, approved={self.is_approved})>"
        )
