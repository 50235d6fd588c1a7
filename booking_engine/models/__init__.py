# Import all models to ensure they are registered with SQLAlchemy
from . import (
    appointment,
    service,
    staff,
    staff_date_exception,
    staff_schedule,
    staff_service,
    staff_vacation_period,
)

__all__ = [
    "appointment",
    "service",
    "staff",
    "staff_date_exception",
    "staff_schedule",
    "staff_service",
    "staff_vacation_period",
]
