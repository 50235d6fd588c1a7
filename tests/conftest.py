from datetime import datetime, time

import pytest

from booking_engine.core.config import BookingPolicy, BusinessHours
from tests.fixtures.schedule_fixtures import SUNDAY_BEFORE


@pytest.fixture
def booking_policy() -> BookingPolicy:
    """Business hours 09:00-18:00, 30 minute steps, 24h advance booking."""
    return BookingPolicy(
        business_hours=BusinessHours(start=time(9, 0), end=time(18, 0)),
        slot_interval_minutes=30,
        advance_booking_hours=24,
        limited_threshold=3,
    )


@pytest.fixture
def now() -> datetime:
    """The day before the test Monday, at 08:00."""
    return datetime.combine(SUNDAY_BEFORE, time(8, 0))


@pytest.fixture
def clock(now):
    return lambda: now


# Import all scheduling fixtures to make them available
pytest_plugins = ["tests.fixtures.schedule_fixtures"]
