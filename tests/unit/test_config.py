from datetime import time

import pytest
from pydantic import ValidationError

from booking_engine.core.config import BookingPolicy, BusinessHours, Settings
from booking_engine.core.redis import availability_cache_key


def test_default_booking_policy():
    policy = Settings().booking_policy()

    assert policy.business_hours == BusinessHours(start=time(9, 0), end=time(18, 0))
    assert policy.slot_interval_minutes == 30
    assert policy.advance_booking_hours == 24
    assert policy.limited_threshold == 3


def test_booking_settings_from_environment(monkeypatch):
    monkeypatch.setenv("BOOKING_BUSINESS_HOURS_START", "08:30")
    monkeypatch.setenv("BOOKING_BUSINESS_HOURS_END", "20:00")
    monkeypatch.setenv("BOOKING_SLOT_INTERVAL_MINUTES", "15")
    monkeypatch.setenv("BOOKING_LIMITED_THRESHOLD", "5")

    policy = Settings().booking_policy()

    assert policy.business_hours.start == time(8, 30)
    assert policy.business_hours.end == time(20, 0)
    assert policy.slot_interval_minutes == 15
    assert policy.limited_threshold == 5


def test_reversed_business_hours_fail_at_load(monkeypatch):
    monkeypatch.setenv("BOOKING_BUSINESS_HOURS_START", "18:00")
    monkeypatch.setenv("BOOKING_BUSINESS_HOURS_END", "09:00")

    with pytest.raises(ValidationError):
        Settings()


@pytest.mark.parametrize(
    "field, value",
    [("slot_interval_minutes", 0), ("advance_booking_hours", -1), ("limited_threshold", -1)],
)
def test_policy_bounds(field, value):
    with pytest.raises(ValidationError):
        BookingPolicy(
            business_hours=BusinessHours(start=time(9, 0), end=time(18, 0)),
            **{field: value},
        )


def test_availability_cache_key_is_bucketed_by_hour(now):
    assert availability_cache_key(3, now) == "availability_service_3_2025-06-08_08"
