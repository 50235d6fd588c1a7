import pytest

from booking_engine.schemas.scheduling import AppointmentStatus
from booking_engine.services.conflicts import has_conflict, overlaps_appointment
from booking_engine.services.intervals import TimeRange
from tests.fixtures.schedule_fixtures import MONDAY, STAFF_ID, TUESDAY, booked


pytestmark = pytest.mark.unit

TEN_TO_ELEVEN = booked(STAFF_ID, MONDAY, "10:00", "11:00", id=7)


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (570, 630, True),  # 09:30-10:30 starts before, ends inside
        (630, 690, True),  # 10:30-11:30 starts inside
        (600, 660, True),  # identical
        (540, 720, True),  # contains the appointment
        (615, 645, True),  # inside the appointment
        (540, 600, False),  # 09:00-10:00 touches the start
        (660, 720, False),  # 11:00-12:00 touches the end
    ],
)
def test_overlaps_appointment(start, end, expected):
    proposed = TimeRange(start=start, end=end)

    assert overlaps_appointment(TEN_TO_ELEVEN, proposed) is expected


def test_conflict_with_confirmed_appointment():
    assert has_conflict(STAFF_ID, MONDAY, TimeRange(start=570, end=630), [TEN_TO_ELEVEN])


def test_touching_appointment_is_not_a_conflict():
    assert not has_conflict(STAFF_ID, MONDAY, TimeRange(start=540, end=600), [TEN_TO_ELEVEN])


@pytest.mark.parametrize(
    "status, expected",
    [
        (AppointmentStatus.PENDING, True),
        (AppointmentStatus.CONFIRMED, True),
        (AppointmentStatus.CANCELLED, False),
        (AppointmentStatus.COMPLETED, False),
    ],
)
def test_only_pending_and_confirmed_block(status, expected):
    appointment = booked(STAFF_ID, MONDAY, "10:00", "11:00", status=status, id=1)

    assert has_conflict(STAFF_ID, MONDAY, TimeRange(start=600, end=660), [appointment]) is expected


def test_other_staff_and_other_dates_are_ignored():
    appointments = [
        booked(STAFF_ID + 1, MONDAY, "10:00", "11:00", id=1),
        booked(STAFF_ID, TUESDAY, "10:00", "11:00", id=2),
    ]

    assert not has_conflict(STAFF_ID, MONDAY, TimeRange(start=600, end=660), appointments)


def test_excluded_appointment_is_skipped():
    proposed = TimeRange(start=600, end=660)

    assert not has_conflict(
        STAFF_ID, MONDAY, proposed, [TEN_TO_ELEVEN], exclude_appointment_id=7
    )
    assert has_conflict(STAFF_ID, MONDAY, proposed, [TEN_TO_ELEVEN], exclude_appointment_id=8)
