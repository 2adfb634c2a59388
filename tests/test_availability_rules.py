from __future__ import annotations

from datetime import date, time

import pytest

from sifixa.models.appointment import Appointment
from sifixa.models.time_slot import TimeSlot
from sifixa.services.availability_service import build_report, classify_availability, count_occupancy
from sifixa.services.slot_service import effective_max_bookings

DAY = date(2024, 6, 1)


def _slot(max_bookings: int | None = 3, slot_id: int = 1) -> TimeSlot:
    return TimeSlot(id=slot_id, name="Morning", start_time=time(9), end_time=time(12), max_bookings=max_bookings)


def _appt(slot_id: int | None, status: str = "scheduled") -> Appointment:
    return Appointment(customer_id=1, time_slot_id=slot_id, scheduled_date=DAY, status=status)


@pytest.mark.parametrize(
    ("remaining", "level"),
    [(0, "full"), (1, "limited"), (2, "available"), (7, "available"), (-1, "full")],
)
def test_classify_availability_thresholds(remaining: int, level: str) -> None:
    assert classify_availability(remaining) == level


@pytest.mark.parametrize(
    ("max_bookings", "current", "remaining", "is_available", "level"),
    [
        (3, 0, 3, True, "available"),
        (3, 1, 2, True, "available"),
        (3, 2, 1, True, "limited"),
        (3, 3, 0, False, "full"),
        (2, 3, -1, False, "full"),
        (1, 0, 1, True, "limited"),
    ],
)
def test_build_report_derives_remaining_and_level(
    max_bookings: int, current: int, remaining: int, is_available: bool, level: str
) -> None:
    report = build_report(_slot(max_bookings), current)

    assert report.current_bookings == current
    assert report.remaining_slots == remaining
    assert report.is_available is is_available
    assert report.availability_level == level


@pytest.mark.parametrize("stored", [None, 0, -2])
def test_unset_or_invalid_capacity_defaults_to_three(stored: int | None) -> None:
    slot = _slot(stored)

    assert effective_max_bookings(slot) == 3
    assert build_report(slot, 1).remaining_slots == 2


def test_explicit_capacity_is_kept() -> None:
    assert effective_max_bookings(_slot(5)) == 5


def test_count_occupancy_skips_terminal_and_slotless_appointments() -> None:
    appointments = [
        _appt(1, "scheduled"),
        _appt(1, "confirmed"),
        _appt(1, "arrived"),
        _appt(1, "canceled"),
        _appt(1, "no_show"),
        _appt(2, "scheduled"),
        _appt(None, "scheduled"),
    ]

    assert count_occupancy(appointments) == {1: 3, 2: 1}


def test_count_occupancy_empty() -> None:
    assert count_occupancy([]) == {}


def test_appointment_occupies_slot_only_when_non_terminal_with_slot() -> None:
    assert _appt(1, "scheduled").occupies_slot
    assert not _appt(1, "canceled").occupies_slot
    assert not _appt(None, "confirmed").occupies_slot
