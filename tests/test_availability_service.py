from __future__ import annotations

import asyncio
from datetime import date, time
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from factories import add_appointment, add_customer, add_slot
from sifixa.services.appointment_service import update_status
from sifixa.services.availability_service import compute_availability
from sifixa.services.slot_service import list_active_slots

DAY = date(2024, 6, 1)


def test_morning_slot_with_one_cancellation_is_limited(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        slot = await add_slot(session, "Morning", time(9), time(12), max_bookings=3)
        await add_appointment(session, customer, slot, DAY, "scheduled")
        await add_appointment(session, customer, slot, DAY, "scheduled")
        await add_appointment(session, customer, slot, DAY, "canceled")
        return await compute_availability(session, DAY)

    (report,) = db(scenario)

    assert report.name == "Morning"
    assert report.current_bookings == 2
    assert report.remaining_slots == 1
    assert report.availability_level == "limited"
    assert report.is_available is True


def test_occupancy_counts_only_the_requested_date_and_slot(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        morning = await add_slot(session, "Morning", time(9), time(12), max_bookings=2)
        afternoon = await add_slot(session, "Afternoon", time(13), time(17), max_bookings=4)
        await add_appointment(session, customer, morning, DAY, "confirmed")
        await add_appointment(session, customer, morning, DAY, "arrived")
        await add_appointment(session, customer, morning, date(2024, 6, 2), "scheduled")
        await add_appointment(session, customer, afternoon, DAY, "no_show")
        await add_appointment(session, customer, None, DAY, "scheduled")
        return await compute_availability(session, DAY)

    reports = db(scenario)

    by_name = {r.name: r for r in reports}
    assert [r.name for r in reports] == ["Morning", "Afternoon"]
    assert by_name["Morning"].current_bookings == 2
    assert by_name["Morning"].availability_level == "full"
    assert by_name["Morning"].is_available is False
    assert by_name["Afternoon"].current_bookings == 0
    assert by_name["Afternoon"].remaining_slots == 4


def test_slot_without_capacity_uses_default_of_three(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        slot = await add_slot(session, max_bookings=None)
        await add_appointment(session, customer, slot, DAY)
        return await compute_availability(session, DAY)

    (report,) = db(scenario)

    assert report.max_bookings == 3
    assert report.remaining_slots == 2


def test_cancel_and_no_show_free_capacity_on_next_call(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        slot = await add_slot(session, max_bookings=2)
        first = await add_appointment(session, customer, slot, DAY)
        second = await add_appointment(session, customer, slot, DAY)
        before = await compute_availability(session, DAY)
        await update_status(session, first.id, "canceled")
        middle = await compute_availability(session, DAY)
        await update_status(session, second.id, "no_show")
        after = await compute_availability(session, DAY)
        return before[0], middle[0], after[0]

    before, middle, after = db(scenario)

    assert before.current_bookings == 2
    assert middle.current_bookings == 1
    assert after.current_bookings == 0
    assert (before.availability_level, middle.availability_level, after.availability_level) == (
        "full",
        "limited",
        "available",
    )


def test_inactive_and_other_store_slots_are_excluded(db) -> None:
    async def scenario(session):
        await add_slot(session, "Store 1 morning", store_id=1)
        await add_slot(session, "Store 2 morning", store_id=2)
        await add_slot(session, "Retired", store_id=1, is_active=False)
        return await compute_availability(session, DAY, store_id=1), await compute_availability(session, DAY)

    store_one, everything = db(scenario)

    assert [r.name for r in store_one] == ["Store 1 morning"]
    assert sorted(r.name for r in everything) == ["Store 1 morning", "Store 2 morning"]


def test_no_active_slots_gives_empty_report(db) -> None:
    async def scenario(session):
        await add_slot(session, is_active=False)
        return await compute_availability(session, DAY)

    assert db(scenario) == []


def test_appointment_fetch_failure_reports_every_slot_open(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        full = await add_slot(session, "Full", max_bookings=1)
        await add_slot(session, "Single", time(13), time(14), max_bookings=1)
        await add_appointment(session, customer, full, DAY)
        with patch(
            "sifixa.services.availability_service.list_slotted_for_date",
            side_effect=OperationalError("SELECT", {}, Exception("connection reset")),
        ):
            return await compute_availability(session, DAY)

    reports = db(scenario)

    assert len(reports) == 2
    for report in reports:
        assert report.current_bookings == 0
        assert report.remaining_slots == report.max_bookings == 1
        assert report.is_available is True
        assert report.availability_level == "available"


class _BrokenSession:
    async def execute(self, statement):
        raise OperationalError("SELECT", {}, Exception("database unavailable"))


def test_slot_registry_degrades_to_empty_list() -> None:
    assert asyncio.run(list_active_slots(_BrokenSession())) == []


def test_availability_is_empty_when_registry_fails() -> None:
    assert asyncio.run(compute_availability(_BrokenSession(), DAY)) == []
