from __future__ import annotations

import uuid
from datetime import date, time

from sqlalchemy import inspect

from factories import add_appointment, add_customer, add_slot
from sifixa.models.appointment import AppointmentUpdate
from sifixa.services.appointment_service import (
    cancel_appointment,
    find_by_tracking_number,
    get_appointment,
    list_for_customer,
    list_for_date,
    list_slotted_for_date,
    list_upcoming,
    mark_arrived,
    update_appointment,
    update_status,
)

DAY = date(2024, 6, 1)


def test_list_for_date_includes_every_status(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        slot = await add_slot(session)
        for status in ("scheduled", "confirmed", "arrived", "no_show", "canceled"):
            await add_appointment(session, customer, slot, DAY, status)
        await add_appointment(session, customer, slot, date(2024, 6, 2))
        return await list_for_date(session, DAY)

    appointments = db(scenario)

    assert sorted(a.status for a in appointments) == ["arrived", "canceled", "confirmed", "no_show", "scheduled"]


def test_status_overwrite_is_not_validated(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        appointment = await add_appointment(session, customer, None, DAY)
        await mark_arrived(session, appointment.id)
        back = await update_status(session, appointment.id, "scheduled")
        canceled = await cancel_appointment(session, appointment.id)
        revived = await update_status(session, appointment.id, "confirmed")
        return back.status, canceled.status, revived.status, revived.updated_at

    back, canceled, revived, updated_at = db(scenario)

    assert (back, canceled, revived) == ("scheduled", "canceled", "confirmed")
    assert updated_at is not None


def test_missing_appointment_returns_none(db) -> None:
    async def scenario(session):
        missing = uuid.uuid4()
        return await get_appointment(session, missing), await update_status(session, missing, "canceled")

    assert db(scenario) == (None, None)


def test_upcoming_window_keeps_pending_statuses_only(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        await add_appointment(session, customer, None, date(2024, 5, 31))
        await add_appointment(session, customer, None, DAY, "confirmed")
        await add_appointment(session, customer, None, date(2024, 6, 3), "canceled")
        await add_appointment(session, customer, None, date(2024, 6, 8), "scheduled")
        await add_appointment(session, customer, None, date(2024, 6, 9), "scheduled")
        return await list_upcoming(session, DAY, days=7)

    upcoming = db(scenario)

    assert [(a.scheduled_date, a.status) for a in upcoming] == [
        (DAY, "confirmed"),
        (date(2024, 6, 8), "scheduled"),
    ]


def test_tracking_number_lookup(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        appointment = await add_appointment(session, customer, None, DAY)
        found = await find_by_tracking_number(session, appointment.tracking_number)
        garbage = await find_by_tracking_number(session, "not-a-id")
        return appointment.id, found, garbage

    appointment_id, found, garbage = db(scenario)

    assert [a.id for a in found] == [appointment_id]
    assert garbage == []


def test_partial_update_and_customer_history(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        other = await add_customer(session, "Ben")
        slot = await add_slot(session)
        appointment = await add_appointment(session, customer, None, DAY)
        await add_appointment(session, other, None, DAY)
        updated = await update_appointment(
            session,
            appointment.id,
            AppointmentUpdate(time_slot_id=slot.id, scheduled_start=time(10, 30)),
        )
        history = await list_for_customer(session, customer.id)
        return updated, history, slot.name

    updated, history, slot_name = db(scenario)

    assert updated.time_slot.name == slot_name
    assert updated.scheduled_start == time(10, 30)
    assert updated.scheduled_date == DAY
    assert [a.id for a in history] == [updated.id]


def test_slotted_read_skips_slotless_and_loads_no_relations(db) -> None:
    async def scenario(session):
        customer = await add_customer(session)
        slot = await add_slot(session)
        await add_appointment(session, customer, slot, DAY, "scheduled")
        await add_appointment(session, customer, slot, DAY, "canceled")
        await add_appointment(session, customer, None, DAY, "scheduled")
        await add_appointment(session, customer, slot, date(2024, 6, 2))
        appointments = await list_slotted_for_date(session, DAY)
        return [(a.status, a.time_slot_id == slot.id, inspect(a).unloaded) for a in appointments]

    rows = db(scenario)

    assert sorted(status for status, _, _ in rows) == ["canceled", "scheduled"]
    for _, in_slot, unloaded in rows:
        assert in_slot
        assert {"customer", "device", "time_slot"} <= unloaded
