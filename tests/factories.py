from __future__ import annotations

from datetime import date, time

from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.models.appointment import Appointment
from sifixa.models.customer import Customer
from sifixa.models.time_slot import TimeSlot


async def add_slot(
    session: AsyncSession,
    name: str = "Morning",
    start: time = time(9, 0),
    end: time = time(12, 0),
    max_bookings: int | None = 3,
    store_id: int | None = None,
    is_active: bool = True,
) -> TimeSlot:
    slot = TimeSlot(
        name=name,
        start_time=start,
        end_time=end,
        max_bookings=max_bookings,
        store_id=store_id,
        is_active=is_active,
    )
    session.add(slot)
    await session.flush()
    return slot


async def add_customer(session: AsyncSession, first_name: str = "Ana", email: str | None = None) -> Customer:
    customer = Customer(first_name=first_name, last_name="Lopez", email=email, phone="555-0100")
    session.add(customer)
    await session.flush()
    return customer


async def add_appointment(
    session: AsyncSession,
    customer: Customer,
    slot: TimeSlot | None,
    on: date,
    status: str = "scheduled",
) -> Appointment:
    appointment = Appointment(
        customer_id=customer.id,
        time_slot_id=slot.id if slot else None,
        scheduled_date=on,
        status=status,
    )
    session.add(appointment)
    await session.flush()
    return appointment
