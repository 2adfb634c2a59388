import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.core.config import settings
from sifixa.core.errors import SlotFullError, SlotNotFoundError
from sifixa.models.appointment import Appointment, AppointmentCreate, BookingCreate
from sifixa.models.customer import Customer, Device
from sifixa.services.appointment_service import create_appointment, list_slotted_for_date
from sifixa.services.availability_service import build_report, count_occupancy
from sifixa.services.slot_service import get_slot

logger = logging.getLogger(__name__)


async def request_booking(
    session: AsyncSession, d: date, time_slot_id: int, data: AppointmentCreate
) -> Appointment:
    """Admit a booking into (d, slot) if the slot still has room, then create it.

    Occupancy is re-read at write time rather than trusted from an earlier report. The
    check and the insert are separate statements, so two concurrent requests can both
    pass the check; with settings.slot_row_lock the slot row is locked first, which
    serialises admissions for that slot on PostgreSQL.
    """
    slot = await get_slot(session, time_slot_id, for_update=settings.slot_row_lock)
    if not slot or not slot.is_active:
        raise SlotNotFoundError(time_slot_id)
    appointments = await list_slotted_for_date(session, d)
    occupancy = count_occupancy(appointments)
    report = build_report(slot, occupancy.get(slot.id, 0))
    if report.remaining_slots <= 0:
        logger.info(
            "Booking rejected: slot %s on %s is full (%d/%d)",
            slot.id,
            d,
            report.current_bookings,
            report.max_bookings,
        )
        raise SlotFullError(time_slot_id, d)
    return await create_appointment(
        session, data.model_copy(update={"scheduled_date": d, "time_slot_id": time_slot_id})
    )


async def _find_customer(session: AsyncSession, email: str) -> Customer | None:
    result = await session.execute(select(Customer).where(Customer.email == email.lower()))
    return result.scalar_one_or_none()


async def get_or_create_customer(
    session: AsyncSession,
    name: str,
    email: str | None,
    phone: str | None,
) -> Customer:
    """Match an existing customer by email; otherwise create one from the booking form.

    The insert runs in a savepoint: if a concurrent booking created the same email first,
    the unique index rejects ours and that customer is reused.
    """
    if email:
        customer = await _find_customer(session, email)
        if customer:
            if phone and not customer.phone:
                customer.phone = phone
                session.add(customer)
                await session.flush()
            return customer
    first_name, _, last_name = name.strip().partition(" ")
    customer = Customer(
        first_name=first_name,
        last_name=last_name.strip() or None,
        email=email.lower() if email else None,
        phone=phone,
    )
    try:
        async with session.begin_nested():
            session.add(customer)
            await session.flush()
    except IntegrityError:
        existing = await _find_customer(session, email) if email else None
        if existing is None:
            raise
        logger.info("Customer %s was created concurrently; reusing id %s", existing.email, existing.id)
        return existing
    await session.refresh(customer)
    return customer


async def book_for_customer(session: AsyncSession, data: BookingCreate) -> Appointment:
    """Self-service booking: customer and device records, then admission through the gate."""
    customer = await get_or_create_customer(session, data.customer_name, data.customer_email, data.customer_phone)
    device_id = None
    if data.device_type or data.device_brand or data.device_model:
        device = Device(
            customer_id=customer.id,
            device_type=data.device_type or "phone",
            brand=data.device_brand,
            model=data.device_model,
        )
        session.add(device)
        await session.flush()
        device_id = device.id
    request = AppointmentCreate(
        customer_id=customer.id,
        device_id=device_id,
        time_slot_id=data.time_slot_id,
        scheduled_date=data.scheduled_date,
        notes=data.issue,
    )
    return await request_booking(session, data.scheduled_date, data.time_slot_id, request)
