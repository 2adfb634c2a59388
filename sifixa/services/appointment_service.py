import logging
import uuid
from datetime import UTC, date, datetime, timedelta

from sqlalchemy import Select, String, cast, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sifixa.models.appointment import (
    PENDING_STATUSES,
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
)

logger = logging.getLogger(__name__)

# A PATCH sending null for these leaves the stored value alone
_REQUIRED_APPOINTMENT_FIELDS = frozenset({"scheduled_date"})


def _utc_naive_now() -> datetime:
    """Naive UTC for comparison with TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)


def utc_today() -> date:
    """Current date in UTC, the clock every stored timestamp uses."""
    return datetime.now(UTC).date()


def _with_details(q: Select) -> Select:
    """Eager-load customer, device and slot; lazy loads are not available on AsyncSession."""
    return q.options(
        selectinload(Appointment.customer),
        selectinload(Appointment.device),
        selectinload(Appointment.time_slot),
    )


async def get_appointment(session: AsyncSession, appointment_id: uuid.UUID) -> Appointment | None:
    result = await session.execute(
        _with_details(select(Appointment).where(Appointment.id == appointment_id)).execution_options(
            populate_existing=True
        )
    )
    return result.scalar_one_or_none()


async def list_appointments(session: AsyncSession) -> list[Appointment]:
    result = await session.execute(
        _with_details(select(Appointment)).order_by(Appointment.scheduled_date.desc())
    )
    return list(result.scalars().all())


async def list_for_date(session: AsyncSession, d: date) -> list[Appointment]:
    """All appointments on `d`, every status included; callers apply their own exclusions."""
    result = await session.execute(
        _with_details(select(Appointment).where(Appointment.scheduled_date == d)).order_by(
            Appointment.scheduled_start
        )
    )
    return list(result.scalars().all())


async def list_slotted_for_date(session: AsyncSession, d: date) -> list[Appointment]:
    """Appointments on `d` that reference a slot, all statuses, without related rows loaded."""
    result = await session.execute(
        select(Appointment).where(
            Appointment.scheduled_date == d,
            Appointment.time_slot_id.is_not(None),
        )
    )
    return list(result.scalars().all())


async def list_for_customer(session: AsyncSession, customer_id: int) -> list[Appointment]:
    result = await session.execute(
        _with_details(select(Appointment).where(Appointment.customer_id == customer_id)).order_by(
            Appointment.scheduled_date.desc()
        )
    )
    return list(result.scalars().all())


async def list_upcoming(session: AsyncSession, today: date, days: int = 7) -> list[Appointment]:
    """Scheduled or confirmed appointments from `today` through `today + days`."""
    result = await session.execute(
        _with_details(
            select(Appointment).where(
                Appointment.scheduled_date >= today,
                Appointment.scheduled_date <= today + timedelta(days=days),
                Appointment.status.in_(PENDING_STATUSES),
            )
        ).order_by(Appointment.scheduled_date, Appointment.scheduled_start)
    )
    return list(result.scalars().all())


async def find_by_tracking_number(session: AsyncSession, tracking_number: str) -> list[Appointment]:
    """Appointments whose id starts with the 8-character tracking number (case-insensitive)."""
    prefix = tracking_number.strip().lower()
    if len(prefix) != 8 or any(c not in "0123456789abcdef" for c in prefix):
        return []
    result = await session.execute(
        _with_details(select(Appointment).where(cast(Appointment.id, String).like(f"{prefix}%")))
    )
    return list(result.scalars().all())


async def create_appointment(session: AsyncSession, data: AppointmentCreate) -> Appointment:
    """Insert a scheduled appointment. No capacity check; see booking_service for admission."""
    appointment = Appointment(**data.model_dump(), status=AppointmentStatus.SCHEDULED.value)
    session.add(appointment)
    await session.flush()
    logger.info(
        "Created appointment %s for customer %s on %s (slot %s)",
        appointment.id,
        appointment.customer_id,
        appointment.scheduled_date,
        appointment.time_slot_id,
    )
    return await get_appointment(session, appointment.id)


async def update_appointment(
    session: AsyncSession, appointment_id: uuid.UUID, data: AppointmentUpdate
) -> Appointment | None:
    appointment = await get_appointment(session, appointment_id)
    if not appointment:
        return None
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key in _REQUIRED_APPOINTMENT_FIELDS:
            continue
        setattr(appointment, key, value)
    appointment.updated_at = _utc_naive_now()
    session.add(appointment)
    await session.flush()
    return await get_appointment(session, appointment_id)


async def update_status(
    session: AsyncSession, appointment_id: uuid.UUID, status: AppointmentStatus | str
) -> Appointment | None:
    """Overwrite the status. Transitions are not validated (arrived -> scheduled is accepted)."""
    appointment = await get_appointment(session, appointment_id)
    if not appointment:
        return None
    new_status = AppointmentStatus(status).value
    logger.info("Appointment %s status %s -> %s", appointment_id, appointment.status, new_status)
    appointment.status = new_status
    appointment.updated_at = _utc_naive_now()
    session.add(appointment)
    await session.flush()
    return await get_appointment(session, appointment_id)


async def cancel_appointment(session: AsyncSession, appointment_id: uuid.UUID) -> Appointment | None:
    return await update_status(session, appointment_id, AppointmentStatus.CANCELED)


async def confirm_appointment(session: AsyncSession, appointment_id: uuid.UUID) -> Appointment | None:
    return await update_status(session, appointment_id, AppointmentStatus.CONFIRMED)


async def mark_arrived(session: AsyncSession, appointment_id: uuid.UUID) -> Appointment | None:
    return await update_status(session, appointment_id, AppointmentStatus.ARRIVED)


async def mark_no_show(session: AsyncSession, appointment_id: uuid.UUID) -> Appointment | None:
    return await update_status(session, appointment_id, AppointmentStatus.NO_SHOW)
