import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.api.deps import get_session, require_staff
from sifixa.api.schemas.appointment import (
    AppointmentPublic,
    CustomerSummary,
    DeviceSummary,
    StatusUpdateRequest,
    TimeSlotSummary,
)
from sifixa.core.config import settings
from sifixa.models.appointment import Appointment, AppointmentCreate, AppointmentUpdate
from sifixa.models.user import User
from sifixa.services.appointment_service import (
    cancel_appointment,
    confirm_appointment,
    create_appointment,
    get_appointment,
    list_appointments,
    list_for_customer,
    list_for_date,
    list_upcoming,
    utc_today,
    mark_arrived,
    mark_no_show,
    update_appointment,
    update_status,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])

StatusAction = Callable[[AsyncSession, uuid.UUID], Awaitable[Appointment | None]]


def to_public(a: Appointment) -> AppointmentPublic:
    """View model with customer, device and slot summaries flattened for the frontend."""
    customer = None
    if a.customer:
        customer = CustomerSummary(
            id=a.customer.id,
            name=a.customer.display_name,
            email=a.customer.email,
            phone=a.customer.phone,
        )
    device = None
    if a.device:
        device = DeviceSummary(id=a.device.id, type=a.device.device_type, name=a.device.display_name)
    time_slot = None
    if a.time_slot:
        time_slot = TimeSlotSummary(
            id=a.time_slot.id,
            name=a.time_slot.name,
            start_time=a.time_slot.start_time,
            end_time=a.time_slot.end_time,
        )
    return AppointmentPublic(
        id=a.id,
        tracking_number=a.tracking_number,
        customer_id=a.customer_id,
        customer=customer,
        device_id=a.device_id,
        device=device,
        time_slot_id=a.time_slot_id,
        time_slot=time_slot,
        scheduled_date=a.scheduled_date,
        scheduled_start=a.scheduled_start,
        scheduled_end=a.scheduled_end,
        status=a.status,
        notes=a.notes,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")


@router.get("", response_model=list[AppointmentPublic])
async def list_all(
    date_param: date | None = Query(None, alias="date"),
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> list[AppointmentPublic]:
    """All appointments (newest first), or every appointment on one date when `date` is given."""
    if date_param:
        appointments = await list_for_date(session, date_param)
    else:
        appointments = await list_appointments(session)
    return [to_public(a) for a in appointments]


@router.get("/upcoming", response_model=list[AppointmentPublic])
async def upcoming(
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> list[AppointmentPublic]:
    appointments = await list_upcoming(session, utc_today(), days=settings.upcoming_window_days)
    return [to_public(a) for a in appointments]


@router.get("/customer/{customer_id}", response_model=list[AppointmentPublic])
async def for_customer(
    customer_id: int,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> list[AppointmentPublic]:
    appointments = await list_for_customer(session, customer_id)
    return [to_public(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_one(
    appointment_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> AppointmentPublic:
    appointment = await get_appointment(session, appointment_id)
    if not appointment:
        raise _not_found()
    return to_public(appointment)


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def create_direct(
    body: AppointmentCreate,
    session: AsyncSession = Depends(get_session),
    staff: User = Depends(require_staff),
) -> AppointmentPublic:
    """Staff-entered appointment (walk-ins). Not capacity checked, so it may overbook a slot."""
    appointment = await create_appointment(session, body)
    logger.info("Staff user %s created appointment %s directly", staff.id, appointment.id)
    return to_public(appointment)


@router.patch("/{appointment_id}", response_model=AppointmentPublic)
async def edit(
    appointment_id: uuid.UUID,
    body: AppointmentUpdate,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> AppointmentPublic:
    appointment = await update_appointment(session, appointment_id, body)
    if not appointment:
        raise _not_found()
    return to_public(appointment)


@router.patch("/{appointment_id}/status", response_model=AppointmentPublic)
async def set_status(
    appointment_id: uuid.UUID,
    body: StatusUpdateRequest,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> AppointmentPublic:
    appointment = await update_status(session, appointment_id, body.status)
    if not appointment:
        raise _not_found()
    return to_public(appointment)


async def _apply(action: StatusAction, session: AsyncSession, appointment_id: uuid.UUID) -> AppointmentPublic:
    appointment = await action(session, appointment_id)
    if not appointment:
        raise _not_found()
    return to_public(appointment)


@router.post("/{appointment_id}/cancel", response_model=AppointmentPublic)
async def cancel(
    appointment_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> AppointmentPublic:
    return await _apply(cancel_appointment, session, appointment_id)


@router.post("/{appointment_id}/confirm", response_model=AppointmentPublic)
async def confirm(
    appointment_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> AppointmentPublic:
    return await _apply(confirm_appointment, session, appointment_id)


@router.post("/{appointment_id}/arrive", response_model=AppointmentPublic)
async def arrive(
    appointment_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> AppointmentPublic:
    return await _apply(mark_arrived, session, appointment_id)


@router.post("/{appointment_id}/no-show", response_model=AppointmentPublic)
async def no_show(
    appointment_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> AppointmentPublic:
    return await _apply(mark_no_show, session, appointment_id)
