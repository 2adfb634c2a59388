import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.api.deps import get_session
from sifixa.api.routes.appointments import to_public
from sifixa.api.schemas.appointment import AppointmentPublic, BookingRequest
from sifixa.core.errors import BookingError, booking_error_to_http
from sifixa.models.appointment import BookingCreate
from sifixa.services.appointment_service import find_by_tracking_number
from sifixa.services.booking_service import book_for_customer
from sifixa.services.email_service import send_booking_confirmation_email

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book(
    body: BookingRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    """Customer self-service booking. 409 when the slot filled up since availability was shown."""
    try:
        appointment = await book_for_customer(session, BookingCreate(**body.model_dump()))
    except BookingError as e:
        raise booking_error_to_http(e) from e
    if appointment.customer and appointment.customer.email:
        # Send confirmation email in background (uses sync SMTP)
        slot = appointment.time_slot
        background_tasks.add_task(
            send_booking_confirmation_email,
            to_email=appointment.customer.email,
            recipient_name=appointment.customer.display_name,
            tracking_number=appointment.tracking_number,
            scheduled_date=appointment.scheduled_date,
            slot_name=slot.name if slot else None,
            start_time=slot.start_time if slot else None,
            end_time=slot.end_time if slot else None,
            device_name=appointment.device.display_name if appointment.device else None,
            issue=appointment.notes,
        )
    return to_public(appointment)


@router.get("/track/{tracking_number}", response_model=AppointmentPublic)
async def track(
    tracking_number: str,
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    matches = await find_by_tracking_number(session, tracking_number)
    if len(matches) != 1:
        # Ambiguous prefixes are treated like unknown ones
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return to_public(matches[0])
