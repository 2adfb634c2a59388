"""
Booking errors raised by the service layer and their HTTP mapping.

"Slot full" is an expected business outcome, distinct from a system fault, so clients
can show "fully booked" instead of "try again".
"""
from __future__ import annotations

from datetime import date

from fastapi import HTTPException, status

MSG_SLOT_FULL = "This time slot is fully booked for the selected date. Please choose another slot."
MSG_SLOT_NOT_FOUND = "Time slot not found or no longer available for booking."


class BookingError(Exception):
    """Base class for booking rejections."""


class SlotFullError(BookingError):
    def __init__(self, time_slot_id: int, scheduled_date: date) -> None:
        self.time_slot_id = time_slot_id
        self.scheduled_date = scheduled_date
        super().__init__(f"Time slot {time_slot_id} is full on {scheduled_date.isoformat()}")


class SlotNotFoundError(BookingError):
    def __init__(self, time_slot_id: int) -> None:
        self.time_slot_id = time_slot_id
        super().__init__(f"Time slot {time_slot_id} does not exist or is inactive")


# (exception type, status code, detail). First match wins.
BOOKING_ERROR_RULES: list[tuple[type[BookingError], int, str]] = [
    (SlotFullError, status.HTTP_409_CONFLICT, MSG_SLOT_FULL),
    (SlotNotFoundError, status.HTTP_404_NOT_FOUND, MSG_SLOT_NOT_FOUND),
]


def booking_error_to_http(exc: BookingError) -> HTTPException:
    """Map a booking rejection to an HTTPException; unknown rejections become 400."""
    for exc_type, status_code, detail in BOOKING_ERROR_RULES:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
