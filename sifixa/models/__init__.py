from sifixa.models.user import User, UserCreate, UserPublic
from sifixa.models.refresh_token import RefreshToken
from sifixa.models.customer import Customer, Device
from sifixa.models.time_slot import TimeSlot, TimeSlotCreate, TimeSlotPublic, TimeSlotUpdate
from sifixa.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
    BookingCreate,
)

__all__ = [
    "User",
    "UserCreate",
    "UserPublic",
    "RefreshToken",
    "Customer",
    "Device",
    "TimeSlot",
    "TimeSlotCreate",
    "TimeSlotPublic",
    "TimeSlotUpdate",
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
    "AppointmentUpdate",
    "BookingCreate",
]
