import uuid
from datetime import UTC, date, datetime, time
from enum import Enum

from sqlmodel import Field, Relationship, SQLModel

from sifixa.models.customer import Customer, Device
from sifixa.models.time_slot import TimeSlot


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    ARRIVED = "arrived"
    NO_SHOW = "no_show"
    CANCELED = "canceled"


# Terminal statuses release the slot unit the appointment held
TERMINAL_STATUSES = frozenset({AppointmentStatus.CANCELED.value, AppointmentStatus.NO_SHOW.value})
PENDING_STATUSES = (AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value)


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    customer_id: int = Field(foreign_key="customers.id", index=True)
    device_id: int | None = Field(default=None, foreign_key="devices.id")
    # Legacy and manual appointments may have no slot
    time_slot_id: int | None = Field(default=None, foreign_key="time_slots.id", index=True)
    scheduled_date: date = Field(index=True)
    scheduled_start: time | None = None
    scheduled_end: time | None = None
    status: str = Field(default=AppointmentStatus.SCHEDULED.value, max_length=20, index=True)
    notes: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now)
    updated_at: datetime | None = None

    customer: Customer | None = Relationship()
    device: Device | None = Relationship()
    time_slot: TimeSlot | None = Relationship()

    @property
    def tracking_number(self) -> str:
        return self.id.hex[:8].upper() if self.id else "N/A"

    @property
    def occupies_slot(self) -> bool:
        """True when the appointment holds one unit of its slot's capacity."""
        return self.time_slot_id is not None and self.status not in TERMINAL_STATUSES


class AppointmentCreate(SQLModel):
    customer_id: int
    device_id: int | None = None
    time_slot_id: int | None = None
    scheduled_date: date
    scheduled_start: time | None = None
    scheduled_end: time | None = None
    notes: str | None = None


class AppointmentUpdate(SQLModel):
    notes: str | None = None
    scheduled_date: date | None = None
    scheduled_start: time | None = None
    scheduled_end: time | None = None
    device_id: int | None = None
    time_slot_id: int | None = None


class BookingCreate(SQLModel):
    """Customer self-service booking: contact details, optional device, requested slot."""

    customer_name: str
    customer_email: str | None = None
    customer_phone: str | None = None
    device_type: str | None = None
    device_brand: str | None = None
    device_model: str | None = None
    scheduled_date: date
    time_slot_id: int
    issue: str | None = None
