import uuid
from datetime import date, datetime, time

from pydantic import BaseModel, EmailStr

from sifixa.models.appointment import AppointmentStatus


class CustomerSummary(BaseModel):
    id: int
    name: str
    email: str | None = None
    phone: str | None = None


class DeviceSummary(BaseModel):
    id: int
    type: str
    name: str


class TimeSlotSummary(BaseModel):
    id: int
    name: str
    start_time: time
    end_time: time


class AppointmentPublic(BaseModel):
    id: uuid.UUID
    tracking_number: str
    customer_id: int
    customer: CustomerSummary | None = None
    device_id: int | None = None
    device: DeviceSummary | None = None
    time_slot_id: int | None = None
    time_slot: TimeSlotSummary | None = None
    scheduled_date: date
    scheduled_start: time | None = None
    scheduled_end: time | None = None
    status: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class BookingRequest(BaseModel):
    """Public booking form."""

    customer_name: str
    customer_email: EmailStr | None = None
    customer_phone: str | None = None
    device_type: str | None = None
    device_brand: str | None = None
    device_model: str | None = None
    scheduled_date: date
    time_slot_id: int
    issue: str | None = None


class StatusUpdateRequest(BaseModel):
    status: AppointmentStatus
