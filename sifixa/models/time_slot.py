from datetime import time

from sqlmodel import Field, SQLModel


class TimeSlot(SQLModel, table=True):
    """Bookable daily window of a store. Soft-disabled via is_active, never deleted."""

    __tablename__ = "time_slots"
    id: int | None = Field(default=None, primary_key=True)
    store_id: int | None = Field(default=None, index=True)  # None = store-agnostic
    name: str
    start_time: time
    end_time: time
    max_bookings: int | None = None  # unset/0 falls back to settings.default_max_bookings
    is_active: bool = Field(default=True, index=True)


class TimeSlotCreate(SQLModel):
    store_id: int | None = None
    name: str
    start_time: time
    end_time: time
    max_bookings: int | None = None


class TimeSlotUpdate(SQLModel):
    name: str | None = None
    start_time: time | None = None
    end_time: time | None = None
    max_bookings: int | None = None
    is_active: bool | None = None


class TimeSlotPublic(SQLModel):
    id: int
    store_id: int | None = None
    name: str
    start_time: time
    end_time: time
    max_bookings: int | None = None
    is_active: bool
