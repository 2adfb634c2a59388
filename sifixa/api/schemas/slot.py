from datetime import time

from pydantic import BaseModel


class SlotAvailability(BaseModel):
    id: int
    name: str
    start_time: time
    end_time: time
    max_bookings: int
    current_bookings: int
    remaining_slots: int
    is_available: bool
    availability_level: str  # "available" | "limited" | "full"


class SlotAvailabilityResponse(BaseModel):
    date: str  # YYYY-MM-DD
    store_id: int | None = None
    slots: list[SlotAvailability]
