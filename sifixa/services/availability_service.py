"""
Slot availability for a date.

Availability is recomputed from the ledger on every call: active slots for the store are
joined against the date's appointments, and each slot gets its occupancy, remaining
capacity and a display level. Nothing is cached, so a report is only as fresh as the read
that produced it; the booking gate re-checks at write time.
"""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.models.appointment import Appointment
from sifixa.models.time_slot import TimeSlot
from sifixa.services.appointment_service import list_slotted_for_date
from sifixa.services.slot_service import effective_max_bookings, list_active_slots

logger = logging.getLogger(__name__)

LEVEL_AVAILABLE = "available"
LEVEL_LIMITED = "limited"
LEVEL_FULL = "full"


@dataclass(frozen=True)
class AvailabilityReport:
    slot_id: int
    name: str
    start_time: time
    end_time: time
    max_bookings: int
    current_bookings: int
    remaining_slots: int
    is_available: bool
    availability_level: str


def classify_availability(remaining: int) -> str:
    """0 left is full, 1 left is limited, 2+ is available. Overbooked slots count as full."""
    if remaining <= 0:
        return LEVEL_FULL
    if remaining == 1:
        return LEVEL_LIMITED
    return LEVEL_AVAILABLE


def count_occupancy(appointments: Iterable[Appointment]) -> dict[int, int]:
    """Occupying appointments per time_slot_id; canceled, no-show and slotless ones are skipped."""
    return dict(Counter(a.time_slot_id for a in appointments if a.occupies_slot))


def build_report(slot: TimeSlot, current_bookings: int) -> AvailabilityReport:
    max_bookings = effective_max_bookings(slot)
    remaining = max_bookings - current_bookings
    return AvailabilityReport(
        slot_id=slot.id,
        name=slot.name,
        start_time=slot.start_time,
        end_time=slot.end_time,
        max_bookings=max_bookings,
        current_bookings=current_bookings,
        remaining_slots=remaining,
        is_available=remaining > 0,
        availability_level=classify_availability(remaining),
    )


def _optimistic_report(slot: TimeSlot) -> AvailabilityReport:
    max_bookings = effective_max_bookings(slot)
    return AvailabilityReport(
        slot_id=slot.id,
        name=slot.name,
        start_time=slot.start_time,
        end_time=slot.end_time,
        max_bookings=max_bookings,
        current_bookings=0,
        remaining_slots=max_bookings,
        is_available=True,
        availability_level=LEVEL_AVAILABLE,
    )


async def compute_availability(
    session: AsyncSession, d: date, store_id: int | None = None
) -> list[AvailabilityReport]:
    slots = await list_active_slots(session, store_id)
    if not slots:
        return []
    try:
        appointments = await list_slotted_for_date(session, d)
    except (SQLAlchemyError, OSError) as e:
        # Optimistic fallback: show every slot open rather than block the booking page
        logger.error("Failed to fetch appointments for %s, reporting all slots available: %s", d, e)
        return [_optimistic_report(slot) for slot in slots]
    occupancy = count_occupancy(appointments)
    return [build_report(slot, occupancy.get(slot.id, 0)) for slot in slots]
