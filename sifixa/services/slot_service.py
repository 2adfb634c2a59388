import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.core.config import settings
from sifixa.models.time_slot import TimeSlot, TimeSlotCreate, TimeSlotUpdate

logger = logging.getLogger(__name__)

_REQUIRED_SLOT_FIELDS = frozenset({"name", "start_time", "end_time", "is_active"})


def effective_max_bookings(slot: TimeSlot) -> int:
    """Slot capacity; unset, zero or invalid values fall back to the shop default (3)."""
    value = slot.max_bookings
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return settings.default_max_bookings
    return value


async def list_active_slots(session: AsyncSession, store_id: int | None = None) -> list[TimeSlot]:
    """Active slots, optionally for one store, ordered by start time.

    A failed lookup returns [] so callers see "nothing bookable" instead of an error.
    """
    q = select(TimeSlot).where(TimeSlot.is_active == True)  # noqa: E712
    if store_id is not None:
        q = q.where(TimeSlot.store_id == store_id)
    q = q.order_by(TimeSlot.start_time)
    try:
        result = await session.execute(q)
    except (SQLAlchemyError, OSError) as e:
        logger.exception("Failed to fetch time slots (store_id=%s): %s", store_id, e)
        return []
    return list(result.scalars().all())


async def list_slots(session: AsyncSession, store_id: int | None = None) -> list[TimeSlot]:
    q = select(TimeSlot).order_by(TimeSlot.start_time)
    if store_id is not None:
        q = q.where(TimeSlot.store_id == store_id)
    result = await session.execute(q)
    return list(result.scalars().all())


async def get_slot(session: AsyncSession, slot_id: int, for_update: bool = False) -> TimeSlot | None:
    q = select(TimeSlot).where(TimeSlot.id == slot_id)
    if for_update:
        q = q.with_for_update()
    result = await session.execute(q)
    return result.scalar_one_or_none()


async def create_slot(session: AsyncSession, data: TimeSlotCreate) -> TimeSlot:
    slot = TimeSlot(**data.model_dump(), is_active=True)
    session.add(slot)
    await session.flush()
    await session.refresh(slot)
    logger.info("Created time slot %s (%s) for store %s", slot.id, slot.name, slot.store_id)
    return slot


async def update_slot(session: AsyncSession, slot_id: int, data: TimeSlotUpdate) -> TimeSlot | None:
    """Partial update. Null for a required column leaves it unchanged; max_bookings=null resets capacity.

    Raises ValueError when the resulting window ends at or before it starts.
    """
    slot = await get_slot(session, slot_id)
    if not slot:
        return None
    changes = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key not in _REQUIRED_SLOT_FIELDS
    }
    start_time = changes.get("start_time", slot.start_time)
    end_time = changes.get("end_time", slot.end_time)
    if end_time <= start_time:
        raise ValueError("end_time must be after start_time")
    for key, value in changes.items():
        setattr(slot, key, value)
    session.add(slot)
    await session.flush()
    await session.refresh(slot)
    return slot
