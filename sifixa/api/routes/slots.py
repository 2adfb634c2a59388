from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sifixa.api.deps import get_session, require_staff
from sifixa.api.schemas.slot import SlotAvailability, SlotAvailabilityResponse
from sifixa.models.time_slot import TimeSlotCreate, TimeSlotPublic, TimeSlotUpdate
from sifixa.models.user import User
from sifixa.services.availability_service import compute_availability
from sifixa.services.slot_service import create_slot, list_active_slots, list_slots, update_slot

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("", response_model=list[TimeSlotPublic])
async def active_slots(
    store_id: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> list[TimeSlotPublic]:
    slots = await list_active_slots(session, store_id)
    return [TimeSlotPublic.model_validate(s, from_attributes=True) for s in slots]


@router.get("/availability", response_model=SlotAvailabilityResponse)
async def slot_availability(
    date_param: date = Query(..., alias="date"),
    store_id: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> SlotAvailabilityResponse:
    """Capacity of every active slot on the given date, with an availability level per slot."""
    reports = await compute_availability(session, date_param, store_id)
    return SlotAvailabilityResponse(
        date=date_param.isoformat(),
        store_id=store_id,
        slots=[
            SlotAvailability(
                id=r.slot_id,
                name=r.name,
                start_time=r.start_time,
                end_time=r.end_time,
                max_bookings=r.max_bookings,
                current_bookings=r.current_bookings,
                remaining_slots=r.remaining_slots,
                is_available=r.is_available,
                availability_level=r.availability_level,
            )
            for r in reports
        ],
    )


@router.get("/all", response_model=list[TimeSlotPublic])
async def all_slots(
    store_id: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> list[TimeSlotPublic]:
    slots = await list_slots(session, store_id)
    return [TimeSlotPublic.model_validate(s, from_attributes=True) for s in slots]


@router.post("", response_model=TimeSlotPublic, status_code=status.HTTP_201_CREATED)
async def add_slot(
    body: TimeSlotCreate,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> TimeSlotPublic:
    if body.end_time <= body.start_time:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_time must be after start_time",
        )
    slot = await create_slot(session, body)
    return TimeSlotPublic.model_validate(slot, from_attributes=True)


@router.patch("/{slot_id}", response_model=TimeSlotPublic)
async def edit_slot(
    slot_id: int,
    body: TimeSlotUpdate,
    session: AsyncSession = Depends(get_session),
    _staff: User = Depends(require_staff),
) -> TimeSlotPublic:
    """Partial update; send is_active=false to take a slot out of booking."""
    try:
        slot = await update_slot(session, slot_id, body)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if not slot:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Time slot not found")
    return TimeSlotPublic.model_validate(slot, from_attributes=True)
