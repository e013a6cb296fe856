"""
Public slot endpoints: browsing and booking.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from slot_reservation.api.errors import outcome_error_response
from slot_reservation.db.session import get_db
from slot_reservation.schemas.slot import SlotListItem, SlotDetailResponse
from slot_reservation.schemas.reservation import ReservationCreate, ReservationResponse
from slot_reservation.services.admission_service import create_reservation
from slot_reservation.services.cache_service import get_cached_slots, set_cached_slots
from slot_reservation.services.expiry_reclaimer import ExpiryReclaimer, get_reclaimer
from slot_reservation.services.outcomes import ReservationOutcome
from slot_reservation.services.slot_service import get_slot_detail, list_slots
from slot_reservation.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/slots", tags=["Slots"])


@router.get("", response_model=list[SlotListItem])
async def list_slots_endpoint(
    doctor_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    List slots ordered by start time.
    Cached in Redis; the cache is dropped whenever a slot is created.
    """
    cached = await get_cached_slots(doctor_id)
    if cached is not None:
        logger.info("slots_list_cache_hit", doctor_id=str(doctor_id) if doctor_id else None)
        return cached

    slots = await list_slots(db, doctor_id)
    data = [slot.model_dump(mode="json") for slot in slots]
    await set_cached_slots(doctor_id, data)
    return data


@router.get("/{slot_id}", response_model=SlotDetailResponse)
async def get_slot_endpoint(slot_id: UUID, db: AsyncSession = Depends(get_db)):
    """Slot detail with live seat counts. Never cached."""
    return await get_slot_detail(db, slot_id)


@router.post(
    "/{slot_id}/book",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Slot not found"}, 409: {"description": "No available seat"}},
)
async def book_slot(
    slot_id: UUID,
    reservation_data: ReservationCreate,
    db: AsyncSession = Depends(get_db),
    reclaimer: ExpiryReclaimer = Depends(get_reclaimer),
):
    """
    Place a PENDING hold on one seat of the slot.

    The hold must be confirmed within the grace period or it expires and the
    seat returns to the pool.
    """
    result = await create_reservation(
        db,
        slot_id,
        reservation_data.patient_name,
        reservation_data.patient_contact,
        reclaimer=reclaimer,
    )
    if result.outcome is not ReservationOutcome.CREATED:
        return outcome_error_response(result.outcome)
    return result.reservation
