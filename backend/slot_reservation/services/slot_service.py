"""
Slot service handling CRUD operations and availability snapshots.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from slot_reservation.models.doctor import Doctor
from slot_reservation.models.slot import Slot
from slot_reservation.schemas.slot import SlotCreate, SlotDetailResponse, SlotListItem
from slot_reservation.services.reservation_state import is_active
from slot_reservation.services.slot_ledger import count_by_status
from slot_reservation.core.logging import get_logger

logger = get_logger(__name__)


def _list_item(slot: Slot, doctor_name: str) -> SlotListItem:
    return SlotListItem(
        id=slot.id,
        doctor_id=slot.doctor_id,
        start_time=slot.start_time,
        end_time=slot.end_time,
        capacity=slot.capacity,
        doctor_name=doctor_name,
    )


async def create_slot(db: AsyncSession, doctor_id: UUID, slot_data: SlotCreate) -> Slot:
    """Create a slot for an existing doctor. Time window and capacity are already validated."""
    doctor = await db.get(Doctor, doctor_id)
    if not doctor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Doctor not found",
        )

    slot = Slot(
        doctor_id=doctor.id,
        start_time=slot_data.start_time,
        end_time=slot_data.end_time,
        capacity=slot_data.capacity,
    )
    db.add(slot)
    await db.commit()
    await db.refresh(slot)

    logger.info("slot_created", slot_id=str(slot.id), doctor_id=str(doctor_id), capacity=slot.capacity)
    return slot


async def list_slots(db: AsyncSession, doctor_id: Optional[UUID] = None) -> list[SlotListItem]:
    """Slots ordered by start time, uses ix_slots_start_time."""
    query = select(Slot, Doctor.name).join(Doctor, Slot.doctor_id == Doctor.id)
    if doctor_id is not None:
        query = query.where(Slot.doctor_id == doctor_id)

    result = await db.execute(query.order_by(Slot.start_time.asc()))
    return [_list_item(slot, doctor_name) for slot, doctor_name in result.all()]


async def get_slot_detail(db: AsyncSession, slot_id: UUID) -> SlotDetailResponse:
    """Slot with live reservation counts. Not locked: a display snapshot only."""
    result = await db.execute(
        select(Slot, Doctor.name)
        .join(Doctor, Slot.doctor_id == Doctor.id)
        .where(Slot.id == slot_id)
    )
    row = result.one_or_none()
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Slot not found",
        )

    slot, doctor_name = row
    counts = await count_by_status(db, slot.id)
    active = sum(count for status_value, count in counts.items() if is_active(status_value))

    return SlotDetailResponse(
        slot=_list_item(slot, doctor_name),
        reservations_by_status=counts,
        active_reservations=active,
        available_seats=max(slot.capacity - active, 0),
    )
