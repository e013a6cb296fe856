"""
Slot ledger: capacity accounting for a slot.

get_slot_for_update() takes the slot's row lock (SELECT ... FOR UPDATE) and
holds it until the caller's transaction commits or rolls back. Anything that
decides on a slot's capacity must hold that lock before counting. Counts are
always derived from reservation rows, never stored.
"""

from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from slot_reservation.models.reservation import Reservation, ReservationStatus
from slot_reservation.models.slot import Slot
from slot_reservation.services.reservation_state import ACTIVE_STATUSES, CONFIRMED


async def get_slot_for_update(db: AsyncSession, slot_id: UUID) -> Optional[Slot]:
    """Lock and return the slot row, or None. May block on a concurrent holder."""
    result = await db.execute(
        select(Slot)
        .where(Slot.id == slot_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_reservation_for_update(db: AsyncSession, reservation_id: UUID) -> Optional[Reservation]:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def count_reservations(
    db: AsyncSession,
    slot_id: UUID,
    statuses: Iterable[ReservationStatus],
) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Reservation)
        .where(
            Reservation.slot_id == slot_id,
            Reservation.status.in_([s.value for s in statuses]),
        )
    )
    return result.scalar_one()


async def count_active(db: AsyncSession, slot_id: UUID) -> int:
    """PENDING + CONFIRMED reservations on the slot."""
    return await count_reservations(db, slot_id, ACTIVE_STATUSES)


async def count_confirmed(db: AsyncSession, slot_id: UUID) -> int:
    return await count_reservations(db, slot_id, (CONFIRMED,))


async def count_by_status(db: AsyncSession, slot_id: UUID) -> dict[str, int]:
    """Unlocked snapshot for display. Do not admit on it."""
    result = await db.execute(
        select(Reservation.status, func.count())
        .where(Reservation.slot_id == slot_id)
        .group_by(Reservation.status)
    )
    counts = {status.value: 0 for status in ReservationStatus}
    for status, count in result.all():
        counts[status] = count
    return counts
