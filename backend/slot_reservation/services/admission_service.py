"""
Admission controller: creates and confirms reservations against a slot.

CONCURRENCY STRATEGY: Pessimistic row locks, derived counts
============================================================

Problem:
  Two patients try to book the last seat of a slot simultaneously.
  Both count 2 active reservations on a capacity-3 slot, both insert.
  Result: 4 active reservations on a 3-seat slot.

Solution:
  Every admission runs as one transaction that first locks the slot row
  (SELECT ... FOR UPDATE). The lock serializes all admissions for that slot:

  1. Lock slot row                  -> SLOT_NOT_FOUND if absent
  2. COUNT PENDING + CONFIRMED rows -> NO_AVAILABLE_SEAT if count >= capacity
  3. INSERT PENDING reservation
  4. COMMIT (releases the lock), then arm the expiry timer

  The next waiter only counts after the previous commit, so it always sees the
  row that was just inserted. There is no stored seat counter to drift; the
  count is recomputed under the lock every time.

Confirmation:
  Locks the reservation row, then the slot row, and re-checks capacity against
  CONFIRMED reservations only. A PENDING hold is provisional; confirmation is
  the durable commitment and fails (PENDING -> FAILED) when other
  confirmations got there first.

Rejections roll the transaction back and are reported as ReservationResult
values. Infrastructure errors roll back and propagate; nothing here retries.
"""

import time
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from slot_reservation.core.logging import get_logger
from slot_reservation.core.metrics import admission_latency, record_confirmation, record_reservation_attempt
from slot_reservation.models.reservation import Reservation
from slot_reservation.services.expiry_reclaimer import ExpiryReclaimer
from slot_reservation.services.outcomes import ReservationOutcome, ReservationResult
from slot_reservation.services.reservation_state import (
    CONFIRMED,
    FAILED,
    InvariantViolation,
    is_terminal,
    new_pending,
    transition,
)
from slot_reservation.services.slot_ledger import (
    count_active,
    count_confirmed,
    get_reservation_for_update,
    get_slot_for_update,
)

logger = get_logger(__name__)


async def create_reservation(
    db: AsyncSession,
    slot_id: UUID,
    patient_name: str,
    patient_contact: Optional[str] = None,
    *,
    reclaimer: ExpiryReclaimer,
) -> ReservationResult:
    """
    Admit a new PENDING reservation on the slot if a seat is free.
    patient_name is expected to be validated (non-blank, trimmed) by the caller.
    """
    started = time.perf_counter()
    try:
        slot = await get_slot_for_update(db, slot_id)
        if slot is None:
            await db.rollback()
            logger.warning("reservation_rejected_slot_not_found", slot_id=str(slot_id))
            record_reservation_attempt("slot_not_found")
            return ReservationResult(ReservationOutcome.SLOT_NOT_FOUND)

        # Read before any rollback expires the slot
        capacity = slot.capacity
        active = await count_active(db, slot.id)
        if active >= capacity:
            await db.rollback()
            logger.warning(
                "reservation_rejected_no_seat",
                slot_id=str(slot_id),
                capacity=capacity,
                active=active,
            )
            record_reservation_attempt("no_available_seat")
            return ReservationResult(ReservationOutcome.NO_AVAILABLE_SEAT)

        reservation = new_pending(slot_id, patient_name, patient_contact, reclaimer.grace_period)
        db.add(reservation)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    finally:
        admission_latency.observe(time.perf_counter() - started)

    reclaimer.schedule(reservation.id)

    record_reservation_attempt("created")
    logger.info(
        "reservation_created",
        reservation_id=str(reservation.id),
        slot_id=str(slot_id),
        seats_taken=active + 1,
        capacity=capacity,
    )
    return ReservationResult(ReservationOutcome.CREATED, reservation)


async def confirm_reservation(db: AsyncSession, reservation_id: UUID) -> ReservationResult:
    """
    Finalize a PENDING reservation (stand-in for payment capture).
    Confirming a reservation that already left PENDING reports its current
    status without modifying anything.
    """
    try:
        reservation = await get_reservation_for_update(db, reservation_id)
        if reservation is None:
            await db.rollback()
            logger.warning("confirmation_rejected_not_found", reservation_id=str(reservation_id))
            record_confirmation("reservation_not_found")
            return ReservationResult(ReservationOutcome.RESERVATION_NOT_FOUND)

        if is_terminal(reservation.status):
            # Keep the loaded state readable after the rollback
            db.expunge(reservation)
            await db.rollback()
            logger.info(
                "confirmation_already_processed",
                reservation_id=str(reservation_id),
                status=reservation.status,
            )
            record_confirmation("already_processed")
            return ReservationResult(ReservationOutcome.ALREADY_PROCESSED, reservation)

        slot = await get_slot_for_update(db, reservation.slot_id)
        if slot is None:
            raise InvariantViolation(
                f"Reservation {reservation_id} references missing slot {reservation.slot_id}"
            )

        confirmed = await count_confirmed(db, slot.id)
        if confirmed >= slot.capacity:
            transition(reservation, FAILED)
            await db.commit()
            logger.warning(
                "reservation_confirm_failed_capacity",
                reservation_id=str(reservation_id),
                slot_id=str(slot.id),
                confirmed=confirmed,
                capacity=slot.capacity,
            )
            record_confirmation("failed")
            return ReservationResult(ReservationOutcome.FAILED, reservation)

        transition(reservation, CONFIRMED)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "reservation_confirmed",
        reservation_id=str(reservation_id),
        slot_id=str(slot.id),
        confirmed=confirmed + 1,
        capacity=slot.capacity,
    )
    record_confirmation("confirmed")
    return ReservationResult(ReservationOutcome.CONFIRMED, reservation)


async def get_reservation(db: AsyncSession, reservation_id: UUID) -> Optional[Reservation]:
    return await db.get(Reservation, reservation_id)
