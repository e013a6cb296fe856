"""
Reservation lifecycle.

    PENDING --confirm--> CONFIRMED
    PENDING --capacity exhausted / grace elapsed--> FAILED

CONFIRMED and FAILED are terminal. Every status write goes through
transition(), so an illegal move (re-opening a CONFIRMED reservation, failing
it after the fact) surfaces as InvalidTransitionError instead of silently
corrupting capacity accounting. Seeing one means the locking is broken.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from slot_reservation.models.reservation import Reservation, ReservationStatus

PENDING = ReservationStatus.PENDING
CONFIRMED = ReservationStatus.CONFIRMED
FAILED = ReservationStatus.FAILED

# Statuses that count against slot capacity
ACTIVE_STATUSES = (PENDING, CONFIRMED)
TERMINAL_STATUSES = frozenset({CONFIRMED, FAILED})

ALLOWED_TRANSITIONS = {
    PENDING: frozenset({CONFIRMED, FAILED}),
    CONFIRMED: frozenset(),
    FAILED: frozenset(),
}


class InvariantViolation(RuntimeError):
    """Engine state that correct transaction isolation makes impossible."""


class InvalidTransitionError(InvariantViolation):
    def __init__(self, reservation_id, current: ReservationStatus, target: ReservationStatus):
        self.reservation_id = reservation_id
        self.current = current
        self.target = target
        super().__init__(
            f"Reservation {reservation_id}: illegal transition {current.value} -> {target.value}"
        )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[ReservationStatus(current)]


def is_active(status) -> bool:
    return ReservationStatus(status) in ACTIVE_STATUSES


def is_terminal(status) -> bool:
    return ReservationStatus(status) in TERMINAL_STATUSES


def new_pending(
    slot_id: UUID,
    patient_name: str,
    patient_contact: Optional[str],
    grace_period: timedelta,
    now: Optional[datetime] = None,
) -> Reservation:
    """Build a PENDING reservation whose expiry deadline is now + grace_period."""
    now = now or utcnow()
    return Reservation(
        slot_id=slot_id,
        patient_name=patient_name,
        patient_contact=patient_contact,
        status=PENDING.value,
        expires_at=now + grace_period,
        created_at=now,
        updated_at=now,
    )


def transition(
    reservation: Reservation,
    target: ReservationStatus,
    now: Optional[datetime] = None,
) -> Reservation:
    current = ReservationStatus(reservation.status)
    if not can_transition(current, target):
        raise InvalidTransitionError(reservation.id, current, target)

    reservation.status = target.value
    reservation.updated_at = now or utcnow()
    return reservation
