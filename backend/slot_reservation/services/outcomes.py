"""
Engine outcomes.

Admission and confirmation report expected results (slot missing, no seat,
already processed, ...) as values, not exceptions. Callers branch on
ReservationResult.outcome; only infrastructure failures and invariant
violations are raised.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from slot_reservation.models.reservation import Reservation


class ReservationOutcome(str, enum.Enum):
    CREATED = "CREATED"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    SLOT_NOT_FOUND = "SLOT_NOT_FOUND"
    RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
    NO_AVAILABLE_SEAT = "NO_AVAILABLE_SEAT"


@dataclass(frozen=True)
class ReservationResult:
    outcome: ReservationOutcome
    reservation: Optional[Reservation] = None

    @property
    def found(self) -> bool:
        return self.reservation is not None
