"""
Reservation model: one patient's claim on a slot's capacity.

Key design decisions:
- status is owned by the engine; patient fields are written once at creation
- expires_at is persisted so pending deadlines survive a process restart
- (slot_id, status) index serves the active-count query under the slot lock
- (status, expires_at) index serves the periodic expiry sweep
"""

import enum
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import relationship

from slot_reservation.db.base import Base, TimestampMixin


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    slot_id = Column(Uuid, ForeignKey("slots.id"), nullable=False)
    patient_name = Column(String(255), nullable=False)
    patient_contact = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    slot = relationship("Slot", back_populates="reservations")

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'FAILED')",
            name="check_reservation_status",
        ),
        Index("ix_reservations_slot_status", "slot_id", "status"),
        Index("ix_reservations_status_expires_at", "status", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, slot={self.slot_id}, status={self.status})>"
