"""
Slot model: a bookable time window with a fixed capacity.

Key design decisions:
- No stored "available seats" counter. Availability is always derived by
  counting active reservations while the slot row is locked, so it cannot drift.
- capacity and the time bounds are validated by the admin API and backed by
  CHECK constraints; the engine trusts them afterwards.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Uuid
from sqlalchemy.orm import relationship

from slot_reservation.db.base import Base, TimestampMixin


class Slot(Base, TimestampMixin):
    __tablename__ = "slots"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(Uuid, ForeignKey("doctors.id"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=False, default=1)

    doctor = relationship("Doctor", back_populates="slots")
    reservations = relationship("Reservation", back_populates="slot")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_slot_capacity_positive"),
        CheckConstraint("start_time < end_time", name="check_slot_time_window"),
        Index("ix_slots_start_time", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<Slot(id={self.id}, doctor={self.doctor_id}, capacity={self.capacity})>"
