"""
Doctor model: the entity that owns appointment slots.
The reservation engine never reads it; it only exists for slot listings.
"""

import uuid

from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship

from slot_reservation.db.base import Base, TimestampMixin


class Doctor(Base, TimestampMixin):
    __tablename__ = "doctors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    specialization = Column(String(255), nullable=True)

    slots = relationship("Slot", back_populates="doctor")

    def __repr__(self) -> str:
        return f"<Doctor(id={self.id}, name={self.name})>"
