"""
Doctor service handling CRUD operations.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slot_reservation.models.doctor import Doctor
from slot_reservation.schemas.doctor import DoctorCreate
from slot_reservation.core.logging import get_logger

logger = get_logger(__name__)


async def create_doctor(db: AsyncSession, doctor_data: DoctorCreate) -> Doctor:
    doctor = Doctor(name=doctor_data.name, specialization=doctor_data.specialization)
    db.add(doctor)
    await db.commit()
    await db.refresh(doctor)

    logger.info("doctor_created", doctor_id=str(doctor.id), name=doctor.name)
    return doctor


async def list_doctors(db: AsyncSession) -> list[Doctor]:
    """All doctors, newest first."""
    result = await db.execute(select(Doctor).order_by(Doctor.created_at.desc()))
    return list(result.scalars().all())
