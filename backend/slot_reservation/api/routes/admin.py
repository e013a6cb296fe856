"""
Administrative endpoints: doctors and their slots.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from slot_reservation.db.session import get_db
from slot_reservation.schemas.doctor import DoctorCreate, DoctorResponse, DoctorListResponse
from slot_reservation.schemas.slot import SlotCreate, SlotResponse
from slot_reservation.services.doctor_service import create_doctor, list_doctors
from slot_reservation.services.slot_service import create_slot
from slot_reservation.services.cache_service import invalidate_slot_cache

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/doctors", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor_endpoint(doctor_data: DoctorCreate, db: AsyncSession = Depends(get_db)):
    return await create_doctor(db, doctor_data)


@router.get("/doctors", response_model=DoctorListResponse)
async def list_doctors_endpoint(db: AsyncSession = Depends(get_db)):
    doctors = await list_doctors(db)
    return DoctorListResponse(doctors=doctors)


@router.post(
    "/doctors/{doctor_id}/slots",
    response_model=SlotResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_slot_endpoint(
    doctor_id: UUID,
    slot_data: SlotCreate,
    db: AsyncSession = Depends(get_db),
):
    """Open a slot for a doctor. Capacity is fixed from here on."""
    slot = await create_slot(db, doctor_id, slot_data)
    await invalidate_slot_cache()
    return slot
