"""
Reservation endpoints: confirmation and lookup.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from slot_reservation.api.errors import OUTCOME_MESSAGES, outcome_error_response
from slot_reservation.db.session import get_db
from slot_reservation.schemas.reservation import ConfirmationResponse, ReservationResponse
from slot_reservation.services.admission_service import confirm_reservation, get_reservation

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post(
    "/{reservation_id}/confirm",
    response_model=ConfirmationResponse,
    responses={404: {"description": "Reservation not found"}},
)
async def confirm_reservation_endpoint(reservation_id: UUID, db: AsyncSession = Depends(get_db)):
    """
    Confirm a PENDING reservation (payment capture stand-in).

    Idempotent: confirming an already CONFIRMED or FAILED reservation returns
    its current status with outcome ALREADY_PROCESSED.
    """
    result = await confirm_reservation(db, reservation_id)
    if not result.found:
        return outcome_error_response(result.outcome)

    return ConfirmationResponse(
        reservation=ReservationResponse.model_validate(result.reservation),
        outcome=result.outcome.value,
        message=OUTCOME_MESSAGES.get(result.outcome),
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation_endpoint(reservation_id: UUID, db: AsyncSession = Depends(get_db)):
    reservation = await get_reservation(db, reservation_id)
    if not reservation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reservation not found",
        )
    return reservation
