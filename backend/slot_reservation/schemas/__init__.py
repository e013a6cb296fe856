from slot_reservation.schemas.doctor import DoctorCreate, DoctorResponse, DoctorListResponse
from slot_reservation.schemas.slot import SlotCreate, SlotResponse, SlotListItem, SlotDetailResponse
from slot_reservation.schemas.reservation import (
    ReservationCreate,
    ReservationResponse,
    ConfirmationResponse,
)

__all__ = [
    "DoctorCreate", "DoctorResponse", "DoctorListResponse",
    "SlotCreate", "SlotResponse", "SlotListItem", "SlotDetailResponse",
    "ReservationCreate", "ReservationResponse", "ConfirmationResponse",
]
