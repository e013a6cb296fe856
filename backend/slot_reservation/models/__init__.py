from slot_reservation.models.doctor import Doctor
from slot_reservation.models.slot import Slot
from slot_reservation.models.reservation import Reservation, ReservationStatus

__all__ = ["Doctor", "Slot", "Reservation", "ReservationStatus"]
