"""
Translation of engine outcomes and exceptions into HTTP responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from slot_reservation.core.logging import get_logger
from slot_reservation.services.outcomes import ReservationOutcome
from slot_reservation.services.reservation_state import InvariantViolation

logger = get_logger(__name__)

OUTCOME_STATUS_CODES = {
    ReservationOutcome.CREATED: status.HTTP_201_CREATED,
    ReservationOutcome.CONFIRMED: status.HTTP_200_OK,
    ReservationOutcome.FAILED: status.HTTP_200_OK,
    ReservationOutcome.ALREADY_PROCESSED: status.HTTP_200_OK,
    ReservationOutcome.SLOT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ReservationOutcome.RESERVATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ReservationOutcome.NO_AVAILABLE_SEAT: status.HTTP_409_CONFLICT,
}

OUTCOME_MESSAGES = {
    ReservationOutcome.FAILED: "No capacity",
    ReservationOutcome.ALREADY_PROCESSED: "Already processed",
    ReservationOutcome.SLOT_NOT_FOUND: "Slot not found",
    ReservationOutcome.RESERVATION_NOT_FOUND: "Reservation not found",
    ReservationOutcome.NO_AVAILABLE_SEAT: "No available seat",
}


def outcome_error_response(outcome: ReservationOutcome) -> JSONResponse:
    return JSONResponse(
        status_code=OUTCOME_STATUS_CODES[outcome],
        content={"detail": OUTCOME_MESSAGES[outcome], "code": outcome.value},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_validation_failed", errors=len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def invariant_violation_handler(request: Request, exc: InvariantViolation) -> JSONResponse:
    logger.critical("engine_invariant_violated", error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


EXCEPTION_HANDLERS = {
    RequestValidationError: validation_error_handler,
    InvariantViolation: invariant_violation_handler,
    Exception: unhandled_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
