"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from slot_reservation.api.routes import admin, slots, reservations

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(admin.router)
api_router.include_router(slots.router)
api_router.include_router(reservations.router)
