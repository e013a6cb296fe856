"""
Pydantic schemas for reservation-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ReservationCreate(BaseModel):
    patient_name: str = Field(..., max_length=255)
    patient_contact: Optional[str] = Field(None, max_length=255)

    @field_validator("patient_name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("patient_name is required")
        return value

    @field_validator("patient_contact")
    @classmethod
    def blank_contact_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class ReservationResponse(BaseModel):
    id: UUID
    slot_id: UUID
    patient_name: str
    patient_contact: Optional[str]
    status: str
    expires_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ConfirmationResponse(BaseModel):
    reservation: ReservationResponse
    outcome: str
    message: Optional[str] = None
