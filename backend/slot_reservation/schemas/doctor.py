"""
Pydantic schemas for doctor-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class DoctorCreate(BaseModel):
    name: str = Field(..., max_length=255)
    specialization: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name is required")
        return value

    @field_validator("specialization")
    @classmethod
    def blank_specialization_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class DoctorResponse(BaseModel):
    id: UUID
    name: str
    specialization: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class DoctorListResponse(BaseModel):
    doctors: list[DoctorResponse]
