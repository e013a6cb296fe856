"""
Pydantic schemas for slot-related request/response validation.
"""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class SlotCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    capacity: int = Field(default=1, ge=1)

    @field_validator("start_time", "end_time")
    @classmethod
    def naive_is_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def start_before_end(self) -> "SlotCreate":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class SlotResponse(BaseModel):
    id: UUID
    doctor_id: UUID
    start_time: datetime
    end_time: datetime
    capacity: int

    model_config = {"from_attributes": True}


class SlotListItem(SlotResponse):
    doctor_name: str


class SlotDetailResponse(BaseModel):
    slot: SlotListItem
    reservations_by_status: dict[str, int]
    active_reservations: int
    available_seats: int
