"""Scheduling domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .schedule import normalize_working_days


class AvailableSlotsResponse(BaseModel):
    """Bookable start times for one provider, day and duration"""

    providerId: int
    date: str
    durationMinutes: int
    slots: list[str]


class SlotPreviewResponse(BaseModel):
    date: str
    time: str
    label: str
    period: str


class QuickSlotsResponse(BaseModel):
    """Coarse next-available teaser"""

    hasSchedule: bool
    morning: list[SlotPreviewResponse] = Field(default_factory=list)
    evening: list[SlotPreviewResponse] = Field(default_factory=list)


class ScheduleUpdate(BaseModel):
    """Schema for a provider editing their working hours"""

    startTime: Optional[str] = None  # HH:MM, checked by the service
    endTime: Optional[str] = None
    workingDays: list = Field(default_factory=list)

    @field_validator("workingDays")
    @classmethod
    def validate_days(cls, v):
        return normalize_working_days(v)


class ScheduleResponse(BaseModel):
    providerId: int
    configured: bool
    workingDays: list[int]
    startTime: str
    endTime: str
    timezone: Optional[str] = None
