"""Scheduling router - FastAPI endpoints for availability and working hours"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .scanner import QuickSlots
from .schedule import parse_schedule
from .schemas import (
    AvailableSlotsResponse,
    QuickSlotsResponse,
    ScheduleResponse,
    ScheduleUpdate,
    SlotPreviewResponse,
)
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Scheduling"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def quick_slots_response(result: QuickSlots) -> QuickSlotsResponse:
    return QuickSlotsResponse(
        hasSchedule=result.has_schedule,
        morning=[SlotPreviewResponse(**asdict(slot)) for slot in result.morning],
        evening=[SlotPreviewResponse(**asdict(slot)) for slot in result.evening],
    )


@router.get("/{provider_id}/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    provider_id: int,
    date: Optional[str] = Query(None, description="Calendar day, YYYY-MM-DD"),
    duration: Optional[float] = Query(None, description="Service duration in minutes"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Public endpoint: bookable start times for one day and service duration"""
    day, duration_minutes, slots = service.get_available_slots(provider_id, date, duration)
    return AvailableSlotsResponse(
        providerId=provider_id,
        date=day.isoformat(),
        durationMinutes=duration_minutes,
        slots=slots,
    )


@router.get("/{provider_id}/quick-slots", response_model=QuickSlotsResponse)
async def get_quick_slots(
    provider_id: int,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Public endpoint: next available morning/evening slots for search listings"""
    return quick_slots_response(service.get_quick_slots(provider_id))


@router.put("/{provider_id}/schedule", response_model=ScheduleResponse)
async def update_schedule(
    provider_id: int,
    data: ScheduleUpdate,
    service: AvailabilityService = Depends(get_availability_service),
):
    """Replace the provider's working hours"""
    provider = service.update_schedule(provider_id, data.startTime, data.endTime, data.workingDays)
    # update_schedule always stores all three keys
    stored = provider.schedule
    return ScheduleResponse(
        providerId=provider.id,
        configured=parse_schedule(stored).is_configured,
        workingDays=stored["workingDays"],
        startTime=stored["startTime"],
        endTime=stored["endTime"],
        timezone=service.provider_timezone(provider),
    )
