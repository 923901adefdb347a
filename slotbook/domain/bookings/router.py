"""Bookings router - FastAPI endpoints for booking admission and lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import Booking
from .schemas import (
    BookingCreate,
    BookingCreated,
    BookingResponse,
    BookingStatusUpdate,
    ClientCancelRequest,
    WeekBookingsResponse,
)
from .service import BookingService, booking_duration

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        providerId=booking.provider_id,
        serviceId=booking.service_id,
        serviceTitle=booking.service.title if booking.service else None,
        clientId=booking.client_id,
        clientName=booking.client_name,
        clientPhone=booking.client_phone,
        date=booking.date.isoformat(),
        time=booking.time,
        durationMinutes=booking_duration(booking),
        status=booking.status,
        created_at=booking.created_at,
    )


@router.post("/bookings", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
):
    """
    Public endpoint: request a slot. The booking starts as pending.

    Plain def: admission may block on the (provider, day) lock, so it runs in
    the threadpool instead of on the event loop.
    """
    booking = service.create_booking(
        background_tasks,
        provider_id=data.providerId,
        service_id=data.serviceId,
        duration_minutes=data.durationMinutes,
        date=data.date,
        time=data.time,
        client_name=data.clientName,
        client_phone=data.clientPhone,
        client_id=data.clientId,
    )
    return BookingCreated(
        bookingId=booking.id,
        status=booking.status,
        date=booking.date.isoformat(),
        time=booking.time,
        durationMinutes=booking_duration(booking),
    )


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    data: ClientCancelRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Client self-service cancel, matched by the phone number used to book"""
    booking = service.cancel_client_booking(booking_id, data.clientPhone)
    return booking_to_response(booking)


@router.patch(
    "/providers/{provider_id}/bookings/{booking_id}/status", response_model=BookingResponse
)
def update_booking_status(
    provider_id: int,
    booking_id: int,
    data: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    """Provider changes a booking's status (confirm, cancel, complete, no-show)"""
    booking = service.update_booking_status(provider_id, booking_id, data.status)
    return booking_to_response(booking)


@router.get("/providers/{provider_id}/bookings/week", response_model=WeekBookingsResponse)
async def get_week_bookings(
    provider_id: int,
    weekStart: Optional[str] = Query(None, description="Any day of the week, YYYY-MM-DD"),
    service: BookingService = Depends(get_booking_service),
):
    """Provider calendar: every booking of the Monday-based week"""
    monday, bookings = service.get_provider_bookings_for_week(provider_id, weekStart)
    return WeekBookingsResponse(
        providerId=provider_id,
        weekStart=monday.isoformat(),
        bookings=[booking_to_response(b) for b in bookings],
    )
