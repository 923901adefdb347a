"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class BookingCreate(BaseModel):
    """Schema for a client booking request"""

    providerId: int
    serviceId: Optional[int] = None
    durationMinutes: Optional[float] = None  # Used only when no service is selected
    date: Optional[str] = None  # YYYY-MM-DD
    time: Optional[str] = None  # HH:MM
    clientName: Optional[str] = None
    clientPhone: Optional[str] = None
    clientId: Optional[int] = None


class BookingCreated(BaseModel):
    bookingId: int
    status: str
    date: str
    time: str
    durationMinutes: int


class BookingStatusUpdate(BaseModel):
    status: str


class ClientCancelRequest(BaseModel):
    clientPhone: Optional[str] = None


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    providerId: int
    serviceId: Optional[int]
    serviceTitle: Optional[str] = None
    clientId: Optional[int] = None
    clientName: str
    clientPhone: str
    date: str
    time: str
    durationMinutes: int
    status: str
    created_at: Optional[datetime] = None


class WeekBookingsResponse(BaseModel):
    providerId: int
    weekStart: str
    bookings: list[BookingResponse]
