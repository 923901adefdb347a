"""Availability repository - Reads of provider, service and busy-booking state"""

from collections import defaultdict
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ACTIVE_STATUSES, Booking, Provider, Service
from .slot_generator import BusyBooking


class AvailabilityRepository:
    """Repository for the read side of availability"""

    @staticmethod
    def get_provider(db: Session, provider_id: int) -> Optional[Provider]:
        """Get a provider by ID"""
        return db.query(Provider).filter(Provider.id == provider_id).first()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        """Get a service by ID"""
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def _busy_query(db: Session, provider_id: int, exclude_booking_id: Optional[int] = None):
        query = (
            db.query(Booking.date, Booking.time, Booking.duration_min, Service.duration_min)
            .outerjoin(Service, Booking.service_id == Service.id)
            .filter(
                Booking.provider_id == provider_id,
                Booking.status.in_(ACTIVE_STATUSES),
            )
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query

    @staticmethod
    def _to_busy(booking_duration: Optional[int], service_duration: Optional[int], time: str) -> BusyBooking:
        # Linked service wins; the admitted snapshot covers deleted services
        return BusyBooking(time=time, duration_min=service_duration or booking_duration)

    @classmethod
    def list_busy_bookings(
        cls,
        db: Session,
        provider_id: int,
        day: date,
        exclude_booking_id: Optional[int] = None,
    ) -> list[BusyBooking]:
        """Get pending/confirmed bookings of a provider for one day"""
        rows = (
            cls._busy_query(db, provider_id, exclude_booking_id)
            .filter(Booking.date == day)
            .order_by(Booking.time)
            .all()
        )
        return [
            cls._to_busy(booking_duration, service_duration, time)
            for _, time, booking_duration, service_duration in rows
        ]

    @classmethod
    def list_busy_bookings_by_date(
        cls,
        db: Session,
        provider_id: int,
        start: date,
        end: date,
    ) -> dict[date, list[BusyBooking]]:
        """Get pending/confirmed bookings between two days (inclusive), grouped by day"""
        rows = (
            cls._busy_query(db, provider_id)
            .filter(Booking.date >= start, Booking.date <= end)
            .order_by(Booking.date, Booking.time)
            .all()
        )
        grouped: dict[date, list[BusyBooking]] = defaultdict(list)
        for day, time, booking_duration, service_duration in rows:
            grouped[day].append(cls._to_busy(booking_duration, service_duration, time))
        return dict(grouped)

    @staticmethod
    def update_schedule(db: Session, provider: Provider, schedule: dict) -> Provider:
        """Replace a provider's stored schedule blob"""
        provider.schedule = schedule
        db.commit()
        db.refresh(provider)
        return provider
