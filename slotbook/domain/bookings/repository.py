"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Booking


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        """Get a booking by ID"""
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_provider_booking(db: Session, provider_id: int, booking_id: int) -> Optional[Booking]:
        """Get a booking that belongs to the given provider"""
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def add_booking(db: Session, **booking_data) -> Booking:
        """Stage a new booking in the current transaction (caller commits)"""
        booking = Booking(**booking_data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def list_bookings_between(db: Session, provider_id: int, start: date, end: date) -> list[Booking]:
        """Get all bookings of a provider with start <= date < end"""
        return (
            db.query(Booking)
            .options(joinedload(Booking.service))
            .filter(
                Booking.provider_id == provider_id,
                Booking.date >= start,
                Booking.date < end,
            )
            .order_by(Booking.date, Booking.time)
            .all()
        )
