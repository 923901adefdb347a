from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Booking statuses
STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"
STATUS_NO_SHOW = "no_show"

BOOKING_STATUSES = (
    STATUS_PENDING,
    STATUS_CONFIRMED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_NO_SHOW,
)
# Only these occupy the provider's calendar
ACTIVE_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    telegram_chat_id = Column(String(64), nullable=True)  # Notification channel
    timezone = Column(String(64), nullable=True)  # e.g. "Europe/Berlin"; falls back to DISPLAY_TIMEZONE
    # Opaque working hours blob: {"workingDays": [1, 2, 3], "startTime": "10:00", "endTime": "18:00"}
    schedule = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    services = relationship("Service", back_populates="provider")
    bookings = relationship("Booking", back_populates="provider")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    duration_min = Column(Integer, nullable=False, default=60)
    price = Column(Float, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("Provider", back_populates="services")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (Index("ix_bookings_provider_date", "provider_id", "date"),)

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False)
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="SET NULL"), nullable=True
    )  # Nulled when the service is removed
    client_id = Column(Integer, nullable=True)  # Legacy bookings have no client account
    client_name = Column(String(255), nullable=False)
    client_phone = Column(String(50), nullable=False)
    date = Column(Date, nullable=False)  # Provider-local calendar day
    time = Column(String(5), nullable=False)  # HH:MM
    duration_min = Column(Integer, nullable=True)  # Duration admitted with, used when no service
    status = Column(String(20), nullable=False, default=STATUS_PENDING)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="bookings")
    service = relationship("Service")
