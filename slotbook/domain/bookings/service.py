"""Booking service - Admission controller and booking status changes"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Callable, Iterator, Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import begin_serializable, storage_guard
from ...exceptions import (
    BookingEngineError,
    ConflictError,
    InfrastructureError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from ...models import (
    ACTIVE_STATUSES,
    BOOKING_STATUSES,
    STATUS_CANCELLED,
    STATUS_PENDING,
    Booking,
    Provider,
)
from ...services.notification_service import (
    Notifier,
    TelegramNotifier,
    build_booking_message,
    notify_provider,
)
from ...shared.validators import parse_date, same_phone, validate_phone, validate_time
from ...slot_lock import get_slot_lock
from ...utils.sanitization import clean_text
from ..scheduling.intervals import clamp_duration, time_to_minutes
from ..scheduling.repository import AvailabilityRepository
from ..scheduling.scanner import local_now
from ..scheduling.service import AvailabilityService, utc_now
from ..scheduling.slot_generator import effective_duration, is_free, to_busy_intervals
from .repository import BookingRepository

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Someone just took that slot, please pick another"
REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"
NO_HOURS_MESSAGE = "This provider has no bookable hours"
CLOSED_DAY_MESSAGE = "This provider does not work on the selected day"

# SQLSTATE for serialization failures (PostgreSQL and the SQL standard)
SERIALIZATION_FAILURE = "40001"


def booking_duration(booking: Booking) -> int:
    """Effective length of an existing booking"""
    service_duration = booking.service.duration_min if booking.service else None
    return effective_duration(service_duration or booking.duration_min)


def is_serialization_failure(error: DBAPIError) -> bool:
    orig = getattr(error, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == SERIALIZATION_FAILURE:
        return True
    message = str(orig or error).lower()
    return "could not serialize" in message or "database is locked" in message


class BookingService:
    """Service layer for booking admission and lifecycle"""

    def __init__(
        self,
        db: Session,
        notifier: Optional[Notifier] = None,
        slot_lock=None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.repo = BookingRepository()
        self.availability_repo = AvailabilityRepository()
        self.availability = AvailabilityService(db, clock=clock)
        self.notifier = notifier or TelegramNotifier()
        self.slot_lock = slot_lock or get_slot_lock()
        self.clock = clock

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    @contextmanager
    def _exclusive(self, provider_id: int, day: date) -> Iterator[None]:
        """
        Hold the (provider, day) admission lock around one SERIALIZABLE
        transaction. Commits on success; on any failure the transaction is
        rolled back and storage errors are mapped to the engine taxonomy.
        """
        with self.slot_lock.hold(provider_id, day):
            if self.db.in_transaction():
                # Close the caller's read transaction so ours starts serializable
                self.db.commit()
            try:
                begin_serializable(self.db)
                yield
                self.db.commit()
            except BookingEngineError:
                self.db.rollback()
                raise
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(f"⚠️ Integrity conflict for provider {provider_id} on {day}: {e}")
                raise ConflictError(SLOT_TAKEN_MESSAGE) from e
            except DBAPIError as e:
                self.db.rollback()
                if is_serialization_failure(e):
                    logger.warning(f"⚠️ Serialization conflict for provider {provider_id} on {day}")
                    raise ConflictError(SLOT_TAKEN_MESSAGE) from e
                logger.error(f"❌ Storage failure for provider {provider_id} on {day}: {e}")
                raise InfrastructureError("Booking storage is unavailable") from e
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Storage failure for provider {provider_id} on {day}: {e}")
                raise InfrastructureError("Booking storage is unavailable") from e

    def _local_now(self, provider: Provider, now: Optional[datetime]) -> datetime:
        timezone = self.availability.provider_timezone(provider)
        return local_now(now or self.clock(), timezone).replace(tzinfo=None)

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def admit_booking(
        self,
        provider_id: int,
        date: Optional[str],
        time: Optional[str],
        client_name: Optional[str],
        client_phone: Optional[str],
        service_id: Optional[int] = None,
        duration_minutes: Optional[float] = None,
        client_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Re-validate the requested slot against live state and persist a
        pending booking, or raise.

        Raises:
            ValidationError: missing/malformed input, unknown service
            NotFoundError: unknown provider
            UnavailableError: provider has no hours or the day is closed
            ConflictError: slot not free at commit time (retryable)
            InfrastructureError: storage or lock backend failure
        """
        if not date or not time or not client_name or not client_phone:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)

        try:
            day = parse_date(date)
            time = validate_time(time)
            name = clean_text(client_name)
            phone = validate_phone(client_phone)
        except ValueError as e:
            raise ValidationError(str(e)) from None

        if not name or not phone:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)

        logger.info(f"📅 Booking request: provider {provider_id}, {day} {time}, service {service_id}")

        with self._exclusive(provider_id, day):
            provider = self.availability.get_provider(provider_id)

            schedule = self.availability.get_schedule(provider)
            if not schedule.is_configured:
                raise UnavailableError(NO_HOURS_MESSAGE)
            if not schedule.is_working_day(day):
                raise UnavailableError(CLOSED_DAY_MESSAGE)

            if service_id is not None:
                service = self.availability_repo.get_service(self.db, service_id)
                if not service or service.provider_id != provider.id:
                    raise ValidationError("Service not found")
                duration = clamp_duration(service.duration_min)
            else:
                duration = clamp_duration(duration_minutes)

            requested_start = datetime.combine(day, datetime.min.time()) + timedelta(
                minutes=time_to_minutes(time)
            )
            if requested_start <= self._local_now(provider, now):
                raise ValidationError("This time is already in the past")

            free = self.availability.free_slots(provider, day, duration)
            if time not in free:
                logger.warning(
                    f"⚠️ Slot rejected for provider {provider_id}: {day} {time} ({duration} min)"
                )
                raise ConflictError(SLOT_TAKEN_MESSAGE)

            booking = self.repo.add_booking(
                self.db,
                provider_id=provider.id,
                service_id=service_id,
                client_id=client_id,
                client_name=name,
                client_phone=phone,
                date=day,
                time=time,
                duration_min=duration,
                status=STATUS_PENDING,
            )
            booking_id = booking.id

        logger.info(f"✅ Booking {booking_id} admitted for provider {provider_id} on {day} {time}")
        return booking

    def create_booking(self, background_tasks: BackgroundTasks, **request) -> Booking:
        """
        Admit a booking and queue the provider notification.

        The notification runs as a background task once the response is
        sent, so a slow or failing Telegram call never delays or fails the
        booking.
        """
        booking = self.admit_booking(**request)

        with storage_guard(self.db, "booking notification"):
            provider = booking.provider
            message = build_booking_message(
                provider_id=provider.id,
                booking_id=booking.id,
                client_name=booking.client_name,
                client_phone=booking.client_phone,
                scheduled_date=booking.date.isoformat(),
                start_time=booking.time,
                duration_minutes=booking_duration(booking),
                service_title=booking.service.title if booking.service else None,
            )
            channel = provider.telegram_chat_id

        background_tasks.add_task(notify_provider, self.notifier, channel, message)
        return booking

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def update_booking_status(self, provider_id: int, booking_id: int, new_status: str) -> Booking:
        """
        Provider-facing status change.

        Re-activating an inactive booking re-checks its interval against the
        other active bookings of that day, under the same lock and isolation
        as admission.
        """
        new_status = (new_status or "").strip().lower()
        if new_status not in BOOKING_STATUSES:
            raise ValidationError(f"Unknown booking status: {new_status or '(empty)'}")

        with storage_guard(self.db, f"status update of booking {booking_id}"):
            booking = self.repo.get_provider_booking(self.db, provider_id, booking_id)
            if not booking:
                raise NotFoundError("Booking not found")

            if booking.status == new_status:
                return booking

            if booking.status in ACTIVE_STATUSES or new_status not in ACTIVE_STATUSES:
                booking.status = new_status
                self.db.commit()
                self.db.refresh(booking)
                logger.info(f"📝 Booking {booking_id} status -> {new_status}")
                return booking

        day = booking.date
        with self._exclusive(provider_id, day):
            booking = self.repo.get_provider_booking(self.db, provider_id, booking_id)
            start = time_to_minutes(booking.time)
            busy = to_busy_intervals(
                self.availability_repo.list_busy_bookings(
                    self.db, provider_id, day, exclude_booking_id=booking.id
                )
            )
            if not is_free(start, booking_duration(booking), busy):
                raise ConflictError("The booking's time is already taken by another booking")
            booking.status = new_status

        logger.info(f"📝 Booking {booking_id} re-activated -> {new_status}")
        with storage_guard(self.db, f"status update of booking {booking_id}"):
            self.db.refresh(booking)
        return booking

    def cancel_client_booking(
        self, booking_id: int, client_phone: Optional[str], now: Optional[datetime] = None
    ) -> Booking:
        """Client self-service cancel, authorised by the phone used to book"""
        with storage_guard(self.db, f"client cancel of booking {booking_id}"):
            booking = self.repo.get_booking(self.db, booking_id)
            if not booking or not same_phone(booking.client_phone, client_phone):
                raise NotFoundError("Booking not found")

            if booking.status == STATUS_CANCELLED:
                raise ValidationError("Booking is already cancelled")
            if booking.status not in ACTIVE_STATUSES:
                raise ValidationError("Booking can no longer be cancelled")

            starts_at = datetime.combine(booking.date, datetime.min.time()) + timedelta(
                minutes=time_to_minutes(booking.time)
            )
            if starts_at < self._local_now(booking.provider, now):
                raise ValidationError("Cannot cancel a booking that has already started")

            booking.status = STATUS_CANCELLED
            self.db.commit()
            self.db.refresh(booking)
        logger.info(f"🚫 Booking {booking_id} cancelled by client")
        return booking

    def get_provider_bookings_for_week(self, provider_id: int, week_start: Optional[str]):
        """All bookings of the Monday-based week containing `week_start`"""
        try:
            day = parse_date(week_start)
        except ValueError as e:
            raise ValidationError(str(e)) from None

        monday = day - timedelta(days=day.weekday())
        with storage_guard(self.db, f"week bookings of provider {provider_id}"):
            self.availability.get_provider(provider_id)
            bookings = self.repo.list_bookings_between(
                self.db, provider_id, monday, monday + timedelta(days=7)
            )
        return monday, bookings
