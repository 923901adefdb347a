"""Availability service - Slot queries and working-hours updates"""

import logging
from datetime import date, datetime
from typing import Callable, Iterable, Optional

import pytz
from sqlalchemy.orm import Session

from ...config import DISPLAY_LOCALE, DISPLAY_TIMEZONE, QUICK_SCAN_DAYS
from ...database import storage_guard
from ...exceptions import NotFoundError, ValidationError
from ...models import Provider
from ...shared.validators import parse_date, validate_time
from .intervals import clamp_duration, time_to_minutes
from .repository import AvailabilityRepository
from .scanner import QuickSlots, resolve_timezone, scan_upcoming, window_bounds
from .schedule import WorkingSchedule, normalize_working_days, parse_schedule
from .slot_generator import generate_slots

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


class AvailabilityService:
    """Service layer for the read side of availability"""

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utc_now,
        default_timezone: str = DISPLAY_TIMEZONE,
        locale: str = DISPLAY_LOCALE,
    ):
        self.db = db
        self.repo = AvailabilityRepository()
        self.clock = clock
        self.default_timezone = default_timezone
        self.locale = locale

    def get_provider(self, provider_id: int) -> Provider:
        provider = self.repo.get_provider(self.db, provider_id)
        if not provider:
            raise NotFoundError("Provider not found")
        return provider

    def provider_timezone(self, provider: Provider) -> str:
        return resolve_timezone(provider.timezone, self.default_timezone)

    def get_schedule(self, provider: Provider) -> WorkingSchedule:
        return parse_schedule(provider.schedule)

    def free_slots(
        self,
        provider: Provider,
        day: date,
        duration_minutes: Optional[float],
        exclude_booking_id: Optional[int] = None,
    ) -> list[str]:
        """Bookable start times for a provider-day against the current booking state"""
        schedule = self.get_schedule(provider)
        if not schedule.is_working_day(day):
            return []
        busy = self.repo.list_busy_bookings(self.db, provider.id, day, exclude_booking_id)
        return generate_slots(schedule, day, duration_minutes, busy)

    def get_available_slots(
        self, provider_id: int, day: str, duration_minutes: Optional[float]
    ) -> tuple[date, int, list[str]]:
        """
        Get the slot grid for one provider, day and service duration.

        Returns (day, normalized duration, slots). A closed day or a provider
        without configured hours yields an empty list, never an error.
        """
        try:
            parsed_day = parse_date(day)
        except ValueError as e:
            raise ValidationError(str(e)) from None

        duration = clamp_duration(duration_minutes)
        with storage_guard(self.db, f"slot query for provider {provider_id}"):
            provider = self.get_provider(provider_id)
            slots = self.free_slots(provider, parsed_day, duration)
        logger.debug(
            f"Provider {provider_id} on {parsed_day}: {len(slots)} free slots for {duration} min"
        )
        return parsed_day, duration, slots

    def get_quick_slots(self, provider_id: int, now: Optional[datetime] = None) -> QuickSlots:
        """Up to three morning and three evening previews within the scan window"""
        with storage_guard(self.db, f"quick scan for provider {provider_id}"):
            provider = self.repo.get_provider(self.db, provider_id)
            if not provider:
                return QuickSlots(has_schedule=False)

            schedule = self.get_schedule(provider)
            if not schedule.is_configured:
                return QuickSlots(has_schedule=False)

            now = now or self.clock()
            timezone = self.provider_timezone(provider)
            start, end = window_bounds(now, timezone, QUICK_SCAN_DAYS)
            busy_by_date = self.repo.list_busy_bookings_by_date(self.db, provider.id, start, end)

        return scan_upcoming(
            schedule,
            busy_by_date,
            now=now,
            timezone=timezone,
            window_days=QUICK_SCAN_DAYS,
            locale=self.locale,
        )

    def update_schedule(
        self,
        provider_id: int,
        start_time: str,
        end_time: str,
        working_days: Iterable[int],
    ) -> Provider:
        """Validate and store a provider's working hours"""
        try:
            start_time = validate_time(start_time)
            end_time = validate_time(end_time)
        except ValueError as e:
            raise ValidationError(str(e)) from None

        if time_to_minutes(end_time) <= time_to_minutes(start_time):
            raise ValidationError("End time must be later than start time")

        stored = {
            "workingDays": normalize_working_days(working_days),
            "startTime": start_time,
            "endTime": end_time,
        }
        with storage_guard(self.db, f"schedule update for provider {provider_id}"):
            provider = self.get_provider(provider_id)
            self.repo.update_schedule(self.db, provider, stored)
        logger.info(f"🗓️ Schedule updated for provider {provider_id}: {stored}")
        return provider
