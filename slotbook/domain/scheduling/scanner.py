"""
Multi-day "next available" scan.

Walks a rolling window of days starting today (in the provider's display
timezone) on a fixed 30 minute grid and collects a short preview of free
slots, bucketed into morning and evening. Scanning stops as soon as both
buckets are full, so later days are never looked at once the teaser is
satisfied.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Mapping, Optional, Sequence

import pytz

from ...config import (
    DISPLAY_LOCALE,
    QUICK_SCAN_DAYS,
    QUICK_SCAN_GRANULARITY_MIN,
    QUICK_SCAN_LEAD_MIN,
    QUICK_SCAN_MAX_PER_PERIOD,
)
from .intervals import minutes_to_time
from .schedule import WorkingSchedule, weekday_index
from .slot_generator import BusyBooking, free_starts, to_busy_intervals

MORNING = "morning"
EVENING = "evening"
NOON_MINUTES = 12 * 60

# Short weekday names indexed Sunday-first, like the stored schedule
WEEKDAY_LABELS = {
    "en": ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"],
    "ru": ["Вс", "Пн", "Вт", "Ср", "Чт", "Пт", "Сб"],
    "de": ["So", "Mo", "Di", "Mi", "Do", "Fr", "Sa"],
}
TODAY_LABELS = {"en": "Today", "ru": "Сегодня", "de": "Heute"}


@dataclass(frozen=True)
class SlotPreview:
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    label: str  # "Today" or e.g. "Tue 28"
    period: str  # morning | evening


@dataclass
class QuickSlots:
    has_schedule: bool
    morning: list[SlotPreview] = field(default_factory=list)
    evening: list[SlotPreview] = field(default_factory=list)


def local_now(now: datetime, timezone: str) -> datetime:
    """Convert `now` to the display timezone. Naive values are taken as UTC."""
    tz = pytz.timezone(timezone)
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tz)


def day_label(day: date, offset: int, locale: str = DISPLAY_LOCALE) -> str:
    if offset == 0:
        return TODAY_LABELS.get(locale, TODAY_LABELS["en"])
    names = WEEKDAY_LABELS.get(locale, WEEKDAY_LABELS["en"])
    return f"{names[weekday_index(day)]} {day.day}"


def period_for(minute: int) -> str:
    return MORNING if minute < NOON_MINUTES else EVENING


def scan_upcoming(
    schedule: WorkingSchedule,
    busy_by_date: Mapping[date, Sequence[BusyBooking]],
    now: datetime,
    timezone: str,
    window_days: int = QUICK_SCAN_DAYS,
    locale: str = DISPLAY_LOCALE,
    granularity: int = QUICK_SCAN_GRANULARITY_MIN,
    max_per_period: int = QUICK_SCAN_MAX_PER_PERIOD,
    lead_minutes: int = QUICK_SCAN_LEAD_MIN,
) -> QuickSlots:
    """
    Collect up to `max_per_period` morning and evening previews.

    `busy_by_date` holds the active bookings of the window grouped by
    calendar day; it is turned into intervals once per day, not per step.
    """
    if not schedule.is_configured:
        return QuickSlots(has_schedule=False)

    result = QuickSlots(has_schedule=True)
    zoned_now = local_now(now, timezone)
    today = zoned_now.date()
    now_minutes = zoned_now.hour * 60 + zoned_now.minute

    for offset in range(window_days):
        day = today + timedelta(days=offset)
        if not schedule.is_working_day(day):
            continue

        busy = to_busy_intervals(busy_by_date.get(day, ()))
        starts = free_starts(
            schedule.start_minutes,
            schedule.end_minutes,
            length=granularity,
            step=granularity,
            busy=busy,
        )

        for minute in starts:
            if offset == 0 and minute <= now_minutes + lead_minutes:
                continue

            period = period_for(minute)
            bucket = result.morning if period == MORNING else result.evening
            if len(bucket) < max_per_period:
                bucket.append(
                    SlotPreview(
                        date=day.isoformat(),
                        time=minutes_to_time(minute),
                        label=day_label(day, offset, locale),
                        period=period,
                    )
                )

            if _buckets_full(result, max_per_period):
                return result

    return result


def _buckets_full(result: QuickSlots, max_per_period: int) -> bool:
    return len(result.morning) >= max_per_period and len(result.evening) >= max_per_period


def window_bounds(now: datetime, timezone: str, window_days: int = QUICK_SCAN_DAYS) -> tuple[date, date]:
    """First and last calendar day (inclusive) covered by a scan starting at `now`."""
    today = local_now(now, timezone).date()
    return today, today + timedelta(days=window_days - 1)


def resolve_timezone(provider_timezone: Optional[str], default: str) -> str:
    """Provider's own timezone when it is a known zone name, else the default."""
    if provider_timezone and provider_timezone in pytz.all_timezones_set:
        return provider_timezone
    return default
