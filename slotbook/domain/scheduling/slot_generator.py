"""
Single-day slot generation.

The candidate grid is anchored at the opening time and steps by the length
of the requested service, so different services see different grids for the
same day. A candidate survives only if it overlaps no busy interval.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from ...config import DEFAULT_DURATION_MIN
from .intervals import clamp_duration, minutes_to_time, overlaps, time_to_minutes
from .schedule import WorkingSchedule


@dataclass(frozen=True)
class BusyBooking:
    """An active booking as seen by availability: start time and resolved duration."""

    time: str
    duration_min: Optional[int] = None


@dataclass(frozen=True)
class BusyInterval:
    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        return overlaps(start, end, self.start, self.end)


def effective_duration(duration_min: Optional[int]) -> int:
    """Duration of an existing booking, with the fixed fallback when unknown."""
    if not duration_min or duration_min <= 0:
        return DEFAULT_DURATION_MIN
    return int(duration_min)


def to_busy_intervals(bookings: Iterable[BusyBooking]) -> list[BusyInterval]:
    intervals = []
    for booking in bookings:
        start = time_to_minutes(booking.time)
        intervals.append(BusyInterval(start, start + effective_duration(booking.duration_min)))
    return intervals


def is_free(start: int, length: int, busy: Sequence[BusyInterval]) -> bool:
    end = start + length
    return not any(interval.overlaps(start, end) for interval in busy)


def free_starts(
    work_start: int,
    work_end: int,
    length: int,
    step: int,
    busy: Sequence[BusyInterval],
) -> list[int]:
    """
    Walk candidate starts from `work_start` to `work_end - length` inclusive.

    Returns minute offsets of the candidates that overlap no busy interval,
    in ascending order.
    """
    if work_end <= work_start or length <= 0 or step <= 0:
        return []

    starts = []
    minute = work_start
    while minute <= work_end - length:
        if is_free(minute, length, busy):
            starts.append(minute)
        minute += step
    return starts


def generate_slots(
    schedule: WorkingSchedule,
    day: date,
    duration_min: Optional[float],
    busy_bookings: Iterable[BusyBooking],
) -> list[str]:
    """
    Bookable start times ("HH:MM") for one day and one service duration.

    An empty list means closed or fully booked; neither is an error.
    """
    if not schedule.is_working_day(day):
        return []

    duration = clamp_duration(duration_min)
    busy = to_busy_intervals(busy_bookings)
    starts = free_starts(
        schedule.start_minutes,
        schedule.end_minutes,
        length=duration,
        step=duration,
        busy=busy,
    )
    return [minutes_to_time(minute) for minute in starts]
