"""
Time-of-day arithmetic shared by every availability and conflict check.

Times are "HH:MM" strings on the wire and minutes since midnight internally.
All intervals are half-open: [start, end).
"""

import math
import re
from typing import Optional

from ...config import DEFAULT_DURATION_MIN, MAX_DURATION_MIN, MIN_DURATION_MIN

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

MINUTES_PER_DAY = 24 * 60


def is_valid_time(value) -> bool:
    """True for zero-padded 24h "HH:MM" strings."""
    return isinstance(value, str) and bool(TIME_PATTERN.match(value))


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to zero-padded "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval overlap. Touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def clamp_duration(value: Optional[float]) -> int:
    """
    Normalize a requested service duration.

    Missing or non-finite values fall back to the default; everything else
    is clamped into [MIN_DURATION_MIN, MAX_DURATION_MIN] so that the slot
    walk always advances and always fits in a day.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_DURATION_MIN
    if isinstance(value, int):
        # Arbitrarily large ints do not fit a float
        return min(max(value, MIN_DURATION_MIN), MAX_DURATION_MIN)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_DURATION_MIN
    if not math.isfinite(number):
        return DEFAULT_DURATION_MIN
    return int(min(max(int(number), MIN_DURATION_MIN), MAX_DURATION_MIN))
