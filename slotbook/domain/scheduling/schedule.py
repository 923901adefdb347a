"""
Working schedule model.

A provider's hours are stored as an untyped JSON blob on the provider row.
`parse_schedule` turns whatever is stored into a `WorkingSchedule` and never
raises: anything unusable becomes the unconfigured schedule, which every
consumer reads as "no availability".
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, FrozenSet, Iterable

from .intervals import is_valid_time, time_to_minutes

DEFAULT_START_TIME = "10:00"
DEFAULT_END_TIME = "18:00"


@dataclass(frozen=True)
class WorkingSchedule:
    """
    Normalized working hours.

    Weekdays use 0 = Sunday ... 6 = Saturday. An empty `working_days` set is
    the unconfigured variant.
    """

    working_days: FrozenSet[int] = field(default_factory=frozenset)
    start_time: str = DEFAULT_START_TIME
    end_time: str = DEFAULT_END_TIME

    @property
    def is_configured(self) -> bool:
        return bool(self.working_days) and self.end_minutes > self.start_minutes

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    def is_working_day(self, day: date) -> bool:
        return self.is_configured and weekday_index(day) in self.working_days

    def to_dict(self) -> dict:
        return {
            "workingDays": sorted(self.working_days),
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


UNCONFIGURED = WorkingSchedule()


def weekday_index(day: date) -> int:
    """Weekday with Sunday as 0, matching the stored schedule format."""
    return day.isoweekday() % 7


def normalize_working_days(days: Iterable[Any]) -> list[int]:
    """Keep integer weekdays 0..6, deduplicated and sorted."""
    normalized = set()
    for day in days:
        if isinstance(day, bool):
            continue
        try:
            number = float(day)
        except (TypeError, ValueError, OverflowError):
            continue
        if number.is_integer() and 0 <= number <= 6:
            normalized.add(int(number))
    return sorted(normalized)


def parse_schedule(raw: Any) -> WorkingSchedule:
    """Parse the stored schedule blob. Never raises."""
    if not isinstance(raw, dict):
        return UNCONFIGURED

    start_time = raw.get("startTime")
    end_time = raw.get("endTime")
    if not is_valid_time(start_time) or not is_valid_time(end_time):
        return UNCONFIGURED
    if time_to_minutes(end_time) <= time_to_minutes(start_time):
        return UNCONFIGURED

    days = raw.get("workingDays")
    if not isinstance(days, (list, tuple)):
        return UNCONFIGURED

    working_days = normalize_working_days(days)
    if not working_days:
        return UNCONFIGURED

    return WorkingSchedule(
        working_days=frozenset(working_days),
        start_time=start_time,
        end_time=end_time,
    )
