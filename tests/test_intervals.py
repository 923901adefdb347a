import math

import pytest

from slotbook.domain.scheduling.intervals import (
    clamp_duration,
    is_valid_time,
    minutes_to_time,
    overlaps,
    time_to_minutes,
)


@pytest.mark.parametrize(
    "value, minutes",
    [("00:00", 0), ("09:30", 570), ("12:00", 720), ("23:59", 1439)],
)
def test_time_to_minutes(value, minutes):
    assert time_to_minutes(value) == minutes
    assert minutes_to_time(minutes) == value


def test_minutes_to_time_is_zero_padded():
    assert minutes_to_time(65) == "01:05"


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "", None, "12-00", 900])
def test_is_valid_time_rejects_malformed(value):
    assert not is_valid_time(value)


def test_overlaps_is_half_open():
    # 09:00-10:00 and 10:00-11:00 only touch
    assert not overlaps(540, 600, 600, 660)
    assert not overlaps(600, 660, 540, 600)
    assert overlaps(570, 630, 600, 660)
    assert overlaps(600, 660, 600, 660)
    # containment
    assert overlaps(540, 720, 600, 630)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, 60),
        (math.nan, 60),
        (math.inf, 60),
        ("abc", 60),
        (True, 60),
        (0, 15),
        (-30, 15),
        (5, 15),
        (45, 45),
        (90.7, 90),
        (240, 240),
        (24 * 60, 240),
        (10**400, 240),
        (-10**400, 15),
    ],
)
def test_clamp_duration(value, expected):
    assert clamp_duration(value) == expected
