"""
Shared helpers for the test suite.
"""

import pendulum
import pytest

from commontime.domain.models import TimeInterval, WorkingHours

TZ = "Europe/Berlin"

MONDAY = pendulum.date(2024, 11, 25)
TUESDAY = pendulum.date(2024, 11, 26)
WEDNESDAY = pendulum.date(2024, 11, 27)


def hm(value: str) -> int:
    """Minutes since midnight for 'HH:MM'."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def interval(start: str, end: str) -> TimeInterval:
    return TimeInterval(start=hm(start), end=hm(end))


def moment(day, value: str):
    hours, minutes = value.split(":")
    return pendulum.datetime(day.year, day.month, day.day, int(hours), int(minutes), tz=TZ)


@pytest.fixture
def working_hours() -> WorkingHours:
    return WorkingHours.from_hours(9, 18, timezone=TZ)
