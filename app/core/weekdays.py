# app/core/weekdays.py
"""
Day-of-week convention shared by availability templates, slot generation,
conflict checks and the public API.

Weekdays are stored as integers with 0=Sunday ... 6=Saturday. Python's
``date.weekday()`` uses 0=Monday, so every conversion goes through
``weekday_of`` below.
"""
from datetime import date
from enum import IntEnum


class Weekday(IntEnum):
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()


ALL_WEEKDAYS = tuple(Weekday)


def weekday_of(day: date) -> Weekday:
    """Weekday of a calendar date in the 0=Sunday convention"""
    return Weekday((day.weekday() + 1) % 7)


def parse_weekday(value: int) -> Weekday:
    """Validate an integer weekday; raises ValueError outside 0..6"""
    try:
        return Weekday(int(value))
    except (TypeError, ValueError):
        raise ValueError(f"day_of_week must be 0 (Sunday) through 6 (Saturday), got {value!r}")
