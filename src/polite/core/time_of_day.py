"""Time-of-day and weekday value types (core domain)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from enum import IntEnum

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """Minutes since local midnight, ignoring the date."""

    minutes: int

    def __post_init__(self) -> None:
        if not 0 <= self.minutes < MINUTES_PER_DAY:
            raise ValueError(f"TimeOfDay minutes out of range: {self.minutes}")

    @classmethod
    def of(cls, hour: int, minute: int = 0) -> "TimeOfDay":
        if not 0 <= hour < 24 or not 0 <= minute < MINUTES_PER_HOUR:
            raise ValueError(f"Invalid time of day: {hour}:{minute}")
        return cls(hour * MINUTES_PER_HOUR + minute)

    @classmethod
    def from_time(cls, value: time) -> "TimeOfDay":
        return cls.of(value.hour, value.minute)

    @classmethod
    def parse(cls, text: str) -> "TimeOfDay":
        """Parse an ``HH:MM`` string."""

        hour_part, sep, minute_part = text.strip().partition(":")
        if not sep or not hour_part.isdigit() or not minute_part.isdigit():
            raise ValueError(f"Expected HH:MM, got {text!r}")
        return cls.of(int(hour_part), int(minute_part))

    @property
    def hour(self) -> int:
        return self.minutes // MINUTES_PER_HOUR

    @property
    def minute(self) -> int:
        return self.minutes % MINUTES_PER_HOUR

    def plus_minutes(self, delta: int) -> "TimeOfDay":
        """Return this time shifted by ``delta`` minutes, wrapping at midnight."""

        return TimeOfDay((self.minutes + delta) % MINUTES_PER_DAY)

    def minutes_until(self, other: "TimeOfDay") -> int:
        """Forward distance to ``other``, crossing midnight when needed."""

        return (other.minutes - self.minutes) % MINUTES_PER_DAY

    def __sub__(self, other: "TimeOfDay") -> int:
        return self.minutes - other.minutes

    def to_time(self) -> time:
        return time(self.hour, self.minute)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


class Weekday(IntEnum):
    """Day of week numbered like ``datetime.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    def previous(self) -> "Weekday":
        return Weekday((self - 1) % 7)

    @property
    def short_name(self) -> str:
        return self.name[:3].title()

    @classmethod
    def parse(cls, text: str) -> "Weekday":
        """Parse a full or three-letter day name, case-insensitively."""

        lowered = text.strip().lower()
        for day in cls:
            if lowered in (day.name.lower(), day.name[:3].lower()):
                return day
        raise ValueError(f"Unknown weekday: {text!r}")


WEEKDAYS = frozenset({Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY})
WEEKEND = frozenset({Weekday.SATURDAY, Weekday.SUNDAY})


@dataclass(frozen=True)
class Moment:
    """A query instant expressed as local weekday and time of day."""

    weekday: Weekday
    time_of_day: TimeOfDay

    @classmethod
    def from_datetime(cls, value: datetime) -> "Moment":
        return cls(Weekday(value.weekday()), TimeOfDay.of(value.hour, value.minute))
