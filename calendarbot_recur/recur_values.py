"""Immutable date and date-time values for recurrence processing.

Occurrences, anchors, UNTIL bounds and explicit RDATE/EXDATE entries are all
represented as DateValue instances. Every DateValue has a *comparable projection*:
a single integer derived from its UTC-normalized instant which gives a total order
over dates and date-times alike.

Projection layout (17 low bits hold the time of day, 86400 < 2**17):

- DateOnly:      ordinal(date) << 17
- DateTimeValue: (ordinal(utc_date) << 17) + seconds_of_day(utc) + 1

The ``+ 1`` keeps a date-time at midnight distinct from (and after) the date-only
value for the same day, so an all-day EXDATE never matches a timed occurrence.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Optional, Union

DATE_SHIFT = 17
_MAX_OFFSET_MINUTES = 18 * 60


class ZoneKind(str, Enum):
    """How a date-time's wall clock relates to UTC."""

    UTC = "utc"
    FIXED = "fixed"
    FLOATING = "floating"


@dataclass(frozen=True)
class Zone:
    """A resolved zone: UTC, a fixed UTC offset in minutes, or floating local time."""

    kind: ZoneKind
    offset_minutes: int = 0

    def __post_init__(self) -> None:
        if self.kind != ZoneKind.FIXED and self.offset_minutes != 0:
            raise ValueError(f"{self.kind.value} zone cannot carry an offset")
        if abs(self.offset_minutes) > _MAX_OFFSET_MINUTES:
            raise ValueError(f"UTC offset out of range: {self.offset_minutes} minutes")

    @classmethod
    def fixed(cls, minutes: int) -> Zone:
        """Zone for a fixed offset east of UTC."""
        return cls(ZoneKind.FIXED, minutes)

    def to_tzinfo(self) -> Optional[tzinfo]:
        """Python tzinfo for this zone (None for floating)."""
        if self.kind == ZoneKind.UTC:
            return timezone.utc
        if self.kind == ZoneKind.FIXED:
            return timezone(timedelta(minutes=self.offset_minutes))
        return None

    def suffix(self) -> str:
        if self.kind == ZoneKind.UTC:
            return "Z"
        if self.kind == ZoneKind.FIXED:
            sign = "+" if self.offset_minutes >= 0 else "-"
            hours, minutes = divmod(abs(self.offset_minutes), 60)
            return f"{sign}{hours:02d}:{minutes:02d}"
        return ""


UTC = Zone(ZoneKind.UTC)
FLOATING = Zone(ZoneKind.FLOATING)


@functools.total_ordering
class DateValue:
    """Base class for DateOnly and DateTimeValue.

    Equality, hashing and ordering all go through comparable(), so values in
    different zones compare by the instant they denote.
    """

    __slots__ = ()

    year: int
    month: int
    day: int

    def comparable(self) -> int:
        raise NotImplementedError

    def to_date(self) -> date:
        """Calendar date of the value in its own zone (not UTC-normalized)."""
        return date(self.year, self.month, self.day)

    def utc_naive(self) -> datetime:
        """Naive datetime of the UTC instant; date-only values become midnight."""
        raise NotImplementedError

    def to_python(self) -> Union[date, datetime]:
        raise NotImplementedError

    def isoformat(self) -> str:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DateValue):
            return NotImplemented
        return self.comparable() == other.comparable()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DateValue):
            return NotImplemented
        return self.comparable() < other.comparable()

    def __hash__(self) -> int:
        return hash(self.comparable())

    def __str__(self) -> str:
        return self.isoformat()

    @staticmethod
    def from_python(value: Union[date, datetime]) -> DateValue:
        """Convert a Python date or datetime to a DateValue.

        Naive datetimes become floating values. Aware datetimes with a zero offset
        become UTC, any other offset becomes a fixed-offset zone resolved at that
        instant. Microseconds are truncated.

        Raises:
            TypeError: If value is neither a date nor a datetime
        """
        if isinstance(value, datetime):
            return DateTimeValue.from_datetime(value)
        if isinstance(value, date):
            return DateOnly(value.year, value.month, value.day)
        raise TypeError(f"Cannot convert {type(value).__name__} to DateValue")


@dataclass(frozen=True, eq=False, repr=True)
class DateOnly(DateValue):
    """A calendar date without a time component."""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        # date() enforces month range and leap-aware day range
        date(self.year, self.month, self.day)

    def comparable(self) -> int:
        return self.to_date().toordinal() << DATE_SHIFT

    def utc_naive(self) -> datetime:
        return datetime(self.year, self.month, self.day)

    def to_python(self) -> date:
        return self.to_date()

    def isoformat(self) -> str:
        return self.to_date().isoformat()


@dataclass(frozen=True, eq=False, repr=True)
class DateTimeValue(DateValue):
    """A date with a time of day in a UTC, fixed-offset or floating zone."""

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0
    zone: Zone = field(default=FLOATING)

    def __post_init__(self) -> None:
        datetime(self.year, self.month, self.day, self.hour, self.minute, self.second)

    @classmethod
    def from_naive(cls, wall: datetime, zone: Zone) -> DateTimeValue:
        """Build a value from a naive wall-clock datetime interpreted in zone."""
        return cls(wall.year, wall.month, wall.day, wall.hour, wall.minute, wall.second, zone)

    @classmethod
    def from_datetime(cls, value: datetime) -> DateTimeValue:
        offset = value.utcoffset()
        if value.tzinfo is None or offset is None:
            zone = FLOATING
        elif offset == timedelta(0):
            zone = UTC
        else:
            zone = Zone.fixed(int(offset.total_seconds()) // 60)
        return cls.from_naive(value.replace(tzinfo=None), zone)

    def wall_clock(self) -> datetime:
        """Naive datetime of the wall-clock reading in this value's own zone."""
        return datetime(self.year, self.month, self.day, self.hour, self.minute, self.second)

    def utc_naive(self) -> datetime:
        return self.wall_clock() - timedelta(minutes=self.zone.offset_minutes)

    def comparable(self) -> int:
        utc = self.utc_naive()
        seconds = utc.hour * 3600 + utc.minute * 60 + utc.second
        return (utc.toordinal() << DATE_SHIFT) + seconds + 1

    def to_python(self) -> datetime:
        return self.wall_clock().replace(tzinfo=self.zone.to_tzinfo())

    def isoformat(self) -> str:
        return self.wall_clock().isoformat() + self.zone.suffix()


def to_wall_clock(value: DateValue, tz: tzinfo) -> DateValue:
    """Express an anchored date-time as floating wall-clock time in tz.

    Dates and floating date-times are returned unchanged.
    """
    if isinstance(value, DateTimeValue) and value.zone.kind != ZoneKind.FLOATING:
        wall = value.to_python().astimezone(tz).replace(tzinfo=None)
        return DateTimeValue.from_naive(wall, FLOATING)
    return value


def from_wall_clock(value: DateValue, tz: tzinfo) -> DateValue:
    """Attach tz to a floating date-time, resolving the UTC offset at that instant.

    Wall-clock times inside a daylight-saving gap take the offset in force before
    the gap. Dates and anchored date-times are returned unchanged.
    """
    if isinstance(value, DateTimeValue) and value.zone.kind == ZoneKind.FLOATING:
        return DateTimeValue.from_datetime(value.wall_clock().replace(tzinfo=tz))
    return value
