"""Single-source iterator contract and explicit date-list iterator.

Every source of occurrences - a rule generator, an RDATE/EXDATE list, or a
compound of other sources - implements RecurrenceIterator: forward-only,
ascending, possibly infinite, with an in-place advance_to() skip.
"""

from __future__ import annotations

import bisect
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from datetime import tzinfo
from typing import Optional

from .recur_exceptions import ExhaustedError, UnsupportedOperationError
from .recur_values import DateValue, from_wall_clock, to_wall_clock

logger = logging.getLogger(__name__)


class RecurrenceIterator(ABC):
    """Forward-only ascending iterator over DateValues.

    Subclasses implement has_next(), next() and advance_to(). Python iteration is
    layered on top so iterators can be used in for-loops and itertools helpers.
    """

    @abstractmethod
    def has_next(self) -> bool:
        """Whether next() will return a value."""

    @abstractmethod
    def next(self) -> DateValue:
        """Return the next value.

        Raises:
            ExhaustedError: If no values remain
        """

    @abstractmethod
    def advance_to(self, target: DateValue) -> None:
        """Skip values before target so the next value is the first one >= target.

        A no-op when the next value is already >= target.
        """

    def remove(self) -> None:
        """Iterators are read-only views of a recurrence."""
        raise UnsupportedOperationError(f"{type(self).__name__} does not support remove()")

    def __iter__(self) -> Iterator[DateValue]:
        return self

    def __next__(self) -> DateValue:
        if not self.has_next():
            raise StopIteration
        return self.next()


class DateListIterator(RecurrenceIterator):
    """Iterates an explicit collection of dates (RDATE or EXDATE values).

    Input order does not matter: values are sorted by their comparable projection
    and duplicates are dropped at construction.
    """

    def __init__(self, values: Iterable[DateValue]):
        unique = {value.comparable(): value for value in values}
        self._keys = sorted(unique)
        self._values = [unique[key] for key in self._keys]
        self._index = 0
        logger.debug("DateListIterator initialized with %d values", len(self._values))

    def __len__(self) -> int:
        return len(self._values) - self._index

    def has_next(self) -> bool:
        return self._index < len(self._values)

    def next(self) -> DateValue:
        if self._index >= len(self._values):
            raise ExhaustedError("DateListIterator has no remaining values")
        value = self._values[self._index]
        self._index += 1
        return value

    def advance_to(self, target: DateValue) -> None:
        position = bisect.bisect_left(self._keys, target.comparable(), lo=self._index)
        self._index = max(self._index, position)


class ZonedIterator(RecurrenceIterator):
    """Presents a floating wall-clock sequence as date-times in a named time zone.

    The source runs in the zone's local time, so a series keeps its wall-clock
    time across daylight-saving changes; every output gets the UTC offset in force
    at its own instant. A transition can map two wall-clock readings onto the same
    or a reversed instant; values not after the previous output are dropped.

    Args:
        source: iterator producing floating date-times (dates pass through)
        tz: tzinfo of the series, e.g. a zoneinfo.ZoneInfo
    """

    def __init__(self, source: RecurrenceIterator, tz: tzinfo):
        self._source = source
        self._tz = tz
        self._pending: Optional[DateValue] = None
        self._floor = 0

    def _fill(self) -> bool:
        while self._pending is None and self._source.has_next():
            value = from_wall_clock(self._source.next(), self._tz)
            if value.comparable() < self._floor:
                logger.debug("ZonedIterator dropped %s behind %s boundary", value, self._tz)
                continue
            self._pending = value
        return self._pending is not None

    def has_next(self) -> bool:
        return self._fill()

    def next(self) -> DateValue:
        if not self._fill() or self._pending is None:
            raise ExhaustedError("ZonedIterator has no remaining values")
        value = self._pending
        self._pending = None
        self._floor = value.comparable() + 1
        return value

    def advance_to(self, target: DateValue) -> None:
        target_comparable = target.comparable()
        if self._pending is not None:
            if self._pending.comparable() >= target_comparable:
                return
            self._pending = None
        self._floor = max(self._floor, target_comparable)
        self._source.advance_to(to_wall_clock(target, self._tz))
