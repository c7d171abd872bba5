"""Merge of inclusion and exclusion sources into one occurrence stream.

CompoundIterator combines any number of inclusion sources (rule generators,
RDATE lists) with exclusion sources (EXRULE generators, EXDATE lists). Output is
ascending and duplicate-free, and a value produced by any exclusion never
appears, however many inclusions produce it.

Sources live in an arena (a plain list); the priority queue holds
``(comparable, arena_index)`` tuples, so reattaching a source after it moves is
just a heap push of its new head.
"""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional, cast

from .recur_exceptions import ExhaustedError
from .recur_iterator import RecurrenceIterator
from .recur_values import DateValue

logger = logging.getLogger(__name__)


@dataclass
class SourceElement:
    """One source in the merge, with its cached head and comparable projection."""

    inclusion: bool
    iterator: RecurrenceIterator
    head: Optional[DateValue] = field(default=None)
    comparable: int = 0

    def shift(self) -> bool:
        """Discard the current head and pull the next one; False when exhausted."""
        if not self.iterator.has_next():
            self.head = None
            return False
        self.head = self.iterator.next()
        self.comparable = self.head.comparable()
        return True

    def advance_to(self, target: DateValue) -> None:
        self.iterator.advance_to(target)

    def __str__(self) -> str:
        return f"[{self.head}, {'inclusion' if self.inclusion else 'exclusion'}]"


class CompoundIterator(RecurrenceIterator):
    """Generates values produced by inclusions and not produced by any exclusion.

    Args:
        inclusions: iterators whose values appear unless excluded
        exclusions: iterators whose values must never appear
    """

    def __init__(
        self,
        inclusions: Iterable[RecurrenceIterator],
        exclusions: Iterable[RecurrenceIterator] = (),
    ):
        self._arena: list[SourceElement] = []
        self._queue: list[tuple[int, int]] = []
        self._pending: Optional[int] = None
        self._inclusions_remaining = 0

        for iterator in inclusions:
            self._add(SourceElement(True, iterator))
        for iterator in exclusions:
            self._add(SourceElement(False, iterator))

        logger.debug(
            "CompoundIterator initialized: %d live inclusions, %d queued sources",
            self._inclusions_remaining,
            len(self._queue),
        )

    def _add(self, element: SourceElement) -> None:
        index = len(self._arena)
        self._arena.append(element)
        if element.shift():
            heapq.heappush(self._queue, (element.comparable, index))
            if element.inclusion:
                self._inclusions_remaining += 1

    def _pop(self) -> int:
        return heapq.heappop(self._queue)[1]

    def _peek_comparable(self) -> int:
        return self._queue[0][0]

    def _reattach(self, index: int) -> None:
        """Pull the source's next value and requeue it, or retire it when exhausted."""
        element = self._arena[index]
        if element.shift():
            heapq.heappush(self._queue, (element.comparable, index))
        elif element.inclusion:
            self._inclusions_remaining -= 1
            # With no live inclusions the remaining exclusions have nothing to exclude
            if self._inclusions_remaining == 0:
                self._queue.clear()

    def _require_pending(self) -> None:
        """Find the next inclusion value not matched by any exclusion, collapsing duplicates."""
        if self._pending is not None:
            return

        exclusion_comparable: Optional[int] = None
        while self._inclusions_remaining and self._queue:
            inclusion: Optional[int] = None
            while self._queue:
                candidate = self._pop()
                element = self._arena[candidate]
                if element.inclusion:
                    if element.comparable != exclusion_comparable:
                        inclusion = candidate
                        break
                else:
                    exclusion_comparable = element.comparable
                self._reattach(candidate)
                if not self._inclusions_remaining:
                    return
            if inclusion is None:
                return

            inclusion_comparable = self._arena[inclusion].comparable
            excluded = exclusion_comparable == inclusion_comparable
            while self._queue and self._peek_comparable() == inclusion_comparable:
                match = self._pop()
                excluded |= not self._arena[match].inclusion
                self._reattach(match)
                if not self._inclusions_remaining:
                    return
            if not excluded:
                self._pending = inclusion
                return
            logger.debug("CompoundIterator excluded %s", self._arena[inclusion].head)
            self._reattach(inclusion)

    def has_next(self) -> bool:
        self._require_pending()
        return self._pending is not None

    def next(self) -> DateValue:
        self._require_pending()
        if self._pending is None:
            raise ExhaustedError("CompoundIterator has no remaining occurrences")
        index = self._pending
        head = cast(DateValue, self._arena[index].head)
        self._pending = None
        self._reattach(index)
        return head

    def advance_to(self, target: DateValue) -> None:
        target_comparable = target.comparable()
        if self._pending is not None:
            pending = self._arena[self._pending]
            if pending.comparable >= target_comparable:
                return
            pending.advance_to(target)
            index = self._pending
            self._pending = None
            self._reattach(index)

        # Advance only the sources whose heads are behind target
        while self._inclusions_remaining and self._queue and self._peek_comparable() < target_comparable:
            index = self._pop()
            self._arena[index].advance_to(target)
            self._reattach(index)
