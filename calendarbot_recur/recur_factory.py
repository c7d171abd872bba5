"""Factory functions and occurrence helpers for CalendarBot Recur.

These are the entry points the rest of an application uses: build iterators from
already-decoded rule and date values, then pull occurrences lazily or answer
range / membership questions with advance_to() instead of full expansion.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional

from .compound_iterator import CompoundIterator
from .recur_config import RecurrenceConfig
from .recur_iterator import DateListIterator, RecurrenceIterator
from .recur_models import RecurrenceRule
from .recur_values import DateValue
from .rule_generator import RuleIterator

logger = logging.getLogger(__name__)


def create_rule_iterator(
    rule: RecurrenceRule,
    anchor: DateValue,
    config: Optional[RecurrenceConfig] = None,
) -> RuleIterator:
    """Iterator over the occurrences of a single rule anchored at anchor."""
    return RuleIterator(rule, anchor, config)


def create_date_list_iterator(values: Iterable[DateValue]) -> DateListIterator:
    """Iterator over an explicit collection of dates, sorted and deduplicated."""
    return DateListIterator(values)


def join(first: RecurrenceIterator, *others: RecurrenceIterator) -> CompoundIterator:
    """Union of several iterators, ascending and without duplicates."""
    return CompoundIterator([first, *others])


def except_(included: RecurrenceIterator, excluded: RecurrenceIterator) -> CompoundIterator:
    """Values of included that excluded never produces."""
    return CompoundIterator([included], [excluded])


def create_recurrence_iterator(
    anchor: DateValue,
    rrules: Iterable[RecurrenceRule] = (),
    rdates: Iterable[DateValue] = (),
    exrules: Iterable[RecurrenceRule] = (),
    exdates: Iterable[DateValue] = (),
    config: Optional[RecurrenceConfig] = None,
) -> CompoundIterator:
    """Build the full occurrence stream of a recurring component.

    The anchor (DTSTART) is always an occurrence unless excluded. RRULE generators
    and the RDATE list are inclusions; EXRULE generators and the EXDATE list are
    exclusions.

    Args:
        anchor: the component's start
        rrules: recurrence rules
        rdates: explicit extra dates
        exrules: exception rules
        exdates: explicit exception dates
        config: optional configuration for the rule generators

    Returns:
        CompoundIterator over the component's occurrences

    Raises:
        MalformedRuleError: If a rule cannot be generated from anchor
    """
    inclusions: list[RecurrenceIterator] = [DateListIterator([anchor, *rdates])]
    inclusions.extend(RuleIterator(rule, anchor, config) for rule in rrules)

    exclusions: list[RecurrenceIterator] = [RuleIterator(rule, anchor, config) for rule in exrules]
    exdate_list = list(exdates)
    if exdate_list:
        exclusions.append(DateListIterator(exdate_list))

    logger.debug(
        "Created recurrence iterator: anchor=%s, %d inclusion sources, %d exclusion sources",
        anchor,
        len(inclusions),
        len(exclusions),
    )
    return CompoundIterator(inclusions, exclusions)


def take(iterator: RecurrenceIterator, limit: int) -> list[DateValue]:
    """Pull up to limit values from iterator."""
    values: list[DateValue] = []
    while len(values) < limit and iterator.has_next():
        values.append(iterator.next())
    return values


def first_on_or_after(iterator: RecurrenceIterator, target: DateValue) -> Optional[DateValue]:
    """First value >= target, or None when the sequence ends before target."""
    iterator.advance_to(target)
    if not iterator.has_next():
        return None
    return iterator.next()


def occurs_on(iterator: RecurrenceIterator, value: DateValue) -> bool:
    """Whether value is one of the iterator's occurrences.

    Consumes the iterator up to and including value.
    """
    found = first_on_or_after(iterator, value)
    return found is not None and found == value


def occurrences_between(
    iterator: RecurrenceIterator,
    start: DateValue,
    end: DateValue,
    limit: Optional[int] = None,
    config: Optional[RecurrenceConfig] = None,
) -> list[DateValue]:
    """Occurrences in the half-open window [start, end).

    Args:
        iterator: source of occurrences (consumed)
        start: inclusive window start
        end: exclusive window end
        limit: maximum number of values; defaults to config.max_occurrences
        config: optional configuration

    Returns:
        Ascending list of occurrences in the window
    """
    config = config or RecurrenceConfig()
    cap = limit if limit is not None else config.max_occurrences
    end_comparable = end.comparable()

    iterator.advance_to(start)
    values: list[DateValue] = []
    while iterator.has_next():
        if len(values) >= cap:
            logger.debug("occurrences_between limited to %d occurrences", cap)
            break
        value = iterator.next()
        if value.comparable() >= end_comparable:
            break
        values.append(value)
    return values
