"""Bridge between icalendar components and the recurrence engine.

The icalendar library does all text decoding; this module only maps decoded
values (vRecur mappings, vDDDLists, DTSTART) onto RecurrenceRule / DateValue
objects and assembles the compound occurrence iterator for a component.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from typing import Any, Optional, Union

from icalendar import Calendar

from .recur_config import RecurrenceConfig
from .recur_exceptions import IcsAdapterError
from .recur_factory import create_recurrence_iterator
from .recur_iterator import RecurrenceIterator, ZonedIterator
from .recur_models import ByDay, RecurrenceRule, Weekday
from .recur_values import DateValue, to_wall_clock

logger = logging.getLogger(__name__)

RECURRING_COMPONENTS = ("VEVENT", "VTODO", "VJOURNAL")

_BY_DAY_PATTERN = re.compile(r"^([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)$")

_INT_LIST_PARTS = {
    "BYSECOND": "by_second",
    "BYMINUTE": "by_minute",
    "BYHOUR": "by_hour",
    "BYMONTHDAY": "by_month_day",
    "BYYEARDAY": "by_year_day",
    "BYWEEKNO": "by_week_no",
    "BYMONTH": "by_month",
    "BYSETPOS": "by_set_pos",
}


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _parse_by_day(value: Any) -> ByDay:
    """Map a decoded BYDAY entry such as "MO", "1MO" or "-1FR"."""
    text = str(value).strip().upper()
    match = _BY_DAY_PATTERN.match(text)
    if not match:
        raise IcsAdapterError(f"Invalid BYDAY value: {value!r}")
    ordinal = int(match.group(1)) if match.group(1) else None
    return ByDay(weekday=Weekday(match.group(2)), ordinal=ordinal)


def _single_int(name: str, values: list[Any]) -> int:
    try:
        return int(values[0])
    except (IndexError, TypeError, ValueError) as e:
        raise IcsAdapterError(f"Invalid {name} value: {values!r}") from e


def _named_zone(value: Any) -> Optional[tzinfo]:
    """The tzinfo of a date-time bound to a zone database entry, else None.

    icalendar resolves TZID parameters and the UTC suffix to zoneinfo zones; fixed
    ``datetime.timezone`` offsets are not named zones.
    """
    if isinstance(value, datetime) and value.tzinfo is not None and not isinstance(value.tzinfo, timezone):
        return value.tzinfo
    return None


def _to_date_value(value: Union[date, datetime], tz: Optional[tzinfo]) -> DateValue:
    converted = DateValue.from_python(value)
    return to_wall_clock(converted, tz) if tz is not None else converted


def rule_from_vrecur(vrecur: Mapping[str, Any], tz: Optional[tzinfo] = None) -> RecurrenceRule:
    """Convert an icalendar vRecur (or any mapping of rule parts) to a RecurrenceRule.

    Args:
        vrecur: mapping of upper-case rule part names to decoded values
        tz: zone of the series' DTSTART; UNTIL is converted to its wall clock

    Returns:
        RecurrenceRule with every standard part mapped; ``X-`` parts land in x_rules

    Raises:
        IcsAdapterError: If a part is unknown or its value cannot be interpreted
        MalformedRuleError: If the mapped values violate rule constraints
    """
    data: dict[str, Any] = {}
    x_rules: dict[str, str] = {}

    for key, raw in vrecur.items():
        name = str(key).upper()
        values = _as_list(raw)
        if name == "FREQ":
            data["frequency"] = str(values[0]).upper() if values else None
        elif name in ("INTERVAL", "COUNT"):
            data[name.lower()] = _single_int(name, values)
        elif name == "UNTIL":
            until = values[0] if values else None
            if not isinstance(until, (date, datetime)):
                raise IcsAdapterError(f"Invalid UNTIL value: {raw!r}")
            data["until"] = _to_date_value(until, tz)
        elif name == "WKST":
            data["week_start"] = str(values[0]).upper() if values else None
        elif name == "BYDAY":
            data["by_day"] = [_parse_by_day(v) for v in values]
        elif name in _INT_LIST_PARTS:
            try:
                data[_INT_LIST_PARTS[name]] = [int(v) for v in values]
            except (TypeError, ValueError) as e:
                raise IcsAdapterError(f"Invalid {name} value: {raw!r}") from e
        elif name.startswith("X-"):
            x_rules[name] = ",".join(str(v) for v in values)
        else:
            raise IcsAdapterError(f"Unsupported rule part: {name}")

    if x_rules:
        data["x_rules"] = x_rules
    return RecurrenceRule(**data)


def _collect_dates(prop: Any, tz: Optional[tzinfo] = None) -> list[DateValue]:
    """Flatten RDATE/EXDATE properties (vDDDLists, possibly repeated) into DateValues.

    PERIOD values contribute their start; DURATION-only values are skipped. With
    tz set, anchored date-times become wall-clock times in that zone.
    """
    values: list[DateValue] = []
    for entry in _as_list(prop):
        for item in getattr(entry, "dts", [entry]):
            decoded = getattr(item, "dt", item)
            if isinstance(decoded, tuple):
                decoded = decoded[0]
            if isinstance(decoded, (date, datetime)):
                values.append(_to_date_value(decoded, tz))
            else:
                logger.debug("Skipping non-date recurrence value: %r", decoded)
    return values


def iterator_from_component(
    component: Any,
    config: Optional[RecurrenceConfig] = None,
) -> RecurrenceIterator:
    """Build the occurrence iterator for an icalendar VEVENT/VTODO/VJOURNAL.

    A DTSTART bound to a named zone (TZID) is expanded in that zone's wall-clock
    time, so occurrences keep their local time across daylight-saving changes and
    RDATE/EXDATE/UNTIL values match by local time. Each output carries the UTC
    offset in force at its own instant.

    Args:
        component: icalendar component with DTSTART and optional RRULE, RDATE,
            EXRULE and EXDATE properties
        config: optional configuration for rule generation

    Returns:
        Iterator over the component's occurrences

    Raises:
        IcsAdapterError: If DTSTART is missing or a rule part cannot be mapped
        MalformedRuleError: If a rule is invalid
    """
    uid = component.get("UID", "<no-uid>")
    if "DTSTART" not in component:
        raise IcsAdapterError(f"Component {uid} has no DTSTART")
    dtstart = component.decoded("DTSTART")
    tz = _named_zone(dtstart)
    anchor = _to_date_value(dtstart, tz)

    rrules = [rule_from_vrecur(prop, tz) for prop in _as_list(component.get("RRULE"))]
    exrules = [rule_from_vrecur(prop, tz) for prop in _as_list(component.get("EXRULE"))]
    rdates = _collect_dates(component.get("RDATE"), tz)
    exdates = _collect_dates(component.get("EXDATE"), tz)

    logger.debug(
        "Component %s: %d RRULE, %d RDATE, %d EXRULE, %d EXDATE, zone=%s",
        uid,
        len(rrules),
        len(rdates),
        len(exrules),
        len(exdates),
        tz,
    )
    iterator = create_recurrence_iterator(anchor, rrules, rdates, exrules, exdates, config)
    if tz is None:
        return iterator
    return ZonedIterator(iterator, tz)


def iter_recurring_components(calendar: Calendar) -> Iterator[tuple[str, Any]]:
    """Yield (uid, component) for every component carrying RRULE or RDATE."""
    for component in calendar.walk():
        if component.name not in RECURRING_COMPONENTS:
            continue
        if "RRULE" in component or "RDATE" in component:
            yield str(component.get("UID", "")), component


def load_calendar(path: str | Path) -> Calendar:
    """Read and decode an .ics file."""
    return Calendar.from_ical(Path(path).read_bytes())
