"""calendarbot_recur - lazy recurrence expansion for CalendarBot.

Generates the occurrences of recurring calendar components (RRULE, RDATE, EXRULE,
EXDATE) in ascending order without materializing the full series. The icalendar
bridge lives in ``calendarbot_recur.recur_ics`` and is not imported here.
"""

__version__ = "0.1.0"

from typing import Optional

from .compound_iterator import CompoundIterator
from .recur_config import RecurrenceConfig, load_config
from .recur_exceptions import (
    ExhaustedError,
    IcsAdapterError,
    MalformedRuleError,
    RecurrenceError,
    UnsupportedOperationError,
)
from .recur_factory import (
    create_date_list_iterator,
    create_recurrence_iterator,
    create_rule_iterator,
    except_,
    first_on_or_after,
    join,
    occurrences_between,
    occurs_on,
    take,
)
from .recur_iterator import DateListIterator, RecurrenceIterator, ZonedIterator
from .recur_models import ByDay, Frequency, RecurrenceRule, Weekday
from .recur_values import FLOATING, UTC, DateOnly, DateTimeValue, DateValue, Zone, ZoneKind
from .rule_generator import RuleIterator

__all__ = [
    "FLOATING",
    "UTC",
    "ByDay",
    "CompoundIterator",
    "DateListIterator",
    "DateOnly",
    "DateTimeValue",
    "DateValue",
    "ExhaustedError",
    "Frequency",
    "IcsAdapterError",
    "MalformedRuleError",
    "RecurrenceConfig",
    "RecurrenceError",
    "RecurrenceIterator",
    "RecurrenceRule",
    "RuleIterator",
    "UnsupportedOperationError",
    "Weekday",
    "Zone",
    "ZonedIterator",
    "ZoneKind",
    "create_date_list_iterator",
    "create_recurrence_iterator",
    "create_rule_iterator",
    "except_",
    "first_on_or_after",
    "join",
    "load_config",
    "occurrences_between",
    "occurs_on",
    "take",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors CALENDARBOT_DEBUG (truthy values: "1", "true", "yes", "on"), which forces
    DEBUG verbosity regardless of the requested level.
    """
    import logging
    import os
    import sys

    debug_env = os.environ.get("CALENDARBOT_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure basic handler if no handlers are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%H:%M:%S"))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    logging.getLogger(__name__).debug("Logging initialized at level %s", logging.getLevelName(level))
