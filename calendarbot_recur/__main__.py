"""Command-line entry for calendarbot_recur.

Lists the occurrences of every recurring component in an .ics file:

    python -m calendarbot_recur calendar.ics --after 2026-01-01 --limit 10
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from typing import NoReturn, Optional

import yaml
from dateutil import parser as date_parser

from . import _init_logging
from .recur_config import RecurrenceConfig, load_config
from .recur_exceptions import RecurrenceError
from .recur_factory import first_on_or_after, take
from .recur_ics import iter_recurring_components, iterator_from_component, load_calendar
from .recur_logging import configure_recur_logging
from .recur_values import DateOnly, DateValue

logger = logging.getLogger(__name__)


def _parse_after(text: str) -> DateValue:
    """Parse --after: YYYY-MM-DD gives a date, anything longer an ISO date-time."""
    try:
        if len(text) == 10:
            return DateOnly.from_python(date.fromisoformat(text))
        return DateValue.from_python(date_parser.isoparse(text))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date or date-time: {text!r}") from e


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for calendarbot_recur CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="calendarbot_recur",
        description="CalendarBot Recur - list occurrences of recurring calendar events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m calendarbot_recur work.ics                          # First occurrences of every series
  python -m calendarbot_recur work.ics --uid standup@example    # One series only
  python -m calendarbot_recur work.ics --after 2026-03-01 -n 5  # Next five from March
        """,
    )
    parser.add_argument("ics_file", metavar="FILE.ics", help="iCalendar file to read")
    parser.add_argument("--uid", help="Only list the component with this UID")
    parser.add_argument(
        "--after",
        type=_parse_after,
        metavar="DATE",
        help="Start listing at the first occurrence on or after DATE (ISO date or date-time)",
    )
    parser.add_argument(
        "-n",
        "--limit",
        type=int,
        metavar="N",
        help="Occurrences per component (default: max_occurrences from config)",
    )
    parser.add_argument("--config", metavar="PATH", help="YAML/JSON configuration file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _list_occurrences(args: argparse.Namespace, config: RecurrenceConfig) -> int:
    calendar = load_calendar(args.ics_file)
    limit = args.limit if args.limit is not None else config.max_occurrences
    found = False

    for uid, component in iter_recurring_components(calendar):
        if args.uid and uid != args.uid:
            continue
        found = True
        iterator = iterator_from_component(component, config)
        occurrences = []
        if args.after is not None:
            first: Optional[DateValue] = first_on_or_after(iterator, args.after)
            if first is not None:
                occurrences.append(first)
        if args.after is None or occurrences:
            occurrences.extend(take(iterator, limit - len(occurrences)))

        print(uid)
        for value in occurrences:
            print(f"  {value.isoformat()}")

    if args.uid and not found:
        logger.error("No recurring component with UID %s in %s", args.uid, args.ics_file)
        return 1
    return 0


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the calendarbot_recur CLI and exit with its status."""
    args = _create_parser().parse_args(argv)

    _init_logging("DEBUG" if args.debug else None)
    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Could not load configuration: %s", e)
        sys.exit(1)
    configure_recur_logging(debug_mode=args.debug or config.debug, log_level=config.log_level)

    if args.limit is not None and args.limit < 1:
        logger.error("--limit must be at least 1")
        sys.exit(1)

    try:
        status = _list_occurrences(args, config)
    except (OSError, ValueError, RecurrenceError) as e:
        logger.error("Failed to expand %s: %s", args.ics_file, e)
        sys.exit(1)
    sys.exit(status)


if __name__ == "__main__":
    main()
