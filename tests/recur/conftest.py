import logging
from collections.abc import Generator
from types import SimpleNamespace
from typing import Any

import pytest

from calendarbot_recur.recur_logging import QUIET_LOGGERS, RECUR_MODULES
from calendarbot_recur.recur_values import UTC, DateTimeValue


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Lightweight settings object accepted by RecurrenceConfig.from_settings()."""
    return SimpleNamespace(
        max_occurrences=50,
        empty_search_years=40,
        log_level="DEBUG",
        debug=False,
    )


@pytest.fixture
def monday_anchor() -> DateTimeValue:
    """Monday 2026-01-05 09:00 UTC, the anchor most rule tests start from."""
    return DateTimeValue(2026, 1, 5, 9, 0, 0, UTC)


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear CALENDARBOT_* variables that change config and logging defaults."""
    for name in (
        "CALENDARBOT_DEBUG",
        "CALENDARBOT_LOG_LEVEL",
        "CALENDARBOT_RECUR_MAX_OCCURRENCES",
        "CALENDARBOT_RECUR_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def restore_logger_levels() -> Generator[None, None, None]:
    """Put logger levels back so later tests see the default configuration."""
    names = ["", *RECUR_MODULES, *QUIET_LOGGERS]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


@pytest.fixture
def sample_ics_recurring() -> str:
    """
    Return an ICS calendar with recurring and non-recurring components.

    Returns:
        RFC 5545 ICS string with:
        - standup@calendarbot.test: weekly MO/WE, COUNT=4, EXDATE on the first
          Wednesday, RDATE on Saturday 2026-01-10 12:00 UTC
        - oneoff@calendarbot.test: a single event without recurrence
        - payday@calendarbot.test: all-day, last Friday of the month, COUNT=3
    """
    return "\r\n".join(
        [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//CalendarBot Test//EN",
            "BEGIN:VEVENT",
            "UID:standup@calendarbot.test",
            "DTSTAMP:20260101T000000Z",
            "DTSTART:20260105T090000Z",
            "RRULE:FREQ=WEEKLY;BYDAY=MO,WE;COUNT=4",
            "EXDATE:20260107T090000Z",
            "RDATE:20260110T120000Z",
            "SUMMARY:Standup",
            "END:VEVENT",
            "BEGIN:VEVENT",
            "UID:oneoff@calendarbot.test",
            "DTSTAMP:20260101T000000Z",
            "DTSTART:20260106T100000Z",
            "SUMMARY:One-off",
            "END:VEVENT",
            "BEGIN:VEVENT",
            "UID:payday@calendarbot.test",
            "DTSTAMP:20260101T000000Z",
            "DTSTART;VALUE=DATE:20260130",
            "RRULE:FREQ=MONTHLY;BYDAY=-1FR;COUNT=3",
            "SUMMARY:Payday",
            "END:VEVENT",
            "END:VCALENDAR",
            "",
        ]
    )
