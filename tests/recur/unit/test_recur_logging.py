"""Tests for calendarbot_recur.recur_logging module."""

import logging
import os
import pkgutil
from unittest.mock import patch

import pytest

import calendarbot_recur
from calendarbot_recur.recur_logging import RECUR_MODULES, configure_recur_logging, get_logging_status

pytestmark = pytest.mark.unit


class TestConfigureRecurLogging:
    def test_default_production_mode(self) -> None:
        configure_recur_logging()

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("calendarbot_recur").level == logging.INFO
        assert logging.getLogger("calendarbot_recur.rule_generator").level == logging.INFO
        assert logging.getLogger("icalendar").level == logging.WARNING

    def test_debug_mode(self) -> None:
        configure_recur_logging(debug_mode=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("calendarbot_recur.compound_iterator").level == logging.DEBUG
        # Third-party loggers stay quiet
        assert logging.getLogger("icalendar").level == logging.WARNING

    def test_force_debug_overrides_debug_mode(self) -> None:
        configure_recur_logging(debug_mode=False, force_debug=True)
        assert logging.getLogger("calendarbot_recur").level == logging.DEBUG

    @patch.dict(os.environ, {"CALENDARBOT_DEBUG": "1"})
    def test_env_debug_override(self) -> None:
        configure_recur_logging(debug_mode=False)
        assert logging.getLogger("calendarbot_recur").level == logging.DEBUG

    @patch.dict(os.environ, {"CALENDARBOT_DEBUG": "1"})
    def test_force_debug_false_beats_env(self) -> None:
        configure_recur_logging(force_debug=False)
        assert logging.getLogger("calendarbot_recur").level == logging.INFO

    @patch.dict(os.environ, {"CALENDARBOT_LOG_LEVEL": "WARNING"})
    def test_env_log_level_sets_root(self) -> None:
        configure_recur_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_log_level_sets_recur_and_root_levels(self) -> None:
        configure_recur_logging(log_level="warning")
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("calendarbot_recur.recur_ics").level == logging.WARNING
        assert logging.getLogger("calendarbot_recur.rule_generator").level == logging.WARNING

    def test_debug_beats_log_level(self) -> None:
        configure_recur_logging(debug_mode=True, log_level="ERROR")
        assert logging.getLogger("calendarbot_recur").level == logging.DEBUG

    def test_unknown_log_level_uses_info(self) -> None:
        configure_recur_logging(log_level="chatty")
        assert logging.getLogger("calendarbot_recur").level == logging.INFO

    def test_every_package_module_is_configured(self) -> None:
        configure_recur_logging(log_level="ERROR")
        modules = {f"calendarbot_recur.{info.name}" for info in pkgutil.iter_modules(calendarbot_recur.__path__)}
        assert set(RECUR_MODULES) == modules | {"calendarbot_recur"}
        for name in RECUR_MODULES:
            assert logging.getLogger(name).level == logging.ERROR


class TestGetLoggingStatus:
    def test_reports_levels(self) -> None:
        configure_recur_logging(debug_mode=True)
        status = get_logging_status()
        assert status["root"] == "DEBUG"
        assert status["calendarbot_recur"] == "DEBUG"
        assert status["icalendar"] == "WARNING"
        assert "dateutil" in status
