"""Unit tests for calendarbot_recur.__main__ module.

Tests cover CLI argument parsing, occurrence listing, and exit codes for bad
input.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from calendarbot_recur.__main__ import _create_parser, main
from calendarbot_recur.recur_values import DateOnly, DateTimeValue

pytestmark = pytest.mark.unit


@pytest.fixture
def ics_path(tmp_path: Path, sample_ics_recurring: str, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Sample calendar on disk, with the working directory moved away from any config file."""
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "sample.ics"
    path.write_text(sample_ics_recurring, encoding="utf-8")
    return path


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestCreateParser:
    def test_create_parser_when_called_then_returns_parser(self) -> None:
        parser = _create_parser()
        assert parser.prog == "calendarbot_recur"
        assert "CalendarBot Recur" in parser.description

    def test_create_parser_when_after_is_date_then_parses_date_only(self) -> None:
        args = _create_parser().parse_args(["cal.ics", "--after", "2026-03-01"])
        assert args.after == DateOnly(2026, 3, 1)
        assert isinstance(args.after, DateOnly)

    def test_create_parser_when_after_is_datetime_then_parses_instant(self) -> None:
        args = _create_parser().parse_args(["cal.ics", "--after", "2026-03-01T10:30:00Z"])
        assert isinstance(args.after, DateTimeValue)
        assert args.after.isoformat() == "2026-03-01T10:30:00Z"

    def test_create_parser_when_after_invalid_then_exits(self) -> None:
        with pytest.raises(SystemExit):
            _create_parser().parse_args(["cal.ics", "--after", "next tuesday"])

    def test_create_parser_defaults(self) -> None:
        args = _create_parser().parse_args(["cal.ics"])
        assert args.uid is None
        assert args.after is None
        assert args.limit is None
        assert args.debug is False


class TestMain:
    def test_main_lists_occurrences_grouped_by_uid(self, ics_path: Path, capsys: pytest.CaptureFixture) -> None:
        assert _run([str(ics_path), "--limit", "2"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            "standup@calendarbot.test",
            "  2026-01-05T09:00:00Z",
            "  2026-01-10T12:00:00Z",
            "payday@calendarbot.test",
            "  2026-01-30",
            "  2026-02-27",
        ]

    def test_main_uid_and_after_filters(self, ics_path: Path, capsys: pytest.CaptureFixture) -> None:
        argv = [str(ics_path), "--uid", "standup@calendarbot.test", "--after", "2026-01-11"]
        assert _run(argv) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == ["standup@calendarbot.test", "  2026-01-12T09:00:00Z", "  2026-01-14T09:00:00Z"]

    def test_main_after_series_end_prints_uid_only(self, ics_path: Path, capsys: pytest.CaptureFixture) -> None:
        argv = [str(ics_path), "--uid", "payday@calendarbot.test", "--after", "2027-01-01"]
        assert _run(argv) == 0
        assert capsys.readouterr().out.splitlines() == ["payday@calendarbot.test"]

    def test_main_config_file_limits_output(self, ics_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        config_path = tmp_path / "recur.yaml"
        config_path.write_text("max_occurrences: 1\n", encoding="utf-8")
        assert _run([str(ics_path), "--config", str(config_path)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == ["standup@calendarbot.test", "  2026-01-05T09:00:00Z", "payday@calendarbot.test", "  2026-01-30"]

    def test_main_applies_config_log_level(self, ics_path: Path, tmp_path: Path) -> None:
        config_path = tmp_path / "recur.yaml"
        config_path.write_text("log_level: error\n", encoding="utf-8")
        assert _run([str(ics_path), "--config", str(config_path), "--limit", "1"]) == 0
        assert logging.getLogger("calendarbot_recur").level == logging.ERROR
        assert logging.getLogger("calendarbot_recur.rule_generator").level == logging.ERROR

    def test_main_unknown_uid_exits_one(self, ics_path: Path) -> None:
        assert _run([str(ics_path), "--uid", "missing@calendarbot.test"]) == 1

    def test_main_missing_file_exits_one(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert _run([str(tmp_path / "absent.ics")]) == 1

    def test_main_malformed_rule_exits_one(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "bad.ics"
        path.write_text(
            "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//CalendarBot Test//EN\r\n"
            "BEGIN:VEVENT\r\nUID:bad@calendarbot.test\r\nDTSTART:20260105T090000Z\r\n"
            "RRULE:FREQ=WEEKLY;BYMONTHDAY=1\r\nEND:VEVENT\r\nEND:VCALENDAR\r\n",
            encoding="utf-8",
        )
        assert _run([str(path)]) == 1

    def test_main_invalid_limit_exits_one(self, ics_path: Path) -> None:
        assert _run([str(ics_path), "--limit", "0"]) == 1

    def test_main_bad_config_exits_one(self, ics_path: Path, tmp_path: Path) -> None:
        config_path = tmp_path / "recur.yaml"
        config_path.write_text("- not\n- a mapping\n", encoding="utf-8")
        assert _run([str(ics_path), "--config", str(config_path)]) == 1
