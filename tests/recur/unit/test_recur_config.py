"""Unit tests for calendarbot_recur.recur_config."""

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from calendarbot_recur.recur_config import (
    DEFAULT_EMPTY_SEARCH_YEARS,
    DEFAULT_MAX_OCCURRENCES,
    RecurrenceConfig,
    load_config,
)

pytestmark = pytest.mark.unit


class TestRecurrenceConfig:
    def test_defaults(self) -> None:
        config = RecurrenceConfig()
        assert config.max_occurrences == DEFAULT_MAX_OCCURRENCES == 250
        assert config.empty_search_years == DEFAULT_EMPTY_SEARCH_YEARS == 400
        assert config.log_level == "INFO"
        assert config.debug is False

    def test_from_settings_reads_attributes(self, simple_settings: SimpleNamespace) -> None:
        config = RecurrenceConfig.from_settings(simple_settings)
        assert config.max_occurrences == 50
        assert config.empty_search_years == 40
        assert config.log_level == "DEBUG"

    def test_from_settings_none_returns_defaults(self) -> None:
        assert RecurrenceConfig.from_settings(None) == RecurrenceConfig()

    def test_from_settings_missing_attributes_use_defaults(self) -> None:
        config = RecurrenceConfig.from_settings(SimpleNamespace(max_occurrences=10))
        assert config.max_occurrences == 10
        assert config.empty_search_years == DEFAULT_EMPTY_SEARCH_YEARS

    @pytest.mark.parametrize(
        "raw,expected",
        [("25", 25), (0, 1), (-5, 1), (10**9, 100_000), ("many", DEFAULT_MAX_OCCURRENCES), (None, DEFAULT_MAX_OCCURRENCES)],
    )
    def test_from_dict_coerces_max_occurrences(self, raw: Any, expected: int) -> None:
        assert RecurrenceConfig.from_dict({"max_occurrences": raw}).max_occurrences == expected

    def test_from_dict_clamps_search_years(self) -> None:
        assert RecurrenceConfig.from_dict({"empty_search_years": 50_000}).empty_search_years == 10_000

    def test_from_dict_unknown_log_level_falls_back_to_info(self) -> None:
        assert RecurrenceConfig.from_dict({"log_level": "chatty"}).log_level == "INFO"
        assert RecurrenceConfig.from_dict({"log_level": "warning"}).log_level == "WARNING"

    @pytest.mark.parametrize("raw,expected", [("true", True), ("yes", True), ("0", False), (1, True), (None, False)])
    def test_from_dict_debug_flag(self, raw: Any, expected: bool) -> None:
        assert RecurrenceConfig.from_dict({"debug": raw}).debug is expected

    def test_from_dict_logs_warning_on_coercion(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING", logger="calendarbot_recur.recur_config"):
            RecurrenceConfig.from_dict({"max_occurrences": 0})
        assert "below minimum" in caplog.text

    def test_with_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CALENDARBOT_RECUR_MAX_OCCURRENCES", "12")
        monkeypatch.setenv("CALENDARBOT_RECUR_LOG_LEVEL", "error")
        monkeypatch.setenv("CALENDARBOT_DEBUG", "1")
        config = RecurrenceConfig().with_env_overrides()
        assert config.max_occurrences == 12
        assert config.log_level == "ERROR"
        assert config.debug is True


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        assert load_config(str(tmp_path / "absent.yaml")) == RecurrenceConfig()

    def test_default_path_is_working_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "calendarbot_recur.yaml").write_text("max_occurrences: 33\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert load_config().max_occurrences == 33

    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "recur.yaml"
        path.write_text("max_occurrences: 20\nempty_search_years: 8\nlog_level: debug\ndebug: true\n", encoding="utf-8")
        assert load_config(str(path)) == RecurrenceConfig(
            max_occurrences=20, empty_search_years=8, log_level="DEBUG", debug=True
        )

    def test_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "recur.json"
        path.write_text(json.dumps({"max_occurrences": 99}), encoding="utf-8")
        assert load_config(str(path)).max_occurrences == 99

    def test_empty_yaml_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "recur.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == RecurrenceConfig()

    def test_non_mapping_raises_value_error(self, tmp_path: Path) -> None:
        path = tmp_path / "recur.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_env_overrides_file_values(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "recur.yaml"
        path.write_text("max_occurrences: 20\n", encoding="utf-8")
        monkeypatch.setenv("CALENDARBOT_RECUR_MAX_OCCURRENCES", "5")
        assert load_config(str(path)).max_occurrences == 5
