"""calendarbot_recur.recur_config

Configuration for recurrence expansion.

- Exposes a typed dataclass `RecurrenceConfig` with explicit defaults.
- `from_settings()` reads attributes off any settings object (SimpleNamespace,
  application settings) so callers need not depend on this module's types.
- `load_config()` reads a YAML (or JSON) file and applies environment overrides.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_MAX_OCCURRENCES = 250
DEFAULT_EMPTY_SEARCH_YEARS = 400  # one full Gregorian cycle

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class RecurrenceConfig:
    """Configuration for rule generation and occurrence expansion.

    Fields:
        max_occurrences: cap on values returned by bulk helpers (1..100000)
        empty_search_years: how far a generator searches past its last candidate
            before declaring the rule exhausted (1..10000)
        log_level: logging level name for calendarbot_recur loggers
        debug: force DEBUG logging for calendarbot_recur loggers
    """

    max_occurrences: int = DEFAULT_MAX_OCCURRENCES
    empty_search_years: int = DEFAULT_EMPTY_SEARCH_YEARS
    log_level: str = "INFO"
    debug: bool = False

    @classmethod
    def from_settings(cls, settings: Any) -> RecurrenceConfig:
        """Extract recurrence configuration from a settings object.

        Args:
            settings: Configuration object with recurrence settings (may be None)

        Returns:
            RecurrenceConfig with values from settings or defaults
        """
        if settings is None:
            return cls()
        return cls.from_dict(
            {
                "max_occurrences": getattr(settings, "max_occurrences", DEFAULT_MAX_OCCURRENCES),
                "empty_search_years": getattr(settings, "empty_search_years", DEFAULT_EMPTY_SEARCH_YEARS),
                "log_level": getattr(settings, "log_level", "INFO"),
                "debug": getattr(settings, "debug", False),
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RecurrenceConfig:
        """Create RecurrenceConfig from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int and clamped to their allowed range,
        logging a warning whenever a value is replaced.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int, low: int, high: int) -> int:
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            if value < low:
                logger.warning("%s %d below minimum; coercing to %d", key, value, low)
                return low
            if value > high:
                logger.warning("%s %d above maximum; coercing to %d", key, value, high)
                return high
            return value

        max_occurrences = _coerce_int("max_occurrences", DEFAULT_MAX_OCCURRENCES, 1, 100_000)
        empty_search_years = _coerce_int("empty_search_years", DEFAULT_EMPTY_SEARCH_YEARS, 1, 10_000)

        log_level = str(data.get("log_level") or "INFO").upper()
        if log_level not in _LOG_LEVELS:
            logger.warning("Unknown log_level %r; using INFO", log_level)
            log_level = "INFO"

        debug_raw = data.get("debug", False)
        debug = debug_raw.strip().lower() in ("1", "true", "yes") if isinstance(debug_raw, str) else bool(debug_raw)

        return cls(
            max_occurrences=max_occurrences,
            empty_search_years=empty_search_years,
            log_level=log_level,
            debug=debug,
        )

    def with_env_overrides(self) -> RecurrenceConfig:
        """Return a copy with CALENDARBOT_RECUR_* / CALENDARBOT_DEBUG overrides applied."""
        data: dict[str, Any] = {
            "max_occurrences": self.max_occurrences,
            "empty_search_years": self.empty_search_years,
            "log_level": self.log_level,
            "debug": self.debug,
        }
        env_max = os.getenv("CALENDARBOT_RECUR_MAX_OCCURRENCES")
        if env_max:
            data["max_occurrences"] = env_max
        env_level = os.getenv("CALENDARBOT_RECUR_LOG_LEVEL")
        if env_level:
            data["log_level"] = env_level
        if os.getenv("CALENDARBOT_DEBUG", "").lower() in ("1", "true", "yes"):
            data["debug"] = True
        return RecurrenceConfig.from_dict(data)


def _load_mapping(path: Path) -> Any:
    """Load a YAML or JSON document from path (JSON chosen by .json suffix)."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    loaded = yaml.safe_load(text)
    # safe_load returns None for empty files
    return {} if loaded is None else loaded


def load_config(path: str | None = None) -> RecurrenceConfig:
    """Load configuration from a YAML/JSON file and return a RecurrenceConfig.

    Args:
        path: Optional path to the config file. Defaults to ./calendarbot_recur.yaml.

    Returns:
        RecurrenceConfig with file values and environment overrides applied.

    Behavior:
    - If the file is missing: defaults (plus environment overrides) are used.
    - If the file's top level is not a mapping: raises ValueError.
    """
    p = Path(path) if path else Path.cwd() / "calendarbot_recur.yaml"
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        return RecurrenceConfig().with_env_overrides()

    raw = _load_mapping(p)
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ValueError("Config file must contain a mapping at top level")  # noqa: TRY004
    cfg = RecurrenceConfig.from_dict(raw).with_env_overrides()
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg
