"""
Central logging configuration for calendarbot_recur.

Recurrence expansion can log a line per suppressed occurrence and per exhausted
source, so debug output stays off unless explicitly requested. Third-party
parsers (icalendar, dateutil) are kept quiet.
"""

import logging
import os
from typing import Optional

RECUR_MODULES = [
    "calendarbot_recur",
    "calendarbot_recur.__main__",
    "calendarbot_recur.compound_iterator",
    "calendarbot_recur.recur_config",
    "calendarbot_recur.recur_exceptions",
    "calendarbot_recur.recur_factory",
    "calendarbot_recur.recur_ics",
    "calendarbot_recur.recur_iterator",
    "calendarbot_recur.recur_logging",
    "calendarbot_recur.recur_models",
    "calendarbot_recur.recur_values",
    "calendarbot_recur.rule_generator",
]

QUIET_LOGGERS = {
    "icalendar": logging.WARNING,
    "dateutil": logging.WARNING,
}


def configure_recur_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure logging levels for calendarbot_recur modules.

    Args:
        debug_mode: Whether to enable debug logging for calendarbot_recur modules
        force_debug: Override debug mode setting (None to use env var detection)
        log_level: Level name (DEBUG, INFO, WARNING, ERROR) for calendarbot_recur
            loggers and the root logger when debug is off; defaults to INFO

    Environment Variables:
        CALENDARBOT_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        CALENDARBOT_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("CALENDARBOT_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("CALENDARBOT_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    base_level = logging.INFO
    if log_level and log_level.upper() in ("DEBUG", "INFO", "WARNING", "ERROR"):
        base_level = getattr(logging, log_level.upper())

    root_level = logging.DEBUG if final_debug else base_level
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Keep handlers installed by the application or by _init_logging
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s"))
        root_logger.addHandler(handler)

    logger_config: dict[str, int] = dict(QUIET_LOGGERS)
    recur_level = logging.DEBUG if final_debug else base_level
    for module in RECUR_MODULES:
        logger_config[module] = recur_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.info("Debug logging enabled for calendarbot_recur modules")
    else:
        root_logger.debug("Production logging configuration applied")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ["calendarbot_recur", *QUIET_LOGGERS]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
