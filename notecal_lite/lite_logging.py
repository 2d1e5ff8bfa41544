"""
Central logging configuration for notecal_lite.

Keeps third-party libraries quiet while allowing the package's own modules to
log at DEBUG when troubleshooting calendar imports.
"""

import logging
import os
from typing import Optional

NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")

LITE_MODULES = (
    "notecal_lite",
    "notecal_lite.calendar.lite_parser",
    "notecal_lite.calendar.lite_rrule_expander",
    "notecal_lite.calendar.lite_datetime_utils",
    "notecal_lite.domain.schedule_store",
    "notecal_lite.domain.schedule_pruner",
    "notecal_lite.core.sources",
)


def configure_lite_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for notecal_lite.

    Args:
        debug_mode: Whether to enable debug logging for notecal_lite modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        NOTECAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        NOTECAL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("NOTECAL_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("NOTECAL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)
    logging.getLogger().setLevel(root_level)

    logger_config: dict[str, int] = {name: logging.WARNING for name in NOISY_LOGGERS}

    lite_level = logging.DEBUG if final_debug else logging.INFO
    for module in LITE_MODULES:
        logger_config[module] = lite_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        logging.getLogger(__name__).debug(
            "Debug logging enabled for notecal_lite modules; third-party debug logs suppressed"
        )


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ("notecal_lite", *NOISY_LOGGERS):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
