"""notecal_lite - calendar core of the NoteCal meeting note-taker.

Expands iCalendar feeds into bounded lists of upcoming occurrences, keeps a
persisted schedule current, and finds the meeting in progress.
"""

__version__ = "0.1.0"

from typing import Optional

from notecal_lite.calendar.lite_models import CalendarEvent
from notecal_lite.calendar.lite_parser import LiteICSParser, expand_feed
from notecal_lite.domain.event_filter import filter_upcoming_events, find_active_event

__all__ = [
    "CalendarEvent",
    "LiteICSParser",
    "expand_feed",
    "filter_upcoming_events",
    "find_active_event",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Installs a colorized console handler and sets the root level. Honors the
    NOTECAL_DEBUG environment variable (truthy values: "1", "true", "yes", "on"),
    which forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("NOTECAL_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message (only the level is colorized)
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )
