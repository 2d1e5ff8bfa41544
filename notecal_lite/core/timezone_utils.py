"""Local time provider for notecal_lite.

All calendar arithmetic in notecal_lite happens on naive local wall-clock
datetimes. This module is the single place that decides what "now" is, so that
tests and demos can freeze time with the NOTECAL_TEST_TIME environment variable.
"""

from __future__ import annotations

import datetime
import logging
import os

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

TEST_TIME_ENV = "NOTECAL_TEST_TIME"


class TimeProvider:
    """Provides the current local time with test override support."""

    def now_local(self) -> datetime.datetime:
        """Return the current local wall-clock time as a naive datetime.

        Can be overridden for testing via NOTECAL_TEST_TIME environment variable.
        Format: ISO 8601 datetime string (e.g., "2025-10-27T08:20:00" or
        "2025-10-27T08:20:00-07:00"). Aware values are converted to the host's
        local zone before the tzinfo is dropped.

        Returns:
            Current local time without tzinfo
        """
        test_time = os.environ.get(TEST_TIME_ENV)
        if test_time:
            try:
                dt = date_parser.isoparse(test_time)
                if dt.tzinfo is not None:
                    return dt.astimezone().replace(tzinfo=None)
                return dt
            except (ValueError, OverflowError) as e:
                logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV, test_time, e)

        return datetime.datetime.now()


_time_provider = TimeProvider()


def now_local() -> datetime.datetime:
    """Get current local time (convenience function).

    Returns:
        Current local time as a naive datetime
    """
    return _time_provider.now_local()


def resolve_now(now: datetime.datetime | None) -> datetime.datetime:
    """Return ``now`` unchanged, or the provider's current time when it is None."""
    if now is None:
        return now_local()
    if now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now
