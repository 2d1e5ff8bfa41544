"""Upcoming-window filtering for expanded schedules.

Both operations are pure and evaluated against "now" at call time. They work
on the wall-clock fields of CalendarEvent (``date``, ``start_time``,
``end_time``) so they apply equally to freshly expanded and persisted events.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable

from notecal_lite.calendar.lite_models import DATE_FORMAT, CalendarEvent
from notecal_lite.core.timezone_utils import resolve_now

logger = logging.getLogger(__name__)


def filter_upcoming_events(
    events: Iterable[CalendarEvent],
    now: datetime.datetime | None = None,
) -> list[CalendarEvent]:
    """Drop every event whose end is at or before now.

    Events without a ``date`` are treated as always current and kept.

    Args:
        events: Expanded or persisted events
        now: Reference time; defaults to the time provider's local time

    Returns:
        Events that have not ended, in their original order
    """
    now = resolve_now(now)
    upcoming = []
    for event in events:
        end = event.end_datetime()
        if end is None or end > now:
            upcoming.append(event)
    return upcoming


def _minutes(clock: datetime.time) -> int:
    return clock.hour * 60 + clock.minute


def find_active_event(
    events: Iterable[CalendarEvent],
    now: datetime.datetime | None = None,
) -> CalendarEvent | None:
    """Find the event in progress right now.

    An event is active when its ``date`` is today and the current minute lies
    within ``[start_time, end_time]``, both endpoints inclusive. When several
    events qualify the first one in sequence order wins.

    Args:
        events: Events in display order
        now: Reference time; defaults to the time provider's local time

    Returns:
        The active event, or None
    """
    now = resolve_now(now)
    today = now.strftime(DATE_FORMAT)
    current = _minutes(now.time())

    for event in events:
        if event.date != today:
            continue
        if _minutes(event.start_clock) <= current <= _minutes(event.end_clock):
            return event
    return None
