"""Dashboard greeting built from the current schedule.

Single source of truth for the status line shown by the CLI and any UI.
"""

from __future__ import annotations

import datetime
from collections.abc import Sequence

from notecal_lite.calendar.lite_models import CalendarEvent
from notecal_lite.core.timezone_utils import resolve_now
from notecal_lite.domain.event_filter import find_active_event


def salutation(now: datetime.datetime) -> str:
    """Time-of-day salutation for the local hour."""
    hour = now.hour
    if 12 <= hour < 17:
        return "Good afternoon"
    if hour >= 17 or hour < 4:
        return "Good evening"
    return "Good morning"


def build_greeting(
    events: Sequence[CalendarEvent],
    now: datetime.datetime | None = None,
) -> str:
    """Build the dashboard greeting.

    Args:
        events: Upcoming schedule in display order
        now: Reference time; defaults to the time provider's local time

    Returns:
        Greeting mentioning the meeting in progress, the number of upcoming
        items, or an empty workspace
    """
    now = resolve_now(now)
    base = salutation(now)

    active = find_active_event(events, now)
    if active is not None:
        return f'{base}. You have a meeting in progress: "{active.title}"'
    if events:
        return f"{base}. You have {len(events)} upcoming items today."
    return f"{base}. Your workspace is clear and ready."
