from collections.abc import Generator
from datetime import datetime
from typing import Any, Callable

import pytest

from notecal_lite.domain.schedule_store import InMemoryKeyValueStore, ScheduleStore


@pytest.fixture
def fixed_now() -> datetime:
    """Deterministic local "now" used across lite tests.

    2030-03-10 is a Sunday; 09:30 leaves room for both ended and upcoming
    occurrences on the same day.
    """
    return datetime(2030, 3, 10, 9, 30, 0)


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure NOTECAL_* overrides never leak between tests."""
    for name in ("NOTECAL_TEST_TIME", "NOTECAL_DEBUG", "NOTECAL_LOG_LEVEL", "NOTECAL_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def memory_store() -> ScheduleStore:
    """ScheduleStore over an in-memory key-value store."""
    return ScheduleStore(InMemoryKeyValueStore())


# ==================== ICS Test Data Fixtures ====================


@pytest.fixture
def make_ics() -> Callable[..., str]:
    """Return a builder that wraps VEVENT bodies into a calendar document.

    Each positional argument is the property text of one VEVENT (without the
    BEGIN/END lines). Lines are joined with CRLF like real feeds.
    """

    def _make(*event_bodies: str, newline: str = "\r\n") -> str:
        lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//NoteCal Test//EN"]
        for body in event_bodies:
            lines.append("BEGIN:VEVENT")
            lines.extend(line for line in body.strip().splitlines())
            lines.append("END:VEVENT")
        lines.append("END:VCALENDAR")
        return newline.join(lines) + newline

    return _make


@pytest.fixture
def sample_ics_simple(make_ics: Callable[..., str]) -> str:
    """
    Return a simple ICS calendar string with a single far-future event.

    Returns:
        ICS string with one event:
        - Event: "Standup" on 2099-01-01 10:00-11:00
    """
    return make_ics(
        """
UID:standup-001@notecal.test
DTSTART:20990101T100000
DTEND:20990101T110000
SUMMARY:Standup
LOCATION:Room 4
"""
    )


@pytest.fixture
def sample_ics_daily(make_ics: Callable[..., str]) -> str:
    """
    Return an ICS string with a daily series starting on fixed_now's date.

    The first occurrence (08:00-09:00) has already ended at 09:30.
    """
    return make_ics(
        """
UID:daily-001@notecal.test
DTSTART;TZID=Europe/London:20300310T080000
DTEND;TZID=Europe/London:20300310T090000
RRULE:FREQ=DAILY;COUNT=5
SUMMARY:Daily
"""
    )
