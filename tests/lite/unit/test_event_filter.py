"""Unit tests for notecal_lite.domain.event_filter."""

import datetime

import pytest

from notecal_lite.calendar.lite_models import CalendarEvent
from notecal_lite.domain.event_filter import filter_upcoming_events, find_active_event

pytestmark = pytest.mark.unit


def _event(title: str, date, start: str, end: str) -> CalendarEvent:
    return CalendarEvent(
        id=f"test-{title}",
        title=title,
        start_time=start,
        end_time=end,
        date=date,
        days=[],
        is_external=True,
    )


class TestFilterUpcomingEvents:
    """Tests for filter_upcoming_events."""

    def test_drops_events_that_ended_at_or_before_now(self, fixed_now: datetime.datetime) -> None:
        """An event ending exactly at now counts as over."""
        events = [
            _event("Ended", "2030-03-10", "08:00", "09:00"),
            _event("Ends now", "2030-03-10", "09:00", "09:30"),
            _event("Running", "2030-03-10", "09:00", "10:00"),
            _event("Later", "2030-03-11", "08:00", "09:00"),
        ]
        upcoming = filter_upcoming_events(events, now=fixed_now)
        assert [e.title for e in upcoming] == ["Running", "Later"]

    def test_keeps_undated_events(self, fixed_now: datetime.datetime) -> None:
        events = [_event("Recurring template", None, "08:00", "09:00")]
        assert filter_upcoming_events(events, now=fixed_now) == events

    def test_is_idempotent(self, fixed_now: datetime.datetime) -> None:
        events = [
            _event("Ended", "2030-03-09", "08:00", "09:00"),
            _event("Later", "2030-03-11", "08:00", "09:00"),
        ]
        once = filter_upcoming_events(events, now=fixed_now)
        assert filter_upcoming_events(once, now=fixed_now) == once

    def test_empty_input(self, fixed_now: datetime.datetime) -> None:
        assert filter_upcoming_events([], now=fixed_now) == []

    def test_aware_now_is_converted_to_local(self, fixed_now: datetime.datetime) -> None:
        aware = fixed_now.astimezone()
        events = [_event("Ended", "2030-03-10", "08:00", "09:00")]
        assert filter_upcoming_events(events, now=aware) == []

    def test_defaults_to_time_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NOTECAL_TEST_TIME", "2030-03-10T12:00:00")
        events = [
            _event("Morning", "2030-03-10", "09:00", "10:00"),
            _event("Afternoon", "2030-03-10", "13:00", "14:00"),
        ]
        assert [e.title for e in filter_upcoming_events(events)] == ["Afternoon"]


class TestFindActiveEvent:
    """Tests for find_active_event."""

    def test_returns_event_in_progress(self, fixed_now: datetime.datetime) -> None:
        events = [
            _event("Earlier", "2030-03-10", "08:00", "09:00"),
            _event("Now", "2030-03-10", "09:00", "10:00"),
        ]
        assert find_active_event(events, now=fixed_now).title == "Now"

    def test_boundaries_are_inclusive(self) -> None:
        events = [_event("Sync", "2030-03-10", "09:00", "10:00")]
        assert find_active_event(events, now=datetime.datetime(2030, 3, 10, 9, 0)) is not None
        assert find_active_event(events, now=datetime.datetime(2030, 3, 10, 10, 0, 59)) is not None
        assert find_active_event(events, now=datetime.datetime(2030, 3, 10, 10, 1)) is None

    def test_first_match_wins_at_shared_boundary(self) -> None:
        """At 10:00 both back-to-back meetings qualify; sequence order decides."""
        events = [
            _event("First", "2030-03-10", "09:00", "10:00"),
            _event("Second", "2030-03-10", "10:00", "11:00"),
        ]
        active = find_active_event(events, now=datetime.datetime(2030, 3, 10, 10, 0))
        assert active.title == "First"

    def test_ignores_other_dates_and_undated(self, fixed_now: datetime.datetime) -> None:
        events = [
            _event("Yesterday", "2030-03-09", "09:00", "10:00"),
            _event("Undated", None, "09:00", "10:00"),
        ]
        assert find_active_event(events, now=fixed_now) is None

    def test_none_when_empty(self, fixed_now: datetime.datetime) -> None:
        assert find_active_event([], now=fixed_now) is None
