"""Unit tests for notecal_lite.domain.schedule_pruner."""

import asyncio
import json
from datetime import datetime

import pytest

from notecal_lite.calendar.lite_models import CalendarEvent
from notecal_lite.domain.schedule_pruner import SchedulePruner
from notecal_lite.domain.schedule_store import (
    SCHEDULE_KEY,
    InMemoryKeyValueStore,
    ScheduleStore,
)

pytestmark = pytest.mark.unit


def _event(title: str, date: str) -> CalendarEvent:
    return CalendarEvent(
        id=f"ics-0-0-{title}", title=title, start_time="08:00", end_time="09:00", date=date
    )


class RecordingStore:
    """Wraps a ScheduleStore and counts saves."""

    def __init__(self, inner: ScheduleStore) -> None:
        self.inner = inner
        self.saves = 0

    def load_all(self):
        return self.inner.load_all()

    def save(self, events):
        self.saves += 1
        self.inner.save(events)


def test_prune_once_removes_ended_events(memory_store: ScheduleStore, fixed_now: datetime) -> None:
    memory_store.save([_event("Ended", "2030-03-10"), _event("Tomorrow", "2030-03-11")])
    seen = []
    pruner = SchedulePruner(memory_store, listener=seen.append)

    upcoming = pruner.prune_once(now=fixed_now)

    assert [e.title for e in upcoming] == ["Tomorrow"]
    assert [e.title for e in memory_store.load_all()] == ["Tomorrow"]
    assert seen == [upcoming]


def test_prune_once_skips_save_when_nothing_ended(
    memory_store: ScheduleStore, fixed_now: datetime
) -> None:
    memory_store.save([_event("Tomorrow", "2030-03-11")])
    store = RecordingStore(memory_store)
    pruner = SchedulePruner(store)  # type: ignore[arg-type]

    pruner.prune_once(now=fixed_now)
    pruner.prune_once(now=fixed_now)
    assert store.saves == 0


@pytest.mark.asyncio
async def test_run_prunes_until_stopped(memory_store: ScheduleStore, monkeypatch) -> None:
    monkeypatch.setenv("NOTECAL_TEST_TIME", "2030-03-10T09:30:00")
    memory_store.save([_event("Ended", "2030-03-10"), _event("Tomorrow", "2030-03-11")])
    ticks = []
    pruner = SchedulePruner(memory_store, interval_seconds=0.01, listener=ticks.append)

    task = pruner.start()
    await asyncio.sleep(0.05)
    await pruner.stop()

    assert task.done()
    assert len(ticks) >= 2
    assert [e.title for e in memory_store.load_all()] == ["Tomorrow"]


@pytest.mark.asyncio
async def test_stop_without_start_is_noop(memory_store: ScheduleStore) -> None:
    pruner = SchedulePruner(memory_store)
    await pruner.stop()


def test_prune_once_skips_stored_entries_that_fail_validation(fixed_now: datetime) -> None:
    good = _event("Tomorrow", "2030-03-11").to_storage()
    impossible = {**good, "id": "ics-0-0-x", "title": "Impossible", "date": "2030-02-30"}
    store = ScheduleStore(InMemoryKeyValueStore({SCHEDULE_KEY: json.dumps([impossible, good])}))

    upcoming = SchedulePruner(store).prune_once(now=fixed_now)

    assert [e.title for e in upcoming] == ["Tomorrow"]
    assert [e.title for e in store.load_all()] == ["Tomorrow"]


def test_pruner_built_outside_loop_runs_under_asyncio_run(memory_store: ScheduleStore, monkeypatch) -> None:
    """The CLI builds the pruner first and only then starts a fresh event loop."""
    monkeypatch.setenv("NOTECAL_TEST_TIME", "2030-03-10T09:30:00")
    memory_store.save([_event("Ended", "2030-03-10"), _event("Tomorrow", "2030-03-11")])
    pruner = SchedulePruner(memory_store, interval_seconds=0.01)

    async def run_briefly() -> None:
        pruner.start()
        await asyncio.sleep(0.03)
        await pruner.stop()

    asyncio.run(run_briefly())
    asyncio.run(run_briefly())

    assert [e.title for e in memory_store.load_all()] == ["Tomorrow"]
