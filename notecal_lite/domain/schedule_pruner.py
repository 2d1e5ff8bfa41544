"""Background task that keeps the stored schedule current as time passes."""

from __future__ import annotations

import asyncio
import contextlib
import datetime
import logging
from typing import Callable, Optional

from notecal_lite.calendar.lite_models import CalendarEvent
from notecal_lite.domain.event_filter import filter_upcoming_events
from notecal_lite.domain.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)

DEFAULT_PRUNE_INTERVAL_SECONDS = 60

ScheduleListener = Callable[[list[CalendarEvent]], None]


class SchedulePruner:
    """Periodically re-applies the upcoming-window filter to a ScheduleStore.

    A missed or slow tick only delays pruning; each tick recomputes the
    window from the stored schedule.
    """

    def __init__(
        self,
        store: ScheduleStore,
        interval_seconds: float = DEFAULT_PRUNE_INTERVAL_SECONDS,
        listener: Optional[ScheduleListener] = None,
    ) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self.listener = listener
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task[None]] = None

    def prune_once(self, now: Optional[datetime.datetime] = None) -> list[CalendarEvent]:
        """Prune the stored schedule, persisting only when something ended.

        Returns:
            The current upcoming schedule
        """
        stored = self.store.load_all()
        upcoming = filter_upcoming_events(stored, now)
        if len(upcoming) != len(stored):
            logger.debug("Pruned %d ended event(s)", len(stored) - len(upcoming))
            self.store.save(upcoming)
        if self.listener is not None:
            self.listener(upcoming)
        return upcoming

    async def run(self) -> None:
        """Prune immediately, then on every interval until stopped."""
        if self._stop_event is None:
            self._stop_event = asyncio.Event()
        stop_event = self._stop_event
        logger.debug("Schedule pruner starting with interval %s seconds", self.interval_seconds)
        self.prune_once()
        while not stop_event.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            if stop_event.is_set():
                break
            try:
                self.prune_once()
            except OSError:
                logger.exception("Schedule prune failed; retrying on next tick")
        self._stop_event = None
        logger.debug("Schedule pruner stopped")

    def start(self) -> asyncio.Task[None]:
        """Start the pruner as a background task on the running loop."""
        if self._task is None or self._task.done():
            self._stop_event = asyncio.Event()
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop the background task and wait for it to finish."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
