"""Key-value backed persistence for the expanded schedule."""

from __future__ import annotations

import contextlib
import datetime
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from notecal_lite.calendar.lite_models import CalendarEvent
from notecal_lite.calendar.lite_parser import LiteICSParser
from notecal_lite.domain.event_filter import filter_upcoming_events

logger = logging.getLogger(__name__)

SCHEDULE_KEY = "notecal_calendar_v2"


class KeyValueStore(Protocol):
    """Minimal text key-value persistence used by ScheduleStore."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local key-value store, mainly for tests and one-shot runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value


class JsonFileKeyValueStore:
    """JSON-file key-value store with atomic writes.

    The on-disk format is a JSON object mapping key -> text value.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Create a JsonFileKeyValueStore.

        Args:
            path: Path to the JSON file; parent directories are created on write.
        """
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to read key-value store %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Key-value store %s root is not an object; ignoring", self._path)
            return {}
        return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._persist(data)

    def _persist(self, data: dict[str, str]) -> None:
        """Write to a temporary file in the same directory then replace into place."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=self._path.parent, delete=False, encoding="utf-8"
            ) as tf:
                tmp_path = Path(tf.name)
                json.dump(data, tf, ensure_ascii=False)
                tf.flush()
                with contextlib.suppress(OSError):
                    os.fsync(tf.fileno())
            tmp_path.replace(self._path)
        except OSError:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise


@dataclass
class ImportOutcome:
    """Result of importing a feed into the store."""

    imported_count: int
    upcoming: list[CalendarEvent] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.imported_count > 0

    @property
    def notice(self) -> str:
        """User-facing message describing the import."""
        if self.succeeded:
            return f"Successfully imported {self.imported_count} events."
        return "The file was parsed but contained no upcoming events."


class ScheduleStore:
    """Saves and restores the expanded schedule through a KeyValueStore."""

    def __init__(
        self,
        kv_store: KeyValueStore,
        key: str = SCHEDULE_KEY,
        settings: Any = None,
    ) -> None:
        self._kv = kv_store
        self._key = key
        self._settings = settings

    def save(self, events: list[CalendarEvent]) -> None:
        """Persist events as a JSON list of camelCase objects."""
        payload = json.dumps([event.to_storage() for event in events], ensure_ascii=False)
        self._kv.set(self._key, payload)
        logger.debug("Saved %d event(s) under %s", len(events), self._key)

    def load_all(self) -> list[CalendarEvent]:
        """Load every persisted event without pruning.

        Corrupt JSON yields an empty schedule; individual entries that fail
        validation are dropped.
        """
        raw = self._kv.get(self._key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Stored schedule under %s is not valid JSON: %s", self._key, exc)
            return []
        if not isinstance(data, list):
            logger.warning("Stored schedule under %s is not a list; ignoring", self._key)
            return []

        events = []
        for item in data:
            try:
                events.append(CalendarEvent.model_validate(item))
            except ValidationError as exc:
                logger.debug("Dropping invalid stored event %r: %s", item, exc)
        return events

    def load(self, now: Optional[datetime.datetime] = None) -> list[CalendarEvent]:
        """Load the persisted schedule, pruned against now."""
        return filter_upcoming_events(self.load_all(), now)

    def import_feed(
        self,
        ics_content: str,
        now: Optional[datetime.datetime] = None,
    ) -> ImportOutcome:
        """Expand ICS text and save it when at least one event results.

        An import that yields nothing leaves the previously stored schedule
        untouched.
        """
        result = LiteICSParser(self._settings).parse_ics_content(ics_content, now=now)
        outcome = ImportOutcome(imported_count=result.event_count, warnings=result.warnings)
        if outcome.succeeded:
            self.save(result.events)
            outcome.upcoming = filter_upcoming_events(result.events, now)
        logger.info(outcome.notice)
        return outcome
