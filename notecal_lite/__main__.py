"""Command-line entry for notecal_lite.

Examples:
  python -m notecal_lite import ~/Downloads/work.ics
  python -m notecal_lite import https://example.com/team.ics
  python -m notecal_lite upcoming --json
  python -m notecal_lite active
  python -m notecal_lite watch --interval 60
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import os
import sys
from typing import Optional

from . import _init_logging
from .calendar.lite_exceptions import ICSSourceError
from .calendar.lite_models import CalendarEvent
from .config_loader import Config, load_config
from .core.sources import load_ics_source
from .domain.event_filter import find_active_event
from .domain.schedule_pruner import SchedulePruner
from .domain.schedule_store import JsonFileKeyValueStore, ScheduleStore
from .domain.status import build_greeting
from .lite_logging import configure_lite_logging

logger = logging.getLogger(__name__)


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for notecal_lite CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="notecal",
        description="NoteCal Lite - calendar feed import and upcoming meetings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  notecal import work.ics             # Expand a feed and save the schedule
  notecal upcoming                    # List meetings that have not ended
  notecal active                      # Show the meeting in progress
  notecal watch --interval 60         # Keep the stored schedule pruned
        """,
    )
    parser.add_argument("--config", metavar="PATH", help="Path to config.yaml")
    parser.add_argument("--store", metavar="PATH", help="Schedule store JSON file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    import_cmd = sub.add_parser("import", help="Import an ICS file or URL")
    import_cmd.add_argument("source", help="Path or http(s) URL of the .ics feed")

    upcoming_cmd = sub.add_parser("upcoming", help="List upcoming events")
    upcoming_cmd.add_argument("--json", action="store_true", help="Print persisted JSON form")

    sub.add_parser("active", help="Show the meeting in progress")
    sub.add_parser("status", help="Show the dashboard greeting")

    watch_cmd = sub.add_parser("watch", help="Prune the stored schedule periodically")
    watch_cmd.add_argument(
        "--interval", type=int, metavar="SECONDS", help="Prune interval (default from config)"
    )
    return parser


def _format_event(event: CalendarEvent) -> str:
    when = f"{event.date or 'any day'} {event.start_time}-{event.end_time}"
    return f"{when}  {event.title}  ({event.location})"


def _open_store(cfg: Config, store_path: Optional[str]) -> ScheduleStore:
    kv_store = JsonFileKeyValueStore(store_path or cfg.store_path)
    return ScheduleStore(kv_store, settings=cfg)


def _cmd_import(cfg: Config, store: ScheduleStore, source: str) -> int:
    try:
        text = asyncio.run(load_ics_source(source, timeout=cfg.fetch_timeout_seconds))
    except ICSSourceError as exc:
        print(f"Failed to read calendar: {exc.message}", file=sys.stderr)
        return 1

    outcome = store.import_feed(text)
    if not outcome.succeeded:
        print(outcome.notice, file=sys.stderr)
        return 1
    print(outcome.notice)
    return 0


def _cmd_upcoming(store: ScheduleStore, as_json: bool) -> int:
    events = store.load()
    if as_json:
        print(json.dumps([e.to_storage() for e in events], indent=2))
        return 0
    if not events:
        print("No upcoming events")
    for event in events:
        print(_format_event(event))
    return 0


def _cmd_active(store: ScheduleStore) -> int:
    active = find_active_event(store.load())
    if active is None:
        print("No meeting in progress")
    else:
        print(_format_event(active))
    return 0


def _cmd_watch(cfg: Config, store: ScheduleStore, interval: Optional[int]) -> int:
    pruner = SchedulePruner(
        store,
        interval_seconds=interval or cfg.prune_interval_seconds,
        listener=lambda events: logger.info(build_greeting(events)),
    )
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(pruner.run())
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Run the notecal_lite CLI.

    Returns:
        Process exit status
    """
    args = _create_parser().parse_args(argv)

    _init_logging(os.environ.get("NOTECAL_LOG_LEVEL"))
    cfg = load_config(args.config)
    configure_lite_logging(debug_mode=args.debug or cfg.log_level == "DEBUG")
    store = _open_store(cfg, args.store)

    if args.command == "import":
        return _cmd_import(cfg, store, args.source)
    if args.command == "upcoming":
        return _cmd_upcoming(store, args.json)
    if args.command == "active":
        return _cmd_active(store)
    if args.command == "status":
        print(build_greeting(store.load()))
        return 0
    return _cmd_watch(cfg, store, args.interval)


if __name__ == "__main__":
    sys.exit(main())
