"""Tolerant iCalendar feed parser - NoteCal Lite version.

The parser targets a small RFC 5545 subset: it unfolds continuation lines,
splits the document on ``BEGIN:VEVENT`` markers and pulls five properties out
of each block with forgiving regular expressions. Blocks missing a usable
SUMMARY or DTSTART are skipped; nothing partial is ever emitted.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from notecal_lite.calendar.lite_datetime_utils import ICS_DATETIME_PATTERN, decode_ics_datetime
from notecal_lite.calendar.lite_exceptions import ICSDateDecodeError
from notecal_lite.calendar.lite_models import CalendarEvent, LiteICSParseResult
from notecal_lite.calendar.lite_rrule_expander import ExpansionSettings, LiteRRuleExpander
from notecal_lite.core.timezone_utils import resolve_now

logger = logging.getLogger(__name__)

EVENT_START_MARKER = "BEGIN:VEVENT"

# A line break followed by a space or tab is a folded continuation
_FOLD_RE = re.compile(r"\r?\n[ \t]")

# Property name, optional ";PARAM=..." suffix, then the value after the colon
_SUMMARY_RE = re.compile(r"SUMMARY(?:;[^:]*)?:(.*)")
_DTSTART_RE = re.compile(rf"DTSTART(?:;[^:]*)?:({ICS_DATETIME_PATTERN})")
_DTEND_RE = re.compile(rf"DTEND(?:;[^:]*)?:({ICS_DATETIME_PATTERN})")
_RRULE_RE = re.compile(r"RRULE(?:;[^:]*)?:(.*)")
_LOCATION_RE = re.compile(r"LOCATION(?:;[^:]*)?:(.*)")

_TEXT_ESCAPES = {"\\n": "\n", "\\N": "\n", "\\,": ",", "\\;": ";", "\\\\": "\\"}
_TEXT_ESCAPE_RE = re.compile(r"\\[nN,;\\]")


@dataclass
class RawEventBlock:
    """Fields extracted from one VEVENT span, before expansion."""

    index: int
    summary: str
    dtstart: str
    dtend: Optional[str] = None
    rrule: Optional[str] = None
    location: Optional[str] = None

    @property
    def is_recurring(self) -> bool:
        return bool(self.rrule)


def unfold_ics_lines(ics_content: str) -> str:
    """Rejoin folded property values into single logical lines."""
    return _FOLD_RE.sub("", ics_content)


def split_event_blocks(ics_content: str) -> list[str]:
    """Partition unfolded content into one span per VEVENT start marker.

    Content before the first marker (calendar header, VTIMEZONE, ...) is discarded.
    """
    return ics_content.split(EVENT_START_MARKER)[1:]


def unescape_text(value: str) -> str:
    """Undo RFC 5545 TEXT escaping (``\\,`` ``\\;`` ``\\n`` ``\\\\``)."""
    return _TEXT_ESCAPE_RE.sub(lambda m: _TEXT_ESCAPES[m.group(0)], value)


def _match_value(pattern: re.Pattern, block: str) -> Optional[str]:
    match = pattern.search(block)
    if match is None:
        return None
    return match.group(1).strip()


def extract_block_fields(index: int, block: str) -> Optional[RawEventBlock]:
    """Extract SUMMARY, DTSTART, DTEND, RRULE and LOCATION from a block.

    Args:
        index: Position of the block in the feed
        block: Raw VEVENT text span

    Returns:
        RawEventBlock, or None if SUMMARY or DTSTART is missing
    """
    summary = _match_value(_SUMMARY_RE, block)
    dtstart = _match_value(_DTSTART_RE, block)
    if not summary or not dtstart:
        return None

    location = _match_value(_LOCATION_RE, block)
    return RawEventBlock(
        index=index,
        summary=unescape_text(summary),
        dtstart=dtstart,
        dtend=_match_value(_DTEND_RE, block),
        rrule=_match_value(_RRULE_RE, block) or None,
        location=unescape_text(location) if location else None,
    )


class LiteICSParser:
    """iCalendar feed parser and recurrence expander - NoteCal Lite version."""

    def __init__(self, settings: Any = None) -> None:
        """Initialize ICS parser.

        Args:
            settings: Application settings (Config, ExpansionSettings or None)
        """
        self.settings = ExpansionSettings.from_settings(settings)
        self.rrule_expander = LiteRRuleExpander(self.settings)
        logger.debug("Lite ICS parser initialized")

    def parse_ics_content(
        self,
        ics_content: str,
        now: Optional[datetime] = None,
    ) -> LiteICSParseResult:
        """Expand ICS text into a date/time-ordered list of occurrences.

        Args:
            ics_content: Raw ICS document (CRLF or LF line endings)
            now: Moment of parsing; defaults to the time provider's local time

        Returns:
            Parse result with events and statistics
        """
        now = resolve_now(now)
        result = LiteICSParseResult(parse_time=now)

        blocks = split_event_blocks(unfold_ics_lines(ics_content or ""))
        result.total_blocks = len(blocks)

        events: list[CalendarEvent] = []
        for index, block in enumerate(blocks):
            raw = extract_block_fields(index, block)
            if raw is None:
                logger.debug("Skipping VEVENT block %d: missing SUMMARY or DTSTART", index)
                result.skipped_blocks += 1
                result.add_warning(f"Block {index}: missing SUMMARY or DTSTART")
                continue

            try:
                start = decode_ics_datetime(raw.dtstart, strict=True)
            except ICSDateDecodeError as e:
                logger.debug("Skipping VEVENT block %d: %s", index, e)
                result.skipped_blocks += 1
                result.add_warning(f"Block {index}: {e.message}")
                continue

            if raw.is_recurring:
                result.recurring_block_count += 1

            events.extend(
                self.rrule_expander.expand_block(
                    block_index=index,
                    title=raw.summary,
                    start=start,
                    duration=self._block_duration(raw, start),
                    now=now,
                    rrule_string=raw.rrule,
                    location=raw.location,
                )
            )

        events.sort(key=lambda e: (e.date or "", e.start_time))
        result.events = events
        result.event_count = len(events)

        logger.info(
            "Expanded %d event(s) from %d VEVENT block(s) (%d skipped, %d recurring)",
            result.event_count,
            result.total_blocks,
            result.skipped_blocks,
            result.recurring_block_count,
        )
        return result

    def _block_duration(self, raw: RawEventBlock, start: datetime) -> timedelta:
        """Duration shared by every occurrence of the block."""
        fallback = timedelta(minutes=self.settings.default_duration_minutes)
        if not raw.dtend:
            return fallback
        try:
            return decode_ics_datetime(raw.dtend, strict=True) - start
        except ICSDateDecodeError as e:
            logger.warning("Block %d has undecodable DTEND (%s); using default duration", raw.index, e)
            return fallback


def expand_feed(
    ics_content: str,
    now: Optional[datetime] = None,
    settings: Any = None,
) -> list[CalendarEvent]:
    """Expand feed text into events (convenience entry point).

    Args:
        ics_content: Raw ICS document
        now: Moment of parsing
        settings: Optional expansion settings

    Returns:
        Occurrences sorted by date then start time
    """
    return LiteICSParser(settings).parse_ics_content(ics_content, now=now).events
