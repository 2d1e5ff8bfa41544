"""RRULE expansion logic for the NoteCal Lite ICS parser.

Recurrence expansion is modelled as a small state machine:

    state      = ExpansionState(cursor, count)
    transition = advance the cursor by ``interval`` units of the frequency
    terminal   = COUNT reached, cursor past UNTIL, cursor past the expansion
                 ceiling, or the absolute occurrence ceiling hit

Occurrence starts are always computed from the series anchor
(``anchor + n * interval units``) so month-end clamping never drifts.
"""

# ruff: noqa: I001
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import re
from typing import Any, Optional
from collections.abc import Iterator

from dateutil.relativedelta import relativedelta

from .lite_datetime_utils import ICS_DATETIME_PATTERN, decode_ics_datetime
from .lite_exceptions import ICSDateDecodeError, LiteRRuleExpansionError, LiteRRuleParseError
from .lite_models import (
    DATE_FORMAT,
    NO_LOCATION,
    CalendarEvent,
    format_wall_time,
    sunday_weekday,
)

logger = logging.getLogger(__name__)

DEFAULT_EXPANSION_DAYS = 60
DEFAULT_MAX_OCCURRENCES = 500
DEFAULT_DURATION_MINUTES = 60
DEFAULT_FREQUENCY = "WEEKLY"

# relativedelta keyword for each supported FREQ value
FREQUENCY_UNITS: dict[str, str] = {
    "DAILY": "days",
    "WEEKLY": "weeks",
    "MONTHLY": "months",
    "YEARLY": "years",
}

_UNTIL_RE = re.compile(rf"^({ICS_DATETIME_PATTERN})", re.IGNORECASE)


@dataclass
class ExpansionSettings:
    """Configuration for RRULE expansion with explicit defaults."""

    expansion_days: int = DEFAULT_EXPANSION_DAYS
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES
    default_duration_minutes: int = DEFAULT_DURATION_MINUTES

    @classmethod
    def from_settings(cls, settings: Any) -> "ExpansionSettings":
        """Extract expansion configuration from a settings object.

        Args:
            settings: Configuration object (Config, SimpleNamespace, ...) or None

        Returns:
            ExpansionSettings with values from settings or defaults; the
            horizon and occurrence ceiling never exceed their defaults
        """
        if isinstance(settings, cls):
            return settings
        return cls(
            expansion_days=min(
                getattr(settings, "expansion_days", DEFAULT_EXPANSION_DAYS), DEFAULT_EXPANSION_DAYS
            ),
            max_occurrences=min(
                getattr(settings, "max_occurrences", DEFAULT_MAX_OCCURRENCES), DEFAULT_MAX_OCCURRENCES
            ),
            default_duration_minutes=getattr(
                settings, "default_duration_minutes", DEFAULT_DURATION_MINUTES
            ),
        )

    def ceiling(self, now: datetime) -> datetime:
        """Absolute expansion horizon for a parse run started at ``now``."""
        return now + timedelta(days=self.expansion_days)


@dataclass(frozen=True)
class RecurrenceRule:
    """Recurrence descriptor derived from an RRULE value."""

    frequency: str
    interval: int
    count: Optional[int]
    until: datetime

    @property
    def is_supported(self) -> bool:
        """True if the frequency can be expanded."""
        return self.frequency in FREQUENCY_UNITS


@dataclass(frozen=True)
class ExpansionState:
    """Cursor position of an in-progress expansion."""

    cursor: datetime
    count: int


def parse_rrule_string(
    rrule_string: str,
    *,
    now: datetime,
    expansion_days: int = DEFAULT_EXPANSION_DAYS,
) -> RecurrenceRule:
    """Parse an RRULE value into a RecurrenceRule.

    FREQ, COUNT, UNTIL and INTERVAL are each optional and matched
    case-insensitively. Other parts (BYDAY, WKST, ...) are ignored.

    Args:
        rrule_string: RRULE value, e.g. "FREQ=WEEKLY;INTERVAL=2;COUNT=10"
        now: Moment of parsing, anchors the default UNTIL
        expansion_days: Days from ``now`` used when UNTIL is absent

    Returns:
        RecurrenceRule with defaults applied

    Raises:
        LiteRRuleParseError: If the RRULE string is empty
    """
    if not rrule_string or not rrule_string.strip():
        raise LiteRRuleParseError("Empty RRULE string")

    parts: dict[str, str] = {}
    for part in rrule_string.split(";"):
        if "=" not in part:
            continue
        key, value = part.split("=", 1)
        parts[key.strip().upper()] = value.strip()

    frequency = parts.get("FREQ", "").upper() or DEFAULT_FREQUENCY

    count: Optional[int] = None
    raw_count = parts.get("COUNT", "")
    if raw_count.isdigit():
        count = int(raw_count)
    elif raw_count:
        logger.debug("Ignoring non-numeric COUNT=%r", raw_count)

    interval = 1
    raw_interval = parts.get("INTERVAL", "")
    if raw_interval.isdigit() and int(raw_interval) > 0:
        interval = int(raw_interval)
    elif raw_interval:
        logger.warning("Ignoring invalid INTERVAL=%r; using 1", raw_interval)

    until = now + timedelta(days=expansion_days)
    until_match = _UNTIL_RE.match(parts.get("UNTIL", ""))
    if until_match:
        try:
            until = decode_ics_datetime(until_match.group(1).upper(), strict=True)
        except ICSDateDecodeError as e:
            logger.warning("Ignoring undecodable UNTIL: %s", e)

    return RecurrenceRule(frequency=frequency, interval=interval, count=count, until=until)


def is_terminal(
    state: ExpansionState,
    rule: RecurrenceRule,
    ceiling: datetime,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> bool:
    """Return True once any expansion bound has been reached."""
    if rule.count is not None and state.count >= rule.count:
        return True
    if state.cursor > rule.until or state.cursor > ceiling:
        return True
    return state.count >= max_occurrences


def advance(state: ExpansionState, anchor: datetime, rule: RecurrenceRule) -> ExpansionState:
    """Move the expansion to its next occurrence.

    Raises:
        LiteRRuleExpansionError: If the rule frequency is not supported
    """
    unit = FREQUENCY_UNITS.get(rule.frequency)
    if unit is None:
        raise LiteRRuleExpansionError(f"Unsupported RRULE frequency: {rule.frequency!r}")
    next_count = state.count + 1
    offset = relativedelta(**{unit: rule.interval * next_count})
    return ExpansionState(cursor=anchor + offset, count=next_count)


def iter_occurrence_starts(
    anchor: datetime,
    rule: RecurrenceRule,
    ceiling: datetime,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
) -> Iterator[datetime]:
    """Yield occurrence start instants for a recurring series.

    Expansion always terminates: every transition increments the count, and
    the count is bounded by ``max_occurrences``. An unsupported frequency stops
    the series after the anchor occurrence.

    Args:
        anchor: Decoded DTSTART of the series
        rule: Parsed recurrence descriptor
        ceiling: Absolute horizon, applied even when UNTIL is later
        max_occurrences: Absolute occurrence ceiling

    Yields:
        Occurrence start datetimes in chronological order
    """
    state = ExpansionState(cursor=anchor, count=0)
    while not is_terminal(state, rule, ceiling, max_occurrences):
        yield state.cursor
        try:
            state = advance(state, anchor, rule)
        except LiteRRuleExpansionError as e:
            logger.debug("Stopping expansion after %d occurrence(s): %s", state.count + 1, e)
            return


def build_occurrence(
    block_index: int,
    occurrence_index: int,
    start: datetime,
    duration: timedelta,
    title: str,
    location: Optional[str] = None,
) -> CalendarEvent:
    """Create the CalendarEvent for one occurrence of a block.

    Args:
        block_index: Position of the VEVENT block in the feed
        occurrence_index: Position of the occurrence within its series
        start: Occurrence start
        duration: Series duration, reused for every occurrence
        title: SUMMARY value
        location: LOCATION value, if any

    Returns:
        CalendarEvent marked as external
    """
    end = start + duration
    start_ms = int(start.timestamp() * 1000)
    return CalendarEvent(
        id=f"ics-{block_index}-{occurrence_index}-{start_ms}",
        title=title,
        start_time=format_wall_time(start),
        end_time=format_wall_time(end),
        date=start.strftime(DATE_FORMAT),
        days=[sunday_weekday(start)],
        location=location or NO_LOCATION,
        is_external=True,
    )


class LiteRRuleExpander:
    """Expands VEVENT blocks into concrete, not-yet-ended occurrences."""

    def __init__(self, settings: Any = None):
        """Initialize expander with settings.

        Args:
            settings: Configuration object with expansion settings
        """
        self.config = ExpansionSettings.from_settings(settings)
        logger.debug(
            "LiteRRuleExpander initialized: expansion_days=%d, max_occurrences=%d",
            self.config.expansion_days,
            self.config.max_occurrences,
        )

    def expand_block(
        self,
        block_index: int,
        title: str,
        start: datetime,
        duration: timedelta,
        now: datetime,
        rrule_string: Optional[str] = None,
        location: Optional[str] = None,
    ) -> list[CalendarEvent]:
        """Expand one block into occurrences whose end is not before ``now``.

        Args:
            block_index: Position of the block in the feed
            title: SUMMARY value
            start: Decoded DTSTART
            duration: Occurrence duration
            now: Moment of parsing
            rrule_string: RRULE value, or None for a single occurrence
            location: LOCATION value

        Returns:
            Occurrences that have not ended yet
        """
        if rrule_string:
            rule = parse_rrule_string(
                rrule_string, now=now, expansion_days=self.config.expansion_days
            )
            if not rule.is_supported:
                logger.debug("Block %d uses unsupported FREQ=%s", block_index, rule.frequency)
            starts = iter_occurrence_starts(
                start, rule, self.config.ceiling(now), self.config.max_occurrences
            )
        else:
            starts = iter([start])

        events = []
        for occurrence_index, occurrence_start in enumerate(starts):
            if occurrence_start + duration < now:
                continue
            events.append(
                build_occurrence(
                    block_index, occurrence_index, occurrence_start, duration, title, location
                )
            )
        return events
