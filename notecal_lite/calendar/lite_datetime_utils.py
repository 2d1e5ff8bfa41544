"""DateTime decoding utilities for ICS calendar processing - NoteCal Lite.

ICS date-time tokens are decoded to naive local wall-clock datetimes. A trailing
``Z`` (UTC marker) is stripped and the numeric fields are read as local time;
no time zone conversion is performed and TZID parameters are ignored.
"""

import logging
import re
from datetime import datetime
from typing import Optional

from notecal_lite.calendar.lite_exceptions import ICSDateDecodeError
from notecal_lite.core.timezone_utils import resolve_now

logger = logging.getLogger(__name__)

# Shapes accepted by the tolerant field extractor: YYYYMMDD or YYYYMMDDTHHMMSS[Z]
ICS_DATETIME_PATTERN = r"\d{8}T\d{6}Z?|\d{8}"

_DATE_ONLY_RE = re.compile(r"^\d{8}$")


def is_date_only(token: str) -> bool:
    """Return True if ``token`` is a bare ``YYYYMMDD`` date."""
    return bool(token) and bool(_DATE_ONLY_RE.match(token.strip()))


def _time_field(time_part: str, start: int) -> int:
    """Read a two-digit time field, defaulting missing or non-numeric parts to 0."""
    chunk = time_part[start : start + 2]
    return int(chunk) if chunk.isdigit() else 0


def decode_ics_datetime(
    token: Optional[str],
    *,
    now: Optional[datetime] = None,
    strict: bool = False,
) -> datetime:
    """Decode an ICS date-time token into a local datetime.

    Accepted shapes:
        - ``YYYYMMDD``: midnight local time
        - ``YYYYMMDDTHHMMSS``: local time
        - ``YYYYMMDDTHHMMSSZ``: the ``Z`` is stripped, fields are read as local time

    Missing time-of-day components in a timed token default to zero.

    Args:
        token: Bare property value (anything before the colon already removed)
        now: Reference time used as the fallback value
        strict: Raise instead of falling back to ``now`` on malformed input

    Returns:
        Naive local datetime

    Raises:
        ICSDateDecodeError: If ``strict`` is set and the token cannot be decoded
    """
    value = (token or "").strip()

    if len(value) < 8:
        if strict:
            raise ICSDateDecodeError(f"Date token too short: {value!r}", token=token)
        return resolve_now(now)

    try:
        date_part = value[:8]
        if not date_part.isdigit():
            raise ValueError(f"non-numeric date fields in {value!r}")
        year = int(date_part[0:4])
        month = int(date_part[4:6])
        day = int(date_part[6:8])

        if "T" in value:
            time_part = value.split("T", 1)[1].replace("Z", "")
            hour = _time_field(time_part, 0)
            minute = _time_field(time_part, 2)
            second = _time_field(time_part, 4)
            return datetime(year, month, day, hour, minute, second)

        return datetime(year, month, day)
    except ValueError as e:
        if strict:
            raise ICSDateDecodeError(f"Cannot decode date token {value!r}: {e}", token=token) from e
        logger.warning("Malformed ICS date token %r (%s); falling back to now", value, e)
        return resolve_now(now)
