"""Data models for ICS calendar processing - NoteCal Lite version."""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notecal_lite.core.timezone_utils import now_local as _now_local

NO_LOCATION = "No location"

# Wall-clock formats shared by the expander and the upcoming-window filter
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def format_wall_time(dt: datetime) -> str:
    """Format a datetime as zero-padded 24-hour ``HH:MM``."""
    return dt.strftime(TIME_FORMAT)


def sunday_weekday(dt: date) -> int:
    """Return the weekday index with 0=Sunday..6=Saturday."""
    return dt.isoweekday() % 7


class CalendarEvent(BaseModel):
    """A single concrete occurrence ready for display and scheduling.

    Field names are snake_case in Python; the persisted JSON form uses the
    camelCase aliases (``startTime``, ``endTime``, ``isExternal``).
    """

    id: str = Field(..., min_length=1, description="Occurrence ID")
    title: str = Field(..., min_length=1, description="Event title")
    start_time: str = Field(..., alias="startTime", pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(..., alias="endTime", pattern=r"^\d{2}:\d{2}$")
    days: list[int] = Field(default_factory=list, description="Weekday indices, 0=Sunday")
    date: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    location: str = Field(default=NO_LOCATION, description="Event location")
    is_external: bool = Field(default=False, alias="isExternal")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_wall_time(cls, v: str) -> str:
        """Reject clock values that do not exist, such as ``25:00``."""
        try:
            datetime.strptime(v, TIME_FORMAT)
        except ValueError:
            raise ValueError(f"Invalid wall-clock time: {v!r}") from None
        return v

    @field_validator("date")
    @classmethod
    def validate_calendar_date(cls, v: Optional[str]) -> Optional[str]:
        """Reject calendar dates that do not exist, such as ``2030-02-30``."""
        if v is not None:
            try:
                datetime.strptime(v, DATE_FORMAT)
            except ValueError:
                raise ValueError(f"Invalid calendar date: {v!r}") from None
        return v

    @property
    def start_clock(self) -> time:
        """Start wall-clock time."""
        return datetime.strptime(self.start_time, TIME_FORMAT).time()

    @property
    def end_clock(self) -> time:
        """End wall-clock time."""
        return datetime.strptime(self.end_time, TIME_FORMAT).time()

    def end_datetime(self) -> Optional[datetime]:
        """Combine ``date`` and ``end_time`` into a local datetime.

        Returns:
            The occurrence end, or None for undated events
        """
        if not self.date:
            return None
        day = datetime.strptime(self.date, DATE_FORMAT).date()
        return datetime.combine(day, self.end_clock)

    def to_storage(self) -> dict:
        """Serialize to the persisted camelCase mapping."""
        return self.model_dump(by_alias=True)


class LiteICSParseResult(BaseModel):
    """Result of an ICS expansion run."""

    success: bool = True
    events: list[CalendarEvent] = Field(default_factory=list, description="Expanded occurrences")

    # Parse statistics
    total_blocks: int = 0
    skipped_blocks: int = 0
    recurring_block_count: int = 0
    event_count: int = 0

    warnings: list[str] = Field(default_factory=list)
    parse_time: datetime = Field(default_factory=_now_local)

    def add_warning(self, warning: str) -> None:
        """Add a warning message."""
        self.warnings.append(warning)
