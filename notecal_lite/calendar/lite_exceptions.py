"""Calendar-specific exceptions for notecal_lite."""

from typing import Optional


class LiteCalendarError(Exception):
    """Base exception for notecal_lite calendar errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ICSParseError(LiteCalendarError):
    """Exception raised when ICS content cannot be parsed."""


class ICSDateDecodeError(ICSParseError):
    """Exception raised when an ICS date-time token cannot be decoded."""

    def __init__(self, message: str, token: Optional[str] = None):
        super().__init__(message)
        self.token = token


class LiteRRuleExpansionError(LiteCalendarError):
    """Base exception for RRULE expansion errors."""


class LiteRRuleParseError(LiteRRuleExpansionError):
    """Error parsing RRULE string."""


class ICSSourceError(LiteCalendarError):
    """Exception raised when ICS text cannot be obtained from its source."""


class ICSFileError(ICSSourceError):
    """ICS file could not be read or decoded."""


class ICSFetchError(ICSSourceError):
    """ICS document could not be downloaded."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
