"""ICS text providers: local files and HTTP(S) URLs.

These are the only places where notecal_lite touches the filesystem or the
network on behalf of the parser. Failures here are real errors and propagate
as ICSSourceError subclasses.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx

from notecal_lite.calendar.lite_exceptions import ICSFetchError, ICSFileError

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "notecal-lite/0.1",
    "Accept": "text/calendar, text/plain, application/octet-stream, */*",
}


def is_url(source: str) -> bool:
    """Return True if ``source`` looks like an http(s) URL."""
    return urlparse(source).scheme in ("http", "https")


def read_ics_file(path: str | Path) -> str:
    """Read an ICS file as text.

    A UTF-8 byte order mark is tolerated and line endings are preserved.

    Raises:
        ICSFileError: If the file cannot be read or is not UTF-8
    """
    p = Path(path).expanduser()
    try:
        with p.open("r", encoding="utf-8-sig", newline="") as fh:
            return fh.read()
    except FileNotFoundError as e:
        raise ICSFileError(f"ICS file not found: {p}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ICSFileError(f"Failed to read ICS file {p}: {e}") from e


async def fetch_ics_url(
    url: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Download an ICS document.

    Args:
        url: http(s) URL of the feed
        timeout: Request timeout in seconds
        client: Optional shared client; a short-lived one is created otherwise

    Returns:
        Response body as text

    Raises:
        ICSFetchError: On invalid URLs, HTTP errors, timeouts or network failures
    """
    if not is_url(url):
        raise ICSFetchError(f"Unsupported URL scheme: {url}")

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    try:
        response = await client.get(url, headers=DEFAULT_HEADERS, timeout=timeout)
        response.raise_for_status()
        logger.debug("Fetched %d bytes from %s", len(response.content), url)
        return response.text
    except httpx.TimeoutException as e:
        logger.warning("Timeout fetching ICS from %s", url)
        raise ICSFetchError(f"Timed out fetching {url}") from e
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.warning("HTTP error fetching ICS from %s: %s", url, status)
        raise ICSFetchError(f"HTTP {status} fetching {url}", status_code=status) from e
    except httpx.HTTPError as e:
        logger.warning("Network error fetching ICS from %s: %s", url, e)
        raise ICSFetchError(f"Network error fetching {url}: {e}") from e
    finally:
        if owns_client:
            await client.aclose()


async def load_ics_source(source: str, timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS) -> str:
    """Read ICS text from a URL or a local path."""
    if is_url(source):
        return await fetch_ics_url(source, timeout=timeout)
    return read_ics_file(source)
