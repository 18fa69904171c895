"""Utility functions for F95API.

This module provides helpers for datetime handling, URL normalization
and nested dictionary access.
"""

import re
from datetime import UTC, date, datetime
from typing import Any
from urllib.parse import urljoin

from dateutil import parser as dateutil_parser  # type: ignore[import-untyped]

from f95api.config import settings

_SCHEME_RE = re.compile(r"^(https?:)?//")
_ID_IN_URL_RE = re.compile(r"\.(\d+)/?$|/(\d+)/?$")


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO8601 timestamp into a timezone-aware UTC datetime.

    Args:
        value: ISO8601 timestamp string, datetime object, or None

    Returns:
        Parsed timezone-aware datetime in UTC, or None if input is None

    Raises:
        ValueError: If timestamp format is invalid

    Example:
        >>> parse_datetime("2021-03-01T10:30:00+0100").hour
        9
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    dt = dateutil_parser.isoparse(value)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def utc_now() -> datetime:
    """Get current UTC timestamp as timezone-aware datetime."""
    return datetime.now(UTC)


def format_date(value: date | datetime | None) -> str:
    """Format a date as ``YYYY-MM-DD``; None becomes the empty string.

    Example:
        >>> format_date(date(2021, 3, 1))
        '2021-03-01'
        >>> format_date(None)
        ''
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def as_date(value: date | datetime) -> date:
    """Drop the time part of a datetime (dates pass through)."""
    return value.date() if isinstance(value, datetime) else value


def enforce_https_url(url: str) -> str:
    """Force the scheme of an absolute or protocol-relative URL to HTTPS.

    Example:
        >>> enforce_https_url("http://f95zone.to/threads/1/")
        'https://f95zone.to/threads/1/'
        >>> enforce_https_url("//f95zone.to/")
        'https://f95zone.to/'
    """
    return _SCHEME_RE.sub("https://", url.strip(), count=1)


def absolute_url(link: str, base: str | None = None) -> str:
    """Resolve a (possibly relative) link against the platform base URL.

    Args:
        link: Link as found in the page
        base: Base URL (defaults to ``settings.base_url``)

    Returns:
        Absolute HTTPS URL
    """
    base = (base or settings.base_url).rstrip("/") + "/"
    return enforce_https_url(urljoin(base, link.strip()))


def is_platform_url(url: str) -> bool:
    """Check if the URL belongs to the platform domain."""
    return enforce_https_url(url).startswith(settings.base_url)


def extract_id_from_url(url: str) -> int | None:
    """Extract the numeric ID from a thread or member URL.

    Example:
        >>> extract_id_from_url("https://f95zone.to/threads/some-game.12345/")
        12345
        >>> extract_id_from_url("https://f95zone.to/threads/12345/")
        12345
    """
    match = _ID_IN_URL_RE.search(url.split("?")[0].split("#")[0])
    if not match:
        return None
    return int(match.group(1) or match.group(2))


def safe_get(data: Any, *keys: str, default: Any = None) -> Any:
    """Safely navigate nested dictionary structure.

    Example:
        >>> safe_get({"a": {"b": 1}}, "a", "b")
        1
        >>> safe_get({"a": {}}, "a", "x", default=0)
        0
    """
    for key in keys:
        if isinstance(data, dict):
            data = data.get(key)
            if data is None:
                return default
        else:
            return default
    return data
