"""Unit tests for utility functions."""

from datetime import date, datetime, timezone

import pytest

from f95api.config import settings
from f95api.utils import (
    absolute_url,
    as_date,
    enforce_https_url,
    extract_id_from_url,
    format_date,
    is_platform_url,
    parse_datetime,
    safe_get,
    utc_now,
)


class TestDatetimeFunctions:
    """Tests for datetime utility functions."""

    def test_parse_datetime_valid_iso(self):
        """Test parsing valid ISO8601 timestamp."""
        result = parse_datetime("2024-01-15T10:30:00Z")

        assert result == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_parse_datetime_platform_offset(self):
        """Test parsing the offset format used in page markup."""
        result = parse_datetime("2024-01-15T10:30:00+0100")

        assert result.hour == 9
        assert result.tzinfo == timezone.utc

    def test_parse_datetime_naive_is_utc(self):
        """Test naive values are assumed to be UTC."""
        assert parse_datetime(datetime(2024, 1, 15)).tzinfo == timezone.utc

    def test_parse_datetime_none(self):
        """Test parsing None returns None."""
        assert parse_datetime(None) is None

    def test_parse_datetime_invalid(self):
        """Test parsing invalid timestamp raises error."""
        with pytest.raises(ValueError):
            parse_datetime("not-a-date")

    def test_utc_now(self):
        """Test current time is timezone-aware."""
        assert utc_now().tzinfo == timezone.utc

    def test_format_date(self):
        """Test dates are formatted as YYYY-MM-DD."""
        assert format_date(date(2021, 3, 1)) == "2021-03-01"
        assert format_date(datetime(2021, 3, 1, 23, 59)) == "2021-03-01"
        assert format_date(None) == ""

    def test_as_date(self):
        """Test the time part is dropped."""
        assert as_date(datetime(2021, 3, 1, 12)) == date(2021, 3, 1)
        assert as_date(date(2021, 3, 1)) == date(2021, 3, 1)


class TestUrlFunctions:
    """Tests for URL helpers."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("http://f95zone.to/threads/1/", "https://f95zone.to/threads/1/"),
            ("https://f95zone.to/threads/1/", "https://f95zone.to/threads/1/"),
            ("//f95zone.to/threads/1/", "https://f95zone.to/threads/1/"),
            ("  http://f95zone.to/ ", "https://f95zone.to/"),
        ],
    )
    def test_enforce_https_url(self, url, expected):
        """Test every scheme is forced to HTTPS."""
        assert enforce_https_url(url) == expected

    def test_absolute_url(self):
        """Test relative links are resolved against the base URL."""
        assert absolute_url("/threads/x.1/") == f"{settings.base_url}/threads/x.1/"
        assert absolute_url("threads/x.1/", base="https://example.org") == "https://example.org/threads/x.1/"
        assert absolute_url("http://other.org/a") == "https://other.org/a"

    def test_is_platform_url(self):
        """Test platform URLs are recognized."""
        assert is_platform_url(f"{settings.base_url}/threads/1/")
        assert not is_platform_url("https://example.org/threads/1/")

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://f95zone.to/threads/some-game.12345/", 12345),
            ("https://f95zone.to/threads/12345/", 12345),
            ("https://f95zone.to/threads/some-game.12345/?page=2#post-9", 12345),
            ("https://f95zone.to/members/alice.77", 77),
            ("https://f95zone.to/forums/", None),
        ],
    )
    def test_extract_id_from_url(self, url, expected):
        """Test numeric IDs are extracted from slugs."""
        assert extract_id_from_url(url) == expected


class TestDictFunctions:
    """Tests for dictionary utilities."""

    def test_safe_get_nested(self):
        """Test navigating nested dictionaries."""
        assert safe_get({"a": {"b": {"c": 1}}}, "a", "b", "c") == 1

    def test_safe_get_missing(self):
        """Test missing keys return the default."""
        assert safe_get({"a": {}}, "a", "x", default=0) == 0
        assert safe_get({"a": 1}, "a", "b") is None
        assert safe_get(None, "a", default="d") == "d"
