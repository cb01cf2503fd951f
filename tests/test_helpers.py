"""
Tests for Helper Utilities

Tests URL helpers, word-boundary truncation, batching, rate-limit wait
computation, timestamp parsing and nested dictionary access.
"""

import pytest
from unittest.mock import patch
from datetime import datetime, timedelta, timezone
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils.helpers import (
    is_valid_url, extract_base_domain, is_domain_match, truncate_at_word, chunked,
    compute_wait_seconds, utc_now, parse_iso_datetime, safe_get
)


class TestUrlHelpers:
    """Tests for URL validation and domain matching."""

    def test_valid_url(self):
        assert is_valid_url("https://lu.ma/lagos-ai")
        assert not is_valid_url("lu.ma/lagos-ai")
        assert not is_valid_url("")

    def test_base_domain(self):
        assert extract_base_domain("https://www.Lu.ma/e/abc") == "lu.ma"
        assert extract_base_domain("not a url") is None

    @pytest.mark.parametrize("url,expected", [
        ("https://x.com/user/status/1", True),
        ("https://www.X.COM/user", True),
        ("https://mobile.twitter.com/user", True),
        ("https://notx.com.evil.io/page", False),
        ("https://eventbrite.com/e/1", False),
        ("garbage", False),
    ])
    def test_domain_match(self, url, expected):
        assert is_domain_match(url, ["x.com", "twitter.com"]) is expected


class TestTruncateAtWord:
    """Tests for truncate_at_word."""

    def test_short_text_unchanged(self):
        assert truncate_at_word("Lagos AI Summit", 20) == "Lagos AI Summit"

    def test_cuts_on_word_boundary(self):
        assert truncate_at_word("the quick brown fox", 12) == "the quick..."

    def test_strips_trailing_punctuation(self):
        assert truncate_at_word("Lagos, Nigeria rocks", 12) == "Lagos..."

    def test_single_long_word(self):
        assert truncate_at_word("supercalifragilistic", 10) == ""

    def test_no_room_for_ellipsis(self):
        assert truncate_at_word("hello world", 2) == ""

    def test_empty_input(self):
        assert truncate_at_word(None, 10) == ""
        assert truncate_at_word("", 10) == ""

    def test_custom_ellipsis(self):
        assert truncate_at_word("one two three four", 10, ellipsis="\u2026") == "one two\u2026"


class TestChunked:
    """Tests for chunked."""

    def test_batches(self):
        assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert list(chunked([], 3)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))


class TestComputeWaitSeconds:
    """Tests for compute_wait_seconds."""

    def test_future_reset(self):
        assert compute_wait_seconds(100.0, now=90.0, buffer_seconds=2) == 12.0

    def test_past_reset_never_negative(self):
        assert compute_wait_seconds(100.0, now=200.0, buffer_seconds=2) == 0.0

    def test_defaults_to_current_time(self):
        with patch('time.time', return_value=95.0):
            assert compute_wait_seconds(100.0) == 6.0


class TestTimestamps:
    """Tests for utc_now and parse_iso_datetime."""

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is timezone.utc

    def test_trailing_z(self):
        assert parse_iso_datetime("2025-01-01T09:00:00.000Z") == datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)

    def test_offset_kept(self):
        parsed = parse_iso_datetime("2025-03-15T10:00:00+01:00")
        assert parsed.utcoffset() == timedelta(hours=1)

    def test_naive_assumed_utc(self):
        assert parse_iso_datetime("2025-03-15T10:00:00").tzinfo == timezone.utc

    @pytest.mark.parametrize("value", ["", "   ", None, "next Friday"])
    def test_rejects_non_timestamps(self, value):
        with pytest.raises(ValueError):
            parse_iso_datetime(value)


class TestSafeGet:
    """Tests for safe_get."""

    def test_nested_value(self):
        assert safe_get({"data": {"ids": ["a", "b"]}}, "data", "ids", 1) == "b"

    def test_missing_key(self):
        assert safe_get({"data": {}}, "data", "id", default="none") == "none"

    def test_through_none(self):
        assert safe_get({"data": None}, "data", "id") is None

    def test_index_out_of_range(self):
        assert safe_get({"ids": []}, "ids", 0, default=0) == 0
