"""
Helper Utility Module

This module provides various helper functions used throughout Event Scout.
"""

import time
from typing import Optional, List, Dict, Any, Iterable, Iterator, Sequence, TypeVar
from datetime import datetime, timezone
from urllib.parse import urlparse

T = TypeVar("T")


def is_valid_url(url: str) -> bool:
    """
    Check if a URL is valid.

    Args:
        url: The URL to validate

    Returns:
        bool: True if the URL is valid, False otherwise
    """
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except Exception:
        return False


def extract_base_domain(url: str) -> Optional[str]:
    """
    Extract the host of a URL without a leading "www.".

    Args:
        url: The URL to inspect

    Returns:
        Optional[str]: Lower-cased host, or None if the URL has no host
    """
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def is_domain_match(url: str, domains: Iterable[str]) -> bool:
    """
    Check whether a URL belongs to one of the given domains or their subdomains.

    Matching is done on the parsed host so "notx.com.evil.io" does not match "x.com".

    Args:
        url: The URL to check
        domains: Bare domains such as "x.com"

    Returns:
        bool: True if the URL's host is one of the domains or a subdomain of one
    """
    host = extract_base_domain(url)
    if not host:
        return False
    for domain in domains:
        domain = domain.lower()
        if host == domain or host.endswith("." + domain):
            return True
    return False


def truncate_at_word(text: str, max_length: int, ellipsis: str = "...") -> str:
    """
    Truncate text on a whole-word boundary, appending an ellipsis when cut.

    Args:
        text: The text to truncate
        max_length: Maximum length of the result, ellipsis included
        ellipsis: Suffix used when the text had to be cut

    Returns:
        str: The text unchanged if it fits, otherwise the longest whole-word
        prefix plus the ellipsis, or an empty string if no whole word fits
    """
    if not text or len(text) <= max_length:
        return text or ""

    budget = max_length - len(ellipsis)
    if budget <= 0:
        return ""

    cut = text[:budget + 1]
    last_space = cut.rfind(" ")
    if last_space <= 0:
        return ""

    return cut[:last_space].rstrip(" ,;:-") + ellipsis


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """
    Yield successive fixed-size batches from a sequence.

    Args:
        items: The sequence to split
        size: Batch size, must be positive

    Yields:
        List: Consecutive slices of at most `size` items
    """
    if size <= 0:
        raise ValueError("Batch size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def compute_wait_seconds(reset_at: float, now: Optional[float] = None, buffer_seconds: float = 1.0) -> float:
    """
    Compute how long to sleep before a rate-limit window resets.

    Args:
        reset_at: Epoch seconds at which the quota resets
        now: Current epoch seconds, defaults to time.time()
        buffer_seconds: Extra delay added past the reset

    Returns:
        float: Seconds to wait, never negative
    """
    if now is None:
        now = time.time()
    return max(0.0, reset_at - now + buffer_seconds)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp, accepting a trailing "Z", into an aware datetime.

    Naive values are assumed to be UTC.

    Raises:
        ValueError: If the value is not a valid ISO 8601 timestamp
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Not a timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def safe_get(data: Dict[str, Any], *keys, default: Any = None) -> Any:
    """
    Safely get a value from a nested dictionary.

    Args:
        data: The dictionary to search
        *keys: The keys to follow
        default: Default value if key doesn't exist

    Returns:
        The value at the specified keys or the default value
    """
    for key in keys:
        try:
            data = data[key]
        except (KeyError, TypeError, IndexError):
            return default
    return data
