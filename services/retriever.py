"""
Rate-Limited Retriever Module

Wraps the platform search call. Tracks the endpoint's remaining quota and
reset time, sleeps until the window resets when the quota is spent, retries
a bounded number of times on throttling, and advances the per-query cursor
after each successful fetch.
"""

import time
from typing import Optional, List, Callable

from config import settings
from data.models import SocialPost, SearchPage, RateLimitInfo
from services.cursor_store import CursorStore
from services.protocols import SearchClient
from utils.exceptions import RateLimitError
from utils.helpers import compute_wait_seconds
from utils.logger import get_logger

logger = get_logger(__name__)


def _newest_id(page: SearchPage) -> Optional[str]:
    if page.newest_id:
        return str(page.newest_id)
    ids = [post.id for post in page.posts if str(post.id).isdigit()]
    if not ids:
        return None
    return max(ids, key=int)


class RateLimitedRetriever:
    """Quota-aware search with cursor tracking."""

    def __init__(
        self,
        client: SearchClient,
        cursor_store: Optional[CursorStore] = None,
        max_retries: Optional[int] = None,
        buffer_seconds: Optional[float] = None,
        fallback_wait: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.cursor_store = cursor_store if cursor_store is not None else CursorStore()
        self.max_retries = settings.SEARCH_MAX_RETRIES if max_retries is None else max_retries
        self.buffer_seconds = max(1.0, settings.RATE_LIMIT_BUFFER_SECONDS if buffer_seconds is None else buffer_seconds)
        self.fallback_wait = settings.RATE_LIMIT_FALLBACK_WAIT if fallback_wait is None else fallback_wait
        self.sleep = sleep
        self.clock = clock
        self.rate_limit: Optional[RateLimitInfo] = None

    def wait_seconds(self) -> float:
        """Seconds to wait before the next request may be issued."""
        info = self.rate_limit
        if info is None or info.remaining is None or info.remaining > 0:
            return 0.0
        if info.reset_at is None:
            return float(self.fallback_wait)
        return compute_wait_seconds(info.reset_at, self.clock(), self.buffer_seconds)

    def _wait_for_quota(self) -> None:
        wait = self.wait_seconds()
        if wait > 0:
            logger.warning(f"Search quota exhausted, waiting {wait:.0f}s for the window to reset")
            self.sleep(wait)
        if self.rate_limit is not None and self.rate_limit.remaining == 0:
            self.rate_limit = None

    def search_page(self, query: str, max_results: Optional[int] = None,
                    since_id: Optional[str] = None) -> SearchPage:
        """
        Fetch one page of posts for a query.

        Args:
            query: Search query string
            max_results: Page size, defaults to SEARCH_MAX_RESULTS
            since_id: Lower bound post id; defaults to the query's cursor

        Returns:
            SearchPage: The page; an empty page is a normal outcome

        Raises:
            RateLimitError: When throttled more times than the retry budget allows
            SocialMediaError: For other search failures
        """
        max_results = max_results or settings.SEARCH_MAX_RESULTS
        if since_id is None:
            since_id = self.cursor_store.get(query)

        attempts = 0
        while True:
            self._wait_for_quota()
            try:
                page = self.client.search_recent(query, max_results, since_id)
                break
            except RateLimitError as e:
                if attempts >= self.max_retries:
                    logger.error(f"Search still throttled after {attempts} retries for query {query[:50]!r}")
                    raise
                attempts += 1
                if e.reset_at is not None:
                    wait = compute_wait_seconds(e.reset_at, self.clock(), self.buffer_seconds)
                else:
                    wait = float(self.fallback_wait)
                logger.warning(f"Search throttled, retry {attempts}/{self.max_retries} in {wait:.0f}s")
                self.rate_limit = None
                self.sleep(wait)

        if page.rate_limit is not None:
            self.rate_limit = page.rate_limit

        newest = _newest_id(page)
        if newest:
            self.cursor_store.set(query, newest)

        return page

    def search(self, query: str, max_results: Optional[int] = None,
               since_id: Optional[str] = None) -> List[SocialPost]:
        return self.search_page(query, max_results, since_id).posts
