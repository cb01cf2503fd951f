"""
Service Protocol Definitions

This module defines typing.Protocol interfaces for services used in the Event Scout
application. These protocols enable loose coupling, dependency injection, and easier testing.

Protocols defined:
- SearchClient: Query-string search returning one page of posts plus quota state
- PostingClient: Publish a text post and get the platform's post id back
- ParsingStrategy: Turn a post into event fields (regex or AI-assisted)
- Notifier: Tell downstream listeners about newly created events
"""

from typing import Protocol, Optional
from datetime import datetime

from data.models import SocialPost, SearchPage, ParsedEvent, StoredEvent


class SearchClient(Protocol):
    """Protocol defining the search call the retriever wraps.

    Implementations raise RateLimitError (carrying the reset epoch when known)
    on a throttling response and SearchError for any other failure.
    """

    def search_recent(self, query: str, max_results: int = 100,
                      since_id: Optional[str] = None) -> SearchPage:
        """Search recent posts.

        Args:
            query: Platform query string.
            max_results: Page size.
            since_id: Only return posts newer than this id.

        Returns:
            One page of posts, the media lookup and the endpoint's quota state.
        """
        ...


class PostingClient(Protocol):
    """Protocol for publishing text to the platform."""

    def create_post(self, text: str) -> str:
        """Publish a post.

        Args:
            text: The message body.

        Returns:
            The platform-assigned post id.

        Raises:
            RateLimitError: When throttled.
            PostingError: For any other failure.
        """
        ...


class ParsingStrategy(Protocol):
    """Protocol shared by the regex and AI-assisted parsing strategies."""

    name: str

    def parse(self, post: SocialPost, now: Optional[datetime] = None) -> Optional[ParsedEvent]:
        """Derive event fields from a post, or None when it holds no usable event."""
        ...


class Notifier(Protocol):
    """Protocol for new-event notifications."""

    def notify_event_created(self, event: StoredEvent) -> None:
        ...
