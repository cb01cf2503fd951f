"""
Data Layer Protocol Definitions

This module defines typing.Protocol interfaces for data layer operations.
These protocols enable dependency injection for database operations,
making services testable without real database connections.

Protocols defined:
- EventStore: The narrow content-repository interface the pipeline needs
- ActivityStore: Per-user activity tracking
- CursorStorage: Durable last-seen post ids per search query
"""

from typing import Protocol, Optional, List, Dict, Any, Iterable, Set
from datetime import datetime

from data.models import EventDraft, StoredEvent, BulkWriteResult


class EventStore(Protocol):
    """Protocol defining the content repository operations used by the pipeline.

    The repository enforces at most one record per external source id; records
    without one (created manually) are exempt. This subsystem only inserts
    records and toggles their posting markers, it never edits content fields.
    """

    def find_existing_external_ids(self, external_ids: Iterable[str]) -> Set[str]:
        """Return the subset of external ids that already have a stored record.

        Args:
            external_ids: Candidate source ids.

        Returns:
            Set of ids already stored.
        """
        ...

    def bulk_insert(self, drafts: List[EventDraft]) -> BulkWriteResult:
        """Insert drafts, continuing past individual failures.

        Args:
            drafts: Drafts to persist.

        Returns:
            Which drafts were stored and which were refused, with reasons.
        """
        ...

    def find_publishable(self, limit: int = 10) -> List[StoredEvent]:
        """Approved, unposted, future-dated records, soonest first then most upvoted.

        Args:
            limit: Maximum number of records to return.

        Returns:
            Records eligible for publishing.
        """
        ...

    def find_in_doubt_posts(self) -> List[StoredEvent]:
        """Records marked as being posted that were never confirmed as posted."""
        ...

    def mark_post_pending(self, event_id: int) -> None:
        """Record that a post attempt for this record is about to start."""
        ...

    def clear_post_pending(self, event_id: int) -> None:
        """Remove the pending marker after a post attempt that definitely failed."""
        ...

    def mark_posted(self, event_id: int, posted_at: datetime) -> None:
        """Set the posted flag and timestamp, clearing the pending marker."""
        ...


class ActivityStore(Protocol):
    """Protocol for recording user activity against stored events."""

    def track_activity(
        self,
        user_id: str,
        action: str,
        event_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record one activity entry.

        Args:
            user_id: The acting user.
            action: Activity name, e.g. 'event_create'.
            event_id: The event the activity refers to.
            metadata: Extra JSON-serializable details.
        """
        ...


class CursorStorage(Protocol):
    """Protocol for durable per-query search cursors."""

    def get_search_cursor(self, query: str) -> Optional[str]:
        ...

    def set_search_cursor(self, query: str, last_seen_id: str) -> None:
        ...
