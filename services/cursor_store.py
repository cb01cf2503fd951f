"""
Cursor Store Module

Maps each search query to the newest post id already retrieved for it, so the
next retrieval only asks for newer posts. The in-memory store is lost on
restart; the persisted store also writes through to the content repository.
"""

from typing import Optional, Dict

from data.protocols import CursorStorage
from utils.exceptions import DatabaseError
from utils.logger import get_logger

logger = get_logger(__name__)


class CursorStore:
    """Process-wide query -> last-seen post id map, owned by the retriever."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._cursors: Dict[str, str] = dict(initial or {})

    def get(self, query: str) -> Optional[str]:
        return self._cursors.get(query)

    def set(self, query: str, last_seen_id: str) -> None:
        self._cursors[query] = last_seen_id

    def snapshot(self) -> Dict[str, str]:
        return dict(self._cursors)

    def __len__(self) -> int:
        return len(self._cursors)


class PersistentCursorStore(CursorStore):
    """
    Cursor store backed by durable storage.

    Reads fall back to storage the first time a query is seen. Storage errors
    are logged and the in-memory value is used, since a lost cursor only
    causes already-stored posts to be fetched again.
    """

    def __init__(self, storage: CursorStorage):
        super().__init__()
        self.storage = storage
        self._loaded = set()

    def get(self, query: str) -> Optional[str]:
        if query not in self._loaded:
            self._loaded.add(query)
            try:
                stored = self.storage.get_search_cursor(query)
            except DatabaseError as e:
                logger.warning(f"Could not load search cursor: {e}")
                stored = None
            if stored and query not in self._cursors:
                self._cursors[query] = stored
        return super().get(query)

    def set(self, query: str, last_seen_id: str) -> None:
        super().set(query, last_seen_id)
        self._loaded.add(query)
        try:
            self.storage.set_search_cursor(query, last_seen_id)
        except DatabaseError as e:
            logger.warning(f"Could not persist search cursor: {e}")
