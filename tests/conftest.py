"""
Shared Test Fixtures for Event Scout

This module provides common fixtures used across all test modules.
Fixtures include settings overrides, mock database connections, logging
capture, HTTP responses, an in-memory event store, and data factories.
"""

import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List, Iterable, Set
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.models import (
    SocialPost, EventDraft, StoredEvent, BulkWriteResult, FailedWrite
)

WAT = timezone(timedelta(hours=1))
LAGOS_SUMMIT_TEXT = "Join us for the Lagos AI Summit on 15 March 2025, free entry, register now!"


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def mock_settings(monkeypatch):
    """
    Override the settings module with test configuration values.

    Every module reads settings through `from config import settings`, so the
    attributes are patched on the real module and restored after the test.

    Usage:
        def test_something(mock_settings):
            mock_settings.ENABLE_PUBLISHING = True  # restored after the test
            # ... test code

    Returns:
        module: The settings module with safe test values.
    """
    from config import settings

    values = {
        # API Keys (use obvious test values)
        "GOOGLE_AI_API_KEY": "test-google-api-key",
        "TWITTER_API_KEY": "test-twitter-api-key",
        "TWITTER_API_KEY_SECRET": "test-twitter-api-secret",
        "TWITTER_ACCESS_TOKEN": "test-twitter-access-token",
        "TWITTER_ACCESS_TOKEN_SECRET": "test-twitter-access-secret",
        "TWITTER_BEARER_TOKEN": "test-twitter-bearer",

        # Database Settings
        "DB_SERVER": "test-server",
        "DB_NAME": "test-db",
        "DB_USER": "test-user",
        "DB_PASSWORD": "test-password",
        "DB_CONNECTION_STRING": "DRIVER={Test};SERVER=test-server;DATABASE=test-db;",

        # Side effects and switches
        "NOTIFICATION_WEBHOOK_URL": None,
        "IMPORT_USER_ID": None,
        "ENABLE_AI_PARSING": False,
        "ENABLE_PUBLISHING": False,
        "PERSIST_SEARCH_CURSORS": False,
    }
    for name, value in values.items():
        monkeypatch.setattr(settings, name, value)

    class _SettingsProxy:
        """Attribute writes go through monkeypatch so they are undone."""

        def __getattr__(self, name):
            return getattr(settings, name)

        def __setattr__(self, name, value):
            monkeypatch.setattr(settings, name, value)

    yield _SettingsProxy()


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def mock_db_connection():
    """
    Mock pyodbc database connection and cursor.

    This fixture provides a mock database connection that simulates
    pyodbc behavior without requiring an actual database connection.

    Usage:
        def test_database(mock_db_connection):
            conn, cursor = mock_db_connection
            cursor.fetchone.return_value = (1, datetime.now())
            # ... test code

    Returns:
        tuple: A tuple of (mock_connection, mock_cursor).
    """
    mock_cursor = MagicMock()
    mock_cursor.fetchall.return_value = []
    mock_cursor.fetchone.return_value = None
    mock_cursor.rowcount = 0

    mock_conn = MagicMock()
    mock_conn.cursor.return_value = mock_cursor
    mock_conn.commit.return_value = None
    mock_conn.rollback.return_value = None
    mock_conn.close.return_value = None

    with patch('pyodbc.connect', return_value=mock_conn):
        yield mock_conn, mock_cursor


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Captures actual log records from the application's logger hierarchy.

    Returns:
        list: A list that will contain captured log records.
    """
    import logging

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    root_logger = logging.getLogger()
    original_level = root_logger.level
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(handler)

    yield handler.records

    root_logger.removeHandler(handler)
    root_logger.setLevel(original_level)


# =============================================================================
# HTTP Response Fixtures
# =============================================================================

@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    Usage:
        def test_http_request(mock_http_response):
            response = mock_http_response(
                status_code=200,
                json_data={'key': 'value'},
                headers={'x-rate-limit-remaining': '10'}
            )

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(
        status_code: int = 200,
        json_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        reason: str = 'OK',
    ) -> MagicMock:
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.reason = reason
        mock_response.headers = headers or {}
        mock_response.ok = 200 <= status_code < 300

        if json_data is not None:
            mock_response.json.return_value = json_data
        else:
            mock_response.json.side_effect = ValueError("No JSON data")

        if status_code >= 400:
            from requests.exceptions import HTTPError
            mock_response.raise_for_status.side_effect = HTTPError(
                f"{status_code} Error",
                response=mock_response
            )
        else:
            mock_response.raise_for_status.return_value = None

        return mock_response

    return _create_response


# =============================================================================
# Time Fixtures
# =============================================================================

class FakeSleep:
    """Records requested sleeps instead of sleeping."""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def fixed_now():
    """A reference time: 1 January 2025, 09:00 UTC (a Wednesday)."""
    return datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


# =============================================================================
# Data Model Factories
# =============================================================================

@pytest.fixture
def post_factory(fixed_now):
    """
    Factory fixture for creating SocialPost test objects.

    Usage:
        def test_post(post_factory):
            post = post_factory(text="Hackathon in Lagos next Friday")

    Returns:
        callable: A factory function for creating SocialPost objects.
    """
    counter = {"next": 1000}

    def _create_post(
        text: str = LAGOS_SUMMIT_TEXT,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        author_id: Optional[str] = "42",
        media_keys: Optional[List[str]] = None,
        urls: Optional[List[str]] = None,
    ) -> SocialPost:
        if id is None:
            counter["next"] += 1
            id = str(counter["next"])
        return SocialPost(
            id=id,
            text=text,
            created_at=created_at or fixed_now,
            author_id=author_id,
            media_keys=media_keys or [],
            urls=urls or [],
        )

    return _create_post


@pytest.fixture
def draft_factory():
    """
    Factory fixture for creating EventDraft test objects.

    Returns:
        callable: A factory function for creating valid EventDraft objects.
    """
    def _create_draft(
        source_external_id: Optional[str] = "1001",
        title: str = "Lagos Developer Conference 2025",
        description: str = "A full day of talks and workshops for software developers across Nigeria.",
        date: Optional[datetime] = None,
        location: str = "Lagos",
        **kwargs
    ) -> EventDraft:
        return EventDraft(
            title=title,
            description=description,
            date=date or datetime(2025, 3, 15, 10, 0, tzinfo=WAT),
            location=location,
            source_external_id=source_external_id,
            **kwargs
        )

    return _create_draft


@pytest.fixture
def stored_event_factory(draft_factory):
    """
    Factory fixture for creating StoredEvent test objects.

    Returns:
        callable: A factory function for creating StoredEvent objects.
    """
    def _create_event(event_id: int = 1, upvotes: int = 0, status: str = "approved", **kwargs) -> StoredEvent:
        draft_fields = {k: v for k, v in kwargs.items() if k in EventDraft.__dataclass_fields__}
        extra = {k: v for k, v in kwargs.items() if k not in draft_fields}
        draft = draft_factory(source_external_id=str(5000 + event_id), status=status, **draft_fields)
        return StoredEvent.from_draft(draft, event_id=event_id, upvotes=upvotes, **extra)

    return _create_event


# =============================================================================
# Dependency Injection Fixtures
# =============================================================================

class InMemoryEventStore:
    """In-memory implementation of the EventStore, ActivityStore and CursorStorage protocols.

    Enforces the sparse uniqueness of external ids the way the real
    repository does, and can be told to refuse specific ids.

    Usage:
        def test_with_store(memory_store):
            memory_store.refuse_ids = {"1002"}
            result = memory_store.bulk_insert(drafts)
    """

    def __init__(self):
        self.events: Dict[int, StoredEvent] = {}
        self.activities: List[Dict[str, Any]] = []
        self.cursors: Dict[str, str] = {}
        self.refuse_ids: Set[str] = set()
        self.drop_from_report: Set[str] = set()
        self.lookup_calls: List[List[str]] = []
        self.insert_calls: List[List[EventDraft]] = []
        self.calls: List[tuple] = []
        self._next_id = 1

    # EventStore

    def find_existing_external_ids(self, external_ids: Iterable[str]) -> Set[str]:
        ids = list(external_ids)
        self.lookup_calls.append(ids)
        stored = {e.source_external_id for e in self.events.values() if e.source_external_id}
        return stored.intersection(ids)

    def bulk_insert(self, drafts: List[EventDraft]) -> BulkWriteResult:
        self.insert_calls.append(list(drafts))
        result = BulkWriteResult()
        for draft in drafts:
            external_id = draft.source_external_id
            stored_ids = {e.source_external_id for e in self.events.values()}
            if external_id in self.refuse_ids:
                result.failed.append(FailedWrite(draft=draft, reason="refused"))
                continue
            if external_id and external_id in stored_ids:
                result.failed.append(FailedWrite(draft=draft, reason="duplicate key"))
                continue
            event = StoredEvent.from_draft(draft, event_id=self._next_id,
                                           created_at=datetime.now(timezone.utc))
            self.events[self._next_id] = event
            self._next_id += 1
            if external_id not in self.drop_from_report:
                result.succeeded.append(event)
        return result

    def find_publishable(self, limit: int = 10) -> List[StoredEvent]:
        now = datetime.now(timezone.utc)
        eligible = [
            e for e in self.events.values()
            if e.status == "approved" and not e.posted_to_x and e.post_pending_at is None and e.date >= now
        ]
        eligible.sort(key=lambda e: (e.date, -e.upvotes))
        return eligible[:limit]

    def find_in_doubt_posts(self) -> List[StoredEvent]:
        return [e for e in self.events.values() if e.post_pending_at is not None and not e.posted_to_x]

    def mark_post_pending(self, event_id: int) -> None:
        self.calls.append(("pending", event_id))
        self.events[event_id].post_pending_at = datetime.now(timezone.utc)

    def clear_post_pending(self, event_id: int) -> None:
        self.calls.append(("clear", event_id))
        self.events[event_id].post_pending_at = None

    def mark_posted(self, event_id: int, posted_at: datetime) -> None:
        self.calls.append(("posted", event_id))
        event = self.events[event_id]
        event.posted_to_x = True
        event.posted_to_x_at = posted_at
        event.post_pending_at = None

    def add(self, event: StoredEvent) -> StoredEvent:
        """Seed a stored event directly."""
        if event.event_id is None:
            event.event_id = self._next_id
        self.events[event.event_id] = event
        self._next_id = max(self._next_id, event.event_id + 1)
        return event

    # ActivityStore

    def track_activity(self, user_id: str, action: str, event_id: Optional[int] = None,
                       metadata: Optional[Dict[str, Any]] = None) -> None:
        self.activities.append({
            "user_id": user_id, "action": action, "event_id": event_id, "metadata": metadata,
        })

    # CursorStorage

    def get_search_cursor(self, query: str) -> Optional[str]:
        return self.cursors.get(query)

    def set_search_cursor(self, query: str, last_seen_id: str) -> None:
        self.cursors[query] = last_seen_id


@pytest.fixture
def memory_store():
    """
    Provide an in-memory event store for DI testing.

    Returns:
        InMemoryEventStore: An empty store.
    """
    return InMemoryEventStore()
