"""
Database Module for Event Scout

This module handles all database connections and operations for Event Scout.
It implements the content repository interface (existence lookups, unordered
bulk inserts, publishable-record queries and posting markers) against SQL
Server, plus activity tracking and durable search cursors.
"""

import json
import pyodbc
import pandas as pd
import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Iterable, Set

from config import settings
from data.models import EventDraft, StoredEvent, BulkWriteResult, FailedWrite
from utils.exceptions import QueryError
from utils.exceptions import ConnectionError as DatabaseConnectionError
from utils.helpers import chunked

logger = logging.getLogger(__name__)

EVENT_COLUMNS = """
    Event_ID, Title, Description, Event_Date, Location, Category, Is_Free, Link,
    Source_Type, Source_External_ID, Source_URL, Image_URLs, Status, Upvotes,
    Posted_To_X, Posted_To_X_At, Post_Pending_At, Created_At, Updated_At
"""

INSERT_EVENT_SQL = """
INSERT INTO [dbo].[tbl_Events]
    (Title, Description, Event_Date, Location, Category, Is_Free, Link,
     Source_Type, Source_External_ID, Source_URL, Image_URLs, Status)
OUTPUT INSERTED.Event_ID, INSERTED.Created_At
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Store instants as naive UTC in DATETIME2 columns."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _row_to_event(row: Dict[str, Any]) -> StoredEvent:
    """Convert a tbl_Events row into a StoredEvent."""
    image_urls = []
    if row.get("Image_URLs"):
        try:
            image_urls = json.loads(row["Image_URLs"])
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed Image_URLs for event {row.get('Event_ID')}")

    def _optional_str(value):
        if value is None:
            return None
        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            pass
        return str(value)

    return StoredEvent(
        title=row["Title"],
        description=row.get("Description") or "",
        date=_from_db_datetime(row["Event_Date"]),
        location=row.get("Location") or "",
        category=row.get("Category") or settings.DEFAULT_CATEGORY,
        is_free=bool(row.get("Is_Free")),
        link=_optional_str(row.get("Link")),
        source_external_id=_optional_str(row.get("Source_External_ID")),
        source_url=_optional_str(row.get("Source_URL")),
        image_urls=image_urls,
        source_type=row.get("Source_Type") or "x",
        status=row.get("Status") or "pending",
        event_id=int(row["Event_ID"]),
        created_at=_from_db_datetime(row.get("Created_At")),
        updated_at=_from_db_datetime(row.get("Updated_At")),
        upvotes=int(row.get("Upvotes") or 0),
        posted_to_x=bool(row.get("Posted_To_X")),
        posted_to_x_at=_from_db_datetime(row.get("Posted_To_X_At")),
        post_pending_at=_from_db_datetime(row.get("Post_Pending_At")),
    )


class DatabaseConnection:
    """Database connection manager and content repository for Event Scout."""

    def __init__(self, connection_string: Optional[str] = None):
        """Initialize the database connection."""
        self.connection_string = connection_string or settings.DB_CONNECTION_STRING
        self.conn = None
        pyodbc.pooling = False

    def connect(self) -> bool:
        """
        Establish a connection to the database.

        Returns:
            bool: True if connection was successful, False otherwise.

        Raises:
            DatabaseConnectionError: Re-raised untouched if the driver layer raises it.
        """
        try:
            self.conn = pyodbc.connect(self.connection_string, autocommit=False)
            self.conn.setdecoding(pyodbc.SQL_CHAR, encoding='utf-8')
            logger.info("Successfully connected to database")
            return True
        except DatabaseConnectionError:
            raise
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            self.conn = None
            return False

    def close(self) -> None:
        """Close the database connection."""
        try:
            if self.conn:
                self.conn.close()
                logger.info("Database connection closed")
        except Exception as e:
            logger.error(f"Error closing database connection: {e}")
        finally:
            self.conn = None

    def _require_connection(self):
        if not self.conn and not self.connect():
            raise DatabaseConnectionError("Content repository is unreachable")
        return self.conn

    def _execute(self, query: str, params: Optional[tuple] = None) -> None:
        """Run a write statement and commit, raising QueryError on failure."""
        conn = self._require_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params or ())
            conn.commit()
        except pyodbc.Error as e:
            try:
                conn.rollback()
            except pyodbc.Error:
                logger.warning("Rollback failed after query error")
            raise QueryError(f"Query failed: {e}") from e

    def _read_frame(self, query: str, params: Optional[list] = None) -> pd.DataFrame:
        conn = self._require_connection()
        try:
            return pd.read_sql(query, conn, params=params)
        except Exception as e:
            raise QueryError(f"Read query failed: {e}") from e

    # -------------------------------------------------------------------------
    # EventStore
    # -------------------------------------------------------------------------

    def find_existing_external_ids(self, external_ids: Iterable[str]) -> Set[str]:
        """
        Look up which external source ids already have a stored record.

        Args:
            external_ids: Source ids to check. Empty values are ignored.

        Returns:
            Set[str]: The ids that are already stored.
        """
        ids = sorted({str(i) for i in external_ids if i})
        if not ids:
            return set()

        existing = set()
        for batch in chunked(ids, settings.DB_ID_LOOKUP_CHUNK):
            placeholders = ", ".join("?" for _ in batch)
            query = (
                "SELECT Source_External_ID FROM [dbo].[tbl_Events] "
                f"WHERE Source_External_ID IN ({placeholders})"
            )
            frame = self._read_frame(query, params=batch)
            existing.update(str(v) for v in frame["Source_External_ID"].tolist())

        logger.debug(f"{len(existing)} of {len(ids)} external ids already stored")
        return existing

    def bulk_insert(self, drafts: List[EventDraft]) -> BulkWriteResult:
        """
        Insert drafts in one transaction, continuing past per-row failures.

        A row that violates the unique external-id index (or any other
        constraint) is reported as failed while the remaining rows go ahead.
        A lost connection or failed commit aborts the whole batch.

        Args:
            drafts: Drafts to persist.

        Returns:
            BulkWriteResult: Stored records and refused drafts with reasons.
        """
        result = BulkWriteResult()
        if not drafts:
            return result

        conn = self._require_connection()
        cursor = conn.cursor()

        for draft in drafts:
            params = (
                draft.title,
                draft.description,
                _to_db_datetime(draft.date),
                draft.location,
                draft.category,
                1 if draft.is_free else 0,
                draft.link,
                draft.source_type,
                draft.source_external_id,
                draft.source_url,
                json.dumps(draft.image_urls or []),
                draft.status,
            )
            try:
                cursor.execute(INSERT_EVENT_SQL, params)
                row = cursor.fetchone()
                created_at = _from_db_datetime(row[1]) if row else None
                result.succeeded.append(StoredEvent.from_draft(
                    draft,
                    event_id=int(row[0]) if row else None,
                    created_at=created_at,
                    updated_at=created_at,
                ))
            except pyodbc.IntegrityError as e:
                result.failed.append(FailedWrite(draft=draft, reason=f"constraint violation: {e}"))
            except (pyodbc.OperationalError, pyodbc.InterfaceError) as e:
                self._rollback_quietly()
                raise DatabaseConnectionError(f"Connection lost during bulk insert: {e}") from e
            except pyodbc.Error as e:
                result.failed.append(FailedWrite(draft=draft, reason=str(e)))

        try:
            conn.commit()
        except pyodbc.Error as e:
            self._rollback_quietly()
            raise QueryError(f"Bulk insert commit failed: {e}") from e

        logger.info(f"Bulk insert stored {len(result.succeeded)} events, refused {len(result.failed)}")
        return result

    def _rollback_quietly(self) -> None:
        try:
            if self.conn:
                self.conn.rollback()
        except pyodbc.Error:
            logger.warning("Rollback failed")

    def find_publishable(self, limit: int = 10) -> List[StoredEvent]:
        """
        Retrieve approved, unposted, future-dated events ready for posting.

        Records with an unresolved post-pending marker are excluded.

        Args:
            limit: Maximum number of records to return.

        Returns:
            List[StoredEvent]: Sorted by date ascending, then upvotes descending.
        """
        query = f"""
        SELECT TOP (?) {EVENT_COLUMNS}
        FROM [dbo].[tbl_Events]
        WHERE Status = 'approved'
          AND Posted_To_X = 0
          AND Post_Pending_At IS NULL
          AND Event_Date >= SYSUTCDATETIME()
        ORDER BY Event_Date ASC, Upvotes DESC
        """
        frame = self._read_frame(query, params=[int(limit)])
        return [_row_to_event(row) for row in frame.to_dict(orient="records")]

    def find_in_doubt_posts(self) -> List[StoredEvent]:
        """Retrieve events whose post attempt started but was never confirmed."""
        query = f"""
        SELECT {EVENT_COLUMNS}
        FROM [dbo].[tbl_Events]
        WHERE Post_Pending_At IS NOT NULL AND Posted_To_X = 0
        ORDER BY Post_Pending_At ASC
        """
        frame = self._read_frame(query)
        return [_row_to_event(row) for row in frame.to_dict(orient="records")]

    def mark_post_pending(self, event_id: int) -> None:
        self._execute(
            "UPDATE [dbo].[tbl_Events] SET Post_Pending_At = SYSUTCDATETIME() WHERE Event_ID = ?",
            (event_id,)
        )

    def clear_post_pending(self, event_id: int) -> None:
        self._execute(
            "UPDATE [dbo].[tbl_Events] SET Post_Pending_At = NULL WHERE Event_ID = ?",
            (event_id,)
        )

    def mark_posted(self, event_id: int, posted_at: datetime) -> None:
        """
        Mark an event as posted to X.

        Args:
            event_id: The event's internal id.
            posted_at: When the post succeeded.
        """
        self._execute(
            """
            UPDATE [dbo].[tbl_Events]
            SET Posted_To_X = 1,
                Posted_To_X_At = ?,
                Post_Pending_At = NULL,
                Updated_At = SYSUTCDATETIME()
            WHERE Event_ID = ?
            """,
            (_to_db_datetime(posted_at), event_id)
        )
        logger.info(f"Marked event {event_id} as posted")

    # -------------------------------------------------------------------------
    # ActivityStore
    # -------------------------------------------------------------------------

    def track_activity(self, user_id: str, action: str, event_id: Optional[int] = None,
                       metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record one user activity row."""
        self._execute(
            """
            INSERT INTO [dbo].[tbl_User_Activity] (User_ID, Action, Event_ID, Metadata)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, action, event_id, json.dumps(metadata or {}))
        )

    # -------------------------------------------------------------------------
    # CursorStorage
    # -------------------------------------------------------------------------

    def get_search_cursor(self, query: str) -> Optional[str]:
        frame = self._read_frame(
            "SELECT Last_Seen_ID FROM [dbo].[tbl_Search_Cursors] WHERE Query_Text = ?",
            params=[query]
        )
        if frame.empty:
            return None
        return str(frame.iloc[0]["Last_Seen_ID"])

    def set_search_cursor(self, query: str, last_seen_id: str) -> None:
        self._execute(
            """
            MERGE [dbo].[tbl_Search_Cursors] AS target
            USING (SELECT ? AS Query_Text, ? AS Last_Seen_ID) AS source
            ON target.Query_Text = source.Query_Text
            WHEN MATCHED THEN
                UPDATE SET Last_Seen_ID = source.Last_Seen_ID, Updated_At = SYSUTCDATETIME()
            WHEN NOT MATCHED THEN
                INSERT (Query_Text, Last_Seen_ID) VALUES (source.Query_Text, source.Last_Seen_ID);
            """,
            (query, last_seen_id)
        )


# Create a default database instance for use throughout the application
db = DatabaseConnection()
