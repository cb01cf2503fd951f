"""
Bulk Ingestor Module

Deduplicates a batch of drafts against the content repository by external id,
bulk-inserts the rest, and reports {total, created, duplicates, failed}.
Activity tracking and notifications run afterwards on a background worker;
their failures are logged and never change the reported stats.
"""

import time
from concurrent.futures import ThreadPoolExecutor, Future, wait
from typing import Optional, List, Callable

from config import settings
from data.models import EventDraft, StoredEvent, IngestionStats
from data.protocols import EventStore, ActivityStore
from services.protocols import Notifier
from utils.helpers import chunked
from utils.logger import get_logger

logger = get_logger(__name__)


class BulkIngestor:
    """Dedupe, bulk write and side-effect dispatch for one batch of drafts."""

    def __init__(
        self,
        store: EventStore,
        activity_store: Optional[ActivityStore] = None,
        notifier: Optional[Notifier] = None,
        import_user_id: Optional[str] = None,
        activity_batch_size: Optional[int] = None,
        notification_batch_size: Optional[int] = None,
        notification_batch_delay: Optional[float] = None,
        background: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.activity_store = activity_store
        self.notifier = notifier
        self.import_user_id = import_user_id if import_user_id is not None else settings.IMPORT_USER_ID
        self.activity_batch_size = activity_batch_size or settings.ACTIVITY_BATCH_SIZE
        self.notification_batch_size = notification_batch_size or settings.NOTIFICATION_BATCH_SIZE
        self.notification_batch_delay = (settings.NOTIFICATION_BATCH_DELAY
                                         if notification_batch_delay is None else notification_batch_delay)
        self.sleep = sleep
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="side-effects") if background else None
        self._pending: List[Future] = []

    def ingest(self, drafts: List[EventDraft]) -> IngestionStats:
        """
        Persist a batch of drafts.

        Args:
            drafts: Validated drafts

        Returns:
            IngestionStats: created + duplicates + failed == total

        Raises:
            DatabaseError: If the repository cannot be reached at all
        """
        stats = IngestionStats(total=len(drafts))
        if not drafts:
            return stats

        external_ids = [d.source_external_id for d in drafts if d.source_external_id]
        existing = self.store.find_existing_external_ids(external_ids)

        candidates = []
        seen = set()
        for draft in drafts:
            external_id = draft.source_external_id
            if external_id and (external_id in existing or external_id in seen):
                stats.duplicates += 1
                continue
            if external_id:
                seen.add(external_id)
            candidates.append(draft)

        if candidates:
            result = self.store.bulk_insert(candidates)
            stats.created = min(len(result.succeeded), len(candidates))
            stats.failed = len(candidates) - stats.created

            for failure in result.failed:
                logger.debug(f"Insert refused for {failure.draft.source_external_id}: {failure.reason}")
            if stats.failed != len(result.failed):
                logger.warning(f"Bulk insert accounted for {len(result.succeeded) + len(result.failed)} "
                               f"of {len(candidates)} drafts; treating the rest as failed")
            if stats.failed:
                logger.warning(f"Partial bulk insert: {stats.created} created, {stats.failed} failed")

            if result.succeeded:
                self._dispatch_side_effects(list(result.succeeded))

        logger.info(f"Ingested batch: {stats.as_dict()}")
        return stats

    # -------------------------------------------------------------------------
    # Side effects
    # -------------------------------------------------------------------------

    def _dispatch_side_effects(self, events: List[StoredEvent]) -> None:
        if self._executor is None:
            self._run_side_effects(events)
            return
        self._pending.append(self._executor.submit(self._run_side_effects, events))

    def _run_side_effects(self, events: List[StoredEvent]) -> None:
        try:
            self.track_activity(events)
        except Exception as e:
            logger.error(f"Activity tracking failed: {e}", exc_info=True)
        try:
            self.send_notifications(events)
        except Exception as e:
            logger.error(f"Notification dispatch failed: {e}", exc_info=True)

    def track_activity(self, events: List[StoredEvent]) -> int:
        """Record an event_create activity per event for the importing user."""
        if self.activity_store is None or not self.import_user_id:
            return 0

        tracked = 0
        for batch in chunked(events, self.activity_batch_size):
            for event in batch:
                try:
                    self.activity_store.track_activity(
                        self.import_user_id,
                        "event_create",
                        event_id=event.event_id,
                        metadata={
                            "category": event.category,
                            "location": event.location,
                            "source": "bulk_import",
                        },
                    )
                    tracked += 1
                except Exception as e:
                    logger.warning(f"Could not track activity for event {event.event_id}: {e}")
        return tracked

    def send_notifications(self, events: List[StoredEvent]) -> int:
        """Notify in concurrent batches with a pause between batches."""
        if self.notifier is None or not getattr(self.notifier, "enabled", True):
            return 0

        sent = 0
        batches = list(chunked(events, self.notification_batch_size))
        for index, batch in enumerate(batches):
            with ThreadPoolExecutor(max_workers=len(batch)) as pool:
                futures = {pool.submit(self.notifier.notify_event_created, event): event for event in batch}
                for future, event in futures.items():
                    try:
                        future.result()
                        sent += 1
                    except Exception as e:
                        logger.warning(f"Notification for event {event.event_id} failed: {e}")
            if index < len(batches) - 1:
                self.sleep(self.notification_batch_delay)
        return sent

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for queued side effects to finish."""
        if not self._pending:
            return
        _, not_done = wait(self._pending, timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} side-effect jobs still running after {timeout}s")
        self._pending = list(not_done)

    def shutdown(self) -> None:
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
