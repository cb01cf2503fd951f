"""
Publisher Module

Formats approved events into length-bounded posts and publishes them, soonest
first, in small concurrent batches. A pending marker is stored before each
post attempt and replaced by the posted flag on success, so a crash between
posting and marking leaves a detectable in-doubt record.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Optional, Callable

from config import settings
from config.keyword_lists import MONTH_NAMES, WEEKDAY_NAMES
from data.models import StoredEvent
from data.protocols import EventStore
from services.protocols import PostingClient
from utils.exceptions import RateLimitError, SocialMediaError, DatabaseError
from utils.helpers import truncate_at_word, chunked, utc_now
from utils.logger import get_logger

logger = get_logger(__name__)


def format_event_date(value: datetime, utc_offset_hours: Optional[int] = None) -> str:
    """Format as e.g. "Saturday, March 15, 2025 at 10:00 AM" in the event timezone."""
    offset = settings.EVENT_UTC_OFFSET_HOURS if utc_offset_hours is None else utc_offset_hours
    tz = timezone(timedelta(hours=offset))
    local = value.astimezone(tz) if value.tzinfo else value.replace(tzinfo=tz)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (f"{WEEKDAY_NAMES[local.weekday()].title()}, {MONTH_NAMES[local.month - 1].title()} "
            f"{local.day}, {local.year} at {hour}:{local.minute:02d} {meridiem}")


def format_event_message(record: StoredEvent, max_length: Optional[int] = None,
                         hashtags: Optional[str] = None) -> str:
    """
    Build the post text for an event.

    Header lines come first, then as much of the description as fits in what
    is left after reserving room for the link and hashtags. A cut description
    ends on a whole word followed by an ellipsis.

    Args:
        record: The event to announce
        max_length: Platform character limit
        hashtags: Fixed hashtags appended at the end

    Returns:
        str: The message, never longer than max_length
    """
    max_length = max_length or settings.TWITTER_CHARACTER_LIMIT
    hashtags = settings.POST_HASHTAGS if hashtags is None else hashtags

    message = f"\U0001F389 Upcoming: {record.title}\n"
    message += f"\U0001F4C5 {format_event_date(record.date)}\n"
    message += f"\U0001F4CD {record.location}\n"
    message += "\U0001F4B0 FREE!\n" if record.is_free else "\U0001F4B0 Ticketed\n"

    link_part = f"\n\U0001F517 {record.link}" if record.link else ""

    remaining = max_length - len(message) - len(link_part) - len(hashtags) - settings.POST_RESERVED_CHARS
    if record.description and remaining > settings.POST_MIN_DESCRIPTION_SPACE:
        description = truncate_at_word(record.description.strip(), remaining)
        if description:
            message += f"\n{description}\n"

    message += f"{link_part}\n\n{hashtags}"
    return message[:max_length]


class Publisher:
    """Posts approved events back to the platform."""

    def __init__(
        self,
        store: EventStore,
        poster: PostingClient,
        max_length: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
        fetch_limit: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.poster = poster
        self.max_length = max_length or settings.TWITTER_CHARACTER_LIMIT
        self.max_retries = settings.POST_MAX_RETRIES if max_retries is None else max_retries
        self.retry_backoff = settings.POST_RETRY_BACKOFF_SECONDS if retry_backoff is None else retry_backoff
        self.batch_size = batch_size or settings.PUBLISH_BATCH_SIZE
        self.batch_delay = settings.PUBLISH_BATCH_DELAY if batch_delay is None else batch_delay
        self.fetch_limit = fetch_limit or settings.PUBLISH_FETCH_LIMIT
        self.sleep = sleep
        self.clock = clock
        # The repository connection is not shared across threads
        self._store_lock = threading.Lock()

    def publish(self, record: StoredEvent) -> str:
        """
        Post one event and mark it posted.

        Args:
            record: An approved, unposted, future-dated event

        Returns:
            str: The platform post id

        Raises:
            RateLimitError: If still throttled after the retry budget
            SocialMediaError: If the platform refuses the post
        """
        message = format_event_message(record, self.max_length)

        with self._store_lock:
            self.store.mark_post_pending(record.event_id)

        attempts = 0
        while True:
            try:
                post_id = self.poster.create_post(message)
                break
            except RateLimitError:
                if attempts >= self.max_retries:
                    logger.error(f"Still throttled posting event {record.event_id}, giving up")
                    self._clear_pending(record)
                    raise
                attempts += 1
                logger.warning(f"Throttled posting event {record.event_id}, retrying in {self.retry_backoff}s")
                self.sleep(self.retry_backoff)
            except SocialMediaError:
                self._clear_pending(record)
                raise

        try:
            with self._store_lock:
                self.store.mark_posted(record.event_id, self.clock())
        except DatabaseError as e:
            logger.error(f"Event {record.event_id} was posted as {post_id} but could not be marked posted; "
                         f"it stays pending for review: {e}")

        logger.info(f"Published event {record.event_id}: {record.title}")
        return post_id

    def _clear_pending(self, record: StoredEvent) -> None:
        try:
            with self._store_lock:
                self.store.clear_post_pending(record.event_id)
        except DatabaseError as e:
            logger.error(f"Could not clear pending marker for event {record.event_id}: {e}")

    def report_in_doubt(self) -> int:
        """Log events whose earlier post attempt was never confirmed."""
        in_doubt = self.store.find_in_doubt_posts()
        for record in in_doubt:
            logger.warning(f"Event {record.event_id} ({record.title}) has an unconfirmed post attempt "
                           f"from {record.post_pending_at}; check the account before clearing it")
        return len(in_doubt)

    def publish_approved(self) -> int:
        """
        Publish eligible events, soonest first, ties broken by upvotes.

        Returns:
            int: Number of events posted
        """
        self.report_in_doubt()

        records = self.store.find_publishable(self.fetch_limit)
        records = sorted(records, key=lambda r: (r.date, -r.upvotes))
        if not records:
            logger.info("No events waiting to be published")
            return 0

        posted = 0
        batches = list(chunked(records, self.batch_size))
        for index, batch in enumerate(batches):
            with ThreadPoolExecutor(max_workers=len(batch)) as pool:
                futures = {pool.submit(self.publish, record): record for record in batch}
                for future, record in futures.items():
                    try:
                        future.result()
                        posted += 1
                    except Exception as e:
                        logger.error(f"Failed to publish event {record.event_id}: {e}")
            if index < len(batches) - 1:
                self.sleep(self.batch_delay)

        logger.info(f"Published {posted} of {len(records)} events")
        return posted
