"""
Event Scout Application

This is the main entry point for Event Scout.
It searches X for posts announcing Nigerian tech events, filters and parses
them into event drafts, stores new ones, and optionally posts approved
events back to X. Runs once or on a schedule.

Version: 1.0
"""

import sys
import time
import argparse
import logging
from datetime import datetime
from typing import Optional, List, Callable

import schedule

from config import settings
from config.validators import validate_settings, get_config_summary
from utils.logger import get_logger, setup_file_logging
from utils.exceptions import (
    EventScoutError, AIServiceError, SocialMediaError, ExtractionError
)
from data.models import PassReport
from services.ai_service import AIService
from services.classifier import EventClassifier
from services.cursor_store import CursorStore, PersistentCursorStore
from services.extractor import EventExtractor, RegexStrategy, AIStrategy
from services.ingestor import BulkIngestor
from services.notification_service import NotificationService
from services.publisher import Publisher, format_event_message
from services.retriever import RateLimitedRetriever
from services.twitter_service import TwitterService
from services.validator import is_valid_draft

# Set up logging
logger = get_logger(__name__)


class EventScout:
    """
    Main application class for Event Scout.

    This class wires the pipeline together and runs its two passes:
    ingestion (search, classify, extract, validate, bulk ingest) and
    publishing (post approved events back to X).
    """

    def __init__(
        self,
        store=None,
        twitter_service=None,
        classifier: Optional[EventClassifier] = None,
        extractor: Optional[EventExtractor] = None,
        retriever: Optional[RateLimitedRetriever] = None,
        ingestor: Optional[BulkIngestor] = None,
        publisher: Optional[Publisher] = None,
        queries: Optional[List[str]] = None,
        test_mode: bool = False,
        publishing_enabled: Optional[bool] = None,
        validate: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize Event Scout, building any service not passed in from settings."""
        # Validate settings
        if validate:
            validate_settings()
            logger.info(f"Configuration: {get_config_summary()}")

        if store is None:
            from data.database import db
            store = db

        self.store = store
        self.test_mode = test_mode
        self.publishing_enabled = settings.ENABLE_PUBLISHING if publishing_enabled is None else publishing_enabled
        self.queries = list(queries if queries is not None else settings.SEARCH_QUERIES)
        self.sleep = sleep

        self.twitter_service = twitter_service or TwitterService()
        self.classifier = classifier or EventClassifier()
        self.extractor = extractor or EventExtractor(strategy=self._build_strategy())

        if retriever is None:
            cursor_store = PersistentCursorStore(store) if settings.PERSIST_SEARCH_CURSORS else CursorStore()
            retriever = RateLimitedRetriever(self.twitter_service, cursor_store, sleep=sleep)
        self.retriever = retriever

        self.ingestor = ingestor or BulkIngestor(
            store, activity_store=store, notifier=NotificationService(), sleep=sleep
        )
        self.publisher = publisher or Publisher(store, self.twitter_service, sleep=sleep)

    @staticmethod
    def _build_strategy():
        if not settings.ENABLE_AI_PARSING or not settings.GOOGLE_AI_API_KEY:
            logger.info("Using regex event parsing")
            return RegexStrategy()
        try:
            strategy = AIStrategy(AIService())
            logger.info("Using AI-assisted event parsing with regex fallback")
            return strategy
        except AIServiceError as e:
            logger.warning(f"AI parsing unavailable, using regex parsing only: {e}")
            return RegexStrategy()

    def run_ingestion_pass(self, now: Optional[datetime] = None) -> PassReport:
        """
        Run one ingestion pass over every configured query.

        A failed query is logged and skipped. Rejected posts are counted, never raised.

        Args:
            now: Reference time for relative dates and staleness, defaults to the current time

        Returns:
            PassReport: What the pass did

        Raises:
            DatabaseError: If the content repository is unreachable
        """
        started = time.monotonic()
        report = PassReport(queries=len(self.queries))
        seen_ids = set()
        drafts = []

        for index, query in enumerate(self.queries):
            if index > 0:
                self.sleep(settings.INTER_QUERY_DELAY_SECONDS)

            try:
                page = self.retriever.search_page(query)
            except SocialMediaError as e:
                report.failed_queries += 1
                logger.error(f"Search failed for query {query[:60]!r}: {e}")
                continue

            report.fetched += len(page.posts)
            logger.info(f"Query {index + 1}/{len(self.queries)} returned {len(page.posts)} posts")

            for post in page.posts:
                if post.id in seen_ids:
                    report.skipped_seen += 1
                    continue
                seen_ids.add(post.id)

                accepted, reason = self.classifier.classify(post.text)
                if not accepted:
                    report.rejected[reason] = report.rejected.get(reason, 0) + 1
                    logger.debug(f"Post {post.id} rejected at {reason} gate")
                    continue

                try:
                    draft = self.extractor.extract(post, page.media, now=now)
                except ExtractionError as e:
                    report.extraction_errors += 1
                    logger.warning(str(e))
                    continue

                if draft is None:
                    report.not_extracted += 1
                    continue

                if not is_valid_draft(draft, now):
                    report.invalid += 1
                    continue

                drafts.append(draft)

        report.drafts = len(drafts)

        if self.test_mode:
            for draft in drafts:
                logger.info(f"TEST MODE: Would ingest: {draft.title} | {draft.date.isoformat()} | "
                            f"{draft.location} | {draft.category}")
        else:
            report.stats = self.ingestor.ingest(drafts)
            self.ingestor.flush()

        report.duration_seconds = time.monotonic() - started
        logger.info(f"Ingestion pass complete: {report.summary()}")
        return report

    def run_publish_pass(self) -> int:
        """
        Publish approved events, or log what would be posted in test mode.

        Returns:
            int: Number of events posted
        """
        if self.test_mode:
            for record in self.store.find_publishable(settings.PUBLISH_FETCH_LIMIT):
                logger.info(f"TEST MODE: Would post event {record.event_id}:\n{format_event_message(record)}")
            return 0

        if not self.publishing_enabled:
            logger.info("Publishing disabled, skipping publish pass")
            return 0

        return self.publisher.publish_approved()

    def _run_job(self, name: str, job: Callable):
        """Run a scheduled job, logging hard failures so the scheduler keeps going."""
        try:
            return job()
        except EventScoutError as e:
            logger.error(f"{name} failed: {e}", exc_info=True)
        except Exception as e:
            logger.error(f"Unexpected error in {name}: {e}", exc_info=True)
        return None

    def run_scheduled(self, skip_publish: bool = False, max_cycles: Optional[int] = None,
                      scheduler: Optional[schedule.Scheduler] = None) -> None:
        """
        Run the passes periodically in this thread, so passes never overlap.

        Args:
            skip_publish: Only schedule ingestion
            max_cycles: Stop after this many polling cycles (runs forever if None)
            scheduler: Scheduler to register jobs on, a fresh one by default
        """
        scheduler = scheduler or schedule.Scheduler()
        scheduler.every(settings.INGEST_INTERVAL_MINUTES).minutes.do(
            self._run_job, "ingestion pass", self.run_ingestion_pass)
        if not skip_publish:
            scheduler.every(settings.PUBLISH_INTERVAL_MINUTES).minutes.do(
                self._run_job, "publish pass", self.run_publish_pass)

        logger.info(f"Scheduler started: ingest every {settings.INGEST_INTERVAL_MINUTES} min"
                    + ("" if skip_publish else f", publish every {settings.PUBLISH_INTERVAL_MINUTES} min"))

        # First run straight away instead of waiting a full interval
        scheduler.run_all()

        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            scheduler.run_pending()
            self.sleep(settings.SCHEDULER_POLL_SECONDS)
            cycles += 1

    def close(self) -> None:
        self.ingestor.shutdown()
        close = getattr(self.store, "close", None)
        if callable(close):
            close()


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Event Scout - Nigerian tech event ingestion')
    parser.add_argument('--schedule', action='store_true', help='Run periodically instead of once')
    parser.add_argument('--test', action='store_true', help='Run in test mode without writing or posting')
    parser.add_argument('--skip-publish', action='store_true', help='Only run the ingestion pass')
    parser.add_argument('--log-file', type=str, default='event_scout.log', help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Logging level')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    # Parse command line arguments
    args = parse_arguments(argv)

    # Set up logging
    log_level = getattr(logging, args.log_level)
    setup_file_logging(args.log_file, log_level)

    # Log application start
    logger.info("Starting Event Scout")
    if args.test:
        logger.info("TEST MODE: no repository writes, no posting")

    app = None
    try:
        app = EventScout(test_mode=args.test)

        if args.schedule:
            app.run_scheduled(skip_publish=args.skip_publish)
            exit_code = 0
        else:
            report = app.run_ingestion_pass()
            if not args.skip_publish:
                app.run_publish_pass()

            # Report status
            if report.ok:
                logger.info("Event Scout completed successfully")
                exit_code = 0
            else:
                logger.warning("Event Scout completed with errors")
                exit_code = 1

    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        exit_code = 0
    except EventScoutError as e:
        logger.error(f"Event Scout failed: {e}", exc_info=True)
        exit_code = 1
    except Exception as e:
        logger.error(f"Unhandled exception in Event Scout: {e}", exc_info=True)
        exit_code = 2
    finally:
        if app is not None:
            app.close()

    # Log application end
    logger.info(f"Event Scout finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
