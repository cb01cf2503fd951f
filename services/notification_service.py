"""
Notification Service Module

Posts a small JSON message to a webhook for each newly created event.
With no webhook configured the service is disabled and does nothing.
"""

from typing import Optional

import requests

from config import settings
from data.models import StoredEvent
from utils.exceptions import NotificationError
from utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Webhook notifier for new events."""

    def __init__(self, webhook_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.webhook_url = webhook_url if webhook_url is not None else settings.NOTIFICATION_WEBHOOK_URL
        self.timeout = timeout or settings.NOTIFICATION_TIMEOUT
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def notify_event_created(self, event: StoredEvent) -> None:
        """
        Send a new-event notification.

        Raises:
            NotificationError: If the webhook call fails or returns an error status
        """
        if not self.enabled:
            return

        payload = {
            "type": "event_created",
            "event_id": event.event_id,
            "title": event.title,
            "date": event.date.isoformat() if event.date else None,
            "location": event.location,
            "category": event.category,
            "is_free": event.is_free,
            "source_url": event.source_url,
        }
        try:
            response = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationError(f"Notification for event {event.event_id} failed: {e}") from e
        logger.debug(f"Notified webhook about event {event.event_id}")
