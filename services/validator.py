"""
Validator Module

Final structural gate on an extracted draft before it may be persisted.
Applies the same rules whichever parsing strategy produced the draft.
"""

from datetime import datetime, timedelta
from typing import Optional, List

from config import settings
from data.models import EventDraft
from utils.helpers import utc_now
from utils.logger import get_logger

logger = get_logger(__name__)


def validate_draft(draft: EventDraft, now: Optional[datetime] = None) -> List[str]:
    """
    Check a draft against the persistence rules.

    Args:
        draft: The draft to check
        now: Reference time for the staleness rule, defaults to the current time

    Returns:
        List[str]: Reasons the draft is rejected, empty if it is valid
    """
    now = now or utc_now()
    reasons = []

    if len((draft.title or "").strip()) < settings.TITLE_MIN_LENGTH:
        reasons.append(f"title shorter than {settings.TITLE_MIN_LENGTH} characters")
    if len((draft.description or "").strip()) < settings.DESCRIPTION_MIN_LENGTH:
        reasons.append(f"description shorter than {settings.DESCRIPTION_MIN_LENGTH} characters")
    if not (draft.location or "").strip():
        reasons.append("location missing")
    if draft.date is None:
        reasons.append("date missing")
    elif draft.date < now - timedelta(hours=settings.DATE_GRACE_HOURS):
        reasons.append(f"date more than {settings.DATE_GRACE_HOURS} hours in the past")

    return reasons


def is_valid_draft(draft: EventDraft, now: Optional[datetime] = None) -> bool:
    reasons = validate_draft(draft, now)
    if reasons:
        logger.info(f"Draft {draft.source_external_id} rejected: {'; '.join(reasons)}")
        return False
    return True
