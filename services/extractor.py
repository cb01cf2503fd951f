"""
Extractor Module

This module turns an accepted post into an EventDraft. Two parsing strategies
share one interface: the deterministic regex strategy, always available, and
the AI-assisted strategy, which falls back to the regex strategy for any post
it cannot parse. Both feed the same finalize step so their drafts have the
same shape.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Tuple, Iterator

from config import settings
from config.keyword_lists import PLATFORM_HOSTS
from data.models import SocialPost, MediaItem, ParsedEvent, EventDraft, EventCategory
from services.classifier import is_locale_relevant
from services.patterns import PatternLibrary, get_pattern_library, MONTH_NUMBERS, WEEKDAY_NUMBERS
from services.protocols import ParsingStrategy
from utils.exceptions import AIServiceError, ExtractionError
from utils.helpers import is_valid_url, is_domain_match, utc_now
from utils.logger import get_logger

logger = get_logger(__name__)


def event_timezone() -> timezone:
    """Fixed-offset timezone events are announced in."""
    return timezone(timedelta(hours=settings.EVENT_UTC_OFFSET_HOURS))


def _calendar_date(year: int, month: int, day: int, tz: timezone) -> Optional[datetime]:
    try:
        return datetime(year, month, day, tzinfo=tz)
    except ValueError:
        return None


# =============================================================================
# Date and time
# =============================================================================

def _date_candidates(text: str, created_at: datetime, local_now: datetime,
                     p: PatternLibrary, tz: timezone) -> Iterator[datetime]:
    """Yield dates found in the text, pattern by pattern, in priority order."""
    for m in p.date_dmy.finditer(text):
        day, month, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if year < 100:
            year += 2000
        candidate = _calendar_date(year, month, day, tz)
        if candidate:
            yield candidate

    for m in p.date_ymd.finditer(text):
        candidate = _calendar_date(int(m.group(1)), int(m.group(2)), int(m.group(3)), tz)
        if candidate:
            yield candidate

    for m in p.date_month_day_year.finditer(text):
        month = MONTH_NUMBERS[m.group(1).lower()]
        candidate = _calendar_date(int(m.group(3)), month, int(m.group(2)), tz)
        if candidate:
            yield candidate

    for m in p.date_day_month_year.finditer(text):
        month = MONTH_NUMBERS[m.group(2).lower()]
        candidate = _calendar_date(int(m.group(3)), month, int(m.group(1)), tz)
        if candidate:
            yield candidate

    for m in p.date_day_month.finditer(text):
        month = MONTH_NUMBERS[m.group(2).lower()]
        candidate = _calendar_date(local_now.year, month, int(m.group(1)), tz)
        if candidate:
            yield candidate

    today = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    for m in p.date_relative_weekday.finditer(text):
        target = WEEKDAY_NUMBERS[m.group(2).lower()]
        days_ahead = (target - today.weekday()) % 7 or 7
        if m.group(1).lower() == "next":
            days_ahead += 7
        yield today + timedelta(days=days_ahead)

    posted_day = created_at.astimezone(tz).replace(hour=0, minute=0, second=0, microsecond=0)
    for m in p.date_relative_day.finditer(text):
        offset = 1 if m.group(1).lower() == "tomorrow" else 0
        yield posted_day + timedelta(days=offset)


def find_event_date(text: str, created_at: datetime, now: Optional[datetime] = None,
                    patterns: Optional[PatternLibrary] = None) -> Optional[datetime]:
    """
    Find the first explicit date in the text that is not stale.

    A candidate is accepted when it falls after now minus the grace window.

    Args:
        text: Post text
        created_at: When the post was created; anchors "today" and "tomorrow"
        now: Reference time, defaults to the current time
        patterns: Pattern library to use

    Returns:
        Optional[datetime]: Midnight of the date in the event timezone, or None
    """
    p = patterns or get_pattern_library()
    tz = event_timezone()
    now = now or utc_now()
    cutoff = now - timedelta(hours=settings.DATE_GRACE_HOURS)

    for candidate in _date_candidates(text or "", created_at, now.astimezone(tz), p, tz):
        if candidate > cutoff:
            return candidate
    return None


def extract_time(text: str, patterns: Optional[PatternLibrary] = None) -> Optional[Tuple[int, int]]:
    """
    Find a time of day as (hour, minute) in 24-hour form.

    "pm" adds twelve hours below 12 and "12am" is midnight.
    """
    p = patterns or get_pattern_library()
    text = text or ""

    for m in p.time_12h_minutes.finditer(text):
        hour, minute = int(m.group(1)), int(m.group(2))
        if 1 <= hour <= 12:
            return _to_24h(hour, m.group(3)), minute

    for m in p.time_12h.finditer(text):
        hour = int(m.group(1))
        if 1 <= hour <= 12:
            return _to_24h(hour, m.group(2)), 0

    m = p.time_24h.search(text)
    if m:
        return int(m.group(1)), int(m.group(2))
    return None


def _to_24h(hour: int, meridiem: str) -> int:
    if meridiem.lower() == "p" and hour < 12:
        return hour + 12
    if meridiem.lower() == "a" and hour == 12:
        return 0
    return hour


def extract_date(text: str, created_at: datetime, now: Optional[datetime] = None,
                 patterns: Optional[PatternLibrary] = None) -> datetime:
    """
    Resolve the event date, merging in a time of day when one is given.

    Falls back to the post's creation time plus the fallback offset when the
    text holds no usable date.
    """
    p = patterns or get_pattern_library()
    found = find_event_date(text, created_at, now, p)
    if found is None:
        return created_at + timedelta(days=settings.FALLBACK_DATE_OFFSET_DAYS)

    time_of_day = extract_time(text, p)
    if time_of_day:
        found = found.replace(hour=time_of_day[0], minute=time_of_day[1])
    return found


# =============================================================================
# Location, title, description
# =============================================================================

def extract_location(text: str, patterns: Optional[PatternLibrary] = None) -> Optional[str]:
    """
    Find where the event takes place.

    A known place name wins. Otherwise a phrase introduced by a preposition,
    a label or the pin emoji is used, provided it passes the locale check.
    """
    p = patterns or get_pattern_library()
    if not text:
        return None

    place = p.find_place(text)
    if place:
        return place

    for m in p.location_preposition.finditer(text):
        candidate = m.group(1).strip(" ,.")
        if candidate and is_locale_relevant(candidate, p):
            return candidate

    for m in p.location_pin.finditer(text):
        candidate = m.group(1).strip(" ,.")
        if candidate and is_locale_relevant(candidate, p):
            return candidate

    return None


def strip_noise(text: str, patterns: Optional[PatternLibrary] = None) -> str:
    """Remove URLs, mentions, hashtags and emoji, keeping line breaks."""
    p = patterns or get_pattern_library()
    text = p.url.sub("", text or "")
    text = p.mention.sub("", text)
    text = p.hashtag.sub("", text)
    return p.emoji.sub("", text)


def is_bad_title(line: str, patterns: Optional[PatternLibrary] = None) -> bool:
    p = patterns or get_pattern_library()
    line = (line or "").strip()
    if not line:
        return True
    return bool(p.bad_title.search(line)) or p.count_emoji(line) > p.max_title_emoji


def title_case(line: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in line.split())


def extract_title(text: str, patterns: Optional[PatternLibrary] = None) -> str:
    """
    Pick a title line from the post.

    Prefers a capitalized line that mentions an event word; otherwise the first
    line of acceptable length that is not a bad title.

    Returns:
        str: Title-cased line, or "" when no line qualifies
    """
    p = patterns or get_pattern_library()
    lines = []
    for raw_line in strip_noise(text, p).splitlines():
        line = re.sub(r"\s+", " ", raw_line).strip(" -|:")
        if line:
            lines.append(line)

    def acceptable(line: str) -> bool:
        return (settings.TITLE_MIN_LENGTH <= len(line) <= settings.TITLE_MAX_LENGTH
                and not is_bad_title(line, p))

    for line in lines:
        if acceptable(line) and line[0].isupper() and p.title_event_keywords.search(line):
            return title_case(line)

    for line in lines:
        if acceptable(line):
            return title_case(line)

    return ""


def clean_description(text: str, patterns: Optional[PatternLibrary] = None) -> str:
    text = strip_noise(text, patterns)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


# =============================================================================
# Category, pricing, links, images
# =============================================================================

def determine_category(text: str, patterns: Optional[PatternLibrary] = None) -> str:
    """First category in table order with a keyword hit, else the default."""
    p = patterns or get_pattern_library()
    for category, pattern in p.categories:
        if pattern.search(text or ""):
            return category
    return settings.DEFAULT_CATEGORY


def check_if_free(text: str, patterns: Optional[PatternLibrary] = None) -> bool:
    """Paid wording wins over free wording; no wording at all means paid."""
    p = patterns or get_pattern_library()
    if p.paid_keywords.search(text or ""):
        return False
    return bool(p.free_keywords.search(text or ""))


def _is_external_link(url: Optional[str]) -> bool:
    return bool(url) and is_valid_url(url) and not is_domain_match(url, PLATFORM_HOSTS)


def extract_link(post: SocialPost) -> Optional[str]:
    for url in post.urls:
        if _is_external_link(url):
            return url
    return None


def extract_images(post: SocialPost, media: Optional[Dict[str, MediaItem]] = None,
                   patterns: Optional[PatternLibrary] = None) -> List[str]:
    """Structured media attachments first, bare image URLs in the text second."""
    images = []
    for key in post.media_keys:
        item = (media or {}).get(key)
        if item is None:
            continue
        url = item.url or item.preview_image_url
        if url and url not in images:
            images.append(url)
    if images:
        return images

    p = patterns or get_pattern_library()
    for url in p.image_url.findall(post.text or ""):
        if url not in images:
            images.append(url)
    return images


def build_source_url(post: SocialPost) -> str:
    return f"https://x.com/{post.author_id or 'unknown'}/status/{post.id}"


# =============================================================================
# Strategies
# =============================================================================

class RegexStrategy:
    """Deterministic field extraction from the post text."""

    name = "regex"

    def __init__(self, patterns: Optional[PatternLibrary] = None):
        self.patterns = patterns or get_pattern_library()

    def parse(self, post: SocialPost, now: Optional[datetime] = None) -> Optional[ParsedEvent]:
        text = post.text or ""

        title = extract_title(text, self.patterns)
        if not title:
            logger.debug(f"Post {post.id}: no usable title")
            return None

        location = extract_location(text, self.patterns)
        if not location:
            logger.debug(f"Post {post.id}: no location found")
            return None

        return ParsedEvent(
            title=title,
            description=clean_description(text, self.patterns),
            date=extract_date(text, post.created_at, now, self.patterns),
            location=location,
            category=determine_category(text, self.patterns),
            is_free=check_if_free(text, self.patterns),
            link=extract_link(post),
        )


class AIStrategy:
    """Generative-model parsing that falls back to the regex strategy on failure."""

    name = "ai"

    def __init__(self, ai_service, fallback: Optional[RegexStrategy] = None):
        self.ai_service = ai_service
        self.fallback = fallback or RegexStrategy()

    def parse(self, post: SocialPost, now: Optional[datetime] = None) -> Optional[ParsedEvent]:
        try:
            parsed = self.ai_service.parse_event(post)
        except AIServiceError as e:
            logger.info(f"AI parsing failed for post {post.id}, using regex fallback: {e}")
            return self.fallback.parse(post, now)

        if parsed is None:
            logger.info(f"AI judged post {post.id} not to be a public event")
        return parsed


class EventExtractor:
    """Runs a parsing strategy and finalizes its output into an EventDraft."""

    def __init__(self, strategy: Optional[ParsingStrategy] = None, patterns: Optional[PatternLibrary] = None):
        self.patterns = patterns or get_pattern_library()
        self.strategy = strategy or RegexStrategy(self.patterns)

    def extract(self, post: SocialPost, media: Optional[Dict[str, MediaItem]] = None,
                now: Optional[datetime] = None) -> Optional[EventDraft]:
        """
        Extract a draft from an accepted post.

        Args:
            post: The accepted post
            media: Media lookup from the search response
            now: Reference time for relative dates and staleness

        Returns:
            Optional[EventDraft]: The draft, or None when a required field is missing

        Raises:
            ExtractionError: If extraction fails unexpectedly for this post
        """
        try:
            parsed = self.strategy.parse(post, now)
            if parsed is None:
                return None
            return self.finalize(parsed, post, media)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise ExtractionError(f"Failed to extract event from post {post.id}: {e}") from e

    def finalize(self, parsed: ParsedEvent, post: SocialPost,
                 media: Optional[Dict[str, MediaItem]] = None) -> Optional[EventDraft]:
        """Shared last step for both strategies."""
        title = (parsed.title or "").strip()[:settings.TITLE_MAX_LENGTH].rstrip()
        location = (parsed.location or "").strip()
        if not title or not location or parsed.date is None:
            return None

        if not is_locale_relevant(location, self.patterns):
            logger.info(f"Post {post.id}: location {location!r} outside the target region")
            return None

        category = parsed.category if parsed.category in EventCategory.values() else settings.DEFAULT_CATEGORY
        link = parsed.link if _is_external_link(parsed.link) else extract_link(post)

        date = parsed.date
        if date.tzinfo is None:
            date = date.replace(tzinfo=event_timezone())

        return EventDraft(
            title=title,
            description=(parsed.description or "").strip(),
            date=date,
            location=location,
            category=category,
            is_free=bool(parsed.is_free),
            link=link,
            source_external_id=post.id,
            source_url=build_source_url(post),
            image_urls=extract_images(post, media, self.patterns),
        )
