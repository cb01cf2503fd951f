"""
Pattern Library Module

This module compiles the keyword lists from config.keyword_lists into an
immutable set of matchers: the spam union, locale references, place names,
event keywords, date/time patterns, emoji ranges and the category table.
Compilation happens once on first use; the matchers hold no state.
"""

import re
from functools import lru_cache
from typing import Optional, List, Tuple, Iterable, Pattern

from config import keyword_lists
from utils.logger import get_logger

logger = get_logger(__name__)

MONTH_NUMBERS = {}
for _number, _name in enumerate(keyword_lists.MONTH_NAMES, start=1):
    MONTH_NUMBERS[_name] = _number
    MONTH_NUMBERS[_name[:3]] = _number
MONTH_NUMBERS["sept"] = 9

WEEKDAY_NUMBERS = {name: number for number, name in enumerate(keyword_lists.WEEKDAY_NAMES)}

EMOJI_CLASS = (
    "["
    "\U0001F000-\U0001FAFF"   # pictographs, emoticons, transport, symbols
    "\u2600-\u27BF"     # misc symbols and dingbats
    "\u2B00-\u2BFF"     # arrows, stars
    "\u2300-\u23FF"     # technical (watch, hourglass)
    "\uFE0F\u200D\u20E3"  # variation selector, joiner, keycap
    "]"
)
EMOJI_MODIFIERS = "\uFE0F\u200D\u20E3"


def _alternation(words: Iterable[str]) -> str:
    ordered = sorted({w.lower() for w in words}, key=len, reverse=True)
    return "|".join(re.escape(w) for w in ordered)


def compile_keywords(keywords: Iterable[str]) -> Pattern:
    """
    Compile a keyword list into one case-insensitive whole-word alternation.

    Longer keywords are tried first so multi-word phrases win over their parts.
    """
    return re.compile(r"(?<!\w)(?:" + _alternation(keywords) + r")(?!\w)", re.IGNORECASE)


class PatternLibrary:
    """Immutable compiled matchers built from versioned keyword lists."""

    def __init__(self, lists=keyword_lists):
        self.version = lists.KEYWORD_LISTS_VERSION

        # Spam: keywords and suspicious shapes in a single alternation
        spam_sources = [r"(?<!\w)(?:" + _alternation(lists.SPAM_KEYWORDS) + r")(?!\w)"]
        spam_sources.extend(lists.SUSPICIOUS_PATTERNS)
        self.spam = re.compile("|".join(f"(?:{source})" for source in spam_sources), re.IGNORECASE)

        # Locale
        self.locale_reference = compile_keywords(lists.LOCALE_SELF_REFERENCES)
        self.place_names = compile_keywords(lists.PLACE_NAMES)
        self._place_display = {name.lower(): name for name in lists.PLACE_NAMES}

        # Event shape
        self.event_keywords = compile_keywords(lists.STRONG_EVENT_KEYWORDS)
        self.title_event_keywords = compile_keywords(lists.TITLE_EVENT_KEYWORDS)

        month = "(" + _alternation(MONTH_NUMBERS) + r")\.?"
        weekday = "(" + _alternation(lists.WEEKDAY_NAMES) + ")"
        ordinal = r"(?:st|nd|rd|th)?"

        self.date_dmy = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})\b")
        self.date_ymd = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
        self.date_month_day_year = re.compile(
            rf"\b{month}\s+(\d{{1,2}}){ordinal},?\s+(\d{{4}})\b", re.IGNORECASE)
        self.date_day_month_year = re.compile(
            rf"\b(\d{{1,2}}){ordinal}\s+(?:of\s+)?{month},?\s+(\d{{4}})\b", re.IGNORECASE)
        self.date_day_month = re.compile(
            rf"\b(\d{{1,2}}){ordinal}\s+(?:of\s+)?{month}(?!\w)", re.IGNORECASE)
        self.date_relative_weekday = re.compile(rf"\b(next|this)\s+{weekday}\b", re.IGNORECASE)
        self.date_relative_day = re.compile(r"\b(today|tonight|tomorrow)\b", re.IGNORECASE)
        self.date_month_day = re.compile(rf"\b{month}\s+(\d{{1,2}}){ordinal}(?!\w)", re.IGNORECASE)

        self.time_12h_minutes = re.compile(r"\b(\d{1,2}):([0-5]\d)\s*([ap])\.?m\.?(?!\w)", re.IGNORECASE)
        self.time_12h = re.compile(r"\b(\d{1,2})\s*([ap])\.?m\.?(?!\w)", re.IGNORECASE)
        self.time_24h = re.compile(r"\b([01]?\d|2[0-3]):([0-5]\d)\b")

        # Location introduced by a preposition or label, followed by capitalized words
        self.location_preposition = re.compile(
            r"(?:\b(?i:held at|join us at|at|in)|(?i:venue|location):)\s+"
            r"([A-Z][\w'&.-]*(?:,?\s+[A-Z][\w'&.-]*)*)"
        )
        self.location_pin = re.compile("\U0001F4CD\uFE0F?\\s*([^\\n#@]+)")

        # Text cleanup
        self.url = re.compile(r"https?://\S+")
        self.mention = re.compile(r"@\w+")
        self.hashtag = re.compile(r"#\w+")
        self.emoji = re.compile(EMOJI_CLASS)
        self.image_url = re.compile(r"https?://\S+?\.(?:jpe?g|png|gif|webp)(?:\?\S*)?(?![\w.])", re.IGNORECASE)

        self.bad_title = re.compile("|".join(f"(?:{p})" for p in lists.BAD_TITLE_PATTERNS), re.IGNORECASE)
        self.max_title_emoji = lists.MAX_TITLE_EMOJI
        self.max_spam_links = lists.MAX_SPAM_LINKS

        self.categories: List[Tuple[str, Pattern]] = [
            (category, compile_keywords(words)) for category, words in lists.CATEGORY_KEYWORDS
        ]
        self.free_keywords = compile_keywords(lists.FREE_KEYWORDS)
        self.paid_keywords = compile_keywords(lists.PAID_KEYWORDS)

        logger.debug(f"Compiled pattern library version {self.version}")

    # Predicates

    def has_spam(self, text: str) -> bool:
        """Spam keyword or suspicious shape, or more links than a normal event post carries."""
        if not text:
            return False
        return self.spam.search(text) is not None or len(self.url.findall(text)) > self.max_spam_links

    def has_locale_reference(self, text: str) -> bool:
        return bool(text) and self.locale_reference.search(text) is not None

    def find_place(self, text: str) -> Optional[str]:
        """Return the display form of the first known place name in the text."""
        if not text:
            return None
        match = self.place_names.search(text)
        if not match:
            return None
        return self._place_display.get(match.group(0).lower(), match.group(0))

    def has_event_keyword(self, text: str) -> bool:
        return bool(text) and self.event_keywords.search(text) is not None

    def has_date_indicator(self, text: str) -> bool:
        """Explicit numeric date, a month next to a day number, or a relative-day phrase.

        A bare month word is not enough ("you may register now"). Times do not count.
        """
        if not text:
            return False
        return any(pattern.search(text) for pattern in (
            self.date_dmy,
            self.date_ymd,
            self.date_month_day,
            self.date_day_month,
            self.date_relative_weekday,
            self.date_relative_day,
        ))

    def count_emoji(self, text: str) -> int:
        return len([c for c in self.emoji.findall(text or "") if c not in EMOJI_MODIFIERS])


@lru_cache(maxsize=1)
def get_pattern_library() -> PatternLibrary:
    """Return the process-wide pattern library, compiling it on first use."""
    return PatternLibrary()
