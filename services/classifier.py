"""
Classifier Module

This module decides whether a retrieved post is worth extracting. Three gates
run in order, cheapest and most rejecting first: spam, locale relevance and
"looks like an event". The first failing gate rejects the post.
"""

from typing import Optional, Tuple

from services.patterns import PatternLibrary, get_pattern_library


REJECT_SPAM = "spam"
REJECT_LOCALE = "locale"
REJECT_NOT_EVENT = "not_event"


def is_locale_relevant(text: str, patterns: Optional[PatternLibrary] = None) -> bool:
    """Explicit country self-reference or a known place name."""
    patterns = patterns or get_pattern_library()
    return patterns.has_locale_reference(text) or patterns.find_place(text) is not None


class EventClassifier:
    """Composes pattern library predicates into accept/reject decisions."""

    def __init__(self, patterns: Optional[PatternLibrary] = None):
        self.patterns = patterns or get_pattern_library()

    def is_spam(self, text: str) -> bool:
        return self.patterns.has_spam(text)

    def is_locale_relevant(self, text: str) -> bool:
        return is_locale_relevant(text, self.patterns)

    def looks_like_event(self, text: str) -> bool:
        """A strong event keyword AND a date indicator; a time alone is not enough."""
        return self.patterns.has_event_keyword(text) and self.patterns.has_date_indicator(text)

    def classify(self, text: str) -> Tuple[bool, Optional[str]]:
        """
        Run the gates in order.

        Args:
            text: Raw post text

        Returns:
            Tuple[bool, Optional[str]]: (accepted, rejection reason or None)
        """
        if not text or not text.strip():
            return False, REJECT_NOT_EVENT
        if self.is_spam(text):
            return False, REJECT_SPAM
        if not self.is_locale_relevant(text):
            return False, REJECT_LOCALE
        if not self.looks_like_event(text):
            return False, REJECT_NOT_EVENT
        return True, None
