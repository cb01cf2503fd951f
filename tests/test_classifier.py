"""
Tests for the Event Classifier

Tests the three gates (spam, locale relevance, event shape), their order,
and that a post is accepted only when every gate passes.
"""

import pytest
from unittest.mock import MagicMock
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.classifier import (
    EventClassifier, is_locale_relevant, REJECT_SPAM, REJECT_LOCALE, REJECT_NOT_EVENT
)
from conftest import LAGOS_SUMMIT_TEXT


@pytest.fixture
def classifier():
    return EventClassifier()


class TestGates:
    """Tests for each gate on its own."""

    def test_spam_gate(self, classifier):
        assert classifier.is_spam("DM me for a great investment opportunity!!!")
        assert not classifier.is_spam(LAGOS_SUMMIT_TEXT)

    def test_locale_gate_accepts_place_name(self, classifier):
        assert classifier.is_locale_relevant("Hackathon in Port Harcourt")

    def test_locale_gate_accepts_self_reference(self, classifier):
        assert classifier.is_locale_relevant("Biggest gathering of Nigerian designers")

    def test_locale_gate_rejects_elsewhere(self, classifier):
        assert not classifier.is_locale_relevant("Hackathon in Nairobi")

    def test_module_level_locale_check(self):
        assert is_locale_relevant("Ikeja")
        assert not is_locale_relevant("London")

    def test_event_shape_needs_keyword_and_date(self, classifier):
        assert classifier.looks_like_event("Fintech summit on 12 April")
        assert not classifier.looks_like_event("Fintech summit coming soon")
        assert not classifier.looks_like_event("Great chat about payments on 12 April")

    def test_time_is_not_a_date(self, classifier):
        assert not classifier.looks_like_event("Developer meetup at 6pm")


class TestClassify:
    """Tests for the composed decision."""

    def test_accepts_lagos_summit(self, classifier):
        assert classifier.classify(LAGOS_SUMMIT_TEXT) == (True, None)

    def test_rejects_spam(self, classifier):
        assert classifier.classify("DM me for a great investment opportunity!!!") == (False, REJECT_SPAM)

    def test_spam_checked_before_locale(self, classifier):
        """A spammy post about Lagos is still reported as spam."""
        text = "Lagos workshop on 5 May, DM me for tickets"
        assert classifier.classify(text) == (False, REJECT_SPAM)

    def test_rejects_other_country(self, classifier):
        text = "Join us for the Accra AI Summit on 15 March 2025"
        assert classifier.classify(text) == (False, REJECT_LOCALE)

    def test_rejects_non_event(self, classifier):
        text = "Lagos traffic is terrible this morning"
        assert classifier.classify(text) == (False, REJECT_NOT_EVENT)

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_text(self, classifier, text):
        assert classifier.classify(text) == (False, REJECT_NOT_EVENT)

    def test_all_gates_must_pass(self):
        """Accepted only when spam is false and the other two gates are true."""
        patterns = MagicMock()
        classifier = EventClassifier(patterns)

        for spam in (True, False):
            for locale in (True, False):
                for event in (True, False):
                    patterns.has_spam.return_value = spam
                    patterns.has_locale_reference.return_value = locale
                    patterns.find_place.return_value = None
                    patterns.has_event_keyword.return_value = event
                    patterns.has_date_indicator.return_value = True

                    accepted, _ = classifier.classify("some text")
                    assert accepted == (not spam and locale and event)

    def test_short_circuits_after_spam(self):
        patterns = MagicMock()
        patterns.has_spam.return_value = True
        classifier = EventClassifier(patterns)

        classifier.classify("anything")

        patterns.has_locale_reference.assert_not_called()
        patterns.has_event_keyword.assert_not_called()
