"""
Tests for Twitter Service

Tests payload parsing, rate-limit header handling, search and posting
through injected Tweepy clients, and the mapping of Tweepy errors onto
the application's exceptions.
"""

import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime, timezone
import sys
import os

import requests
import tweepy

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.twitter_service import (
    TwitterService, parse_search_payload, rate_limit_from_headers, TWEET_FIELDS, EXPANSIONS, MEDIA_FIELDS
)
from utils.exceptions import AuthenticationError, SearchError, PostingError, RateLimitError


SEARCH_PAYLOAD = {
    "data": [
        {
            "id": "1880000000000000002",
            "text": "Join us for the Lagos AI Summit on 15 March 2025 https://t.co/abc",
            "created_at": "2025-01-01T09:00:00.000Z",
            "author_id": "42",
            "attachments": {"media_keys": ["3_1"]},
            "entities": {"urls": [{
                "url": "https://t.co/abc",
                "expanded_url": "https://lu.ma/lagos-ai",
                "unwound_url": "https://lu.ma/lagos-ai?ref=x",
            }]},
            "public_metrics": {"like_count": 3},
        },
        {
            "id": "1880000000000000001",
            "text": "Abuja meetup tomorrow",
            "created_at": "2025-01-01T08:00:00.000Z",
            "entities": {"urls": [{"url": "https://t.co/def", "expanded_url": "https://abuja.dev"}]},
        },
    ],
    "includes": {"media": [
        {"media_key": "3_1", "type": "photo", "url": "https://pbs.twimg.com/media/flyer.jpg"},
    ]},
    "meta": {"newest_id": "1880000000000000002", "result_count": 2},
}


def tweepy_error(error_class, status, headers=None):
    """Build a real Tweepy HTTP exception around a mock response."""
    response = MagicMock()
    response.status_code = status
    response.status = status
    response.reason = "Error"
    response.headers = headers or {}
    response.json.return_value = {}
    return error_class(response)


@pytest.fixture
def search_client(mock_http_response):
    client = MagicMock()
    client.search_recent_tweets.return_value = mock_http_response(
        json_data=SEARCH_PAYLOAD,
        headers={
            "x-rate-limit-remaining": "449",
            "x-rate-limit-reset": "1735725600",
            "x-rate-limit-limit": "450",
        },
    )
    return client


@pytest.fixture
def posting_client():
    client = MagicMock()
    client.create_tweet.return_value = MagicMock(data={"id": "1900000000000000001", "text": "hello"})
    return client


@pytest.fixture
def service(search_client, posting_client):
    return TwitterService(search_client=search_client, posting_client=posting_client)


class TestParseSearchPayload:
    """Tests for converting the v2 payload into a SearchPage."""

    def test_posts(self):
        page = parse_search_payload(SEARCH_PAYLOAD)

        assert [p.id for p in page.posts] == ["1880000000000000002", "1880000000000000001"]
        first = page.posts[0]
        assert first.created_at == datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
        assert first.author_id == "42"
        assert first.media_keys == ["3_1"]
        assert first.public_metrics == {"like_count": 3}

    def test_prefers_unwound_then_expanded_urls(self):
        page = parse_search_payload(SEARCH_PAYLOAD)
        assert page.posts[0].urls == ["https://lu.ma/lagos-ai?ref=x"]
        assert page.posts[1].urls == ["https://abuja.dev"]

    def test_media_and_meta(self):
        page = parse_search_payload(SEARCH_PAYLOAD)
        assert page.media["3_1"].url == "https://pbs.twimg.com/media/flyer.jpg"
        assert page.newest_id == "1880000000000000002"
        assert page.rate_limit is None

    def test_missing_author(self):
        assert parse_search_payload(SEARCH_PAYLOAD).posts[1].author_id is None

    def test_empty_result(self):
        page = parse_search_payload({"meta": {"result_count": 0}})
        assert page.posts == []
        assert page.media == {}
        assert page.newest_id is None

    def test_unreadable_created_at_uses_current_time(self):
        page = parse_search_payload({"data": [{"id": "1", "text": "x", "created_at": "yesterday"}]})
        assert page.posts[0].created_at.tzinfo is not None


class TestRateLimitHeaders:
    """Tests for reading x-rate-limit-* headers."""

    def test_full_headers(self):
        info = rate_limit_from_headers({
            "x-rate-limit-remaining": "0",
            "x-rate-limit-reset": "1735725600",
            "x-rate-limit-limit": "450",
        })
        assert info.remaining == 0
        assert info.reset_at == 1735725600.0
        assert info.limit == 450

    def test_no_headers(self):
        assert rate_limit_from_headers({}) is None
        assert rate_limit_from_headers(None) is None

    def test_garbage_values(self):
        info = rate_limit_from_headers({"x-rate-limit-remaining": "12", "x-rate-limit-reset": "soon"})
        assert info.remaining == 12
        assert info.reset_at is None


class TestSearchRecent:
    """Tests for the search call."""

    def test_returns_page_with_quota(self, service):
        page = service.search_recent("lagos events")

        assert len(page.posts) == 2
        assert page.rate_limit.remaining == 449
        assert page.rate_limit.reset_at == 1735725600.0

    def test_request_parameters(self, service, search_client):
        service.search_recent("lagos events", max_results=50, since_id="123")

        search_client.search_recent_tweets.assert_called_once_with(
            query="lagos events",
            max_results=50,
            tweet_fields=TWEET_FIELDS,
            expansions=EXPANSIONS,
            media_fields=MEDIA_FIELDS,
            since_id="123",
        )

    @pytest.mark.parametrize("requested,sent", [(5, 10), (100, 100), (500, 100)])
    def test_page_size_clamped(self, service, search_client, requested, sent):
        service.search_recent("q", max_results=requested)
        assert search_client.search_recent_tweets.call_args.kwargs["max_results"] == sent

    def test_no_since_id_by_default(self, service, search_client):
        service.search_recent("q")
        assert "since_id" not in search_client.search_recent_tweets.call_args.kwargs

    def test_throttled(self, service, search_client):
        search_client.search_recent_tweets.side_effect = tweepy_error(
            tweepy.TooManyRequests, 429, {"x-rate-limit-reset": "1735725600"})

        with pytest.raises(RateLimitError) as exc_info:
            service.search_recent("q")

        assert exc_info.value.reset_at == 1735725600.0

    def test_throttled_without_reset(self, service, search_client):
        search_client.search_recent_tweets.side_effect = tweepy_error(tweepy.TooManyRequests, 429)

        with pytest.raises(RateLimitError) as exc_info:
            service.search_recent("q")

        assert exc_info.value.reset_at is None

    @pytest.mark.parametrize("error_class,status", [(tweepy.Unauthorized, 401), (tweepy.Forbidden, 403)])
    def test_refused_credentials(self, service, search_client, error_class, status):
        search_client.search_recent_tweets.side_effect = tweepy_error(error_class, status)
        with pytest.raises(AuthenticationError):
            service.search_recent("q")

    def test_bad_request(self, service, search_client):
        search_client.search_recent_tweets.side_effect = tweepy_error(tweepy.BadRequest, 400)
        with pytest.raises(SearchError):
            service.search_recent("q")

    def test_transport_error(self, service, search_client):
        search_client.search_recent_tweets.side_effect = requests.ConnectionError("reset by peer")
        with pytest.raises(SearchError):
            service.search_recent("q")

    def test_non_json_body(self, service, search_client, mock_http_response):
        search_client.search_recent_tweets.return_value = mock_http_response(json_data=None)
        with pytest.raises(SearchError):
            service.search_recent("q")

    def test_no_client(self, service):
        service.search_client = None
        with pytest.raises(AuthenticationError):
            service.search_recent("q")


class TestCreatePost:
    """Tests for posting."""

    def test_success(self, service, posting_client):
        assert service.create_post("Hello Lagos") == "1900000000000000001"
        posting_client.create_tweet.assert_called_once_with(text="Hello Lagos", user_auth=True)

    def test_throttled(self, service, posting_client):
        posting_client.create_tweet.side_effect = tweepy_error(
            tweepy.TooManyRequests, 429, {"x-rate-limit-reset": "1735725600"})

        with pytest.raises(RateLimitError) as exc_info:
            service.create_post("Hello")

        assert exc_info.value.reset_at == 1735725600.0

    def test_refused(self, service, posting_client):
        posting_client.create_tweet.side_effect = tweepy_error(tweepy.Forbidden, 403)
        with pytest.raises(PostingError):
            service.create_post("Hello")

    def test_missing_id_in_response(self, service, posting_client):
        posting_client.create_tweet.return_value = MagicMock(data={})
        with pytest.raises(PostingError):
            service.create_post("Hello")

    def test_no_client(self, service):
        service.posting_client = None
        with pytest.raises(PostingError):
            service.create_post("Hello")


class TestClientSetup:
    """Tests for building Tweepy clients from settings."""

    def test_builds_both_clients(self, mock_settings):
        with patch('tweepy.Client') as mock_client:
            service = TwitterService()

        assert mock_client.call_count == 2
        search_kwargs = mock_client.call_args_list[0].kwargs
        assert search_kwargs["bearer_token"] == "test-twitter-bearer"
        assert search_kwargs["return_type"] is requests.Response
        assert search_kwargs["wait_on_rate_limit"] is False
        posting_kwargs = mock_client.call_args_list[1].kwargs
        assert posting_kwargs["consumer_key"] == "test-twitter-api-key"
        assert posting_kwargs["access_token_secret"] == "test-twitter-access-secret"
        assert service.search_client is not None
        assert service.posting_client is not None

    def test_no_posting_client_without_oauth1(self, mock_settings):
        mock_settings.TWITTER_ACCESS_TOKEN = None

        with patch('tweepy.Client') as mock_client:
            service = TwitterService()

        assert mock_client.call_count == 1
        assert service.posting_client is None

    def test_injected_clients_are_kept(self, search_client, posting_client):
        with patch('tweepy.Client') as mock_client:
            service = TwitterService(search_client=search_client, posting_client=posting_client)

        mock_client.assert_not_called()
        assert service.search_client is search_client
