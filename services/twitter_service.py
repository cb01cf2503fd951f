"""
Twitter Service Module

This module handles integration with the Twitter/X API v2 through Tweepy.
It provides recent search (app-only bearer token), with the endpoint's
rate-limit headers, and posting (OAuth 1.0a user context).
"""

from typing import Optional, List, Dict, Any

import requests
import tweepy

from config import settings
from data.models import SocialPost, MediaItem, SearchPage, RateLimitInfo
from utils.exceptions import AuthenticationError, SearchError, PostingError, RateLimitError
from utils.helpers import parse_iso_datetime, safe_get, utc_now
from utils.logger import get_logger

logger = get_logger(__name__)

TWEET_FIELDS = ["created_at", "author_id", "entities", "attachments", "public_metrics"]
MEDIA_FIELDS = ["url", "preview_image_url", "type"]
EXPANSIONS = ["attachments.media_keys"]


def _header_number(headers, name: str) -> Optional[float]:
    value = (headers or {}).get(name)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def rate_limit_from_headers(headers) -> Optional[RateLimitInfo]:
    """Read x-rate-limit-* headers; None when the response carried none."""
    remaining = _header_number(headers, "x-rate-limit-remaining")
    reset_at = _header_number(headers, "x-rate-limit-reset")
    limit = _header_number(headers, "x-rate-limit-limit")
    if remaining is None and reset_at is None:
        return None
    return RateLimitInfo(
        remaining=int(remaining) if remaining is not None else None,
        reset_at=reset_at,
        limit=int(limit) if limit is not None else None,
    )


def _reset_hint(error: tweepy.HTTPException) -> Optional[float]:
    response = getattr(error, "response", None)
    return _header_number(getattr(response, "headers", None), "x-rate-limit-reset")


def parse_search_payload(payload: Dict[str, Any], headers=None) -> SearchPage:
    """
    Convert a v2 recent-search JSON payload into a SearchPage.

    Args:
        payload: Decoded response body
        headers: Response headers, for quota state

    Returns:
        SearchPage: Posts, media lookup, newest id and rate-limit info
    """
    posts: List[SocialPost] = []
    for tweet in payload.get("data") or []:
        created_raw = tweet.get("created_at")
        try:
            created_at = parse_iso_datetime(created_raw) if created_raw else utc_now()
        except ValueError:
            logger.warning(f"Unreadable created_at {created_raw!r} on post {tweet.get('id')}")
            created_at = utc_now()

        urls = []
        for entity in safe_get(tweet, "entities", "urls", default=[]) or []:
            url = entity.get("unwound_url") or entity.get("expanded_url") or entity.get("url")
            if url:
                urls.append(url)

        posts.append(SocialPost(
            id=str(tweet["id"]),
            text=tweet.get("text", ""),
            created_at=created_at,
            author_id=str(tweet["author_id"]) if tweet.get("author_id") else None,
            media_keys=list(safe_get(tweet, "attachments", "media_keys", default=[]) or []),
            urls=urls,
            public_metrics=tweet.get("public_metrics") or {},
        ))

    media = {}
    for item in safe_get(payload, "includes", "media", default=[]) or []:
        key = item.get("media_key")
        if key:
            media[key] = MediaItem(
                media_key=key,
                type=item.get("type", "photo"),
                url=item.get("url"),
                preview_image_url=item.get("preview_image_url"),
            )

    return SearchPage(
        posts=posts,
        media=media,
        newest_id=safe_get(payload, "meta", "newest_id"),
        rate_limit=rate_limit_from_headers(headers),
    )


class TwitterService:
    """Service for Twitter/X integration."""

    def __init__(self, search_client=None, posting_client=None):
        """
        Initialize the Twitter service with API authentication.

        Clients are built from settings unless passed in.
        """
        self.bearer_token = settings.TWITTER_BEARER_TOKEN
        self.api_key = settings.TWITTER_API_KEY
        self.api_key_secret = settings.TWITTER_API_KEY_SECRET
        self.access_token = settings.TWITTER_ACCESS_TOKEN
        self.access_token_secret = settings.TWITTER_ACCESS_TOKEN_SECRET

        self.search_client = search_client
        self.posting_client = posting_client
        if self.search_client is None or self.posting_client is None:
            self._setup_twitter()

    def _setup_twitter(self) -> None:
        """Create the Tweepy clients the configured credentials allow."""
        if self.search_client is None and self.bearer_token:
            # App-only auth; raw responses so the rate-limit headers are visible
            self.search_client = tweepy.Client(
                bearer_token=self.bearer_token,
                return_type=requests.Response,
                wait_on_rate_limit=False,
            )
            logger.info("Twitter search client configured with Bearer Token")

        if self.posting_client is None and all([
            self.api_key, self.api_key_secret, self.access_token, self.access_token_secret
        ]):
            self.posting_client = tweepy.Client(
                consumer_key=self.api_key,
                consumer_secret=self.api_key_secret,
                access_token=self.access_token,
                access_token_secret=self.access_token_secret,
                wait_on_rate_limit=False,
            )
            logger.info("Twitter posting client configured with OAuth 1.0a")

    def search_recent(self, query: str, max_results: int = 100,
                      since_id: Optional[str] = None) -> SearchPage:
        """
        Search posts from the last seven days.

        Args:
            query: Search query string
            max_results: Page size, clamped to the API's 10..100 range
            since_id: Only return posts newer than this id

        Returns:
            SearchPage: One page of results with quota state

        Raises:
            RateLimitError: On a 429 response, carrying the reset epoch if given
            AuthenticationError: If no search client is configured or credentials are refused
            SearchError: For any other API or transport failure
        """
        if not self.search_client:
            raise AuthenticationError("Twitter search client not initialized")

        params = {
            "query": query,
            "max_results": max(10, min(int(max_results), 100)),
            "tweet_fields": TWEET_FIELDS,
            "expansions": EXPANSIONS,
            "media_fields": MEDIA_FIELDS,
        }
        if since_id:
            params["since_id"] = since_id

        try:
            response = self.search_client.search_recent_tweets(**params)
        except tweepy.TooManyRequests as e:
            raise RateLimitError("Search rate limit exceeded", reset_at=_reset_hint(e)) from e
        except (tweepy.Unauthorized, tweepy.Forbidden) as e:
            raise AuthenticationError(f"Search request refused: {e}") from e
        except tweepy.TweepyException as e:
            raise SearchError(f"Search request failed: {e}") from e
        except requests.RequestException as e:
            raise SearchError(f"Search transport error: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise SearchError(f"Search response is not JSON: {e}") from e

        page = parse_search_payload(payload, getattr(response, "headers", None))
        logger.debug(f"Search returned {len(page.posts)} posts for query {query[:50]!r}")
        return page

    def create_post(self, text: str) -> str:
        """
        Publish a text post.

        Args:
            text: The post body

        Returns:
            str: The new post's id

        Raises:
            RateLimitError: On a 429 response
            PostingError: If posting is not configured or the API refuses the post
        """
        if not self.posting_client:
            raise PostingError("Cannot post without OAuth 1.0a credentials")

        try:
            response = self.posting_client.create_tweet(text=text, user_auth=True)
        except tweepy.TooManyRequests as e:
            raise RateLimitError("Posting rate limit exceeded", reset_at=_reset_hint(e)) from e
        except tweepy.TweepyException as e:
            raise PostingError(f"Failed to post: {e}") from e
        except requests.RequestException as e:
            raise PostingError(f"Posting transport error: {e}") from e

        post_id = safe_get(getattr(response, "data", None) or {}, "id")
        if not post_id:
            raise PostingError("Failed to post: no post id in the API response")

        logger.info(f"Successfully posted to X: {post_id}")
        return str(post_id)
