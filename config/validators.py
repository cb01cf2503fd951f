"""
Configuration Validation for Event Scout

This module contains configuration validation logic and the startup summary.
Kept apart from settings.py so the settings module stays plain data.
"""

import logging

from utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def validate_settings():
    """
    Validate that all required settings are properly configured.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from config import settings

    errors = []

    # Required environment variables
    required_vars = [
        ("TWITTER_BEARER_TOKEN", settings.TWITTER_BEARER_TOKEN),
        ("DB_SERVER", settings.DB_SERVER),
        ("DB_NAME", settings.DB_NAME),
        ("DB_USER", settings.DB_USER),
        ("DB_PASSWORD", settings.DB_PASSWORD)
    ]

    for var_name, var_value in required_vars:
        if not var_value:
            errors.append(f"Missing required environment variable: {var_name}")

    # Verify database connection string was built successfully
    if not settings.DB_CONNECTION_STRING:
        errors.append("Database connection string could not be built. Check DB_SERVER, DB_NAME, DB_USER, DB_PASSWORD.")

    twitter_oauth1 = all([
        settings.TWITTER_API_KEY,
        settings.TWITTER_API_KEY_SECRET,
        settings.TWITTER_ACCESS_TOKEN,
        settings.TWITTER_ACCESS_TOKEN_SECRET
    ])

    if settings.ENABLE_PUBLISHING and not twitter_oauth1:
        errors.append("ENABLE_PUBLISHING is true but OAuth 1.0a credentials are not configured. "
                      "Please configure TWITTER_API_KEY, TWITTER_API_KEY_SECRET, "
                      "TWITTER_ACCESS_TOKEN and TWITTER_ACCESS_TOKEN_SECRET.")

    if settings.ENABLE_AI_PARSING and not settings.GOOGLE_AI_API_KEY:
        logger.warning("ENABLE_AI_PARSING is true but GOOGLE_AI_API_KEY is missing. "
                       "Falling back to regex parsing only.")

    # Validate numeric settings are within reasonable bounds
    numeric_validations = [
        ("SEARCH_MAX_RESULTS", settings.SEARCH_MAX_RESULTS, 10, 100),
        ("SEARCH_MAX_RETRIES", settings.SEARCH_MAX_RETRIES, 0, 5),
        ("RATE_LIMIT_BUFFER_SECONDS", settings.RATE_LIMIT_BUFFER_SECONDS, 1, 60),
        ("TITLE_MIN_LENGTH", settings.TITLE_MIN_LENGTH, 1, 120),
        ("TITLE_MAX_LENGTH", settings.TITLE_MAX_LENGTH, settings.TITLE_MIN_LENGTH, 280),
        ("DESCRIPTION_MIN_LENGTH", settings.DESCRIPTION_MIN_LENGTH, 1, 1000),
        ("TWITTER_CHARACTER_LIMIT", settings.TWITTER_CHARACTER_LIMIT, 50, 4000),
        ("POST_MAX_RETRIES", settings.POST_MAX_RETRIES, 0, 5),
        ("PUBLISH_BATCH_SIZE", settings.PUBLISH_BATCH_SIZE, 1, 50),
        ("PUBLISH_FETCH_LIMIT", settings.PUBLISH_FETCH_LIMIT, 1, 500),
        ("ACTIVITY_BATCH_SIZE", settings.ACTIVITY_BATCH_SIZE, 1, 1000),
        ("NOTIFICATION_BATCH_SIZE", settings.NOTIFICATION_BATCH_SIZE, 1, 1000),
        ("EVENT_UTC_OFFSET_HOURS", settings.EVENT_UTC_OFFSET_HOURS, -12, 14),
    ]

    for name, value, min_val, max_val in numeric_validations:
        if value < min_val or value > max_val:
            errors.append(f"{name} must be between {min_val} and {max_val}, got {value}")

    if not settings.SEARCH_QUERIES:
        errors.append("SEARCH_QUERIES must contain at least one query")

    # Validate delays and intervals are positive
    positive_settings = [
        ("RATE_LIMIT_FALLBACK_WAIT", settings.RATE_LIMIT_FALLBACK_WAIT),
        ("INTER_QUERY_DELAY_SECONDS", settings.INTER_QUERY_DELAY_SECONDS),
        ("POST_RETRY_BACKOFF_SECONDS", settings.POST_RETRY_BACKOFF_SECONDS),
        ("PUBLISH_BATCH_DELAY", settings.PUBLISH_BATCH_DELAY),
        ("NOTIFICATION_TIMEOUT", settings.NOTIFICATION_TIMEOUT),
        ("INGEST_INTERVAL_MINUTES", settings.INGEST_INTERVAL_MINUTES),
        ("PUBLISH_INTERVAL_MINUTES", settings.PUBLISH_INTERVAL_MINUTES),
    ]

    for name, value in positive_settings:
        if value <= 0:
            errors.append(f"{name} must be positive, got {value}")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return True


def get_config_summary() -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    # Import settings here to avoid circular imports
    from config import settings
    from config.keyword_lists import KEYWORD_LISTS_VERSION

    return {
        "twitter": {
            "search_configured": bool(settings.TWITTER_BEARER_TOKEN),
            "posting_configured": bool(settings.TWITTER_API_KEY and settings.TWITTER_ACCESS_TOKEN),
            "publishing_enabled": settings.ENABLE_PUBLISHING,
        },
        "ai": {
            "enabled": settings.ENABLE_AI_PARSING,
            "configured": bool(settings.GOOGLE_AI_API_KEY),
        },
        "database": {
            "server": settings.DB_SERVER[:20] + "..." if settings.DB_SERVER and len(settings.DB_SERVER) > 20 else settings.DB_SERVER,
            "database": settings.DB_NAME,
            "persist_cursors": settings.PERSIST_SEARCH_CURSORS,
        },
        "ingestion": {
            "queries": len(settings.SEARCH_QUERIES),
            "max_results": settings.SEARCH_MAX_RESULTS,
            "keyword_lists_version": KEYWORD_LISTS_VERSION,
            "notifications": bool(settings.NOTIFICATION_WEBHOOK_URL),
        },
        "schedule": {
            "ingest_every_minutes": settings.INGEST_INTERVAL_MINUTES,
            "publish_every_minutes": settings.PUBLISH_INTERVAL_MINUTES,
        }
    }
