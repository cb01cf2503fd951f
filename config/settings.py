"""
Configuration Settings for Event Scout

This module centralizes all configuration settings for the Event Scout application,
including environment variables, API keys, and application constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

from config.keyword_lists import EVENT_HASHTAGS

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes", "on")."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


# API Keys and Authentication
GOOGLE_AI_API_KEY = os.getenv("GOOGLE_AI_API_KEY")

# Twitter API Authentication
TWITTER_API_KEY = os.getenv("TWITTER_API_KEY")
TWITTER_API_KEY_SECRET = os.getenv("TWITTER_API_KEY_SECRET")
TWITTER_ACCESS_TOKEN = os.getenv("TWITTER_ACCESS_TOKEN")
TWITTER_ACCESS_TOKEN_SECRET = os.getenv("TWITTER_ACCESS_TOKEN_SECRET")
TWITTER_BEARER_TOKEN = os.getenv("TWITTER_BEARER_TOKEN")

# Database Settings
DB_SERVER = os.getenv("server", "")
DB_NAME = os.getenv("db", "")
DB_USER = os.getenv("user", "")
DB_PASSWORD = os.getenv("pwd", "")

# Build connection string safely (validation happens in validate_settings())
DB_CONNECTION_STRING = (
    f"DRIVER={{ODBC Driver 18 for SQL Server}}; "
    f"SERVER={DB_SERVER}; "
    f"DATABASE={DB_NAME}; "
    f"UID={DB_USER}; "
    f"PWD={DB_PASSWORD}; "
    f"TrustServerCertificate=yes; MARS_Connection=yes;"
) if all([DB_SERVER, DB_NAME, DB_USER, DB_PASSWORD]) else ""

# Side effects
NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL")
IMPORT_USER_ID = os.getenv("IMPORT_USER_ID")

# Feature switches
ENABLE_AI_PARSING = _env_bool("ENABLE_AI_PARSING", True)
ENABLE_PUBLISHING = _env_bool("ENABLE_PUBLISHING", False)
PERSIST_SEARCH_CURSORS = _env_bool("PERSIST_SEARCH_CURSORS", False)

# AI Model Settings
DEFAULT_AI_MODELS = [
    'gemini-2.5-flash-lite',  # Cheapest model that handles the JSON instructions well
    'gemini-2.0-flash-lite',
    'gemini-2.0-flash',
    'gemini-2.5-flash'
]
AI_POST_TEXT_LIMIT = 1000            # Max post characters sent to the model

# =============================================================================
# Search / Retrieval Settings
# =============================================================================

SEARCH_BASE_FILTERS = "-is:retweet -is:reply lang:en"
SEARCH_QUERIES = [
    # Major cities + events
    f'(event OR conference OR workshop OR summit OR hackathon) '
    f'(Lagos OR Abuja OR "Port Harcourt" OR Kano OR Ibadan) {SEARCH_BASE_FILTERS}',
    # Tech-specific hashtags
    f'(#LagosTech OR #NaijaTech OR #NigerianTech OR #TechInNigeria) '
    f'(conference OR meetup OR hackathon OR event) {SEARCH_BASE_FILTERS}',
    # Tech domains
    f'Nigeria (blockchain OR fintech OR AI OR "machine learning" OR cybersecurity OR startup) '
    f'(summit OR conference OR event OR meetup) {SEARCH_BASE_FILTERS}',
]
SEARCH_MAX_RESULTS = 100             # Twitter API accepts 10..100 per request
SEARCH_MAX_RETRIES = 1               # Retries after a throttling response
RATE_LIMIT_BUFFER_SECONDS = 2        # Added past the quota reset before retrying
RATE_LIMIT_FALLBACK_WAIT = 60        # Wait when the platform gives no reset hint
INTER_QUERY_DELAY_SECONDS = 5        # Pause between consecutive queries

# =============================================================================
# Extraction / Validation Settings
# =============================================================================

EVENT_UTC_OFFSET_HOURS = 1           # West Africa Time, no daylight saving
TITLE_MIN_LENGTH = 15
TITLE_MAX_LENGTH = 120
DESCRIPTION_MIN_LENGTH = 50
DATE_GRACE_HOURS = 24                # Drafts dated further in the past are rejected
FALLBACK_DATE_OFFSET_DAYS = 7        # Used when no date can be read from the post
DEFAULT_CATEGORY = "Startup"

# =============================================================================
# Ingestion Settings
# =============================================================================

ACTIVITY_BATCH_SIZE = 50
NOTIFICATION_BATCH_SIZE = 10
NOTIFICATION_BATCH_DELAY = 1         # Seconds between notification batches
NOTIFICATION_TIMEOUT = 10            # Seconds timeout for the webhook call
DB_ID_LOOKUP_CHUNK = 500             # Keeps IN (...) lists under the driver's parameter cap

# =============================================================================
# Publishing Settings
# =============================================================================

TWITTER_CHARACTER_LIMIT = 280
POST_RESERVED_CHARS = 10             # Slack kept free when sizing the description
POST_MIN_DESCRIPTION_SPACE = 50      # Below this the description is left out
POST_MAX_RETRIES = 1
POST_RETRY_BACKOFF_SECONDS = 60
PUBLISH_BATCH_SIZE = 5
PUBLISH_BATCH_DELAY = 5              # Seconds between publish batches
PUBLISH_FETCH_LIMIT = 10
POST_HASHTAGS = " ".join(EVENT_HASHTAGS)

# =============================================================================
# Scheduler Settings
# =============================================================================

INGEST_INTERVAL_MINUTES = _env_int("INGEST_INTERVAL_MINUTES", 60)
PUBLISH_INTERVAL_MINUTES = _env_int("PUBLISH_INTERVAL_MINUTES", 180)
SCHEDULER_POLL_SECONDS = 5
