"""
Custom Exception Classes for Event Scout

This module defines custom exceptions for better error handling and
categorization of failures across the ingestion and publishing pipeline.
"""

from typing import Optional


class EventScoutError(Exception):
    """Base exception for all Event Scout application errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(EventScoutError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


# =============================================================================
# Social Media Errors
# =============================================================================

class SocialMediaError(EventScoutError):
    """Base exception for social media platform errors."""
    pass


class AuthenticationError(SocialMediaError):
    """Raised when authentication with a social media platform fails."""
    pass


class SearchError(SocialMediaError):
    """Raised when a search request fails for a reason other than throttling."""
    pass


class PostingError(SocialMediaError):
    """Raised when posting to a social media platform fails."""
    pass


class RateLimitError(SocialMediaError):
    """
    Raised when a rate limit is hit on a social media platform.

    Attributes:
        reset_at: Epoch seconds at which the quota resets, if the platform said so.
    """

    def __init__(self, message: str, reset_at: Optional[float] = None):
        super().__init__(message)
        self.reset_at = reset_at


# =============================================================================
# AI Service Errors
# =============================================================================

class AIServiceError(EventScoutError):
    """Base exception for AI service errors."""
    pass


class AIParseError(AIServiceError):
    """Raised when the model response is not a usable event structure."""
    pass


# =============================================================================
# Extraction Errors
# =============================================================================

class ExtractionError(EventScoutError):
    """Raised when a post cannot be turned into an event draft unexpectedly."""
    pass


# =============================================================================
# Database Errors
# =============================================================================

class DatabaseError(EventScoutError):
    """Base exception for database-related errors."""
    pass


class ConnectionError(DatabaseError):
    """Raised when database connection fails."""
    pass


class QueryError(DatabaseError):
    """Raised when a database query fails."""
    pass


# =============================================================================
# Notification Errors
# =============================================================================

class NotificationError(EventScoutError):
    """Raised when a notification cannot be delivered."""
    pass
