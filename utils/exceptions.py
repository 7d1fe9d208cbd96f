"""
Custom Exception Classes for FavoImgs

This module defines custom exceptions for better error handling and
categorization of failures across the application. Each failure mode
has its own class so callers can tell retryable, fatal and locally
recoverable conditions apart without inspecting messages.
"""


class FavoImgsError(Exception):
    """Base exception for all FavoImgs application errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(FavoImgsError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


# =============================================================================
# Feed Access Errors
# =============================================================================

class FeedAccessError(FavoImgsError):
    """Raised when the favorites feed cannot be read. Fatal for the run."""
    pass


class AuthenticationError(FeedAccessError):
    """Raised when authentication with Twitter fails or credentials are missing."""
    pass


class RateLimitError(FeedAccessError):
    """Raised when the feed source reports a rate limit (HTTP 429).

    Recoverable: the fetch loop waits and retries the identical request.
    """

    def __init__(self, message: str = "Rate limit exceeded", reset_at=None):
        super().__init__(message)
        self.reset_at = reset_at


class RateLimitExceededError(FeedAccessError):
    """Raised when rate-limit retries for a single page exhaust their wait budget."""
    pass


# =============================================================================
# Media Errors
# =============================================================================

class MediaFetchError(FavoImgsError):
    """Raised when a single media item cannot be downloaded."""

    def __init__(self, uri: str, message: str):
        super().__init__(f"{message} ({uri})")
        self.uri = uri


class ScrapeError(FavoImgsError):
    """Raised when the embedded media scraper cannot process a shared page."""
    pass


# =============================================================================
# Cache Errors
# =============================================================================

class CacheError(FavoImgsError):
    """Base exception for favorite cache errors."""
    pass


class CacheUnavailableError(CacheError):
    """Raised when the favorite cache cannot be read or written. Fatal for the run."""
    pass


class DuplicateFavoriteError(CacheError):
    """Raised when inserting a favorite whose id is already cached."""

    def __init__(self, favorite_id: int):
        super().__init__(f"Favorite {favorite_id} is already cached")
        self.favorite_id = favorite_id
