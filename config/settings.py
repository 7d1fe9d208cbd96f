"""
Configuration Settings for FavoImgs

This module centralizes all configuration settings for the FavoImgs application,
including environment variables, API keys, and application constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
ENV_FILE = os.path.join(APP_ROOT, '.env')
load_dotenv(dotenv_path=ENV_FILE)

# Malformed values found while loading, reported by validate_settings()
INVALID_SETTINGS = []


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to the default when unset or malformed."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        INVALID_SETTINGS.append(f"{name} must be an integer, got {value!r}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean environment variable ("1", "true", "yes", "on")."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Twitter API Authentication
TWITTER_API_KEY = os.getenv("TWITTER_API_KEY")
TWITTER_API_KEY_SECRET = os.getenv("TWITTER_API_KEY_SECRET")
TWITTER_ACCESS_TOKEN = os.getenv("TWITTER_ACCESS_TOKEN")
TWITTER_ACCESS_TOKEN_SECRET = os.getenv("TWITTER_ACCESS_TOKEN_SECRET")

# =============================================================================
# Storage Settings
# =============================================================================

DATA_PATH = os.getenv("DATA_PATH") or os.path.join(Path.home(), ".favoimgs")
CACHE_DB_FILE = os.getenv("CACHE_DB_FILE") or os.path.join(DATA_PATH, "Tweets.db")

# Download root; prompted for on first interactive run when unset
DOWNLOAD_PATH = os.getenv("DOWNLOAD_PATH")
DEFAULT_DOWNLOAD_PATH = os.path.join(Path.home(), "Pictures", "FavoImgs")

# One of: Flat, Date, ScreenName, Date_ScreenName, ScreenName_Date
NAMING_CONVENTION = os.getenv("NAMING_CONVENTION", "Flat")

# =============================================================================
# Feed Settings
# =============================================================================

PAGE_SIZE = _env_int("PAGE_SIZE", 200)                      # Favorites per request (API max 200)
MAX_PAGES = _env_int("MAX_PAGES", 50)                       # Pages per run, 0 for no limit
RATE_LIMIT_COOLDOWN = _env_int("RATE_LIMIT_COOLDOWN", 600)  # Seconds to wait after HTTP 429
RATE_LIMIT_MAX_WAIT = _env_int("RATE_LIMIT_MAX_WAIT", 3600)  # Total rate-limit wait per page before giving up
TEXT_SNIPPET_LENGTH = 280                                   # Characters of post text kept in the cache

# =============================================================================
# Download Settings
# =============================================================================

MAX_WORKERS = _env_int("MAX_WORKERS", 4)                    # Posts processed in parallel
DOWNLOAD_TIMEOUT = _env_int("DOWNLOAD_TIMEOUT", 30)         # Seconds per media request
DOWNLOAD_CHUNK_SIZE = 8192

# Size variant appended to pbs.twimg.com image URIs ("large" or "orig")
TWIMG_HOST = "twimg.com"
TWIMG_SIZE_VARIANT = os.getenv("TWIMG_SIZE_VARIANT", "large")

# Link entities ending in one of these are downloaded directly
IMAGE_EXTENSIONS = ("jpg", "gif", "png")

# =============================================================================
# Embedded Media Scraping Settings
# =============================================================================

SCRAPE_EMBEDDED_MEDIA = _env_bool("SCRAPE_EMBEDDED_MEDIA", True)
SCRAPE_TIMEOUT = _env_int("SCRAPE_TIMEOUT", 10)
SCRAPE_VIDEO_TYPE = "video/mp4"

# Web Request Settings
USER_AGENT = os.getenv(
    "USER_AGENT",
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
)
REQUEST_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
    'Accept-Encoding': 'gzip, deflate',
    'Connection': 'keep-alive',
}
