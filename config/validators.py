"""
Configuration Validation for FavoImgs

This module contains configuration validation logic and the startup summary
logged at the beginning of each run.
"""

import logging

from config.run_config import RunConfig
from utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

VALID_SIZE_VARIANTS = ("thumb", "small", "medium", "large", "orig")


def validate_settings(run_config: RunConfig) -> bool:
    """
    Validate that all required settings are properly configured.

    Args:
        run_config: The configuration the pipeline will run with.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from config import settings

    errors = list(settings.INVALID_SETTINGS)

    # Consumer credentials are always needed; access tokens can be obtained interactively
    required_vars = [
        ("TWITTER_API_KEY", settings.TWITTER_API_KEY),
        ("TWITTER_API_KEY_SECRET", settings.TWITTER_API_KEY_SECRET),
    ]

    for var_name, var_value in required_vars:
        if not var_value:
            errors.append(f"Missing required environment variable: {var_name}")

    if bool(settings.TWITTER_ACCESS_TOKEN) != bool(settings.TWITTER_ACCESS_TOKEN_SECRET):
        errors.append("TWITTER_ACCESS_TOKEN and TWITTER_ACCESS_TOKEN_SECRET must be set together")

    if not run_config.download_path:
        errors.append("Download path is not configured")

    # Validate numeric settings are within reasonable bounds
    numeric_validations = [
        ("PAGE_SIZE", run_config.page_size, 1, 200),
        ("MAX_PAGES", run_config.max_pages, 0, 10000),
        ("MAX_WORKERS", run_config.max_workers, 1, 64),
        ("TEXT_SNIPPET_LENGTH", run_config.text_snippet_length, 1, 10000),
    ]

    for name, value, min_val, max_val in numeric_validations:
        if value < min_val or value > max_val:
            errors.append(f"{name} must be between {min_val} and {max_val}, got {value}")

    # Validate timeout values
    timeout_settings = [
        ("DOWNLOAD_TIMEOUT", run_config.download_timeout),
    ]

    for name, value in timeout_settings:
        if value <= 0:
            errors.append(f"{name} must be positive, got {value}")

    if run_config.rate_limit_cooldown < 0:
        errors.append(f"RATE_LIMIT_COOLDOWN must not be negative, got {run_config.rate_limit_cooldown}")
    if run_config.rate_limit_max_wait < 0:
        errors.append(f"RATE_LIMIT_MAX_WAIT must not be negative, got {run_config.rate_limit_max_wait}")

    if run_config.twimg_size_variant not in VALID_SIZE_VARIANTS:
        errors.append(f"TWIMG_SIZE_VARIANT must be one of {', '.join(VALID_SIZE_VARIANTS)}, "
                      f"got {run_config.twimg_size_variant}")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    if not settings.TWITTER_ACCESS_TOKEN:
        logger.warning("No Twitter access token configured; PIN authorization will be required")

    return True


def get_config_summary(run_config: RunConfig) -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    # Import settings here to avoid circular imports
    from config import settings

    return {
        "twitter": {
            "consumer_key_configured": bool(settings.TWITTER_API_KEY),
            "access_token_configured": bool(settings.TWITTER_ACCESS_TOKEN),
        },
        "storage": {
            "download_path": run_config.download_path,
            "naming_convention": run_config.naming_convention.value,
            "cache_db_file": run_config.cache_db_file,
        },
        "feed_settings": {
            "page_size": run_config.page_size,
            "max_pages": run_config.max_pages or "unlimited",
            "rate_limit_cooldown": run_config.rate_limit_cooldown,
            "rate_limit_max_wait": run_config.rate_limit_max_wait or "unlimited",
        },
        "download_settings": {
            "max_workers": run_config.max_workers,
            "size_variant": run_config.twimg_size_variant,
            "scrape_embedded_media": run_config.scrape_embedded_media,
        }
    }
