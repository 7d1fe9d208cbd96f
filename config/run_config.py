"""
Run Configuration for FavoImgs

The pipeline never reads the settings module directly. Instead the entry point
builds a RunConfig from settings and command line overrides and passes it in.
"""

from dataclasses import dataclass, replace
from typing import Optional

from config import settings
from data.models import DirectoryNamingConvention
from utils.helpers import parse_naming_convention


@dataclass(frozen=True)
class RunConfig:
    """Explicit configuration value for one mirroring run."""
    download_path: str
    naming_convention: DirectoryNamingConvention = DirectoryNamingConvention.FLAT
    page_size: int = 200
    max_pages: int = 50                    # 0 means no limit
    rate_limit_cooldown: float = 600.0     # Seconds
    rate_limit_max_wait: float = 3600.0    # Seconds per page, 0 means retry forever
    max_workers: int = 4
    download_timeout: float = 30.0
    scrape_embedded_media: bool = True
    twimg_size_variant: str = "large"
    text_snippet_length: int = 280
    cache_db_file: Optional[str] = None

    def with_overrides(self, **overrides) -> "RunConfig":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "naming_convention" in changes:
            changes["naming_convention"] = parse_naming_convention(changes["naming_convention"])
        return replace(self, **changes)


def from_settings(download_path: str) -> RunConfig:
    """
    Build a RunConfig from the settings module.

    Args:
        download_path: The resolved download root.

    Returns:
        RunConfig: The run configuration.
    """
    return RunConfig(
        download_path=download_path,
        naming_convention=parse_naming_convention(settings.NAMING_CONVENTION),
        page_size=settings.PAGE_SIZE,
        max_pages=settings.MAX_PAGES,
        rate_limit_cooldown=settings.RATE_LIMIT_COOLDOWN,
        rate_limit_max_wait=settings.RATE_LIMIT_MAX_WAIT,
        max_workers=settings.MAX_WORKERS,
        download_timeout=settings.DOWNLOAD_TIMEOUT,
        scrape_embedded_media=settings.SCRAPE_EMBEDDED_MEDIA,
        twimg_size_variant=settings.TWIMG_SIZE_VARIANT,
        text_snippet_length=settings.TEXT_SNIPPET_LENGTH,
        cache_db_file=settings.CACHE_DB_FILE,
    )
