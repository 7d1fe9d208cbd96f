"""
FavoImgs Application

This is the main entry point for FavoImgs.
It walks the authenticated user's Twitter favorites, caches every post it sees,
and downloads the attached media into a local folder. Runs are incremental:
posts whose media is already on disk are skipped, and posts with failed
downloads are retried on the next run.
"""

import sys
import signal
import argparse
import logging
import threading
from typing import Optional

from dotenv import set_key

from config import settings
from config.run_config import RunConfig, from_settings
from config.validators import validate_settings, get_config_summary
from data.database import FavoriteStore
from data.models import RunSummary, DirectoryNamingConvention
from data.protocols import FavoriteStorage
from services.download_service import Downloader
from services.favorite_processor import FavoriteProcessor
from services.fetch_loop import PaginationFetchLoop
from services.media_resolver import MediaResolver
from services.protocols import FeedReader
from services.scrape_service import EmbeddedMediaScraper
from services.twitter_service import TwitterService
from utils.exceptions import (
    FavoImgsError, ConfigurationError, FeedAccessError, CacheUnavailableError
)
from utils.helpers import ensure_dir_exists
from utils.logger import get_logger, setup_file_logging

__version__ = "1.0.0"

EXIT_OK = 0
EXIT_FEED_ERROR = 1
EXIT_UNEXPECTED = 2
EXIT_CACHE_UNAVAILABLE = 3

# Set up logging
logger = get_logger(__name__)


class FavoritesMirror:
    """
    Main application class for FavoImgs.

    This class wires the feed reader, favorite cache, media resolver and
    downloader together and runs the fetch loop with an explicit configuration.
    """

    def __init__(self, run_config: RunConfig,
                 feed_reader: Optional[FeedReader] = None,
                 store: Optional[FavoriteStorage] = None,
                 resolver: Optional[MediaResolver] = None,
                 downloader: Optional[Downloader] = None,
                 cancel_event: Optional[threading.Event] = None,
                 interactive: bool = False,
                 validate: bool = True):
        """
        Initialize the application.

        Args:
            run_config: Configuration for the run
            feed_reader: Feed reader, a TwitterService is created on run() if omitted
            store: Favorite cache, a FavoriteStore on run_config.cache_db_file if omitted
            resolver: Media resolver
            downloader: Media downloader
            cancel_event: Set to stop requesting pages and let in-flight posts drain
            interactive: Allow console prompts (PIN authorization)
            validate: Validate settings before running
        """
        if validate:
            validate_settings(run_config)

        self.run_config = run_config
        self.cancel_event = cancel_event or threading.Event()
        self.interactive = interactive
        self.feed_reader = feed_reader
        self.store = store or FavoriteStore(run_config.cache_db_file or settings.CACHE_DB_FILE)

        if resolver is None:
            scraper = EmbeddedMediaScraper() if run_config.scrape_embedded_media else None
            resolver = MediaResolver(
                scraper=scraper,
                size_variant=run_config.twimg_size_variant,
                image_host=settings.TWIMG_HOST,
                image_extensions=settings.IMAGE_EXTENSIONS
            )
        self.resolver = resolver
        self.downloader = downloader or Downloader(timeout=run_config.download_timeout)

    def run(self, reset: bool = False) -> RunSummary:
        """
        Run one mirroring pass.

        Args:
            reset: Mark every cached favorite pending first, forcing a full re-download pass

        Returns:
            RunSummary: Counters for the run

        Raises:
            FeedAccessError: If the feed cannot be read.
            CacheUnavailableError: If the favorite cache fails.
        """
        if self.feed_reader is None:
            self.feed_reader = TwitterService(interactive=self.interactive)

        self.store.open()
        try:
            if reset:
                if self.store.reset_all():
                    logger.info("All cached favorites will be downloaded again")

            self._log_cache_state()

            processor = FavoriteProcessor(
                self.store, self.resolver, self.downloader, self.run_config,
                cancel_event=self.cancel_event
            )
            loop = PaginationFetchLoop(
                self.feed_reader, processor, self.run_config,
                cancel_event=self.cancel_event
            )
            summary = loop.run()
        finally:
            self.store.close()

        self._log_summary(summary)
        return summary

    def _log_cache_state(self) -> None:
        latest = self.store.latest()
        oldest = self.store.oldest()
        if latest is None:
            logger.info("Favorite cache is empty")
        else:
            logger.info(f"Cached favorites: {self.store.count()} (latest {latest}, oldest {oldest})")

    @staticmethod
    def _log_summary(summary: RunSummary) -> None:
        logger.info(
            f"Run finished ({summary.stop_reason}): {summary.pages} pages, "
            f"{summary.posts_seen} favorites ({summary.new_posts} new, {summary.skipped_posts} already complete)"
        )
        logger.info(
            f"Files: {summary.files_downloaded} downloaded, {summary.files_present} already present, "
            f"{summary.files_failed} failed; {summary.pending_posts} favorites left pending"
        )


def show_app_info() -> None:
    """Print the run banner."""
    print(f"FavoImgs {__version__}")
    print("=" * 60)
    print()


def resolve_download_path(cli_path: Optional[str], interactive: bool) -> str:
    """
    Decide where media is downloaded.

    Order: command line, DOWNLOAD_PATH setting, then a first-run prompt whose
    answer is saved to the .env file. Non-interactive runs fall back to the default.

    Args:
        cli_path: The --download-path argument
        interactive: Whether the console can be prompted

    Returns:
        str: The download root
    """
    if cli_path:
        return cli_path
    if settings.DOWNLOAD_PATH:
        return settings.DOWNLOAD_PATH
    if not interactive:
        return settings.DEFAULT_DOWNLOAD_PATH

    answer = input(f"Select folder to save... [{settings.DEFAULT_DOWNLOAD_PATH}]: ").strip()
    download_path = answer or settings.DEFAULT_DOWNLOAD_PATH
    set_key(settings.ENV_FILE, "DOWNLOAD_PATH", download_path)
    logger.info(f"Saved download path to {settings.ENV_FILE}")
    return download_path


def install_signal_handlers(cancel_event: threading.Event) -> None:
    """Turn SIGINT/SIGTERM into a cancellation request."""
    def _handler(signum, frame):
        logger.warning("Cancellation requested, finishing favorites in progress...")
        cancel_event.set()

    signal.signal(signal.SIGINT, _handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handler)


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Download the media of your Twitter favorites')
    parser.add_argument('--download-path', type=str, default=None, help='Folder to save media to')
    parser.add_argument('--naming', type=str, default=None,
                        choices=[c.value for c in DirectoryNamingConvention],
                        help='Subdirectory layout for downloaded media')
    parser.add_argument('--page-size', type=int, default=None, help='Favorites per request (max 200)')
    parser.add_argument('--max-pages', type=int, default=None, help='Pages per run, 0 for no limit')
    parser.add_argument('--cooldown', type=float, default=None, help='Seconds to wait after a rate limit')
    parser.add_argument('--workers', type=int, default=None, help='Favorites processed in parallel')
    parser.add_argument('--reset', action='store_true', help='Download every cached favorite again')
    parser.add_argument('--no-scrape', action='store_true', help='Do not look for videos in shared pages')
    parser.add_argument('--pause', action='store_true', help='Wait for ENTER before exiting')
    parser.add_argument('--log-file', type=str, default='favoimgs.log', help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Logging level')
    return parser.parse_args(argv)


def build_run_config(args, interactive: bool) -> RunConfig:
    """Build the run configuration from settings and command line overrides."""
    download_path = resolve_download_path(args.download_path, interactive)
    run_config = from_settings(download_path).with_overrides(
        naming_convention=args.naming,
        page_size=args.page_size,
        max_pages=args.max_pages,
        rate_limit_cooldown=args.cooldown,
        max_workers=args.workers,
    )
    if args.no_scrape:
        run_config = run_config.with_overrides(scrape_embedded_media=False)
    return run_config


def main(argv=None):
    """Main entry point for the application."""
    # Parse command line arguments
    args = parse_arguments(argv)

    # Set up logging
    log_level = getattr(logging, args.log_level)
    setup_file_logging(args.log_file, log_level)

    show_app_info()
    interactive = sys.stdin.isatty()
    cancel_event = threading.Event()

    try:
        run_config = build_run_config(args, interactive)
        logger.info(f"Download path: {run_config.download_path}")
        ensure_dir_exists(run_config.download_path)

        mirror = FavoritesMirror(run_config, cancel_event=cancel_event, interactive=interactive)
        logger.debug(f"Configuration: {get_config_summary(run_config)}")

        install_signal_handlers(cancel_event)
        mirror.run(reset=args.reset)
        exit_code = EXIT_OK

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        exit_code = EXIT_FEED_ERROR
    except FeedAccessError as e:
        logger.error(f"Cannot read favorites: {e}")
        exit_code = EXIT_FEED_ERROR
    except CacheUnavailableError as e:
        logger.error(f"Favorite cache unavailable: {e}")
        exit_code = EXIT_CACHE_UNAVAILABLE
    except FavoImgsError as e:
        logger.error(f"FavoImgs error: {e}", exc_info=True)
        exit_code = EXIT_UNEXPECTED
    except Exception as e:
        logger.error(f"Unhandled exception in FavoImgs: {e}", exc_info=True)
        exit_code = EXIT_UNEXPECTED

    # Log application end
    logger.info(f"FavoImgs finished with exit code {exit_code}")

    if args.pause and interactive:
        input("Press ENTER to exit...")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
