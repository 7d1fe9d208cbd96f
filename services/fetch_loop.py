"""
Pagination Fetch Loop Module

This module walks the favorites feed from newest to oldest. Pages are fetched
one at a time using a max_id watermark; the posts of each page are processed
in parallel on a bounded worker pool before the next page is requested.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional, List

from config.run_config import RunConfig
from data.models import FeedPage, FeedPost, RateLimitInfo, RunSummary
from services.favorite_processor import FavoriteProcessor
from services.protocols import FeedReader
from utils.exceptions import RateLimitError, RateLimitExceededError
from utils.logger import get_logger

logger = get_logger(__name__)

STOP_END_OF_HISTORY = "end_of_history"
STOP_PAGE_LIMIT = "page_limit"
STOP_CANCELLED = "cancelled"


class PaginationFetchLoop:
    """Drives page-by-page retrieval of favorites with rate-limit backoff."""

    def __init__(self, feed_reader: FeedReader, processor: FavoriteProcessor, run_config: RunConfig,
                 cancel_event: Optional[threading.Event] = None,
                 wait: Optional[Callable[[float], bool]] = None):
        """
        Initialize the fetch loop.

        Args:
            feed_reader: Source of favorites pages
            processor: Per-post pipeline
            run_config: Run configuration
            cancel_event: When set, no further pages are requested
            wait: Sleeps for the given seconds and returns True if cancelled meanwhile,
                defaults to cancel_event.wait
        """
        self.feed_reader = feed_reader
        self.processor = processor
        self.run_config = run_config
        self.cancel_event = cancel_event or threading.Event()
        self._wait = wait or self.cancel_event.wait
        self.cursor: Optional[int] = None

    def run(self) -> RunSummary:
        """
        Fetch and process pages until the feed is exhausted, the page cap is hit, or the run is cancelled.

        Returns:
            RunSummary: Counters for the run, with stop_reason set

        Raises:
            FeedAccessError: On any feed failure other than a rate limit within the wait budget.
            CacheUnavailableError: If the favorite cache fails.
        """
        summary = RunSummary()
        page_size = self.run_config.page_size
        max_pages = self.run_config.max_pages

        with ThreadPoolExecutor(max_workers=self.run_config.max_workers) as executor:
            while True:
                if self.cancel_event.is_set():
                    summary.stop_reason = STOP_CANCELLED
                    break

                if max_pages and summary.pages >= max_pages:
                    logger.info(f"Reached the limit of {max_pages} pages for this run")
                    summary.stop_reason = STOP_PAGE_LIMIT
                    break

                before_id = self.cursor - 1 if self.cursor is not None else None
                page = self._fetch_page(before_id, page_size)
                if page is None:
                    summary.stop_reason = STOP_CANCELLED
                    break

                summary.pages += 1
                for post in page.posts:
                    self.cursor = post.id if self.cursor is None else min(self.cursor, post.id)

                self._process_page(executor, page.posts, summary)
                self._log_rate_limit(page.rate_limit)

                if len(page.posts) < page_size:
                    logger.info("No more favorites to fetch")
                    summary.stop_reason = STOP_END_OF_HISTORY
                    break

        return summary

    def _fetch_page(self, before_id: Optional[int], count: int) -> Optional[FeedPage]:
        """
        Request one page, waiting out rate limits without moving the cursor.

        Args:
            before_id: max_id for the request, or None for the newest page
            count: Page size

        Returns:
            Optional[FeedPage]: The page, or None if the run was cancelled while waiting

        Raises:
            RateLimitExceededError: If the rate-limit wait budget for this page is used up.
        """
        cooldown = self.run_config.rate_limit_cooldown
        max_wait = self.run_config.rate_limit_max_wait
        waited = 0.0

        while True:
            try:
                return self.feed_reader.list_favorites(before_id, count)
            except RateLimitError as e:
                if max_wait and waited + cooldown > max_wait:
                    raise RateLimitExceededError(
                        f"Still rate limited after waiting {waited:.0f} seconds"
                    ) from e

                reset = f" Limit resets at {e.reset_at.astimezone():%Y-%m-%d %H:%M:%S}." if e.reset_at else ""
                logger.warning(f"Twitter API rate limit reached. Retrying in {cooldown:.0f} seconds.{reset}")

                if self._wait(cooldown):
                    logger.info("Cancelled while waiting for the rate limit")
                    return None
                waited += cooldown

    def _process_page(self, executor: ThreadPoolExecutor, posts: List[FeedPost], summary: RunSummary) -> None:
        """Process every post of a page and wait for all of them to finish."""
        futures = [executor.submit(self.processor.process, post) for post in posts]
        for future in as_completed(futures):
            summary.add(future.result())

    @staticmethod
    def _log_rate_limit(rate_limit: Optional[RateLimitInfo]) -> None:
        if rate_limit is None:
            return
        reset = f"{rate_limit.reset_at.astimezone():%Y-%m-%d %H:%M:%S}" if rate_limit.reset_at else "unknown"
        logger.info(f"Limit: {rate_limit.remaining}/{rate_limit.limit}, Reset: {reset}")
