"""
Favorite Processor Module

This module runs one favorited post through the pipeline: consult the cache,
resolve the post's media, download it, and mark the post complete once every
item is on disk.
"""

import threading
from typing import Optional

from config.run_config import RunConfig
from data.models import FeedPost, PostResult, DownloadOutcome
from data.protocols import FavoriteStorage
from services.download_service import Downloader
from services.media_resolver import MediaResolver
from utils.exceptions import DuplicateFavoriteError
from utils.helpers import get_sub_directory_name, truncate_text
from utils.logger import get_logger

logger = get_logger(__name__)


def describe_post(post: FeedPost) -> str:
    """Format a one-line summary of a post for the log."""
    author = f"{post.author_name} (@{post.author_screen_name})" if post.author_name else f"@{post.author_screen_name}"
    text = truncate_text((post.text or "").replace("\n", " "), 80)
    return f"{author} -- {post.created_at:%Y-%m-%d %H:%M} [{post.id}] {text}"


class FavoriteProcessor:
    """Processes single posts; safe to call from several worker threads."""

    def __init__(self, store: FavoriteStorage, resolver: MediaResolver, downloader: Downloader,
                 run_config: RunConfig, cancel_event: Optional[threading.Event] = None):
        """
        Initialize the processor.

        Args:
            store: The favorite cache
            resolver: Media resolver
            downloader: Media downloader
            run_config: Run configuration (download root and naming convention)
            cancel_event: When set, posts that have not started yet are left untouched
        """
        self.store = store
        self.resolver = resolver
        self.downloader = downloader
        self.run_config = run_config
        self.cancel_event = cancel_event or threading.Event()

    def process(self, post: FeedPost) -> PostResult:
        """
        Run one post through the pipeline.

        Args:
            post: The favorited post

        Returns:
            PostResult: What happened to the post

        Raises:
            CacheUnavailableError: If the cache fails. Fatal for the run.
        """
        if self.cancel_event.is_set():
            return PostResult(favorite_id=post.id, status="cancelled")

        is_new = False
        if not self.store.exists(post.id):
            items = self.resolver.resolve(post)
            try:
                self.store.insert_pending(post.to_record(self.run_config.text_snippet_length),
                                          [item.source_uri for item in items])
                is_new = True
            except DuplicateFavoriteError:
                logger.warning(f"Favorite {post.id} was cached concurrently, continuing as pending")
        elif self.store.is_complete(post.id):
            logger.debug(f"Skipping completed favorite {post.id}")
            return PostResult(favorite_id=post.id, status="skipped")
        else:
            items = self.resolver.resolve(post)

        logger.info(describe_post(post))

        directory = get_sub_directory_name(
            self.run_config.download_path,
            self.run_config.naming_convention,
            post.created_at,
            post.author_screen_name
        )
        results = self.downloader.download_all(items, directory)

        result = PostResult(
            favorite_id=post.id,
            status="pending",
            is_new=is_new,
            downloaded=sum(1 for r in results if r.outcome == DownloadOutcome.DOWNLOADED),
            already_present=sum(1 for r in results if r.outcome == DownloadOutcome.ALREADY_PRESENT),
            failed=sum(1 for r in results if r.outcome == DownloadOutcome.FAILED),
        )

        if result.failed == 0:
            self.store.mark_complete(post.id)
            result.status = "complete"
        else:
            logger.warning(f"Favorite {post.id}: {result.failed} of {len(results)} downloads failed, "
                           f"will retry on the next run")

        return result
