"""
Data Models for FavoImgs

This module contains data classes and enums used throughout the application:
cached favorites and their media links, normalized feed posts, and the
per-post and per-run results reported by the pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional, List


class DownloadState(IntEnum):
    """Completion state of a cached favorite (stored as the State column)."""
    PENDING = 0
    COMPLETE = 1


class DirectoryNamingConvention(Enum):
    """Policy mapping a post's metadata to a destination subdirectory."""
    FLAT = "Flat"
    DATE = "Date"
    SCREEN_NAME = "ScreenName"
    DATE_SCREEN_NAME = "Date_ScreenName"
    SCREEN_NAME_DATE = "ScreenName_Date"


class DownloadOutcome(Enum):
    """Result of a single media download attempt."""
    DOWNLOADED = "downloaded"
    ALREADY_PRESENT = "already_present"
    FAILED = "failed"


@dataclass
class FavoriteRecord:
    """A favorited post as stored in the cache."""
    id: int                            # Tweet ID, primary key
    created_at: datetime               # When the post was created
    author_id: int
    author_screen_name: str
    text: str                          # Bounded-length content snippet
    download_state: DownloadState = DownloadState.PENDING


@dataclass
class MediaLink:
    """A media URI discovered for a favorite, recorded before downloading."""
    favorite_id: int
    uri: str                           # As discovered, before any size-variant rewrite


@dataclass
class FeedPost:
    """A post from the favorites feed, normalized from the API payload."""
    id: int
    created_at: datetime
    author_id: int
    author_screen_name: str
    text: str
    author_name: Optional[str] = None
    media: Optional[List[str]] = None  # Native media base URIs, None when absent
    links: List[str] = field(default_factory=list)  # Expanded link entity URLs

    def to_record(self, max_text_length: int = 280) -> FavoriteRecord:
        """Build the cache record for this post."""
        return FavoriteRecord(
            id=self.id,
            created_at=self.created_at,
            author_id=self.author_id,
            author_screen_name=self.author_screen_name,
            text=(self.text or "")[:max_text_length],
        )


@dataclass
class MediaItem:
    """A resolved, downloadable media item."""
    source_uri: str                    # Recorded in the cache
    download_uri: str                  # Fetched over the network
    file_name: str                     # Destination file name


@dataclass
class DownloadResult:
    """Outcome of downloading one media item."""
    item: MediaItem
    path: str
    outcome: DownloadOutcome
    error: Optional[str] = None


@dataclass
class RateLimitInfo:
    """Remaining-quota counters reported by the feed source."""
    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset_at: Optional[datetime] = None


@dataclass
class FeedPage:
    """One page of favorites plus the quota counters that came with it."""
    posts: List[FeedPost]
    rate_limit: Optional[RateLimitInfo] = None


@dataclass
class PostResult:
    """Outcome of processing one post through the pipeline."""
    favorite_id: int
    status: str                        # 'skipped', 'complete', 'pending' or 'cancelled'
    is_new: bool = False
    downloaded: int = 0
    already_present: int = 0
    failed: int = 0


@dataclass
class RunSummary:
    """Aggregate counters for a whole run."""
    pages: int = 0
    posts_seen: int = 0
    new_posts: int = 0
    skipped_posts: int = 0
    completed_posts: int = 0
    pending_posts: int = 0
    cancelled_posts: int = 0
    files_downloaded: int = 0
    files_present: int = 0
    files_failed: int = 0
    stop_reason: Optional[str] = None

    def add(self, result: PostResult) -> None:
        """Fold a post result into the summary."""
        self.posts_seen += 1
        if result.is_new:
            self.new_posts += 1
        if result.status == "skipped":
            self.skipped_posts += 1
        elif result.status == "complete":
            self.completed_posts += 1
        elif result.status == "pending":
            self.pending_posts += 1
        elif result.status == "cancelled":
            self.cancelled_posts += 1
        self.files_downloaded += result.downloaded
        self.files_present += result.already_present
        self.files_failed += result.failed
