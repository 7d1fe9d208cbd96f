"""
Service Protocol Definitions

This module defines typing.Protocol interfaces for the collaborators used by the
favorites pipeline. These protocols enable loose coupling, dependency injection,
and easier testing.

Protocols defined:
- FeedReader: Interface for reading the paginated favorites feed
- EmbeddedMediaSource: Interface for discovering media embedded in shared pages
"""

from typing import Protocol, Optional, List, Tuple

from data.models import FeedPage


class FeedReader(Protocol):
    """Protocol defining the interface for reading the favorites feed.

    Implementations return pages newest-first and report failures as:
    - RateLimitError when the source asks the caller to back off
    - FeedAccessError (or a subclass) for every other failure
    """

    def list_favorites(self, before_id: Optional[int], count: int) -> FeedPage:
        """Fetch one page of favorites.

        Args:
            before_id: Only return posts with an id less than or equal to this, or None for the newest.
            count: Maximum number of posts to return.

        Returns:
            FeedPage with the posts and the source's remaining-quota counters.
        """
        ...


class EmbeddedMediaSource(Protocol):
    """Protocol defining the interface for best-effort embedded media discovery.

    Failures are reported as ScrapeError so that one bad link never affects
    the rest of a post's media.
    """

    def scrape_embedded_media(self, url: str) -> List[Tuple[str, str]]:
        """Discover media embedded in the page at url.

        Args:
            url: Expanded URL of a link shared in a post.

        Returns:
            List of (uri, filename) pairs, possibly empty.
        """
        ...
