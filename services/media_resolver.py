"""
Media Resolver Module

This module turns a favorited post into the ordered list of media items to
download. Native attachments are always preferred; link entities are only
looked at when a post has no native attachments.
"""

import re
from typing import Optional, List, Sequence
from urllib.parse import urlparse

from data.models import FeedPost, MediaItem
from services.protocols import EmbeddedMediaSource
from utils.exceptions import ScrapeError
from utils.helpers import file_name_from_uri
from utils.logger import get_logger

logger = get_logger(__name__)


class MediaResolver:
    """Resolves the media URIs of a post."""

    def __init__(self, scraper: Optional[EmbeddedMediaSource] = None, size_variant: str = "large",
                 image_host: str = "twimg.com", image_extensions: Sequence[str] = ("jpg", "gif", "png")):
        """
        Initialize the resolver.

        Args:
            scraper: Embedded media source for non-image links, or None to ignore such links
            size_variant: Rendition requested from the platform image host
            image_host: Host whose image URIs get the size-variant suffix
            image_extensions: Extensions of links downloaded directly
        """
        self.scraper = scraper
        self.size_variant = size_variant
        self.image_host = image_host
        self._image_pattern = re.compile(
            r'\.(' + '|'.join(re.escape(ext) for ext in image_extensions) + r')$',
            re.IGNORECASE
        )

    def resolve(self, post: FeedPost) -> List[MediaItem]:
        """
        Resolve a post's media.

        Args:
            post: The favorited post

        Returns:
            List[MediaItem]: Items to download, empty if the post has no media
        """
        if post.media:
            return self._resolve_native(post.media)
        return self._resolve_links(post)

    def _resolve_native(self, media_uris: List[str]) -> List[MediaItem]:
        items = []
        for uri in media_uris:
            file_name = file_name_from_uri(uri)
            if not file_name:
                logger.warning(f"Skipping media without a file name: {uri}")
                continue
            items.append(MediaItem(source_uri=uri, download_uri=self.modify_image_uri(uri),
                                   file_name=file_name))
        return items

    def _resolve_links(self, post: FeedPost) -> List[MediaItem]:
        items = []
        for link in post.links:
            if self.is_image_file(link):
                file_name = file_name_from_uri(link)
                if file_name:
                    items.append(MediaItem(source_uri=link, download_uri=link, file_name=file_name))
                continue

            if self.scraper is None:
                continue

            try:
                scraped = self.scraper.scrape_embedded_media(link)
            except ScrapeError as e:
                logger.warning(f"Could not scrape embedded media for {post.id}: {e}")
                continue

            for uri, file_name in scraped:
                items.append(MediaItem(source_uri=uri, download_uri=uri,
                                       file_name=file_name or file_name_from_uri(uri)))
        return [item for item in items if item.file_name]

    def is_image_file(self, uri: str) -> bool:
        """Check whether a link points directly at an image file."""
        return bool(self._image_pattern.search(urlparse(uri).path))

    def modify_image_uri(self, uri: str) -> str:
        """
        Request the configured rendition from the platform image host.

        Args:
            uri: The media base URI

        Returns:
            str: The URI with a size-variant suffix for platform images, unchanged otherwise
        """
        host = urlparse(uri).netloc.lower()
        if host == self.image_host or host.endswith("." + self.image_host):
            return f"{uri}:{self.size_variant}"
        return uri
