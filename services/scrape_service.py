"""
Scrape Service Module

Best-effort discovery of videos embedded in pages shared in favorited posts.
Pages are fetched with requests and parsed with BeautifulSoup; every
<source type="video/mp4"> element contributes its video URL.
"""

from typing import Optional, List, Tuple
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from config import settings
from utils.exceptions import ScrapeError
from utils.helpers import file_name_from_uri
from utils.logger import get_logger

logger = get_logger(__name__)

# Attributes that carry the video location, in order of preference
VIDEO_SOURCE_ATTRIBUTES = ('video-src', 'src', 'data-src')


class EmbeddedMediaScraper:
    """Finds embedded video sources in shared web pages."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None,
                 video_type: Optional[str] = None):
        """
        Initialize the scraper.

        Args:
            session: HTTP session to use, a new one with the default headers if omitted
            timeout: Seconds per page request, defaults to settings.SCRAPE_TIMEOUT
            video_type: MIME type of the sources to collect, defaults to settings.SCRAPE_VIDEO_TYPE
        """
        if session is None:
            session = requests.Session()
            session.headers.update(settings.REQUEST_HEADERS)
        self.session = session
        self.timeout = timeout if timeout is not None else settings.SCRAPE_TIMEOUT
        self.video_type = video_type or settings.SCRAPE_VIDEO_TYPE

    def scrape_embedded_media(self, url: str) -> List[Tuple[str, str]]:
        """
        Fetch a page and collect its embedded video sources.

        Args:
            url: The page URL

        Returns:
            List[Tuple[str, str]]: (uri, filename) pairs in document order, without duplicates

        Raises:
            ScrapeError: If the page cannot be fetched or parsed.
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ScrapeError(f"Could not fetch {url}: {e}") from e

        try:
            soup = BeautifulSoup(response.content, 'html.parser')
        except Exception as e:
            raise ScrapeError(f"Could not parse {url}: {e}") from e

        found: List[Tuple[str, str]] = []
        seen = set()
        for source in soup.find_all('source'):
            if source.get('type') != self.video_type:
                continue

            for attribute in VIDEO_SOURCE_ATTRIBUTES:
                value = source.get(attribute)
                if not value:
                    continue

                video_uri = urljoin(url, value)
                file_name = file_name_from_uri(video_uri)
                if file_name and video_uri not in seen:
                    seen.add(video_uri)
                    found.append((video_uri, file_name))
                break

        logger.debug(f"Found {len(found)} embedded videos in {url}")
        return found
