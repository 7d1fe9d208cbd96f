"""
Shared Test Fixtures for FavoImgs

This module provides common fixtures used across all test modules.
Fixtures include a real favorite cache on a temporary file, a scripted feed
reader, HTTP response mocks, and data factories for posts and tweepy statuses.
"""

import pytest
from unittest.mock import MagicMock
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Optional, Dict, Any, List
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def run_config(tmp_path):
    """
    Provide a RunConfig that downloads into a temporary folder.

    Rate-limit cooldowns are zero so tests never sleep.

    Returns:
        RunConfig: A flat-layout configuration rooted at tmp_path/downloads.
    """
    from config.run_config import RunConfig

    return RunConfig(
        download_path=str(tmp_path / "downloads"),
        page_size=3,
        max_pages=10,
        rate_limit_cooldown=0,
        rate_limit_max_wait=0,
        max_workers=2,
        download_timeout=5,
        scrape_embedded_media=False,
        cache_db_file=str(tmp_path / "cache" / "Tweets.db"),
    )


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def favorite_store(tmp_path):
    """
    Provide an opened FavoriteStore backed by a temporary SQLite file.

    The store is closed after the test.

    Returns:
        FavoriteStore: An opened, empty store.
    """
    from data.database import FavoriteStore

    store = FavoriteStore(str(tmp_path / "cache" / "Tweets.db"))
    store.open()
    yield store
    store.close()


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Returns:
        list: A list that will contain captured log records.
    """
    import logging

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    root_logger = logging.getLogger()
    original_level = root_logger.level
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(handler)

    yield handler.records

    root_logger.removeHandler(handler)
    root_logger.setLevel(original_level)


# =============================================================================
# HTTP Response Fixtures
# =============================================================================

@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    The mock works both as a plain response and as a context manager
    (``with session.get(..., stream=True) as response``).

    Usage:
        def test_http_request(mock_http_response):
            response = mock_http_response(status_code=200, content=b'data')

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(
        status_code: int = 200,
        content: bytes = b'',
        headers: Optional[Dict[str, str]] = None,
        url: str = 'https://example.com'
    ) -> MagicMock:
        from requests.exceptions import HTTPError

        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.content = content
        mock_response.text = content.decode('utf-8', errors='replace')
        mock_response.url = url
        mock_response.headers = headers or {'Content-Type': 'text/html'}
        mock_response.ok = 200 <= status_code < 300
        mock_response.iter_content.side_effect = lambda chunk_size=8192: iter([content] if content else [])
        mock_response.__enter__.return_value = mock_response
        mock_response.__exit__.return_value = False

        if status_code >= 400:
            mock_response.raise_for_status.side_effect = HTTPError(
                f"{status_code} Error",
                response=mock_response
            )
        else:
            mock_response.raise_for_status.return_value = None

        return mock_response

    return _create_response


class FakeMediaSession:
    """requests.Session stand-in that serves media by URL.

    Unknown URLs answer 404; URLs registered as failing raise ConnectionError.
    Every requested URL is recorded in ``requested``.
    """

    def __init__(self, response_factory):
        self._response_factory = response_factory
        self.content: Dict[str, bytes] = {}
        self.failing = set()
        self.requested: List[str] = []
        self.headers = {}

    def serve(self, url: str, content: bytes = b'image-bytes') -> None:
        self.content[url] = content
        self.failing.discard(url)

    def fail(self, url: str) -> None:
        self.failing.add(url)

    def get(self, url, **kwargs):
        from requests.exceptions import ConnectionError as RequestsConnectionError

        self.requested.append(url)
        if url in self.failing:
            raise RequestsConnectionError(f"Connection refused: {url}")
        if url in self.content:
            return self._response_factory(status_code=200, content=self.content[url], url=url)
        return self._response_factory(status_code=404, url=url)


@pytest.fixture
def media_session(mock_http_response):
    """
    Provide a FakeMediaSession for Downloader tests.

    Returns:
        FakeMediaSession: A session serving registered URLs.
    """
    return FakeMediaSession(mock_http_response)


# =============================================================================
# Feed Fixtures
# =============================================================================

class FakeFeedReader:
    """Scripted FeedReader that serves favorites newest-first.

    Pages are cut from ``posts`` using max_id semantics, like the real API.
    Exceptions queued in ``errors`` are raised, one per call, before serving.
    """

    def __init__(self, posts=None, rate_limit=None):
        self.posts = sorted(posts or [], key=lambda p: p.id, reverse=True)
        self.rate_limit = rate_limit
        self.errors: List[Exception] = []
        self.calls: List[Dict[str, Any]] = []

    def list_favorites(self, before_id, count):
        from data.models import FeedPage

        self.calls.append({'before_id': before_id, 'count': count})
        if self.errors:
            raise self.errors.pop(0)

        eligible = [p for p in self.posts if before_id is None or p.id <= before_id]
        return FeedPage(posts=eligible[:count], rate_limit=self.rate_limit)


@pytest.fixture
def fake_feed_reader():
    """
    Factory fixture for scripted feed readers.

    Usage:
        def test_loop(fake_feed_reader, feed_post_factory):
            reader = fake_feed_reader([feed_post_factory(id=5)])

    Returns:
        callable: Creates a FakeFeedReader from a list of posts.
    """
    def _create(posts=None, rate_limit=None):
        return FakeFeedReader(posts, rate_limit)

    return _create


# =============================================================================
# Data Model Factories
# =============================================================================

@pytest.fixture
def feed_post_factory():
    """
    Factory fixture for creating FeedPost test objects.

    Usage:
        def test_post(feed_post_factory):
            post = feed_post_factory(id=42, media=['https://pbs.twimg.com/media/a.jpg'])

    Returns:
        callable: A factory function for creating FeedPost objects.
    """
    from data.models import FeedPost

    def _create_post(
        id: int = 1000,
        created_at: Optional[datetime] = None,
        author_id: int = 42,
        author_screen_name: str = 'alice',
        author_name: Optional[str] = 'Alice',
        text: str = 'A favorited post',
        media: Optional[List[str]] = None,
        links: Optional[List[str]] = None
    ) -> FeedPost:
        return FeedPost(
            id=id,
            created_at=created_at or datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
            author_id=author_id,
            author_screen_name=author_screen_name,
            author_name=author_name,
            text=text,
            media=media,
            links=links or [],
        )

    return _create_post


@pytest.fixture
def status_factory():
    """
    Factory fixture for tweepy-like Status objects.

    Attributes mirror the v1.1 payload: extended_entities is only present
    when media is given.

    Returns:
        callable: A factory function for creating status objects.
    """
    def _create_status(
        id: int = 1000,
        full_text: str = 'A favorited post',
        media_urls: Optional[List[str]] = None,
        expanded_urls: Optional[List[str]] = None,
        screen_name: str = 'alice',
        created_at: Optional[datetime] = None
    ) -> SimpleNamespace:
        status = SimpleNamespace(
            id=id,
            full_text=full_text,
            created_at=created_at or datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
            user=SimpleNamespace(id=42, screen_name=screen_name, name='Alice'),
            entities={'urls': [{'url': 'https://t.co/x', 'expanded_url': u} for u in (expanded_urls or [])]},
        )
        if media_urls is not None:
            status.extended_entities = {
                'media': [{'media_url': u.replace('https://', 'http://'), 'media_url_https': u}
                          for u in media_urls]
            }
        return status

    return _create_status
