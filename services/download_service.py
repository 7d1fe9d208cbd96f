"""
Download Service Module

This module writes media files to disk. A file that already exists at its
destination is never fetched again, which is the only deduplication the
application performs.
"""

import os
import tempfile
from typing import Optional, List

import requests

from config import settings
from data.models import MediaItem, DownloadResult, DownloadOutcome
from utils.exceptions import MediaFetchError
from utils.helpers import ensure_dir_exists
from utils.logger import get_logger

logger = get_logger(__name__)

PARTIAL_SUFFIX = ".part"


class Downloader:
    """Downloads media items into a destination directory."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None,
                 chunk_size: Optional[int] = None):
        """
        Initialize the downloader.

        Args:
            session: HTTP session to use, a new one with the default User-Agent if omitted
            timeout: Seconds per request, defaults to settings.DOWNLOAD_TIMEOUT
            chunk_size: Streaming chunk size, defaults to settings.DOWNLOAD_CHUNK_SIZE
        """
        if session is None:
            session = requests.Session()
            session.headers.update({'User-Agent': settings.USER_AGENT})
        self.session = session
        self.timeout = timeout if timeout is not None else settings.DOWNLOAD_TIMEOUT
        self.chunk_size = chunk_size or settings.DOWNLOAD_CHUNK_SIZE

    def download_all(self, items: List[MediaItem], directory: str) -> List[DownloadResult]:
        """
        Download every item of one post, independently of each other.

        A failed item is logged and recorded; the remaining items are still attempted.

        Args:
            items: The post's media items
            directory: Destination directory

        Returns:
            List[DownloadResult]: One result per item, in order
        """
        results = []
        for item in items:
            path = os.path.join(directory, item.file_name)

            if os.path.exists(path):
                logger.info(f" - Already downloaded: {path}")
                results.append(DownloadResult(item=item, path=path, outcome=DownloadOutcome.ALREADY_PRESENT))
                continue

            try:
                logger.info(f" - Downloading... {item.download_uri}")
                written = self.fetch(item.download_uri, path)
            except MediaFetchError as e:
                logger.error(f" - Download failed: {e}")
                results.append(DownloadResult(item=item, path=path, outcome=DownloadOutcome.FAILED,
                                              error=str(e)))
                continue

            if written:
                results.append(DownloadResult(item=item, path=path, outcome=DownloadOutcome.DOWNLOADED))
            else:
                logger.info(f" - Already downloaded by another favorite: {path}")
                results.append(DownloadResult(item=item, path=path, outcome=DownloadOutcome.ALREADY_PRESENT))
        return results

    def fetch(self, uri: str, path: str) -> bool:
        """
        Stream a URI to a file.

        The body is written to a temporary ".part" file of its own in the
        destination directory and renamed into place once complete. If another
        writer finished the same destination first, the temporary file is
        discarded and the existing file is kept.

        Args:
            uri: The media URI
            path: Destination file path

        Returns:
            bool: True if this call created the file, False if it already existed when the body was complete

        Raises:
            MediaFetchError: On network, HTTP or file system failure.
        """
        directory = os.path.dirname(path) or "."
        partial_path = None
        try:
            ensure_dir_exists(directory)
            with self.session.get(uri, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with tempfile.NamedTemporaryFile(dir=directory, prefix=os.path.basename(path) + ".",
                                                 suffix=PARTIAL_SUFFIX, delete=False) as fh:
                    partial_path = fh.name
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            fh.write(chunk)

            if os.path.exists(path):
                self._discard(partial_path)
                return False
            os.replace(partial_path, path)
            return True
        except requests.RequestException as e:
            self._discard(partial_path)
            raise MediaFetchError(uri, f"Request failed: {e}") from e
        except OSError as e:
            self._discard(partial_path)
            raise MediaFetchError(uri, f"Could not write {path}: {e}") from e

    @staticmethod
    def _discard(partial_path: Optional[str]) -> None:
        if not partial_path:
            return
        try:
            if os.path.exists(partial_path):
                os.remove(partial_path)
        except OSError as e:
            logger.warning(f"Could not remove partial download {partial_path}: {e}")
