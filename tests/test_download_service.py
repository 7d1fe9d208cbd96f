"""
Tests for Downloader

Tests cover file-existence deduplication, per-item failure isolation,
directory creation, and cleanup of partial downloads.
"""

import pytest
from unittest.mock import MagicMock
import requests
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.models import MediaItem, DownloadOutcome
from services.download_service import Downloader
from utils.exceptions import MediaFetchError


def make_item(name: str, host: str = 'https://pbs.twimg.com/media/') -> MediaItem:
    return MediaItem(source_uri=host + name, download_uri=host + name + ':large', file_name=name)


class TestDownloadAll:
    """Tests for Downloader.download_all()."""

    def test_downloads_into_new_directory(self, tmp_path, media_session):
        """
        Test that the destination directory is created and the body written.
        """
        item = make_item('A.jpg')
        media_session.serve(item.download_uri, b'jpeg-data')
        directory = tmp_path / 'downloads' / '20240301' / 'alice'

        results = Downloader(session=media_session).download_all([item], str(directory))

        assert [r.outcome for r in results] == [DownloadOutcome.DOWNLOADED]
        assert (directory / 'A.jpg').read_bytes() == b'jpeg-data'
        assert list(directory.glob('*.part')) == []

    def test_existing_file_is_not_requested(self, tmp_path, media_session):
        """
        Test that an existing file is left untouched and never fetched.
        """
        item = make_item('A.jpg')
        existing = tmp_path / 'A.jpg'
        existing.write_bytes(b'original')

        results = Downloader(session=media_session).download_all([item], str(tmp_path))

        assert results[0].outcome == DownloadOutcome.ALREADY_PRESENT
        assert media_session.requested == []
        assert existing.read_bytes() == b'original'

    def test_failure_does_not_stop_other_items(self, tmp_path, media_session):
        """
        Test that one failing item is recorded and the rest are still downloaded.
        """
        first, broken, last = make_item('1.jpg'), make_item('2.jpg'), make_item('3.jpg')
        media_session.serve(first.download_uri)
        media_session.fail(broken.download_uri)
        media_session.serve(last.download_uri)

        results = Downloader(session=media_session).download_all([first, broken, last], str(tmp_path))

        assert [r.outcome for r in results] == [
            DownloadOutcome.DOWNLOADED, DownloadOutcome.FAILED, DownloadOutcome.DOWNLOADED
        ]
        assert results[1].error
        assert (tmp_path / '1.jpg').exists()
        assert not (tmp_path / '2.jpg').exists()
        assert (tmp_path / '3.jpg').exists()

    def test_http_error_is_a_failure(self, tmp_path, media_session):
        item = make_item('missing.jpg')

        results = Downloader(session=media_session).download_all([item], str(tmp_path))

        assert results[0].outcome == DownloadOutcome.FAILED
        assert not (tmp_path / 'missing.jpg').exists()

    def test_empty_item_list(self, tmp_path, media_session):
        assert Downloader(session=media_session).download_all([], str(tmp_path)) == []


class TestFetch:
    """Tests for Downloader.fetch()."""

    def test_streams_with_timeout(self, tmp_path, mock_http_response):
        session = MagicMock()
        session.get.return_value = mock_http_response(content=b'data')

        written = Downloader(session=session, timeout=7).fetch('https://example.com/a.png', str(tmp_path / 'a.png'))

        assert written is True

        session.get.assert_called_once_with('https://example.com/a.png', stream=True, timeout=7)
        assert (tmp_path / 'a.png').read_bytes() == b'data'

    def test_interrupted_stream_leaves_no_file(self, tmp_path, mock_http_response):
        """
        Test that a connection drop mid-body removes the partial file.
        """
        def broken_body(chunk_size=8192):
            yield b'first-half'
            raise requests.exceptions.ChunkedEncodingError("connection reset")

        response = mock_http_response(content=b'unused')
        response.iter_content.side_effect = broken_body
        session = MagicMock()
        session.get.return_value = response
        target = tmp_path / 'video.mp4'

        with pytest.raises(MediaFetchError) as exc_info:
            Downloader(session=session).fetch('https://example.com/video.mp4', str(target))

        assert exc_info.value.uri == 'https://example.com/video.mp4'
        assert not target.exists()
        assert list(tmp_path.glob('*.part')) == []

    def test_unwritable_destination(self, tmp_path, mock_http_response):
        """
        Test that a file system error is reported as MediaFetchError.
        """
        session = MagicMock()
        session.get.return_value = mock_http_response(content=b'data')
        blocker = tmp_path / 'blocker'
        blocker.write_text('not a directory')

        with pytest.raises(MediaFetchError):
            Downloader(session=session).fetch('https://example.com/a.png', str(blocker / 'a.png'))

    def test_destination_created_while_streaming(self, tmp_path, mock_http_response):
        """
        Test that a file finished by another writer during the download is kept as is.
        """
        target = tmp_path / 'SAME.jpg'

        def body_racing_other_writer(chunk_size=8192):
            yield b'late-copy'
            target.write_bytes(b'first-copy')

        response = mock_http_response(content=b'unused')
        response.iter_content.side_effect = body_racing_other_writer
        session = MagicMock()
        session.get.return_value = response

        written = Downloader(session=session).fetch('https://pbs.twimg.com/media/SAME.jpg:large', str(target))

        assert written is False
        assert target.read_bytes() == b'first-copy'
        assert list(tmp_path.glob('*.part')) == []

    def test_concurrent_writers_use_separate_partial_files(self, tmp_path, mock_http_response):
        """
        Test that an in-progress partial file of another writer is neither reused nor removed.
        """
        target = tmp_path / 'SAME.jpg'
        other_partial = tmp_path / 'SAME.jpg.part'
        other_partial.write_bytes(b'other-writer')
        session = MagicMock()
        session.get.return_value = mock_http_response(content=b'data')

        assert Downloader(session=session).fetch('https://example.com/SAME.jpg', str(target)) is True

        assert target.read_bytes() == b'data'
        assert other_partial.read_bytes() == b'other-writer'
