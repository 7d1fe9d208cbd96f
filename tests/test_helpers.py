"""
Tests for Helper Utilities

Tests cover the directory naming strategy, naming convention parsing,
file name extraction from URIs, and small text/path helpers.
"""

import pytest
from datetime import datetime, timezone
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.models import DirectoryNamingConvention
from utils.exceptions import ConfigurationError
from utils.helpers import (
    get_sub_directory_name, parse_naming_convention, file_name_from_uri,
    truncate_text, ensure_dir_exists
)

BASE = os.path.join("downloads", "favs")
CREATED_AT = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


class TestDirectoryNaming:
    """Tests for get_sub_directory_name()."""

    @pytest.mark.parametrize("convention,expected", [
        (DirectoryNamingConvention.FLAT, BASE),
        (DirectoryNamingConvention.DATE, os.path.join(BASE, "20240301")),
        (DirectoryNamingConvention.SCREEN_NAME, os.path.join(BASE, "alice")),
        (DirectoryNamingConvention.DATE_SCREEN_NAME, os.path.join(BASE, "20240301", "alice")),
        (DirectoryNamingConvention.SCREEN_NAME_DATE, os.path.join(BASE, "alice", "20240301")),
    ])
    def test_conventions(self, convention, expected):
        """Each convention maps to its documented layout."""
        assert get_sub_directory_name(BASE, convention, CREATED_AT, "alice") == expected

    def test_is_deterministic(self):
        """The same inputs always give the same path."""
        first = get_sub_directory_name(BASE, DirectoryNamingConvention.DATE_SCREEN_NAME, CREATED_AT, "alice")
        second = get_sub_directory_name(BASE, DirectoryNamingConvention.DATE_SCREEN_NAME, CREATED_AT, "alice")
        assert first == second

    def test_has_no_side_effects(self, tmp_path):
        """Computing a path never creates directories."""
        path = get_sub_directory_name(str(tmp_path), DirectoryNamingConvention.DATE_SCREEN_NAME,
                                      CREATED_AT, "alice")
        assert not os.path.exists(path)


class TestNamingConventionParsing:
    """Tests for parse_naming_convention()."""

    @pytest.mark.parametrize("value,expected", [
        ("Flat", DirectoryNamingConvention.FLAT),
        ("date", DirectoryNamingConvention.DATE),
        ("SCREENNAME", DirectoryNamingConvention.SCREEN_NAME),
        ("Date_ScreenName", DirectoryNamingConvention.DATE_SCREEN_NAME),
        ("screen_name_date", DirectoryNamingConvention.SCREEN_NAME_DATE),
        (None, DirectoryNamingConvention.FLAT),
        ("", DirectoryNamingConvention.FLAT),
    ])
    def test_parse(self, value, expected):
        """Names and enum member names are accepted case-insensitively."""
        assert parse_naming_convention(value) == expected

    def test_enum_passes_through(self):
        assert parse_naming_convention(DirectoryNamingConvention.DATE) is DirectoryNamingConvention.DATE

    def test_unknown_name(self):
        """Unknown names raise ConfigurationError listing the choices."""
        with pytest.raises(ConfigurationError, match="Date_ScreenName"):
            parse_naming_convention("ByMonth")


class TestFileNameFromUri:
    """Tests for file_name_from_uri()."""

    @pytest.mark.parametrize("uri,expected", [
        ("https://pbs.twimg.com/media/ABC123.jpg", "ABC123.jpg"),
        ("https://pbs.twimg.com/media/ABC123.jpg:large", "ABC123.jpg"),
        ("https://example.com/a/b/video.mp4?token=1", "video.mp4"),
        ("https://example.com/files/my%20photo.png", "my photo.png"),
        ("https://example.com/", None),
        ("https://example.com", None),
    ])
    def test_last_path_segment(self, uri, expected):
        assert file_name_from_uri(uri) == expected


class TestSmallHelpers:
    """Tests for text and path helpers."""

    def test_truncate_text(self):
        assert truncate_text("short", 10) == "short"
        assert truncate_text("a" * 20, 10) == "a" * 10 + "..."
        assert truncate_text("a" * 20, 10, add_ellipsis=False) == "a" * 10

    def test_ensure_dir_exists_tolerates_existing(self, tmp_path):
        target = tmp_path / "x" / "y"
        ensure_dir_exists(str(target))
        ensure_dir_exists(str(target))
        assert target.is_dir()
