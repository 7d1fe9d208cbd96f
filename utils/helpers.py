"""
Helper Utility Module

This module provides various helper functions used throughout the FavoImgs application,
including the directory naming strategy used to lay out downloaded media.
"""

import os
from datetime import datetime
from typing import Optional, Union
from urllib.parse import urlparse, unquote

from data.models import DirectoryNamingConvention
from utils.exceptions import ConfigurationError

DATE_DIRECTORY_FORMAT = "%Y%m%d"


def parse_naming_convention(value: Union[str, DirectoryNamingConvention, None]) -> DirectoryNamingConvention:
    """
    Parse a naming convention name (case-insensitive) into the enum.

    Args:
        value: Convention name such as "Date_ScreenName", an enum member, or None for Flat

    Returns:
        DirectoryNamingConvention: The parsed convention

    Raises:
        ConfigurationError: If the name does not match any convention
    """
    if isinstance(value, DirectoryNamingConvention):
        return value
    if not value:
        return DirectoryNamingConvention.FLAT

    wanted = value.strip().lower()
    for convention in DirectoryNamingConvention:
        if convention.value.lower() == wanted or convention.name.lower() == wanted:
            return convention

    choices = ", ".join(c.value for c in DirectoryNamingConvention)
    raise ConfigurationError(f"Unknown naming convention '{value}'. Expected one of: {choices}")


def get_sub_directory_name(base_path: str, convention: DirectoryNamingConvention,
                           created_at: datetime, screen_name: str) -> str:
    """
    Compute the destination directory for a favorite's media.

    Pure function: no directories are created here.

    Args:
        base_path: The download root
        convention: The directory naming convention
        created_at: When the post was created
        screen_name: The author's screen name

    Returns:
        str: The destination directory path
    """
    date_part = created_at.strftime(DATE_DIRECTORY_FORMAT)

    if convention == DirectoryNamingConvention.DATE:
        return os.path.join(base_path, date_part)
    if convention == DirectoryNamingConvention.SCREEN_NAME:
        return os.path.join(base_path, screen_name)
    if convention == DirectoryNamingConvention.DATE_SCREEN_NAME:
        return os.path.join(base_path, date_part, screen_name)
    if convention == DirectoryNamingConvention.SCREEN_NAME_DATE:
        return os.path.join(base_path, screen_name, date_part)
    return base_path


def file_name_from_uri(uri: str) -> Optional[str]:
    """
    Get the last path segment of a URI, URL-decoded.

    Args:
        uri: The media URI

    Returns:
        Optional[str]: The file name, or None if the URI path has no final segment
    """
    path = urlparse(uri).path
    name = unquote(os.path.basename(path.rstrip('/'))) if path else ''
    # Drop any size-variant suffix such as "photo.jpg:large"
    name = name.split(':', 1)[0]
    return name or None


def truncate_text(text: str, max_length: int = 100, add_ellipsis: bool = True) -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: The text to truncate
        max_length: Maximum length
        add_ellipsis: Whether to add an ellipsis if text is truncated

    Returns:
        str: Truncated text
    """
    if not text or len(text) <= max_length:
        return text

    truncated = text[:max_length].rstrip()
    if add_ellipsis:
        truncated += "..."

    return truncated


def ensure_dir_exists(directory: str) -> None:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        directory: The directory path to check/create
    """
    os.makedirs(directory, exist_ok=True)
