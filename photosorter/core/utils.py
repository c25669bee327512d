"""Utility functions for file and path operations."""

import os
import unicodedata
from typing import Optional


def normalize_filename(filename: str) -> str:
    """Normalize a filename to NFC form for consistent naming.

    macOS filesystems use NFD (decomposed) Unicode normalization, while
    Windows, Linux, and most cloud services use NFC (composed). The same
    relative path can therefore produce two different flattened names
    unless it is normalized first.

    Args:
        filename: Original filename (may be NFC or NFD).

    Returns:
        NFC-normalized filename.
    """
    return unicodedata.normalize("NFC", filename)


def exists(path: Optional[str]) -> bool:
    """Check if a path exists.

    Args:
        path: Path to check, or None.

    Returns:
        True if path exists, False if path is None or doesn't exist.
    """
    if path:
        return os.path.exists(path)
    return False


def checkout_dir(path: str) -> str:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path.

    Returns:
        Path to the directory.

    Raises:
        ValueError: If path exists as a file (not a directory).
        OSError: If the directory cannot be created.
    """
    if os.path.exists(path) and not os.path.isdir(path):
        raise ValueError(f"Cannot create directory: {path} exists but isn't a directory")

    if not os.path.isdir(path):
        os.makedirs(path)
    return path


def flatten_relative_path(relative_path: str) -> str:
    """Flatten a relative path into a single filename.

    Example:
        >>> flatten_relative_path(os.path.join("2019", "trip", "notes.txt"))
        '2019_trip_notes.txt'
    """
    flattened = relative_path.replace(os.sep, "_")
    if os.altsep:
        flattened = flattened.replace(os.altsep, "_")
    return normalize_filename(flattened)


def is_within(path: str, parent: str) -> bool:
    """Check whether path is parent itself or somewhere below it."""
    path = os.path.realpath(path)
    parent = os.path.realpath(parent)
    try:
        return os.path.commonpath([path, parent]) == parent
    except ValueError:
        # On Windows, commonpath fails across drives
        return False


def normalize_path(path: str) -> str:
    """Normalize a path for consistent handling.

    Handles:
    - Trailing slashes
    - Mixed forward/backward slashes
    - User home directory (~)
    - Leading/trailing whitespace

    Args:
        path: Path to normalize.

    Returns:
        Normalized path.
    """
    return os.path.normpath(os.path.expanduser(path.strip()))


def files_label(count: int) -> str:
    return "file" if count == 1 else "files"
