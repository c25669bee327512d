"""Source directory scanning for Photo Sorter."""

import logging
import os
from typing import Iterator, List, Optional, Sequence, Tuple

from photosorter.core.models import SourceFile, ProgressCallback
from photosorter.core.utils import is_within

logger = logging.getLogger(__name__)

PHOTO_EXTENSIONS = (".jpg", ".jpeg")


def is_photo(filename: str) -> bool:
    """Check whether a file is a photo the organizer renames (JPEG)."""
    return os.path.splitext(filename)[1].lower() in PHOTO_EXTENSIONS


def _fast_walk(path: str) -> Iterator[Tuple[str, List[str], List[str]]]:
    """Fast directory walker using os.scandir.

    Uses os.scandir() which provides DirEntry objects with cached stat info,
    avoiding redundant syscalls.

    Args:
        path: Root directory to walk.

    Yields:
        Tuples of (dirpath, dirnames, filenames) like os.walk().
    """
    try:
        with os.scandir(path) as entries:
            dirs = []
            files = []
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        dirs.append(entry.name)
                    elif entry.is_file():
                        files.append(entry.name)
                except OSError as e:
                    logger.debug(f"Cannot access entry {entry.path}: {e}")
                    continue
            yield path, dirs, files
            for d in dirs:
                yield from _fast_walk(os.path.join(path, d))
    except OSError as e:
        logger.debug(f"Cannot access directory {path}: {e}")


class FileScanner:
    """Scans a source tree and splits it into photos and other files.

    Files are returned sorted by relative path so that repeated runs visit
    them, and resolve name collisions, in the same order.

    Usage:
        scanner = FileScanner("/path/to/photos", exclude=["/path/to/sorted"])
        scanner.scan()

        print(f"Found {scanner.photo_count} photos, {scanner.other_count} other files")
        for source_file in scanner.files:
            ...
    """

    def __init__(self, path: str, exclude: Optional[Sequence[str]] = None):
        """Initialize scanner.

        Args:
            path: Root directory to scan.
            exclude: Directories whose contents are skipped (e.g. the
                     destination, when it lies inside the source).
        """
        self.path = path
        self.exclude = [p for p in (exclude or []) if p]
        self.files: List[SourceFile] = []

    def _excluded(self, dirpath: str) -> bool:
        return any(is_within(dirpath, excluded) for excluded in self.exclude)

    def scan(self, on_progress: Optional[ProgressCallback] = None) -> List[SourceFile]:
        """Scan the directory tree.

        Args:
            on_progress: Optional callback for progress updates.
                        Called with (files_found, files_found, message).

        Returns:
            Sorted list of SourceFile.
        """
        files = []
        progress_interval = 100

        for dirpath, dirnames, filenames in _fast_walk(self.path):
            if self._excluded(dirpath):
                logger.debug(f"Skipping excluded directory {dirpath}")
                continue

            for filename in filenames:
                filepath = os.path.join(dirpath, filename)
                files.append(SourceFile(
                    filepath=filepath,
                    relative_path=os.path.relpath(filepath, self.path),
                    is_photo=is_photo(filename)
                ))

                if on_progress and len(files) % progress_interval == 0:
                    on_progress(len(files), len(files), f"Found {len(files)} files...")

        files.sort(key=lambda f: f.relative_path)
        self.files = files

        if on_progress:
            on_progress(len(files), len(files), "Scan complete")

        return files

    @property
    def photo_count(self) -> int:
        """Number of photos found."""
        return sum(1 for f in self.files if f.is_photo)

    @property
    def other_count(self) -> int:
        """Number of non-photo files found."""
        return len(self.files) - self.photo_count
