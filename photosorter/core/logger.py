"""Run logging for Photo Sorter."""

import os
import time
from typing import List, Optional, TextIO

from photosorter.core.histogram import (
    DEFAULT_BINS, DEFAULT_WIDTH, MODE_POPULATION, SHORT_DATE_FORMAT, render_histogram
)
from photosorter.core.models import OrganizeRunResult
from photosorter.core.utils import files_label

# Name of the log directory within the destination
LOG_DIR_NAME = "_photosorter"


class BufferedLogger:
    """Buffered file logger with context manager support.

    Usage:
        with BufferedLogger("/path/to/logs") as logger:
            logger.log("Processing started")
            logger.log("Copied: IMG_0001.jpg")
        # File is automatically closed
    """

    def __init__(self, output_dir: str, filename: str = "verbose.txt"):
        """Initialize logger.

        Args:
            output_dir: Directory to write log file.
            filename: Name of log file (default: verbose.txt).
        """
        self.output_dir = output_dir
        self.filename = filename
        self.filepath = os.path.join(output_dir, filename)
        self._handle: Optional[TextIO] = None

    def _open(self) -> None:
        """Open the log file for writing (lazy initialization)."""
        if self._handle is None:
            os.makedirs(self.output_dir, exist_ok=True)
            self._handle = open(self.filepath, "a", encoding="utf-8")

    def log(self, message: str) -> None:
        """Write a timestamped message to the log."""
        self._open()
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
        self._handle.write(f"{timestamp} - {message}\n")

    def close(self) -> None:
        """Close the log file."""
        if self._handle:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "BufferedLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        """Check if logger is open."""
        return self._handle is not None


def format_summary(
    result: OrganizeRunResult,
    bins: int = DEFAULT_BINS,
    width: int = DEFAULT_WIDTH,
    mode: str = MODE_POPULATION
) -> List[str]:
    """Summary lines for a run: counters, date range and histogram."""
    stats = result.stats
    lines = [f"Processed {stats.processed} photos"]

    if stats.unhandled > 0:
        lines.append(
            f"Moved {stats.unhandled} unhandled {files_label(stats.unhandled)} "
            f"to {os.path.basename(result.unhandled_dir)}"
        )
    if stats.already_processed > 0:
        lines.append(
            f"Found {stats.already_processed} previously processed "
            f"{files_label(stats.already_processed)}"
        )
    if stats.unreadable > 0:
        lines.append(f"Skipped {stats.unreadable} unreadable {files_label(stats.unreadable)}")

    date_range = stats.date_range()
    if date_range:
        first, last = date_range
        lines.append(
            f"Date range: {first.strftime(SHORT_DATE_FORMAT)} - {last.strftime(SHORT_DATE_FORMAT)}"
        )
        lines.extend(render_histogram(stats.dates, bins, width, mode))

    if result.aborted:
        lines.append(f"Aborted: {result.aborted}")

    return lines


class RunLogger:
    """Logger that writes to the destination's _photosorter directory.

    Handles all logging output:
    - summary.txt: Concise summary (always generated)
    - verbose.txt: Every copy/skip decision (only with --verbose)
    """

    def __init__(self, log_dir: str, verbose: bool = False):
        """Initialize run logger.

        Args:
            log_dir: The _photosorter directory path.
            verbose: Whether to create verbose.txt.
        """
        self.log_dir = log_dir
        self.verbose = verbose
        self._verbose_logger: Optional[BufferedLogger] = None

        if verbose:
            self._verbose_logger = BufferedLogger(log_dir, filename="verbose.txt")

    def log(self, message: str) -> None:
        """Log a message to verbose.txt (if verbose mode enabled)."""
        if self._verbose_logger:
            self._verbose_logger.log(message)

    def close(self) -> None:
        """Close any open log files."""
        if self._verbose_logger:
            self._verbose_logger.close()

    def __enter__(self) -> "RunLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def write_summary(
        self,
        source_path: str,
        result: OrganizeRunResult,
        bins: int = DEFAULT_BINS,
        width: int = DEFAULT_WIDTH,
        mode: str = MODE_POPULATION
    ) -> str:
        """Write summary.txt.

        Returns:
            Path to summary file.
        """
        os.makedirs(self.log_dir, exist_ok=True)
        filepath = os.path.join(self.log_dir, "summary.txt")

        elapsed_time = result.elapsed_time
        if elapsed_time >= 60:
            minutes = int(elapsed_time // 60)
            seconds = int(elapsed_time % 60)
            duration = f"{minutes}m {seconds}s"
        else:
            duration = f"{elapsed_time:.1f}s"

        with open(filepath, "w", encoding="utf-8") as f:
            f.write("Photo Sorter - Run Summary\n")
            f.write("=" * 40 + "\n\n")
            f.write(f"Source:    {source_path}\n")
            f.write(f"Output:    {result.output_dir}\n")
            f.write(f"Started:   {result.start_time}\n")
            f.write(f"Completed: {result.end_time}\n")
            f.write(f"Duration:  {duration}\n\n")

            for line in format_summary(result, bins, width, mode):
                f.write(line + "\n")

        return filepath
