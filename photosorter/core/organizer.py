"""Organize engine for Photo Sorter.

Copies photos from a source tree into <dest>/<year>/ under names built from
their capture date, place and document name. Everything that isn't a JPEG
is copied, flattened, into <dest>/other/. Running again over the same
source is a no-op.
"""

import logging
import os
import shutil
import time
from typing import Optional

from photosorter.core.exiftool import ExifToolManager
from photosorter.core.hashing import file_digest, files_identical
from photosorter.core.histogram import DEFAULT_BINS, DEFAULT_WIDTH, MODE_POPULATION
from photosorter.core.logger import LOG_DIR_NAME, RunLogger
from photosorter.core.metadata import (
    get_document_name, get_location, read_metadata, read_metadata_exiftool,
    resolve_capture_date
)
from photosorter.core.models import (
    ClassificationResult, FatalAbort, OrganizeRunResult, OrganizeStats, Outcome,
    PhotoRecord, ProgressCallback, SourceFile
)
from photosorter.core.naming import build_base_name, build_filename, with_digest_suffix
from photosorter.core.places import PlaceResolver, country_name
from photosorter.core.scanner import FileScanner
from photosorter.core.settings import DEFAULT_DEST_PATH
from photosorter.core.utils import checkout_dir, exists, flatten_relative_path

logger = logging.getLogger(__name__)

# Subdirectory of the destination receiving non-photo files
UNHANDLED_DIR_NAME = "other"


class OrganizeAbort(Exception):
    """Raised while classifying a file when the whole run has to stop."""

    def __init__(self, reason: str, path: str = ""):
        super().__init__(f"{reason}: {path}" if path else reason)
        self.reason = reason
        self.path = path

    def to_fatal(self) -> FatalAbort:
        return FatalAbort(reason=self.reason, path=self.path)


def _adaptive_interval(total: int) -> int:
    """Progress update interval: every item for small runs, sparser for large ones."""
    if total < 50:
        return 1
    elif total < 200:
        return 10
    elif total < 1000:
        return 25
    elif total < 5000:
        return 50
    else:
        return 100


class PhotoOrganizer:
    """Sorts a source tree of photos into a dated destination tree.

    Usage:
        organizer = PhotoOrganizer("/path/to/camera", "/path/to/sorted")
        result = organizer.run(on_progress=my_callback)
        if result.aborted:
            print(f"Stopped: {result.aborted}")
        print(f"Copied {result.stats.processed} photos")
    """

    def __init__(
        self,
        source_path: str,
        dest_path: Optional[str] = None,
        place_resolver: Optional[PlaceResolver] = None,
        use_exiftool: bool = False,
        verbose: bool = False,
        geocode: bool = True,
        histogram_bins: int = DEFAULT_BINS,
        histogram_width: int = DEFAULT_WIDTH,
        histogram_mode: str = MODE_POPULATION
    ):
        """Initialize organizer.

        Args:
            source_path: Directory tree to read from (never modified).
            dest_path: Destination root (default: ./sorted).
            place_resolver: Resolver for GPS coordinates (default: bundled places).
            use_exiftool: Read metadata with ExifTool instead of Pillow.
            verbose: Log every copy/skip decision to verbose.txt.
            geocode: If False, filenames never contain a place.
            histogram_bins: Bins in the summary histogram.
            histogram_width: Total marks in the summary histogram.
            histogram_mode: "population" or "width".
        """
        self.source_path = source_path
        self.dest_path = dest_path or DEFAULT_DEST_PATH
        self.unhandled_dir = os.path.join(self.dest_path, UNHANDLED_DIR_NAME)
        self.log_dir = os.path.join(self.dest_path, LOG_DIR_NAME)
        self.place_resolver = place_resolver or PlaceResolver()
        self.use_exiftool = use_exiftool
        self.verbose = verbose
        self.geocode = geocode
        self.histogram_bins = histogram_bins
        self.histogram_width = histogram_width
        self.histogram_mode = histogram_mode

        self._exiftool: Optional[ExifToolManager] = None
        self._run_logger: Optional[RunLogger] = None

    def run(self, on_progress: Optional[ProgressCallback] = None) -> OrganizeRunResult:
        """Organize the whole source tree.

        Fatal conditions stop the run and are reported in the result's
        `aborted` field; files copied before that point stay in place.

        Args:
            on_progress: Optional callback for progress updates.

        Returns:
            OrganizeRunResult with statistics and paths.
        """
        start_time = time.time()
        stats = OrganizeStats()
        result = OrganizeRunResult(
            stats=stats,
            output_dir=self.dest_path,
            unhandled_dir=self.unhandled_dir,
            start_time=time.strftime("%Y-%m-%d %H:%M:%S")
        )

        if not exists(self.source_path) or not os.path.isdir(self.source_path):
            result.aborted = FatalAbort("Source directory does not exist", self.source_path)
            logger.error(str(result.aborted))
            return result

        try:
            checkout_dir(self.dest_path)
            checkout_dir(self.unhandled_dir)
            checkout_dir(self.log_dir)
        except (OSError, ValueError) as e:
            result.aborted = FatalAbort(f"Cannot create destination ({e})", self.dest_path)
            logger.error(str(result.aborted))
            return result
        result.log_dir = self.log_dir

        if on_progress:
            on_progress(0, 0, "[1/2] Scanning files...")

        def scan_progress(current, total, message):
            on_progress(current, 0, f"[1/2] {message}")

        scanner = FileScanner(self.source_path, exclude=[self.dest_path])
        files = scanner.scan(on_progress=scan_progress if on_progress else None)
        logger.info(
            f"Found {scanner.photo_count} photos and {scanner.other_count} other files "
            f"in {self.source_path}"
        )

        with RunLogger(self.log_dir, verbose=self.verbose) as run_logger:
            self._run_logger = run_logger
            run_logger.log(f"Started organizing: {self.source_path} -> {self.dest_path}")
            self._start_exiftool()
            try:
                total = len(files)
                interval = _adaptive_interval(total)
                if on_progress:
                    on_progress(0, total, "[2/2] Organizing...")

                for i, source_file in enumerate(files, 1):
                    stats.record(self.classify(source_file))
                    if on_progress and (i % interval == 0 or i == total):
                        on_progress(i, total, f"[2/2] {source_file.filename}")
            except OrganizeAbort as e:
                result.aborted = e.to_fatal()
                logger.error(f"Aborting: {result.aborted}")
                run_logger.log(f"ABORTED: {result.aborted}")
            finally:
                self._stop_exiftool()
                self._run_logger = None

            run_logger.log(f"Finished: {stats.total_files()} files handled")

        result.elapsed_time = time.time() - start_time
        result.end_time = time.strftime("%Y-%m-%d %H:%M:%S")
        result.summary_file = run_logger.write_summary(
            self.source_path, result,
            bins=self.histogram_bins,
            width=self.histogram_width,
            mode=self.histogram_mode
        )
        return result

    def classify(self, source_file: SourceFile) -> ClassificationResult:
        """Handle a single source file.

        Raises:
            OrganizeAbort: If the run cannot continue (unresolvable date,
                conflicting target, I/O failure).
        """
        if source_file.is_photo:
            return self._classify_photo(source_file)
        return self._classify_other(source_file)

    # --- Non-photo files ---

    def _classify_other(self, source_file: SourceFile) -> ClassificationResult:
        target = os.path.join(self.unhandled_dir, flatten_relative_path(source_file.relative_path))

        if os.path.exists(target):
            if self._identical(source_file.filepath, target):
                self._log(f"Already moved: {source_file.relative_path}")
                return ClassificationResult(
                    Outcome.SKIPPED_DUPLICATE_UNHANDLED, source_file.filepath, target
                )
            raise OrganizeAbort("Different file already exists in unhandled directory", target)

        self._copy(source_file.filepath, target)
        self._log(f"Moved unhandled: {source_file.relative_path} -> {target}")
        return ClassificationResult(Outcome.MOVED_UNHANDLED, source_file.filepath, target)

    # --- Photos ---

    def _read_metadata(self, path: str):
        if self._exiftool is not None:
            return read_metadata_exiftool(self._exiftool, path)
        return read_metadata(path)

    def _build_record(self, path: str) -> Optional[PhotoRecord]:
        """Resolve everything that goes into a photo's name.

        Returns:
            PhotoRecord, or None if the photo's metadata can't be read.

        Raises:
            OrganizeAbort: If no capture date can be found.
        """
        metadata = self._read_metadata(path)
        if metadata is None:
            return None

        captured = resolve_capture_date(metadata, path)
        if captured is None:
            raise OrganizeAbort("Cannot determine capture date", path)

        location = get_location(metadata)
        place_name = code = name = None
        if location is not None and self.geocode:
            match = self.place_resolver.resolve(location)
            if match is not None:
                place_name = match.place.name
                code = match.place.country_code
                name = country_name(code)
                logger.debug(
                    f"{path}: nearest place {place_name} ({code}) "
                    f"at {match.distance_km:.1f} km"
                )

        return PhotoRecord(
            source_path=path,
            captured=captured,
            document_name=get_document_name(metadata),
            location=location,
            place_name=place_name,
            country_code=code,
            country_name=name
        )

    def _classify_photo(self, source_file: SourceFile) -> ClassificationResult:
        path = source_file.filepath
        record = self._build_record(path)
        if record is None:
            logger.warning(f"Skipping unreadable photo: {path}")
            self._log(f"Unreadable: {source_file.relative_path}")
            return ClassificationResult(Outcome.SKIPPED_UNREADABLE, path)

        year_dir = os.path.join(self.dest_path, f"{record.year:04d}")
        try:
            checkout_dir(year_dir)
        except (OSError, ValueError) as e:
            raise OrganizeAbort(f"Cannot create year directory ({e})", year_dir)

        target = os.path.join(year_dir, build_filename(record))
        if not os.path.exists(target):
            return self._copy_photo(source_file, target, record)
        if self._identical(path, target):
            return self._already_sorted(source_file, target, record)

        digest_target = os.path.join(
            year_dir, with_digest_suffix(build_base_name(record), self._digest(path))
        )
        logger.debug(f"Name taken by another photo, trying {os.path.basename(digest_target)}")
        if not os.path.exists(digest_target):
            return self._copy_photo(source_file, digest_target, record)
        if self._identical(path, digest_target):
            return self._already_sorted(source_file, digest_target, record)
        raise OrganizeAbort("Different file already exists under digest name", digest_target)

    def _copy_photo(self, source_file: SourceFile, target: str, record: PhotoRecord) -> ClassificationResult:
        self._copy(source_file.filepath, target)
        self._log(f"Copied: {source_file.relative_path} -> {target}")
        return ClassificationResult(Outcome.COPIED, source_file.filepath, target, record.captured)

    def _already_sorted(self, source_file: SourceFile, target: str, record: PhotoRecord) -> ClassificationResult:
        self._log(f"Already sorted: {source_file.relative_path} ({os.path.basename(target)})")
        return ClassificationResult(
            Outcome.SKIPPED_DUPLICATE, source_file.filepath, target, record.captured
        )

    # --- I/O helpers ---

    def _identical(self, a: str, b: str) -> bool:
        try:
            return files_identical(a, b)
        except OSError as e:
            raise OrganizeAbort(f"Cannot compare files ({e})", a)

    def _digest(self, path: str) -> str:
        try:
            return file_digest(path)
        except OSError as e:
            raise OrganizeAbort(f"Cannot read file ({e})", path)

    def _copy(self, source: str, target: str) -> None:
        try:
            shutil.copy(source, target)
        except OSError as e:
            raise OrganizeAbort(f"Cannot copy file ({e})", source)

    def _log(self, message: str) -> None:
        if self._run_logger:
            self._run_logger.log(message)

    # --- ExifTool ---

    def _start_exiftool(self) -> None:
        if not self.use_exiftool:
            return
        manager = ExifToolManager()
        if manager.start():
            logger.info(f"Reading metadata with ExifTool ({manager.exiftool_path})")
            self._exiftool = manager
        else:
            logger.warning("ExifTool not available, reading metadata with Pillow")

    def _stop_exiftool(self) -> None:
        if self._exiftool is not None:
            self._exiftool.stop()
            self._exiftool = None
