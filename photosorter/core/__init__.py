"""Core sorting logic for Photo Sorter."""

from photosorter.core.models import (
    GeoPoint,
    PlaceEntry,
    PlaceMatch,
    PhotoRecord,
    SourceFile,
    Outcome,
    ClassificationResult,
    FatalAbort,
    OrganizeStats,
    OrganizeRunResult,
    ProgressCallback,
)

from photosorter.core.utils import (
    exists,
    checkout_dir,
    flatten_relative_path,
    normalize_path,
)

from photosorter.core.hashing import (
    file_digest,
    files_identical,
)

from photosorter.core.metadata import (
    MetadataSegment,
    PhotoMetadata,
    read_metadata,
    read_metadata_exiftool,
    resolve_capture_date,
    get_date_time_original,
    get_document_name,
    get_location,
    CAMERA_INVENTED,
)

from photosorter.core.exiftool import (
    get_exiftool_path,
    ExifToolManager,
)

from photosorter.core.places import (
    PlaceResolver,
    country_name,
    haversine_km,
)

from photosorter.core.naming import (
    build_base_name,
    build_filename,
    with_digest_suffix,
    format_capture_date,
)

from photosorter.core.scanner import (
    FileScanner,
    is_photo,
)

from photosorter.core.histogram import (
    HistogramBin,
    build_histogram,
    render_histogram,
)

from photosorter.core.logger import (
    BufferedLogger,
    RunLogger,
    format_summary,
)

from photosorter.core.settings import (
    Settings,
)

from photosorter.core.organizer import (
    PhotoOrganizer,
    OrganizeAbort,
)

__all__ = [
    # Models
    "GeoPoint",
    "PlaceEntry",
    "PlaceMatch",
    "PhotoRecord",
    "SourceFile",
    "Outcome",
    "ClassificationResult",
    "FatalAbort",
    "OrganizeStats",
    "OrganizeRunResult",
    "ProgressCallback",
    # Utils
    "exists",
    "checkout_dir",
    "flatten_relative_path",
    "normalize_path",
    # Hashing
    "file_digest",
    "files_identical",
    # Metadata
    "MetadataSegment",
    "PhotoMetadata",
    "read_metadata",
    "read_metadata_exiftool",
    "resolve_capture_date",
    "get_date_time_original",
    "get_document_name",
    "get_location",
    "CAMERA_INVENTED",
    # ExifTool
    "get_exiftool_path",
    "ExifToolManager",
    # Places
    "PlaceResolver",
    "country_name",
    "haversine_km",
    # Naming
    "build_base_name",
    "build_filename",
    "with_digest_suffix",
    "format_capture_date",
    # Scanner
    "FileScanner",
    "is_photo",
    # Histogram
    "HistogramBin",
    "build_histogram",
    "render_histogram",
    # Logger
    "BufferedLogger",
    "RunLogger",
    "format_summary",
    # Settings
    "Settings",
    # Organizer
    "PhotoOrganizer",
    "OrganizeAbort",
]
