"""EXIF metadata reading and capture-date resolution for Photo Sorter.

Metadata is modelled as an ordered sequence of segments, one per EXIF
directory per image frame. Multi-frame files (MPO) and files with a
thumbnail IFD therefore contribute several segments of the same kind, and
every lookup walks them in file order through PhotoMetadata.first().
"""

import logging
import re
import struct
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, TypeVar

import filedate
import piexif
from PIL import Image, ImageSequence

from photosorter.core.models import GeoPoint

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Segment kinds, named after the EXIF directories (and ExifTool's -G1 groups)
IFD0 = "IFD0"
EXIF_IFD = "ExifIFD"
GPS = "GPS"
IFD1 = "IFD1"
SEGMENT_KINDS = (IFD0, EXIF_IFD, GPS, IFD1)

# piexif dict key -> (segment kind, piexif.TAGS table)
_PIEXIF_IFDS = (
    ("0th", IFD0, "Image"),
    ("Exif", EXIF_IFD, "Exif"),
    ("GPS", GPS, "GPS"),
    ("1st", IFD1, "Image"),
)

# Dates at or before this are treated as corrupt (zeroed or garbage fields)
CAMERA_INVENTED = datetime(1685, 1, 1, tzinfo=timezone.utc)

# Year some cameras report when their clock was never set
SUSPICIOUS_YEAR = 2

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


@dataclass(frozen=True)
class MetadataSegment:
    """One EXIF directory read from one image frame."""
    kind: str
    frame: int
    tags: Mapping[str, Any]

    def get(self, tag: str) -> Any:
        return self.tags.get(tag)


class PhotoMetadata:
    """Ordered, read-only view over the metadata segments of one file.

    Usage:
        metadata = read_metadata("/photos/IMG_0001.jpg")
        title = metadata.first_tag(IFD0, "DocumentName", convert=to_text)
    """

    def __init__(self, segments: Sequence[MetadataSegment]):
        self.segments = tuple(segments)

    def of_kind(self, kind: str) -> Iterator[MetadataSegment]:
        """Iterate segments of one kind in file order."""
        return (s for s in self.segments if s.kind == kind)

    def first(
        self,
        kind: str,
        extract: Callable[[MetadataSegment], Optional[T]],
        accept: Optional[Callable[[T], bool]] = None
    ) -> Optional[T]:
        """Return the first value extracted from a segment of `kind`.

        Segments are visited in order. A segment is passed over when
        `extract` returns None or when `accept` rejects its value.

        Args:
            kind: Segment kind (IFD0, ExifIFD, GPS, IFD1).
            extract: Pulls a value out of a single segment.
            accept: Optional validity predicate for extracted values.

        Returns:
            First accepted value, or None.
        """
        for segment in self.of_kind(kind):
            value = extract(segment)
            if value is None:
                continue
            if accept is not None and not accept(value):
                continue
            return value
        return None

    def first_tag(
        self,
        kind: str,
        tag: str,
        convert: Optional[Callable[[Any], Optional[T]]] = None,
        accept: Optional[Callable[[T], bool]] = None
    ) -> Optional[Any]:
        """Shortcut for first() when the value is a single tag."""
        def extract(segment: MetadataSegment):
            value = segment.get(tag)
            if value is not None and convert is not None:
                value = convert(value)
            return value

        return self.first(kind, extract, accept)


# --- Readers ---

def segments_from_exif_bytes(exif_bytes: bytes, frame: int = 0) -> List[MetadataSegment]:
    """Decode a raw EXIF block into segments.

    Args:
        exif_bytes: EXIF payload as found in an APP1 segment
                    (with or without the "Exif\\0\\0" header).
        frame: Index of the image frame the block belongs to.

    Returns:
        Segments for every non-empty IFD, in IFD0/Exif/GPS/IFD1 order.
    """
    exif_dict = piexif.load(exif_bytes)
    segments = []
    for ifd_key, kind, table in _PIEXIF_IFDS:
        ifd = exif_dict.get(ifd_key) or {}
        if not ifd:
            continue
        names = piexif.TAGS[table]
        tags = {
            names[tag_id]["name"]: value
            for tag_id, value in ifd.items()
            if tag_id in names
        }
        segments.append(MetadataSegment(kind=kind, frame=frame, tags=tags))
    return segments


def segments_from_exiftool(tags: Mapping[str, Any]) -> List[MetadataSegment]:
    """Convert an ExifTool "-G1" tag dict into segments.

    Keys look like "ExifIFD:DateTimeOriginal"; groups outside the known
    EXIF directories (File, Composite, XMP, ...) are ignored.
    """
    grouped: Dict[str, Dict[str, Any]] = {}
    for key, value in tags.items():
        if ":" not in key:
            continue
        group, name = key.split(":", 1)
        if group in SEGMENT_KINDS:
            grouped.setdefault(group, {})[name] = value

    return [
        MetadataSegment(kind=kind, frame=0, tags=grouped[kind])
        for kind in SEGMENT_KINDS
        if kind in grouped
    ]


def read_metadata(path: str) -> Optional[PhotoMetadata]:
    """Read EXIF metadata from every frame of an image with Pillow.

    Args:
        path: Image file.

    Returns:
        PhotoMetadata (possibly with no segments for images without EXIF),
        or None if the file cannot be parsed as an image at all.
    """
    segments: List[MetadataSegment] = []
    try:
        with Image.open(path) as img:
            for frame_index, frame in enumerate(ImageSequence.Iterator(img)):
                exif_bytes = frame.info.get("exif")
                if not exif_bytes:
                    continue
                try:
                    segments.extend(segments_from_exif_bytes(exif_bytes, frame_index))
                except (ValueError, IndexError, struct.error) as e:
                    logger.debug(f"Corrupt EXIF in frame {frame_index} of {path}: {e}")
    except (OSError, SyntaxError) as e:
        # UnidentifiedImageError is an OSError
        logger.debug(f"Cannot parse image {path}: {e}")
        return None

    return PhotoMetadata(segments)


def read_metadata_exiftool(manager, path: str) -> Optional[PhotoMetadata]:
    """Read metadata through a running ExifToolManager.

    Returns:
        PhotoMetadata, or None if ExifTool returned nothing for the file.
    """
    tags = manager.read_tags(path)
    if not tags:
        return None
    return PhotoMetadata(segments_from_exiftool(tags))


# --- Value conversion ---

def to_text(value: Any) -> Optional[str]:
    """Convert an EXIF ASCII/UNDEFINED value to a trimmed string."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return str(value).replace("\x00", "").strip()


def _rational(value: Any) -> Optional[float]:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        numerator, denominator = value
        if not denominator:
            return None
        return numerator / denominator
    if isinstance(value, (int, float)):
        return float(value)
    return None


def to_degrees(value: Any) -> Optional[float]:
    """Convert a GPS coordinate to unsigned decimal degrees.

    Accepts EXIF degree/minute/second rationals such as
    ((48, 1), (51, 1), (2400, 100)), or a plain number (ExifTool -n output).
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, (str, bytes)):
        try:
            return float(to_text(value))
        except ValueError:
            return None
    if isinstance(value, (tuple, list)) and value:
        if len(value) == 2 and all(isinstance(part, int) for part in value):
            # A single rational
            return _rational(value)
        parts = [_rational(part) for part in value]
        if any(part is None for part in parts):
            return None
        return sum(part / (60 ** i) for i, part in enumerate(parts[:3]))
    return None


def _parse_offset(value: Any) -> Optional[timezone]:
    text = to_text(value)
    if not text:
        return None
    match = _OFFSET_RE.match(text)
    if not match:
        return None
    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return timezone(-delta if sign == "-" else delta)


def _parse_subsec(value: Any) -> int:
    """Milliseconds from a SubSecTime value ("5" means 500 ms)."""
    text = to_text(value) or ""
    digits = re.match(r"\d*", text).group()
    if not digits:
        return 0
    return int(digits[:3].ljust(3, "0"))


def parse_exif_datetime(value: Any, subsec: Any = None, offset: Any = None) -> Optional[datetime]:
    """Parse an EXIF "YYYY:MM:DD HH:MM:SS" value into an aware datetime.

    Without an explicit offset the value is interpreted in the local time
    zone, as cameras record wall-clock time.

    Returns:
        Timezone-aware datetime, or None if the value doesn't parse.
    """
    text = to_text(value)
    if not text:
        return None
    try:
        parsed = datetime.strptime(text[:19], EXIF_DATE_FORMAT)
    except ValueError:
        return None

    parsed = parsed.replace(microsecond=_parse_subsec(subsec) * 1000)

    tz = _parse_offset(offset)
    if tz is not None:
        return parsed.replace(tzinfo=tz)
    try:
        return parsed.astimezone()
    except (OverflowError, OSError, ValueError):
        # Out of range for the platform's localtime()
        return parsed.replace(tzinfo=timezone.utc)


def _after_camera_invented(value: datetime) -> bool:
    return value > CAMERA_INVENTED


def _date_time_original(segment: MetadataSegment) -> Optional[datetime]:
    raw = segment.get("DateTimeOriginal")
    if raw is None:
        return None
    text = to_text(raw)
    # Years before the sentinel are rejected ahead of tz conversion
    if not text or text[:4] < f"{CAMERA_INVENTED.year:04d}":
        return None
    return parse_exif_datetime(
        raw,
        subsec=segment.get("SubSecTimeOriginal"),
        offset=segment.get("OffsetTimeOriginal"),
    )


# --- Resolvers ---

def get_date_time_original(metadata: PhotoMetadata) -> Optional[datetime]:
    """First DateTimeOriginal after the camera-invented sentinel."""
    return metadata.first(EXIF_IFD, _date_time_original, accept=_after_camera_invented)


def get_file_creation_date(path: str) -> Optional[datetime]:
    """File system creation time in the local time zone.

    Note: this is not reliable once a file has been copied between
    systems, since the copy usually gets a new creation time.
    """
    try:
        created = filedate.File(path).get()["created"]
    except (OSError, KeyError, ValueError) as e:
        logger.debug(f"Cannot read creation time of {path}: {e}")
        return None
    if not isinstance(created, datetime):
        return None
    return created.astimezone()


def resolve_capture_date(metadata: PhotoMetadata, path: str) -> Optional[datetime]:
    """Best available capture date for a photo.

    Tries EXIF DateTimeOriginal across all segments, then the file
    creation time.

    Args:
        metadata: Parsed metadata of the photo.
        path: Photo path (for the creation-time fallback).

    Returns:
        Timezone-aware datetime, or None if neither source yields a date.
    """
    captured = get_date_time_original(metadata)
    if captured is None:
        captured = get_file_creation_date(path)
        if captured is not None:
            logger.debug(
                f"No date/time for {path}, falling back to file creation time "
                f"{captured.isoformat()}"
            )

    if captured is not None and captured.year == SUSPICIOUS_YEAR:
        logger.warning(f"Suspicious capture year {captured.year} for {path}")

    return captured


def get_document_name(metadata: PhotoMetadata) -> Optional[str]:
    """First DocumentName found in an IFD0 segment, trimmed."""
    return metadata.first_tag(IFD0, "DocumentName", convert=to_text)


def _gps_point(segment: MetadataSegment) -> Optional[GeoPoint]:
    latitude = to_degrees(segment.get("GPSLatitude"))
    longitude = to_degrees(segment.get("GPSLongitude"))
    latitude_ref = to_text(segment.get("GPSLatitudeRef"))
    longitude_ref = to_text(segment.get("GPSLongitudeRef"))
    if latitude is None or longitude is None or not latitude_ref or not longitude_ref:
        return None

    if latitude_ref.upper().startswith("S"):
        latitude = -abs(latitude)
    if longitude_ref.upper().startswith("W"):
        longitude = -abs(longitude)
    return GeoPoint(latitude, longitude)


def get_location(metadata: PhotoMetadata) -> Optional[GeoPoint]:
    """First valid GPS coordinate across GPS segments."""
    return metadata.first(GPS, _gps_point, accept=GeoPoint.is_valid)
