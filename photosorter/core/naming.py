"""Target filename construction for sorted photos."""

import re
from datetime import datetime

from photosorter.core.models import PhotoRecord

PHOTO_EXTENSION = ".jpg"

# Country segment is left out for places in this country
HOME_COUNTRY = "US"

_WHITESPACE_RE = re.compile(r"\s")
_SEPARATOR_RE = re.compile(r"[/\\]")


def format_capture_date(captured: datetime) -> str:
    """Format a capture date as compact ISO 8601.

    Example:
        >>> format_capture_date(datetime(2020, 3, 14, 15, 30, 45, tzinfo=EST))
        '2020-03-14T153045000-0500'
    """
    millis = captured.microsecond // 1000
    return (
        f"{captured.year:04d}-{captured.strftime('%m-%dT%H%M%S')}"
        f"{millis:03d}{captured.strftime('%z')}"
    )


def underscore(text: str) -> str:
    """Replace whitespace and path separators with underscores."""
    return _SEPARATOR_RE.sub("_", _WHITESPACE_RE.sub("_", text))


def build_base_name(record: PhotoRecord) -> str:
    """Build the filename of a photo without extension.

    Format: <date>[_<place>[_<country>]][_<document>]

    The country is only added for places outside the US, as its full name
    when known and as the raw country code otherwise.
    """
    parts = [format_capture_date(record.captured)]

    if record.has_place():
        parts.append(underscore(record.place_name))
        code = record.country_code or ""
        if code and code.upper() != HOME_COUNTRY:
            if record.country_name:
                parts.append(underscore(record.country_name))
            else:
                parts.append(underscore(code))

    document = (record.document_name or "").strip()
    if document:
        parts.append(underscore(document))

    return "_".join(parts)


def build_filename(record: PhotoRecord) -> str:
    """Canonical target filename of a photo."""
    return build_base_name(record) + PHOTO_EXTENSION


def with_digest_suffix(base_name: str, digest: str) -> str:
    """Alternate filename used when the canonical name is taken by another file.

    Example:
        >>> with_digest_suffix("2021-06-01T120000000+0000", "9e107d9d372bb6826bd81d3542a419d6")
        '2021-06-01T120000000+0000_9e107d9d372bb6826bd81d3542a419d6.jpg'
    """
    return f"{base_name}_{digest}{PHOTO_EXTENSION}"
