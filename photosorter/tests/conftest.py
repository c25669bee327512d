"""Pytest configuration and fixtures."""

import os
import tempfile
import shutil
from typing import Callable, Generator, Optional, Tuple

import piexif
import pytest
from PIL import Image

from photosorter.core.models import GeoPoint, PlaceEntry


def _dms(value: float) -> Tuple[Tuple[int, int], Tuple[int, int], Tuple[int, int]]:
    """Unsigned decimal degrees as EXIF degree/minute/second rationals."""
    value = abs(value)
    degrees = int(value)
    minutes_full = (value - degrees) * 60
    minutes = int(minutes_full)
    seconds = round((minutes_full - minutes) * 60 * 10000)
    return ((degrees, 1), (minutes, 1), (seconds, 10000))


def write_jpeg(
    path: str,
    date: Optional[str] = "2021:06:01 12:00:00",
    document: Optional[str] = None,
    gps: Optional[Tuple[float, float]] = None,
    color: Tuple[int, int, int] = (200, 30, 30),
) -> str:
    """Write a small JPEG with the given EXIF fields.

    Args:
        path: Output file (parent directories are created).
        date: DateTimeOriginal in EXIF format, or None to leave it out.
        document: DocumentName, or None.
        gps: (latitude, longitude) in signed decimal degrees, or None.
        color: Fill color; different colors give different file contents.
    """
    os.makedirs(os.path.dirname(path), exist_ok=True)

    exif = {"0th": {}, "Exif": {}, "GPS": {}, "1st": {}, "thumbnail": None}
    if date is not None:
        exif["Exif"][piexif.ExifIFD.DateTimeOriginal] = date.encode("ascii")
    if document is not None:
        exif["0th"][piexif.ImageIFD.DocumentName] = document.encode("utf-8")
    if gps is not None:
        latitude, longitude = gps
        exif["GPS"][piexif.GPSIFD.GPSLatitudeRef] = b"N" if latitude >= 0 else b"S"
        exif["GPS"][piexif.GPSIFD.GPSLatitude] = _dms(latitude)
        exif["GPS"][piexif.GPSIFD.GPSLongitudeRef] = b"E" if longitude >= 0 else b"W"
        exif["GPS"][piexif.GPSIFD.GPSLongitude] = _dms(longitude)

    Image.new("RGB", (8, 8), color).save(path, "JPEG", exif=piexif.dump(exif))
    return path


def write_file(path: str, content: bytes = b"not a photo") -> str:
    """Write an arbitrary file, creating parent directories."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
    return path


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield tmpdir
    shutil.rmtree(tmpdir)


@pytest.fixture
def make_jpeg() -> Callable[..., str]:
    """Factory fixture for JPEGs with EXIF metadata."""
    return write_jpeg


@pytest.fixture
def make_file() -> Callable[..., str]:
    """Factory fixture for plain (non-photo) files."""
    return write_file


@pytest.fixture
def source_dir(temp_dir: str) -> str:
    """Empty source directory inside the temp dir."""
    path = os.path.join(temp_dir, "source")
    os.makedirs(path)
    return path


@pytest.fixture
def dest_dir(temp_dir: str) -> str:
    """Destination path inside the temp dir (not created)."""
    return os.path.join(temp_dir, "sorted")


@pytest.fixture
def sample_places():
    """A handful of reference places."""
    return [
        PlaceEntry("Paris", "FR", GeoPoint(48.85341, 2.3488)),
        PlaceEntry("London", "GB", GeoPoint(51.50853, -0.12574)),
        PlaceEntry("New York City", "US", GeoPoint(40.71427, -74.00597)),
        PlaceEntry("Tokyo", "JP", GeoPoint(35.6895, 139.69171)),
        PlaceEntry("Sydney", "AU", GeoPoint(-33.86785, 151.20732)),
    ]


@pytest.fixture
def places_file(temp_dir: str) -> str:
    """A CSV place file with two towns near Mont Blanc."""
    path = os.path.join(temp_dir, "alps.csv")
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write("lat,lon,name,admin1,admin2,cc\n")
        f.write("45.92375,6.86933,Chamonix,Auvergne-Rhone-Alpes,Haute-Savoie,FR\n")
        f.write("46.20222,6.14569,Geneva,Geneva,,CH\n")
    return path
