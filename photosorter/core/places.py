"""Offline reverse geocoding for Photo Sorter.

Lookups go through reverse_geocoder, which keeps its places in a k-d tree.
By default it uses the GeoNames cities1000 dataset it ships with (every
populated place with at least 1000 inhabitants). Another dataset can be
given as a CSV file with the header lat,lon,name,admin1,admin2,cc.
"""

import csv
import io
import logging
import math
import threading
from typing import Any, Iterable, Mapping, Optional, Tuple

import pycountry
import reverse_geocoder as rg

from photosorter.core.models import GeoPoint, PlaceEntry, PlaceMatch

logger = logging.getLogger(__name__)

# Column layout reverse_geocoder expects from a place file
PLACE_COLUMNS = ("lat", "lon", "name", "admin1", "admin2", "cc")

# Mean Earth radius
EARTH_RADIUS_KM = 6371.0088

BUNDLED_DATASET = "GeoNames cities1000 (reverse_geocoder)"


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    h = (math.sin((lat2 - lat1) / 2) ** 2
         + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2)
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, h)))


def place_from_row(row: Mapping[str, Any]) -> Optional[PlaceEntry]:
    """Convert a reverse_geocoder result row into a PlaceEntry.

    Returns:
        PlaceEntry, or None if the row has no usable coordinate or name.
    """
    try:
        point = GeoPoint(float(row["lat"]), float(row["lon"]))
    except (KeyError, TypeError, ValueError):
        return None
    name = (row.get("name") or "").strip()
    if not name or not point.is_valid():
        return None
    return PlaceEntry(name=name, country_code=(row.get("cc") or "").strip(), point=point)


def places_to_csv(places: Iterable[PlaceEntry]) -> io.StringIO:
    """Write places into an in-memory CSV stream in reverse_geocoder's layout."""
    stream = io.StringIO()
    writer = csv.writer(stream)
    writer.writerow(PLACE_COLUMNS)
    for place in places:
        writer.writerow([
            repr(place.point.latitude), repr(place.point.longitude),
            place.name, "", "", place.country_code,
        ])
    stream.seek(0)
    return stream


class PlaceResolver:
    """Resolves coordinates to the nearest named place.

    The place dataset is loaded on first use, exactly once, even when
    several threads ask for a place at the same time. After loading, the
    tree is read-only and lookups take no lock.

    Usage:
        resolver = PlaceResolver()              # bundled cities1000
        resolver.initialize()                   # optional eager load
        match = resolver.resolve(GeoPoint(35.68, 139.69))
        print(match.place.name, match.distance_km)
    """

    def __init__(self, places_file: Optional[str] = None):
        """Initialize resolver.

        Args:
            places_file: CSV place file (default: dataset bundled with
                         reverse_geocoder).
        """
        self.places_file = places_file or None
        self._places: Optional[Tuple[PlaceEntry, ...]] = None
        self._geocoder: Optional[rg.RGeocoder] = None
        self._loaded = False
        self._lock = threading.Lock()

    @classmethod
    def from_places(cls, places: Iterable[PlaceEntry]) -> "PlaceResolver":
        """Create a resolver over a fixed set of places (loaded lazily)."""
        resolver = cls()
        resolver._places = tuple(places)
        return resolver

    @property
    def source(self) -> str:
        if self._places is not None:
            return f"{len(self._places)} given places"
        return self.places_file or BUNDLED_DATASET

    def initialize(self) -> Optional[rg.RGeocoder]:
        """Load the place dataset if it hasn't been loaded yet.

        Returns:
            The geocoder, or None if no places could be loaded.
        """
        if not self._loaded:
            with self._lock:
                if not self._loaded:
                    self._geocoder = self._load()
                    self._loaded = True
        return self._geocoder

    def _create_geocoder(self) -> Optional[rg.RGeocoder]:
        if self._places is not None:
            if not self._places:
                return None
            return rg.RGeocoder(mode=1, verbose=False, stream=places_to_csv(self._places))
        if self.places_file is None:
            return rg.RGeocoder(mode=1, verbose=False)
        with open(self.places_file, "r", encoding="utf-8", newline="") as stream:
            return rg.RGeocoder(mode=1, verbose=False, stream=stream)

    def _load(self) -> Optional[rg.RGeocoder]:
        try:
            geocoder = self._create_geocoder()
        except (OSError, ValueError, IndexError, csv.Error) as e:
            # UnicodeDecodeError is a ValueError
            logger.warning(f"Place data unavailable ({self.source}): {e}")
            return None
        if geocoder is not None:
            logger.info(f"Loaded places from {self.source}")
        return geocoder

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def resolve(self, point: GeoPoint) -> Optional[PlaceMatch]:
        """Nearest place to a coordinate, or None if no places are known."""
        geocoder = self.initialize()
        if geocoder is None:
            return None

        rows = geocoder.query([(point.latitude, point.longitude)])
        place = place_from_row(rows[0]) if rows else None
        if place is None:
            return None
        return PlaceMatch(place=place, distance_km=haversine_km(point, place.point))


def country_name(code: Optional[str]) -> Optional[str]:
    """Human-readable country name for an ISO 3166-1 alpha-2 code.

    Returns:
        Country name, or None if the code is unknown.
    """
    if not code:
        return None
    try:
        country = pycountry.countries.get(alpha_2=code.upper())
    except (KeyError, LookupError):
        return None
    if country is None:
        return None
    return country.name
