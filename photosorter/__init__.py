"""Photo Sorter - Sort a tree of photos into a dated, named archive.

High-level API:
    from photosorter import PhotoOrganizer

    organizer = PhotoOrganizer("/path/to/camera", "/path/to/sorted")
    result = organizer.run()
    if result.aborted:
        print(f"Stopped: {result.aborted}")
    print(f"Copied {result.stats.processed} photos")
"""

__version__ = "1.0.0"

# Public API exports
from photosorter.core.organizer import PhotoOrganizer
from photosorter.core.places import PlaceResolver
from photosorter.core.models import (
    OrganizeRunResult,
    OrganizeStats,
    FatalAbort,
    PhotoRecord,
    GeoPoint,
    Outcome,
)

__all__ = [
    "PhotoOrganizer",
    "PlaceResolver",
    "OrganizeRunResult",
    "OrganizeStats",
    "FatalAbort",
    "PhotoRecord",
    "GeoPoint",
    "Outcome",
    "__version__",
]
