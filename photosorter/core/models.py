"""Data models for Photo Sorter."""

import enum
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Callable


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        """Check if coordinates are within GPS ranges.

        Note: (0,0) is a valid location (Gulf of Guinea, off coast of Africa).
        """
        return -90 <= self.latitude <= 90 and -180 <= self.longitude <= 180


@dataclass(frozen=True, slots=True)
class PlaceEntry:
    """A reference place from the place dataset."""
    name: str
    country_code: str
    point: GeoPoint


@dataclass(frozen=True, slots=True)
class PlaceMatch:
    """Nearest place to a coordinate, with great-circle distance in km."""
    place: PlaceEntry
    distance_km: float


@dataclass(frozen=True)
class PhotoRecord:
    """Everything resolved about one photo before it is named and copied."""
    source_path: str
    captured: datetime
    document_name: Optional[str] = None
    location: Optional[GeoPoint] = None
    place_name: Optional[str] = None
    country_code: Optional[str] = None
    country_name: Optional[str] = None

    @property
    def year(self) -> int:
        return self.captured.year

    def has_place(self) -> bool:
        return bool(self.place_name)


@dataclass(slots=True)
class SourceFile:
    """A file found while scanning the source tree."""
    filepath: str
    relative_path: str
    is_photo: bool

    @property
    def filename(self) -> str:
        return os.path.basename(self.relative_path)


class Outcome(enum.Enum):
    """What happened to a single source file."""
    COPIED = "copied"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    MOVED_UNHANDLED = "moved_unhandled"
    SKIPPED_DUPLICATE_UNHANDLED = "skipped_duplicate_unhandled"
    SKIPPED_UNREADABLE = "skipped_unreadable"


@dataclass
class ClassificationResult:
    """Outcome of processing one source file."""
    outcome: Outcome
    source_path: str
    target_path: Optional[str] = None
    captured: Optional[datetime] = None


@dataclass(frozen=True)
class FatalAbort:
    """A condition that stops the whole run."""
    reason: str
    path: str = ""

    def __str__(self) -> str:
        if self.path:
            return f"{self.reason}: {self.path}"
        return self.reason


@dataclass
class OrganizeStats:
    """Counters collected during a run."""
    processed: int = 0
    unhandled: int = 0
    already_processed: int = 0
    unreadable: int = 0
    dates: List[datetime] = field(default_factory=list)

    def record(self, result: ClassificationResult) -> None:
        """Update counters from a single file result."""
        if result.outcome is Outcome.COPIED:
            self.processed += 1
        elif result.outcome is Outcome.MOVED_UNHANDLED:
            self.unhandled += 1
        elif result.outcome in (Outcome.SKIPPED_DUPLICATE, Outcome.SKIPPED_DUPLICATE_UNHANDLED):
            self.already_processed += 1
        elif result.outcome is Outcome.SKIPPED_UNREADABLE:
            self.unreadable += 1

        if result.captured is not None:
            self.dates.append(result.captured)

    def total_files(self) -> int:
        return self.processed + self.unhandled + self.already_processed + self.unreadable

    def date_range(self) -> Optional[tuple]:
        """Earliest and latest capture date, or None if no photos were dated."""
        if not self.dates:
            return None
        return min(self.dates), max(self.dates)


@dataclass
class OrganizeRunResult:
    """Results from a full organize run.

    Returned by PhotoOrganizer.run(). A run that hit a fatal condition
    carries it in `aborted`; the caller decides how to exit.
    """
    stats: OrganizeStats
    output_dir: str
    unhandled_dir: str
    log_dir: str = ""
    summary_file: str = ""
    elapsed_time: float = 0.0
    start_time: str = ""
    end_time: str = ""
    aborted: Optional[FatalAbort] = None

    @property
    def succeeded(self) -> bool:
        return self.aborted is None


# Type aliases for callbacks
# (current_item, total_items, message) -> None
ProgressCallback = Callable[[int, int, str], None]
