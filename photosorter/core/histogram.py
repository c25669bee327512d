"""Text histogram of capture dates, shown at the end of a run."""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Sequence

import numpy as np

DEFAULT_BINS = 20
DEFAULT_WIDTH = 100
MARK = "*"

MODE_POPULATION = "population"
MODE_WIDTH = "width"
MODES = (MODE_POPULATION, MODE_WIDTH)

SHORT_DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class HistogramBin:
    start: datetime
    end: datetime
    count: int
    marks: int


def _marks(count: int, total: int, width: int) -> int:
    return math.ceil(width / total * count)


def _population_bins(dates: List[datetime], bins: int) -> List[List[datetime]]:
    groups = np.array_split(np.array(dates, dtype=object), min(bins, len(dates)))
    return [list(group) for group in groups]


def _width_bins(dates: List[datetime], bins: int) -> List[List[datetime]]:
    stamps = np.array([date.timestamp() for date in dates])
    counts, _ = np.histogram(stamps, bins=bins)
    # dates are sorted, so each bin is a contiguous run
    groups = np.split(np.array(dates, dtype=object), np.cumsum(counts)[:-1])
    return [list(group) for group in groups if len(group)]


def build_histogram(
    dates: Sequence[datetime],
    bins: int = DEFAULT_BINS,
    width: int = DEFAULT_WIDTH,
    mode: str = MODE_POPULATION
) -> List[HistogramBin]:
    """Bucket capture dates into bins.

    Args:
        dates: Capture dates, in any order.
        bins: Number of bins.
        width: Total number of marks shared out between bins in proportion
               to their population (each bin rounded up).
        mode: "population" splits the sorted dates into bins holding the
              same number of dates; "width" splits the date range into
              equally long intervals and drops the empty ones.

    Returns:
        Bins in date order; empty if there are no dates.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown histogram mode: {mode}")
    if bins < 1:
        raise ValueError("Histogram needs at least one bin")
    if not dates:
        return []

    ordered = sorted(dates)
    if mode == MODE_POPULATION:
        groups = _population_bins(ordered, bins)
    else:
        groups = _width_bins(ordered, bins)

    total = len(ordered)
    return [
        HistogramBin(start=group[0], end=group[-1], count=len(group),
                     marks=_marks(len(group), total, width))
        for group in groups
    ]


def render_histogram(
    dates: Sequence[datetime],
    bins: int = DEFAULT_BINS,
    width: int = DEFAULT_WIDTH,
    mode: str = MODE_POPULATION
) -> List[str]:
    """Render one "start - end: ****" line per bin."""
    return [
        f"{b.start.strftime(SHORT_DATE_FORMAT)} - {b.end.strftime(SHORT_DATE_FORMAT)}: {MARK * b.marks}"
        for b in build_histogram(dates, bins, width, mode)
    ]
