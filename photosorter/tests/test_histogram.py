"""Tests for photosorter.core.histogram module."""

from datetime import datetime, timedelta, timezone

import pytest

from photosorter.core.histogram import (
    MODE_POPULATION,
    MODE_WIDTH,
    build_histogram,
    render_histogram,
)


def _days(*offsets):
    start = datetime(2020, 1, 1, tzinfo=timezone.utc)
    return [start + timedelta(days=d) for d in offsets]


class TestBuildHistogram:
    """Tests for build_histogram() function."""

    def test_empty_input(self):
        assert build_histogram([]) == []
        assert render_histogram([]) == []

    def test_population_bins_hold_equal_counts(self):
        dates = _days(*range(40))

        bins = build_histogram(dates, bins=4, width=100)

        assert [b.count for b in bins] == [10, 10, 10, 10]
        assert [b.marks for b in bins] == [25, 25, 25, 25]

    def test_population_bins_differ_by_at_most_one(self):
        bins = build_histogram(_days(*range(10)), bins=3)

        assert sorted(b.count for b in bins) == [3, 3, 4]

    def test_bins_are_in_date_order(self):
        dates = list(reversed(_days(*range(10))))

        bins = build_histogram(dates, bins=5)

        assert bins[0].start == dates[-1]
        assert bins[-1].end == dates[0]
        assert all(a.end <= b.start for a, b in zip(bins, bins[1:]))

    def test_marks_rounded_up(self):
        bins = build_histogram(_days(0, 1, 2), bins=3, width=100)

        assert [b.marks for b in bins] == [34, 34, 34]

    def test_fewer_dates_than_bins(self):
        bins = build_histogram(_days(0, 5), bins=20)

        assert len(bins) == 2
        assert sum(b.count for b in bins) == 2

    def test_counts_cover_every_date(self):
        dates = _days(*range(0, 300, 7))

        bins = build_histogram(dates, bins=20)

        assert sum(b.count for b in bins) == len(dates)

    def test_width_mode_proportional_to_population(self):
        # 9 photos in the first week, 1 photo 90 days later
        dates = _days(0, 1, 1, 2, 3, 3, 4, 5, 6, 90)

        bins = build_histogram(dates, bins=10, width=100, mode=MODE_WIDTH)

        assert [b.count for b in bins] == [9, 1]
        assert [b.marks for b in bins] == [90, 10]

    def test_width_mode_single_date(self):
        bins = build_histogram(_days(3, 3, 3), bins=5, mode=MODE_WIDTH)

        assert len(bins) == 1
        assert bins[0].count == 3

    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError):
            build_histogram(_days(0), mode="median")

    def test_zero_bins_raises(self):
        with pytest.raises(ValueError):
            build_histogram(_days(0), bins=0)


class TestRenderHistogram:
    """Tests for render_histogram() function."""

    def test_line_format(self):
        lines = render_histogram(_days(0, 1), bins=2, width=10, mode=MODE_POPULATION)

        assert lines == [
            "2020-01-01 - 2020-01-01: *****",
            "2020-01-02 - 2020-01-02: *****",
        ]

    def test_one_line_per_bin(self):
        lines = render_histogram(_days(*range(100)), bins=20)

        assert len(lines) == 20
        assert all(line.endswith("*****") for line in lines)
