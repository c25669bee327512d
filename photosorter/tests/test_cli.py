"""Tests for photosorter.cli.main module."""

import os
from unittest.mock import patch, MagicMock

import pytest

from photosorter.cli.main import (
    create_progress_callback,
    main,
    parse_args,
    run_organize,
)
from photosorter.core.models import FatalAbort, OrganizeRunResult, OrganizeStats


def _result(aborted=None):
    return OrganizeRunResult(
        stats=OrganizeStats(processed=2),
        output_dir="/sorted",
        unhandled_dir="/sorted/other",
        log_dir="/sorted/_photosorter",
        aborted=aborted,
    )


@pytest.fixture
def isolated_settings(temp_dir):
    """Point the settings file at an empty temp location."""
    with patch.dict(os.environ, {"XDG_CONFIG_HOME": temp_dir, "APPDATA": temp_dir}):
        yield temp_dir


class TestParseArgs:
    """Tests for parse_args() function."""

    def test_organize_source_only(self):
        args = parse_args(["organize", "/photos"])

        assert args.command == "organize"
        assert args.source == "/photos"
        assert args.destination is None
        assert args.verbose is False
        assert args.no_geocode is False
        assert args.bins is None

    def test_organize_source_and_destination(self):
        args = parse_args(["organize", "/photos", "/sorted"])

        assert args.destination == "/sorted"

    def test_all_flags(self):
        args = parse_args([
            "organize", "/photos", "-v", "--exiftool", "--places", "/geo/cities.csv",
            "--no-geocode", "--bins", "10", "--width", "50",
            "--histogram-mode", "width",
        ])

        assert args.verbose is True
        assert args.exiftool is True
        assert args.places == "/geo/cities.csv"
        assert args.no_geocode is True
        assert args.bins == 10
        assert args.width == 50
        assert args.histogram_mode == "width"

    def test_version_flag_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_version_short_flag_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["-V"])
        assert exc_info.value.code == 0

    def test_missing_command_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            parse_args([])
        assert exc_info.value.code == 2

    def test_zero_bins_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["organize", "/photos", "--bins", "0"])

    def test_unknown_histogram_mode_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["organize", "/photos", "--histogram-mode", "median"])


class TestCreateProgressCallback:
    """Tests for create_progress_callback() function."""

    def test_updates_progress_bar(self):
        callback, pbar = create_progress_callback("Testing")
        try:
            callback(5, 10, "Halfway")

            assert pbar.total == 10
            assert pbar.n == 5
        finally:
            pbar.close()


class TestRunOrganize:
    """Tests for run_organize() function."""

    def test_missing_source_returns_1(self, temp_dir):
        code = run_organize(os.path.join(temp_dir, "missing"), os.path.join(temp_dir, "sorted"))

        assert code == 1

    def test_success_returns_0(self, temp_dir, capsys):
        with patch("photosorter.cli.main.PhotoOrganizer") as mock_organizer:
            mock_organizer.return_value.run.return_value = _result()
            code = run_organize(temp_dir, os.path.join(temp_dir, "sorted"))

        assert code == 0
        assert "Processed 2 photos" in capsys.readouterr().out

    def test_abort_returns_1(self, temp_dir, capsys):
        with patch("photosorter.cli.main.PhotoOrganizer") as mock_organizer:
            mock_organizer.return_value.run.return_value = _result(FatalAbort("Cannot copy file", "/a.jpg"))
            code = run_organize(temp_dir, os.path.join(temp_dir, "sorted"))

        assert code == 1
        assert "Error: Cannot copy file: /a.jpg" in capsys.readouterr().out

    def test_interrupt_returns_130(self, temp_dir):
        with patch("photosorter.cli.main.PhotoOrganizer") as mock_organizer:
            mock_organizer.return_value.run.side_effect = KeyboardInterrupt
            code = run_organize(temp_dir, os.path.join(temp_dir, "sorted"))

        assert code == 130

    def test_options_passed_to_organizer(self, temp_dir):
        with patch("photosorter.cli.main.PhotoOrganizer") as mock_organizer:
            mock_organizer.return_value.run.return_value = _result()
            run_organize(
                temp_dir, "/sorted", verbose=True, use_exiftool=True, geocode=False,
                bins=5, width=40, mode="width"
            )

        kwargs = mock_organizer.call_args[1]
        assert kwargs["dest_path"] == "/sorted"
        assert kwargs["verbose"] is True
        assert kwargs["use_exiftool"] is True
        assert kwargs["geocode"] is False
        assert kwargs["histogram_bins"] == 5
        assert kwargs["histogram_width"] == 40
        assert kwargs["histogram_mode"] == "width"


class TestMain:
    """Tests for main() entry point."""

    def test_settings_supply_defaults(self, isolated_settings):
        with patch("photosorter.cli.main.run_organize", return_value=0) as mock_run:
            code = main(["organize", "/photos"])

        assert code == 0
        args, kwargs = mock_run.call_args
        assert args[0] == os.path.normpath("/photos")
        assert args[1] == os.path.normpath("./sorted")
        assert kwargs["bins"] == 20
        assert kwargs["width"] == 100
        assert kwargs["mode"] == "population"
        assert kwargs["places"] == ""
        assert kwargs["use_exiftool"] is False

    def test_flags_override_settings(self, isolated_settings):
        with patch("photosorter.cli.main.run_organize", return_value=0) as mock_run:
            main(["organize", "/photos", "/out", "--bins", "7", "--places", "/geo/cities.csv", "--exiftool"])

        args, kwargs = mock_run.call_args
        assert args[1] == os.path.normpath("/out")
        assert kwargs["bins"] == 7
        assert kwargs["places"] == "/geo/cities.csv"
        assert kwargs["use_exiftool"] is True

    @pytest.mark.integration
    def test_end_to_end(self, isolated_settings, source_dir, dest_dir, make_jpeg, make_file, capsys):
        make_jpeg(os.path.join(source_dir, "a.jpg"), gps=(48.85341, 2.3488))
        make_file(os.path.join(source_dir, "clip.mov"), b"movie")

        code = main(["organize", source_dir, dest_dir])

        assert code == 0
        [name] = os.listdir(os.path.join(dest_dir, "2021"))
        assert name.endswith("_Paris_France.jpg")
        assert os.path.exists(os.path.join(dest_dir, "other", "clip.mov"))
        out = capsys.readouterr().out
        assert "Processed 1 photos" in out
        assert "Date range: 2021-06-01 - 2021-06-01" in out

    @pytest.mark.integration
    def test_end_to_end_missing_source(self, isolated_settings, temp_dir):
        assert main(["organize", os.path.join(temp_dir, "missing")]) == 1
