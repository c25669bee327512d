"""Command-line interface for Photo Sorter."""

import argparse
import logging
import shutil
import sys
from typing import List, Optional

from tqdm import tqdm

from photosorter import __version__
from photosorter.core.histogram import MODES
from photosorter.core.logger import format_summary
from photosorter.core.organizer import PhotoOrganizer
from photosorter.core.places import PlaceResolver
from photosorter.core.settings import Settings
from photosorter.core.utils import exists, normalize_path


# Program description
DESCRIPTION = """Photo Sorter

Copies the JPEG photos of a directory tree into a destination sorted by year,
naming each one after its capture date, the nearest place it was taken and
its document name:

    <dest>/2021/2021-06-01T120000000+0200_Paris_France.jpg

Every other file is copied into <dest>/other with its relative path flattened
into the filename. The source is never modified, and running again over the
same source copies nothing new.
"""


def create_progress_callback(desc: str = "Organizing"):
    """Create a tqdm-based progress callback.

    Args:
        desc: Description for progress bar.

    Returns:
        Tuple of (callback function, tqdm instance).
    """
    pbar = tqdm(total=100, desc=desc)

    terminal_width = shutil.get_terminal_size().columns
    # Leave room for progress bar elements (percentage, bar, counts)
    max_desc_width = max(20, min(80, terminal_width - 40))

    def callback(current: int, total: int, message: str):
        pbar.total = total
        pbar.n = current
        if len(message) > max_desc_width:
            message = message[:max_desc_width - 3] + "..."
        pbar.set_description(message)
        pbar.refresh()

    return callback, pbar


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr: warnings by default, everything with -v."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )


def run_organize(
    source: str,
    destination: str,
    verbose: bool = False,
    use_exiftool: bool = False,
    places: Optional[str] = None,
    geocode: bool = True,
    bins: int = 20,
    width: int = 100,
    mode: str = "population"
) -> int:
    """Run the organizer and print its summary.

    Returns:
        Exit code (0 for success, 1 if the run was aborted).
    """
    if not exists(source):
        print(f"Error: Source directory does not exist: {source}")
        return 1

    organizer = PhotoOrganizer(
        source_path=source,
        dest_path=destination,
        place_resolver=PlaceResolver(places or None),
        use_exiftool=use_exiftool,
        verbose=verbose,
        geocode=geocode,
        histogram_bins=bins,
        histogram_width=width,
        histogram_mode=mode
    )

    print(f"\nSorting {source}")
    print(f"     into {destination}")

    callback, pbar = create_progress_callback()
    interrupted = False

    try:
        result = organizer.run(on_progress=callback)
    except KeyboardInterrupt:
        interrupted = True
        pbar.close()
        print("\n\nInterrupted! Files copied so far are kept; run again to continue.")
        return 130  # Standard exit code for SIGINT
    finally:
        if not interrupted:
            pbar.close()

    print()
    for line in format_summary(result, bins, width, mode):
        print(line)
    print(f"Time used: {result.elapsed_time:.1f} seconds")
    if result.log_dir:
        print(f"\nLogs:\n  {result.log_dir}")

    if result.aborted:
        print(f"\nError: {result.aborted}")
        return 1
    return 0


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: Arguments to parse (default: sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="photosorter",
        description=DESCRIPTION,
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    commands = parser.add_subparsers(dest="command", required=True)
    organize = commands.add_parser(
        "organize",
        help="Sort photos from a source directory into a destination",
        description=DESCRIPTION,
        formatter_class=argparse.RawTextHelpFormatter
    )

    organize.add_argument(
        "source",
        help="Directory tree containing the photos to sort"
    )

    organize.add_argument(
        "destination",
        nargs="?",
        default=None,
        help="Directory receiving the sorted photos (default: ./sorted)"
    )

    organize.add_argument(
        "-v", "--verbose",
        help="Debug logging, and log every file decision to verbose.txt",
        action="store_true"
    )

    organize.add_argument(
        "--exiftool",
        help="Read metadata with ExifTool instead of Pillow",
        action="store_true",
        default=None
    )

    organize.add_argument(
        "--places",
        help="CSV place file with columns lat,lon,name,admin1,admin2,cc\n"
             "(default: GeoNames cities1000 bundled with reverse_geocoder)",
        type=str,
        default=None
    )

    organize.add_argument(
        "--no-geocode",
        help="Leave place names out of filenames",
        action="store_true"
    )

    organize.add_argument(
        "--bins",
        help="Number of histogram bins (default: 20)",
        type=positive_int,
        default=None
    )

    organize.add_argument(
        "--width",
        help="Total number of histogram marks (default: 100)",
        type=positive_int,
        default=None
    )

    organize.add_argument(
        "--histogram-mode",
        help="population: bins with equal photo counts\nwidth: bins with equal time spans",
        choices=MODES,
        default=None
    )

    return parser.parse_args(args)


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for CLI.

    Args:
        args: Command-line arguments (default: sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parsed = parse_args(args)
    configure_logging(parsed.verbose)
    settings = Settings()

    source = normalize_path(parsed.source)
    destination = normalize_path(parsed.destination or settings.get("default_dest_path"))

    def pick(flag, key):
        return flag if flag is not None else settings.get(key)

    return run_organize(
        source,
        destination,
        verbose=parsed.verbose,
        use_exiftool=bool(pick(parsed.exiftool, "use_exiftool")),
        places=pick(parsed.places, "places_file"),
        geocode=not parsed.no_geocode,
        bins=pick(parsed.bins, "histogram_bins"),
        width=pick(parsed.width, "histogram_width"),
        mode=pick(parsed.histogram_mode, "histogram_mode")
    )


if __name__ == "__main__":
    sys.exit(main())
