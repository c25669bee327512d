"""ExifTool metadata backend for Photo Sorter.

Optional alternative to the built-in Pillow reader. ExifTool understands
more container formats and maker-note quirks, at the cost of an external
executable.
"""

import logging
import os
import shutil
import sys
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# ExifTool paths
EXIFTOOL_DIR = os.path.join("tools", "exiftool")
EXIFTOOL_EXE = "exiftool.exe" if sys.platform == "win32" else "exiftool"

# -G1 prefixes every tag with its EXIF directory (IFD0, ExifIFD, GPS, IFD1),
# -n returns numeric GPS values instead of formatted strings.
COMMON_ARGS = ["-G1", "-n"]


def _default_base_dir() -> str:
    # Go up from photosorter/core/ to project root
    return os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def get_exiftool_path(base_dir: Optional[str] = None) -> Optional[str]:
    """Find ExifTool executable.

    Checks in order:
    1. System PATH
    2. Local tools directory

    Args:
        base_dir: Base directory for local tools folder.
                 Defaults to the project root.

    Returns:
        Path to exiftool executable, or None if not found.
    """
    if shutil.which("exiftool"):
        return "exiftool"

    if base_dir is None:
        base_dir = _default_base_dir()

    local_path = os.path.join(base_dir, EXIFTOOL_DIR, EXIFTOOL_EXE)
    if os.path.exists(local_path):
        return local_path

    logger.warning("ExifTool not found. Install from https://exiftool.org/")
    return None


class ExifToolManager:
    """Manages an ExifTool process for reading metadata.

    Usage:
        with ExifToolManager() as et:
            if et.is_running:
                tags = et.read_tags("/path/to/photo.jpg")
                tags["ExifIFD:DateTimeOriginal"]
    """

    def __init__(self, base_dir: Optional[str] = None):
        """Initialize manager.

        Args:
            base_dir: Base directory for local tools folder.
        """
        self._helper = None
        self._exiftool_path: Optional[str] = None
        self._base_dir = base_dir

    def start(self) -> bool:
        """Start ExifTool process.

        Returns:
            True if started successfully, False otherwise.
        """
        try:
            import exiftool
        except ImportError:
            logger.warning("pyexiftool not installed. Run: pip install pyexiftool")
            return False

        self._exiftool_path = get_exiftool_path(self._base_dir)
        if not self._exiftool_path:
            return False

        try:
            self._helper = exiftool.ExifToolHelper(
                executable=self._exiftool_path,
                common_args=COMMON_ARGS
            )
            self._helper.run()
            return True
        except Exception as e:
            logger.error(f"Failed to start ExifTool: {e}")
            self._helper = None
            return False

    def stop(self) -> None:
        """Stop ExifTool process."""
        if self._helper:
            try:
                self._helper.terminate()
            except Exception as e:
                logger.debug(f"Error stopping ExifTool: {e}")
            self._helper = None

    def read_tags(self, filepath: str) -> Dict[str, Any]:
        """Read all tags from a file.

        Args:
            filepath: Path to file.

        Returns:
            Dict of "Group:Tag" -> value, empty if ExifTool failed.
        """
        if not self._helper:
            return {}

        try:
            result = self._helper.get_metadata(filepath)
            return result[0] if result else {}
        except Exception as e:
            logger.debug(f"Failed to read tags from {filepath}: {e}")
            return {}

    @property
    def is_running(self) -> bool:
        """Check if ExifTool is running."""
        return self._helper is not None

    @property
    def exiftool_path(self) -> Optional[str]:
        """Get the path to ExifTool executable."""
        return self._exiftool_path

    def __enter__(self) -> "ExifToolManager":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()
