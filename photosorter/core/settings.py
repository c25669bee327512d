"""User settings for Photo Sorter."""

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_DEST_PATH = "./sorted"


class Settings:
    """Manages the JSON settings file.

    Values given on the command line take precedence over these.
    """

    DEFAULT_SETTINGS = {
        "default_dest_path": DEFAULT_DEST_PATH,
        "places_file": "",
        "histogram_bins": 20,
        "histogram_width": 100,
        "histogram_mode": "population",
        "use_exiftool": False,
    }

    def __init__(self, config_path: Optional[str] = None):
        """Initialize settings.

        Args:
            config_path: Settings file (default: per-user config directory).
        """
        self._settings: Dict[str, Any] = self.DEFAULT_SETTINGS.copy()
        self._config_path = config_path or self._get_config_path()
        self.load()

    @staticmethod
    def _get_config_path() -> str:
        """Get path to config file."""
        if os.name == "nt":  # Windows
            base = os.environ.get("APPDATA", os.path.expanduser("~"))
        else:  # macOS/Linux
            base = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))

        return os.path.join(base, "photosorter", "settings.json")

    @property
    def config_path(self) -> str:
        return self._config_path

    def load(self) -> None:
        """Load settings from file, keeping defaults for unknown keys."""
        try:
            if os.path.exists(self._config_path):
                with open(self._config_path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    for key, value in loaded.items():
                        if key in self.DEFAULT_SETTINGS:
                            self._settings[key] = value
                        else:
                            logger.debug(f"Ignoring unknown setting {key!r}")
        except (OSError, ValueError) as e:
            logger.debug(f"Error loading settings from {self._config_path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value."""
        return self._settings.get(key, default)
