"""Settings manager for breathcam.

This module provides the SettingsManager class for persisting and loading
application settings as JSON in the user config directory.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from breathcam.core.models import AppSettings, WindowGeometry

logger = logging.getLogger(__name__)


class SettingsManager:
    """Manages application settings.

    Provides methods for:
    - Loading and saving settings to a JSON file
    - Locating the platform config directory
    """

    def __init__(self, config_dir: Optional[Path] = None, settings_file: Optional[Path] = None):
        """Initialize settings manager.

        Args:
            config_dir: Optional custom config directory. If None, uses platform default.
            settings_file: Optional explicit settings file; overrides config_dir.
        """
        if settings_file is not None:
            config_dir = settings_file.parent
        elif config_dir is None:
            config_dir = self._get_default_config_dir()

        self.config_dir = config_dir
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.settings_file = settings_file or self.config_dir / "settings.json"

        logger.info(f"Settings manager initialized with settings file: {self.settings_file}")

    def _get_default_config_dir(self) -> Path:
        """Get platform-specific default config directory.

        Returns:
            Path to config directory
        """
        if sys.platform == "darwin":
            # macOS: ~/Library/Application Support/breathcam
            base = Path.home() / "Library" / "Application Support"
        elif sys.platform == "win32":
            # Windows: %APPDATA%/breathcam
            base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        else:
            # Linux: ~/.config/breathcam
            base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

        return base / "breathcam"

    def load_settings(self) -> AppSettings:
        """Load settings from storage.

        Returns:
            AppSettings with loaded settings, or defaults if the file doesn't exist

        Raises:
            ValueError: If settings file is corrupted or invalid
        """
        if not self.settings_file.exists():
            logger.info("Settings file not found, using default settings")
            return AppSettings()

        try:
            with open(self.settings_file, "r", encoding="utf-8") as f:
                data = json.load(f)

            settings = self._deserialize_settings(data)
            logger.info("Settings loaded successfully")
            return settings

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse settings file: {e}")
            raise ValueError(f"Settings file is corrupted: {e}") from e
        except (TypeError, AttributeError, KeyError) as e:
            logger.error(f"Failed to load settings: {e}")
            raise ValueError(f"Failed to load settings: {e}") from e

    def save_settings(self, settings: AppSettings) -> None:
        """Save settings to storage.

        Args:
            settings: AppSettings instance to save

        Raises:
            IOError: If settings file cannot be written
        """
        try:
            data = self._serialize_settings(settings)

            # Write to temporary file first, then rename (atomic operation)
            temp_file = self.settings_file.with_suffix(".tmp")
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)

            temp_file.replace(self.settings_file)

            logger.info("Settings saved successfully")

        except OSError as e:
            logger.error(f"Failed to save settings: {e}")
            raise IOError(f"Failed to save settings: {e}") from e

    def _serialize_settings(self, settings: AppSettings) -> Dict[str, Any]:
        """Serialize AppSettings to JSON-compatible dictionary."""
        return {
            "front_camera_index": settings.front_camera_index,
            "back_camera_index": settings.back_camera_index,
            "capture_fps": settings.capture_fps,
            "preview_fps": settings.preview_fps,
            "window_geometry": (
                {
                    "x": settings.window_geometry.x,
                    "y": settings.window_geometry.y,
                    "width": settings.window_geometry.width,
                    "height": settings.window_geometry.height,
                }
                if settings.window_geometry
                else None
            ),
        }

    def _deserialize_settings(self, data: Dict[str, Any]) -> AppSettings:
        """Deserialize a dictionary into AppSettings.

        Missing keys fall back to the AppSettings defaults.
        """
        defaults = AppSettings()

        geometry_data = data.get("window_geometry")
        window_geometry = None
        if geometry_data:
            window_geometry = WindowGeometry(
                x=int(geometry_data["x"]),
                y=int(geometry_data["y"]),
                width=int(geometry_data["width"]),
                height=int(geometry_data["height"]),
            )

        return AppSettings(
            front_camera_index=_optional_int(
                data.get("front_camera_index", defaults.front_camera_index)
            ),
            back_camera_index=_optional_int(
                data.get("back_camera_index", defaults.back_camera_index)
            ),
            capture_fps=int(data.get("capture_fps", defaults.capture_fps)),
            preview_fps=int(data.get("preview_fps", defaults.preview_fps)),
            window_geometry=window_geometry,
        )


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)
