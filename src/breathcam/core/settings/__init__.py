"""Settings persistence."""

from breathcam.core.settings.manager import SettingsManager

__all__ = ["SettingsManager"]
