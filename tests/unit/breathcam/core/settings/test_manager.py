"""Unit tests for SettingsManager."""

import json
import tempfile
from pathlib import Path

import pytest

from breathcam.core.models import AppSettings, WindowGeometry
from breathcam.core.settings import SettingsManager


class TestSettingsManager:
    """Test suite for SettingsManager."""

    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary config directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.fixture
    def settings_manager(self, temp_config_dir):
        """Create a SettingsManager with temporary config directory."""
        return SettingsManager(config_dir=temp_config_dir)

    def test_initialization(self, temp_config_dir):
        manager = SettingsManager(config_dir=temp_config_dir)
        assert manager.config_dir == temp_config_dir
        assert manager.settings_file == temp_config_dir / "settings.json"

    def test_explicit_settings_file(self, temp_config_dir):
        settings_file = temp_config_dir / "custom.json"
        manager = SettingsManager(settings_file=settings_file)
        assert manager.settings_file == settings_file
        assert manager.config_dir == temp_config_dir

    def test_default_config_dir_uses_xdg(self, temp_config_dir, monkeypatch):
        monkeypatch.setattr("sys.platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_config_dir))

        manager = SettingsManager()

        assert manager.config_dir == temp_config_dir / "breathcam"
        assert manager.config_dir.exists()

    def test_load_settings_default(self, settings_manager):
        settings = settings_manager.load_settings()
        assert settings == AppSettings()
        assert settings.front_camera_index == 0
        assert settings.back_camera_index == 1
        assert settings.window_geometry is None

    def test_save_and_load_settings(self, settings_manager):
        settings = AppSettings(
            front_camera_index=2,
            back_camera_index=None,
            capture_fps=15,
            preview_fps=24,
            window_geometry=WindowGeometry(x=10, y=20, width=400, height=700),
        )

        settings_manager.save_settings(settings)
        loaded = settings_manager.load_settings()

        assert loaded == settings
        assert not settings_manager.settings_file.with_suffix(".tmp").exists()

    def test_missing_keys_use_defaults(self, settings_manager):
        settings_manager.settings_file.write_text(json.dumps({"preview_fps": 10}))

        loaded = settings_manager.load_settings()

        assert loaded.preview_fps == 10
        assert loaded.capture_fps == AppSettings().capture_fps
        assert loaded.front_camera_index == 0

    def test_corrupted_file_raises(self, settings_manager):
        settings_manager.settings_file.write_text("{not json")

        with pytest.raises(ValueError, match="corrupted"):
            settings_manager.load_settings()

    def test_invalid_values_raise(self, settings_manager):
        settings_manager.settings_file.write_text(json.dumps({"window_geometry": {"x": 1}}))

        with pytest.raises(ValueError):
            settings_manager.load_settings()
