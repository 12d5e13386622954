"""
breathcam CLI entry point.

This module provides the command-line interface for the breathcam application.
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from importlib.metadata import metadata
from pathlib import Path
from typing import Optional

from breathcam.core.capture import DeviceManager
from breathcam.core.logging import setup_logging
from breathcam.core.models import AppSettings, FacingPosition
from breathcam.core.settings import SettingsManager

# Load package metadata from pyproject.toml
_metadata = metadata("breathcam")
APP_NAME = _metadata["Name"]
APP_VERSION = _metadata["Version"]
APP_DESCRIPTION = _metadata["Summary"]


def camera_index(value: str) -> Optional[int]:
    """Parse a camera index argument; "none" disables the position."""
    if value.lower() == "none":
        return None
    try:
        index = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid camera index: {value!r}")
    if index < 0:
        raise argparse.ArgumentTypeError(f"camera index must be >= 0: {index}")
    return index


def fps_value(value: str) -> int:
    """Parse an FPS argument (1-60)."""
    try:
        fps = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid fps: {value!r}")
    if not 1 <= fps <= 60:
        raise argparse.ArgumentTypeError(f"fps must be between 1 and 60: {fps}")
    return fps


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=f"{APP_NAME} - {APP_DESCRIPTION}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Launch the desktop UI
  python -m breathcam

  # Use camera 2 as the front camera and no back camera
  python -m breathcam --front-camera 2 --back-camera none

  # List cameras OpenCV can open
  python -m breathcam --list-cameras

  # Launch with debug logging
  python -m breathcam --log-level DEBUG
        """,
    )

    parser.add_argument("--config", type=str, metavar="PATH", help="Path to settings file")

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        metavar="LEVEL",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        help="Path to log file (default: breathcam.log)",
    )

    parser.add_argument(
        "--front-camera",
        type=camera_index,
        default=argparse.SUPPRESS,
        metavar="INDEX",
        help="OpenCV index of the front-facing camera, or 'none'",
    )

    parser.add_argument(
        "--back-camera",
        type=camera_index,
        default=argparse.SUPPRESS,
        metavar="INDEX",
        help="OpenCV index of the back-facing camera, or 'none'",
    )

    parser.add_argument(
        "--capture-fps",
        type=fps_value,
        default=argparse.SUPPRESS,
        metavar="N",
        help="Camera capture frame rate (1-60)",
    )

    parser.add_argument(
        "--preview-fps",
        type=fps_value,
        default=argparse.SUPPRESS,
        metavar="N",
        help="Preview refresh rate (1-60)",
    )

    parser.add_argument(
        "--list-cameras",
        action="store_true",
        help="List available cameras and exit",
    )

    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")

    return parser


def apply_overrides(settings: AppSettings, args: argparse.Namespace) -> AppSettings:
    """Return a copy of the loaded settings with command-line overrides applied.

    The loaded settings are left untouched so overrides never reach the
    settings file.
    """
    overrides = {}
    if hasattr(args, "front_camera"):
        overrides["front_camera_index"] = args.front_camera
    if hasattr(args, "back_camera"):
        overrides["back_camera_index"] = args.back_camera
    if hasattr(args, "capture_fps"):
        overrides["capture_fps"] = args.capture_fps
    if hasattr(args, "preview_fps"):
        overrides["preview_fps"] = args.preview_fps
    return replace(settings, **overrides)


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the breathcam application.

    Returns:
        Exit code using os.EX_* constants:
        - os.EX_OK (0): Success
        - os.EX_NOINPUT (66): Cannot open settings file
        - os.EX_SOFTWARE (70): Internal software error
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    setup_logging(log_level=args.log_level, log_file=Path(args.log_file) if args.log_file else None)
    logger = logging.getLogger(__name__)

    logger.info(f"Starting {APP_NAME} {APP_VERSION}")
    logger.debug(f"Command-line arguments: {args}")

    try:
        if args.config:
            config_path = Path(args.config)
            if not config_path.exists():
                logger.error(f"Configuration file not found: {config_path}")
                return os.EX_NOINPUT
            logger.info(f"Loading configuration from: {config_path}")
            settings_manager = SettingsManager(settings_file=config_path)
        else:
            settings_manager = SettingsManager()

        stored_settings: Optional[AppSettings] = None
        try:
            stored_settings = settings_manager.load_settings()
        except ValueError as e:
            # Leave the broken file in place for the user to fix
            logger.warning(
                f"Using default settings, {settings_manager.settings_file} "
                f"will not be overwritten: {e}"
            )

        settings = apply_overrides(stored_settings or AppSettings(), args)

        device_manager = DeviceManager(
            position_map={
                FacingPosition.FRONT: settings.front_camera_index,
                FacingPosition.BACK: settings.back_camera_index,
            }
        )

        if args.list_cameras:
            devices = device_manager.get_devices()
            if not devices:
                print("No cameras found")
            for device in devices:
                print(f"{device.device_id}\t{device.name}")
            return os.EX_OK

        logger.info("Launching desktop UI")
        # Import here to avoid loading Qt when not needed
        try:
            from PySide6.QtWidgets import QApplication
        except ImportError:
            logger.error(
                "PySide6 not installed. Desktop UI requires PySide6. "
                "Install with: pip install PySide6"
            )
            return os.EX_SOFTWARE

        app = QApplication.instance() or QApplication(sys.argv)
        app.setApplicationName(APP_NAME)
        app.setApplicationVersion(APP_VERSION)

        from breathcam.core.controller import CaptureSessionController
        from breathcam.desktop import MainWindow

        controller = CaptureSessionController(device_manager, fps=settings.capture_fps)
        window = MainWindow(
            controller,
            settings=settings,
            settings_manager=settings_manager if stored_settings is not None else None,
            stored_settings=stored_settings,
        )
        window.show()

        logger.info("Desktop UI launched successfully")

        return app.exec()

    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        return os.EX_OK

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return os.EX_SOFTWARE


if __name__ == "__main__":
    sys.exit(main())
