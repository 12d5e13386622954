"""Core data models for breathcam.

This module contains the enums, value objects and dataclasses shared by
the capture layer, the session controller and the desktop UI.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from breathcam.core.capture.device import VideoDevice

# ============================================================================
# Basic Value Objects
# ============================================================================


@dataclass(frozen=True)
class Resolution:
    """Video resolution."""

    width: int
    height: int

    def __str__(self) -> str:
        """String representation."""
        return f"{self.width}x{self.height}"


# ============================================================================
# Basic Enums
# ============================================================================


class FacingPosition(Enum):
    """Which way a camera points."""

    FRONT = "front"  # Toward the user
    BACK = "back"  # Away from the user
    UNSPECIFIED = "unspecified"


class DeviceType(Enum):
    """Kind of built-in camera."""

    WIDE_ANGLE = "wide_angle"


class SessionState(Enum):
    """Running state of a capture session."""

    STOPPED = "stopped"
    RUNNING = "running"


class VideoGravity(Enum):
    """How frames are fitted into a preview layer."""

    RESIZE_ASPECT = "resize_aspect"  # Letterbox, keep the whole frame
    RESIZE_ASPECT_FILL = "resize_aspect_fill"  # Fill, crop the overflow
    RESIZE = "resize"  # Stretch


class ConfigureStatus(Enum):
    """Outcome of selecting and attaching a camera."""

    CONFIGURED = "configured"
    NO_DEVICE = "no_device"
    INPUT_FAILED = "input_failed"
    INPUT_REJECTED = "input_rejected"


# ============================================================================
# Capture Data
# ============================================================================


@dataclass
class VideoFrame:
    """A single captured video frame (RGB)."""

    image: np.ndarray
    timestamp: datetime
    source_id: str
    resolution: Resolution
    frame_number: int


@dataclass(frozen=True)
class ConfigureResult:
    """Tagged result of CaptureSessionController.configure()."""

    status: ConfigureStatus
    device: Optional["VideoDevice"] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ConfigureStatus.CONFIGURED

    @staticmethod
    def configured(device: "VideoDevice") -> ConfigureResult:
        return ConfigureResult(status=ConfigureStatus.CONFIGURED, device=device)

    @staticmethod
    def no_device() -> ConfigureResult:
        return ConfigureResult(status=ConfigureStatus.NO_DEVICE, message="Cannot access camera")

    @staticmethod
    def input_failed(message: str) -> ConfigureResult:
        return ConfigureResult(status=ConfigureStatus.INPUT_FAILED, message=message)

    @staticmethod
    def input_rejected(device: "VideoDevice") -> ConfigureResult:
        return ConfigureResult(
            status=ConfigureStatus.INPUT_REJECTED,
            device=device,
            message=f"Session rejected input for {device.name}",
        )


# ============================================================================
# Settings
# ============================================================================


@dataclass
class WindowGeometry:
    """Window geometry for UI persistence."""

    x: int
    y: int
    width: int
    height: int


@dataclass
class AppSettings:
    """Application settings.

    Camera indices map facing positions onto OpenCV device indices.
    None disables that position.
    """

    front_camera_index: Optional[int] = 0
    back_camera_index: Optional[int] = 1
    capture_fps: int = 30
    preview_fps: int = 30
    window_geometry: Optional[WindowGeometry] = None
