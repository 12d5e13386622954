"""Camera capture module.

This module provides camera lookup by facing position and the capture
session that turns a camera into a stream of preview frames.
"""

from breathcam.core.capture.device import (
    DEVICE_PREFERENCE,
    DeviceManager,
    OpenCVVideoDevice,
    VideoDevice,
)
from breathcam.core.capture.session import (
    CaptureSession,
    DeviceInput,
    DeviceInputError,
    VideoCaptureSession,
)

__all__ = [
    "CaptureSession",
    "DEVICE_PREFERENCE",
    "DeviceInput",
    "DeviceInputError",
    "DeviceManager",
    "OpenCVVideoDevice",
    "VideoCaptureSession",
    "VideoDevice",
]
