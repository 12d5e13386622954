"""Camera devices and device lookup.

OpenCV addresses cameras by integer index and knows nothing about which
way a camera faces. DeviceManager resolves facing positions through a
position map (front/back -> index) and probes the index to decide whether
the device is present.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from breathcam.core.models import DeviceType, FacingPosition, Resolution

logger = logging.getLogger(__name__)

# Order in which configure() asks for a camera
DEVICE_PREFERENCE = (FacingPosition.FRONT, FacingPosition.BACK)

DEFAULT_POSITION_MAP: Dict[FacingPosition, Optional[int]] = {
    FacingPosition.FRONT: 0,
    FacingPosition.BACK: 1,
}

# Enumeration constants
MAX_DEVICE_INDEX = 10
MAX_CONSECUTIVE_FAILURES = 3


class VideoDevice(ABC):
    """A camera that can be opened for frame capture.

    Concrete devices adapt a platform camera API. ``open()`` returns a handle
    with the ``cv2.VideoCapture`` reading protocol: ``isOpened()``,
    ``read() -> (ok, frame)`` and ``release()``.
    """

    device_type: DeviceType = DeviceType.WIDE_ANGLE

    @property
    @abstractmethod
    def device_id(self) -> str:
        """Stable identifier, e.g. "camera_0"."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable name."""

    @property
    @abstractmethod
    def position(self) -> FacingPosition:
        """Facing position of the camera."""

    @abstractmethod
    def open(self, fps: Optional[int] = None):
        """Acquire the camera and return a capture handle."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.device_id!r}, position={self.position.value})"


class OpenCVVideoDevice(VideoDevice):
    """A camera reached through ``cv2.VideoCapture(index)``."""

    def __init__(
        self,
        index: int,
        position: FacingPosition = FacingPosition.UNSPECIFIED,
        resolution: Optional[Resolution] = None,
    ):
        self._index = index
        self._position = position
        self.resolution = resolution

    @property
    def index(self) -> int:
        return self._index

    @property
    def device_id(self) -> str:
        return f"camera_{self._index}"

    @property
    def name(self) -> str:
        if self._position == FacingPosition.UNSPECIFIED:
            return f"Camera {self._index}"
        return f"{self._position.value.capitalize()} Camera ({self._index})"

    @property
    def position(self) -> FacingPosition:
        return self._position

    def open(self, fps: Optional[int] = None):
        import cv2

        cap = cv2.VideoCapture(self._index)
        if cap.isOpened() and fps:
            cap.set(cv2.CAP_PROP_FPS, fps)
        return cap


class DeviceManager:
    """Enumerates cameras and resolves the default camera per facing position."""

    def __init__(self, position_map: Optional[Dict[FacingPosition, Optional[int]]] = None):
        """Initialize the DeviceManager.

        Args:
            position_map: Facing position -> OpenCV index. A missing or None
                entry means no camera faces that way.
        """
        self._position_map = dict(DEFAULT_POSITION_MAP if position_map is None else position_map)
        mapping = {p.value: i for p, i in self._position_map.items()}
        logger.info(f"DeviceManager initialized with position map: {mapping}")

    def _position_for_index(self, index: int) -> FacingPosition:
        for position, mapped in self._position_map.items():
            if mapped == index:
                return position
        return FacingPosition.UNSPECIFIED

    def _probe(self, index: int) -> Optional[Resolution]:
        """Open ``index`` briefly; return its resolution, or None if unavailable."""
        try:
            import cv2

            cap = cv2.VideoCapture(index)
            try:
                if not cap.isOpened():
                    return None
                width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
                height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
                return Resolution(width=width, height=height)
            finally:
                cap.release()
        except Exception as e:
            logger.debug(f"Failed to probe camera index {index}: {e}")
            return None

    def get_devices(self) -> List[VideoDevice]:
        """List available cameras.

        Returns:
            One OpenCVVideoDevice per index that opens, stopping early after
            MAX_CONSECUTIVE_FAILURES misses in a row.
        """
        logger.info("Enumerating cameras...")
        devices: List[VideoDevice] = []
        consecutive_failures = 0

        for index in range(MAX_DEVICE_INDEX):
            resolution = self._probe(index)
            if resolution is None:
                consecutive_failures += 1
                if consecutive_failures >= MAX_CONSECUTIVE_FAILURES:
                    logger.debug(
                        f"Stopping camera search after {consecutive_failures} "
                        f"consecutive failures at index {index}"
                    )
                    break
                continue

            consecutive_failures = 0
            device = OpenCVVideoDevice(
                index, position=self._position_for_index(index), resolution=resolution
            )
            devices.append(device)
            logger.debug(f"Found camera: {device.name} ({resolution})")

        logger.info(f"Found {len(devices)} camera(s)")
        return devices

    def default_device(
        self,
        position: FacingPosition,
        device_type: DeviceType = DeviceType.WIDE_ANGLE,
    ) -> Optional[VideoDevice]:
        """Get the default camera for a facing position.

        Args:
            position: Requested facing position
            device_type: Requested camera kind

        Returns:
            The device, or None if no camera of that kind faces that way.
        """
        if device_type != DeviceType.WIDE_ANGLE:
            return None

        index = self._position_map.get(position)
        if index is None:
            logger.debug(f"No camera index mapped for position: {position.value}")
            return None

        resolution = self._probe(index)
        if resolution is None:
            logger.debug(f"{position.value} camera at index {index} is not available")
            return None

        return OpenCVVideoDevice(index, position=position, resolution=resolution)
