"""Capture session and device input.

A CaptureSession coordinates a single camera input and keeps the latest
frame available for preview. VideoCaptureSession reads frames with OpenCV
on a background thread.

``start_running()`` and ``stop_running()`` block while the camera is
acquired or released; call them off the UI thread.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone
from typing import List, Optional

from breathcam.core.capture.device import VideoDevice
from breathcam.core.models import Resolution, SessionState, VideoFrame

logger = logging.getLogger(__name__)

FRAME_BUFFER_SIZE = 5
STOP_JOIN_TIMEOUT = 2.0  # seconds


class DeviceInputError(Exception):
    """Raised when a camera cannot be acquired as a session input."""


class DeviceInput:
    """A camera wrapped as a session input.

    Construction acquires the camera; a camera that cannot be opened raises
    DeviceInputError.
    """

    def __init__(self, device: VideoDevice, fps: Optional[int] = None):
        self._device = device
        self._fps = fps
        self._handle = None
        self.reopen()

    @property
    def device(self) -> VideoDevice:
        return self._device

    def is_open(self) -> bool:
        return self._handle is not None

    def reopen(self) -> None:
        """Acquire the camera if it is not held already.

        Raises:
            DeviceInputError: If the camera cannot be opened
        """
        if self._handle is not None:
            return

        try:
            handle = self._device.open(fps=self._fps)
        except Exception as e:
            raise DeviceInputError(f"Failed to open {self._device.name}: {e}") from e

        if handle is None or not handle.isOpened():
            if handle is not None:
                handle.release()
            raise DeviceInputError(f"Failed to open {self._device.name}")

        self._handle = handle
        logger.debug(f"Acquired {self._device.name}")

    def read(self):
        """Read one frame. Returns (ok, frame) like ``cv2.VideoCapture.read``."""
        if self._handle is None:
            return False, None
        return self._handle.read()

    def release(self) -> None:
        if self._handle is not None:
            self._handle.release()
            self._handle = None
            logger.debug(f"Released {self._device.name}")


class CaptureSession(ABC):
    """Abstract capture session accepting a single input."""

    @property
    @abstractmethod
    def inputs(self) -> List[DeviceInput]:
        """Inputs attached to the session."""

    @abstractmethod
    def can_add_input(self, device_input: DeviceInput) -> bool:
        """Whether ``device_input`` can be attached."""

    @abstractmethod
    def add_input(self, device_input: DeviceInput) -> None:
        """Attach ``device_input``.

        Raises:
            ValueError: If the input cannot be added
        """

    @abstractmethod
    def start_running(self) -> None:
        """Start delivering frames. Blocks until the camera is acquired."""

    @abstractmethod
    def stop_running(self) -> None:
        """Stop delivering frames. Blocks until the camera is released."""

    @abstractmethod
    def is_running(self) -> bool:
        """Check if the session is running."""

    @abstractmethod
    def get_frame(self) -> Optional[VideoFrame]:
        """Latest frame, or None if none has been captured."""

    @property
    def state(self) -> SessionState:
        return SessionState.RUNNING if self.is_running() else SessionState.STOPPED

    def close(self) -> None:
        """Stop the session and release all inputs."""
        self.stop_running()
        for device_input in self.inputs:
            device_input.release()


class VideoCaptureSession(CaptureSession):
    """OpenCV-backed capture session.

    Features:
    - One camera input
    - Frame loop on a daemon thread at a fixed FPS
    - Small ring buffer holding the most recent frames

    A session with no input can still be started; it simply never produces
    frames. Frame numbers keep counting across restarts.

    Each run gets its own stop event. If a stopped loop is still blocked in
    a camera read when the join times out, the camera stays held and the
    next start waits for that loop to exit before reading again.
    """

    def __init__(self, fps: int = 30):
        self._fps = max(1, min(fps, 60))
        self._inputs: List[DeviceInput] = []
        self._running = False
        self._capture_thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._frame_buffer: deque = deque(maxlen=FRAME_BUFFER_SIZE)
        self._frame_number = 0
        self._lock = threading.Lock()
        self._control_lock = threading.Lock()

        logger.info(f"VideoCaptureSession initialized (fps={self._fps})")

    @property
    def inputs(self) -> List[DeviceInput]:
        return list(self._inputs)

    @property
    def fps(self) -> int:
        return self._fps

    def can_add_input(self, device_input: DeviceInput) -> bool:
        if self._running:
            return False
        if self._inputs:
            return False
        return device_input.is_open()

    def add_input(self, device_input: DeviceInput) -> None:
        if not self.can_add_input(device_input):
            raise ValueError(f"Cannot add input {device_input.device.device_id} to session")
        self._inputs.append(device_input)
        logger.info(f"Added input: {device_input.device.name}")

    def start_running(self) -> None:
        """Start the frame loop.

        Raises:
            RuntimeError: If the loop of the previous run has not exited yet
            DeviceInputError: If the camera cannot be reacquired
        """
        with self._control_lock:
            if self._running:
                logger.debug("Session already running")
                return

            if not self._join_capture_thread():
                raise RuntimeError("Previous capture loop is still running")

            if not self._inputs:
                logger.warning("Starting session without an input; no frames will be produced")

            for device_input in self._inputs:
                device_input.reopen()

            with self._lock:
                self._frame_buffer.clear()

            self._running = True
            if self._inputs:
                self._stop_event = threading.Event()
                self._capture_thread = threading.Thread(
                    target=self._capture_loop,
                    args=(self._inputs[0], self._stop_event),
                    name="CaptureLoop",
                    daemon=True,
                )
                self._capture_thread.start()

            logger.info("Session started")

    def stop_running(self) -> None:
        with self._control_lock:
            if not self._running:
                logger.debug("Session not running")
                return

            self._running = False
            if self._stop_event is not None:
                self._stop_event.set()

            if not self._join_capture_thread():
                logger.warning(
                    f"Capture loop did not exit within {STOP_JOIN_TIMEOUT}s, "
                    "keeping the camera until it does"
                )
                logger.info("Session stopped")
                return

            # Release the camera while stopped so it is free for other apps
            for device_input in self._inputs:
                device_input.release()

            logger.info("Session stopped")

    def close(self) -> None:
        self.stop_running()
        with self._control_lock:
            if not self._join_capture_thread():
                logger.warning("Capture loop still running at close, releasing camera anyway")
            for device_input in self._inputs:
                device_input.release()

    def is_running(self) -> bool:
        return self._running

    def get_frame(self) -> Optional[VideoFrame]:
        with self._lock:
            if self._frame_buffer:
                return self._frame_buffer[-1]
            return None

    def _join_capture_thread(self) -> bool:
        """Wait for the last capture loop to exit.

        Returns:
            True if no loop is left running
        """
        thread = self._capture_thread
        if thread is None:
            return True
        if thread.is_alive():
            thread.join(timeout=STOP_JOIN_TIMEOUT)
        if thread.is_alive():
            return False
        self._capture_thread = None
        return True

    def _capture_loop(self, device_input: DeviceInput, stop_event: threading.Event) -> None:
        """Read frames from ``device_input`` at the session FPS until ``stop_event`` is set."""
        import cv2

        source_id = device_input.device.device_id
        frame_interval = 1.0 / self._fps
        next_capture_time = time.time()

        try:
            while not stop_event.is_set():
                current_time = time.time()

                if current_time < next_capture_time:
                    time.sleep(0.001)
                    continue

                try:
                    ret, frame = device_input.read()

                    if stop_event.is_set():
                        break

                    if not ret or frame is None:
                        logger.warning(f"Failed to read frame from {source_id}")
                        stop_event.wait(frame_interval)
                        continue

                    img = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                    height, width = img.shape[:2]

                    with self._lock:
                        video_frame = VideoFrame(
                            image=img,
                            timestamp=datetime.now(timezone.utc),
                            source_id=source_id,
                            resolution=Resolution(width=width, height=height),
                            frame_number=self._frame_number,
                        )
                        self._frame_buffer.append(video_frame)
                        self._frame_number += 1

                    next_capture_time += frame_interval
                    # Falling behind, reset timing
                    if next_capture_time < current_time:
                        next_capture_time = current_time + frame_interval

                except Exception as e:
                    logger.error(f"Error capturing frame: {e}", exc_info=True)
                    stop_event.wait(frame_interval)

        except Exception as e:
            logger.error(f"Error in capture loop: {e}", exc_info=True)
        finally:
            logger.debug("Capture loop ended")
