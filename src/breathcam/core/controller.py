"""Capture session controller.

This module provides the CaptureSessionController, which owns the camera
selection and the capture session and exposes the "detecting" state to
the UI.

Threading model:
    start()/stop() are called on the UI thread. Each call queues a request
    on a single worker thread, so requests run one at a time in the order
    they were made. When a request finishes, the worker signals back and the
    UI thread updates ``is_detecting`` and emits ``detecting_changed``.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from PySide6.QtCore import QObject, Qt, Signal, Slot

from breathcam.core.capture.device import DEVICE_PREFERENCE, DeviceManager, VideoDevice
from breathcam.core.capture.session import (
    CaptureSession,
    DeviceInput,
    DeviceInputError,
    VideoCaptureSession,
)
from breathcam.core.models import ConfigureResult, SessionState

logger = logging.getLogger(__name__)


class CaptureSessionController(QObject):
    """Owns the camera input and the capture session.

    State Machine:
        STOPPED → RUNNING (start)
        RUNNING → STOPPED (stop)
        start while RUNNING and stop while STOPPED are no-ops

    Signals:
        detecting_changed(bool): ``is_detecting`` changed (UI thread)
        session_error(str): A start or stop request failed
    """

    detecting_changed = Signal(bool)
    session_error = Signal(str)

    # Worker -> UI thread
    _transition_finished = Signal(bool)
    _transition_failed = Signal(str)

    def __init__(
        self,
        device_manager: DeviceManager,
        session: Optional[CaptureSession] = None,
        fps: int = 30,
        parent: Optional[QObject] = None,
    ):
        """Initialize the controller and configure the camera.

        Args:
            device_manager: Camera lookup used by configure()
            session: Capture session to drive (default: VideoCaptureSession)
            fps: Capture frame rate for the default session and the input
            parent: Optional parent QObject
        """
        super().__init__(parent)

        self._device_manager = device_manager
        self._session: CaptureSession = session if session is not None else VideoCaptureSession(fps)
        self._fps = fps

        self._device: Optional[VideoDevice] = None
        self._device_input: Optional[DeviceInput] = None
        self._configure_result: Optional[ConfigureResult] = None

        self._is_detecting = False
        self._pending_requests = 0
        self._last_request: Optional[bool] = None
        self._shut_down = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="SessionWorker")

        self._transition_finished.connect(
            self._on_transition_finished, Qt.ConnectionType.QueuedConnection
        )
        self._transition_failed.connect(
            self._on_transition_failed, Qt.ConnectionType.QueuedConnection
        )

        self.configure()
        logger.info("CaptureSessionController initialized")

    # ========================================================================
    # Configuration
    # ========================================================================

    def configure(self) -> ConfigureResult:
        """Select a camera and attach it to the session.

        Cameras are tried in DEVICE_PREFERENCE order (front, then back).
        Failures are logged and reported through the returned result; no
        exception reaches the caller. The camera binding is fixed once made,
        so later calls return the first result unchanged.

        Returns:
            ConfigureResult describing the outcome
        """
        if self._configure_result is not None:
            logger.debug("Controller already configured")
            return self._configure_result

        self._configure_result = self._configure()
        return self._configure_result

    def _configure(self) -> ConfigureResult:
        device = None
        for position in DEVICE_PREFERENCE:
            device = self._device_manager.default_device(position)
            if device is not None:
                break

        if device is None:
            logger.error("Cannot access camera: no front or back camera available")
            return ConfigureResult.no_device()

        logger.info(f"Selected camera: {device.name}")

        try:
            device_input = DeviceInput(device, fps=self._fps)
        except DeviceInputError as e:
            logger.error(f"Cannot create input device: {e}")
            return ConfigureResult.input_failed(str(e))

        if not self._session.can_add_input(device_input):
            logger.warning(f"Session cannot accept input from {device.name}, skipping")
            device_input.release()
            return ConfigureResult.input_rejected(device)

        self._session.add_input(device_input)
        self._device = device
        self._device_input = device_input
        return ConfigureResult.configured(device)

    @property
    def configure_result(self) -> Optional[ConfigureResult]:
        return self._configure_result

    @property
    def device(self) -> Optional[VideoDevice]:
        """The bound camera, or None if configure() found none."""
        return self._device

    # ========================================================================
    # Session Control
    # ========================================================================

    @property
    def is_detecting(self) -> bool:
        """True while the session is running, as last reported to the UI thread."""
        return self._is_detecting

    @property
    def state(self) -> SessionState:
        return SessionState.RUNNING if self._is_detecting else SessionState.STOPPED

    def is_busy(self) -> bool:
        """Check if start/stop requests are still in flight."""
        return self._pending_requests > 0

    def start(self) -> None:
        """Start the capture session in the background.

        Fire-and-forget: completion is reported through detecting_changed,
        failures through session_error. Does nothing if the session is
        running, or if the last queued request is already a start.
        """
        logger.info("Start requested")
        self._submit(self._run_start, running=True)

    def stop(self) -> None:
        """Stop the capture session in the background.

        Does nothing if the session is stopped, or if the last queued request
        is already a stop.
        """
        logger.info("Stop requested")
        self._submit(self._run_stop, running=False)

    def get_session(self) -> CaptureSession:
        """Get the live capture session for preview binding.

        Callers must not add or remove inputs on the returned session.
        """
        return self._session

    def shutdown(self) -> None:
        """Stop the session, release the camera and stop the worker.

        Blocks until queued requests and the final stop have completed.
        """
        if self._shut_down:
            return
        self._shut_down = True
        logger.info("Shutting down capture session controller")

        future = self._executor.submit(self._session.close)
        self._executor.shutdown(wait=True)
        try:
            future.result()
        except Exception as e:
            logger.error(f"Error closing capture session: {e}", exc_info=True)

        self._pending_requests = 0
        self._set_detecting(False)

    # ========================================================================
    # Worker
    # ========================================================================

    def _submit(self, request: Callable[[], None], running: bool) -> None:
        if self._shut_down:
            logger.warning("Controller is shut down, ignoring request")
            return

        if self._pending_requests:
            redundant = self._last_request == running
        else:
            redundant = self._is_detecting == running
        if redundant:
            logger.debug(f"Session already {'running' if running else 'stopped'}, request ignored")
            return

        self._pending_requests += 1
        self._last_request = running
        self._executor.submit(request)

    def _run_start(self) -> None:
        try:
            if self._session.is_running():
                logger.debug("Session already running, start ignored")
            else:
                self._session.start_running()
            self._transition_finished.emit(True)
        except Exception as e:
            logger.error(f"Error starting session: {e}", exc_info=True)
            self._transition_failed.emit(f"Failed to start session: {e}")

    def _run_stop(self) -> None:
        try:
            if not self._session.is_running():
                logger.debug("Session not running, stop ignored")
            else:
                self._session.stop_running()
            self._transition_finished.emit(False)
        except Exception as e:
            logger.error(f"Error stopping session: {e}", exc_info=True)
            self._transition_failed.emit(f"Failed to stop session: {e}")

    # ========================================================================
    # UI thread
    # ========================================================================

    @Slot(bool)
    def _on_transition_finished(self, running: bool) -> None:
        if self._shut_down:
            return
        self._pending_requests = max(0, self._pending_requests - 1)
        self._set_detecting(running)

    @Slot(str)
    def _on_transition_failed(self, message: str) -> None:
        if self._shut_down:
            return
        self._pending_requests = max(0, self._pending_requests - 1)
        self.session_error.emit(message)

    def _set_detecting(self, detecting: bool) -> None:
        if detecting == self._is_detecting:
            return
        self._is_detecting = detecting
        logger.info(f"Detecting: {detecting}")
        self.detecting_changed.emit(detecting)

    def __repr__(self) -> str:
        device = self._device.device_id if self._device else None
        return f"CaptureSessionController(device={device}, state={self.state.value})"
