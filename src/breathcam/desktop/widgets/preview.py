"""
Live camera preview widgets.

PreviewSurface is the widget placed in the window. It owns one PreviewLayer
bound to the controller's capture session and keeps the layer sized to its
own bounds on every layout pass.
"""

import logging
from typing import Optional, Protocol, runtime_checkable

from PySide6.QtCore import QRect, Qt, QTimer
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import QLabel, QSizePolicy, QWidget

from breathcam.core.capture.session import CaptureSession
from breathcam.core.controller import CaptureSessionController
from breathcam.core.models import VideoFrame, VideoGravity

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "Waiting for camera..."

_ASPECT_MODES = {
    VideoGravity.RESIZE_ASPECT: Qt.AspectRatioMode.KeepAspectRatio,
    VideoGravity.RESIZE_ASPECT_FILL: Qt.AspectRatioMode.KeepAspectRatioByExpanding,
    VideoGravity.RESIZE: Qt.AspectRatioMode.IgnoreAspectRatio,
}


@runtime_checkable
class PreviewRenderable(Protocol):
    """Something that renders a capture session and can be resized."""

    @property
    def session(self) -> CaptureSession: ...

    def setGeometry(self, rect: QRect) -> None: ...


class PreviewLayer(QLabel):
    """Renders the latest frame of a capture session.

    Frames are pulled from the session with a QTimer and fitted according to
    ``video_gravity``.
    """

    def __init__(
        self,
        session: CaptureSession,
        fps: int = 30,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self._session = session
        self._video_gravity = VideoGravity.RESIZE_ASPECT
        self._interval_ms = int(1000 / max(1, fps))
        self._has_frame = False
        self._last_frame_number: Optional[int] = None
        self._last_pixmap: Optional[QPixmap] = None

        self._update_timer = QTimer(self)
        self._update_timer.timeout.connect(self._update_frame)

        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setStyleSheet("QLabel { background-color: #000000; color: #ffffff; }")
        self.setText(PLACEHOLDER_TEXT)

    @property
    def session(self) -> CaptureSession:
        return self._session

    @property
    def video_gravity(self) -> VideoGravity:
        return self._video_gravity

    @video_gravity.setter
    def video_gravity(self, gravity: VideoGravity) -> None:
        self._video_gravity = gravity

    def start(self) -> None:
        """Start polling the session for frames."""
        self._update_timer.start(self._interval_ms)
        logger.debug(f"Preview updates started ({self._interval_ms}ms interval)")

    def is_active(self) -> bool:
        return self._update_timer.isActive()

    def cleanup(self) -> None:
        """Stop polling."""
        self._update_timer.stop()
        logger.debug("Preview updates stopped")

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        if self._last_pixmap is not None:
            self._render(self._last_pixmap)

    def _update_frame(self) -> None:
        """Show the session's latest frame if it is new."""
        try:
            frame = self._session.get_frame()

            if frame is None:
                if not self._has_frame:
                    self.setText(PLACEHOLDER_TEXT)
                return

            if frame.frame_number == self._last_frame_number and self._has_frame:
                return

            pixmap = self._frame_to_pixmap(frame)
            if pixmap is None:
                return

            self._last_frame_number = frame.frame_number
            self._last_pixmap = pixmap
            self._has_frame = True
            self._render(pixmap)

        except Exception as e:
            logger.error(f"Error updating preview: {e}", exc_info=True)

    def _render(self, pixmap: QPixmap) -> None:
        target = self.size()
        if target.isEmpty():
            return

        scaled = pixmap.scaled(
            target,
            _ASPECT_MODES[self._video_gravity],
            Qt.TransformationMode.FastTransformation,
        )

        if self._video_gravity == VideoGravity.RESIZE_ASPECT_FILL:
            # Center crop to the layer bounds
            x = max(0, (scaled.width() - target.width()) // 2)
            y = max(0, (scaled.height() - target.height()) // 2)
            scaled = scaled.copy(x, y, target.width(), target.height())

        self.setPixmap(scaled)

    def _frame_to_pixmap(self, frame: VideoFrame) -> Optional[QPixmap]:
        """Convert an RGB VideoFrame to QPixmap.

        Args:
            frame: VideoFrame object

        Returns:
            QPixmap object, or None if conversion fails
        """
        try:
            img = frame.image

            # QImage needs a C-contiguous buffer
            if not img.flags["C_CONTIGUOUS"]:
                img = img.copy()

            height, width, channels = img.shape
            bytes_per_line = channels * width
            q_image = QImage(
                img.data,
                width,
                height,
                bytes_per_line,
                QImage.Format.Format_RGB888,
            )

            return QPixmap.fromImage(q_image)

        except Exception as e:
            logger.error(f"Error converting frame to pixmap: {e}", exc_info=True)
            return None


class PreviewCoordinator:
    """Keeps the preview layer reference across layout passes."""

    def __init__(self):
        self.preview_layer: Optional[PreviewLayer] = None


class PreviewSurface(QWidget):
    """Widget that shows the controller's live camera feed.

    On creation a PreviewLayer is bound to the controller's session with
    aspect-fill gravity. Each resize sets the layer geometry to the surface
    bounds and nothing else.
    """

    def __init__(
        self,
        controller: CaptureSessionController,
        fps: int = 30,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMinimumSize(240, 320)

        self._coordinator = PreviewCoordinator()

        layer = PreviewLayer(controller.get_session(), fps=fps, parent=self)
        layer.video_gravity = VideoGravity.RESIZE_ASPECT_FILL
        layer.setGeometry(self.rect())
        layer.lower()
        self._coordinator.preview_layer = layer
        layer.start()

        logger.debug("PreviewSurface created")

    @property
    def preview_layer(self) -> Optional[PreviewLayer]:
        return self._coordinator.preview_layer

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        layer = self._coordinator.preview_layer
        if layer is not None:
            layer.setGeometry(self.rect())

    def cleanup(self) -> None:
        """Stop the layer and drop the reference."""
        layer = self._coordinator.preview_layer
        if layer is not None:
            layer.cleanup()
            self._coordinator.preview_layer = None
        logger.debug("PreviewSurface cleaned up")
