"""
Main window for the breathcam desktop application.

The window shows the live camera preview with the detecting overlay and
the START/END buttons underneath.
"""

import logging
from copy import deepcopy
from typing import Optional

from PySide6.QtWidgets import QMainWindow, QVBoxLayout, QWidget

from breathcam.core.controller import CaptureSessionController
from breathcam.core.models import AppSettings, WindowGeometry
from breathcam.core.settings import SettingsManager
from breathcam.desktop.widgets import DetectingOverlay, PreviewSurface, SessionControlWidget

logger = logging.getLogger(__name__)

WINDOW_TITLE = "breathcam"


class MainWindow(QMainWindow):
    """Main application window.

    Provides:
    - Camera preview filling the window
    - "breathe detecting..." overlay while the session runs
    - START / END buttons
    - Status bar for camera problems
    """

    def __init__(
        self,
        controller: CaptureSessionController,
        settings: Optional[AppSettings] = None,
        settings_manager: Optional[SettingsManager] = None,
        stored_settings: Optional[AppSettings] = None,
        parent: Optional[QWidget] = None,
    ):
        """Initialize the main window.

        Args:
            controller: Controller owning the capture session
            settings: Loaded application settings (default: AppSettings())
            settings_manager: Where to save settings on close; None disables saving
            stored_settings: Settings as loaded from disk. Only the window
                geometry is updated on them before saving, so command-line
                overrides in ``settings`` are not persisted (default: a copy
                of ``settings``)
            parent: Optional parent widget
        """
        super().__init__(parent)
        logger.info("Initializing MainWindow")

        self._controller = controller
        self._settings = settings if settings is not None else AppSettings()
        self._settings_manager = settings_manager
        self._stored_settings = (
            stored_settings if stored_settings is not None else deepcopy(self._settings)
        )

        self.setWindowTitle(WINDOW_TITLE)
        self.setMinimumSize(360, 560)

        self._setup_central_widget()
        self._setup_status_bar()
        self._connect_signals()
        self._apply_settings()

        logger.info("MainWindow initialized successfully")

    def _setup_central_widget(self) -> None:
        central_widget = QWidget()
        layout = QVBoxLayout(central_widget)
        layout.setContentsMargins(16, 16, 16, 50)
        layout.setSpacing(16)

        self._preview = PreviewSurface(self._controller, fps=self._settings.preview_fps)
        layout.addWidget(self._preview, stretch=1)

        self._overlay = DetectingOverlay(self._preview)
        self._overlay.set_detecting(self._controller.is_detecting)

        self._session_control = SessionControlWidget()
        layout.addWidget(self._session_control, stretch=0)

        self.setCentralWidget(central_widget)

    def _setup_status_bar(self) -> None:
        result = self._controller.configure_result
        if result is not None and not result.ok:
            self.statusBar().showMessage(result.message or "Camera unavailable")
        else:
            self.statusBar().showMessage("Ready")

    def _connect_signals(self) -> None:
        self._session_control.start_requested.connect(self._controller.start)
        self._session_control.stop_requested.connect(self._controller.stop)
        self._controller.detecting_changed.connect(self._on_detecting_changed)
        self._controller.session_error.connect(self._on_session_error)
        logger.debug("Signals connected")

    def _apply_settings(self) -> None:
        if self._settings.window_geometry:
            geom = self._settings.window_geometry
            self.setGeometry(geom.x, geom.y, geom.width, geom.height)
            logger.debug(f"Applied window geometry: {geom.x}, {geom.y}, {geom.width}x{geom.height}")

    def _save_settings(self) -> None:
        if self._settings_manager is None:
            return

        try:
            geom = self.geometry()
            self._stored_settings.window_geometry = WindowGeometry(
                x=geom.x(),
                y=geom.y(),
                width=geom.width(),
                height=geom.height(),
            )
            self._settings_manager.save_settings(self._stored_settings)
        except Exception as e:
            logger.error(f"Error saving settings: {e}", exc_info=True)

    def _on_detecting_changed(self, detecting: bool) -> None:
        self._overlay.set_detecting(detecting)
        self.statusBar().showMessage("Detecting" if detecting else "Stopped")

    def _on_session_error(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)

    @property
    def preview(self) -> PreviewSurface:
        return self._preview

    @property
    def overlay(self) -> DetectingOverlay:
        return self._overlay

    @property
    def session_control(self) -> SessionControlWidget:
        return self._session_control

    def closeEvent(self, event) -> None:
        """Handle window close event.

        Save settings, stop the session and release the camera before closing.
        """
        logger.info("Closing main window")

        self._save_settings()
        self._preview.cleanup()
        self._controller.shutdown()

        event.accept()
        logger.info("Main window closed")
