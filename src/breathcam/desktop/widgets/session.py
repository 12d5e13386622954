"""Session control widget.

This module provides the SessionControlWidget with the START and END
buttons that drive the capture session.
"""

import logging
from typing import Optional

from PySide6.QtCore import Signal
from PySide6.QtWidgets import QHBoxLayout, QPushButton, QWidget

logger = logging.getLogger(__name__)


class SessionControlWidget(QWidget):
    """START and END buttons.

    Both buttons stay enabled; repeated presses are absorbed by the
    controller.
    """

    start_requested = Signal()
    stop_requested = Signal()

    def __init__(self, parent: Optional[QWidget] = None):
        """Initialize the SessionControlWidget.

        Args:
            parent: Optional parent widget
        """
        super().__init__(parent)
        logger.debug("Initializing SessionControlWidget")

        self._start_button: Optional[QPushButton] = None
        self._stop_button: Optional[QPushButton] = None

        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(50)
        layout.addStretch()

        self._start_button = QPushButton("START")
        self._start_button.setToolTip("Start the camera session")
        self._start_button.setFixedSize(120, 44)
        self._start_button.clicked.connect(self._on_start_clicked)
        layout.addWidget(self._start_button)

        self._stop_button = QPushButton("END")
        self._stop_button.setToolTip("Stop the camera session")
        self._stop_button.setFixedSize(120, 44)
        self._stop_button.clicked.connect(self._on_stop_clicked)
        layout.addWidget(self._stop_button)

        layout.addStretch()

    @property
    def start_button(self) -> QPushButton:
        return self._start_button

    @property
    def stop_button(self) -> QPushButton:
        return self._stop_button

    def _on_start_clicked(self) -> None:
        logger.info("START button clicked")
        self.start_requested.emit()

    def _on_stop_clicked(self) -> None:
        logger.info("END button clicked")
        self.stop_requested.emit()
