"""Detecting status overlay."""

from typing import Optional

from PySide6.QtWidgets import QLabel, QWidget

DETECTING_TEXT = "breathe detecting..."
OVERLAY_MARGIN = 16


class DetectingOverlay(QLabel):
    """Label floated over the preview while the session is detecting."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(DETECTING_TEXT, parent)
        self.setStyleSheet(
            """
            QLabel {
                background-color: rgba(0, 0, 0, 128);
                color: #ffffff;
                font-weight: bold;
                padding: 8px;
                border-radius: 10px;
            }
            """
        )
        self.adjustSize()
        self.move(OVERLAY_MARGIN, OVERLAY_MARGIN)
        self.hide()

    def set_detecting(self, detecting: bool) -> None:
        self.setVisible(detecting)
        if detecting:
            self.raise_()
