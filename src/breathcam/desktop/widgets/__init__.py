"""
Desktop UI widgets for breathcam.

This package provides the camera preview, the detecting overlay and the
START/END session controls.
"""

from breathcam.desktop.widgets.preview import (
    PreviewCoordinator,
    PreviewLayer,
    PreviewRenderable,
    PreviewSurface,
)
from breathcam.desktop.widgets.session import SessionControlWidget
from breathcam.desktop.widgets.status import DetectingOverlay

__all__ = [
    "DetectingOverlay",
    "PreviewCoordinator",
    "PreviewLayer",
    "PreviewRenderable",
    "PreviewSurface",
    "SessionControlWidget",
]
