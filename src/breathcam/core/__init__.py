"""Core application logic: models, capture and session control.

The Qt-based CaptureSessionController lives in ``breathcam.core.controller``
and is imported from there so the capture and settings layers load without
Qt.
"""

from breathcam.core.models import (
    AppSettings,
    ConfigureResult,
    ConfigureStatus,
    FacingPosition,
    SessionState,
)

__all__ = [
    "AppSettings",
    "ConfigureResult",
    "ConfigureStatus",
    "FacingPosition",
    "SessionState",
]
