"""
Desktop UI module for breathcam.

This module provides the PySide6-based desktop user interface.
"""

from breathcam.desktop.main import MainWindow

__all__ = ["MainWindow"]
