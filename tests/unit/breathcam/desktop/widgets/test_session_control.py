"""Unit tests for SessionControlWidget and DetectingOverlay."""

import pytest

from breathcam.desktop.widgets import DetectingOverlay, SessionControlWidget
from breathcam.desktop.widgets.status import DETECTING_TEXT


@pytest.fixture
def widget(qtbot):
    widget = SessionControlWidget()
    qtbot.addWidget(widget)
    return widget


def test_button_labels(widget):
    assert widget.start_button.text() == "START"
    assert widget.stop_button.text() == "END"
    assert widget.start_button.isEnabled()
    assert widget.stop_button.isEnabled()


def test_start_click_emits_start_requested(qtbot, widget):
    with qtbot.waitSignal(widget.start_requested, timeout=1000):
        widget.start_button.click()


def test_end_click_emits_stop_requested(qtbot, widget):
    with qtbot.assertNotEmitted(widget.start_requested):
        with qtbot.waitSignal(widget.stop_requested, timeout=1000):
            widget.stop_button.click()


def test_buttons_stay_enabled_after_clicks(qtbot, widget):
    widget.start_button.click()
    widget.start_button.click()

    assert widget.start_button.isEnabled()
    assert widget.stop_button.isEnabled()


class TestDetectingOverlay:
    def test_hidden_by_default(self, qtbot):
        overlay = DetectingOverlay()
        qtbot.addWidget(overlay)

        assert overlay.text() == DETECTING_TEXT
        assert overlay.isHidden()

    def test_visibility_follows_detecting(self, qtbot):
        overlay = DetectingOverlay()
        qtbot.addWidget(overlay)

        overlay.set_detecting(True)
        assert not overlay.isHidden()

        overlay.set_detecting(False)
        assert overlay.isHidden()
