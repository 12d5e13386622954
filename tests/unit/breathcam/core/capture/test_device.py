"""Unit tests for DeviceManager using mocks.

Tests camera lookup by facing position and enumeration without accessing
real hardware.
"""

from unittest.mock import MagicMock, patch

import pytest

from breathcam.core.capture import DeviceManager, OpenCVVideoDevice
from breathcam.core.models import DeviceType, FacingPosition, Resolution


def capture_factory(available):
    """Build a cv2.VideoCapture replacement that opens only ``available`` indices."""

    def factory(index):
        mock_cap = MagicMock()
        mock_cap.isOpened.return_value = index in available
        mock_cap.get.side_effect = lambda prop: {
            3: 1280,  # CAP_PROP_FRAME_WIDTH
            4: 720,  # CAP_PROP_FRAME_HEIGHT
        }.get(prop, 0)
        return mock_cap

    return factory


class TestDeviceManager:
    """Test suite for DeviceManager class using mocks."""

    @patch("cv2.VideoCapture")
    def test_default_front_device(self, mock_video_capture):
        mock_video_capture.side_effect = capture_factory({0, 1})
        manager = DeviceManager()

        device = manager.default_device(FacingPosition.FRONT)

        assert isinstance(device, OpenCVVideoDevice)
        assert device.index == 0
        assert device.position == FacingPosition.FRONT
        assert device.device_type == DeviceType.WIDE_ANGLE
        assert device.resolution == Resolution(1280, 720)
        assert device.device_id == "camera_0"

    @patch("cv2.VideoCapture")
    def test_default_back_device(self, mock_video_capture):
        mock_video_capture.side_effect = capture_factory({0, 1})
        manager = DeviceManager()

        device = manager.default_device(FacingPosition.BACK)

        assert device.index == 1
        assert device.position == FacingPosition.BACK
        assert device.name == "Back Camera (1)"

    @patch("cv2.VideoCapture")
    def test_unavailable_camera_returns_none(self, mock_video_capture):
        mock_video_capture.side_effect = capture_factory({1})
        manager = DeviceManager()

        assert manager.default_device(FacingPosition.FRONT) is None
        assert manager.default_device(FacingPosition.BACK) is not None

    @patch("cv2.VideoCapture")
    def test_unmapped_position_returns_none(self, mock_video_capture):
        mock_video_capture.side_effect = capture_factory({0, 1})
        manager = DeviceManager(position_map={FacingPosition.FRONT: None, FacingPosition.BACK: 0})

        assert manager.default_device(FacingPosition.FRONT) is None
        assert manager.default_device(FacingPosition.BACK).index == 0
        # Unmapped positions are never probed
        mock_video_capture.assert_called_once_with(0)

    @patch("cv2.VideoCapture")
    def test_probe_releases_capture(self, mock_video_capture):
        captures = []

        def factory(index):
            cap = capture_factory({0})(index)
            captures.append(cap)
            return cap

        mock_video_capture.side_effect = factory
        DeviceManager().default_device(FacingPosition.FRONT)

        assert captures
        for cap in captures:
            cap.release.assert_called_once()

    @patch("cv2.VideoCapture")
    def test_probe_error_is_treated_as_unavailable(self, mock_video_capture):
        mock_video_capture.side_effect = RuntimeError("backend crashed")

        assert DeviceManager().default_device(FacingPosition.FRONT) is None

    @patch("cv2.VideoCapture")
    def test_get_devices(self, mock_video_capture):
        mock_video_capture.side_effect = capture_factory({0, 2})
        manager = DeviceManager()

        devices = manager.get_devices()

        assert [d.index for d in devices] == [0, 2]
        assert devices[0].position == FacingPosition.FRONT
        assert devices[1].position == FacingPosition.UNSPECIFIED
        assert devices[1].name == "Camera 2"

    @patch("cv2.VideoCapture")
    def test_get_devices_stops_after_consecutive_failures(self, mock_video_capture):
        mock_video_capture.side_effect = capture_factory(set())

        assert DeviceManager().get_devices() == []
        # MAX_CONSECUTIVE_FAILURES probes, then give up
        assert mock_video_capture.call_count == 3

    def test_other_device_types_are_not_offered(self):
        manager = DeviceManager()
        assert manager.default_device(FacingPosition.FRONT, device_type=None) is None


class TestOpenCVVideoDevice:
    @patch("cv2.VideoCapture")
    def test_open_sets_fps(self, mock_video_capture):
        cap = MagicMock()
        cap.isOpened.return_value = True
        mock_video_capture.return_value = cap

        handle = OpenCVVideoDevice(3, FacingPosition.FRONT).open(fps=15)

        assert handle is cap
        mock_video_capture.assert_called_once_with(3)
        cap.set.assert_called_once_with(5, 15)  # CAP_PROP_FPS

    @pytest.mark.parametrize(
        "position, expected",
        [
            (FacingPosition.FRONT, "Front Camera (0)"),
            (FacingPosition.UNSPECIFIED, "Camera 0"),
        ],
    )
    def test_name(self, position, expected):
        assert OpenCVVideoDevice(0, position).name == expected
