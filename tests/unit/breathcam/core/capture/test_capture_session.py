"""Unit tests for DeviceInput and VideoCaptureSession using fake cameras."""

import threading
from unittest.mock import Mock

import pytest

import breathcam.core.capture.session as capture_session_module
from breathcam.core.capture.session import DeviceInput, DeviceInputError, VideoCaptureSession
from breathcam.core.models import FacingPosition, Resolution, SessionState
from fakes.camera import BlockingCaptureHandle, FakeVideoDevice, make_image, wait_for


@pytest.fixture
def camera():
    return FakeVideoDevice(position=FacingPosition.FRONT, image=make_image(8, 6))


@pytest.fixture
def session():
    session = VideoCaptureSession(fps=60)
    yield session
    session.close()


class TestDeviceInput:
    def test_construction_acquires_camera(self, camera):
        device_input = DeviceInput(camera)

        assert device_input.is_open()
        assert device_input.device is camera
        assert len(camera.handles) == 1

    def test_unopenable_camera_raises(self):
        camera = FakeVideoDevice(openable=False)

        with pytest.raises(DeviceInputError, match="Failed to open"):
            DeviceInput(camera)

        assert camera.handles[0].release_count == 1

    def test_open_exception_is_wrapped(self):
        camera = FakeVideoDevice()
        camera.open = Mock(side_effect=OSError("permission denied"))

        with pytest.raises(DeviceInputError, match="permission denied"):
            DeviceInput(camera)

    def test_release_and_reopen(self, camera):
        device_input = DeviceInput(camera)

        device_input.release()
        assert not device_input.is_open()
        assert device_input.read() == (False, None)

        device_input.reopen()
        assert device_input.is_open()
        assert len(camera.handles) == 2


class TestVideoCaptureSession:
    def test_accepts_a_single_input(self, session, camera):
        first = DeviceInput(camera)
        second = DeviceInput(FakeVideoDevice(index=1, position=FacingPosition.BACK))

        assert session.can_add_input(first)
        session.add_input(first)

        assert not session.can_add_input(second)
        with pytest.raises(ValueError):
            session.add_input(second)
        assert session.inputs == [first]

    def test_start_produces_frames(self, session, camera):
        session.add_input(DeviceInput(camera))

        session.start_running()

        assert session.is_running()
        assert session.state == SessionState.RUNNING
        assert wait_for(lambda: session.get_frame() is not None)

        frame = session.get_frame()
        assert frame.source_id == camera.device_id
        assert frame.resolution == Resolution(8, 6)
        # BGR input converted to RGB: the blue channel set by make_image moves last
        assert frame.image[0, 0, 2] == 255

    def test_stop_releases_camera(self, session, camera):
        session.add_input(DeviceInput(camera))
        session.start_running()

        session.stop_running()

        assert not session.is_running()
        assert session.state == SessionState.STOPPED
        assert camera.handles[0].release_count == 1
        assert not session.inputs[0].is_open()

    def test_restart_reacquires_camera(self, session, camera):
        session.add_input(DeviceInput(camera))
        session.start_running()
        session.stop_running()

        session.start_running()

        assert session.is_running()
        assert len(camera.handles) == 2

    def test_start_twice_acquires_once(self, session, camera):
        session.add_input(DeviceInput(camera))

        session.start_running()
        session.start_running()

        assert len(camera.handles) == 1

    def test_stop_when_stopped_is_noop(self, session):
        session.stop_running()
        assert not session.is_running()

    def test_start_without_input_is_inert(self, session):
        session.start_running()

        assert session.is_running()
        assert session.get_frame() is None

    def test_cannot_add_input_while_running(self, session, camera):
        session.start_running()
        assert not session.can_add_input(DeviceInput(camera))

    def test_close_releases_inputs(self, camera):
        session = VideoCaptureSession()
        session.add_input(DeviceInput(camera))
        session.start_running()

        session.close()

        assert not session.is_running()
        assert all(handle.release_count >= 1 for handle in camera.handles)

    def test_fps_is_clamped(self):
        assert VideoCaptureSession(fps=0).fps == 1
        assert VideoCaptureSession(fps=240).fps == 60

    def test_frame_numbers_continue_across_restart(self, session, camera):
        session.add_input(DeviceInput(camera))
        session.start_running()
        assert wait_for(lambda: session.get_frame() is not None)
        session.stop_running()
        last_number = session.get_frame().frame_number

        session.start_running()

        assert wait_for(lambda: session.get_frame() is not None)
        assert session.get_frame().frame_number > last_number


def capture_loops_alive():
    return sum(1 for t in threading.enumerate() if t.name == "CaptureLoop" and t.is_alive())


class TestStalledCaptureLoop:
    """A camera read that outlives the stop timeout."""

    @pytest.fixture
    def stalled(self, monkeypatch):
        monkeypatch.setattr(capture_session_module, "STOP_JOIN_TIMEOUT", 0.1)
        camera = FakeVideoDevice(image=make_image(), handle_factory=BlockingCaptureHandle)
        session = VideoCaptureSession(fps=60)
        session.add_input(DeviceInput(camera))
        handle = camera.handles[0]

        session.start_running()
        assert handle.reading.wait(timeout=2.0)
        session.stop_running()

        yield session, camera, handle

        handle.proceed.set()
        session.close()

    def test_stop_keeps_camera_while_loop_is_blocked(self, stalled):
        session, camera, handle = stalled

        assert not session.is_running()
        assert handle.release_count == 0
        assert session.inputs[0].is_open()

    def test_restart_refused_while_old_loop_runs(self, stalled):
        session, camera, handle = stalled

        with pytest.raises(RuntimeError, match="still running"):
            session.start_running()

        assert not session.is_running()
        assert capture_loops_alive() == 1

    def test_restart_after_loop_exits_runs_one_loop(self, stalled):
        session, camera, handle = stalled

        handle.proceed.set()
        assert wait_for(lambda: capture_loops_alive() == 0)

        session.start_running()

        assert session.is_running()
        assert wait_for(lambda: session.get_frame() is not None)
        assert capture_loops_alive() == 1
        # The held camera is reused rather than opened again
        assert len(camera.handles) == 1
