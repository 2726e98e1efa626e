"""Frame source with OpenCV's VideoCapture replaced by an in-memory stream."""

from __future__ import annotations

import cv2
import numpy as np
import pytest

import core.capture
from core.capture import VideoCaptureSource
from core.errors import FrameConversionError


class FakeVideoCapture:
    def __init__(self, source, frames=2):
        self.source = source
        self.props: dict[int, float] = {}
        self._frames = [np.full((4, 6, 3), i, dtype=np.uint8) for i in range(frames)]
        self.released = False

    def isOpened(self):
        return not self.released

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def get(self, prop):
        return {cv2.CAP_PROP_FRAME_WIDTH: 6, cv2.CAP_PROP_FRAME_HEIGHT: 4}.get(prop, 0)

    def read(self):
        if not self._frames:
            return False, None
        return True, self._frames.pop(0)

    def release(self):
        self.released = True


@pytest.fixture
def fake_capture(monkeypatch):
    opened = []

    def factory(source, *args):
        cap = FakeVideoCapture(source)
        opened.append(cap)
        return cap

    monkeypatch.setattr(core.capture.cv2, "VideoCapture", factory)
    return opened


def test_camera_keeps_one_frame_buffered(fake_capture):
    source = VideoCaptureSource()
    assert source.open_camera(0)
    cap = fake_capture[-1]
    assert cap.props[cv2.CAP_PROP_BUFFERSIZE] == 1
    assert source.get_size() == (6, 4)


def test_read_frame_until_end_of_stream(fake_capture):
    source = VideoCaptureSource(rotation_degrees=90)
    assert source.open_file("clip.mp4")
    assert source.source_path == "clip.mp4"
    first = source.read_frame()
    assert (first.width, first.height) == (6, 4)
    assert first.rotation_degrees == 90
    assert source.read_frame() is not None
    assert source.read_frame() is None
    source.close()
    assert not source.is_opened()
    assert source.read_frame() is None


def test_rotation_must_be_quarter_turn():
    source = VideoCaptureSource()
    source.rotation_degrees = 450
    assert source.rotation_degrees == 90
    with pytest.raises(FrameConversionError):
        source.rotation_degrees = 45
