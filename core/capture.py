"""
Frame source: webcam by index or video file, delivered as RGBA Frames tagged
with rotation. Keeps only the latest frame: the driver buffer is one frame
deep and nothing is queued on our side.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Tuple

import cv2

from core.frames import frame_from_bgr, normalize_rotation
from core.models import Frame

logger = logging.getLogger(__name__)

TARGET_WIDTH = 640
TARGET_HEIGHT = 480


def _probe_opencv(max_cameras: int = 8) -> List[Tuple[int, str]]:
    """Probe indices 0..max_cameras-1; return (index, 'Camera N') for each that opens."""
    result: List[Tuple[int, str]] = []
    for i in range(max_cameras):
        cap = cv2.VideoCapture(i)
        if cap.isOpened():
            result.append((i, f"Camera {i}"))
        cap.release()
    return result


def list_cameras() -> List[Tuple[int, str]]:
    """
    (index, display_name) for available cameras. On Windows, DirectShow names
    via pygrabber, in the same order as OpenCV with CAP_DSHOW.
    """
    if sys.platform == "win32":
        from pygrabber.dshow_graph import FilterGraph

        devices = FilterGraph().get_input_devices()
        if devices:
            return list(enumerate(devices))
    return _probe_opencv()


class VideoCaptureSource:
    """Unified source for webcam (by index) or video file."""

    def __init__(
        self,
        width: int = TARGET_WIDTH,
        height: int = TARGET_HEIGHT,
        rotation_degrees: int = 0,
    ) -> None:
        self._cap: cv2.VideoCapture | None = None
        self._source_path: str | None = None  # None = webcam
        self._camera_index: int = 0
        self._target_size = (width, height)
        self._rotation = normalize_rotation(rotation_degrees)

    @property
    def rotation_degrees(self) -> int:
        return self._rotation

    @rotation_degrees.setter
    def rotation_degrees(self, value: int) -> None:
        self._rotation = normalize_rotation(value)

    def open_camera(self, index: int = 0) -> bool:
        """Open a webcam at the target resolution. Returns True on success."""
        self.close()
        # On Windows, use DirectShow so index order matches list_cameras()
        if sys.platform == "win32":
            self._cap = cv2.VideoCapture(index, cv2.CAP_DSHOW)
        else:
            self._cap = cv2.VideoCapture(index)
        self._camera_index = index
        if not self._cap.isOpened():
            return False
        w, h = self._target_size
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        # Not every backend honours this; stale frames are then dropped downstream
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        logger.info("Camera %d opened at %dx%d", index, *self.get_size())
        return True

    def open_file(self, path: str | Path) -> bool:
        """Open a video file. Returns True on success."""
        self.close()
        path_str = str(path)
        self._cap = cv2.VideoCapture(path_str)
        self._source_path = path_str
        return self._cap.isOpened()

    def close(self) -> None:
        """Release the current source."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._source_path = None

    def is_opened(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def read_frame(self) -> Frame | None:
        """Next frame as RGBA with the configured rotation, or None at end of stream."""
        if self._cap is None:
            return None
        ok, frame_bgr = self._cap.read()
        if not ok or frame_bgr is None:
            return None
        return frame_from_bgr(frame_bgr, self._rotation)

    def get_size(self) -> tuple[int, int]:
        """(width, height) of the stream."""
        if self._cap is None:
            return 0, 0
        w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        return w, h

    @property
    def source_path(self) -> str | None:
        return self._source_path

    @property
    def camera_index(self) -> int:
        return self._camera_index
