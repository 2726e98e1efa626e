"""
Frame adapter: turns raw (possibly row-padded) RGBA camera buffers into dense,
upright images ready for the landmark model.
"""

from __future__ import annotations

import cv2
import numpy as np
from numpy.lib.stride_tricks import as_strided

from core.errors import FrameConversionError
from core.models import Frame, UprightImage

BYTES_PER_PIXEL = 4
_VALID_ROTATIONS = (0, 90, 180, 270)


def normalize_rotation(rotation_degrees: int) -> int:
    """Map any multiple of 90 into 0/90/180/270."""
    rotation = int(rotation_degrees) % 360
    if rotation not in _VALID_ROTATIONS:
        raise FrameConversionError(f"Unsupported rotation: {rotation_degrees} degrees")
    return rotation


def rotate(pixels: np.ndarray, rotation_degrees: int) -> np.ndarray:
    """Rotate an H x W x C array clockwise. Returns a new contiguous array."""
    quarter_turns = normalize_rotation(rotation_degrees) // 90
    if quarter_turns == 0:
        return np.ascontiguousarray(pixels)
    # np.rot90 turns counter-clockwise for positive k
    return np.ascontiguousarray(np.rot90(pixels, k=-quarter_turns, axes=(0, 1)))


def convert_buffer(
    buffer: bytes | memoryview | np.ndarray,
    row_stride: int,
    pixel_stride: int,
    width: int,
    height: int,
    rotation_degrees: int = 0,
) -> UprightImage:
    """
    Copy a padded RGBA buffer into a dense (height, width) image and rotate it upright.

    row_stride and pixel_stride are in bytes. Row padding beyond
    row_stride // pixel_stride pixels is cropped away. The source buffer is
    never written to. Raises FrameConversionError when the buffer cannot hold
    the declared geometry.
    """
    if width <= 0 or height <= 0:
        raise FrameConversionError(f"Invalid frame size {width}x{height}")
    if pixel_stride < BYTES_PER_PIXEL:
        raise FrameConversionError(f"Pixel stride {pixel_stride} is smaller than one RGBA pixel")
    row_width = row_stride // pixel_stride
    if row_width < width:
        raise FrameConversionError(
            f"Row stride {row_stride} holds {row_width} pixels, frame needs {width}"
        )

    data = np.frombuffer(buffer, dtype=np.uint8) if not isinstance(buffer, np.ndarray) else buffer
    data = data.reshape(-1)
    if data.dtype != np.uint8:
        raise FrameConversionError(f"Expected uint8 pixels, got {data.dtype}")
    # The last row needs no padding, its last pixel no pixel padding
    needed = row_stride * (height - 1) + (width - 1) * pixel_stride + BYTES_PER_PIXEL
    if data.size < needed:
        raise FrameConversionError(
            f"Buffer has {data.size} bytes, {width}x{height} at stride {row_stride} needs {needed}"
        )

    view = as_strided(
        data,
        shape=(height, width, BYTES_PER_PIXEL),
        strides=(row_stride * data.strides[0], pixel_stride * data.strides[0], data.strides[0]),
        writeable=False,
    )
    if normalize_rotation(rotation_degrees) == 0:
        return UprightImage(view.copy())
    return UprightImage(rotate(view, rotation_degrees))


def convert_frame(frame: Frame) -> UprightImage:
    return convert_buffer(
        frame.buffer,
        frame.row_stride,
        frame.pixel_stride,
        frame.width,
        frame.height,
        frame.rotation_degrees,
    )


def frame_from_bgr(frame_bgr: np.ndarray, rotation_degrees: int = 0) -> Frame:
    """Wrap an OpenCV BGR frame as an RGBA Frame."""
    rgba = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGBA)
    h, w = rgba.shape[:2]
    return Frame(
        width=w,
        height=h,
        buffer=rgba,
        row_stride=rgba.strides[0],
        pixel_stride=rgba.strides[1],
        rotation_degrees=rotation_degrees,
    )


def to_bgr(image: UprightImage) -> np.ndarray:
    return cv2.cvtColor(image.pixels, cv2.COLOR_RGBA2BGR)
