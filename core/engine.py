"""
MediaPipe FaceLandmarker in LIVE_STREAM mode, wrapped as an owned resource with
result / error callbacks.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable

import cv2
import mediapipe as mp

from core.errors import EngineLoadError
from core.models import InferenceResult, Landmark, UprightImage

logger = logging.getLogger(__name__)


def to_inference_result(
    result: Any, timestamp_ms: int, image_size: tuple[int, int] | None = None
) -> InferenceResult:
    """Convert a FaceLandmarkerResult, keeping only the first face."""
    faces = getattr(result, "face_landmarks", None) or []
    if not faces:
        return InferenceResult(timestamp_ms, image_size=image_size)
    landmarks = tuple(
        Landmark(float(lm.x), float(lm.y), float(lm.z or 0.0)) for lm in faces[0]
    )
    blendshapes = None
    face_blendshapes = getattr(result, "face_blendshapes", None) or []
    if face_blendshapes:
        blendshapes = {
            c.category_name: float(c.score or 0.0)
            for c in face_blendshapes[0]
            if c.category_name
        }
    return InferenceResult(timestamp_ms, landmarks, blendshapes, image_size)


class FaceLandmarkEngine:
    """
    Owns one FaceLandmarker. Exactly one of on_result / on_error is called per
    submit_async, on MediaPipe's callback thread (or inline for errors raised
    while dispatching).
    """

    def __init__(
        self,
        landmarker: mp.tasks.vision.FaceLandmarker,
        on_result: Callable[[InferenceResult], None],
        on_error: Callable[[str, int], None],
    ) -> None:
        self._landmarker: mp.tasks.vision.FaceLandmarker | None = landmarker
        self._on_result = on_result
        self._on_error = on_error
        self._close_lock = threading.Lock()

    @classmethod
    def create(
        cls,
        model_path: str | Path,
        on_result: Callable[[InferenceResult], None],
        on_error: Callable[[str, int], None],
        max_faces: int = 1,
        enable_blendshapes: bool = True,
        min_face_detection_confidence: float = 0.5,
        min_face_presence_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ) -> FaceLandmarkEngine:
        model_path = Path(model_path)
        if not model_path.is_file():
            raise EngineLoadError(f"Model not found: {model_path}")

        def forward(result: Any, image: mp.Image, timestamp_ms: int) -> None:
            try:
                converted = to_inference_result(
                    result, timestamp_ms, (int(image.width), int(image.height))
                )
            except (AttributeError, TypeError, ValueError) as e:
                on_error(f"Malformed result: {e}", timestamp_ms)
                return
            on_result(converted)

        base_options = mp.tasks.BaseOptions(model_asset_path=str(model_path))
        options = mp.tasks.vision.FaceLandmarkerOptions(
            base_options=base_options,
            running_mode=mp.tasks.vision.RunningMode.LIVE_STREAM,
            num_faces=int(max_faces),
            output_face_blendshapes=bool(enable_blendshapes),
            min_face_detection_confidence=float(min_face_detection_confidence),
            min_face_presence_confidence=float(min_face_presence_confidence),
            min_tracking_confidence=float(min_tracking_confidence),
            result_callback=forward,
        )
        try:
            landmarker = mp.tasks.vision.FaceLandmarker.create_from_options(options)
        except Exception as e:  # noqa: BLE001
            raise EngineLoadError(f"Failed to load {model_path.name}: {e}") from e
        logger.info("Face landmarker loaded from %s", model_path)
        return cls(landmarker, on_result, on_error)

    @property
    def closed(self) -> bool:
        return self._landmarker is None

    def submit_async(self, image: UprightImage, timestamp_ms: int) -> None:
        landmarker = self._landmarker
        if landmarker is None:
            self._on_error("engine closed", timestamp_ms)
            return
        rgb = cv2.cvtColor(image.pixels, cv2.COLOR_RGBA2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        try:
            landmarker.detect_async(mp_image, timestamp_ms)
        except (RuntimeError, ValueError) as e:
            self._on_error(str(e), timestamp_ms)

    def close(self) -> None:
        """Release the landmarker. Later calls are no-ops."""
        with self._close_lock:
            landmarker, self._landmarker = self._landmarker, None
        if landmarker is not None:
            landmarker.close()
            logger.info("Face landmarker closed")
