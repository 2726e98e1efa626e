"""
Per-frame face analysis: frame adapter -> inference gateway -> emotion + pose.

Completed analyses are handed back as FaceAnalysis messages through a queue so
the MediaPipe callback thread never touches state owned by the frame thread.
"""

from __future__ import annotations

import logging
import queue
from pathlib import Path
from typing import Any, Callable

from core.emotion import DEFAULT_THRESHOLDS, EmotionThresholds, classify
from core.errors import EngineLoadError, FrameConversionError
from core.frames import convert_frame
from core.gateway import AsyncEngine, InferenceGateway, wall_clock_ms
from core.head_pose import estimate
from core.models import (
    AnalysisState,
    Emotion,
    EmotionVerdict,
    FaceAnalysis,
    Frame,
    InferenceResult,
    UprightImage,
)

logger = logging.getLogger(__name__)


class FaceAnalysisPipeline:
    """Runs frames through the landmark engine, one at a time, newest first."""

    def __init__(
        self,
        thresholds: EmotionThresholds = DEFAULT_THRESHOLDS,
        stall_timeout_ms: int | None = None,
        clock: Callable[[], int] = wall_clock_ms,
        listener: Callable[[FaceAnalysis], None] | None = None,
    ) -> None:
        self._thresholds = thresholds
        self._listener = listener
        self._inbox: queue.SimpleQueue[FaceAnalysis] = queue.SimpleQueue()
        self._engine: Any = None
        self.gateway = InferenceGateway(
            on_result=self._handle_result,
            on_error=self._handle_error,
            clock=clock,
            stall_timeout_ms=stall_timeout_ms,
        )
        self.conversion_failures = 0

    @property
    def available(self) -> bool:
        return self._engine is not None

    def attach_engine(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self.gateway.attach(engine)

    def start(self, model_path: str | Path | None = None, **engine_options: Any) -> bool:
        """
        Load the face landmarker (downloading the default model if needed).
        On failure the pipeline stays usable but every frame is dropped, and an
        UNAVAILABLE analysis is published once.
        """
        from core.engine import FaceLandmarkEngine
        from core.model_loader import get_model_path

        try:
            if model_path is None:
                model_path = get_model_path()
            engine = FaceLandmarkEngine.create(
                model_path,
                on_result=self.gateway.on_result,
                on_error=self.gateway.on_error,
                max_faces=1,
                enable_blendshapes=True,
                **engine_options,
            )
        except EngineLoadError as e:
            logger.error("Face landmarker failed to load: %s", e)
            self._publish(FaceAnalysis.failed(str(e), AnalysisState.UNAVAILABLE))
            return False
        self.attach_engine(engine)
        return True

    def submit_frame(self, frame: Frame) -> tuple[UprightImage | None, bool]:
        """
        Convert frame and dispatch it if the engine can take it.

        Returns (upright_image, accepted). The image is None when the frame
        could not be converted; it is still returned for preview when the
        frame was dropped or no engine is loaded.
        """
        try:
            image = convert_frame(frame)
        except FrameConversionError as e:
            self.conversion_failures += 1
            logger.debug("Dropping frame: %s", e)
            return None, False
        if not self.available:
            return image, False
        return image, self.gateway.submit(image)

    def analyze(self, result: InferenceResult) -> FaceAnalysis:
        """Turn an engine result into a FaceAnalysis. Pure; used by the callback."""
        image_size = result.image_size or (1, 1)
        if not result.has_face:
            return FaceAnalysis.searching(result.timestamp_ms, image_size)
        landmarks = result.landmarks or ()
        if result.blendshapes:
            verdict = classify(result.blendshapes, self._thresholds)
        else:
            # Face without blendshape output: neutral, no evidence
            verdict = EmotionVerdict(Emotion.NEUTRAL, 0.0)
        return FaceAnalysis.detected(
            result.timestamp_ms, image_size, landmarks, verdict, estimate(landmarks)
        )

    def _handle_result(self, result: InferenceResult) -> None:
        self._publish(self.analyze(result))

    def _handle_error(self, message: str, timestamp_ms: int) -> None:
        self._publish(FaceAnalysis.failed(message))

    def _publish(self, analysis: FaceAnalysis) -> None:
        self._inbox.put(analysis)
        if self._listener is not None:
            self._listener(analysis)

    def poll(self) -> FaceAnalysis | None:
        """Drain pending analyses and return the newest, or None if nothing arrived."""
        latest = None
        while True:
            try:
                latest = self._inbox.get_nowait()
            except queue.Empty:
                return latest

    def close(self) -> None:
        engine, self._engine = self._engine, None
        self.gateway.attach(None)
        if engine is not None and hasattr(engine, "close"):
            engine.close()
