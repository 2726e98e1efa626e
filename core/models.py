"""
Shared data models: frames, inference results, emotion/pose verdicts and the
unified results schema handed to the UI.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

import numpy as np

# Type alias for the unified results dict returned by the plugin
UnifiedResults = dict[str, Any]

# Number of mesh landmarks with a fixed identity (iris refinement adds 10 more)
MESH_LANDMARK_COUNT = 468


@dataclass(frozen=True, eq=False)
class Frame:
    """Raw camera frame: row-major, 4 bytes per pixel, rows may be padded."""

    width: int
    height: int
    buffer: bytes | memoryview | np.ndarray
    row_stride: int
    pixel_stride: int = 4
    rotation_degrees: int = 0


@dataclass(frozen=True, eq=False)
class UprightImage:
    """Dense RGBA image (H x W x 4) in screen orientation."""

    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class Landmark:
    """Normalized point: x, y in [0, 1] of the image, z is relative depth."""

    x: float
    y: float
    z: float = 0.0


LandmarkSet = Sequence[Landmark]
BlendshapeSet = Mapping[str, float]


@dataclass(frozen=True)
class InferenceResult:
    """Output of one inference request. At most one face is kept."""

    timestamp_ms: int
    landmarks: tuple[Landmark, ...] | None = None
    blendshapes: dict[str, float] | None = None
    image_size: tuple[int, int] | None = None

    @property
    def has_face(self) -> bool:
        return bool(self.landmarks)


class Emotion(Enum):
    NEUTRAL = "neutral"
    HAPPY = "happy"
    ANGRY = "angry"
    SURPRISED = "surprised"
    SLEEPY = "sleepy"

    @property
    def label(self) -> str:
        return _EMOTION_LABELS[self]

    @property
    def emoji(self) -> str:
        return _EMOTION_EMOJI[self]


_EMOTION_LABELS = {
    Emotion.NEUTRAL: "Neutral",
    Emotion.HAPPY: "Happy",
    Emotion.ANGRY: "Angry",
    Emotion.SURPRISED: "Surprised",
    Emotion.SLEEPY: "Sleepy/Blinking",
}

_EMOTION_EMOJI = {
    Emotion.NEUTRAL: "\U0001F610",
    Emotion.HAPPY: "\U0001F60A",
    Emotion.ANGRY: "\U0001F620",
    Emotion.SURPRISED: "\U0001F632",
    Emotion.SLEEPY: "\U0001F634",
}


@dataclass(frozen=True)
class EmotionVerdict:
    label: Emotion
    confidence: float

    @property
    def percent(self) -> int:
        return int(self.confidence * 100)


@dataclass(frozen=True)
class PoseAngles:
    """Head pose in integer degrees. All fields None means unknown (no face)."""

    yaw: int | None = None
    pitch: int | None = None
    roll: int | None = None

    @property
    def is_known(self) -> bool:
        return self.yaw is not None

    def hud_text(self) -> tuple[str, str, str]:
        """('Y: 12°', 'P: -3°', 'R: 0°'), or dashes when unknown."""
        if not self.is_known:
            return "Y: —", "P: —", "R: —"
        return f"Y: {self.yaw}°", f"P: {self.pitch}°", f"R: {self.roll}°"


UNKNOWN_POSE = PoseAngles()


class AnalysisState(Enum):
    SEARCHING = "searching"  # engine answered, no face in frame
    DETECTED = "detected"
    ERROR = "error"  # engine reported an error for this frame
    UNAVAILABLE = "unavailable"  # engine never loaded


@dataclass(frozen=True)
class FaceAnalysis:
    """One message per completed inference, published to the frame thread."""

    state: AnalysisState
    timestamp_ms: int = 0
    image_size: tuple[int, int] = (1, 1)
    landmarks: tuple[Landmark, ...] = ()
    verdict: EmotionVerdict | None = None
    pose: PoseAngles = UNKNOWN_POSE
    error: str | None = None

    @classmethod
    def searching(cls, timestamp_ms: int, image_size: tuple[int, int]) -> FaceAnalysis:
        return cls(AnalysisState.SEARCHING, timestamp_ms, image_size)

    @classmethod
    def detected(
        cls,
        timestamp_ms: int,
        image_size: tuple[int, int],
        landmarks: tuple[Landmark, ...],
        verdict: EmotionVerdict,
        pose: PoseAngles,
    ) -> FaceAnalysis:
        return cls(AnalysisState.DETECTED, timestamp_ms, image_size, landmarks, verdict, pose)

    @classmethod
    def failed(cls, message: str, state: AnalysisState = AnalysisState.ERROR) -> FaceAnalysis:
        return cls(state, error=message)

    def to_metadata(self) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "state": self.state.value,
            "num_faces": 1 if self.state is AnalysisState.DETECTED else 0,
            "inference_timestamp_ms": self.timestamp_ms,
            "yaw": self.pose.yaw,
            "pitch": self.pose.pitch,
            "roll": self.pose.roll,
        }
        if self.verdict is not None:
            meta["emotion"] = self.verdict.label.label
            meta["emoji"] = self.verdict.label.emoji
            meta["confidence"] = round(self.verdict.confidence, 3)
        if self.error:
            meta["error"] = self.error
        return meta


def unified_results_schema(
    pipeline: str,
    timestamp_s: float,
    detections: list[Any] | None = None,
    landmarks: list[Any] | None = None,
    metadata: dict[str, Any] | None = None,
) -> UnifiedResults:
    """Build a results dict that conforms to the unified schema."""
    return {
        "pipeline": pipeline,
        "timestamp_s": timestamp_s,
        "detections": detections if detections is not None else [],
        "landmarks": landmarks if landmarks is not None else [],
        "metadata": metadata if metadata is not None else {},
    }
