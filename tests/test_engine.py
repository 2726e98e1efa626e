"""Conversion of FaceLandmarker results into InferenceResult."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

pytest.importorskip("mediapipe")

from core.engine import FaceLandmarkEngine, to_inference_result  # noqa: E402
from core.errors import EngineLoadError  # noqa: E402


def _landmark(x, y, z=0.0):
    return SimpleNamespace(x=x, y=y, z=z)


def _category(name, score):
    return SimpleNamespace(category_name=name, score=score)


def test_no_face_gives_empty_result():
    result = to_inference_result(SimpleNamespace(face_landmarks=[], face_blendshapes=[]), 5)
    assert result.timestamp_ms == 5
    assert not result.has_face
    assert result.blendshapes is None


def test_first_face_only():
    raw = SimpleNamespace(
        face_landmarks=[
            [_landmark(0.1, 0.2, 0.3), _landmark(0.4, 0.5)],
            [_landmark(0.9, 0.9)],
        ],
        face_blendshapes=[
            [_category("mouthSmileLeft", 0.8), _category("eyeBlinkLeft", 0.1)],
            [_category("mouthSmileLeft", 0.0)],
        ],
    )
    result = to_inference_result(raw, 10, (640, 480))
    assert result.has_face
    assert len(result.landmarks) == 2
    assert result.landmarks[0].z == pytest.approx(0.3)
    assert result.blendshapes == {
        "mouthSmileLeft": pytest.approx(0.8),
        "eyeBlinkLeft": pytest.approx(0.1),
    }
    assert result.image_size == (640, 480)


def test_face_without_blendshape_output():
    raw = SimpleNamespace(face_landmarks=[[_landmark(0.5, 0.5)]], face_blendshapes=None)
    result = to_inference_result(raw, 1)
    assert result.has_face
    assert result.blendshapes is None


def test_create_rejects_missing_model(tmp_path):
    with pytest.raises(EngineLoadError):
        FaceLandmarkEngine.create(
            tmp_path / "missing.task", on_result=lambda r: None, on_error=lambda m, t: None
        )
