"""Emotion detector plugin end to end with a fake landmark engine."""

from __future__ import annotations

import os

import numpy as np
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
pytest.importorskip("PySide6.QtWidgets")

from conftest import FakeEngine  # noqa: E402
from core.frames import frame_from_bgr  # noqa: E402
from core.models import InferenceResult  # noqa: E402
from core.pipeline import FaceAnalysisPipeline  # noqa: E402
from plugins import discover_plugins  # noqa: E402
from plugins.emotion_detector import EmotionDetectorPlugin  # noqa: E402


@pytest.fixture
def engine(monkeypatch) -> FakeEngine:
    fake = FakeEngine()

    def start(self, model_path=None, **engine_options):
        self.attach_engine(fake)
        return True

    monkeypatch.setattr(FaceAnalysisPipeline, "start", start)
    return fake


@pytest.fixture
def detector(engine):
    p = EmotionDetectorPlugin()
    p.init({})
    yield p
    p.close()


def _bgr(width=64, height=48):
    return np.full((height, width, 3), 90, dtype=np.uint8)


def test_discovered():
    assert "emotion_detector" in [p.plugin_id for p in discover_plugins()]


def test_preview_matches_frame(detector):
    preview, results = detector.process(frame_from_bgr(_bgr()), 0.0)
    assert preview.shape == (48, 64, 3)
    meta = results["metadata"]
    assert meta["state"] == "searching"
    assert meta["hud"]["title"] == "Searching..."
    assert meta["frames_accepted"] == 1
    assert meta["image_size"] == [64, 48]


def test_rotation_setting_turns_frame_upright(engine):
    p = EmotionDetectorPlugin()
    p.init({"rotation_degrees": "90"})
    preview, results = p.process(frame_from_bgr(_bgr()), 0.0)
    assert preview.shape == (64, 48, 3)
    assert results["metadata"]["image_size"] == [48, 64]
    p.close()


def test_view_size_crops_preview(engine):
    p = EmotionDetectorPlugin()
    p.init({"view_width": 100, "view_height": 100})
    preview, _ = p.process(frame_from_bgr(_bgr()), 0.0)
    assert preview.shape == (100, 100, 3)
    p.close()


def test_frames_dropped_while_busy(detector):
    detector.process(frame_from_bgr(_bgr()), 0.0)
    _, results = detector.process(frame_from_bgr(_bgr()), 0.1)
    assert results["metadata"]["frames_accepted"] == 1
    assert results["metadata"]["frames_dropped"] == 1


def test_result_reaches_next_frame(detector, engine, face):
    detector.process(frame_from_bgr(_bgr()), 0.0)
    detector.pipeline.gateway.on_result(
        InferenceResult(
            engine.last_timestamp,
            landmarks=face,
            blendshapes={"mouthSmileLeft": 0.9, "mouthSmileRight": 0.9},
            image_size=(64, 48),
        )
    )
    preview, results = detector.process(frame_from_bgr(_bgr()), 0.1)
    meta = results["metadata"]
    assert meta["emotion"] == "Happy"
    assert meta["num_faces"] == 1
    assert (meta["yaw"], meta["pitch"], meta["roll"]) == (0, 0, 0)
    assert len(results["landmarks"][0]) == len(face)
    assert preview.shape == (48, 64, 3)


def test_bad_frame_returns_nothing(detector):
    from core.models import Frame

    annotated, results = detector.process(Frame(4, 4, bytes(4), row_stride=16), 0.0)
    assert annotated is None
    assert results == {}
    assert detector.pipeline.conversion_failures == 1


def test_close_releases_engine(engine):
    p = EmotionDetectorPlugin()
    p.init({})
    p.close()
    p.close()
    assert engine.close_calls == 1
    annotated, results = p.process(frame_from_bgr(_bgr()), 0.0)
    assert annotated is None
    assert results["metadata"]["error"] == "not initialized"


def test_settings_widget_round_trip(qt_app):
    from ui.main_window import get_settings_from_widget

    widget = EmotionDetectorPlugin.build_settings_widget(None)
    settings = get_settings_from_widget(widget)
    assert set(settings) == set(EmotionDetectorPlugin.default_settings())
    assert settings["threshold_profile"] == "standard"
    assert settings["min_tracking_confidence"] == pytest.approx(0.5)


@pytest.fixture
def qt_app():
    from PySide6.QtWidgets import QApplication

    return QApplication.instance() or QApplication([])


def test_unavailable_detector_still_previews(monkeypatch):
    from core.models import AnalysisState, FaceAnalysis

    def start(self, model_path=None, **engine_options):
        self._publish(FaceAnalysis.failed("model missing", AnalysisState.UNAVAILABLE))
        return False

    monkeypatch.setattr(FaceAnalysisPipeline, "start", start)
    p = EmotionDetectorPlugin()
    p.init({})
    preview, results = p.process(frame_from_bgr(_bgr()), 0.0)
    assert preview.shape == (48, 64, 3)
    meta = results["metadata"]
    assert meta["state"] == "unavailable"
    assert meta["detector_available"] is False
    assert meta["hud"]["title"] == "Detector unavailable"
    assert meta["frames_accepted"] == 0
    p.close()
