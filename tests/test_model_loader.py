"""Model cache lookup and download errors."""

from __future__ import annotations

import urllib.error
import urllib.request

import pytest

from core.errors import EngineLoadError
from core.model_loader import FACE_LANDMARKER_MODEL, get_model_path, models_dir


@pytest.fixture
def cache_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("EMOTION_DETECTOR_MODELS_DIR", str(tmp_path))
    return tmp_path


def test_models_dir_honours_environment(cache_dir):
    assert models_dir() == cache_dir


def test_existing_model_is_returned_without_download(cache_dir, monkeypatch):
    (cache_dir / FACE_LANDMARKER_MODEL).write_bytes(b"model")

    def no_network(*args, **kwargs):
        raise AssertionError("should not download")

    monkeypatch.setattr(urllib.request, "urlretrieve", no_network)
    assert get_model_path() == cache_dir / FACE_LANDMARKER_MODEL


def test_unknown_model(cache_dir):
    with pytest.raises(EngineLoadError, match="Unknown model"):
        get_model_path("nope.task")


def test_missing_model_without_download(cache_dir):
    with pytest.raises(EngineLoadError, match="not found"):
        get_model_path(download=False)


def test_download_failure_leaves_no_partial_file(cache_dir, monkeypatch):
    def offline(url, filename):
        with open(filename, "wb") as f:
            f.write(b"half")
        raise urllib.error.URLError("offline")

    monkeypatch.setattr(urllib.request, "urlretrieve", offline)
    with pytest.raises(EngineLoadError, match="Could not download"):
        get_model_path()
    assert list(cache_dir.iterdir()) == []


def test_download_lands_atomically(cache_dir, monkeypatch):
    def fetch(url, filename):
        with open(filename, "wb") as f:
            f.write(b"weights")

    monkeypatch.setattr(urllib.request, "urlretrieve", fetch)
    path = get_model_path()
    assert path.read_bytes() == b"weights"
    assert [p.name for p in cache_dir.iterdir()] == [FACE_LANDMARKER_MODEL]


def test_models_dir_under_a_file_is_a_load_error(tmp_path, monkeypatch):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    monkeypatch.setenv("EMOTION_DETECTOR_MODELS_DIR", str(blocker / "models"))
    monkeypatch.setattr(
        urllib.request, "urlretrieve", lambda url, filename: pytest.fail("should not download")
    )
    with pytest.raises(EngineLoadError, match="Could not download"):
        get_model_path()


def test_pipeline_degrades_when_models_dir_is_unusable(tmp_path, monkeypatch):
    pytest.importorskip("mediapipe")
    from core.models import AnalysisState
    from core.pipeline import FaceAnalysisPipeline

    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    monkeypatch.setenv("EMOTION_DETECTOR_MODELS_DIR", str(blocker / "models"))
    pipeline = FaceAnalysisPipeline()
    assert pipeline.start() is False
    assert pipeline.poll().state is AnalysisState.UNAVAILABLE
