"""
Ensures the MediaPipe face landmarker .task model exists; downloads from Google storage if missing.
"""

from __future__ import annotations

import logging
import os
import urllib.error
import urllib.request
from pathlib import Path

from core.errors import EngineLoadError

logger = logging.getLogger(__name__)

FACE_LANDMARKER_MODEL = "face_landmarker.task"

# Official MediaPipe model URLs (Google storage)
_MODEL_URLS = {
    FACE_LANDMARKER_MODEL: "https://storage.googleapis.com/mediapipe-models/face_landmarker/face_landmarker/float16/latest/face_landmarker.task",
}


def models_dir() -> Path:
    """Model cache directory: $EMOTION_DETECTOR_MODELS_DIR or models/ next to the project root."""
    override = os.environ.get("EMOTION_DETECTOR_MODELS_DIR")
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "models"


def get_model_path(filename: str = FACE_LANDMARKER_MODEL, download: bool = True) -> Path:
    """Return path to the model file; download if not present."""
    directory = models_dir()
    path = directory / filename
    if path.is_file():
        return path
    url = _MODEL_URLS.get(filename)
    if not url:
        raise EngineLoadError(f"Unknown model: {filename}. Known: {list(_MODEL_URLS)}")
    if not download:
        raise EngineLoadError(f"Model not found: {path}")
    logger.info("Downloading %s to %s", filename, path)
    partial = path.with_suffix(path.suffix + ".part")
    try:
        directory.mkdir(parents=True, exist_ok=True)
        urllib.request.urlretrieve(url, partial)
        partial.replace(path)
    except (urllib.error.URLError, OSError) as e:
        if partial.is_file():
            partial.unlink()
        raise EngineLoadError(f"Could not download {filename}: {e}") from e
    return path
