"""
Base plugin interface for frame analysis pipelines.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import numpy as np
    from PySide6.QtWidgets import QWidget

    from core.models import Frame


class FrameAnalysisPlugin(ABC):
    """Interface for pipeline plugins. Subclass and implement all methods."""

    plugin_id: str = ""
    display_name: str = ""

    @staticmethod
    @abstractmethod
    def default_settings() -> dict[str, Any]:
        """Return default settings dict."""
        ...

    @staticmethod
    @abstractmethod
    def build_settings_widget(parent: QWidget | None) -> QWidget:
        """Build a Qt widget for editing settings; children are named after the settings keys."""
        ...

    @abstractmethod
    def init(self, settings: dict[str, Any]) -> None:
        """Load models and apply settings. Must not raise for a missing model."""
        ...

    @abstractmethod
    def process(
        self, frame: Frame, timestamp_s: float
    ) -> tuple[np.ndarray | None, dict[str, Any]]:
        """
        Process one frame without blocking on inference.
        Return (annotated_frame_bgr, results_dict); the frame is None when the
        input could not be converted and should be skipped.
        results_dict must follow the unified schema:
          pipeline, timestamp_s, detections, landmarks, metadata
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release resources. Safe to call more than once."""
        ...
