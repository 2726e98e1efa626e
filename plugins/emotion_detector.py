"""
Emotion detector plugin: face landmarks + blendshapes via MediaPipe Tasks
(FaceLandmarker, LIVE_STREAM), emotion and head pose HUD, face mesh overlay.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

import cv2
import numpy as np

from core.emotion import THRESHOLD_PROFILES, thresholds_for
from core.frames import to_bgr
from core.models import AnalysisState, FaceAnalysis, Frame, unified_results_schema
from core.overlay import center_crop, draw_hud, draw_mesh, hud_text, project
from core.pipeline import FaceAnalysisPipeline
from plugins.base import FrameAnalysisPlugin

from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QFormLayout,
    QSpinBox,
    QWidget,
)

logger = logging.getLogger(__name__)


class EmotionDetectorPlugin(FrameAnalysisPlugin):
    plugin_id = "emotion_detector"
    display_name = "Emotion Detector"

    def __init__(self) -> None:
        self._pipeline: FaceAnalysisPipeline | None = None
        self._latest = FaceAnalysis.searching(0, (1, 1))
        self._show_overlay = True
        self._mirror = True
        self._view_size = (0, 0)
        self._rotation = 0

    @staticmethod
    def default_settings() -> dict[str, Any]:
        return {
            "rotation_degrees": 0,
            "threshold_profile": "standard",
            "stall_timeout_ms": 0,
            "show_overlay": True,
            "mirror_preview": True,
            "view_width": 0,
            "view_height": 0,
            "min_face_detection_confidence": 0.5,
            "min_face_presence_confidence": 0.5,
            "min_tracking_confidence": 0.5,
        }

    @staticmethod
    def build_settings_widget(parent: QWidget | None) -> QWidget:
        widget = QWidget(parent)
        layout = QFormLayout(widget)
        rotation = QComboBox()
        rotation.addItems(["0", "90", "180", "270"])
        rotation.setObjectName("rotation_degrees")
        layout.addRow("Rotation (deg):", rotation)
        profile = QComboBox()
        profile.addItems(list(THRESHOLD_PROFILES))
        profile.setObjectName("threshold_profile")
        profile.setToolTip("standard: blink > 0.5, surprise > 0.3; strict: blink > 0.6, surprise > 0.4")
        layout.addRow("Thresholds:", profile)
        stall = QSpinBox()
        stall.setRange(0, 10000)
        stall.setSingleStep(100)
        stall.setValue(0)
        stall.setSpecialValueText("off")
        stall.setObjectName("stall_timeout_ms")
        layout.addRow("Stall timeout (ms):", stall)
        overlay = QCheckBox("Show face mesh")
        overlay.setChecked(True)
        overlay.setObjectName("show_overlay")
        layout.addRow(overlay)
        mirror = QCheckBox("Mirror preview")
        mirror.setChecked(True)
        mirror.setObjectName("mirror_preview")
        layout.addRow(mirror)
        for name, label in (("view_width", "View width:"), ("view_height", "View height:")):
            box = QSpinBox()
            box.setRange(0, 4096)
            box.setValue(0)
            box.setSpecialValueText("frame")
            box.setObjectName(name)
            layout.addRow(label, box)
        for name, label in (
            ("min_face_detection_confidence", "Min face detection confidence:"),
            ("min_face_presence_confidence", "Min face presence confidence:"),
            ("min_tracking_confidence", "Min tracking confidence:"),
        ):
            box = QDoubleSpinBox()
            box.setRange(0.0, 1.0)
            box.setSingleStep(0.05)
            box.setValue(0.5)
            box.setObjectName(name)
            layout.addRow(label, box)
        return widget

    def init(self, settings: dict[str, Any]) -> None:
        self.close()
        merged = {**self.default_settings(), **settings}
        self._rotation = int(merged["rotation_degrees"])
        self._show_overlay = bool(merged["show_overlay"])
        self._mirror = bool(merged["mirror_preview"])
        self._view_size = (int(merged["view_width"]), int(merged["view_height"]))
        pipeline = FaceAnalysisPipeline(
            thresholds=thresholds_for(str(merged["threshold_profile"])),
            stall_timeout_ms=int(merged["stall_timeout_ms"]) or None,
        )
        if pipeline.start(
            min_face_detection_confidence=float(merged["min_face_detection_confidence"]),
            min_face_presence_confidence=float(merged["min_face_presence_confidence"]),
            min_tracking_confidence=float(merged["min_tracking_confidence"]),
        ):
            logger.info(
                "Emotion detector ready (thresholds: %s, rotation: %d)",
                merged["threshold_profile"],
                self._rotation,
            )
        self._pipeline = pipeline
        self._latest = pipeline.poll() or FaceAnalysis.searching(0, (1, 1))

    @property
    def pipeline(self) -> FaceAnalysisPipeline | None:
        return self._pipeline

    @property
    def latest(self) -> FaceAnalysis:
        return self._latest

    def process(
        self, frame: Frame, timestamp_s: float
    ) -> tuple[np.ndarray | None, dict[str, Any]]:
        pipeline = self._pipeline
        if pipeline is None:
            return None, unified_results_schema(
                self.plugin_id, timestamp_s, metadata={"error": "not initialized"}
            )
        if self._rotation and frame.rotation_degrees == 0:
            frame = replace(frame, rotation_degrees=self._rotation)
        image, _ = pipeline.submit_frame(frame)
        if image is None:
            return None, {}
        analysis = pipeline.poll()
        if analysis is not None:
            self._latest = analysis
        latest = self._latest

        preview = to_bgr(image)
        if self._mirror:
            preview = cv2.flip(preview, 1)
        view_w, view_h = self._view_size
        if view_w <= 0 or view_h <= 0:
            view_w, view_h = image.width, image.height
        preview = center_crop(preview, view_w, view_h)

        landmarks_list: list[list[dict[str, float]]] = []
        if latest.state is AnalysisState.DETECTED:
            if self._show_overlay:
                points = project(latest.landmarks, *latest.image_size, view_w, view_h)
                if not self._mirror:
                    points[:, 0] = view_w - points[:, 0]
                draw_mesh(preview, points)
            landmarks_list.append(
                [{"x": lm.x, "y": lm.y, "z": lm.z} for lm in latest.landmarks]
            )
        draw_hud(preview, latest)

        gateway = pipeline.gateway
        metadata = latest.to_metadata()
        metadata.update(
            hud=hud_text(latest)._asdict(),
            frames_accepted=gateway.accepted,
            frames_dropped=gateway.dropped,
            conversion_failures=pipeline.conversion_failures,
            detector_available=pipeline.available,
            image_size=list(image.size),
        )
        results = unified_results_schema(
            self.plugin_id,
            timestamp_s,
            detections=[],
            landmarks=landmarks_list,
            metadata=metadata,
        )
        return preview, results

    def close(self) -> None:
        pipeline, self._pipeline = self._pipeline, None
        if pipeline is not None:
            pipeline.close()


plugin = EmotionDetectorPlugin()
