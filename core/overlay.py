"""
Face mesh overlay: projects normalized landmarks into view pixels (center-crop
fit, mirrored for a front camera preview) and draws dots, contours and the HUD
with OpenCV.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Sequence

import cv2
import numpy as np

from core.models import AnalysisState, FaceAnalysis, LandmarkSet

# MediaPipe 468-landmark contours, flat [start, end, start, end, ...]
FACE_OVAL = (
    10, 338, 338, 297, 297, 332, 332, 284, 284, 251, 251, 389, 389, 356, 356, 454,
    454, 323, 323, 361, 361, 288, 288, 397, 397, 365, 365, 379, 379, 378, 378, 400,
    400, 377, 377, 152, 152, 148, 148, 176, 176, 149, 149, 150, 150, 136, 136, 172,
    172, 58, 58, 132, 132, 93, 93, 234, 234, 127, 127, 162, 162, 21, 21, 54,
    54, 103, 103, 67, 67, 109, 109, 10,
)
LEFT_EYE = (
    263, 249, 249, 390, 390, 373, 373, 374, 374, 380, 380, 381, 381, 382, 382, 362,
    263, 466, 466, 388, 388, 387, 387, 386, 386, 385, 385, 384, 384, 398, 398, 362,
)
RIGHT_EYE = (
    33, 7, 7, 163, 163, 144, 144, 145, 145, 153, 153, 154, 154, 155, 155, 133,
    33, 246, 246, 161, 161, 160, 160, 159, 159, 158, 158, 157, 157, 173, 173, 133,
)
LIPS_OUTER = (
    61, 146, 146, 91, 91, 181, 181, 84, 84, 17, 17, 314, 314, 405, 405, 321,
    321, 375, 375, 291, 61, 185, 185, 40, 40, 39, 39, 37, 37, 0, 0, 267,
    267, 269, 269, 270, 270, 409, 409, 291,
)
LIPS_INNER = (
    78, 95, 95, 88, 88, 178, 178, 87, 87, 14, 14, 317, 317, 402, 402, 318,
    318, 324, 324, 308, 78, 191, 191, 80, 80, 81, 81, 82, 82, 13, 13, 312,
    312, 311, 311, 310, 310, 415, 415, 308,
)
LEFT_EYEBROW = (
    276, 283, 283, 282, 282, 295, 295, 285, 300, 293, 293, 334, 334, 296, 296, 336,
)
RIGHT_EYEBROW = (
    46, 53, 53, 52, 52, 65, 65, 55, 70, 63, 63, 105, 105, 66, 66, 107,
)


@dataclass(frozen=True)
class ContourStyle:
    color_bgr: tuple[int, int, int]
    thickness: int


COLOR_CYAN = (255, 229, 0)
COLOR_CORAL = (80, 127, 255)
COLOR_GOLD = (0, 200, 255)
COLOR_FACE = (200, 200, 200)

FACE_STYLE = ContourStyle(COLOR_FACE, 1)
EYES_STYLE = ContourStyle(COLOR_CYAN, 2)
LIPS_STYLE = ContourStyle(COLOR_CORAL, 2)
BROWS_STYLE = ContourStyle(COLOR_GOLD, 2)
DOT_STYLE = ContourStyle(COLOR_CYAN, 1)

# Drawn in this order, later groups on top
CONTOUR_GROUPS: dict[str, tuple[tuple[int, ...], ContourStyle]] = {
    "face_oval": (FACE_OVAL, FACE_STYLE),
    "left_eye": (LEFT_EYE, EYES_STYLE),
    "right_eye": (RIGHT_EYE, EYES_STYLE),
    "lips_outer": (LIPS_OUTER, LIPS_STYLE),
    "lips_inner": (LIPS_INNER, LIPS_STYLE),
    "left_eyebrow": (LEFT_EYEBROW, BROWS_STYLE),
    "right_eyebrow": (RIGHT_EYEBROW, BROWS_STYLE),
}

DOT_STEP = 3


def segments(flat: Sequence[int]) -> list[tuple[int, int]]:
    """[a, b, c, d] -> [(a, b), (c, d)]; a trailing odd index is ignored."""
    return [(flat[i], flat[i + 1]) for i in range(0, len(flat) - 1, 2)]


def sparse_indices(count: int, step: int = DOT_STEP) -> range:
    return range(0, count, step)


def fit_transform(
    image_width: int, image_height: int, view_width: int, view_height: int
) -> tuple[float, float, float]:
    """(scale, offset_x, offset_y) that center-crops the image onto the view."""
    image_width = max(image_width, 1)
    image_height = max(image_height, 1)
    scale = max(view_width / image_width, view_height / image_height)
    offset_x = (view_width - image_width * scale) / 2.0
    offset_y = (view_height - image_height * scale) / 2.0
    return scale, offset_x, offset_y


def project(
    landmarks: LandmarkSet,
    image_width: int,
    image_height: int,
    view_width: int,
    view_height: int,
) -> np.ndarray:
    """Return an (N, 2) float array of view coordinates, x mirrored."""
    if not landmarks:
        return np.zeros((0, 2), dtype=np.float32)
    scale, offset_x, offset_y = fit_transform(image_width, image_height, view_width, view_height)
    norm = np.array([(lm.x, lm.y) for lm in landmarks], dtype=np.float32)
    points = np.empty_like(norm)
    points[:, 0] = (1.0 - norm[:, 0]) * image_width * scale + offset_x
    points[:, 1] = norm[:, 1] * image_height * scale + offset_y
    return points


def center_crop(image: np.ndarray, view_width: int, view_height: int) -> np.ndarray:
    """Scale image to cover (view_width, view_height) and crop the overflow."""
    h, w = image.shape[:2]
    if (w, h) == (view_width, view_height):
        return image
    scale, _, _ = fit_transform(w, h, view_width, view_height)
    scaled_w = max(view_width, int(round(w * scale)))
    scaled_h = max(view_height, int(round(h * scale)))
    resized = cv2.resize(image, (scaled_w, scaled_h), interpolation=cv2.INTER_LINEAR)
    x0 = (scaled_w - view_width) // 2
    y0 = (scaled_h - view_height) // 2
    return np.ascontiguousarray(resized[y0:y0 + view_height, x0:x0 + view_width])


def draw_mesh(canvas: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Draw sparse landmark dots and every contour group onto canvas in place."""
    count = len(points)
    if count == 0:
        return canvas
    pts = np.rint(points).astype(np.int32)
    for i in sparse_indices(count):
        cv2.circle(canvas, (int(pts[i, 0]), int(pts[i, 1])), 1, DOT_STYLE.color_bgr, -1, cv2.LINE_AA)
    for flat, style in CONTOUR_GROUPS.values():
        for start, end in segments(flat):
            if start >= count or end >= count:
                continue
            cv2.line(
                canvas,
                (int(pts[start, 0]), int(pts[start, 1])),
                (int(pts[end, 0]), int(pts[end, 1])),
                style.color_bgr,
                style.thickness,
                cv2.LINE_AA,
            )
    return canvas


class HudText(NamedTuple):
    emoji: str
    title: str
    detail: str
    progress: int
    yaw: str
    pitch: str
    roll: str


def hud_text(analysis: FaceAnalysis) -> HudText:
    yaw, pitch, roll = analysis.pose.hud_text()
    if analysis.state is AnalysisState.DETECTED and analysis.verdict is not None:
        verdict = analysis.verdict
        return HudText(
            verdict.label.emoji,
            verdict.label.label,
            f"Confidence: {verdict.percent}%",
            verdict.percent,
            yaw,
            pitch,
            roll,
        )
    if analysis.state is AnalysisState.SEARCHING:
        return HudText("\U0001F50D", "Searching...", "No Face Detected", 0, yaw, pitch, roll)
    if analysis.state is AnalysisState.UNAVAILABLE:
        return HudText("⚠", "Detector unavailable", analysis.error or "", 0, yaw, pitch, roll)
    return HudText("⚠", "Detector error", analysis.error or "", 0, yaw, pitch, roll)


def _ascii(text: str) -> str:
    # Hershey fonts only cover ASCII
    return text.replace("°", "").replace("—", "-").encode("ascii", "ignore").decode("ascii")


def draw_hud(canvas: np.ndarray, analysis: FaceAnalysis) -> np.ndarray:
    """Bottom-left text block: emotion, confidence bar and pose angles."""
    hud = hud_text(analysis)
    h, w = canvas.shape[:2]
    font = cv2.FONT_HERSHEY_SIMPLEX
    lines = [hud.title, hud.detail, f"{hud.yaw}  {hud.pitch}  {hud.roll}"]
    line_h = 24
    top = max(h - line_h * len(lines) - 24, 0)
    cv2.rectangle(canvas, (0, top), (w, h), (30, 30, 30), -1)
    for i, line in enumerate(lines):
        y = top + line_h * (i + 1)
        cv2.putText(canvas, _ascii(line), (10, y), font, 0.6, (255, 255, 255), 1, cv2.LINE_AA)
    bar_w = int((w - 20) * hud.progress / 100)
    cv2.rectangle(canvas, (10, h - 14), (10 + bar_w, h - 8), COLOR_CYAN, -1)
    return canvas
