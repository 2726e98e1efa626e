"""
Right-side panels: Emotion HUD, Results (JSON), Logs, Performance.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QPlainTextEdit,
    QProgressBar,
    QVBoxLayout,
    QWidget,
)

from core.metrics import drop_ratio


def _pretty_json(obj: Any) -> str:
    """Pretty-print dict/list for display."""
    try:
        return json.dumps(obj, indent=2, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(obj)


def summarize_results(results: dict[str, Any]) -> dict[str, Any]:
    """Results with landmark arrays collapsed to counts, for display."""
    summary = dict(results)
    landmarks = summary.get("landmarks")
    if landmarks:
        summary["landmarks"] = [f"{len(face)} points" for face in landmarks]
    return summary


class EmotionPanel(QWidget):
    """Emoji, emotion label, confidence bar and Y/P/R pose readout."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        self._emoji = QLabel("\U0001F50D")
        self._emoji.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._emoji.setStyleSheet("font-size: 48px;")
        self._label = QLabel("Searching...")
        self._label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._label.setStyleSheet("font-size: 20px; font-weight: bold;")
        self._detail = QLabel("No Face Detected")
        self._detail.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._confidence = QProgressBar()
        self._confidence.setRange(0, 100)
        self._confidence.setTextVisible(False)
        pose_row = QHBoxLayout()
        self._yaw = QLabel("Y: —")
        self._pitch = QLabel("P: —")
        self._roll = QLabel("R: —")
        for w in (self._yaw, self._pitch, self._roll):
            pose_row.addWidget(w)
        for w in (self._emoji, self._label, self._detail, self._confidence):
            layout.addWidget(w)
        layout.addLayout(pose_row)
        layout.addStretch()

    def update_results(self, results: dict[str, Any] | None) -> None:
        hud = (results or {}).get("metadata", {}).get("hud")
        if not hud:
            self.reset()
            return
        self._emoji.setText(hud["emoji"])
        self._label.setText(hud["title"])
        self._detail.setText(hud["detail"])
        self._confidence.setValue(int(hud["progress"]))
        self._yaw.setText(hud["yaw"])
        self._pitch.setText(hud["pitch"])
        self._roll.setText(hud["roll"])

    def reset(self) -> None:
        self._emoji.setText("\U0001F50D")
        self._label.setText("Searching...")
        self._detail.setText("No Face Detected")
        self._confidence.setValue(0)
        for w, axis in ((self._yaw, "Y"), (self._pitch, "P"), (self._roll, "R")):
            w.setText(f"{axis}: —")


class ResultsPanel(QWidget):
    """Shows structured results as pretty-printed JSON, updated in real time."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self._text = QPlainTextEdit(self)
        self._text.setReadOnly(True)
        self._text.setPlaceholderText("Results will appear here when the detector is running.")
        layout.addWidget(self._text, stretch=1)

    def update_results(self, results: dict[str, Any] | None) -> None:
        if results is None:
            self._text.setPlainText("")
            return
        self._text.setPlainText(_pretty_json(summarize_results(results)))


class LogsPanel(QWidget):
    """Shows application log messages and errors."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        self._text = QPlainTextEdit(self)
        self._text.setReadOnly(True)
        self._text.setMaximumBlockCount(2000)
        layout.addWidget(self._text)

    def append(self, message: str) -> None:
        self._text.appendPlainText(message)
        # Auto-scroll to bottom
        scrollbar = self._text.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    def clear(self) -> None:
        self._text.clear()


class _LogBridge(QObject):
    message = Signal(str)


class QtLogHandler(logging.Handler):
    """
    Forwards log records to a LogsPanel. Records may come from any thread
    (MediaPipe callbacks, the runner); the signal queues them onto the UI thread.
    """

    def __init__(self, panel: LogsPanel, level: int = logging.INFO) -> None:
        super().__init__(level)
        self._bridge = _LogBridge()
        self._bridge.message.connect(panel.append)
        self.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", "%H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._bridge.message.emit(self.format(record))
        except RuntimeError:
            # Bridge already deleted during shutdown
            self.handleError(record)


class PerformancePanel(QWidget):
    """Shows FPS, per-frame latency (ms), rolling average and dropped frames."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        self._fps_label = QLabel("FPS: —")
        self._latency_label = QLabel("Latency (ms): —")
        self._rolling_label = QLabel("Rolling avg (ms): —")
        self._dropped_label = QLabel("Dropped frames: —")
        for w in (self._fps_label, self._latency_label, self._rolling_label, self._dropped_label):
            layout.addWidget(w)
        layout.addStretch()

    def update_metrics(self, fps: float, latency_ms: float, rolling_avg_ms: float) -> None:
        self._fps_label.setText(f"FPS: {fps:.1f}")
        self._latency_label.setText(f"Latency (ms): {latency_ms:.1f}")
        self._rolling_label.setText(f"Rolling avg (ms): {rolling_avg_ms:.1f}")

    def update_drops(self, accepted: int, dropped: int) -> None:
        ratio = drop_ratio(accepted, dropped)
        self._dropped_label.setText(f"Dropped frames: {dropped} ({ratio:.0%})")

    def reset(self) -> None:
        self._fps_label.setText("FPS: —")
        self._latency_label.setText("Latency (ms): —")
        self._rolling_label.setText("Rolling avg (ms): —")
        self._dropped_label.setText("Dropped frames: —")
