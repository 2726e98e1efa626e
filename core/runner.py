"""
Frame processor runner: reads frames on a worker thread, runs the active
plugin, and hands annotated frames and results to the UI thread via signals.
The plugin never blocks on inference, so this loop runs at camera rate.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, QThread, Signal

from core.capture import VideoCaptureSource
from core.errors import FrameConversionError
from core.frames import convert_frame, to_bgr
from core.metrics import FrameRateMeter

if TYPE_CHECKING:
    from plugins.base import FrameAnalysisPlugin

logger = logging.getLogger(__name__)


class FrameProcessorRunner(QObject):
    """Worker that grabs frames, runs the active plugin, and emits results."""

    # Emit (annotated_frame_bgr, results_dict, fps, latency_ms, rolling_avg_ms)
    frame_processed = Signal(object, object, float, float, float)
    # Emit error message
    error_occurred = Signal(str)
    # Emit when stopped (end of stream or plugin failure)
    stopped = Signal()

    def __init__(
        self,
        capture: VideoCaptureSource,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._capture = capture
        self._plugin: FrameAnalysisPlugin | None = None
        self._running = False
        self._thread: QThread | None = None
        self._meter = FrameRateMeter()

    def set_plugin(self, plugin: FrameAnalysisPlugin | None) -> None:
        self._plugin = plugin

    def start(self) -> None:
        """Start processing in a background thread."""
        if self._running:
            return
        self._running = True
        self._thread = QThread()
        self.moveToThread(self._thread)
        self._thread.started.connect(self._run_loop)
        self._thread.start()

    def stop(self) -> None:
        """Request stop; run loop will exit and thread will finish."""
        self._running = False

    def _run_loop(self) -> None:
        """Runs in worker thread: read frame -> plugin -> emit."""
        self._meter.reset()
        while self._running and self._capture.is_opened():
            frame = self._capture.read_frame()
            if frame is None:
                logger.info("End of stream")
                break
            timestamp_s = time.perf_counter()
            if self._plugin is None:
                try:
                    preview = to_bgr(convert_frame(frame))
                except FrameConversionError as e:
                    logger.debug("Dropping frame: %s", e)
                    continue
                self.frame_processed.emit(preview, {}, 0.0, 0.0, 0.0)
                continue
            try:
                annotated, results = self._plugin.process(frame, timestamp_s)
            except Exception as e:  # noqa: BLE001
                logger.exception("Plugin %s failed", self._plugin.plugin_id)
                self.error_occurred.emit(str(e))
                self._running = False
                self.stopped.emit()
                return
            if annotated is None:
                continue
            fps, latency_ms = self._meter.tick()
            rolling_ms = self._meter.rolling_average_ms
            self.frame_processed.emit(annotated, results, fps, latency_ms, rolling_ms)
        self.stopped.emit()

    def finish_thread(self) -> None:
        """Call after stopped signal: quit and wait for thread."""
        if self._thread is not None and self._thread.isRunning():
            self._thread.quit()
            self._thread.wait(2000)
        self._thread = None
