"""
Main window: left sidebar (source, detector settings, start/stop), center
preview, right tabs (Emotion, Results, Logs, Performance).
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
from PySide6.QtCore import Qt, QObject, QThread, Signal, Slot
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QScrollArea,
    QSpinBox,
    QStackedWidget,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from core.capture import VideoCaptureSource, list_cameras
from core.runner import FrameProcessorRunner
from plugins import discover_plugins
from plugins.base import FrameAnalysisPlugin
from ui.panels import EmotionPanel, LogsPanel, PerformancePanel, QtLogHandler, ResultsPanel

logger = logging.getLogger(__name__)


class PluginInitWorker(QObject):
    """Runs plugin.init(settings) in a background thread (model download/load can take seconds)."""

    init_done = Signal(bool, str, object)  # success, error_message, plugin

    def __init__(self, plugin: FrameAnalysisPlugin, settings: dict[str, Any]) -> None:
        super().__init__()
        self._plugin = plugin
        self._settings = settings

    def run(self) -> None:
        try:
            self._plugin.init(self._settings)
        except Exception as e:  # noqa: BLE001
            logger.exception("Plugin init failed")
            self.init_done.emit(False, str(e), self._plugin)
            return
        self.init_done.emit(True, "", self._plugin)


def get_settings_from_widget(widget: QWidget) -> dict[str, Any]:
    """Collect settings from a plugin's settings widget, keyed by child objectName."""
    out: dict[str, Any] = {}
    for spin in widget.findChildren(QSpinBox):
        if spin.objectName():
            out[spin.objectName()] = int(spin.value())
    for dspin in widget.findChildren(QDoubleSpinBox):
        if dspin.objectName():
            out[dspin.objectName()] = float(dspin.value())
    for check in widget.findChildren(QCheckBox):
        if check.objectName():
            out[check.objectName()] = check.isChecked()
    for combo in widget.findChildren(QComboBox):
        if combo.objectName():
            out[combo.objectName()] = combo.currentText()
    return out


class MainWindow(QWidget):
    """Main application window with sidebar, preview, and right panels."""

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Emotion Detector")
        self._capture = VideoCaptureSource()
        self._runner: FrameProcessorRunner | None = None
        self._plugins: list[FrameAnalysisPlugin] = []
        self._current_plugin: FrameAnalysisPlugin | None = None
        self._active_plugin: FrameAnalysisPlugin | None = None
        self._init_thread: QThread | None = None
        self._init_worker: PluginInitWorker | None = None

        layout = QHBoxLayout(self)
        # --- Left sidebar ---
        sidebar = QWidget()
        sidebar_layout = QVBoxLayout(sidebar)
        sidebar_layout.addWidget(QLabel("Input"))
        input_hint = QLabel("Select a camera by name, or open a video file.")
        input_hint.setWordWrap(True)
        input_hint.setStyleSheet("color: #666; font-size: 11px;")
        sidebar_layout.addWidget(input_hint)
        self._camera_combo = QComboBox()
        self._camera_combo.setToolTip("Camera to use; the front camera gives the mirrored preview.")
        sidebar_layout.addWidget(self._camera_combo)
        refresh_cam_btn = QPushButton("Refresh cameras")
        refresh_cam_btn.clicked.connect(self._refresh_cameras)
        sidebar_layout.addWidget(refresh_cam_btn)
        self._open_video_btn = QPushButton("Open Video")
        self._open_video_btn.setToolTip("Use a video file instead of the camera.")
        self._open_video_btn.clicked.connect(self._on_open_video)
        sidebar_layout.addWidget(self._open_video_btn)
        sidebar_layout.addWidget(QLabel("Pipeline"))
        self._pipeline_combo = QComboBox()
        self._pipeline_combo.currentIndexChanged.connect(self._on_pipeline_changed)
        sidebar_layout.addWidget(self._pipeline_combo)
        self._settings_stack = QStackedWidget()
        self._settings_placeholder = QLabel("Camera preview only, no settings.")
        self._settings_stack.addWidget(self._settings_placeholder)
        settings_group = QGroupBox("Settings")
        settings_scroll = QScrollArea()
        settings_scroll.setWidgetResizable(True)
        settings_scroll.setWidget(self._settings_stack)
        settings_inner = QVBoxLayout()
        settings_inner.addWidget(settings_scroll)
        settings_group.setLayout(settings_inner)
        sidebar_layout.addWidget(settings_group)
        self._start_stop_btn = QPushButton("Start")
        self._start_stop_btn.clicked.connect(self._on_start_stop)
        sidebar_layout.addWidget(self._start_stop_btn)
        sidebar_layout.addStretch()
        layout.addWidget(sidebar)

        # --- Center: preview ---
        self._video_label = QLabel()
        self._video_label.setMinimumSize(480, 640)
        self._video_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._video_label.setStyleSheet("background-color: #1e1e1e; color: #888;")
        self._video_label.setText("No video")
        layout.addWidget(self._video_label, stretch=1)

        # --- Right: tabs ---
        tabs = QTabWidget()
        self._emotion_panel = EmotionPanel()
        tabs.addTab(self._emotion_panel, "Emotion")
        self._results_panel = ResultsPanel()
        tabs.addTab(self._results_panel, "Results")
        self._logs_panel = LogsPanel()
        tabs.addTab(self._logs_panel, "Logs")
        self._performance_panel = PerformancePanel()
        tabs.addTab(self._performance_panel, "Performance")
        layout.addWidget(tabs)

        self._log_handler = QtLogHandler(self._logs_panel)
        logging.getLogger().addHandler(self._log_handler)

        self._refresh_cameras()
        self._load_plugins()
        logger.info("Application started. Select input, then Start.")
        self.resize(1200, 760)

    def _refresh_cameras(self) -> None:
        cameras = list_cameras()
        self._camera_combo.clear()
        for index, name in cameras:
            self._camera_combo.addItem(name, index)
        if not cameras:
            self._camera_combo.addItem("No cameras found", 0)
            logger.warning("No cameras detected. Connect a camera and click Refresh cameras.")

    def _load_plugins(self) -> None:
        self._plugins = discover_plugins()
        self._pipeline_combo.clear()
        self._pipeline_combo.addItem("Camera only (no detector)", None)
        for p in self._plugins:
            self._pipeline_combo.addItem(p.display_name, p)
            self._settings_stack.addWidget(p.build_settings_widget(self._settings_stack))
        # Detector selected by default
        self._pipeline_combo.setCurrentIndex(1 if self._plugins else 0)
        self._on_pipeline_changed(self._pipeline_combo.currentIndex())

    def _on_pipeline_changed(self, index: int) -> None:
        if index < 0:
            return
        # index 1..n = plugins 0..n-1
        self._current_plugin = self._plugins[index - 1] if index > 0 else None
        self._settings_stack.setCurrentIndex(index)

    def _on_open_video(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Video", "", "Video (*.mp4 *.avi *.mov *.mkv);;All (*)"
        )
        if not path:
            return
        if self._capture.open_file(path):
            logger.info("Opened video: %s", path)
        else:
            logger.error("Failed to open video: %s", path)

    def _on_start_stop(self) -> None:
        if self._runner is not None:
            self._stop_processing()
            return
        if not self._capture.is_opened():
            cam_index = self._camera_combo.currentData()
            if cam_index is None:
                cam_index = 0
            cam_name = self._camera_combo.currentText()
            if not self._capture.open_camera(cam_index):
                logger.error("Failed to open camera: %r (index %d).", cam_name, cam_index)
                return
            logger.info("Opened camera: %s (index %d).", cam_name, cam_index)
        plugin = self._current_plugin
        if plugin is None:
            self._start_runner(None)
            return
        settings_widget = self._settings_stack.currentWidget()
        settings = {**plugin.default_settings(), **get_settings_from_widget(settings_widget)}
        self._start_stop_btn.setEnabled(False)
        self._start_stop_btn.setText("Loading...")
        logger.info("Loading face landmarker (first run downloads the model)...")
        self._init_worker = PluginInitWorker(plugin, settings)
        self._init_thread = QThread()
        self._init_worker.moveToThread(self._init_thread)
        self._init_thread.started.connect(self._init_worker.run)
        self._init_worker.init_done.connect(self._on_plugin_init_done)
        self._init_thread.start()

    def _on_plugin_init_done(
        self, success: bool, error_msg: str, plugin: FrameAnalysisPlugin | None
    ) -> None:
        self._start_stop_btn.setEnabled(True)
        self._start_stop_btn.setText("Start")
        if self._init_thread is not None:
            self._init_thread.quit()
            self._init_thread.wait(2000)
            self._init_thread = None
        self._init_worker = None
        if not success:
            logger.error("Plugin init error: %s", error_msg)
            self._capture.close()
            return
        self._start_runner(plugin)

    def _start_runner(self, plugin: FrameAnalysisPlugin | None) -> None:
        self._active_plugin = plugin
        self._runner = FrameProcessorRunner(self._capture)
        self._runner.set_plugin(plugin)
        self._runner.frame_processed.connect(self._on_frame_processed)
        self._runner.error_occurred.connect(self._on_runner_error)
        self._runner.stopped.connect(self._on_runner_stopped)
        self._runner.start()
        self._start_stop_btn.setText("Stop")
        self._performance_panel.reset()
        self._emotion_panel.reset()
        logger.info("Processing started.")

    def _stop_processing(self) -> None:
        if self._runner is None:
            return
        self._runner.stop()
        self._runner.finish_thread()
        self._runner = None
        self._close_active_plugin()
        self._capture.close()
        self._start_stop_btn.setText("Start")
        self._performance_panel.reset()
        logger.info("Processing stopped.")

    def _close_active_plugin(self) -> None:
        plugin, self._active_plugin = self._active_plugin, None
        if plugin is not None:
            plugin.close()

    @Slot(object, object, float, float, float)
    def _on_frame_processed(
        self,
        annotated_frame: np.ndarray,
        results: dict,
        fps: float,
        latency_ms: float,
        rolling_avg_ms: float,
    ) -> None:
        self._results_panel.update_results(results)
        self._emotion_panel.update_results(results)
        self._performance_panel.update_metrics(fps, latency_ms, rolling_avg_ms)
        metadata = results.get("metadata", {}) if results else {}
        if "frames_dropped" in metadata:
            self._performance_panel.update_drops(
                metadata["frames_accepted"], metadata["frames_dropped"]
            )
        h, w = annotated_frame.shape[:2]
        qimg = QImage(
            annotated_frame.data,
            w,
            h,
            annotated_frame.strides[0],
            QImage.Format.Format_BGR888,
        )
        self._video_label.setPixmap(QPixmap.fromImage(qimg).scaled(
            self._video_label.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        ))

    @Slot(str)
    def _on_runner_error(self, message: str) -> None:
        logger.error("Error: %s", message)
        self._stop_processing()

    @Slot()
    def _on_runner_stopped(self) -> None:
        if self._runner is not None:
            self._runner.finish_thread()
            self._runner = None
        self._close_active_plugin()
        self._capture.close()
        self._start_stop_btn.setText("Start")
        self._performance_panel.reset()

    def closeEvent(self, event) -> None:
        self._stop_processing()
        self._capture.close()
        logging.getLogger().removeHandler(self._log_handler)
        event.accept()
