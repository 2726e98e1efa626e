"""
Emotion Detector: entry point.
Run: python main.py [--log-level DEBUG]
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

# Reduce TensorFlow/MediaPipe console noise (INFO and WARNING)
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

from PySide6.QtWidgets import QApplication
from ui.main_window import MainWindow


def main() -> None:
    parser = argparse.ArgumentParser(description="Real-time face emotion and head pose detector")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING or ERROR")
    args, qt_args = parser.parse_known_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    app = QApplication([sys.argv[0], *qt_args])
    window = MainWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
