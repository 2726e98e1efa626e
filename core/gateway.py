"""
Inference gateway: single-slot admission control in front of the landmark engine.

At most one request is in flight. Frames submitted while the slot is taken are
dropped, never queued, so the model always works on the newest frame it can
take. Timestamps handed to the engine are strictly increasing.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Protocol

from core.models import InferenceResult, UprightImage

logger = logging.getLogger(__name__)


class AsyncEngine(Protocol):
    def submit_async(self, image: UprightImage, timestamp_ms: int) -> None:
        ...


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


ResultListener = Callable[[InferenceResult], None]
ErrorListener = Callable[[str, int], None]


class InferenceGateway:
    """
    Admits one inference request at a time.

    The engine must call on_result or on_error exactly once per accepted
    submission; either one frees the slot before the listener runs.

    stall_timeout_ms: None keeps the slot taken until the engine answers, so a
    hung engine starves every later frame. A positive value force-frees a
    slot that has been taken for longer than that.
    """

    def __init__(
        self,
        engine: AsyncEngine | None = None,
        on_result: ResultListener | None = None,
        on_error: ErrorListener | None = None,
        clock: Callable[[], int] = wall_clock_ms,
        stall_timeout_ms: int | None = None,
    ) -> None:
        self._engine = engine
        self._on_result = on_result
        self._on_error = on_error
        self._clock = clock
        self._stall_timeout_ms = stall_timeout_ms if stall_timeout_ms else None
        self._lock = threading.Lock()
        self._busy = False
        self._busy_since_ms = 0
        self._last_timestamp_ms = 0
        self.accepted = 0
        self.dropped = 0

    def attach(self, engine: AsyncEngine | None) -> None:
        self._engine = engine

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    @property
    def last_timestamp_ms(self) -> int:
        with self._lock:
            return self._last_timestamp_ms

    def _next_timestamp(self) -> int:
        ts = max(int(self._clock()), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = ts
        return ts

    def submit(self, image: UprightImage) -> bool:
        """Dispatch image if the slot is free. Returns False when the frame is dropped."""
        engine = self._engine
        with self._lock:
            if engine is None:
                self.dropped += 1
                return False
            if self._busy and not self._stalled():
                self.dropped += 1
                return False
            ts = self._next_timestamp()
            self._busy = True
            self._busy_since_ms = ts
            self.accepted += 1
        try:
            engine.submit_async(image, ts)
        except Exception as e:  # noqa: BLE001
            self.on_error(str(e) or type(e).__name__, ts)
        return True

    def _stalled(self) -> bool:
        if self._stall_timeout_ms is None:
            return False
        waited = int(self._clock()) - self._busy_since_ms
        if waited <= self._stall_timeout_ms:
            return False
        logger.warning("Inference stalled for %d ms, releasing slot", waited)
        return True

    def _release(self, timestamp_ms: int) -> bool:
        """Free the slot. False for a late answer to a request released as stalled."""
        with self._lock:
            # Must not free the newer request's slot
            if timestamp_ms and timestamp_ms < self._busy_since_ms:
                return False
            self._busy = False
            return True

    def on_result(self, result: InferenceResult) -> None:
        if not self._release(result.timestamp_ms):
            logger.debug("Discarding late result for %d ms", result.timestamp_ms)
            return
        if self._on_result is not None:
            self._on_result(result)

    def on_error(self, message: str, timestamp_ms: int = 0) -> None:
        if not self._release(timestamp_ms):
            logger.debug("Discarding late error for %d ms: %s", timestamp_ms, message)
            return
        logger.warning("Inference error at %d ms: %s", timestamp_ms, message)
        if self._on_error is not None:
            self._on_error(message, timestamp_ms)
