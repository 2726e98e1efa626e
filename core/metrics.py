"""
Frame rate and drop-rate meters for the performance panel.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque


class RollingAverage:
    """Mean of the last maxlen values."""

    def __init__(self, maxlen: int = 30) -> None:
        self._values: Deque[float] = deque(maxlen=maxlen)

    def add(self, value: float) -> None:
        self._values.append(value)

    @property
    def average(self) -> float:
        if not self._values:
            return 0.0
        return sum(self._values) / len(self._values)

    def clear(self) -> None:
        self._values.clear()


class FrameRateMeter:
    """Per-frame interval tracking. fps is smoothed over the rolling window."""

    def __init__(
        self, window: int = 30, clock: Callable[[], float] = time.perf_counter
    ) -> None:
        self._clock = clock
        self._last: float | None = None
        self._intervals_ms = RollingAverage(maxlen=window)

    def tick(self) -> tuple[float, float]:
        """Call once per emitted frame. Returns (fps, latency_ms of this frame)."""
        now = self._clock()
        latency_ms = 0.0
        if self._last is not None:
            latency_ms = (now - self._last) * 1000.0
            self._intervals_ms.add(latency_ms)
        self._last = now
        avg = self._intervals_ms.average
        fps = 1000.0 / avg if avg > 0 else 0.0
        return fps, latency_ms

    @property
    def rolling_average_ms(self) -> float:
        return self._intervals_ms.average

    def reset(self) -> None:
        self._last = None
        self._intervals_ms.clear()


def drop_ratio(accepted: int, dropped: int) -> float:
    """Share of frames the gateway turned away, 0..1."""
    total = accepted + dropped
    return dropped / total if total else 0.0
