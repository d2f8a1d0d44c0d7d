"""
registry/clock.py

Logical timestamp sources.  Every component asks its clock for ``now()``
and stores the returned integer; the registry never reads wall time itself.
"""

import threading
import time


class LogicalClock:
    """Integer height that only moves forward, e.g. a block height."""

    def __init__(self, height: int = 0):
        if height < 0:
            raise ValueError("height must be non-negative")
        self._height = height
        self._lock = threading.Lock()

    def now(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("a logical clock cannot move backwards")
        with self._lock:
            self._height += blocks
            return self._height


class WallClock:
    """Unix seconds, clamped so it never goes backwards within a process."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last
