"""Time sources for the monitor.

Production code uses `SystemClock`; tests inject a `ManualClock` and move it
forward explicitly so slot boundaries are deterministic.
"""
from __future__ import annotations

import time
from threading import Lock
from typing import Protocol


class Clock(Protocol):
    def now_millis(self) -> int: ...


class SystemClock:
    def now_millis(self) -> int:
        return time.time_ns() // 1_000_000


class ManualClock:
    def __init__(self, start_millis: int = 0) -> None:
        self._now = start_millis
        self._lock = Lock()

    def now_millis(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: float = 0, millis: int = 0) -> int:
        with self._lock:
            self._now += int(seconds * 1000) + millis
            return self._now
