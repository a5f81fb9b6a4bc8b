from __future__ import annotations

import logging
from threading import Lock

from floodgate.monitor import Monitor

logger = logging.getLogger(__name__)


class MonitorRegistry:
    """Named monitors shared by the request guards of one application.

    Replacing an entry only swaps the mapping; callers that already fetched
    the previous monitor keep using it until their call returns.
    """

    def __init__(self) -> None:
        self._monitors: dict[str, Monitor] = {}
        self._lock = Lock()

    def get(self, name: str) -> Monitor | None:
        with self._lock:
            return self._monitors.get(name)

    def create(self, name: str, **params) -> Monitor:
        with self._lock:
            existing = self._monitors.get(name)
            if existing is not None:
                return existing
            monitor = Monitor(name, **params)
            self._monitors[name] = monitor
            return monitor

    def replace(self, name: str, monitor: Monitor) -> Monitor | None:
        with self._lock:
            previous = self._monitors.get(name)
            self._monitors[name] = monitor
        logger.info("monitor [%s] %s", name, "replaced" if previous is not None else "registered")
        return previous

    def remove(self, name: str) -> Monitor | None:
        with self._lock:
            return self._monitors.pop(name, None)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._monitors)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._monitors

    def __len__(self) -> int:
        with self._lock:
            return len(self._monitors)
