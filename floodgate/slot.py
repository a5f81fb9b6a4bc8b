from __future__ import annotations

import logging

from floodgate.cache import LRU, BoundedCache
from floodgate.counter import Counter
from floodgate.errors import ConfigurationError, require_key

logger = logging.getLogger(__name__)


class Slot:
    """Counters for every key seen within one time bucket.

    Holds at most `max_counters_per_slot` counters; when a new key would
    exceed that, the counter that was looked up least recently is dropped.
    """

    def __init__(self, key: str, max_counters_per_slot: int, monitor_name: str = "-") -> None:
        self._key = require_key(key, "slot key")
        if max_counters_per_slot < 1:
            raise ConfigurationError("max_counters_per_slot", max_counters_per_slot)
        self._monitor_name = monitor_name
        self._counters = BoundedCache(capacity=max_counters_per_slot, policy=LRU)
        self._full_reported = False

    @property
    def key(self) -> str:
        return self._key

    def get_or_create_counter(self, event_key: str) -> Counter:
        require_key(event_key, "event key")
        counter, created = self._counters.get_or_insert(event_key, Counter)
        if created and not self._full_reported and len(self._counters) >= self._counters.capacity:
            self._full_reported = True
            logger.info(
                "slot %s [%s]: counter cache is full (%d)",
                self._key,
                self._monitor_name,
                self._counters.capacity,
            )
        return counter

    def get_if_exists(self, event_key: str) -> Counter | None:
        require_key(event_key, "event key")
        return self._counters.peek(event_key)

    def locked_counters(self) -> list[tuple[str, Counter]]:
        return [(k, c) for k, c in self._counters.items() if c.locked]

    def __len__(self) -> int:
        return len(self._counters)

    def __str__(self) -> str:
        locked = self.locked_counters()
        if locked:
            listed = " ".join(
                f"{k} ({c.current_count}|{'-' if c.retained_count is None else c.retained_count})"
                for k, c in locked
            )
        else:
            listed = "-"
        return f"counters={len(self)} locked: {listed}"
