from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Hashable

LRU = "lru"
FIFO = "fifo"


@dataclass(slots=True)
class BoundedCache:
    """Thread-safe mapping capped at `capacity` entries.

    With policy "lru" every successful lookup through
    `get_or_insert` moves the entry to the young end; with "fifo" entries
    stay in creation order. On overflow the oldest entry is dropped.
    `peek` never reorders.
    """

    capacity: int
    policy: str = LRU
    on_evict: Callable[[Hashable, Any], None] | None = None
    _entries: "OrderedDict[Hashable, Any]" = field(default_factory=OrderedDict)
    _lock: Lock = field(default_factory=Lock)

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {self.capacity}")
        if self.policy not in (LRU, FIFO):
            raise ValueError(f"unknown eviction policy: {self.policy}")

    def get_or_insert(self, key: Hashable, factory: Callable[[], Any]) -> tuple[Any, bool]:
        """Return `(value, created)`; `factory` only runs when `key` is absent."""
        evicted: list[tuple[Hashable, Any]] = []
        with self._lock:
            value = self._entries.get(key)
            if value is not None:
                if self.policy == LRU:
                    self._entries.move_to_end(key)
                return value, False

            value = factory()
            self._entries[key] = value
            while len(self._entries) > self.capacity:
                evicted.append(self._entries.popitem(last=False))

        if self.on_evict is not None:
            for old_key, old_value in evicted:
                self.on_evict(old_key, old_value)
        return value, True

    def peek(self, key: Hashable) -> Any | None:
        with self._lock:
            return self._entries.get(key)

    def keys(self) -> list[Hashable]:
        with self._lock:
            return list(self._entries.keys())

    def values(self) -> list[Any]:
        with self._lock:
            return list(self._entries.values())

    def items(self) -> list[tuple[Hashable, Any]]:
        with self._lock:
            return list(self._entries.items())

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
