from __future__ import annotations

from threading import Lock


class Counter:
    """Occurrences of one key within one slot.

    `retained_count` stays None until the monitor has folded in the decayed
    history from the other slots; it is written once per counter.
    `locked` only ever goes from False to True.
    """

    __slots__ = ("_count", "_retained", "_locked", "_lock")

    def __init__(self) -> None:
        self._count = 0
        self._retained: int | None = None
        self._locked = False
        self._lock = Lock()

    def increment(self) -> int:
        with self._lock:
            self._count += 1
            return self._count

    @property
    def current_count(self) -> int:
        with self._lock:
            return self._count

    @property
    def retained_count(self) -> int | None:
        return self._retained

    @property
    def has_retained_count(self) -> bool:
        return self._retained is not None

    def set_retained_count_once(self, value: int) -> None:
        # Concurrent first touches may both write; last write wins.
        self._retained = value

    @property
    def combined_count(self) -> int:
        current = self.current_count
        retained = self._retained
        return current if retained is None else current + retained

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        self._locked = True

    def as_dict(self) -> dict:
        return {
            "current_count": self.current_count,
            "retained_count": self._retained,
            "combined_count": self.combined_count,
            "locked": self._locked,
        }

    def __str__(self) -> str:
        retained = "-" if self._retained is None else self._retained
        return f"count={self.current_count} retained={retained} locked={'yes' if self._locked else 'no'}"

    def __repr__(self) -> str:
        return f"<Counter {self}>"
