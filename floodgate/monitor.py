"""Per-key rate limiting over a ring of fixed-length time slots.

Each event key (typically a client address) gets a counter in the slot that
covers "now". The first time a key shows up in a slot, the average of its
counts in the other live slots, scaled by `retention_share`, is carried over
so that a key that was busy recently starts the new slot with a handicap.
Once the combined count passes `allowed_requests_per_slot` the counter is
locked and every further event for that key is rejected until the slot
rolls over.
"""
from __future__ import annotations

import logging
import math
from threading import Lock

from floodgate.cache import FIFO, BoundedCache
from floodgate.clock import Clock, SystemClock
from floodgate.counter import Counter
from floodgate.errors import ConfigurationError, require_key
from floodgate.slot import Slot

logger = logging.getLogger(__name__)


def _require_int(parameter: str, value, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigurationError(parameter, value)
    return value


def _require_share(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError("retention_share", value)
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ConfigurationError("retention_share", value)
    return float(value)


def round_half_up(value: float) -> int:
    """Round a non-negative value to the nearest integer, ties upward."""
    return int(math.floor(value + 0.5))


class Monitor:
    def __init__(
        self,
        name: str | None = None,
        *,
        max_counters_per_slot: int,
        number_of_slots: int,
        slot_length_seconds: int,
        allowed_requests_per_slot: int,
        retention_share: float,
        clock: Clock | None = None,
    ) -> None:
        self._max_counters_per_slot = _require_int("max_counters_per_slot", max_counters_per_slot, 1)
        self._number_of_slots = _require_int("number_of_slots", number_of_slots, 1)
        self._slot_length_millis = _require_int("slot_length_seconds", slot_length_seconds, 1) * 1000
        self._allowed_requests_per_slot = _require_int(
            "allowed_requests_per_slot", allowed_requests_per_slot, 1
        )
        self._retention_share = _require_share(retention_share)

        self._name = name or "-"
        self._clock: Clock = clock or SystemClock()
        self._slots = BoundedCache(
            capacity=self._number_of_slots,
            policy=FIFO,
            on_evict=self._slot_evicted,
        )
        self._total_requests = 0
        self._total_lock = Lock()

        logger.info(
            "monitor [%s] created: max_counters_per_slot=%d number_of_slots=%d "
            "slot_length_seconds=%d allowed_requests_per_slot=%d retention_share=%s",
            self._name,
            self._max_counters_per_slot,
            self._number_of_slots,
            slot_length_seconds,
            self._allowed_requests_per_slot,
            self._retention_share,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def max_counters_per_slot(self) -> int:
        return self._max_counters_per_slot

    @property
    def number_of_slots(self) -> int:
        return self._number_of_slots

    @property
    def slot_length_millis(self) -> int:
        return self._slot_length_millis

    @property
    def allowed_requests_per_slot(self) -> int:
        return self._allowed_requests_per_slot

    @property
    def retention_share(self) -> float:
        return self._retention_share

    @property
    def total_requests(self) -> int:
        with self._total_lock:
            return self._total_requests

    @property
    def active_slot_count(self) -> int:
        return len(self._slots)

    def register_and_check(self, event_key: str) -> bool:
        """Count one event for `event_key` and return whether to admit it."""
        require_key(event_key, "event key")

        with self._total_lock:
            self._total_requests += 1

        slot = self._current_slot()
        counter = slot.get_or_create_counter(event_key)
        counter.increment()

        if not counter.has_retained_count:
            counter.set_retained_count_once(self._retained_count_for(event_key, slot.key))

        if counter.locked:
            return False

        if counter.combined_count > self._allowed_requests_per_slot:
            counter.lock()
            logger.info("monitor [%s]: locked '%s' in slot %s (%s)", self._name, event_key, slot.key, counter)
            return False

        return True

    def peek_current_counter(self, event_key: str) -> Counter | None:
        """Return the current slot's counter for `event_key` without creating anything."""
        require_key(event_key, "event key")
        slot = self._slots.peek(self._current_slot_key())
        if slot is None:
            return None
        return slot.get_if_exists(event_key)

    def status(self) -> str:
        slots = self._slots.values()
        lines = [
            f"slots: {len(slots)}; slot_length_millis: {self._slot_length_millis}; "
            f"allowed_requests_per_slot: {self._allowed_requests_per_slot}; "
            f"max_counters_per_slot: {self._max_counters_per_slot}; "
            f"retention_share: {self._retention_share}",
            f"total requests: {self.total_requests}",
        ]
        for slot in slots:
            lines.append(f"slot '{slot.key}' {slot}")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.status()

    def _current_slot_key(self) -> str:
        return str(self._clock.now_millis() // self._slot_length_millis)

    def _current_slot(self) -> Slot:
        key = self._current_slot_key()
        slot, created = self._slots.get_or_insert(
            key, lambda: Slot(key, self._max_counters_per_slot, self._name)
        )
        if created:
            logger.debug("monitor [%s]: opened slot %s", self._name, key)
        return slot

    def _retained_count_for(self, event_key: str, current_slot_key: str) -> int:
        if self._retention_share == 0:
            return 0

        total = 0
        others = 0
        for slot in self._slots.values():
            if slot.key == current_slot_key:
                continue
            others += 1
            counter = slot.get_if_exists(event_key)
            if counter is not None:
                total += counter.current_count

        if total <= 0 or others == 0:
            return 0
        return round_half_up(total * self._retention_share / others)

    def _slot_evicted(self, key, slot: Slot) -> None:
        logger.debug("monitor [%s]: dropped slot %s with %d counters", self._name, key, len(slot))
