"""Request policy around a named monitor.

Decides which requests are counted at all (address allow/deny lists and the
relevant path pattern) and hands the rest to the monitor registered under
the guard's monitor name.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from threading import Lock

from floodgate.clock import Clock
from floodgate.counter import Counter
from floodgate.models import BLOCKING_MODE, MARKING_MODE, GuardSettings
from floodgate.monitor import Monitor
from floodgate.registry import MonitorRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Policy:
    settings: GuardSettings
    always_allowed: re.Pattern | None
    always_forbidden: re.Pattern | None
    relevant_paths: re.Pattern | None


def _compile(pattern: str | None) -> re.Pattern | None:
    return re.compile(pattern) if pattern else None


def _policy_for(settings: GuardSettings) -> _Policy:
    return _Policy(
        settings=settings,
        always_allowed=_compile(settings.always_allowed),
        always_forbidden=_compile(settings.always_forbidden),
        relevant_paths=_compile(settings.relevant_paths),
    )


class Guard:
    def __init__(self, settings: GuardSettings, registry: MonitorRegistry, clock: Clock | None = None) -> None:
        self._registry = registry
        self._clock = clock
        self._reload_lock = Lock()
        self._policy = _policy_for(settings)
        self.reload()

    @property
    def settings(self) -> GuardSettings:
        return self._policy.settings

    @property
    def name(self) -> str:
        return self._policy.settings.monitor_name

    @property
    def blocking(self) -> bool:
        return self._policy.settings.mode == BLOCKING_MODE

    @property
    def marking(self) -> bool:
        return self._policy.settings.mode == MARKING_MODE

    @property
    def simulation(self) -> bool:
        return self._policy.settings.simulation

    def registered_monitor(self) -> Monitor | None:
        return self._registry.get(self.name)

    @property
    def monitor(self) -> Monitor:
        monitor = self._registry.get(self.name)
        if monitor is not None:
            return monitor
        with self._reload_lock:
            name = self.name
            monitor = self._registry.get(name)
            if monitor is None:
                monitor = self._build_monitor(self.settings)
                self._registry.replace(name, monitor)
        return monitor

    def configure(self, settings: GuardSettings) -> Monitor:
        """Switch to new settings and start a fresh monitor for them.

        Raises ConfigurationError and keeps the current settings when the
        monitor parameters are out of range. A monitor registered under a
        previous name is dropped.
        """
        with self._reload_lock:
            monitor = self._build_monitor(settings)
            previous_name = self.name
            # register before publishing the name so lookups never miss it
            self._registry.replace(settings.monitor_name, monitor)
            self._policy = _policy_for(settings)
            if previous_name != settings.monitor_name:
                self._registry.remove(previous_name)
        self._log_mode()
        return monitor

    def reload(self) -> Monitor:
        """Replace the registered monitor with an empty one built from the current settings."""
        with self._reload_lock:
            monitor = self._build_monitor(self.settings)
            self._registry.replace(self.name, monitor)
        self._log_mode()
        return monitor

    def is_forbidden(self, address: str) -> bool:
        pattern = self._policy.always_forbidden
        return pattern is not None and pattern.fullmatch(address) is not None

    def is_always_allowed(self, address: str) -> bool:
        pattern = self._policy.always_allowed
        return pattern is not None and pattern.fullmatch(address) is not None

    def is_relevant_path(self, path: str) -> bool:
        pattern = self._policy.relevant_paths
        return pattern is not None and pattern.fullmatch(path) is not None

    def is_request_allowed(self, address: str, path: str) -> bool:
        if self.is_forbidden(address):
            logger.debug("guard [%s]: %s is always forbidden", self.name, address)
            return False
        if self.is_always_allowed(address):
            logger.debug("guard [%s]: %s is always allowed", self.name, address)
            return True
        if not self.is_relevant_path(path):
            logger.debug("guard [%s]: %s is not a relevant path", self.name, path)
            return True
        return not self.is_address_blocked(address)

    def is_address_blocked(self, address: str) -> bool:
        if self.monitor.register_and_check(address):
            return False
        logger.debug("guard [%s]: blocks %s", self.name, address)
        return True

    def address_status(self, address: str) -> Counter | None:
        return self.monitor.peek_current_counter(address)

    def status(self) -> str:
        return self.monitor.status()

    def _build_monitor(self, settings: GuardSettings) -> Monitor:
        return Monitor(settings.monitor_name, clock=self._clock, **settings.monitor_params())

    def _log_mode(self) -> None:
        logger.info(
            "guard [%s] is in %s mode%s",
            self.name,
            self.settings.mode.lower(),
            " (SIMULATION)" if self.simulation else "",
        )
