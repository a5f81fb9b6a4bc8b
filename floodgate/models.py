import re
from typing import Optional
from pydantic import BaseModel, field_validator

BLOCKING_MODE = "BLOCKING"
MARKING_MODE = "MARKING"
DEFAULT_MONITOR_NAME = "DEFAULT"


class GuardSettings(BaseModel):
    monitor_name: str = DEFAULT_MONITOR_NAME
    mode: str = BLOCKING_MODE
    simulation: bool = False
    always_allowed: Optional[str] = None
    always_forbidden: Optional[str] = None
    relevant_paths: Optional[str] = None
    max_counters_per_slot: int = 10_000
    number_of_slots: int = 10
    slot_length_seconds: int = 60
    allowed_requests_per_slot: int = 300
    retention_share: float = 0.5

    @field_validator("monitor_name", mode="before")
    @classmethod
    def _default_name(cls, value):
        return value or DEFAULT_MONITOR_NAME

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value):
        value = (value or "").strip().upper()
        if not value:
            return BLOCKING_MODE
        if value not in (BLOCKING_MODE, MARKING_MODE):
            raise ValueError(f"mode must be {BLOCKING_MODE} or {MARKING_MODE}, got {value}")
        return value

    @field_validator("always_allowed", "always_forbidden", "relevant_paths", mode="before")
    @classmethod
    def _check_pattern(cls, value):
        if not value:
            return None
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression {value!r}: {e}") from e
        return value

    def monitor_params(self) -> dict:
        return {
            "max_counters_per_slot": self.max_counters_per_slot,
            "number_of_slots": self.number_of_slots,
            "slot_length_seconds": self.slot_length_seconds,
            "allowed_requests_per_slot": self.allowed_requests_per_slot,
            "retention_share": self.retention_share,
        }


class AddressStatus(BaseModel):
    address: str
    found: bool
    current_count: int = 0
    retained_count: Optional[int] = None
    combined_count: int = 0
    locked: bool = False


class GuardStats(BaseModel):
    monitor_name: str
    mode: str
    simulation: bool
    total_requests: int
    active_slots: int
    number_of_slots: int
    allowed_requests_per_slot: int
