import os

from floodgate.models import GuardSettings

ADMIN_KEY = os.environ.get("FLOODGATE_ADMIN_KEY", "")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
TRUSTED_PROXY_NETS = os.environ.get("TRUSTED_PROXY_NETS", "127.0.0.1/32,::1/128")

MONITOR_NAME = os.environ.get("MONITOR_NAME", "")
MONITOR_MODE = os.environ.get("MONITOR_MODE", "")
SIMULATION_MODE = os.environ.get("SIMULATION_MODE", "").strip().lower() in ("1", "true", "yes", "on")
ALWAYS_ALLOWED_IPS = os.environ.get("ALWAYS_ALLOWED_IPS", "")
ALWAYS_FORBIDDEN_IPS = os.environ.get("ALWAYS_FORBIDDEN_IPS", "")
RELEVANT_PATHS = os.environ.get("RELEVANT_PATHS", ".*")

MAX_COUNTERS_PER_SLOT = int(os.environ.get("MAX_COUNTERS_PER_SLOT", "10000"))
NUMBER_OF_SLOTS = int(os.environ.get("NUMBER_OF_SLOTS", "10"))
SLOT_LENGTH_SECONDS = int(os.environ.get("SLOT_LENGTH_SECONDS", "60"))
ALLOWED_REQUESTS_PER_SLOT = int(os.environ.get("ALLOWED_REQUESTS_PER_SLOT", "300"))
RETENTION_SHARE = float(os.environ.get("RETENTION_SHARE", "0.5"))


def load_guard_settings() -> GuardSettings:
    return GuardSettings(
        monitor_name=MONITOR_NAME,
        mode=MONITOR_MODE,
        simulation=SIMULATION_MODE,
        always_allowed=ALWAYS_ALLOWED_IPS,
        always_forbidden=ALWAYS_FORBIDDEN_IPS,
        relevant_paths=RELEVANT_PATHS,
        max_counters_per_slot=MAX_COUNTERS_PER_SLOT,
        number_of_slots=NUMBER_OF_SLOTS,
        slot_length_seconds=SLOT_LENGTH_SECONDS,
        allowed_requests_per_slot=ALLOWED_REQUESTS_PER_SLOT,
        retention_share=RETENTION_SHARE,
    )


if not ADMIN_KEY:
    raise RuntimeError("FLOODGATE_ADMIN_KEY is required")
