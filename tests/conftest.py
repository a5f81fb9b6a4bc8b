import os

import pytest
from fastapi.testclient import TestClient


TEST_ADMIN_KEY = "test-admin-key"
START_MILLIS = 1_700_000_000_000

os.environ.setdefault("FLOODGATE_ADMIN_KEY", TEST_ADMIN_KEY)


@pytest.fixture()
def clock():
    from floodgate.clock import ManualClock

    return ManualClock(start_millis=START_MILLIS)


@pytest.fixture()
def settings():
    from floodgate.models import GuardSettings

    return GuardSettings(
        monitor_name="TEST",
        relevant_paths="/.*",
        max_counters_per_slot=100,
        number_of_slots=3,
        slot_length_seconds=30,
        allowed_requests_per_slot=3,
        retention_share=0,
    )


@pytest.fixture()
def app(settings, clock):
    from floodgate.main import create_app

    return create_app(settings, clock=clock)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin_key() -> str:
    return os.environ["FLOODGATE_ADMIN_KEY"]


@pytest.fixture()
def make_monitor(clock):
    from floodgate.monitor import Monitor

    def _make(**overrides):
        params = {
            "max_counters_per_slot": 10,
            "number_of_slots": 3,
            "slot_length_seconds": 30,
            "allowed_requests_per_slot": 3,
            "retention_share": 0.5,
        }
        params.update(overrides)
        return Monitor("test", clock=clock, **params)

    return _make
