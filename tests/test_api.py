import pytest
from fastapi.testclient import TestClient


def _client_for(clock, **overrides):
    from floodgate.main import create_app
    from floodgate.models import GuardSettings

    values = {
        "monitor_name": "TEST",
        "relevant_paths": "/.*",
        "number_of_slots": 3,
        "slot_length_seconds": 30,
        "allowed_requests_per_slot": 3,
        "retention_share": 0,
    }
    values.update(overrides)
    return TestClient(create_app(GuardSettings(**values), clock=clock))


def test_requests_blocked_after_limit(client):
    for _ in range(3):
        r = client.get("/")
        assert r.status_code == 200
        assert r.json() == {"ok": True, "marked": None}
    r = client.get("/")
    assert r.status_code == 403
    assert r.json() == {"detail": "too many requests"}


def test_block_lifted_in_next_slot(client, clock):
    for _ in range(4):
        client.get("/")
    assert client.get("/").status_code == 403
    clock.advance(seconds=31)
    assert client.get("/").status_code == 200


@pytest.mark.parametrize("path", ["/healthz", "/api/guardian"])
def test_lookalike_paths_are_counted(client, path):
    for _ in range(3):
        assert client.get(path).status_code == 404
    r = client.get(path)
    assert r.status_code == 403
    assert client.get("/health").status_code == 200


def test_health_is_not_counted(client):
    for _ in range(5):
        r = client.get("/health")
        assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["checks"]["monitor"] == "ok"
    assert data["checks"]["total_requests"] == 0
    assert client.get("/").status_code == 200


def test_marking_mode_passes_and_marks(clock):
    with _client_for(clock, mode="MARKING") as c:
        for _ in range(3):
            assert c.get("/").json()["marked"] is None
        r = c.get("/")
        assert r.status_code == 200
        assert r.json()["marked"] == "TEST"


def test_simulation_mode_never_blocks(clock):
    with _client_for(clock, simulation=True) as c:
        for _ in range(10):
            r = c.get("/")
            assert r.status_code == 200
            assert r.json()["marked"] is None


def test_always_forbidden_address(clock):
    with _client_for(clock, always_forbidden="testclient") as c:
        assert c.get("/").status_code == 403
        assert c.get("/health").status_code == 200


def test_always_allowed_address(clock):
    with _client_for(clock, always_allowed="testclient") as c:
        for _ in range(10):
            assert c.get("/").status_code == 200


def test_irrelevant_path_not_limited(clock):
    with _client_for(clock, relevant_paths="/limited.*") as c:
        for _ in range(10):
            assert c.get("/").status_code == 200


def test_admin_routes_require_key(client):
    assert client.get("/api/guard/status").status_code == 401
    assert client.get("/api/guard/stats", headers={"X-Admin-Key": "wrong"}).status_code == 401
    assert client.post("/api/guard/reload").status_code == 401


def test_status_dump(client, admin_key):
    for _ in range(4):
        client.get("/")
    r = client.get("/api/guard/status", headers={"X-Admin-Key": admin_key})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert "total requests: 4" in r.text
    assert "locked: testclient (4|0)" in r.text


def test_stats(client, admin_key):
    client.get("/")
    r = client.get("/api/guard/stats", params={"key": admin_key})
    assert r.status_code == 200
    assert r.json() == {
        "monitor_name": "TEST",
        "mode": "BLOCKING",
        "simulation": False,
        "total_requests": 1,
        "active_slots": 1,
        "number_of_slots": 3,
        "allowed_requests_per_slot": 3,
    }


def test_address_status(client, admin_key):
    headers = {"X-Admin-Key": admin_key}
    r = client.get("/api/guard/address/testclient", headers=headers)
    assert r.json()["found"] is False

    client.get("/")
    client.get("/")
    r = client.get("/api/guard/address/testclient", headers=headers)
    assert r.status_code == 200
    data = r.json()
    assert data["found"] is True
    assert data["current_count"] == 2
    assert data["retained_count"] == 0
    assert data["locked"] is False


def test_address_status_rejects_bad_address(client, admin_key):
    r = client.get("/api/guard/address/bad$addr", headers={"X-Admin-Key": admin_key})
    assert r.status_code == 400


def test_reload_resets_counts(client, admin_key):
    for _ in range(4):
        client.get("/")
    assert client.get("/").status_code == 403

    r = client.post("/api/guard/reload", headers={"X-Admin-Key": admin_key})
    assert r.status_code == 200
    assert r.json()["total_requests"] == 0
    assert client.get("/").status_code == 200


def test_reload_with_new_settings(client, admin_key):
    payload = {
        "monitor_name": "TEST",
        "mode": "marking",
        "relevant_paths": "/.*",
        "allowed_requests_per_slot": 1,
        "number_of_slots": 2,
        "slot_length_seconds": 30,
        "retention_share": 0,
    }
    r = client.post("/api/guard/reload", json=payload, headers={"X-Admin-Key": admin_key})
    assert r.status_code == 200
    assert r.json()["mode"] == "MARKING"
    assert r.json()["allowed_requests_per_slot"] == 1

    assert client.get("/").json()["marked"] is None
    assert client.get("/").json()["marked"] == "TEST"


def test_reload_rejects_out_of_range_settings(client, admin_key):
    r = client.post(
        "/api/guard/reload",
        json={"allowed_requests_per_slot": 0},
        headers={"X-Admin-Key": admin_key},
    )
    assert r.status_code == 400
    assert "allowed_requests_per_slot" in r.json()["detail"]

    stats = client.get("/api/guard/stats", headers={"X-Admin-Key": admin_key}).json()
    assert stats["monitor_name"] == "TEST"
    assert stats["allowed_requests_per_slot"] == 3


def test_reload_rejects_invalid_mode(client, admin_key):
    r = client.post("/api/guard/reload", json={"mode": "xyz"}, headers={"X-Admin-Key": admin_key})
    assert r.status_code == 422
