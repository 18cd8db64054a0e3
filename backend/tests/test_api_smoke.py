import pytest
from fastapi import HTTPException

from conftest import BASE_MS, LAT0, LON0, FakeClock, north


def get_client(clock=None):
    # Import after env is set so engine is created with sqlite
    from app.main import app  # noqa: WPS433
    from app.api.sessions import SessionRegistry  # noqa: WPS433
    from fastapi.testclient import TestClient  # noqa: WPS433
    app.state.sessions = SessionRegistry(clock=clock or FakeClock())
    return TestClient(app)


def fix_payload(meters_north, t_s, accuracy=0.0, altitude=None):
    return {
        "latitude": LAT0 + north(meters_north),
        "longitude": LON0,
        "accuracy_m": accuracy,
        "timestamp_ms": BASE_MS + int(t_s * 1000),
        "altitude_m": altitude,
    }


def test_root_ok():
    client = get_client()
    r = client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert "message" in data


def test_track_stop_and_list_activity():
    clock = FakeClock()
    client = get_client(clock)
    client.delete("/activities/")

    r = client.post("/sessions/", json={"segment_size_m": 250})
    assert r.status_code == 200, r.text
    session = r.json()
    assert session["state"] == "running"
    assert session["phase"] == "cold"
    sid = session["id"]

    r = client.post(f"/sessions/{sid}/fixes", json=fix_payload(0, 0, accuracy=4.0, altitude=10.0))
    assert r.json()["status"] == "locked"
    assert r.json()["quality"] == "excellent"

    for k in (1, 2, 3):
        clock.now_ms = BASE_MS + 60_000 * k
        r = client.post(f"/sessions/{sid}/fixes", json=fix_payload(100 * k, 60 * k, altitude=10.0 + k))
        assert r.status_code == 200, r.text
        assert r.json()["status"] == "accepted"
    data = r.json()
    assert abs(data["total_distance_m"] - 300.0) < 1e-6
    assert data["new_segments"][0]["distance_label_m"] == 250
    assert data["new_segments"][0]["pace"] == "12:00"

    clock.now_ms = BASE_MS + 200_000
    r = client.get(f"/sessions/{sid}")
    assert r.json()["elapsed"] == "03:20"

    r = client.post(f"/sessions/{sid}/stop")
    assert r.status_code == 200, r.text
    stopped = r.json()
    assert stopped["saved"] is True
    assert stopped["duration"] == "00:03:20"
    assert [s["distance_label_m"] for s in stopped["segments"]] == [250, 500]
    assert stopped["segments"][-1]["partial"] is True
    activity_id = stopped["activity_id"]

    # Stopped sessions are no longer live
    assert client.get(f"/sessions/{sid}").status_code == 404

    lr = client.get("/activities/")
    assert lr.status_code == 200
    arr = lr.json()
    assert [a["id"] for a in arr] == [activity_id]
    assert arr[0]["distance_m"] == 300.0
    assert arr[0]["elevation_gain_m"] == 3
    assert arr[0]["segments_count"] == 2

    detail = client.get(f"/activities/{activity_id}").json()
    assert detail["segments"][0]["time_sec"] == 180.0
    segs = client.get(f"/activities/{activity_id}/segments").json()
    assert [s["idx"] for s in segs] == [1, 2]

    stats = client.get("/activities/stats").json()
    assert stats["total_runs"] == 1
    assert stats["total_distance_km"] == 0.3
    assert stats["total_time"] == "00:03:20"

    assert client.delete(f"/activities/{activity_id}").status_code == 200
    assert client.get(f"/activities/{activity_id}").status_code == 404
    assert client.get("/activities/").json() == []


def test_lifecycle_errors():
    client = get_client()
    sid = client.post("/sessions/").json()["id"]

    assert client.post(f"/sessions/{sid}/resume").status_code == 409
    r = client.post(f"/sessions/{sid}/pause")
    assert r.status_code == 200
    assert r.json()["state"] == "paused"
    assert client.post(f"/sessions/{sid}/pause").status_code == 409

    r = client.post(f"/sessions/{sid}/fixes", json=fix_payload(0, 0))
    assert r.json()["status"] == "not_running"

    r = client.post(f"/sessions/{sid}/stop")
    assert r.json()["saved"] is False
    assert r.json()["pace"] == "–:––"

    assert client.post("/sessions/nope/pause").status_code == 404


def test_invalid_input_rejected():
    client = get_client()
    assert client.post("/sessions/", json={"segment_size_m": 0}).status_code == 422

    sid = client.post("/sessions/").json()["id"]
    assert client.get(f"/sessions/{sid}").json()["segment_size_m"] == 250
    bad = fix_payload(0, 0, accuracy=-1.0)
    assert client.post(f"/sessions/{sid}/fixes", json=bad).status_code == 422


def test_sensor_error_reported():
    client = get_client()
    sid = client.post("/sessions/").json()["id"]
    r = client.post(f"/sessions/{sid}/sensor_error", json={"message": "permission denied"})
    assert r.status_code == 200
    body = r.json()
    assert body["state"] == "running"
    assert body["last_status"] == "sensor_unavailable"
    assert body["sensor_error"] == "permission denied"


def test_failed_save_still_ends_session(monkeypatch):
    import app.store  # noqa: WPS433

    def broken_save(db, record):
        raise RuntimeError("disk full")

    monkeypatch.setattr(app.store, "save_activity", broken_save)
    clock = FakeClock()
    client = get_client(clock)
    sid = client.post("/sessions/", json={"segment_size_m": 100}).json()["id"]
    client.post(f"/sessions/{sid}/fixes", json=fix_payload(0, 0))
    clock.now_ms = BASE_MS + 60_000
    client.post(f"/sessions/{sid}/fixes", json=fix_payload(150, 60))

    r = client.post(f"/sessions/{sid}/stop")
    assert r.status_code == 200, r.text
    assert r.json()["saved"] is False
    assert r.json()["activity_id"] is None
    assert client.get(f"/sessions/{sid}").status_code == 404


def test_idle_sessions_are_evicted():
    from app.api.sessions import SessionRegistry  # noqa: WPS433

    clock = FakeClock()
    registry = SessionRegistry(clock=clock, idle_timeout_s=60)
    old_id, _ = registry.create(250)
    clock.advance(30)
    kept_id, _ = registry.create(250)
    assert len(registry) == 2

    clock.advance(45)
    registry.get(kept_id)
    new_id, _ = registry.create(250)
    assert len(registry) == 2
    registry.get(kept_id)
    registry.get(new_id)
    with pytest.raises(HTTPException) as exc:
        registry.get(old_id)
    assert exc.value.status_code == 404
