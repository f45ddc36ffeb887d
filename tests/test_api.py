from __future__ import annotations

import pytest

from site_workforce.main import create_app
from support import FAR_LAT, SITE_LAT, SITE_LON, on_day

_CLOCKED_MODULES = (
    "site_workforce.attendance.service",
    "site_workforce.attendance.controller",
    "site_workforce.overtime.service",
    "site_workforce.overtime.controller",
    "site_workforce.tasks.service",
    "site_workforce.tasks.controller",
)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock(monkeypatch):
    c = Clock(on_day(7, 30))
    for module in _CLOCKED_MODULES:
        monkeypatch.setattr(f"{module}.now_local", c)
    return c


@pytest.fixture
def app(monkeypatch, container, clock):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id=7, role="worker"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role


def _at_site(lat=SITE_LAT):
    return {"project_id": 1, "latitude": lat, "longitude": SITE_LON, "accuracy": 6}


def test_requires_login(client):
    resp = client.post("/api/attendance/clock-in", json=_at_site())
    assert resp.status_code == 401


def test_clock_in_and_today(client, clock):
    login(client)

    resp = client.post("/api/attendance/clock-in", json=_at_site())
    assert resp.status_code == 201
    assert resp.get_json()["session"]["state"] == "CLOCKED_IN"

    clock.now = on_day(9, 0)
    today = client.get("/api/attendance/today?project_id=1").get_json()
    assert today["session"]["clock_in_at"] == "2026-03-02T07:30:00"
    assert today["forgotten_checkout"]["requires_regularization"] is False


def test_validate_location(client):
    login(client)

    body = client.post("/api/attendance/validate-location", json=_at_site(FAR_LAT)).get_json()

    assert body["success"] is True
    assert body["inside_geofence"] is False


def test_clock_in_outside_geofence(client):
    login(client)

    resp = client.post("/api/attendance/clock-in", json=_at_site(FAR_LAT))
    body = resp.get_json()

    assert resp.status_code == 400
    assert body["success"] is False
    assert body["error"]["code"] == "OUTSIDE_GEOFENCE"


def test_double_clock_in_is_a_conflict(client):
    login(client)
    client.post("/api/attendance/clock-in", json=_at_site())

    resp = client.post("/api/attendance/clock-in", json=_at_site())

    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "INVALID_STATE_TRANSITION"


def test_missing_project_id(client):
    login(client)

    resp = client.post("/api/attendance/clock-in", json={"latitude": SITE_LAT, "longitude": SITE_LON})

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "INVALID_INPUT"


def test_non_object_body(client):
    login(client)

    resp = client.post("/api/attendance/clock-in", json=[1, 2])

    assert resp.status_code == 400


def test_lost_race_is_retried_once(client, clock, sessions, location_log):
    login(client)
    client.post("/api/attendance/clock-in", json=_at_site())
    clock.now = on_day(12, 5)
    sessions.fail_next_save = True

    resp = client.post("/api/attendance/lunch-start", json=_at_site())

    assert resp.status_code == 200
    assert resp.get_json()["session"]["state"] == "ON_LUNCH"
    assert [e.log_type.value for e in location_log.entries] == ["CLOCK_IN", "LUNCH_START"]


def test_overtime_flow(client, clock):
    login(client)
    clock.now = on_day(16, 0)
    resp = client.post("/api/overtime/requests", json={"project_id": 1, "reason": "Pour running late"})
    assert resp.status_code == 201
    request_id = resp.get_json()["request_id"]

    forbidden = client.post(f"/api/overtime/requests/{request_id}/decision", json={"decision": "approve"})
    assert forbidden.status_code == 403

    login(client, user_id=2, role="supervisor")
    pending = client.get("/api/overtime/pending").get_json()["requests"]
    assert [r["request_id"] for r in pending] == [request_id]

    decided = client.post(f"/api/overtime/requests/{request_id}/decision", json={"decision": "approve"})
    assert decided.get_json()["status"] == "approved"

    again = client.post(f"/api/overtime/requests/{request_id}/decision", json={"decision": "reject"})
    assert again.status_code == 409

    login(client)
    status = client.get("/api/overtime/status?project_id=1").get_json()
    assert status["status"] == "approved"
    assert status["approved_by"] == 2


def test_tasks_day(client, tasks_repo):
    first = tasks_repo.add("Excavation", quantity="10", unit="m3")
    second = tasks_repo.add("Foundation pour", sequence=2, depends_on=(first.assignment_id,))
    login(client)
    client.post("/api/attendance/clock-in", json=_at_site())

    today = client.get("/api/tasks/today?date=2026-03-02").get_json()
    assert [t["id"] for t in today["tasks"]] == [first.assignment_id, second.assignment_id]
    assert today["suggested_next_task_id"] == first.assignment_id

    blocked = client.post(f"/api/tasks/{second.assignment_id}/start")
    assert blocked.status_code == 400
    assert blocked.get_json()["error"]["code"] == "DEPENDENCY_NOT_MET"

    started = client.post(f"/api/tasks/{first.assignment_id}/start")
    assert started.get_json()["assignment"]["status"] == "in_progress"

    progress = client.post(f"/api/tasks/{first.assignment_id}/progress", json={"delta": 4})
    assert progress.get_json()["assignment"]["progress_percent"] == 40

    short = client.post(f"/api/tasks/{first.assignment_id}/complete", json={})
    assert short.get_json()["error"]["code"] == "INCOMPLETE_OUTPUT"

    forced_by_worker = client.post(f"/api/tasks/{first.assignment_id}/complete", json={"force_complete": True})
    assert forced_by_worker.status_code == 403

    login(client, user_id=2, role="supervisor")
    forced = client.post(
        f"/api/tasks/{first.assignment_id}/complete",
        json={"force_complete": True, "worker_id": 7},
    )
    assert forced.status_code == 200
    assert forced.get_json()["assignment"]["force_completed"] is True


def test_bad_date_and_unknown_task(client):
    login(client)

    assert client.get("/api/tasks/today?date=02/03/2026").status_code == 400
    assert client.post("/api/tasks/999/pause").status_code == 404


def test_force_complete_flag_must_be_a_boolean(client, tasks_repo):
    task = tasks_repo.add("Excavation", quantity="10", unit="m3")
    login(client)
    client.post("/api/attendance/clock-in", json=_at_site())
    client.post(f"/api/tasks/{task.assignment_id}/start")

    login(client, user_id=2, role="supervisor")
    resp = client.post(
        f"/api/tasks/{task.assignment_id}/complete",
        json={"force_complete": "false", "worker_id": 7},
    )

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "INVALID_INPUT"
    assert tasks_repo.get(task.assignment_id).status.value == "in_progress"
