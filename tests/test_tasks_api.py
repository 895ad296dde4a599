from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from taskapi.app import create_app
from taskapi.core import config as core_config
from taskapi.db.models import UserSession
from taskapi.db.session import get_engine

TASK = {"subject": "Write spec", "deadline": "2024-01-01", "status": "Pending"}
SUBTASK = {"subject": "Draft outline", "deadline": "2024-01-01", "status": "Pending"}


@pytest.fixture()
def client(db_env):
    with TestClient(create_app()) as test_client:
        yield test_client


def _sign_up(client, name="Ann", email="ann@x.com", password="pw1") -> dict:
    resp = client.post("/user", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def test_welcome_and_headers(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Task Manager" in resp.json()["message"]
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_tasks_require_token(client):
    assert client.get("/tasks").status_code == 401
    assert client.get("/tasks", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_bare_token_is_accepted(client):
    headers = _sign_up(client)
    bare = {"Authorization": headers["Authorization"].split(" ", 1)[1]}
    assert client.get("/tasks", headers=bare).status_code == 200


def test_signup_conflict_and_signin(client):
    _sign_up(client)
    dup = client.post("/user", json={"name": "Ann", "email": "ann@x.com", "password": "pw1"})
    assert dup.status_code == 409
    ok = client.post("/user/signin", json={"email": "ann@x.com", "password": "pw1"})
    assert ok.status_code == 200
    assert ok.json()["token"]
    bad = client.post("/user/signin", json={"email": "ann@x.com", "password": "nope"})
    assert bad.status_code == 401


def test_task_lifecycle_over_http(client):
    headers = _sign_up(client)

    created = client.post("/tasks", json=TASK, headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert set(body) == {"_id", "subject", "deadline", "status", "isDeleted", "subTask"}
    task_id = body["_id"]

    listed = client.get("/tasks", headers=headers).json()
    assert [t["subject"] for t in listed] == ["Write spec"]

    updated = client.put(f"/tasks/{task_id}", json={"status": "Completed"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["status"] == "Completed"
    assert updated.json()["subject"] == "Write spec"

    subs = client.put(f"/tasks/{task_id}/subtasks", json=[SUBTASK], headers=headers)
    assert subs.status_code == 200
    (sub,) = subs.json()
    assert sub["subject"] == "Draft outline"

    patched = client.put(f"/tasks/{task_id}/subtasks/{sub['_id']}", json={"status": "Overdue"}, headers=headers)
    assert patched.json()["status"] == "Overdue"

    gone = client.delete(f"/tasks/{task_id}/subtasks/{sub['_id']}", headers=headers)
    assert gone.status_code == 200
    assert client.get(f"/tasks/{task_id}/subtasks", headers=headers).json() == []

    deleted = client.delete(f"/tasks/{task_id}", headers=headers)
    assert deleted.json() == {"message": "Task Deleted Successfully"}
    assert client.get("/tasks", headers=headers).json() == []


def test_error_mapping(client):
    headers = _sign_up(client)
    assert client.post("/tasks", json={"subject": "ab", "deadline": "d"}, headers=headers).status_code == 400
    assert client.put("/tasks/missing", json={"subject": "Fine subject"}, headers=headers).status_code == 404
    assert client.get("/tasks/missing/subtasks", headers=headers).status_code == 404
    task_id = client.post("/tasks", json=TASK, headers=headers).json()["_id"]
    empty = client.post(f"/tasks/{task_id}/subtasks", json=[], headers=headers)
    assert empty.status_code == 400


def test_other_user_cannot_touch_task(client):
    ann = _sign_up(client)
    bob = _sign_up(client, "Bob", "bob@x.com")
    task_id = client.post("/tasks", json=TASK, headers=bob).json()["_id"]

    assert client.put(f"/tasks/{task_id}", json={"subject": "Mine now"}, headers=ann).status_code == 404
    assert client.delete(f"/tasks/{task_id}", headers=ann).status_code == 404
    assert client.get("/tasks", headers=bob).json()[0]["subject"] == "Write spec"


def test_logout_invalidates_token(client):
    headers = _sign_up(client)
    assert client.post("/user/logout", headers=headers).status_code == 200
    assert client.get("/tasks", headers=headers).status_code == 401


def _limit_signin(monkeypatch, limit: int, *, trust_proxy: bool = False) -> None:
    monkeypatch.setenv("AUTH_RATE_LIMIT", str(limit))
    monkeypatch.setenv("TRUST_FORWARDED_FOR", "1" if trust_proxy else "0")
    core_config.get_settings.cache_clear()


def _signin_codes(client, count: int, *, rotate_forwarded_for: bool) -> list[int]:
    codes = []
    for i in range(count):
        headers = {"X-Forwarded-For": f"10.0.0.{i}"} if rotate_forwarded_for else {}
        resp = client.post("/user/signin", json={"email": "ann@x.com", "password": "nope"}, headers=headers)
        codes.append(resp.status_code)
    return codes


def test_signin_throttled_per_client(client, monkeypatch):
    _limit_signin(monkeypatch, 2)
    assert _signin_codes(client, 4, rotate_forwarded_for=False) == [401, 401, 429, 429]


def test_forwarded_for_does_not_bypass_throttle(client, monkeypatch):
    _limit_signin(monkeypatch, 2)
    assert _signin_codes(client, 6, rotate_forwarded_for=True) == [401, 401, 429, 429, 429, 429]


def test_forwarded_for_used_behind_trusted_proxy(client, monkeypatch):
    _limit_signin(monkeypatch, 2, trust_proxy=True)
    assert _signin_codes(client, 4, rotate_forwarded_for=True) == [401, 401, 401, 401]


def test_session_store_failure_maps_to_500(client):
    headers = _sign_up(client)
    UserSession.__table__.drop(bind=get_engine())
    resp = client.get("/tasks", headers=headers)
    assert resp.status_code == 500
    assert resp.json() == {"message": "Internal Server Error"}
