from __future__ import annotations

from fastapi.testclient import TestClient

from rentdesk.db import SessionLocal
from rentdesk.main import create_app
from rentdesk.services import gateway

ADMIN = {"X-User-Email": "admin@test.local", "X-User-Role": "admin"}
USER = {"X-User-Email": "user@test.local", "X-User-Role": "user"}


def _whoami(client: TestClient, headers: dict) -> int:
    r = client.get("/api/auth/user", headers=headers)
    assert r.status_code == 200, r.text
    return int(r.json()["userId"])


def test_admin_cannot_delete_own_account():
    client = TestClient(create_app())
    me = _whoami(client, ADMIN)

    r = client.delete(f"/api/users/{me}", headers=ADMIN)
    assert r.status_code == 409
    assert r.json()["error"] == "conflict"


def test_non_admin_self_delete_is_a_conflict_not_a_role_error():
    client = TestClient(create_app())
    me = _whoami(client, USER)

    r = client.delete(f"/api/users/{me}", headers=USER)
    assert r.status_code == 409


def test_user_management_is_admin_only():
    client = TestClient(create_app())
    admin_id = _whoami(client, ADMIN)

    assert client.get("/api/users", headers=USER).status_code == 403
    r = client.delete(f"/api/users/{admin_id}", headers=USER)
    assert r.status_code == 403
    assert r.json()["error"] == "unauthorized"

    listed = client.get("/api/users", headers=ADMIN)
    assert listed.status_code == 200
    assert {u["email"] for u in listed.json()} >= {"admin@test.local", "user@test.local"}


def test_admin_creates_and_deletes_another_user():
    client = TestClient(create_app())
    r = client.post("/api/users", headers=ADMIN, json={"email": "new@test.local", "password": "hunter22"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["role"] == "user"
    assert "password" not in body and "passwordHash" not in body
    assert r.headers["X-Invalidate-Views"] == "users"

    dup = client.post("/api/users", headers=ADMIN, json={"email": "NEW@test.local"})
    assert dup.status_code == 409

    gone = client.delete(f"/api/users/{body['id']}", headers=ADMIN)
    assert gone.status_code == 200
    assert client.get(f"/api/users/{body['id']}", headers=ADMIN).status_code == 404


def test_password_login_sets_cookie():
    db = SessionLocal()
    try:
        gateway.users.create(db, {"email": "pw@test.local", "role": "user", "password": "correct horse"})
    finally:
        db.close()

    client = TestClient(create_app())
    bad = client.post("/api/login", json={"email": "pw@test.local", "password": "wrong"})
    assert bad.status_code == 401

    ok = client.post("/api/login", json={"email": "PW@test.local", "password": "correct horse"})
    assert ok.status_code == 200
    assert ok.json()["email"] == "pw@test.local"

    # the cookie alone now identifies the caller
    me = client.get("/api/auth/user")
    assert me.status_code == 200
    assert me.json()["email"] == "pw@test.local"

    client.post("/api/logout")
    assert client.get("/api/auth/user").status_code == 401


def test_demo_login_provisions_admin():
    client = TestClient(create_app())
    r = client.get("/api/auth/demo-login")
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

    assert client.get("/api/users").status_code == 200
