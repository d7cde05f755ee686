from __future__ import annotations

import json

from fastapi.testclient import TestClient

from rentdesk.db import SessionLocal
from rentdesk.main import create_app
from rentdesk.models import ChangeEvent
from rentdesk.services import events_facade
from rentdesk.services.events_facade import DEPENDENT_VIEWS, notifier, views_for

ADMIN = {"X-User-Email": "admin@test.local", "X-User-Role": "admin"}
USER = {"X-User-Email": "user@test.local", "X-User-Role": "user"}


def test_every_resource_invalidates_itself():
    for resource, views in DEPENDENT_VIEWS.items():
        assert resource in views
    assert views_for("contracts") == ["contracts", "dashboard.stats", "properties", "reports"]
    assert views_for("tenants") == ["dashboard.stats", "tenants"]


def test_emit_records_row_and_notifies_listeners():
    seen: list[tuple[str, list[str]]] = []
    unsubscribe = notifier.subscribe(lambda resource, views: seen.append((resource, views)))

    db = SessionLocal()
    try:
        views = notifier.emit(
            db,
            actor_user_id=7,
            resource="payments",
            action="update",
            entity_id=3,
            before={"status": "pending"},
            after={"status": "paid"},
        )
        assert views == ["dashboard.stats", "payments", "reports"]
        assert seen == [("payments", views)]

        row = db.query(ChangeEvent).one()
        assert row.action == "payments.update"
        assert row.entity_id == "3"
        assert json.loads(row.after_json) == {"status": "paid"}
        assert json.loads(row.invalidates_json) == views
    finally:
        unsubscribe()
        db.close()


def test_failing_listener_does_not_break_the_write():
    def boom(resource, views):
        raise RuntimeError("listener down")

    unsubscribe = notifier.subscribe(boom)
    try:
        client = TestClient(create_app())
        r = client.post(
            "/api/tenants",
            headers=ADMIN,
            json={"firstName": "Ivo", "lastName": "Reis"},
        )
        assert r.status_code == 200
        assert r.headers["X-Invalidate-Views"] == "dashboard.stats,tenants"
    finally:
        unsubscribe()


def test_events_endpoint_lists_writes_since_id():
    client = TestClient(create_app())
    client.post(
        "/api/properties",
        headers=ADMIN,
        json={"address": "1 Main St", "city": "Lisbon", "propertyType": "apartment", "rent": "900"},
    )
    client.post("/api/tenants", headers=ADMIN, json={"firstName": "Ana", "lastName": "Costa"})

    events = client.get("/api/events", headers=ADMIN).json()
    assert [e["action"] for e in events] == ["properties.create", "tenants.create"]
    assert "dashboard.stats" in events[0]["invalidates"]
    assert events[0]["entityType"] == "properties"

    later = client.get("/api/events", headers=ADMIN, params={"since_id": events[0]["id"]}).json()
    assert [e["action"] for e in later] == ["tenants.create"]

    assert client.get("/api/events", headers=USER).status_code == 403


def test_change_log_keeps_only_changed_fields_and_drops_secrets():
    client = TestClient(create_app())
    created = client.post("/api/users", headers=ADMIN, json={"email": "kim@test.local", "password": "abcdef1"})
    uid = created.json()["id"]
    client.put(f"/api/users/{uid}", headers=ADMIN, json={"firstName": "Kim"})

    db = SessionLocal()
    try:
        rows = db.query(ChangeEvent).filter(ChangeEvent.entity_type == "users").order_by(ChangeEvent.id).all()
        create_row, update_row = rows[-2], rows[-1]

        assert "password_hash" not in json.loads(create_row.after_json)
        assert json.loads(update_row.before_json) == {"id": uid, "first_name": None}
        assert json.loads(update_row.after_json) == {"id": uid, "first_name": "Kim"}
    finally:
        db.close()


def test_write_is_rolled_back_when_its_change_event_fails(monkeypatch):
    def broken_change_log(db, **kw):
        raise RuntimeError("change log unavailable")

    monkeypatch.setattr(events_facade, "record_change", broken_change_log)
    client = TestClient(create_app(), raise_server_exceptions=False)
    r = client.post(
        "/api/properties",
        headers=ADMIN,
        json={"address": "9 Quay Rd", "city": "Faro", "propertyType": "house", "rent": "1200"},
    )
    assert r.status_code == 500
    assert "X-Invalidate-Views" not in r.headers

    monkeypatch.undo()
    assert client.get("/api/properties", headers=ADMIN).json() == []
