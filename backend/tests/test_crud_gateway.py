from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from rentdesk.auth import Principal, verify_password
from rentdesk.db import SessionLocal
from rentdesk.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from rentdesk.models import Property
from rentdesk.services import gateway


def _property(db, **kw):
    data = {"address": "1 Main St", "city": "Lisbon", "property_type": "apartment", "rent": Decimal("2000.00"), "status": "available"}
    data.update(kw)
    return gateway.properties.create(db, data)


def _tenant(db, **kw):
    data = {"first_name": "Ana", "last_name": "Costa", "is_active": True}
    data.update(kw)
    return gateway.tenants.create(db, data)


def _contract(db, prop, tenant, **kw):
    data = {
        "property_id": prop.id,
        "tenant_id": tenant.id,
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 12, 31),
        "monthly_rent": Decimal("2000.00"),
        "payment_day": 1,
        "status": "active",
    }
    data.update(kw)
    return gateway.contracts.create(db, data)


def test_create_assigns_id_and_timestamps():
    db = SessionLocal()
    try:
        p = _property(db)
        assert p.id is not None
        assert p.created_at is not None
        assert p.updated_at == p.created_at
        assert p.rent == Decimal("2000.00")
    finally:
        db.close()


def test_contract_requires_existing_property_and_tenant():
    db = SessionLocal()
    try:
        p = _property(db)
        t = _tenant(db)

        with pytest.raises(ValidationError) as e:
            _contract(db, p, t, property_id=9999)
        assert e.value.field == "property_id"

        with pytest.raises(ValidationError) as e:
            _contract(db, p, t, tenant_id=9999)
        assert e.value.field == "tenant_id"
    finally:
        db.close()


def test_contract_end_before_start_rejected():
    db = SessionLocal()
    try:
        p = _property(db)
        t = _tenant(db)
        with pytest.raises(ValidationError):
            _contract(db, p, t, start_date=date(2024, 6, 1), end_date=date(2024, 5, 1))
    finally:
        db.close()


def test_payment_requires_existing_contract():
    db = SessionLocal()
    try:
        with pytest.raises(ValidationError):
            gateway.payments.create(
                db, {"contract_id": 42, "amount": Decimal("10.00"), "due_date": date(2024, 1, 1), "status": "pending"}
            )
    finally:
        db.close()


def test_service_request_tenant_is_optional():
    db = SessionLocal()
    try:
        p = _property(db)
        sr = gateway.service_requests.create(
            db,
            {"property_id": p.id, "title": "Boiler", "description": "No hot water", "priority": "high", "status": "open"},
        )
        assert sr.tenant_id is None

        with pytest.raises(ValidationError):
            gateway.service_requests.create(
                db,
                {
                    "property_id": p.id,
                    "tenant_id": 777,
                    "title": "Boiler",
                    "description": "No hot water",
                    "priority": "high",
                    "status": "open",
                },
            )
    finally:
        db.close()


def test_update_is_partial_and_refreshes_updated_at():
    db = SessionLocal()
    try:
        p = _property(db)
        p.updated_at = datetime.utcnow() - timedelta(days=1)
        db.commit()
        stale = p.updated_at

        row, before = gateway.properties.update(db, p.id, {"status": "rented"})
        assert before["status"] == "available"
        assert row.status == "rented"
        assert row.city == "Lisbon"
        assert row.updated_at > stale
    finally:
        db.close()


def test_update_and_delete_unknown_id_raise_not_found():
    db = SessionLocal()
    try:
        with pytest.raises(NotFoundError):
            gateway.tenants.update(db, 123, {"first_name": "X"})
        with pytest.raises(NotFoundError):
            gateway.tenants.delete(db, 123)
        with pytest.raises(NotFoundError):
            gateway.contracts.get(db, 123)
    finally:
        db.close()


def test_update_cannot_blank_a_required_field():
    db = SessionLocal()
    try:
        t = _tenant(db)
        with pytest.raises(ValidationError):
            gateway.tenants.update(db, t.id, {"first_name": "  "})
    finally:
        db.close()


def test_duplicate_tenant_email_conflicts():
    db = SessionLocal()
    try:
        _tenant(db, email="ana@example.com")
        with pytest.raises(ConflictError):
            _tenant(db, first_name="Other", email="ana@example.com")
    finally:
        db.close()


def test_delete_is_restricted_while_dependents_exist():
    db = SessionLocal()
    try:
        p = _property(db)
        t = _tenant(db)
        c = _contract(db, p, t)
        pay = gateway.payments.create(
            db, {"contract_id": c.id, "amount": Decimal("2000.00"), "due_date": date(2024, 2, 1), "status": "pending"}
        )

        with pytest.raises(ConflictError):
            gateway.properties.delete(db, p.id)
        with pytest.raises(ConflictError):
            gateway.tenants.delete(db, t.id)
        with pytest.raises(ConflictError):
            gateway.contracts.delete(db, c.id)

        # children first, then the parents go
        gateway.payments.delete(db, pay.id)
        gateway.contracts.delete(db, c.id)
        gateway.tenants.delete(db, t.id)
        gateway.properties.delete(db, p.id)
        with pytest.raises(NotFoundError):
            gateway.properties.get(db, p.id)
    finally:
        db.close()


def test_overlapping_active_contract_is_allowed_but_logged(caplog):
    db = SessionLocal()
    try:
        p = _property(db)
        t1 = _tenant(db)
        t2 = _tenant(db, first_name="Rui")
        _contract(db, p, t1)

        with caplog.at_level(logging.WARNING, logger="rentdesk.gateway"):
            second = _contract(db, p, t2, start_date=date(2024, 6, 1), end_date=date(2025, 5, 31))

        assert second.id is not None
        assert any("overlapping active contract" in r.getMessage() for r in caplog.records)
    finally:
        db.close()


def test_user_password_is_hashed_and_self_delete_guarded():
    db = SessionLocal()
    try:
        admin = gateway.users.create(db, {"email": "root@example.com", "role": "admin", "password": "s3cret!"})
        other = gateway.users.create(db, {"email": "bob@example.com", "role": "user"})
        assert admin.password_hash and admin.password_hash != "s3cret!"
        assert verify_password("s3cret!", admin.password_hash)

        me_admin = Principal(user_id=admin.id, email=admin.email, role="admin")
        me_user = Principal(user_id=other.id, email=other.email, role="user")

        with pytest.raises(ConflictError):
            gateway.users.delete(db, admin.id, actor=me_admin)
        # self-delete wins over the role check
        with pytest.raises(ConflictError):
            gateway.users.delete(db, other.id, actor=me_user)
        with pytest.raises(UnauthorizedError):
            gateway.users.delete(db, admin.id, actor=me_user)

        gateway.users.delete(db, other.id, actor=me_admin)
        with pytest.raises(NotFoundError):
            gateway.users.get(db, other.id)
    finally:
        db.close()


def test_unknown_fields_are_rejected():
    db = SessionLocal()
    try:
        with pytest.raises(ValidationError):
            _property(db, colour="blue")
    finally:
        db.close()


def test_gateway_writes_wait_for_the_caller_to_commit():
    db = SessionLocal()
    other = SessionLocal()
    try:
        p = _property(db)
        assert db.get(Property, p.id) is p
        assert other.scalar(select(func.count()).select_from(Property)) == 0
        other.rollback()

        db.commit()
        assert other.scalar(select(func.count()).select_from(Property)) == 1
    finally:
        other.close()
        db.close()
