# backend/rentdesk/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import hash_password
from ..db import SessionLocal, init_db
from ..models import Contract, Payment, Property, ServiceRequest, Tenant, User


@dataclass(frozen=True)
class SeedResult:
    user_email: str
    property_ids: list[int]
    contract_id: Optional[int]


def _get_or_create_user(db: Session, email: str, password: Optional[str]) -> User:
    row = db.scalar(select(User).where(User.email == email))
    if row:
        return row
    now = datetime.utcnow()
    row = User(
        email=email,
        first_name="Admin",
        role="admin",
        password_hash=hash_password(password) if password else None,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _add(db: Session, row):
    now = datetime.utcnow()
    row.created_at = now
    row.updated_at = now
    db.add(row)
    db.flush()
    return row


def seed_demo(
    *,
    user_email: str = "admin@rentdesk.local",
    password: Optional[str] = "rentdesk",
    with_portfolio: bool = True,
    today: Optional[date] = None,
) -> SeedResult:
    """
    Admin user plus a small portfolio: two properties (one rented), one tenant,
    an active contract ending in three weeks, two payments and an open issue.
    Re-running is a no-op once any property exists.
    """
    init_db()
    today = today or datetime.utcnow().date()

    db = SessionLocal()
    try:
        _get_or_create_user(db, user_email, password)

        existing = list(db.scalars(select(Property.id)).all())
        if existing or not with_portfolio:
            return SeedResult(user_email=user_email, property_ids=[int(x) for x in existing], contract_id=None)

        flat = _add(
            db,
            Property(
                address="12 Harbour Street, Apt 3",
                city="Lisbon",
                postal_code="1100-001",
                property_type="apartment",
                area=68,
                rooms=2,
                bathrooms=1,
                rent=Decimal("950.00"),
                deposit=Decimal("1900.00"),
                status="rented",
            ),
        )
        house = _add(
            db,
            Property(
                address="4 Orchard Lane",
                city="Porto",
                property_type="house",
                area=140,
                rooms=4,
                bathrooms=2,
                rent=Decimal("1450.00"),
                status="available",
            ),
        )
        tenant = _add(
            db,
            Tenant(
                first_name="Marta",
                last_name="Silva",
                email="marta.silva@example.com",
                phone="+351 910 000 000",
                birth_date=date(1990, 5, 17),
                is_active=True,
            ),
        )
        contract = _add(
            db,
            Contract(
                property_id=flat.id,
                tenant_id=tenant.id,
                start_date=today - timedelta(days=344),
                end_date=today + timedelta(days=21),
                monthly_rent=Decimal("950.00"),
                deposit=Decimal("1900.00"),
                payment_day=5,
                status="active",
            ),
        )
        _add(
            db,
            Payment(
                contract_id=contract.id,
                amount=Decimal("950.00"),
                due_date=today.replace(day=5),
                payment_date=today.replace(day=1),
                payment_method="transfer",
                status="paid",
            ),
        )
        _add(
            db,
            Payment(
                contract_id=contract.id,
                amount=Decimal("950.00"),
                due_date=today - timedelta(days=35),
                status="pending",
            ),
        )
        _add(
            db,
            ServiceRequest(
                property_id=flat.id,
                tenant_id=tenant.id,
                title="Kitchen tap leaking",
                description="Constant drip from the mixer tap.",
                category="plumbing",
                priority="medium",
                status="open",
                estimated_cost=Decimal("80.00"),
            ),
        )
        db.commit()

        return SeedResult(user_email=user_email, property_ids=[int(flat.id), int(house.id)], contract_id=int(contract.id))
    finally:
        db.close()
