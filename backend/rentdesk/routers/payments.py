# backend/rentdesk/routers/payments.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..auth import get_principal
from ..config import settings
from ..db import get_db
from ..domain.search import filter_rows, payment_matches
from ..domain.status_rules import effective_payment_status
from ..schemas import PaymentCreate, PaymentOut, PaymentUpdate, PaymentWithRelations
from ..services import gateway
from ..services.events_facade import record_write
from ..services.relations import PAYMENT_RELATIONS, payment_with_relations, present_payment

router = APIRouter(prefix="/payments", tags=["payments"])

RESOURCE = "payments"


@router.get("", response_model=list[PaymentWithRelations])
def list_payments(
    q: Optional[str] = Query(default=None, description="tenant name / property address substring"),
    status: Optional[str] = Query(default=None, description="effective status: pending|paid|overdue"),
    contract_id: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.list_limit_max),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    now = datetime.utcnow()
    rows = filter_rows(gateway.payments.list(db, options=PAYMENT_RELATIONS), q, payment_matches)
    if contract_id is not None:
        rows = [r for r in rows if r.contract_id == contract_id]
    if status:
        rows = [r for r in rows if effective_payment_status(r.status, r.due_date, now=now) == status]
    return [payment_with_relations(r, now=now) for r in rows[:limit]]


@router.get("/{payment_id}", response_model=PaymentWithRelations)
def get_payment(payment_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    row = gateway.payments.get(db, payment_id, options=PAYMENT_RELATIONS)
    return payment_with_relations(row)


@router.post("", response_model=PaymentOut)
def create_payment(
    payload: PaymentCreate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row = gateway.payments.create(db, payload.model_dump())
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="create",
        entity_id=row.id,
        after=row.to_dict(),
    )
    return present_payment(row)


@router.put("/{payment_id}", response_model=PaymentOut)
@router.patch("/{payment_id}", response_model=PaymentOut)
def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row, before = gateway.payments.update(db, payment_id, payload.model_dump(exclude_unset=True))
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="update",
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    return present_payment(row)


@router.delete("/{payment_id}")
def delete_payment(payment_id: int, response: Response, db: Session = Depends(get_db), p=Depends(get_principal)):
    before = gateway.payments.delete(db, payment_id)
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="delete",
        entity_id=payment_id,
        before=before,
    )
    return {"ok": True, "id": payment_id}
