# backend/rentdesk/routers/tenants.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..auth import get_principal
from ..config import settings
from ..db import get_db
from ..domain.search import filter_rows, tenant_matches
from ..schemas import TenantCreate, TenantOut, TenantUpdate, TenantWithRelations
from ..services import gateway
from ..services.events_facade import record_write
from ..services.relations import TENANT_RELATIONS, present_tenant, tenant_with_relations

router = APIRouter(prefix="/tenants", tags=["tenants"])

RESOURCE = "tenants"


@router.get("", response_model=list[TenantOut])
def list_tenants(
    q: Optional[str] = Query(default=None, description="name / email substring"),
    active: Optional[bool] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.list_limit_max),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    rows = filter_rows(gateway.tenants.list(db), q, tenant_matches)
    if active is not None:
        rows = [r for r in rows if bool(r.is_active) is active]
    return [present_tenant(r) for r in rows[:limit]]


@router.get("/{tenant_id}", response_model=TenantWithRelations)
def get_tenant(tenant_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    row = gateway.tenants.get(db, tenant_id, options=TENANT_RELATIONS)
    return tenant_with_relations(row)


@router.post("", response_model=TenantOut)
def create_tenant(
    payload: TenantCreate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row = gateway.tenants.create(db, payload.model_dump())
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="create",
        entity_id=row.id,
        after=row.to_dict(),
    )
    return present_tenant(row)


@router.put("/{tenant_id}", response_model=TenantOut)
@router.patch("/{tenant_id}", response_model=TenantOut)
def update_tenant(
    tenant_id: int,
    payload: TenantUpdate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row, before = gateway.tenants.update(db, tenant_id, payload.model_dump(exclude_unset=True))
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
    return present_tenant(row)


@router.delete("/{tenant_id}")
def delete_tenant(tenant_id: int, response: Response, db: Session = Depends(get_db), p=Depends(get_principal)):
    before = gateway.tenants.delete(db, tenant_id)
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="delete",
        entity_id=tenant_id,
        before=before,
    )
    return {"ok": True, "id": tenant_id}
