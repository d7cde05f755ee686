# backend/rentdesk/routers/service_requests.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..auth import get_principal
from ..config import settings
from ..db import get_db
from ..domain.search import filter_rows, service_request_matches
from ..schemas import (
    ServiceRequestCreate,
    ServiceRequestOut,
    ServiceRequestUpdate,
    ServiceRequestWithRelations,
)
from ..services import gateway
from ..services.events_facade import record_write
from ..services.relations import (
    SERVICE_REQUEST_RELATIONS,
    present_service_request,
    service_request_with_relations,
)

router = APIRouter(prefix="/service-requests", tags=["service-requests"])

RESOURCE = "service-requests"


@router.get("", response_model=list[ServiceRequestWithRelations])
def list_service_requests(
    q: Optional[str] = Query(default=None, description="title / property address substring"),
    status: Optional[str] = Query(default=None),
    priority: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.list_limit_max),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    rows = filter_rows(
        gateway.service_requests.list(db, options=SERVICE_REQUEST_RELATIONS), q, service_request_matches
    )
    if status:
        rows = [r for r in rows if r.status == status]
    if priority:
        rows = [r for r in rows if r.priority == priority]
    now = datetime.utcnow()
    return [service_request_with_relations(r, now=now) for r in rows[:limit]]


@router.get("/{request_id}", response_model=ServiceRequestWithRelations)
def get_service_request(request_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    row = gateway.service_requests.get(db, request_id, options=SERVICE_REQUEST_RELATIONS)
    return service_request_with_relations(row)


@router.post("", response_model=ServiceRequestOut)
def create_service_request(
    payload: ServiceRequestCreate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row = gateway.service_requests.create(db, payload.model_dump())
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="create",
        entity_id=row.id,
        after=row.to_dict(),
    )
    return present_service_request(row)


@router.put("/{request_id}", response_model=ServiceRequestOut)
@router.patch("/{request_id}", response_model=ServiceRequestOut)
def update_service_request(
    request_id: int,
    payload: ServiceRequestUpdate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row, before = gateway.service_requests.update(db, request_id, payload.model_dump(exclude_unset=True))
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
    return present_service_request(row)


@router.delete("/{request_id}")
def delete_service_request(
    request_id: int, response: Response, db: Session = Depends(get_db), p=Depends(get_principal)
):
    before = gateway.service_requests.delete(db, request_id)
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="delete",
        entity_id=request_id,
        before=before,
    )
    return {"ok": True, "id": request_id}
