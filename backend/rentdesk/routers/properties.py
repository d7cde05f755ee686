# backend/rentdesk/routers/properties.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..auth import get_principal
from ..config import settings
from ..db import get_db
from ..domain.search import filter_rows, property_matches
from ..schemas import PropertyCreate, PropertyOut, PropertyUpdate, PropertyWithRelations
from ..services import gateway
from ..services.events_facade import record_write
from ..services.relations import PROPERTY_RELATIONS, present_property, property_with_relations

router = APIRouter(prefix="/properties", tags=["properties"])

RESOURCE = "properties"


@router.get("", response_model=list[PropertyOut])
def list_properties(
    q: Optional[str] = Query(default=None, description="address / city substring"),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.list_limit_max),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    rows = filter_rows(gateway.properties.list(db), q, property_matches)
    return [present_property(r) for r in rows[:limit]]


@router.get("/{property_id}", response_model=PropertyWithRelations)
def get_property(property_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    row = gateway.properties.get(db, property_id, options=PROPERTY_RELATIONS)
    return property_with_relations(row)


@router.post("", response_model=PropertyOut)
def create_property(
    payload: PropertyCreate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row = gateway.properties.create(db, payload.model_dump())
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="create",
        entity_id=row.id,
        after=row.to_dict(),
    )
    return present_property(row)


@router.put("/{property_id}", response_model=PropertyOut)
@router.patch("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: int,
    payload: PropertyUpdate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row, before = gateway.properties.update(db, property_id, payload.model_dump(exclude_unset=True))
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
    return present_property(row)


@router.delete("/{property_id}")
def delete_property(property_id: int, response: Response, db: Session = Depends(get_db), p=Depends(get_principal)):
    before = gateway.properties.delete(db, property_id)
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="delete",
        entity_id=property_id,
        before=before,
    )
    return {"ok": True, "id": property_id}
