# backend/rentdesk/routers/export.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..errors import UnauthorizedError
from ..services.exporter import export_entity

router = APIRouter(prefix="/export", tags=["export"])


@router.get("/{entity}")
def export_csv(entity: str, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    if entity == "users" and not p.is_admin:
        raise UnauthorizedError("admin role required")

    filename, body = export_entity(db, entity)
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
