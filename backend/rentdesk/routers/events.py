# backend/rentdesk/routers/events.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..db import get_db
from ..schemas import ChangeEventOut
from ..services.events_facade import notifier

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=list[ChangeEventOut])
def list_events(
    since_id: Optional[int] = Query(default=None, ge=0),
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
    p=Depends(require_admin),
):
    """Change log, oldest first. Poll with since_id=<last seen id>."""
    return notifier.list(db, since_id=since_id, limit=limit)
