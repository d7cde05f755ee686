# backend/rentdesk/routers/users.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_admin
from ..config import settings
from ..db import get_db
from ..domain.search import filter_rows
from ..domain.values import field
from ..schemas import UserCreate, UserOut, UserUpdate
from ..services import gateway
from ..services.events_facade import record_write

router = APIRouter(prefix="/users", tags=["users"])

RESOURCE = "users"


def _user_matches(row, needle: str) -> bool:
    hay = " ".join(str(field(row, k) or "") for k in ("email", "first_name", "last_name")).lower()
    return needle in hay


@router.get("", response_model=list[UserOut])
def list_users(
    q: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.list_limit_max),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    rows = filter_rows(gateway.users.list(db), q, _user_matches)
    return rows[:limit]


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db), p: Principal = Depends(require_admin)):
    return gateway.users.get(db, user_id)


@router.post("", response_model=UserOut)
def create_user(
    payload: UserCreate,
    response: Response,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    row = gateway.users.create(db, payload.model_dump())
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="create",
        entity_id=row.id,
        after=row.to_dict(),
    )
    return row


@router.put("/{user_id}", response_model=UserOut)
@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    response: Response,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_admin),
):
    row, before = gateway.users.update(db, user_id, payload.model_dump(exclude_unset=True))
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
    return row


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    response: Response,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    # role is checked inside the gateway, after the self-delete guard
    before = gateway.users.delete(db, user_id, actor=p)
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="delete",
        entity_id=user_id,
        before=before,
    )
    return {"ok": True, "id": user_id}
