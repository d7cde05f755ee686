# backend/rentdesk/routers/auth.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import create_access_token, get_principal, verify_password
from ..config import settings
from ..db import get_db
from ..models import User
from ..schemas import LoginIn, PrincipalOut

router = APIRouter(tags=["auth"])


def _set_auth_cookie(response: Response, user: User) -> None:
    token = create_access_token(user_id=int(user.id), role=str(user.role))
    response.set_cookie(
        settings.jwt_cookie_name,
        token,
        httponly=True,
        secure=bool(settings.jwt_cookie_secure),
        samesite=str(settings.jwt_cookie_samesite),
        max_age=int(settings.jwt_exp_minutes) * 60,
        path="/",
    )


@router.post("/login", response_model=PrincipalOut)
def login(payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    user = db.scalar(select(User).where(User.email == email))
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    _set_auth_cookie(response, user)
    return PrincipalOut(user_id=int(user.id), email=str(user.email), role=str(user.role))


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(settings.jwt_cookie_name, path="/")
    return {"ok": True}


@router.get("/auth/demo-login", response_model=PrincipalOut)
def demo_login(response: Response, db: Session = Depends(get_db)):
    """
    Signs in as the shared demo account, creating it (as admin) on first use.
    Disabled outside local/dev via settings.demo_login_enabled.
    """
    if not settings.demo_login_enabled:
        raise HTTPException(status_code=404, detail="Demo login disabled")

    email = settings.demo_user_email.strip().lower()
    user = db.scalar(select(User).where(User.email == email))
    if user is None:
        now = datetime.utcnow()
        user = User(
            email=email,
            first_name="Demo",
            last_name="User",
            role="admin",
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

    _set_auth_cookie(response, user)
    return PrincipalOut(user_id=int(user.id), email=str(user.email), role=str(user.role))


@router.get("/auth/user", response_model=PrincipalOut)
def current_user(p=Depends(get_principal)):
    return PrincipalOut(user_id=p.user_id, email=p.email, role=p.role)
