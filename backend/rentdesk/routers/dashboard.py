# backend/rentdesk/routers/dashboard.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_principal
from ..db import get_db
from ..schemas import DashboardStatsOut
from ..services import dashboard_rollups

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsOut)
def dashboard_stats(db: Session = Depends(get_db), p=Depends(get_principal)):
    """
    Recomputed from the full collections on every call.
    monthlyRevenue covers the current calendar month (UTC), named in `period`.
    """
    return dashboard_rollups.dashboard_stats(db)
