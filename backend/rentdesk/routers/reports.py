# backend/rentdesk/routers/reports.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_principal
from ..db import get_db
from ..schemas import (
    ContractWithRelations,
    PaymentTotalsOut,
    ReportsOverviewOut,
    RevenuePointOut,
    ServiceStatsOut,
)
from ..services import dashboard_rollups

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/revenue-trend", response_model=list[RevenuePointOut])
def revenue_trend(
    months: Optional[int] = Query(default=None, ge=1, le=120),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    return dashboard_rollups.revenue_trend(db, months=months)


@router.get("/property-status", response_model=dict[str, int])
def property_status(db: Session = Depends(get_db), p=Depends(get_principal)):
    return dashboard_rollups.property_status(db)


@router.get("/service-stats", response_model=ServiceStatsOut)
def service_stats(db: Session = Depends(get_db), p=Depends(get_principal)):
    return dashboard_rollups.service_stats(db)


@router.get("/expiring-contracts", response_model=list[ContractWithRelations])
def expiring_contracts(
    days: Optional[int] = Query(default=None, ge=1, le=3650),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    return dashboard_rollups.expiring_contracts(db, window_days=days)


@router.get("/payment-totals", response_model=PaymentTotalsOut)
def payment_totals(db: Session = Depends(get_db), p=Depends(get_principal)):
    return dashboard_rollups.payment_totals(db)


@router.get("/overview", response_model=ReportsOverviewOut)
def overview(db: Session = Depends(get_db), p=Depends(get_principal)):
    return dashboard_rollups.reports_overview(db)
