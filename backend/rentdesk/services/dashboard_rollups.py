# backend/rentdesk/services/dashboard_rollups.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..domain import aggregations as agg
from ..domain.values import to_float
from ..models import Contract, Payment, Property, ServiceRequest, Tenant
from ..schemas import (
    DashboardStatsOut,
    PaymentTotalsOut,
    ReportsOverviewOut,
    RevenuePointOut,
    ServiceStatsOut,
)
from .relations import CONTRACT_RELATIONS, contract_with_relations


@dataclass(frozen=True)
class Collections:
    properties: list[Property]
    tenants: list[Tenant]
    contracts: list[Contract]
    payments: list[Payment]
    service_requests: list[ServiceRequest]


def load_collections(db: Session) -> Collections:
    """One snapshot of every collection the views are computed from."""
    return Collections(
        properties=list(db.scalars(select(Property)).all()),
        tenants=list(db.scalars(select(Tenant)).all()),
        contracts=list(db.scalars(select(Contract).options(*CONTRACT_RELATIONS)).all()),
        payments=list(db.scalars(select(Payment)).all()),
        service_requests=list(db.scalars(select(ServiceRequest)).all()),
    )


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.utcnow()


# -----------------------------
# Dashboard
# -----------------------------
def stats_out(stats: agg.DashboardStats) -> DashboardStatsOut:
    return DashboardStatsOut(
        total_properties=stats.total_properties,
        active_tenants=stats.active_tenants,
        monthly_revenue=to_float(stats.monthly_revenue),
        pending_issues=stats.pending_issues,
        occupancy_rate=stats.occupancy_rate,
        period=stats.period,
    )


def dashboard_stats(db: Session, *, now: Optional[datetime] = None, data: Optional[Collections] = None) -> DashboardStatsOut:
    data = data or load_collections(db)
    stats = agg.dashboard_stats(
        properties=data.properties,
        tenants=data.tenants,
        payments=data.payments,
        service_requests=data.service_requests,
        now=_now(now),
    )
    return stats_out(stats)


# -----------------------------
# Reports
# -----------------------------
def revenue_trend(db: Session, *, months: Optional[int] = None, data: Optional[Collections] = None) -> list[RevenuePointOut]:
    data = data or load_collections(db)
    n = settings.revenue_trend_months if months is None else int(months)
    return [
        RevenuePointOut(month=k, amount=to_float(v))
        for k, v in agg.monthly_revenue_trend(data.payments, months=n)
    ]


def property_status(db: Session, *, data: Optional[Collections] = None) -> dict[str, int]:
    data = data or load_collections(db)
    return agg.property_status_distribution(data.properties)


def service_stats(db: Session, *, data: Optional[Collections] = None) -> ServiceStatsOut:
    data = data or load_collections(db)
    s = agg.service_stats(data.service_requests)
    return ServiceStatsOut(by_status=s.by_status, by_priority=s.by_priority, total_cost=to_float(s.total_cost))


def expiring_contracts(
    db: Session,
    *,
    now: Optional[datetime] = None,
    window_days: Optional[int] = None,
    data: Optional[Collections] = None,
) -> list[Any]:
    data = data or load_collections(db)
    now = _now(now)
    days = settings.expiring_report_days if window_days is None else int(window_days)
    rows = agg.expiring_contracts(data.contracts, now=now, window_days=days)
    return [contract_with_relations(c, now=now) for c in rows]


def payment_totals(db: Session, *, now: Optional[datetime] = None, data: Optional[Collections] = None) -> PaymentTotalsOut:
    data = data or load_collections(db)
    t = agg.payment_totals(data.payments, now=_now(now))
    return PaymentTotalsOut(
        paid=to_float(t.paid),
        pending=to_float(t.pending),
        overdue=to_float(t.overdue),
        counts=t.counts,
    )


def reports_overview(db: Session, *, now: Optional[datetime] = None) -> ReportsOverviewOut:
    """Every report computed from a single snapshot of the collections."""
    now = _now(now)
    data = load_collections(db)
    return ReportsOverviewOut(
        stats=dashboard_stats(db, now=now, data=data),
        revenue_trend=revenue_trend(db, data=data),
        property_status=property_status(db, data=data),
        service_stats=service_stats(db, data=data),
        expiring_contracts=expiring_contracts(db, now=now, data=data),
        payment_totals=payment_totals(db, now=now, data=data),
    )
