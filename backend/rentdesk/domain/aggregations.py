# backend/rentdesk/domain/aggregations.py
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field as dc_field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Sequence

from .status_rules import is_effectively_overdue, is_expiring_soon, is_open_issue
from .values import as_date, as_decimal, as_instant, field, money

log = logging.getLogger("rentdesk.aggregations")

ZERO = Decimal("0")


def month_bounds(yyyy_mm: str) -> tuple[date, date]:
    y, m = [int(x) for x in yyyy_mm.split("-")]
    last_day = calendar.monthrange(y, m)[1]
    return date(y, m, 1), date(y, m, last_day)


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def _now_date(now: Any) -> date:
    inst = as_instant(now) if now is not None else datetime.utcnow()
    if inst is None:
        raise TypeError(f"now must be a date or datetime, got {type(now).__name__}")
    return inst.date()


def _skip(kind: str, row: Any, reason: str) -> None:
    log.debug("aggregation skipped %s id=%s: %s", kind, field(row, "id"), reason)


@dataclass(frozen=True)
class DashboardStats:
    total_properties: int
    active_tenants: int
    monthly_revenue: Decimal
    pending_issues: int
    occupancy_rate: float
    period: str


@dataclass(frozen=True)
class ServiceStats:
    by_status: dict[str, int]
    by_priority: dict[str, int]
    total_cost: Decimal


@dataclass(frozen=True)
class PaymentTotals:
    paid: Decimal
    pending: Decimal
    overdue: Decimal
    counts: dict[str, int] = dc_field(default_factory=dict)


# -----------------------------
# Dashboard
# -----------------------------
def occupancy_rate(properties: Sequence[Any]) -> float:
    """Share of properties in `rented` status, as a percentage in [0, 100]."""
    total = len(properties)
    if total == 0:
        return 0.0
    rented = sum(1 for p in properties if field(p, "status") == "rented")
    return round(rented / total * 100, 2)


def monthly_revenue(payments: Iterable[Any], *, now: Any = None) -> tuple[Decimal, str]:
    """
    Sum of paid amounts whose payment_date falls in the calendar month of `now`.
    Returns (amount, "YYYY-MM").
    """
    period = month_key(_now_date(now))
    start, end = month_bounds(period)

    total = ZERO
    for p in payments:
        if field(p, "status") != "paid":
            continue
        paid_on = as_date(field(p, "payment_date"))
        if paid_on is None:
            _skip("payment", p, "missing or unparseable payment_date")
            continue
        if not (start <= paid_on <= end):
            continue
        amount = as_decimal(field(p, "amount"))
        if amount is None:
            _skip("payment", p, "non-numeric amount")
            continue
        total += amount
    return money(total), period


def dashboard_stats(
    *,
    properties: Sequence[Any],
    tenants: Iterable[Any],
    payments: Iterable[Any],
    service_requests: Iterable[Any],
    now: Any = None,
) -> DashboardStats:
    revenue, period = monthly_revenue(payments, now=now)
    return DashboardStats(
        total_properties=len(properties),
        active_tenants=sum(1 for t in tenants if field(t, "is_active") is True),
        monthly_revenue=revenue,
        pending_issues=sum(1 for r in service_requests if is_open_issue(field(r, "status"))),
        occupancy_rate=occupancy_rate(properties),
        period=period,
    )


# -----------------------------
# Reports
# -----------------------------
def monthly_revenue_trend(payments: Iterable[Any], *, months: int = 6) -> list[tuple[str, Decimal]]:
    """
    Paid amounts grouped by payment_date year-month, ascending, last `months` groups.
    Keys are zero-padded YYYY-MM so plain string ordering is chronological.
    """
    buckets: dict[str, Decimal] = {}
    for p in payments:
        if field(p, "status") != "paid":
            continue
        paid_on = as_date(field(p, "payment_date"))
        if paid_on is None:
            _skip("payment", p, "missing or unparseable payment_date")
            continue
        amount = as_decimal(field(p, "amount"))
        if amount is None:
            _skip("payment", p, "non-numeric amount")
            continue
        key = month_key(paid_on)
        buckets[key] = buckets.get(key, ZERO) + amount

    ordered = sorted(buckets.items(), key=lambda kv: kv[0])
    if months <= 0:
        return []
    return [(k, money(v)) for k, v in ordered[-months:]]


def property_status_distribution(properties: Iterable[Any]) -> dict[str, int]:
    """Count per status actually present; absent statuses are not zero-filled."""
    out: dict[str, int] = {}
    for p in properties:
        status = field(p, "status")
        out[status] = out.get(status, 0) + 1
    return out


def service_stats(service_requests: Iterable[Any]) -> ServiceStats:
    by_status: dict[str, int] = {}
    by_priority: dict[str, int] = {}
    total_cost = ZERO

    for r in service_requests:
        status = field(r, "status")
        priority = field(r, "priority")
        by_status[status] = by_status.get(status, 0) + 1
        by_priority[priority] = by_priority.get(priority, 0) + 1

        raw_cost = field(r, "actual_cost")
        if raw_cost is None:
            continue
        cost = as_decimal(raw_cost)
        if cost is None:
            _skip("service_request", r, "non-numeric actual_cost")
            continue
        total_cost += cost

    return ServiceStats(by_status=by_status, by_priority=by_priority, total_cost=money(total_cost))


def expiring_contracts(contracts: Iterable[Any], *, now: Any = None, window_days: int = 90) -> list[Any]:
    """Active contracts ending strictly after now and within window_days, soonest first."""
    now = now if now is not None else datetime.utcnow()
    hits = [
        c
        for c in contracts
        if is_expiring_soon(field(c, "end_date"), field(c, "status"), now=now, window_days=window_days)
    ]
    return sorted(hits, key=lambda c: as_instant(field(c, "end_date")))


def payment_totals(payments: Iterable[Any], *, now: Any = None) -> PaymentTotals:
    """
    Amount sums by effective status.
    A pending payment past its due date counts as overdue, not pending.
    """
    now = now if now is not None else datetime.utcnow()
    sums = {"paid": ZERO, "pending": ZERO, "overdue": ZERO}
    counts = {"paid": 0, "pending": 0, "overdue": 0}

    for p in payments:
        amount = as_decimal(field(p, "amount"))
        if amount is None:
            _skip("payment", p, "non-numeric amount")
            continue
        status = field(p, "status")
        if is_effectively_overdue(status, field(p, "due_date"), now=now):
            bucket = "overdue"
        elif status in ("paid", "pending"):
            bucket = status
        else:
            continue
        sums[bucket] += amount
        counts[bucket] += 1

    return PaymentTotals(
        paid=money(sums["paid"]),
        pending=money(sums["pending"]),
        overdue=money(sums["overdue"]),
        counts=counts,
    )
