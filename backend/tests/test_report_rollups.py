from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from rentdesk.domain.aggregations import (
    expiring_contracts,
    monthly_revenue_trend,
    payment_totals,
    property_status_distribution,
    service_stats,
)


@dataclass
class Pay:
    amount: Any
    status: str
    payment_date: Optional[Any] = None
    due_date: Any = date(2024, 1, 1)
    id: int = 0


@dataclass
class C:
    id: int
    end_date: Any
    status: str = "active"


def test_two_march_payments_sum_into_one_trend_entry():
    pays = [
        Pay(Decimal("1000"), "paid", date(2024, 3, 4)),
        Pay(Decimal("500"), "paid", date(2024, 3, 20)),
    ]
    assert monthly_revenue_trend(pays) == [("2024-03", Decimal("1500.00"))]


def test_trend_keeps_last_six_months_ascending():
    pays = [Pay(Decimal("100"), "paid", date(2023, m, 10)) for m in range(1, 13)]
    trend = monthly_revenue_trend(pays)
    keys = [k for k, _ in trend]
    assert len(trend) == 6
    assert keys == sorted(keys)
    assert keys[0] == "2023-07"
    assert keys[-1] == "2023-12"


def test_trend_ignores_unpaid_and_unparseable_rows():
    pays = [
        Pay(Decimal("100"), "pending", date(2024, 1, 5)),
        Pay(Decimal("200"), "paid", "garbage"),
        Pay("n/a", "paid", date(2024, 1, 5)),
        Pay(Decimal("300"), "paid", "2024-01-09T10:00:00"),
    ]
    assert monthly_revenue_trend(pays) == [("2024-01", Decimal("300.00"))]


def test_property_status_distribution_is_not_zero_filled():
    props = [{"status": "rented"}, {"status": "rented"}, {"status": "available"}]
    assert property_status_distribution(props) == {"rented": 2, "available": 1}


def test_service_stats_counts_and_actual_cost():
    rows = [
        {"status": "open", "priority": "high", "actual_cost": None},
        {"status": "completed", "priority": "high", "actual_cost": Decimal("120.50")},
        {"status": "completed", "priority": "low", "actual_cost": "79.50"},
        {"status": "cancelled", "priority": "urgent", "actual_cost": "lots"},
    ]
    s = service_stats(rows)
    assert s.by_status == {"open": 1, "completed": 2, "cancelled": 1}
    assert s.by_priority == {"high": 2, "low": 1, "urgent": 1}
    assert s.total_cost == Decimal("200.00")


def test_expiring_contracts_ninety_day_window_sorted():
    now = datetime(2024, 1, 1, 8, 0)
    contracts = [
        C(1, date(2024, 3, 15)),
        C(2, date(2024, 1, 20)),
        C(3, date(2024, 6, 1)),  # beyond 90 days
        C(4, date(2023, 12, 31)),  # already ended
        C(5, date(2024, 2, 1), status="terminated"),
        C(6, "not a date"),
    ]
    hits = expiring_contracts(contracts, now=now, window_days=90)
    assert [c.id for c in hits] == [2, 1]


def test_payment_totals_split_by_effective_status():
    now = datetime(2024, 2, 1)
    pays = [
        Pay(Decimal("1500.00"), "pending", due_date=date(2024, 1, 1)),  # effectively overdue
        Pay(Decimal("800.00"), "pending", due_date=date(2024, 3, 1)),
        Pay(Decimal("900.00"), "paid", payment_date=date(2024, 1, 2), due_date=date(2024, 1, 1)),
        Pay(Decimal("50.00"), "overdue", due_date=date(2024, 5, 1)),
    ]
    t = payment_totals(pays, now=now)
    assert t.overdue == Decimal("1550.00")
    assert t.pending == Decimal("800.00")
    assert t.paid == Decimal("900.00")
    assert t.counts == {"paid": 1, "pending": 1, "overdue": 2}
