# backend/rentdesk/domain/status_rules.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional

from .values import as_date, as_instant

PROPERTY_STATUSES = ("available", "rented", "maintenance", "unavailable")
CONTRACT_STATUSES = ("active", "expired", "terminated")
PAYMENT_STATUSES = ("pending", "paid", "overdue")
PAYMENT_METHODS = ("transfer", "cash", "card")
SERVICE_STATUSES = ("open", "in_progress", "completed", "cancelled")
SERVICE_PRIORITIES = ("low", "medium", "high", "urgent")
USER_ROLES = ("user", "admin")

OPEN_SERVICE_STATUSES = frozenset({"open", "in_progress"})


@dataclass(frozen=True)
class Presentation:
    key: str
    label: str
    icon: Optional[str] = None
    css_class: Optional[str] = None


_CATEGORY_ICONS = {
    "plumbing": "🔧",
    "electrical": "⚡",
    "heating": "🔥",
    "general": "🏠",
}

_DEFAULT_CATEGORY = Presentation(key="general", label="General", icon="🏠")
_DEFAULT_PRIORITY = Presentation(key="medium", label="Medium", css_class="priority-medium")


def _label(key: str) -> str:
    return key.replace("_", " ").capitalize()


def _instant(now: Any) -> datetime:
    if now is None:
        return datetime.utcnow()
    inst = as_instant(now)
    if inst is None:
        raise TypeError(f"now must be a date or datetime, got {type(now).__name__}")
    return inst


# -----------------------------
# Contracts
# -----------------------------
def is_expiring_soon(end_date: Any, status: Optional[str], *, now: Any = None, window_days: int = 30) -> bool:
    """
    Active contract whose end falls in (now, now + window_days].
    End dates compare as midnight of that day, so a contract ending today is
    already past once the day has started.
    """
    if status != "active":
        return False
    end = as_instant(end_date)
    if end is None:
        return False
    t = _instant(now)
    return t < end <= t + timedelta(days=window_days)


def days_remaining(end_date: Any, *, now: Any = None) -> Optional[int]:
    """Whole days until end_date, rounded up (negative once past)."""
    end = as_instant(end_date)
    if end is None:
        return None
    delta = end - _instant(now)
    return math.ceil(delta.total_seconds() / 86400)


# -----------------------------
# Payments
# -----------------------------
def is_effectively_overdue(status: Optional[str], due_date: Any, *, now: Any = None) -> bool:
    """
    Display-time classification; never written back to the stored status.
    overdue  <=>  status == overdue  OR  (status == pending AND due_date < now)
    """
    if status == "overdue":
        return True
    if status != "pending":
        return False
    due = as_instant(due_date)
    if due is None:
        return False
    return due < _instant(now)


def effective_payment_status(status: Optional[str], due_date: Any, *, now: Any = None) -> str:
    if is_effectively_overdue(status, due_date, now=now):
        return "overdue"
    return str(status or "pending")


# -----------------------------
# Service requests
# -----------------------------
def category_presentation(category: Optional[str]) -> Presentation:
    key = (category or "").strip().lower()
    icon = _CATEGORY_ICONS.get(key)
    if icon is None:
        return _DEFAULT_CATEGORY
    return Presentation(key=key, label=_label(key), icon=icon)


def priority_presentation(priority: Optional[str]) -> Presentation:
    key = (priority or "").strip().lower()
    if key not in SERVICE_PRIORITIES:
        return _DEFAULT_PRIORITY
    return Presentation(key=key, label=_label(key), css_class=f"priority-{key}")


def is_open_issue(status: Optional[str]) -> bool:
    return status in OPEN_SERVICE_STATUSES


# -----------------------------
# Tenants
# -----------------------------
def age_on(birth_date: Any, today: Optional[date] = None) -> Optional[int]:
    born = as_date(birth_date)
    if born is None:
        return None
    today = today or datetime.utcnow().date()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age
