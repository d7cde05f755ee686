from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

CENT = Decimal("0.01")


def field(obj: Any, name: str, default: Any = None) -> Any:
    """Read `name` from an ORM row, dataclass or plain dict."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _utc_naive(v: datetime) -> datetime:
    return v.astimezone(timezone.utc).replace(tzinfo=None) if v.tzinfo else v


def as_date(v: Any) -> Optional[date]:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return _utc_naive(v).date()
    if isinstance(v, date):
        return v
    # ISO strings (with or without a time part)
    try:
        s = str(v).strip()
        if "T" in s or " " in s:
            return _utc_naive(datetime.fromisoformat(s.replace("Z", "+00:00"))).date()
        return date.fromisoformat(s)
    except (TypeError, ValueError):
        return None


def as_instant(v: Any) -> Optional[datetime]:
    """
    Naive UTC datetime for comparisons against `now`; aware values are converted first.
    A bare date becomes midnight of that day.
    """
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return _utc_naive(v)
    d = as_date(v)
    if d is None:
        return None
    return datetime.combine(d, time.min)


def as_decimal(v: Any) -> Optional[Decimal]:
    if v is None or v == "":
        return None
    if isinstance(v, bool):
        return None
    try:
        d = v if isinstance(v, Decimal) else Decimal(str(v))
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not d.is_finite():
        return None
    return d


def money(v: Decimal) -> Decimal:
    return v.quantize(CENT)


def to_float(v: Decimal, places: int = 2) -> float:
    return round(float(v), places)
