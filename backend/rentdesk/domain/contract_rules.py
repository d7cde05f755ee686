from __future__ import annotations

from datetime import date
from typing import Optional, Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import Contract
from .values import as_date

PAYMENT_DAY_MIN = 1
PAYMENT_DAY_MAX = 28


def _overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """End dates are inclusive."""
    return not (a_end < b_start or b_end < a_start)


def check_contract_terms(data: dict[str, Any]) -> None:
    """
    Cross-field checks pydantic can't see on a partial update:
    end_date >= start_date, payment_day within 1..28.
    """
    s = as_date(data.get("start_date"))
    e = as_date(data.get("end_date"))

    if s is None:
        raise ValidationError("contract start_date is required and must be a date", field="start_date")
    if e is None:
        raise ValidationError("contract end_date is required and must be a date", field="end_date")
    if e < s:
        raise ValidationError("contract end_date cannot be before start_date", field="end_date")

    day = data.get("payment_day")
    if day is not None and not (PAYMENT_DAY_MIN <= int(day) <= PAYMENT_DAY_MAX):
        raise ValidationError(
            f"payment_day must be between {PAYMENT_DAY_MIN} and {PAYMENT_DAY_MAX}",
            field="payment_day",
        )


def find_overlapping_active_contract(
    db: Session,
    *,
    property_id: int,
    start_date: Any,
    end_date: Any,
    ignore_contract_id: Optional[int] = None,
) -> Optional[Contract]:
    """
    One active contract per property is the business intent, not an enforced
    rule; callers decide what to do with a hit.
    """
    s = as_date(start_date)
    e = as_date(end_date)
    if s is None or e is None:
        return None

    q = select(Contract).where(
        Contract.property_id == int(property_id),
        Contract.status == "active",
    )
    if ignore_contract_id is not None:
        q = q.where(Contract.id != int(ignore_contract_id))

    for r in db.scalars(q.order_by(Contract.id.desc())).all():
        r_start = as_date(r.start_date)
        r_end = as_date(r.end_date)
        if r_start is None or r_end is None:
            # corrupt row; skip rather than crash
            continue
        if _overlaps(s, e, r_start, r_end):
            return r
    return None
