from __future__ import annotations

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import Contract, Payment, Property, ServiceRequest, Tenant, User

EXPORTABLE: dict[str, type] = {
    "properties": Property,
    "tenants": Tenant,
    "contracts": Contract,
    "payments": Payment,
    "service-requests": ServiceRequest,
    "users": User,
}

# never leaves the server
_HIDDEN_COLUMNS = {"password_hash"}


def _cell(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if isinstance(v, Decimal):
        return f"{v:.2f}"
    return str(v)


def columns_for(model: type) -> list[str]:
    return [c for c in model.__table__.columns.keys() if c not in _HIDDEN_COLUMNS]


def rows_to_csv(rows: Iterable[Any], columns: Sequence[str]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(columns)
    for r in rows:
        w.writerow([_cell(getattr(r, c, None)) for c in columns])
    return buf.getvalue()


def export_filename(resource: str, today: Optional[date] = None) -> str:
    today = today or datetime.utcnow().date()
    return f"{resource}-{today.strftime('%Y%m%d')}.csv"


def export_entity(db: Session, resource: str, *, today: Optional[date] = None) -> tuple[str, str]:
    """Returns (filename, csv_text) for one collection, oldest row first."""
    model = EXPORTABLE.get(resource)
    if model is None:
        raise NotFoundError(f"unknown export '{resource}'")
    rows = db.scalars(select(model).order_by(model.id.asc())).all()
    return export_filename(resource, today), rows_to_csv(rows, columns_for(model))
