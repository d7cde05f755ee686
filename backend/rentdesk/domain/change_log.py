# backend/rentdesk/domain/change_log.py
from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from ..models import ChangeEvent

# never copied into the change log
REDACTED_KEYS = frozenset({"password_hash", "password"})


def _json_value(v: Any) -> Any:
    if isinstance(v, Decimal):
        return f"{v:.2f}"
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    return v


def snapshot(values: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Column values made JSON-safe, secrets dropped."""
    if values is None:
        return None
    return {k: _json_value(v) for k, v in values.items() if k not in REDACTED_KEYS}


def changed_fields(before: Optional[dict[str, Any]], after: Optional[dict[str, Any]]) -> list[str]:
    b = snapshot(before) or {}
    a = snapshot(after) or {}
    return sorted(k for k in set(a) | set(b) if k != "updated_at" and a.get(k) != b.get(k))


def record_change(
    db: Session,
    *,
    actor_user_id: Optional[int],
    resource: str,
    action: str,
    entity_id: Any,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
    invalidates: Iterable[str] = (),
) -> ChangeEvent:
    """
    Stage one change row on the session; the caller owns the commit.

    Updates keep only the fields that actually changed (plus the id) on both sides,
    creates and deletes keep the full row.
    """
    b, a = snapshot(before), snapshot(after)
    if b is not None and a is not None:
        keys = set(changed_fields(before, after)) | {"id"}
        b = {k: v for k, v in b.items() if k in keys}
        a = {k: v for k, v in a.items() if k in keys}

    row = ChangeEvent(
        actor_user_id=actor_user_id,
        action=f"{resource}.{action}",
        entity_type=resource,
        entity_id=str(entity_id),
        before_json=json.dumps(b, sort_keys=True) if b is not None else None,
        after_json=json.dumps(a, sort_keys=True) if a is not None else None,
        invalidates_json=json.dumps(sorted(set(invalidates))),
        created_at=datetime.utcnow(),
    )
    db.add(row)
    return row
