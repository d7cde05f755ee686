from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from fastapi import Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.change_log import record_change
from ..models import ChangeEvent

log = logging.getLogger("rentdesk.events")

INVALIDATE_HEADER = "X-Invalidate-Views"

# Writes to the key resource make every listed view stale.
DEPENDENT_VIEWS: dict[str, tuple[str, ...]] = {
    "properties": ("properties", "dashboard.stats", "reports"),
    "tenants": ("tenants", "dashboard.stats"),
    "contracts": ("contracts", "properties", "dashboard.stats", "reports"),
    "payments": ("payments", "dashboard.stats", "reports"),
    "service-requests": ("service-requests", "dashboard.stats", "reports"),
    "users": ("users",),
}

Listener = Callable[[str, list[str]], None]


def views_for(resource: str) -> list[str]:
    return sorted(set(DEPENDENT_VIEWS.get(resource, (resource,))))


def _loads(s: Optional[str], default: Any) -> Any:
    if not s:
        return default
    try:
        return json.loads(s)
    except ValueError:
        return default


@dataclass(frozen=True)
class ChangeEventRecord:
    id: int
    actor_user_id: Optional[int]
    action: str
    entity_type: str
    entity_id: str
    invalidates: list[str]
    created_at: Optional[datetime]


class ChangeNotifier:
    """
    Records every successful write and tells listeners which views went stale.

    Routers import:
        from ..services.events_facade import notifier
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, fn: Listener) -> Callable[[], None]:
        self._listeners.append(fn)

        def _unsubscribe() -> None:
            if fn in self._listeners:
                self._listeners.remove(fn)

        return _unsubscribe

    def emit(
        self,
        db: Session,
        *,
        actor_user_id: Optional[int],
        resource: str,
        action: str,
        entity_id: Any,
        before: Optional[dict[str, Any]] = None,
        after: Optional[dict[str, Any]] = None,
    ) -> list[str]:
        views = views_for(resource)
        record_change(
            db,
            actor_user_id=actor_user_id,
            resource=resource,
            action=action,
            entity_id=entity_id,
            before=before,
            after=after,
            invalidates=views,
        )
        # single commit: the gateway only flushed the entity row
        db.commit()

        for fn in list(self._listeners):
            try:
                fn(resource, views)
            except Exception:
                # write already committed; listener errors are logged only
                log.exception("change listener failed resource=%s", resource)
        return views

    def list(self, db: Session, *, since_id: Optional[int] = None, limit: int = 200) -> list[ChangeEventRecord]:
        q = select(ChangeEvent).order_by(ChangeEvent.id.asc())
        if since_id is not None:
            q = q.where(ChangeEvent.id > int(since_id))

        rows = db.scalars(q.limit(int(limit))).all()
        return [
            ChangeEventRecord(
                id=int(r.id),
                actor_user_id=r.actor_user_id,
                action=str(r.action),
                entity_type=str(r.entity_type),
                entity_id=str(r.entity_id),
                invalidates=list(_loads(r.invalidates_json, [])),
                created_at=r.created_at,
            )
            for r in rows
        ]


def mark_invalidated(response: Response, views: list[str]) -> None:
    response.headers[INVALIDATE_HEADER] = ",".join(views)


notifier = ChangeNotifier()


def record_write(
    db: Session,
    response: Response,
    *,
    actor_user_id: Optional[int],
    resource: str,
    action: str,
    entity_id: Any,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
) -> list[str]:
    """Router-side shorthand: emit the change and expose the stale views on the response."""
    views = notifier.emit(
        db,
        actor_user_id=actor_user_id,
        resource=resource,
        action=action,
        entity_id=entity_id,
        before=before,
        after=after,
    )
    mark_invalidated(response, views)
    return views
