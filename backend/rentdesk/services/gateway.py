# backend/rentdesk/services/gateway.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import Principal, hash_password
from ..domain.contract_rules import check_contract_terms, find_overlapping_active_contract
from ..errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from ..models import Contract, Payment, Property, ServiceRequest, Tenant, User

log = logging.getLogger("rentdesk.gateway")


@dataclass(frozen=True)
class Reference:
    """Foreign key that must point at an existing row when set."""

    field: str
    model: type
    label: str
    optional: bool = False


@dataclass(frozen=True)
class Dependent:
    """Child rows that block deletion of the parent."""

    model: type
    fk: str
    label: str


@dataclass(frozen=True)
class EntityMeta:
    name: str
    model: type
    required: tuple[str, ...] = ()
    references: tuple[Reference, ...] = ()
    dependents: tuple[Dependent, ...] = ()
    unique: tuple[str, ...] = ()
    validate: Optional[Callable[[Session, dict[str, Any], Optional[int]], None]] = None


def _now() -> datetime:
    return datetime.utcnow()


class CrudGateway:
    """
    Create / read / update / delete for one entity type.

    - referenced rows must exist (ValidationError otherwise)
    - unknown ids raise NotFoundError
    - deletes are RESTRICTED while dependents exist (ConflictError); nothing cascades
    - writes are flushed, not committed; record_write commits them with the change event
    """

    def __init__(self, meta: EntityMeta):
        self.meta = meta

    # ---- reads ----
    def list(self, db: Session, *, limit: Optional[int] = None, options: Sequence[Any] = ()) -> list[Any]:
        model = self.meta.model
        q = select(model).options(*options).order_by(desc(model.id))
        if limit is not None:
            q = q.limit(int(limit))
        return list(db.scalars(q).all())

    def get(self, db: Session, entity_id: int, *, options: Sequence[Any] = ()) -> Any:
        model = self.meta.model
        row = db.scalar(select(model).where(model.id == entity_id).options(*options))
        if row is None:
            raise NotFoundError(f"{self.meta.name} not found")
        return row

    # ---- writes ----
    def create(self, db: Session, data: dict[str, Any]) -> Any:
        data = self._prepare(dict(data))
        self._check_required(data, partial=False)
        self._check_references(db, data)
        self._check_unique(db, data, entity_id=None)
        if self.meta.validate:
            self.meta.validate(db, data, None)

        now = _now()
        row = self.meta.model(**data)
        row.created_at = now
        row.updated_at = now
        db.add(row)
        self._flush(db)
        db.refresh(row)

        log.info(
            "%s.create id=%s",
            self.meta.name,
            row.id,
            extra={"entity": self.meta.name, "entity_id": row.id, "action": "create"},
        )
        return row

    def update(self, db: Session, entity_id: int, changes: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        """Partial update: only keys present in `changes` are written. Returns (row, before)."""
        row = self.get(db, entity_id)
        before = row.to_dict()

        changes = self._prepare(dict(changes))
        self._check_required(changes, partial=True)
        self._check_references(db, changes)
        self._check_unique(db, changes, entity_id=row.id)
        if self.meta.validate:
            merged = {**before, **changes}
            self.meta.validate(db, merged, row.id)

        for k, v in changes.items():
            setattr(row, k, v)
        row.updated_at = _now()

        db.add(row)
        self._flush(db)
        db.refresh(row)

        log.info(
            "%s.update id=%s fields=%s",
            self.meta.name,
            row.id,
            ",".join(sorted(changes)),
            extra={"entity": self.meta.name, "entity_id": row.id, "action": "update"},
        )
        return row, before

    def delete(self, db: Session, entity_id: int) -> dict[str, Any]:
        row = self.get(db, entity_id)
        self._check_dependents(db, row)
        before = row.to_dict()

        db.delete(row)
        self._flush(db)

        log.info(
            "%s.delete id=%s",
            self.meta.name,
            entity_id,
            extra={"entity": self.meta.name, "entity_id": entity_id, "action": "delete"},
        )
        return before

    # ---- checks ----
    def _prepare(self, data: dict[str, Any]) -> dict[str, Any]:
        columns = set(self.meta.model.__table__.columns.keys())
        unknown = sorted(k for k in data if k not in columns or k in ("id", "created_at", "updated_at"))
        if unknown:
            raise ValidationError(f"unknown or read-only fields: {', '.join(unknown)}", field=unknown[0])
        return data

    def _check_required(self, data: dict[str, Any], *, partial: bool) -> None:
        for name in self.meta.required:
            if partial and name not in data:
                continue
            v = data.get(name)
            if v is None or (isinstance(v, str) and not v.strip()):
                raise ValidationError(f"{self.meta.name}.{name} is required", field=name)

    def _check_references(self, db: Session, data: dict[str, Any]) -> None:
        for ref in self.meta.references:
            if ref.field not in data:
                continue
            ref_id = data[ref.field]
            if ref_id is None:
                if ref.optional:
                    continue
                raise ValidationError(f"{self.meta.name}.{ref.field} is required", field=ref.field)
            if db.get(ref.model, ref_id) is None:
                raise ValidationError(
                    f"{self.meta.name}.{ref.field} references missing {ref.label} id={ref_id}",
                    field=ref.field,
                )

    def _check_unique(self, db: Session, data: dict[str, Any], *, entity_id: Optional[int]) -> None:
        model = self.meta.model
        for name in self.meta.unique:
            v = data.get(name)
            if v is None:
                continue
            q = select(model.id).where(getattr(model, name) == v)
            if entity_id is not None:
                q = q.where(model.id != entity_id)
            if db.scalar(q.limit(1)) is not None:
                raise ConflictError(f"{self.meta.name}.{name} '{v}' is already in use", field=name)

    def _check_dependents(self, db: Session, row: Any) -> None:
        blocking: list[str] = []
        for dep in self.meta.dependents:
            n = db.scalar(
                select(func.count()).select_from(dep.model).where(getattr(dep.model, dep.fk) == row.id)
            )
            if n:
                blocking.append(f"{int(n)} {dep.label}")
        if blocking:
            raise ConflictError(
                f"cannot delete {self.meta.name} id={row.id}: still referenced by {', '.join(blocking)}"
            )

    def _flush(self, db: Session) -> None:
        try:
            db.flush()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"{self.meta.name} write rejected by the store: {e.orig}") from e


# -----------------------------
# Entity-specific hooks
# -----------------------------
def _validate_contract(db: Session, data: dict[str, Any], entity_id: Optional[int]) -> None:
    check_contract_terms(data)

    if data.get("status", "active") != "active":
        return
    clash = find_overlapping_active_contract(
        db,
        property_id=data["property_id"],
        start_date=data["start_date"],
        end_date=data["end_date"],
        ignore_contract_id=entity_id,
    )
    if clash is not None:
        log.warning(
            "property id=%s already has overlapping active contract id=%s",
            data["property_id"],
            clash.id,
            extra={"entity": "contract", "entity_id": entity_id},
        )


class UserGateway(CrudGateway):
    """Accepts a plain `password` and stores only its hash; guards self-delete."""

    def _with_password_hash(self, data: dict[str, Any]) -> dict[str, Any]:
        data = dict(data)
        password = data.pop("password", None)
        if password:
            data["password_hash"] = hash_password(password)
        return data

    def create(self, db: Session, data: dict[str, Any]) -> Any:
        return super().create(db, self._with_password_hash(data))

    def update(self, db: Session, entity_id: int, changes: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        return super().update(db, entity_id, self._with_password_hash(changes))

    def delete(self, db: Session, entity_id: int, *, actor: Optional[Principal] = None) -> dict[str, Any]:
        if actor is not None:
            # self-delete is refused whatever the caller's role
            if int(actor.user_id) == int(entity_id):
                raise ConflictError("you cannot delete your own account")
            if not actor.is_admin:
                raise UnauthorizedError("admin role required")
        return super().delete(db, entity_id)


PROPERTY = EntityMeta(
    name="property",
    model=Property,
    required=("address", "city", "property_type", "rent", "status"),
    dependents=(
        Dependent(Contract, "property_id", "contracts"),
        Dependent(ServiceRequest, "property_id", "service requests"),
    ),
)

TENANT = EntityMeta(
    name="tenant",
    model=Tenant,
    required=("first_name", "last_name", "is_active"),
    dependents=(
        Dependent(Contract, "tenant_id", "contracts"),
        Dependent(ServiceRequest, "tenant_id", "service requests"),
    ),
    unique=("email",),
)

CONTRACT = EntityMeta(
    name="contract",
    model=Contract,
    required=("property_id", "tenant_id", "start_date", "end_date", "monthly_rent", "payment_day", "status"),
    references=(
        Reference("property_id", Property, "property"),
        Reference("tenant_id", Tenant, "tenant"),
    ),
    dependents=(Dependent(Payment, "contract_id", "payments"),),
    validate=_validate_contract,
)

PAYMENT = EntityMeta(
    name="payment",
    model=Payment,
    required=("contract_id", "amount", "due_date", "status"),
    references=(Reference("contract_id", Contract, "contract"),),
)

SERVICE_REQUEST = EntityMeta(
    name="service_request",
    model=ServiceRequest,
    required=("property_id", "title", "description", "priority", "status"),
    references=(
        Reference("property_id", Property, "property"),
        Reference("tenant_id", Tenant, "tenant", optional=True),
    ),
)

USER = EntityMeta(
    name="user",
    model=User,
    required=("email", "role"),
    unique=("email",),
)

properties = CrudGateway(PROPERTY)
tenants = CrudGateway(TENANT)
contracts = CrudGateway(CONTRACT)
payments = CrudGateway(PAYMENT)
service_requests = CrudGateway(SERVICE_REQUEST)
users = UserGateway(USER)
