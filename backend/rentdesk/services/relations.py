# backend/rentdesk/services/relations.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import selectinload

from ..config import settings
from ..domain.status_rules import (
    age_on,
    category_presentation,
    days_remaining,
    effective_payment_status,
    is_effectively_overdue,
    is_expiring_soon,
    priority_presentation,
)
from ..models import Contract, Payment, Property, ServiceRequest, Tenant
from ..schemas import (
    ContractOut,
    ContractWithRelations,
    PaymentOut,
    PaymentWithRelations,
    PropertyOut,
    PropertyWithRelations,
    ServiceRequestOut,
    ServiceRequestWithRelations,
    TenantOut,
    TenantWithRelations,
)

# Eager-load options so a with-relations list is a fixed number of queries.
CONTRACT_RELATIONS = (selectinload(Contract.property), selectinload(Contract.tenant))
PAYMENT_RELATIONS = (
    selectinload(Payment.contract).selectinload(Contract.property),
    selectinload(Payment.contract).selectinload(Contract.tenant),
)
SERVICE_REQUEST_RELATIONS = (selectinload(ServiceRequest.property), selectinload(ServiceRequest.tenant))
PROPERTY_RELATIONS = (selectinload(Property.contracts), selectinload(Property.service_requests))
TENANT_RELATIONS = (selectinload(Tenant.contracts), selectinload(Tenant.service_requests))


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.utcnow()


# -----------------------------
# Flat rows + derived fields
# -----------------------------
def present_property(row: Any) -> PropertyOut:
    return PropertyOut.model_validate(row)


def present_tenant(row: Any, *, now: Optional[datetime] = None) -> TenantOut:
    out = TenantOut.model_validate(row)
    return out.model_copy(
        update={
            "full_name": f"{row.first_name} {row.last_name}".strip(),
            "age": age_on(row.birth_date, _now(now).date()),
        }
    )


def present_contract(row: Any, *, now: Optional[datetime] = None) -> ContractOut:
    now = _now(now)
    out = ContractOut.model_validate(row)
    return out.model_copy(
        update={
            "expiring_soon": is_expiring_soon(
                row.end_date, row.status, now=now, window_days=settings.expiring_soon_days
            ),
            "days_remaining": days_remaining(row.end_date, now=now),
        }
    )


def present_payment(row: Any, *, now: Optional[datetime] = None) -> PaymentOut:
    now = _now(now)
    out = PaymentOut.model_validate(row)
    return out.model_copy(
        update={
            "effective_status": effective_payment_status(row.status, row.due_date, now=now),
            "is_overdue": is_effectively_overdue(row.status, row.due_date, now=now),
        }
    )


def present_service_request(row: Any) -> ServiceRequestOut:
    cat = category_presentation(row.category)
    prio = priority_presentation(row.priority)
    out = ServiceRequestOut.model_validate(row)
    return out.model_copy(
        update={
            "category_icon": cat.icon,
            "category_label": cat.label,
            "priority_badge": prio.css_class,
        }
    )


# -----------------------------
# Joined views. A missing related row resolves to None instead of failing.
# -----------------------------
def contract_with_relations(
    row: Any, *, now: Optional[datetime] = None, include_payments: bool = False
) -> ContractWithRelations:
    now = _now(now)
    base = present_contract(row, now=now).model_dump()
    prop = getattr(row, "property", None)
    tenant = getattr(row, "tenant", None)
    payments = None
    if include_payments:
        payments = [present_payment(p, now=now) for p in (getattr(row, "payments", None) or [])]
    return ContractWithRelations(
        **base,
        property=present_property(prop) if prop is not None else None,
        tenant=present_tenant(tenant, now=now) if tenant is not None else None,
        payments=payments,
    )


def payment_with_relations(row: Any, *, now: Optional[datetime] = None) -> PaymentWithRelations:
    now = _now(now)
    base = present_payment(row, now=now).model_dump()
    contract = getattr(row, "contract", None)
    return PaymentWithRelations(
        **base,
        contract=contract_with_relations(contract, now=now) if contract is not None else None,
    )


def service_request_with_relations(
    row: Any, *, now: Optional[datetime] = None
) -> ServiceRequestWithRelations:
    now = _now(now)
    base = present_service_request(row).model_dump()
    prop = getattr(row, "property", None)
    tenant = getattr(row, "tenant", None)
    return ServiceRequestWithRelations(
        **base,
        property=present_property(prop) if prop is not None else None,
        tenant=present_tenant(tenant, now=now) if tenant is not None else None,
    )


def property_with_relations(row: Any, *, now: Optional[datetime] = None) -> PropertyWithRelations:
    now = _now(now)
    base = present_property(row).model_dump()
    return PropertyWithRelations(
        **base,
        contracts=[present_contract(c, now=now) for c in row.contracts],
        service_requests=[present_service_request(s) for s in row.service_requests],
    )


def tenant_with_relations(row: Any, *, now: Optional[datetime] = None) -> TenantWithRelations:
    now = _now(now)
    base = present_tenant(row, now=now).model_dump()
    return TenantWithRelations(
        **base,
        contracts=[present_contract(c, now=now) for c in row.contracts],
        service_requests=[present_service_request(s) for s in row.service_requests],
    )
