# backend/rentdesk/schemas.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, List

from pydantic import AfterValidator, BaseModel, Field, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from .domain import status_rules


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


Money = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]

PropertyStatus = Literal[status_rules.PROPERTY_STATUSES]
ContractStatus = Literal[status_rules.CONTRACT_STATUSES]
PaymentStatus = Literal[status_rules.PAYMENT_STATUSES]
PaymentMethod = Literal[status_rules.PAYMENT_METHODS]
ServiceStatus = Literal[status_rules.SERVICE_STATUSES]
ServicePriority = Literal[status_rules.SERVICE_PRIORITIES]
Role = Literal[status_rules.USER_ROLES]


def _check_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().lower()
    if not v:
        return None
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("email must look like name@domain")
    return v


Email = Annotated[Optional[str], AfterValidator(_check_email)]


# -------------------- Properties --------------------

class PropertyCreate(ApiModel):
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postal_code: Optional[str] = None
    property_type: str = Field(min_length=1)
    area: Optional[int] = Field(default=None, ge=0)
    rooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    floor: Optional[int] = None
    total_floors: Optional[int] = Field(default=None, ge=0)
    rent: Money
    deposit: Optional[Money] = None
    utilities: Optional[Money] = None
    description: Optional[str] = None
    status: PropertyStatus = "available"


class PropertyUpdate(ApiModel):
    address: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    postal_code: Optional[str] = None
    property_type: Optional[str] = Field(default=None, min_length=1)
    area: Optional[int] = Field(default=None, ge=0)
    rooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    floor: Optional[int] = None
    total_floors: Optional[int] = Field(default=None, ge=0)
    rent: Optional[Money] = None
    deposit: Optional[Money] = None
    utilities: Optional[Money] = None
    description: Optional[str] = None
    status: Optional[PropertyStatus] = None


class PropertyOut(PropertyCreate):
    id: int
    created_at: datetime
    updated_at: datetime


# -------------------- Tenants --------------------

class TenantCreate(ApiModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: Optional[Email] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    national_id: Optional[str] = None
    emergency_contact: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True


class TenantUpdate(ApiModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[Email] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    national_id: Optional[str] = None
    emergency_contact: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class TenantOut(TenantCreate):
    id: int
    created_at: datetime
    updated_at: datetime

    # derived on read
    full_name: Optional[str] = None
    age: Optional[int] = None


# -------------------- Contracts --------------------

class ContractCreate(ApiModel):
    property_id: int
    tenant_id: int
    start_date: date
    end_date: date
    monthly_rent: Money
    deposit: Optional[Money] = None
    payment_day: int = Field(default=1, ge=1, le=28)
    terms: Optional[str] = None
    status: ContractStatus = "active"

    @model_validator(mode="after")
    def _dates_in_order(self) -> "ContractCreate":
        if self.end_date < self.start_date:
            raise ValueError("endDate cannot be before startDate")
        return self


class ContractUpdate(ApiModel):
    property_id: Optional[int] = None
    tenant_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    monthly_rent: Optional[Money] = None
    deposit: Optional[Money] = None
    payment_day: Optional[int] = Field(default=None, ge=1, le=28)
    terms: Optional[str] = None
    status: Optional[ContractStatus] = None


class ContractOut(ApiModel):
    id: int
    property_id: int
    tenant_id: int
    start_date: date
    end_date: date
    monthly_rent: Decimal
    deposit: Optional[Decimal] = None
    payment_day: int
    terms: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime

    # derived on read
    expiring_soon: bool = False
    days_remaining: Optional[int] = None


# -------------------- Payments --------------------

class PaymentCreate(ApiModel):
    contract_id: int
    amount: Money
    due_date: date
    payment_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    status: PaymentStatus = "pending"
    notes: Optional[str] = None


class PaymentUpdate(ApiModel):
    contract_id: Optional[int] = None
    amount: Optional[Money] = None
    due_date: Optional[date] = None
    payment_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    status: Optional[PaymentStatus] = None
    notes: Optional[str] = None


class PaymentOut(ApiModel):
    id: int
    contract_id: int
    amount: Decimal
    due_date: date
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    # derived on read; stored status is left untouched
    effective_status: Optional[str] = None
    is_overdue: bool = False


# -------------------- Service requests --------------------

class ServiceRequestCreate(ApiModel):
    property_id: int
    tenant_id: Optional[int] = None
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: Optional[str] = None
    priority: ServicePriority = "medium"
    status: ServiceStatus = "open"
    estimated_cost: Optional[Money] = None
    actual_cost: Optional[Money] = None
    assigned_to: Optional[str] = None
    scheduled_date: Optional[date] = None
    completed_date: Optional[date] = None


class ServiceRequestUpdate(ApiModel):
    property_id: Optional[int] = None
    tenant_id: Optional[int] = None
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    priority: Optional[ServicePriority] = None
    status: Optional[ServiceStatus] = None
    estimated_cost: Optional[Money] = None
    actual_cost: Optional[Money] = None
    assigned_to: Optional[str] = None
    scheduled_date: Optional[date] = None
    completed_date: Optional[date] = None


class ServiceRequestOut(ApiModel):
    id: int
    property_id: int
    tenant_id: Optional[int] = None
    title: str
    description: str
    category: Optional[str] = None
    priority: str
    status: str
    estimated_cost: Optional[Decimal] = None
    actual_cost: Optional[Decimal] = None
    assigned_to: Optional[str] = None
    scheduled_date: Optional[date] = None
    completed_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    # presentation lookups
    category_icon: Optional[str] = None
    category_label: Optional[str] = None
    priority_badge: Optional[str] = None


# -------------------- With relations --------------------

class ContractWithRelations(ContractOut):
    property: Optional[PropertyOut] = None
    tenant: Optional[TenantOut] = None
    payments: Optional[List[PaymentOut]] = None


class PaymentWithRelations(PaymentOut):
    contract: Optional[ContractWithRelations] = None


class ServiceRequestWithRelations(ServiceRequestOut):
    property: Optional[PropertyOut] = None
    tenant: Optional[TenantOut] = None


class PropertyWithRelations(PropertyOut):
    contracts: List[ContractOut] = Field(default_factory=list)
    service_requests: List[ServiceRequestOut] = Field(default_factory=list)


class TenantWithRelations(TenantOut):
    contracts: List[ContractOut] = Field(default_factory=list)
    service_requests: List[ServiceRequestOut] = Field(default_factory=list)


# -------------------- Users / auth --------------------

class UserCreate(ApiModel):
    email: Annotated[str, AfterValidator(_check_email)]
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: Role = "user"
    password: Optional[str] = Field(default=None, min_length=6)


class UserUpdate(ApiModel):
    email: Optional[Email] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: Optional[Role] = None
    password: Optional[str] = Field(default=None, min_length=6)


class UserOut(ApiModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: str
    created_at: datetime
    updated_at: datetime


class LoginIn(ApiModel):
    email: str
    password: str


class PrincipalOut(ApiModel):
    user_id: int
    email: str
    role: str


# -------------------- Dashboard / reports --------------------

class DashboardStatsOut(ApiModel):
    total_properties: int
    active_tenants: int
    monthly_revenue: float
    pending_issues: int
    occupancy_rate: float
    period: str


class RevenuePointOut(ApiModel):
    month: str
    amount: float


class ServiceStatsOut(ApiModel):
    by_status: dict[str, int]
    by_priority: dict[str, int]
    total_cost: float


class PaymentTotalsOut(ApiModel):
    paid: float
    pending: float
    overdue: float
    counts: dict[str, int] = Field(default_factory=dict)


class ReportsOverviewOut(ApiModel):
    stats: DashboardStatsOut
    revenue_trend: List[RevenuePointOut]
    property_status: dict[str, int]
    service_stats: ServiceStatsOut
    expiring_contracts: List[ContractWithRelations]
    payment_totals: PaymentTotalsOut


class ChangeEventOut(ApiModel):
    id: int
    actor_user_id: Optional[int] = None
    action: str
    entity_type: str
    entity_id: str
    invalidates: List[str] = Field(default_factory=list)
    created_at: datetime
