# backend/rentdesk/routers/contracts.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session, selectinload

from ..auth import get_principal
from ..config import settings
from ..db import get_db
from ..domain.search import contract_matches, filter_rows
from ..models import Contract
from ..schemas import ContractCreate, ContractOut, ContractUpdate, ContractWithRelations
from ..services import gateway
from ..services.events_facade import record_write
from ..services.relations import CONTRACT_RELATIONS, contract_with_relations, present_contract

router = APIRouter(prefix="/contracts", tags=["contracts"])

RESOURCE = "contracts"


@router.get("", response_model=list[ContractWithRelations])
def list_contracts(
    q: Optional[str] = Query(default=None, description="tenant name / property address substring"),
    status: Optional[str] = Query(default=None, description="active|expired|terminated"),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.list_limit_max),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    rows = filter_rows(gateway.contracts.list(db, options=CONTRACT_RELATIONS), q, contract_matches)
    if status:
        rows = [r for r in rows if r.status == status]
    now = datetime.utcnow()
    return [contract_with_relations(r, now=now) for r in rows[:limit]]


@router.get("/{contract_id}", response_model=ContractWithRelations)
def get_contract(contract_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    row = gateway.contracts.get(
        db, contract_id, options=(*CONTRACT_RELATIONS, selectinload(Contract.payments))
    )
    return contract_with_relations(row, include_payments=True)


@router.post("", response_model=ContractOut)
def create_contract(
    payload: ContractCreate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row = gateway.contracts.create(db, payload.model_dump())
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="create",
        entity_id=row.id,
        after=row.to_dict(),
    )
    return present_contract(row)


@router.put("/{contract_id}", response_model=ContractOut)
@router.patch("/{contract_id}", response_model=ContractOut)
def update_contract(
    contract_id: int,
    payload: ContractUpdate,
    response: Response,
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    row, before = gateway.contracts.update(db, contract_id, payload.model_dump(exclude_unset=True))
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="update",
        entity_id=row.id,
        before=before,
        after=row.to_dict(),
    )
    return present_contract(row)


@router.delete("/{contract_id}")
def delete_contract(contract_id: int, response: Response, db: Session = Depends(get_db), p=Depends(get_principal)):
    before = gateway.contracts.delete(db, contract_id)
    record_write(
        db,
        response,
        actor_user_id=p.user_id,
        resource=RESOURCE,
        action="delete",
        entity_id=contract_id,
        before=before,
    )
    return {"ok": True, "id": contract_id}
