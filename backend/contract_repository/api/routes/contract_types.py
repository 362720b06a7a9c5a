from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from contract_repository.api.deps import get_current_username, get_db, get_request_id
from contract_repository.models.domain import ContractCategory
from contract_repository.schemas import (
    CategoryCount,
    ContractTypeCreate,
    ContractTypeRead,
    ContractTypeUpdate,
)
from contract_repository.services import contract_types as type_service

router = APIRouter(prefix="/contract-types", tags=["contract-types"])

_DB_DEP = Depends(get_db)
_USER_DEP = Depends(get_current_username)
_RID_DEP = Depends(get_request_id)


@router.post("", response_model=ContractTypeRead, status_code=status.HTTP_201_CREATED)
def create_contract_type(
    payload: ContractTypeCreate,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    return type_service.create_contract_type(db, payload, username=username, request_id=request_id)


@router.get("", response_model=List[ContractTypeRead])
def list_contract_types(
    category: Optional[ContractCategory] = Query(None),
    requires_approval: bool = Query(False, description="Only types that go through approval."),
    db: Session = _DB_DEP,
):
    if category is not None:
        return type_service.contract_types_by_category(db, category)
    if requires_approval:
        return type_service.contract_types_requiring_approval(db)
    return type_service.list_active_contract_types(db)


@router.get("/counts", response_model=List[CategoryCount])
def counts_by_category(db: Session = _DB_DEP):
    counts = type_service.count_by_category(db)
    return [CategoryCount(category=c, count=n) for c, n in sorted(counts.items(), key=lambda kv: kv[0].value)]


@router.post("/seed", response_model=List[ContractTypeRead])
def seed_contract_types(db: Session = _DB_DEP, username: str = _USER_DEP):
    return type_service.seed_standard_contract_types(db, username=username)


@router.get("/code/{type_code}", response_model=ContractTypeRead)
def get_by_code(type_code: str, db: Session = _DB_DEP):
    return type_service.get_contract_type_by_code(db, type_code)


@router.get("/{contract_type_id}", response_model=ContractTypeRead)
def get_contract_type(contract_type_id: int, db: Session = _DB_DEP):
    return type_service.get_contract_type(db, contract_type_id)


@router.put("/{contract_type_id}", response_model=ContractTypeRead)
def update_contract_type(
    contract_type_id: int,
    payload: ContractTypeUpdate,
    version: Optional[int] = Query(None, description="Version last read by the client."),
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    return type_service.update_contract_type(
        db,
        contract_type_id,
        payload,
        username=username,
        expected_version=version,
        request_id=request_id,
    )


@router.delete("/{contract_type_id}", response_model=ContractTypeRead)
def delete_contract_type(
    contract_type_id: int,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    return type_service.delete_contract_type(db, contract_type_id, username=username, request_id=request_id)


@router.post("/{contract_type_id}/restore", response_model=ContractTypeRead)
def restore_contract_type(
    contract_type_id: int,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    return type_service.restore_contract_type(db, contract_type_id, username=username, request_id=request_id)
