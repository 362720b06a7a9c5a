from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from contract_repository.api.deps import (
    get_core_banking,
    get_current_username,
    get_db,
    get_request_id,
)
from contract_repository.models.domain import ContractStatus
from contract_repository.schemas import (
    BulkSyncResult,
    ContractCreate,
    ContractExtendRequest,
    ContractHistoryEntry,
    ContractNumberAvailability,
    ContractPage,
    ContractRead,
    ContractReasonRequest,
    ContractRenewRequest,
    ContractRenewResponse,
    ContractSearchCriteria,
    ContractSummary,
    ContractUpdate,
    ContractValueUpdate,
    TotalValue,
)
from contract_repository.services import contract_lifecycle as lifecycle
from contract_repository.services import contracts as contract_service
from contract_repository.services.contract_views import to_contract_read, to_summaries
from contract_repository.services.core_banking import CoreBankingService

router = APIRouter(prefix="/contracts", tags=["contracts"])

_DB_DEP = Depends(get_db)
_USER_DEP = Depends(get_current_username)
_RID_DEP = Depends(get_request_id)
_CORE_BANKING_DEP = Depends(get_core_banking)


@router.post("", response_model=ContractRead, status_code=status.HTTP_201_CREATED)
def create_contract(
    payload: ContractCreate,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
    core_banking: CoreBankingService = _CORE_BANKING_DEP,
):
    contract = contract_service.create_contract(
        db, payload, core_banking=core_banking, username=username, request_id=request_id
    )
    return to_contract_read(contract)


@router.get("", response_model=ContractPage)
def list_contracts(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: Session = _DB_DEP,
):
    items, total = contract_service.list_active_contracts(db, page=page, size=size)
    return ContractPage(items=to_summaries(items), total=total, page=page, size=size)


@router.get("/search", response_model=List[ContractSummary])
def search_contracts(
    q: str = Query(..., min_length=1, description="Number, title, customer name or external party."),
    limit: int = Query(100, ge=1, le=500),
    db: Session = _DB_DEP,
):
    return to_summaries(contract_service.search_contracts(db, q, limit=limit))


@router.post("/search/criteria", response_model=List[ContractSummary])
def find_by_criteria(criteria: ContractSearchCriteria, db: Session = _DB_DEP):
    return to_summaries(contract_service.find_by_criteria(db, criteria))


@router.get("/number-availability", response_model=ContractNumberAvailability)
def number_availability(contract_number: str = Query(..., min_length=1), db: Session = _DB_DEP):
    return ContractNumberAvailability(
        contract_number=contract_number,
        available=contract_service.is_contract_number_available(db, contract_number),
    )


@router.get("/number/{contract_number}", response_model=ContractRead)
def get_by_number(contract_number: str, db: Session = _DB_DEP):
    return to_contract_read(contract_service.get_contract_by_number(db, contract_number))


@router.get("/customer/{customer_id}", response_model=List[ContractSummary])
def by_customer(customer_id: str, db: Session = _DB_DEP):
    return to_summaries(contract_service.contracts_by_customer(db, customer_id))


@router.get("/department/{department}", response_model=List[ContractSummary])
def by_department(department: str, db: Session = _DB_DEP):
    return to_summaries(contract_service.contracts_by_department(db, department))


@router.get("/type/{contract_type_id}", response_model=List[ContractSummary])
def by_type(contract_type_id: int, db: Session = _DB_DEP):
    return to_summaries(contract_service.contracts_by_type(db, contract_type_id))


@router.get("/t24/{t24_customer_id}", response_model=List[ContractSummary])
def by_t24_customer(t24_customer_id: str, db: Session = _DB_DEP):
    return to_summaries(contract_service.contracts_by_t24_customer_id(db, t24_customer_id))


@router.get("/source-system/{source_system}", response_model=List[ContractSummary])
def by_source_system(source_system: str, db: Session = _DB_DEP):
    return to_summaries(contract_service.contracts_by_source_system(db, source_system))


@router.get("/expiring", response_model=List[ContractSummary])
def expiring(
    days: Optional[int] = Query(None, ge=0, le=3650),
    as_of: Optional[date] = Query(None, description="Evaluation date, defaults to today."),
    db: Session = _DB_DEP,
):
    rows = contract_service.expiring_contracts(db, days=days, today=as_of)
    return to_summaries(rows, today=as_of, expiring_threshold_days=days)


@router.get("/expired", response_model=List[ContractSummary])
def expired(as_of: Optional[date] = Query(None), db: Session = _DB_DEP):
    return to_summaries(contract_service.expired_contracts(db, today=as_of), today=as_of)


@router.get("/renewals-due", response_model=List[ContractSummary])
def renewals_due(
    horizon_days: Optional[int] = Query(None, ge=0, le=3650),
    as_of: Optional[date] = Query(None),
    db: Session = _DB_DEP,
):
    rows = contract_service.renewals_due(db, horizon_days=horizon_days, today=as_of)
    return to_summaries(rows, today=as_of)


@router.get("/currently-active", response_model=List[ContractSummary])
def currently_active(as_of: Optional[date] = Query(None), db: Session = _DB_DEP):
    return to_summaries(contract_service.currently_active_contracts(db, today=as_of), today=as_of)


@router.get("/high-value", response_model=List[ContractSummary])
def high_value(threshold: Optional[Decimal] = Query(None, gt=0), db: Session = _DB_DEP):
    return to_summaries(contract_service.high_value_contracts(db, threshold=threshold))


@router.get("/value-range", response_model=List[ContractSummary])
def value_range(
    min_value: Decimal = Query(..., ge=0),
    max_value: Decimal = Query(..., gt=0),
    db: Session = _DB_DEP,
):
    return to_summaries(
        contract_service.contracts_in_value_range(db, min_value=min_value, max_value=max_value)
    )


@router.get("/total-value", response_model=TotalValue)
def total_value(status_filter: Optional[ContractStatus] = Query(None, alias="status"), db: Session = _DB_DEP):
    return TotalValue(
        total_value=contract_service.total_contract_value(db, status=status_filter),
        status=status_filter,
    )


@router.post("/sync/bulk", response_model=BulkSyncResult)
def bulk_sync(
    stale_days: Optional[int] = Query(None, ge=1),
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    core_banking: CoreBankingService = _CORE_BANKING_DEP,
):
    result = contract_service.bulk_sync_customer_data(
        db, core_banking=core_banking, username=username, stale_days=stale_days
    )
    return BulkSyncResult(
        total_processed=result.total_processed,
        success_count=result.success_count,
        error_count=result.error_count,
    )


@router.get("/{contract_id}", response_model=ContractRead)
def get_contract(contract_id: int, db: Session = _DB_DEP):
    return to_contract_read(contract_service.get_contract(db, contract_id))


@router.put("/{contract_id}", response_model=ContractRead)
def update_contract(
    contract_id: int,
    payload: ContractUpdate,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    contract = contract_service.get_contract(db, contract_id)
    return to_contract_read(lifecycle.update(db, contract, payload, username=username, request_id=request_id))


@router.delete("/{contract_id}", response_model=ContractRead)
def delete_contract(
    contract_id: int,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    contract = contract_service.get_contract(db, contract_id)
    return to_contract_read(lifecycle.delete(db, contract, username=username, request_id=request_id))


@router.post("/{contract_id}/restore", response_model=ContractRead)
def restore_contract(
    contract_id: int,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    contract = contract_service.get_contract(db, contract_id, include_deleted=True)
    return to_contract_read(lifecycle.restore(db, contract, username=username, request_id=request_id))


@router.post("/{contract_id}/activate", response_model=ContractRead)
def activate_contract(
    contract_id: int,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    contract = contract_service.get_contract(db, contract_id)
    return to_contract_read(lifecycle.activate(db, contract, username=username, request_id=request_id))


@router.post("/{contract_id}/suspend", response_model=ContractRead)
def suspend_contract(
    contract_id: int,
    payload: ContractReasonRequest,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    contract = contract_service.get_contract(db, contract_id)
    return to_contract_read(
        lifecycle.suspend(db, contract, payload.reason, username=username, request_id=request_id)
    )


@router.post("/{contract_id}/terminate", response_model=ContractRead)
def terminate_contract(
    contract_id: int,
    payload: ContractReasonRequest,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    contract = contract_service.get_contract(db, contract_id)
    return to_contract_read(
        lifecycle.terminate(db, contract, payload.reason, username=username, request_id=request_id)
    )


@router.post("/{contract_id}/renew", response_model=ContractRenewResponse)
def renew_contract(
    contract_id: int,
    payload: ContractRenewRequest,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    contract = contract_service.get_contract(db, contract_id)
    original, renewed = lifecycle.renew(
        db,
        contract,
        payload.new_start_date,
        payload.new_end_date,
        username=username,
        request_id=request_id,
    )
    return ContractRenewResponse(original=to_contract_read(original), renewed=to_contract_read(renewed))


@router.post("/{contract_id}/extend", response_model=ContractRead)
def extend_contract(
    contract_id: int,
    payload: ContractExtendRequest,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    contract = contract_service.get_contract(db, contract_id)
    return to_contract_read(
        lifecycle.extend(db, contract, payload.new_end_date, username=username, request_id=request_id)
    )


@router.put("/{contract_id}/value", response_model=ContractRead)
def update_contract_value(
    contract_id: int,
    payload: ContractValueUpdate,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
):
    contract = contract_service.get_contract(db, contract_id)
    return to_contract_read(
        lifecycle.update_value(db, contract, payload.contract_value, username=username, request_id=request_id)
    )


@router.post("/{contract_id}/sync-customer", response_model=ContractRead)
def sync_customer(
    contract_id: int,
    db: Session = _DB_DEP,
    username: str = _USER_DEP,
    request_id: str = _RID_DEP,
    core_banking: CoreBankingService = _CORE_BANKING_DEP,
):
    contract = contract_service.sync_customer_data(
        db, contract_id, core_banking=core_banking, username=username, request_id=request_id
    )
    return to_contract_read(contract)


@router.get("/{contract_id}/history", response_model=List[ContractHistoryEntry])
def contract_history(contract_id: int, db: Session = _DB_DEP):
    return contract_service.contract_history(db, contract_id)
