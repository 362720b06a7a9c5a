from typing import List

from fastapi import APIRouter, Depends, Query

from contract_repository.api.deps import get_core_banking
from contract_repository.schemas import (
    AccountSummaryRead,
    CustomerRead,
    CustomerValidity,
    SystemHealthRead,
)
from contract_repository.services.core_banking import CoreBankingService

router = APIRouter(prefix="/customers", tags=["customers"])

_CORE_BANKING_DEP = Depends(get_core_banking)


@router.get("/search", response_model=List[CustomerRead])
def search_customers(
    name: str = Query(..., min_length=1),
    core_banking: CoreBankingService = _CORE_BANKING_DEP,
):
    return core_banking.search_customers_by_name(name)


@router.get("/system-health", response_model=SystemHealthRead)
def core_banking_health(core_banking: CoreBankingService = _CORE_BANKING_DEP):
    return core_banking.get_system_health()


@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(customer_id: str, core_banking: CoreBankingService = _CORE_BANKING_DEP):
    return core_banking.get_customer_by_id(customer_id)


@router.get("/{customer_id}/valid", response_model=CustomerValidity)
def is_customer_valid(customer_id: str, core_banking: CoreBankingService = _CORE_BANKING_DEP):
    return CustomerValidity(customer_id=customer_id, valid=core_banking.is_customer_valid(customer_id))


@router.get("/{customer_id}/accounts", response_model=List[AccountSummaryRead])
def customer_accounts(customer_id: str, core_banking: CoreBankingService = _CORE_BANKING_DEP):
    return core_banking.get_customer_accounts(customer_id)
