from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from contract_repository.models.domain import ContractStatus
from contract_repository.schemas.contracts import ContractSummary


class ContractStatistics(BaseModel):
    total_contracts: int
    active_contracts: int
    expired_contracts: int
    expiring_soon_contracts: int
    total_value: Decimal
    active_value: Decimal


class StatusCount(BaseModel):
    status: ContractStatus
    count: int


class DepartmentCount(BaseModel):
    internal_department: str
    count: int


class MonthlyTrend(BaseModel):
    year: int
    month: int
    count: int


class StatusValue(BaseModel):
    status: ContractStatus
    total_value: Decimal


class ExpirationReport(BaseModel):
    as_of: date
    threshold_days: int
    expired: list[ContractSummary]
    expiring_soon: list[ContractSummary]
    renewal_reminders_due: list[ContractSummary]


class TotalValue(BaseModel):
    total_value: Decimal
    status: Optional[ContractStatus] = None
