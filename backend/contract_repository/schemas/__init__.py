from contract_repository.schemas.contract_types import (
    CategoryCount,
    ContractTypeCreate,
    ContractTypeRead,
    ContractTypeUpdate,
)
from contract_repository.schemas.contracts import (
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
    ContractTypeMini,
    ContractUpdate,
    ContractValueUpdate,
)
from contract_repository.schemas.customers import (
    AccountSummaryRead,
    CustomerRead,
    CustomerValidity,
    SystemHealthRead,
)
from contract_repository.schemas.reports import (
    ContractStatistics,
    DepartmentCount,
    ExpirationReport,
    MonthlyTrend,
    StatusCount,
    StatusValue,
    TotalValue,
)

__all__ = [
    "AccountSummaryRead",
    "BulkSyncResult",
    "CategoryCount",
    "ContractCreate",
    "ContractExtendRequest",
    "ContractHistoryEntry",
    "ContractNumberAvailability",
    "ContractPage",
    "ContractRead",
    "ContractReasonRequest",
    "ContractRenewRequest",
    "ContractRenewResponse",
    "ContractSearchCriteria",
    "ContractStatistics",
    "ContractSummary",
    "ContractTypeCreate",
    "ContractTypeMini",
    "ContractTypeRead",
    "ContractTypeUpdate",
    "ContractUpdate",
    "ContractValueUpdate",
    "CustomerRead",
    "CustomerValidity",
    "DepartmentCount",
    "ExpirationReport",
    "MonthlyTrend",
    "StatusCount",
    "StatusValue",
    "SystemHealthRead",
    "TotalValue",
]
