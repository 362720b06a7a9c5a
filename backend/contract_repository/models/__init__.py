from contract_repository.models.domain import (  # noqa: F401
    AuditLog,
    Contract,
    ContractCategory,
    ContractStatus,
    ContractType,
    RiskCategory,
    RiskLevel,
    default_risk_category,
)

__all__ = [
    "AuditLog",
    "Contract",
    "ContractCategory",
    "ContractStatus",
    "ContractType",
    "RiskCategory",
    "RiskLevel",
    "default_risk_category",
]
