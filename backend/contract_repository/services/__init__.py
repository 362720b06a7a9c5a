from contract_repository.services import contract_attributes, contract_status
from contract_repository.services.audit import audit_event

__all__ = ["audit_event", "contract_attributes", "contract_status"]
