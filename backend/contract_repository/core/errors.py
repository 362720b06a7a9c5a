from __future__ import annotations

from typing import Any


class ContractRepositoryError(Exception):
    """Base business error.

    Carries a stable machine code, the offending parameters and the HTTP status
    the API layer should answer with. Business errors are never retried.
    """

    code = "BUSINESS_ERROR"
    status_code = 400

    def __init__(self, message: str, *params: Any):
        super().__init__(message)
        self.message = message
        self.params = tuple(params)

    def to_dict(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "code": self.code,
            "params": [p if isinstance(p, (int, float, bool)) or p is None else str(p) for p in self.params],
        }


class NotFound(ContractRepositoryError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f"{resource} not found: {identifier}", resource, identifier)
        self.resource = resource
        self.identifier = identifier


class InvalidContractDates(ContractRepositoryError):
    code = "INVALID_CONTRACT_DATES"


class InvalidContractValue(ContractRepositoryError):
    code = "INVALID_CONTRACT_VALUE"

    def __init__(self, value: Any):
        super().__init__(f"Contract value must be positive: {value}", value)


class MissingRequiredField(ContractRepositoryError):
    code = "MISSING_REQUIRED_FIELD"

    def __init__(self, field: str):
        super().__init__(f"{field} is required", field)
        self.field = field


class ContractNumberExists(ContractRepositoryError):
    code = "CONTRACT_NUMBER_EXISTS"
    status_code = 409

    def __init__(self, contract_number: str):
        super().__init__(f"Contract number already exists: {contract_number}", contract_number)
        self.contract_number = contract_number


class ContractTypeExists(ContractRepositoryError):
    code = "CONTRACT_TYPE_EXISTS"
    status_code = 409

    def __init__(self, type_code: str):
        super().__init__(f"Contract type code already exists: {type_code}", type_code)


class InvalidStatusTransition(ContractRepositoryError):
    code = "INVALID_STATUS_TRANSITION"
    status_code = 409

    def __init__(self, from_status: Any, to_status: Any):
        from_value = getattr(from_status, "value", from_status)
        to_value = getattr(to_status, "value", to_status)
        super().__init__(
            f"Cannot change contract status from '{from_value}' to '{to_value}'",
            from_value,
            to_value,
        )
        self.from_status = from_status
        self.to_status = to_status


class ContractNotActivatable(ContractRepositoryError):
    code = "CONTRACT_NOT_ACTIVATABLE"
    status_code = 422

    def __init__(self, reason: str):
        super().__init__(f"Contract cannot be activated: {reason}", reason)
        self.reason = reason


class ContractNotEditable(ContractRepositoryError):
    code = "CONTRACT_NOT_EDITABLE"
    status_code = 409

    def __init__(self, status: Any):
        value = getattr(status, "value", status)
        super().__init__(f"Contract with status '{value}' cannot be edited", value)


class ContractNotDeletable(ContractRepositoryError):
    code = "CONTRACT_NOT_DELETABLE"
    status_code = 409

    def __init__(self, status: Any):
        value = getattr(status, "value", status)
        super().__init__(
            f"Contract with status '{value}' cannot be deleted. Please terminate first.", value
        )


class ConcurrentModification(ContractRepositoryError):
    code = "CONCURRENT_MODIFICATION"
    status_code = 409

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(
            f"{entity_type} with ID '{entity_id}' was modified by another user",
            entity_type,
            entity_id,
        )


class CustomerInvalid(ContractRepositoryError):
    code = "CUSTOMER_INACTIVE"
    status_code = 422

    def __init__(self, customer_id: str):
        super().__init__(f"Customer is inactive in core banking system: {customer_id}", customer_id)


class CoreBankingUnavailable(ContractRepositoryError):
    code = "CORE_BANKING_UNAVAILABLE"
    status_code = 503

    def __init__(self, system: str, reason: str | None = None):
        message = f"Core banking system unavailable: {system}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, system)
