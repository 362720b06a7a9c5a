from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from contract_repository import models
from contract_repository.config import settings
from contract_repository.schemas.contracts import ContractRead, ContractSummary, ContractTypeMini
from contract_repository.services.contract_attributes import derive, snapshot_of


def _threshold(expiring_threshold_days: Optional[int]) -> int:
    return settings.expiring_soon_days if expiring_threshold_days is None else int(expiring_threshold_days)


def to_contract_read(
    contract: models.Contract,
    *,
    today: Optional[date] = None,
    expiring_threshold_days: Optional[int] = None,
) -> ContractRead:
    derived = derive(snapshot_of(contract), today or date.today(), _threshold(expiring_threshold_days))
    contract_type = contract.contract_type
    return ContractRead(
        id=contract.id,
        contract_number=contract.contract_number,
        title=contract.title,
        description=contract.description,
        contract_type_id=contract.contract_type_id,
        contract_type=ContractTypeMini.model_validate(contract_type) if contract_type is not None else None,
        status=contract.status,
        status_display_name=contract.status.display_name,
        customer_id=contract.customer_id,
        customer_name=contract.customer_name,
        customer_type=contract.customer_type,
        t24_customer_id=contract.t24_customer_id,
        relationship_manager=contract.relationship_manager,
        source_system=contract.source_system,
        internal_department=contract.internal_department,
        external_party=contract.external_party,
        business_owner=contract.business_owner,
        primary_contact=contract.primary_contact,
        start_date=contract.start_date,
        end_date=contract.end_date,
        renewal_date=contract.renewal_date,
        contract_value=contract.contract_value,
        currency=contract.currency,
        payment_terms=contract.payment_terms,
        risk_level=contract.risk_level,
        auto_renewal=bool(contract.auto_renewal),
        reminder_days=contract.reminder_days,
        internal_notes=contract.internal_notes,
        compliance_notes=contract.compliance_notes,
        is_active=bool(contract.is_active),
        created_at=contract.created_at,
        created_by=contract.created_by,
        last_modified_at=contract.last_modified_at,
        last_modified_by=contract.last_modified_by,
        version=contract.version,
        **derived.as_dict(),
    )


def to_contract_summary(
    contract: models.Contract,
    *,
    today: Optional[date] = None,
    expiring_threshold_days: Optional[int] = None,
) -> ContractSummary:
    derived = derive(snapshot_of(contract), today or date.today(), _threshold(expiring_threshold_days))
    return ContractSummary(
        id=contract.id,
        contract_number=contract.contract_number,
        title=contract.title,
        status=contract.status,
        effective_status=derived.effective_status,
        customer_name=contract.customer_name,
        internal_department=contract.internal_department,
        end_date=contract.end_date,
        formatted_value=derived.formatted_value,
        days_until_expiration=derived.days_until_expiration,
        is_expiring_soon=derived.is_expiring_soon,
        needs_renewal_reminder=derived.needs_renewal_reminder,
    )


def to_summaries(
    contracts: Iterable[models.Contract],
    *,
    today: Optional[date] = None,
    expiring_threshold_days: Optional[int] = None,
) -> List[ContractSummary]:
    today = today or date.today()
    return [
        to_contract_summary(c, today=today, expiring_threshold_days=expiring_threshold_days)
        for c in contracts
    ]
