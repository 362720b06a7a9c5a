"""Contract lifecycle operations.

Each operation takes one loaded contract, checks the transition table and the
validation rules, mutates in memory and commits once. Business errors are
raised before anything is flushed; storage conflicts roll the session back.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from contract_repository import models
from contract_repository.core.errors import (
    ContractNotActivatable,
    ContractNotDeletable,
    ContractNotEditable,
    InvalidContractDates,
)
from contract_repository.models.domain import ContractStatus
from contract_repository.schemas.contracts import ContractUpdate
from contract_repository.services import audit, contract_numbering, contract_rules
from contract_repository.services.contract_attributes import effective_status, snapshot_of
from contract_repository.services.contract_status import (
    NON_DELETABLE_STATUSES,
    NON_EDITABLE_STATUSES,
    assert_transition,
)
from contract_repository.services.contract_types import get_active_contract_type
from contract_repository.services.persistence import (
    check_expected_version,
    commit_or_raise,
    flush_or_raise,
)

logger = logging.getLogger("contract_repository.lifecycle")

RENEWED_TITLE_SUFFIX = " (Renewed)"

# Fields carried over to the successor contract on renewal.
_RENEWAL_COPIED_FIELDS = (
    "description",
    "contract_type_id",
    "customer_id",
    "customer_name",
    "customer_type",
    "t24_customer_id",
    "relationship_manager",
    "source_system",
    "internal_department",
    "external_party",
    "business_owner",
    "primary_contact",
    "contract_value",
    "currency",
    "payment_terms",
    "risk_level",
    "auto_renewal",
    "reminder_days",
)


def _today(today: Optional[date]) -> date:
    return today or date.today()


def append_note(existing: Optional[str], note: str) -> str:
    if existing:
        return f"{existing}\n{note}"
    return note


def _touch(contract: models.Contract, username: str) -> None:
    contract.last_modified_by = username


def _record(
    db: Session,
    contract: models.Contract,
    action: str,
    *,
    username: str,
    request_id: Optional[str],
    **payload: Any,
) -> None:
    audit.audit_event(
        db,
        action,
        entity_id=contract.id,
        username=username,
        payload=payload,
        request_id=request_id,
    )


def _commit(db: Session, contract: models.Contract) -> models.Contract:
    commit_or_raise(db, entity_type="Contract", entity_id=contract.id)
    db.refresh(contract)
    return contract


def activate(
    db: Session,
    contract: models.Contract,
    *,
    username: str,
    request_id: Optional[str] = None,
) -> models.Contract:
    from_status = contract.status
    assert_transition(from_status, ContractStatus.ACTIVE)
    reason = contract_rules.first_missing_activation_field(contract)
    if reason is not None:
        raise ContractNotActivatable(reason)

    contract.status = ContractStatus.ACTIVE
    _touch(contract, username)
    _record(db, contract, "contract.activated", username=username, request_id=request_id, from_status=from_status)
    logger.info("contract_activated", extra={"contract_id": contract.id, "username": username})
    return _commit(db, contract)


def suspend(
    db: Session,
    contract: models.Contract,
    reason: str,
    *,
    username: str,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> models.Contract:
    today = _today(today)
    assert_transition(contract.status, ContractStatus.SUSPENDED)

    contract.compliance_notes = append_note(
        contract.compliance_notes, f"Suspended: {reason} ({today.isoformat()})"
    )
    contract.status = ContractStatus.SUSPENDED
    _touch(contract, username)
    _record(db, contract, "contract.suspended", username=username, request_id=request_id, reason=reason)
    logger.info("contract_suspended", extra={"contract_id": contract.id, "username": username})
    return _commit(db, contract)


def terminate(
    db: Session,
    contract: models.Contract,
    reason: str,
    *,
    username: str,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> models.Contract:
    today = _today(today)
    from_status = contract.status
    assert_transition(from_status, ContractStatus.TERMINATED)

    contract.compliance_notes = append_note(
        contract.compliance_notes, f"Terminated: {reason} ({today.isoformat()})"
    )
    contract.status = ContractStatus.TERMINATED
    _touch(contract, username)
    _record(
        db,
        contract,
        "contract.terminated",
        username=username,
        request_id=request_id,
        reason=reason,
        from_status=from_status,
    )
    logger.info("contract_terminated", extra={"contract_id": contract.id, "username": username})
    return _commit(db, contract)


def renew(
    db: Session,
    contract: models.Contract,
    new_start_date: date,
    new_end_date: date,
    *,
    username: str,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> tuple[models.Contract, models.Contract]:
    """Supersede an active contract with a new DRAFT one.

    Returns (original, successor); both are committed together.
    """
    today = _today(today)
    assert_transition(contract.status, ContractStatus.RENEWED)
    contract_rules.validate_date_pair(new_start_date, new_end_date, today=today)

    contract_type = get_active_contract_type(db, contract.contract_type_id)
    number = contract_numbering.next_contract_number(
        db, type_code=contract_type.type_code, today=today
    ).formatted

    successor = models.Contract(
        contract_number=number,
        title=f"{contract.title}{RENEWED_TITLE_SUFFIX}",
        status=ContractStatus.DRAFT,
        start_date=new_start_date,
        end_date=new_end_date,
        is_active=True,
        created_by=username,
        last_modified_by=username,
        **{field: getattr(contract, field) for field in _RENEWAL_COPIED_FIELDS},
    )
    contract.status = ContractStatus.RENEWED
    _touch(contract, username)

    db.add(successor)
    flush_or_raise(db, entity_type="Contract", entity_id=contract.id, contract_number=number)
    _record(
        db,
        contract,
        "contract.renewed",
        username=username,
        request_id=request_id,
        successor_id=successor.id,
        successor_number=number,
    )
    audit.audit_event(
        db,
        "contract.created",
        entity_id=successor.id,
        username=username,
        payload={"contract_number": number, "renewed_from": contract.contract_number},
        request_id=request_id,
    )
    commit_or_raise(db, entity_type="Contract", entity_id=contract.id, contract_number=number)
    db.refresh(contract)
    db.refresh(successor)
    logger.info(
        "contract_renewed",
        extra={"contract_id": contract.id, "successor_id": successor.id, "contract_number": number},
    )
    return contract, successor


def extend(
    db: Session,
    contract: models.Contract,
    new_end_date: date,
    *,
    username: str,
    request_id: Optional[str] = None,
) -> models.Contract:
    if contract.end_date is not None and new_end_date < contract.end_date:
        raise InvalidContractDates(
            f"New end date {new_end_date.isoformat()} cannot be before current end date "
            f"{contract.end_date.isoformat()}",
            new_end_date,
            contract.end_date,
        )
    previous = contract.end_date
    contract.end_date = new_end_date
    _touch(contract, username)
    _record(
        db,
        contract,
        "contract.extended",
        username=username,
        request_id=request_id,
        previous_end_date=previous,
        new_end_date=new_end_date,
    )
    return _commit(db, contract)


def ensure_editable(contract: models.Contract, *, today: date) -> None:
    current = effective_status(snapshot_of(contract), today)
    for status in (contract.status, current):
        if status in NON_EDITABLE_STATUSES:
            raise ContractNotEditable(status)


def update(
    db: Session,
    contract: models.Contract,
    payload: ContractUpdate,
    *,
    username: str,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> models.Contract:
    today = _today(today)
    ensure_editable(contract, today=today)
    check_expected_version(contract.version, payload.version, entity_type="Contract", entity_id=contract.id)

    changes = {
        k: v
        for k, v in payload.model_dump(exclude_unset=True, exclude={"version"}).items()
        if v is not None
    }

    start = changes.get("start_date", contract.start_date)
    end = changes.get("end_date", contract.end_date)
    renewal = changes.get("renewal_date", contract.renewal_date)
    if "start_date" in changes or "end_date" in changes:
        contract_rules.validate_date_pair(start, end, today=today)
    if {"start_date", "end_date", "renewal_date"} & changes.keys():
        contract_rules.validate_renewal_date(renewal, start, end)
    if "contract_value" in changes:
        changes["contract_value"] = contract_rules.validate_contract_value(changes["contract_value"])
    if "contract_type_id" in changes:
        contract.contract_type = get_active_contract_type(db, changes.pop("contract_type_id"))

    for field, value in changes.items():
        setattr(contract, field, value)
    _touch(contract, username)
    _record(db, contract, "contract.updated", username=username, request_id=request_id, fields=sorted(changes))
    return _commit(db, contract)


def update_value(
    db: Session,
    contract: models.Contract,
    new_value: Decimal,
    *,
    username: str,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> models.Contract:
    ensure_editable(contract, today=_today(today))
    amount = contract_rules.validate_contract_value(new_value)
    previous = contract.contract_value
    contract.contract_value = amount
    _touch(contract, username)
    _record(
        db,
        contract,
        "contract.value_updated",
        username=username,
        request_id=request_id,
        previous_value=previous,
        new_value=amount,
    )
    return _commit(db, contract)


def delete(
    db: Session,
    contract: models.Contract,
    *,
    username: str,
    request_id: Optional[str] = None,
) -> models.Contract:
    if contract.status in NON_DELETABLE_STATUSES:
        raise ContractNotDeletable(contract.status)
    contract.soft_delete()
    _touch(contract, username)
    _record(db, contract, "contract.deleted", username=username, request_id=request_id)
    logger.info("contract_deleted", extra={"contract_id": contract.id, "username": username})
    return _commit(db, contract)


def restore(
    db: Session,
    contract: models.Contract,
    *,
    username: str,
    request_id: Optional[str] = None,
) -> models.Contract:
    contract.restore()
    _touch(contract, username)
    _record(db, contract, "contract.restored", username=username, request_id=request_id)
    return _commit(db, contract)