from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from contract_repository import models
from contract_repository.config import settings
from contract_repository.core.errors import (
    ContractNumberExists,
    ContractRepositoryError,
    CoreBankingUnavailable,
    CustomerInvalid,
    NotFound,
)
from contract_repository.models.domain import ContractStatus
from contract_repository.schemas.contracts import ContractCreate, ContractSearchCriteria
from contract_repository.services import audit, contract_numbering, contract_rules
from contract_repository.services.contract_attributes import derive, snapshot_of
from contract_repository.services.contract_types import get_active_contract_type
from contract_repository.services.core_banking import CoreBankingService, CustomerRecord
from contract_repository.services.persistence import commit_or_raise, flush_or_raise

logger = logging.getLogger("contract_repository.contracts")

SOURCE_T24 = "T24"
SOURCE_MANUAL = "MANUAL"


@dataclass(frozen=True)
class BulkSyncResult:
    total_processed: int
    success_count: int
    error_count: int


def _today(today: Optional[date]) -> date:
    return today or date.today()


def get_contract(db: Session, contract_id: int, *, include_deleted: bool = False) -> models.Contract:
    """Load a contract by id; soft-deleted rows read as missing unless asked for."""
    contract = db.get(models.Contract, int(contract_id))
    if contract is None or (not include_deleted and not contract.is_active):
        raise NotFound("Contract", contract_id)
    return contract


def get_contract_by_number(db: Session, contract_number: str) -> models.Contract:
    contract = (
        _active_query(db)
        .filter(models.Contract.contract_number == str(contract_number))
        .first()
    )
    if contract is None:
        raise NotFound("Contract", contract_number)
    return contract


def is_contract_number_available(db: Session, contract_number: str) -> bool:
    return not contract_numbering.exists_by_number(db, contract_number)


def resolve_customer(core_banking: CoreBankingService, customer_id: str) -> CustomerRecord:
    """Look a customer up, mapping connector failures onto business errors."""
    try:
        customer = core_banking.get_customer_by_id(customer_id)
    except ContractRepositoryError:
        raise
    except Exception as exc:
        logger.exception(
            "core_banking_lookup_failed",
            extra={"customer_id": customer_id, "system": getattr(core_banking, "system_name", None)},
        )
        raise CoreBankingUnavailable(getattr(core_banking, "system_name", "UNKNOWN"), str(exc)) from exc
    if not customer.is_active:
        raise CustomerInvalid(customer_id)
    return customer


def source_system_for(customer: CustomerRecord) -> str:
    if customer.t24_customer_id:
        return SOURCE_T24
    return customer.source_system or SOURCE_MANUAL


def apply_customer(contract: models.Contract, customer: CustomerRecord) -> None:
    contract.customer_id = customer.customer_id
    contract.customer_name = customer.customer_name
    contract.customer_type = customer.customer_type
    contract.t24_customer_id = customer.t24_customer_id
    contract.relationship_manager = customer.relationship_manager
    contract.source_system = source_system_for(customer)


def create_contract(
    db: Session,
    payload: ContractCreate,
    *,
    core_banking: CoreBankingService,
    username: str,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> models.Contract:
    today = _today(today)
    data = payload.model_dump()

    contract_rules.validate_required_for_creation(data)
    contract_type = get_active_contract_type(db, data["contract_type_id"])
    customer = resolve_customer(core_banking, data["customer_id"])

    contract_rules.validate_date_pair(data["start_date"], data["end_date"], today=today)
    contract_rules.validate_renewal_date(data["renewal_date"], data["start_date"], data["end_date"])
    value = contract_rules.validate_contract_value(data["contract_value"])

    number = (data.get("contract_number") or "").strip()
    if number:
        if contract_numbering.exists_by_number(db, number):
            raise ContractNumberExists(number)
    else:
        number = contract_numbering.next_contract_number(
            db, type_code=contract_type.type_code, today=today
        ).formatted

    contract = models.Contract(
        contract_number=number,
        title=data["title"].strip(),
        description=data["description"],
        contract_type=contract_type,
        status=ContractStatus.DRAFT,
        internal_department=data["internal_department"],
        external_party=data["external_party"],
        business_owner=data["business_owner"],
        primary_contact=data["primary_contact"],
        start_date=data["start_date"],
        end_date=data["end_date"],
        renewal_date=data["renewal_date"],
        contract_value=value,
        currency=data["currency"] or settings.default_currency,
        payment_terms=data["payment_terms"],
        risk_level=data["risk_level"],
        auto_renewal=bool(data["auto_renewal"]),
        reminder_days=data["reminder_days"] or contract_type.default_reminder_days or settings.default_reminder_days,
        internal_notes=data["internal_notes"],
        compliance_notes=data["compliance_notes"],
        is_active=True,
        created_by=username,
        last_modified_by=username,
    )
    apply_customer(contract, customer)

    db.add(contract)
    flush_or_raise(db, entity_type="Contract", contract_number=number)
    audit.audit_event(
        db,
        "contract.created",
        entity_id=contract.id,
        username=username,
        payload={"contract_number": number, "contract_type": contract_type.type_code},
        request_id=request_id,
    )
    commit_or_raise(db, entity_type="Contract", entity_id=contract.id, contract_number=number)
    db.refresh(contract)

    logger.info(
        "contract_created",
        extra={"contract_id": contract.id, "contract_number": number, "username": username},
    )
    return contract


def _active_query(db: Session):
    return db.query(models.Contract).filter(models.Contract.is_active.is_(True))


def list_active_contracts(db: Session, *, page: int = 0, size: int = 20) -> tuple[List[models.Contract], int]:
    q = _active_query(db)
    total = q.count()
    items = (
        q.order_by(models.Contract.created_at.desc(), models.Contract.id.desc())
        .offset(max(0, int(page)) * int(size))
        .limit(int(size))
        .all()
    )
    return items, int(total)


def search_contracts(db: Session, term: str, *, limit: int = 100) -> List[models.Contract]:
    pattern = f"%{str(term or '').strip()}%"
    return (
        _active_query(db)
        .filter(
            or_(
                models.Contract.contract_number.ilike(pattern),
                models.Contract.title.ilike(pattern),
                models.Contract.customer_name.ilike(pattern),
                models.Contract.external_party.ilike(pattern),
            )
        )
        .order_by(models.Contract.id.desc())
        .limit(int(limit))
        .all()
    )


def find_by_criteria(db: Session, criteria: ContractSearchCriteria) -> List[models.Contract]:
    q = _active_query(db)
    if criteria.contract_type_id is not None:
        q = q.filter(models.Contract.contract_type_id == int(criteria.contract_type_id))
    if criteria.status is not None:
        q = q.filter(models.Contract.status == criteria.status)
    if criteria.customer_id:
        q = q.filter(models.Contract.customer_id == criteria.customer_id)
    if criteria.internal_department:
        q = q.filter(models.Contract.internal_department == criteria.internal_department)
    if criteria.start_date_from is not None:
        q = q.filter(models.Contract.start_date >= criteria.start_date_from)
    if criteria.end_date_to is not None:
        q = q.filter(models.Contract.end_date <= criteria.end_date_to)
    return q.order_by(models.Contract.id.desc()).all()


def contracts_by_customer(db: Session, customer_id: str) -> List[models.Contract]:
    return _active_query(db).filter(models.Contract.customer_id == str(customer_id)).all()


def contracts_by_department(db: Session, department: str) -> List[models.Contract]:
    return _active_query(db).filter(models.Contract.internal_department == str(department)).all()


def contracts_by_type(db: Session, contract_type_id: int) -> List[models.Contract]:
    return _active_query(db).filter(models.Contract.contract_type_id == int(contract_type_id)).all()


def contracts_by_t24_customer_id(db: Session, t24_customer_id: str) -> List[models.Contract]:
    return _active_query(db).filter(models.Contract.t24_customer_id == str(t24_customer_id)).all()


def contracts_by_source_system(db: Session, source_system: str) -> List[models.Contract]:
    return _active_query(db).filter(models.Contract.source_system == str(source_system)).all()


# Lifecycle queries. SQL narrows the candidates, the attribute engine decides.


def expiring_contracts(
    db: Session, *, days: Optional[int] = None, today: Optional[date] = None
) -> List[models.Contract]:
    today = _today(today)
    days = settings.expiring_soon_days if days is None else int(days)
    candidates = (
        _active_query(db)
        .filter(models.Contract.status == ContractStatus.ACTIVE)
        .filter(models.Contract.end_date >= today, models.Contract.end_date <= today + timedelta(days=days))
        .order_by(models.Contract.end_date.asc())
        .all()
    )
    return [c for c in candidates if derive(snapshot_of(c), today, days).is_expiring_soon]


def expired_contracts(db: Session, *, today: Optional[date] = None) -> List[models.Contract]:
    today = _today(today)
    candidates = (
        _active_query(db)
        .filter(
            models.Contract.status.in_(
                [ContractStatus.ACTIVE, ContractStatus.SUSPENDED, ContractStatus.EXPIRED]
            )
        )
        .filter(models.Contract.end_date < today)
        .order_by(models.Contract.end_date.asc())
        .all()
    )
    return [c for c in candidates if derive(snapshot_of(c), today).has_expired]


def renewals_due(
    db: Session, *, horizon_days: Optional[int] = None, today: Optional[date] = None
) -> List[models.Contract]:
    today = _today(today)
    horizon_days = settings.renewal_horizon_days if horizon_days is None else int(horizon_days)
    return (
        _active_query(db)
        .filter(models.Contract.status == ContractStatus.ACTIVE)
        .filter(models.Contract.renewal_date.is_not(None))
        .filter(models.Contract.renewal_date <= today + timedelta(days=horizon_days))
        .order_by(models.Contract.renewal_date.asc())
        .all()
    )


def currently_active_contracts(db: Session, *, today: Optional[date] = None) -> List[models.Contract]:
    today = _today(today)
    candidates = (
        _active_query(db)
        .filter(models.Contract.status == ContractStatus.ACTIVE)
        .filter(models.Contract.start_date <= today, models.Contract.end_date >= today)
        .all()
    )
    return [c for c in candidates if derive(snapshot_of(c), today).currently_active]


def renewal_reminders_due(db: Session, *, today: Optional[date] = None) -> List[models.Contract]:
    today = _today(today)
    candidates = (
        _active_query(db)
        .filter(models.Contract.status == ContractStatus.ACTIVE)
        .filter(models.Contract.end_date >= today)
        .order_by(models.Contract.end_date.asc())
        .all()
    )
    return [c for c in candidates if derive(snapshot_of(c), today).needs_renewal_reminder]


# Financial queries


def high_value_contracts(db: Session, *, threshold: Optional[Decimal] = None) -> List[models.Contract]:
    threshold = Decimal(str(settings.high_value_threshold if threshold is None else threshold))
    return (
        _active_query(db)
        .filter(models.Contract.contract_value >= threshold)
        .order_by(models.Contract.contract_value.desc())
        .all()
    )


def total_contract_value(db: Session, *, status: Optional[ContractStatus] = None) -> Decimal:
    q = db.query(func.coalesce(func.sum(models.Contract.contract_value), 0)).filter(
        models.Contract.is_active.is_(True)
    )
    if status is not None:
        q = q.filter(models.Contract.status == status)
    return Decimal(str(q.scalar() or 0))


def contracts_in_value_range(
    db: Session, *, min_value: Decimal, max_value: Decimal
) -> List[models.Contract]:
    return (
        _active_query(db)
        .filter(models.Contract.contract_value >= Decimal(str(min_value)))
        .filter(models.Contract.contract_value <= Decimal(str(max_value)))
        .order_by(models.Contract.contract_value.asc())
        .all()
    )


# Core banking sync


def sync_customer_data(
    db: Session,
    contract_id: int,
    *,
    core_banking: CoreBankingService,
    username: str,
    request_id: Optional[str] = None,
) -> models.Contract:
    contract = get_contract(db, contract_id)
    try:
        customer = core_banking.refresh_customer_data(contract.customer_id)
    except ContractRepositoryError:
        raise
    except Exception as exc:
        raise CoreBankingUnavailable(getattr(core_banking, "system_name", "UNKNOWN"), str(exc)) from exc

    apply_customer(contract, customer)
    contract.last_modified_by = username
    # Bump the row even when nothing changed so the sync timestamp moves.
    contract.last_modified_at = datetime.utcnow()
    audit.audit_event(
        db,
        "contract.customer_synced",
        entity_id=contract.id,
        username=username,
        payload={"customer_id": customer.customer_id, "source_system": contract.source_system},
        request_id=request_id,
    )
    commit_or_raise(db, entity_type="Contract", entity_id=contract.id)
    db.refresh(contract)
    return contract


def contracts_needing_sync(
    db: Session, *, stale_days: Optional[int] = None, now: Optional[datetime] = None
) -> List[models.Contract]:
    stale_days = settings.customer_sync_stale_days if stale_days is None else int(stale_days)
    threshold = (now or datetime.utcnow()) - timedelta(days=stale_days)
    return (
        _active_query(db)
        .filter(
            or_(
                models.Contract.t24_customer_id.is_(None),
                models.Contract.last_modified_at < threshold,
            )
        )
        .order_by(models.Contract.id.asc())
        .all()
    )


def bulk_sync_customer_data(
    db: Session,
    *,
    core_banking: CoreBankingService,
    username: str,
    contract_ids: Optional[Iterable[int]] = None,
    stale_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> BulkSyncResult:
    """Sync contracts one at a time; a failing contract is logged and counted, never fatal."""
    if contract_ids is None:
        contract_ids = [c.id for c in contracts_needing_sync(db, stale_days=stale_days, now=now)]
    ids = [int(cid) for cid in contract_ids]

    success = 0
    errors = 0
    for contract_id in ids:
        try:
            sync_customer_data(db, contract_id, core_banking=core_banking, username=username)
            success += 1
        except Exception:
            db.rollback()
            errors += 1
            logger.exception("contract_customer_sync_failed", extra={"contract_id": contract_id})

    logger.info(
        "contract_customer_bulk_sync",
        extra={"total": len(ids), "success": success, "errors": errors},
    )
    return BulkSyncResult(total_processed=len(ids), success_count=success, error_count=errors)


def contract_history(db: Session, contract_id: int) -> list[dict[str, Any]]:
    get_contract(db, contract_id, include_deleted=True)
    return [
        {
            "id": log.id,
            "action": log.action,
            "username": log.username,
            "payload": audit.payload_of(log),
            "request_id": log.request_id,
            "created_at": log.created_at,
        }
        for log in audit.get_history(db, contract_id)
    ]
