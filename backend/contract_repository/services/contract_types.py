from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from contract_repository import models
from contract_repository.core.errors import ContractTypeExists, NotFound
from contract_repository.models.domain import ContractCategory
from contract_repository.schemas.contract_types import ContractTypeCreate, ContractTypeUpdate
from contract_repository.services import audit
from contract_repository.services.persistence import (
    check_expected_version,
    commit_or_raise,
    flush_or_raise,
)

logger = logging.getLogger("contract_repository.contract_types")

# Reference data every environment starts with. risk_category is left to the
# category default on purpose.
STANDARD_CONTRACT_TYPES: List[Dict[str, Any]] = [
    {
        "type_code": "SOFTWARE_LICENSE",
        "type_name": "Software License",
        "description": "Software licensing and subscription agreements",
        "category": ContractCategory.IT_SERVICES,
        "default_duration_months": 12,
        "default_reminder_days": 60,
        "requires_approval": True,
        "auto_renewal_allowed": True,
        "financial_impact": True,
        "display_order": 1,
    },
    {
        "type_code": "VENDOR_AGREEMENT",
        "type_name": "Vendor Agreement",
        "description": "General supplier and vendor service agreements",
        "category": ContractCategory.VENDOR_SERVICES,
        "default_duration_months": 24,
        "default_reminder_days": 30,
        "requires_approval": True,
        "auto_renewal_allowed": False,
        "financial_impact": True,
        "display_order": 2,
    },
    {
        "type_code": "BANKING_SERVICE",
        "type_name": "Banking Service",
        "description": "Banking and financial service agreements with customers",
        "category": ContractCategory.BANKING_SERVICES,
        "default_duration_months": 36,
        "default_reminder_days": 90,
        "requires_approval": True,
        "auto_renewal_allowed": True,
        "financial_impact": True,
        "display_order": 3,
    },
]


def get_contract_type(db: Session, contract_type_id: int) -> models.ContractType:
    contract_type = db.get(models.ContractType, int(contract_type_id))
    if contract_type is None:
        raise NotFound("ContractType", contract_type_id)
    return contract_type


def get_active_contract_type(db: Session, contract_type_id: int) -> models.ContractType:
    """Type lookup for new and edited contracts; soft-deleted types read as missing."""
    contract_type = get_contract_type(db, contract_type_id)
    if not contract_type.is_active:
        raise NotFound("ContractType", contract_type_id)
    return contract_type


def get_contract_type_by_code(db: Session, type_code: str) -> models.ContractType:
    contract_type = (
        db.query(models.ContractType)
        .filter(models.ContractType.type_code == str(type_code).strip().upper())
        .first()
    )
    if contract_type is None:
        raise NotFound("ContractType", type_code)
    return contract_type


def type_code_exists(db: Session, type_code: str) -> bool:
    return (
        db.query(models.ContractType.id)
        .filter(models.ContractType.type_code == str(type_code))
        .first()
        is not None
    )


def create_contract_type(
    db: Session,
    payload: ContractTypeCreate,
    *,
    username: str,
    request_id: Optional[str] = None,
) -> models.ContractType:
    data = payload.model_dump()
    type_code = data["type_code"]
    if type_code_exists(db, type_code):
        raise ContractTypeExists(type_code)

    contract_type = models.ContractType(**data, is_active=True, created_by=username, last_modified_by=username)
    db.add(contract_type)
    flush_or_raise(db, entity_type="ContractType", type_code=type_code)
    audit.audit_event(
        db,
        "contract_type.created",
        entity_type="contract_type",
        entity_id=contract_type.id,
        username=username,
        payload={"type_code": type_code, "category": contract_type.category},
        request_id=request_id,
    )
    commit_or_raise(db, entity_type="ContractType", entity_id=contract_type.id, type_code=type_code)
    db.refresh(contract_type)
    logger.info("contract_type_created", extra={"type_code": type_code, "username": username})
    return contract_type


def update_contract_type(
    db: Session,
    contract_type_id: int,
    payload: ContractTypeUpdate,
    *,
    username: str,
    expected_version: Optional[int] = None,
    request_id: Optional[str] = None,
) -> models.ContractType:
    contract_type = get_contract_type(db, contract_type_id)
    check_expected_version(
        contract_type.version, expected_version, entity_type="ContractType", entity_id=contract_type_id
    )

    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    for field, value in changes.items():
        setattr(contract_type, field, value)
    contract_type.last_modified_by = username

    audit.audit_event(
        db,
        "contract_type.updated",
        entity_type="contract_type",
        entity_id=contract_type.id,
        username=username,
        payload={"fields": sorted(changes)},
        request_id=request_id,
    )
    commit_or_raise(db, entity_type="ContractType", entity_id=contract_type.id)
    db.refresh(contract_type)
    return contract_type


def _set_active(
    db: Session, contract_type_id: int, active: bool, *, username: str, request_id: Optional[str]
) -> models.ContractType:
    contract_type = get_contract_type(db, contract_type_id)
    contract_type.is_active = active
    contract_type.last_modified_by = username
    audit.audit_event(
        db,
        "contract_type.restored" if active else "contract_type.deleted",
        entity_type="contract_type",
        entity_id=contract_type.id,
        username=username,
        request_id=request_id,
    )
    commit_or_raise(db, entity_type="ContractType", entity_id=contract_type.id)
    db.refresh(contract_type)
    return contract_type


def delete_contract_type(
    db: Session, contract_type_id: int, *, username: str, request_id: Optional[str] = None
) -> models.ContractType:
    return _set_active(db, contract_type_id, False, username=username, request_id=request_id)


def restore_contract_type(
    db: Session, contract_type_id: int, *, username: str, request_id: Optional[str] = None
) -> models.ContractType:
    return _set_active(db, contract_type_id, True, username=username, request_id=request_id)


def _active_types(db: Session):
    return (
        db.query(models.ContractType)
        .filter(models.ContractType.is_active.is_(True))
        .order_by(models.ContractType.display_order.asc(), models.ContractType.type_name.asc())
    )


def list_active_contract_types(db: Session) -> List[models.ContractType]:
    return _active_types(db).all()


def contract_types_by_category(db: Session, category: ContractCategory) -> List[models.ContractType]:
    return _active_types(db).filter(models.ContractType.category == category).all()


def contract_types_requiring_approval(db: Session) -> List[models.ContractType]:
    return _active_types(db).filter(models.ContractType.requires_approval.is_(True)).all()


def count_by_category(db: Session) -> Dict[ContractCategory, int]:
    rows = (
        db.query(models.ContractType.category, func.count(models.ContractType.id))
        .filter(models.ContractType.is_active.is_(True))
        .group_by(models.ContractType.category)
        .all()
    )
    return {category: int(count) for category, count in rows}


def seed_standard_contract_types(db: Session, *, username: str = "system") -> List[models.ContractType]:
    """Create the standard presets that are missing. Existing codes are left untouched."""
    created: List[models.ContractType] = []
    for preset in STANDARD_CONTRACT_TYPES:
        if type_code_exists(db, preset["type_code"]):
            continue
        created.append(
            create_contract_type(db, ContractTypeCreate(**preset), username=username)
        )
    return created
