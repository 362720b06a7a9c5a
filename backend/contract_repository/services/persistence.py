from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from contract_repository.core.errors import (
    ConcurrentModification,
    ContractNumberExists,
    ContractTypeExists,
)

logger = logging.getLogger("contract_repository.persistence")


def _mentions(exc: IntegrityError, column: str) -> bool:
    return column in str(getattr(exc, "orig", exc)).lower()


def _write_or_raise(
    db: Session,
    write,
    *,
    entity_type: str,
    entity_id: Any,
    contract_number: Optional[str],
    type_code: Optional[str],
) -> None:
    try:
        write()
    except StaleDataError:
        db.rollback()
        logger.warning(
            "optimistic_lock_conflict",
            extra={"entity_type": entity_type, "entity_id": entity_id},
        )
        raise ConcurrentModification(entity_type, entity_id) from None
    except IntegrityError as exc:
        db.rollback()
        if contract_number is not None and _mentions(exc, "contract_number"):
            raise ContractNumberExists(contract_number) from None
        if type_code is not None and _mentions(exc, "type_code"):
            raise ContractTypeExists(type_code) from None
        raise


def flush_or_raise(
    db: Session,
    *,
    entity_type: str,
    entity_id: Any = None,
    contract_number: Optional[str] = None,
    type_code: Optional[str] = None,
) -> None:
    _write_or_raise(
        db,
        db.flush,
        entity_type=entity_type,
        entity_id=entity_id,
        contract_number=contract_number,
        type_code=type_code,
    )


def commit_or_raise(
    db: Session,
    *,
    entity_type: str,
    entity_id: Any = None,
    contract_number: Optional[str] = None,
    type_code: Optional[str] = None,
) -> None:
    """Commit the unit of work, translating storage conflicts into business errors.

    The session is rolled back on failure so nothing partial survives.
    """
    _write_or_raise(
        db,
        db.commit,
        entity_type=entity_type,
        entity_id=entity_id,
        contract_number=contract_number,
        type_code=type_code,
    )


def check_expected_version(current: int, expected: Optional[int], *, entity_type: str, entity_id: Any) -> None:
    if expected is not None and int(expected) != int(current):
        raise ConcurrentModification(entity_type, entity_id)
