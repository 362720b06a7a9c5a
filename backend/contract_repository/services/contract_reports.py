from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from contract_repository import models
from contract_repository.config import settings
from contract_repository.models.domain import ContractStatus
from contract_repository.services import contracts as contract_service
from contract_repository.services.contract_attributes import derive, snapshot_of


@dataclass(frozen=True)
class ContractStatistics:
    total_contracts: int
    active_contracts: int
    expired_contracts: int
    expiring_soon_contracts: int
    total_value: Decimal
    active_value: Decimal


@dataclass(frozen=True)
class ExpirationReport:
    as_of: date
    threshold_days: int
    expired: List[models.Contract]
    expiring_soon: List[models.Contract]
    renewal_reminders_due: List[models.Contract]


def contract_statistics(
    db: Session, *, today: Optional[date] = None, expiring_threshold_days: Optional[int] = None
) -> ContractStatistics:
    """Dashboard counters.

    Rows are loaded once and every flag comes from the attribute engine, so a
    contract counted as expired here is expired in the detail view too.
    """
    today = today or date.today()
    threshold = settings.expiring_soon_days if expiring_threshold_days is None else int(expiring_threshold_days)
    rows = db.query(models.Contract).filter(models.Contract.is_active.is_(True)).all()

    active = expired = expiring = 0
    total_value = Decimal("0")
    active_value = Decimal("0")
    for contract in rows:
        derived = derive(snapshot_of(contract), today, threshold)
        value = Decimal(contract.contract_value) if contract.contract_value is not None else Decimal("0")
        total_value += value
        if derived.currently_active:
            active += 1
            active_value += value
        if derived.effective_status == ContractStatus.EXPIRED:
            expired += 1
        if contract.status == ContractStatus.ACTIVE and derived.is_expiring_soon:
            expiring += 1

    return ContractStatistics(
        total_contracts=len(rows),
        active_contracts=active,
        expired_contracts=expired,
        expiring_soon_contracts=expiring,
        total_value=total_value,
        active_value=active_value,
    )


def count_by_status(db: Session) -> Dict[ContractStatus, int]:
    rows = (
        db.query(models.Contract.status, func.count(models.Contract.id))
        .filter(models.Contract.is_active.is_(True))
        .group_by(models.Contract.status)
        .all()
    )
    return {status: int(count) for status, count in rows}


def count_by_department(db: Session) -> Dict[str, int]:
    rows = (
        db.query(models.Contract.internal_department, func.count(models.Contract.id))
        .filter(models.Contract.is_active.is_(True))
        .group_by(models.Contract.internal_department)
        .order_by(func.count(models.Contract.id).desc())
        .all()
    )
    return {department: int(count) for department, count in rows}


def total_value_by_status(db: Session) -> Dict[ContractStatus, Decimal]:
    rows = (
        db.query(models.Contract.status, func.coalesce(func.sum(models.Contract.contract_value), 0))
        .filter(models.Contract.is_active.is_(True))
        .group_by(models.Contract.status)
        .all()
    )
    return {status: Decimal(str(total)) for status, total in rows}


def monthly_trends(db: Session, *, since: date) -> List[tuple[int, int, int]]:
    """(year, month, contracts created) from `since` on, oldest first.

    Bucketed in Python; SQLite and Postgres disagree on date truncation.
    """
    since_dt = datetime(since.year, since.month, since.day)
    created = (
        db.query(models.Contract.created_at)
        .filter(models.Contract.is_active.is_(True))
        .filter(models.Contract.created_at >= since_dt)
        .all()
    )
    buckets = Counter((ts.year, ts.month) for (ts,) in created if ts is not None)
    return [(year, month, count) for (year, month), count in sorted(buckets.items())]


def expiration_report(
    db: Session, *, today: Optional[date] = None, threshold_days: Optional[int] = None
) -> ExpirationReport:
    today = today or date.today()
    threshold = settings.expiring_soon_days if threshold_days is None else int(threshold_days)
    return ExpirationReport(
        as_of=today,
        threshold_days=threshold,
        expired=contract_service.expired_contracts(db, today=today),
        expiring_soon=contract_service.expiring_contracts(db, days=threshold, today=today),
        renewal_reminders_due=contract_service.renewal_reminders_due(db, today=today),
    )
