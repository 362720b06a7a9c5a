"""Derived contract attributes.

Everything here is a pure function of an immutable ``ContractSnapshot`` and the
caller's ``today``. Nothing is cached or persisted: detail views, list views
and reports all go through ``derive`` so they cannot disagree.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from contract_repository.models.domain import ContractStatus

# Returned by days_until_expiration when there is no end date to count towards.
UNBOUNDED_DAYS = sys.maxsize

NOT_AVAILABLE = "N/A"
DEFAULT_CURRENCY = "MAD"

_EXPIRABLE_STATUSES = frozenset({ContractStatus.ACTIVE, ContractStatus.SUSPENDED})


@dataclass(frozen=True)
class ContractSnapshot:
    status: ContractStatus
    is_active: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reminder_days: Optional[int] = None
    contract_value: Optional[Decimal] = None
    currency: Optional[str] = None


@dataclass(frozen=True)
class DerivedAttributes:
    effective_status: ContractStatus
    currently_active: bool
    has_expired: bool
    is_expiring_soon: bool
    days_until_expiration: int
    contract_duration_days: int
    needs_renewal_reminder: bool
    formatted_value: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "effective_status": self.effective_status,
            "currently_active": self.currently_active,
            "has_expired": self.has_expired,
            "is_expiring_soon": self.is_expiring_soon,
            "days_until_expiration": self.days_until_expiration,
            "contract_duration_days": self.contract_duration_days,
            "needs_renewal_reminder": self.needs_renewal_reminder,
            "formatted_value": self.formatted_value,
        }


def snapshot_of(contract) -> ContractSnapshot:
    """Freeze the attributes of a Contract row the engine depends on."""
    value = contract.contract_value
    return ContractSnapshot(
        status=contract.status,
        is_active=bool(contract.is_active) if contract.is_active is not None else True,
        start_date=contract.start_date,
        end_date=contract.end_date,
        reminder_days=contract.reminder_days,
        contract_value=Decimal(value) if value is not None else None,
        currency=contract.currency,
    )


def currently_active(snapshot: ContractSnapshot, today: date) -> bool:
    if snapshot.status != ContractStatus.ACTIVE or not snapshot.is_active:
        return False
    if snapshot.start_date is None or snapshot.end_date is None:
        return False
    return snapshot.start_date <= today <= snapshot.end_date


def has_expired(snapshot: ContractSnapshot, today: date) -> bool:
    return snapshot.end_date is not None and snapshot.end_date < today


def is_expiring_soon(snapshot: ContractSnapshot, today: date, threshold_days: int) -> bool:
    if snapshot.end_date is None:
        return False
    return today <= snapshot.end_date <= today + timedelta(days=threshold_days)


def days_until_expiration(snapshot: ContractSnapshot, today: date) -> int:
    if snapshot.end_date is None:
        return UNBOUNDED_DAYS
    return (snapshot.end_date - today).days


def contract_duration_days(snapshot: ContractSnapshot) -> int:
    if snapshot.start_date is None or snapshot.end_date is None:
        return 0
    return (snapshot.end_date - snapshot.start_date).days


def needs_renewal_reminder(snapshot: ContractSnapshot, today: date) -> bool:
    if snapshot.reminder_days is None or snapshot.end_date is None:
        return False
    return days_until_expiration(snapshot, today) <= snapshot.reminder_days


def formatted_value(snapshot: ContractSnapshot) -> str:
    if snapshot.contract_value is None:
        return NOT_AVAILABLE
    currency = snapshot.currency or DEFAULT_CURRENCY
    return f"{currency} {Decimal(snapshot.contract_value):,.2f}"


def effective_status(snapshot: ContractSnapshot, today: date) -> ContractStatus:
    """Stored status, except running contracts past their end date read as EXPIRED."""
    if snapshot.status in _EXPIRABLE_STATUSES and has_expired(snapshot, today):
        return ContractStatus.EXPIRED
    return snapshot.status


def derive(
    snapshot: ContractSnapshot,
    today: date,
    expiring_threshold_days: int = 30,
) -> DerivedAttributes:
    return DerivedAttributes(
        effective_status=effective_status(snapshot, today),
        currently_active=currently_active(snapshot, today),
        has_expired=has_expired(snapshot, today),
        is_expiring_soon=is_expiring_soon(snapshot, today, expiring_threshold_days),
        days_until_expiration=days_until_expiration(snapshot, today),
        contract_duration_days=contract_duration_days(snapshot),
        needs_renewal_reminder=needs_renewal_reminder(snapshot, today),
        formatted_value=formatted_value(snapshot),
    )
