from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from contract_repository.core.errors import (
    InvalidContractDates,
    InvalidContractValue,
    MissingRequiredField,
)

# Order matters: the first missing field is the one reported.
REQUIRED_CREATION_FIELDS: tuple[str, ...] = (
    "title",
    "contract_type_id",
    "customer_id",
    "start_date",
    "end_date",
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_date_pair(
    start_date: Optional[date],
    end_date: Optional[date],
    *,
    today: date,
) -> None:
    if start_date is None or end_date is None:
        raise InvalidContractDates("Start date and end date are required")
    if start_date >= end_date:
        raise InvalidContractDates(
            f"Start date {start_date.isoformat()} must be before end date {end_date.isoformat()}",
            start_date,
            end_date,
        )
    # One day of slack for callers sitting on the other side of midnight.
    if end_date < today - timedelta(days=1):
        raise InvalidContractDates(
            f"End date {end_date.isoformat()} cannot be in the past", end_date
        )


def validate_renewal_date(
    renewal_date: Optional[date],
    start_date: Optional[date],
    end_date: Optional[date],
) -> None:
    if renewal_date is None or start_date is None or end_date is None:
        return
    if renewal_date < start_date or renewal_date > end_date:
        raise InvalidContractDates(
            f"Renewal date {renewal_date.isoformat()} must be between start and end dates",
            renewal_date,
        )


def validate_contract_value(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidContractValue(value) from None
    if not amount.is_finite() or amount <= 0:
        raise InvalidContractValue(value)
    return amount


def validate_required_for_creation(data: Mapping[str, Any]) -> None:
    for field in REQUIRED_CREATION_FIELDS:
        if _is_blank(data.get(field)):
            raise MissingRequiredField(field)


def first_missing_activation_field(contract) -> Optional[str]:
    """Name of the first field that blocks activation, or None when complete."""
    if _is_blank(contract.title):
        return "title is required"
    if contract.contract_type_id is None and contract.contract_type is None:
        return "contract type is required"
    if _is_blank(contract.customer_id):
        return "customer is required"
    if contract.start_date is None:
        return "start date is required"
    if contract.end_date is None:
        return "end date is required"
    return None
