from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from contract_repository.core.errors import (
    InvalidContractDates,
    InvalidContractValue,
    MissingRequiredField,
)
from contract_repository.services.contract_rules import (
    first_missing_activation_field,
    validate_contract_value,
    validate_date_pair,
    validate_renewal_date,
    validate_required_for_creation,
)

TODAY = date(2024, 3, 10)


def test_date_pair_accepts_start_before_end():
    validate_date_pair(date(2024, 3, 1), date(2025, 2, 28), today=TODAY)


def test_date_pair_rejects_equal_dates():
    with pytest.raises(InvalidContractDates, match="must be before end date"):
        validate_date_pair(date(2024, 4, 1), date(2024, 4, 1), today=TODAY)


def test_date_pair_rejects_reversed_dates():
    with pytest.raises(InvalidContractDates):
        validate_date_pair(date(2024, 5, 1), date(2024, 4, 1), today=TODAY)


def test_date_pair_rejects_missing_dates():
    with pytest.raises(InvalidContractDates, match="required"):
        validate_date_pair(None, date(2024, 4, 1), today=TODAY)


def test_date_pair_allows_end_date_yesterday():
    validate_date_pair(date(2024, 1, 1), date(2024, 3, 9), today=TODAY)


def test_date_pair_rejects_end_date_older_than_yesterday():
    with pytest.raises(InvalidContractDates, match="cannot be in the past"):
        validate_date_pair(date(2024, 1, 1), date(2024, 3, 8), today=TODAY)


def test_renewal_date_must_fall_inside_term():
    start, end = date(2024, 1, 1), date(2024, 12, 31)
    validate_renewal_date(date(2024, 11, 1), start, end)
    validate_renewal_date(None, start, end)
    with pytest.raises(InvalidContractDates):
        validate_renewal_date(date(2025, 1, 15), start, end)


def test_contract_value_must_be_positive():
    assert validate_contract_value("1500.50") == Decimal("1500.50")
    assert validate_contract_value(None) is None
    with pytest.raises(InvalidContractValue):
        validate_contract_value(Decimal("0"))
    with pytest.raises(InvalidContractValue):
        validate_contract_value(-10)
    with pytest.raises(InvalidContractValue):
        validate_contract_value("abc")


def test_required_fields_reported_in_order():
    data = {"title": "  ", "contract_type_id": None, "customer_id": "CUS-12345"}
    with pytest.raises(MissingRequiredField) as excinfo:
        validate_required_for_creation(data)

    assert excinfo.value.field == "title"
    assert excinfo.value.to_dict()["code"] == "MISSING_REQUIRED_FIELD"


def test_required_fields_pass_when_complete():
    validate_required_for_creation(
        {
            "title": "Office lease",
            "contract_type_id": 1,
            "customer_id": "CUS-12345",
            "start_date": date(2024, 1, 1),
            "end_date": date(2024, 12, 31),
        }
    )


def _contract(**overrides):
    base = dict(
        title="Core banking support",
        contract_type_id=1,
        contract_type=None,
        customer_id="CUS-12345",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
    )
    base.update(overrides)
    return SimpleNamespace(**base)


def test_activation_reports_first_missing_field():
    assert first_missing_activation_field(_contract()) is None
    assert first_missing_activation_field(_contract(title="")) == "title is required"
    assert first_missing_activation_field(_contract(contract_type_id=None)) == "contract type is required"
    assert first_missing_activation_field(_contract(customer_id=None)) == "customer is required"
    assert first_missing_activation_field(_contract(start_date=None)) == "start date is required"
    assert first_missing_activation_field(_contract(end_date=None, start_date=None)) == "start date is required"
    assert first_missing_activation_field(_contract(end_date=None)) == "end date is required"
