import pytest
from pydantic import ValidationError

from contract_repository.core.errors import ConcurrentModification, ContractTypeExists, NotFound
from contract_repository.models.domain import ContractCategory, RiskCategory
from contract_repository.schemas import ContractTypeCreate, ContractTypeUpdate
from contract_repository.services import contract_types as type_service


def _create(db, type_code="OFFICE_LEASE", category=ContractCategory.REAL_ESTATE, **overrides):
    payload = ContractTypeCreate(type_code=type_code, type_name=type_code.title(), category=category, **overrides)
    return type_service.create_contract_type(db, payload, username="admin")


def test_creation_defaults_follow_category(db_session):
    it = _create(db_session, "SOFTWARE_LICENSE", ContractCategory.IT_SERVICES)
    insurance = _create(db_session, "FLEET_INSURANCE", ContractCategory.INSURANCE)
    lease = _create(db_session)

    assert it.risk_category == RiskCategory.HIGH_RISK
    assert it.is_high_risk is True
    assert insurance.risk_category == RiskCategory.CRITICAL_RISK
    assert lease.risk_category == RiskCategory.MEDIUM_RISK
    assert lease.is_high_risk is False
    assert lease.default_reminder_days == 30
    assert lease.default_duration_months == 12
    assert lease.requires_approval is False


def test_explicit_risk_category_is_kept(db_session):
    contract_type = _create(db_session, risk_category=RiskCategory.LOW_RISK)

    assert contract_type.risk_category == RiskCategory.LOW_RISK


def test_full_display_name(db_session):
    contract_type = _create(db_session, "SOFTWARE_LICENSE", ContractCategory.IT_SERVICES)

    assert contract_type.full_display_name == "Software_License (IT & Technology Services)"


def test_type_code_must_be_upper_snake_case():
    with pytest.raises(ValidationError):
        ContractTypeCreate(type_code="office-lease", type_name="Lease", category=ContractCategory.REAL_ESTATE)


def test_duplicate_type_code_rejected(db_session):
    _create(db_session)

    with pytest.raises(ContractTypeExists):
        _create(db_session)


def test_update_keeps_type_code_and_checks_version(db_session):
    contract_type = _create(db_session)

    updated = type_service.update_contract_type(
        db_session,
        contract_type.id,
        ContractTypeUpdate(type_name="Office Lease", default_reminder_days=90),
        username="admin",
        expected_version=1,
    )
    assert updated.type_code == "OFFICE_LEASE"
    assert updated.type_name == "Office Lease"
    assert updated.default_reminder_days == 90
    assert updated.version == 2

    with pytest.raises(ConcurrentModification):
        type_service.update_contract_type(
            db_session, contract_type.id, ContractTypeUpdate(type_name="Stale"), username="admin", expected_version=1
        )


def test_type_code_is_immutable_on_model(db_session):
    contract_type = _create(db_session)

    with pytest.raises(ValueError, match="immutable"):
        contract_type.type_code = "OTHER"


def test_delete_and_restore(db_session):
    contract_type = _create(db_session)

    type_service.delete_contract_type(db_session, contract_type.id, username="admin")
    assert type_service.list_active_contract_types(db_session) == []

    type_service.restore_contract_type(db_session, contract_type.id, username="admin")
    assert [t.id for t in type_service.list_active_contract_types(db_session)] == [contract_type.id]


def test_lookup_by_code(db_session):
    contract_type = _create(db_session)

    assert type_service.get_contract_type_by_code(db_session, "office_lease").id == contract_type.id
    with pytest.raises(NotFound):
        type_service.get_contract_type_by_code(db_session, "MISSING")


def test_seed_is_idempotent(db_session):
    created = type_service.seed_standard_contract_types(db_session)
    assert [t.type_code for t in created] == ["SOFTWARE_LICENSE", "VENDOR_AGREEMENT", "BANKING_SERVICE"]

    assert type_service.seed_standard_contract_types(db_session) == []
    assert len(type_service.list_active_contract_types(db_session)) == 3


def test_category_queries(db_session):
    type_service.seed_standard_contract_types(db_session)
    _create(db_session)

    counts = type_service.count_by_category(db_session)
    assert counts[ContractCategory.IT_SERVICES] == 1
    assert counts[ContractCategory.REAL_ESTATE] == 1
    banking = type_service.contract_types_by_category(db_session, ContractCategory.BANKING_SERVICES)
    assert [t.type_code for t in banking] == ["BANKING_SERVICE"]
    assert len(type_service.contract_types_requiring_approval(db_session)) == 3
