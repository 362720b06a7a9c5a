from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from contract_repository.core.errors import (
    CoreBankingUnavailable,
    CustomerInvalid,
    MissingRequiredField,
    NotFound,
)
from contract_repository.models.domain import ContractStatus
from contract_repository.schemas import ContractCreate, ContractSearchCriteria
from contract_repository.services import contract_lifecycle as lifecycle
from contract_repository.services import contracts as contract_service
from contract_repository.services.core_banking import MockCoreBankingService

TODAY = date(2023, 12, 1)


class FlakyCoreBanking(MockCoreBankingService):
    def __init__(self, failing_customer_id: str):
        super().__init__()
        self.failing_customer_id = failing_customer_id

    def refresh_customer_data(self, customer_id: str):
        if customer_id == self.failing_customer_id:
            raise ConnectionError("T24 timeout")
        return super().refresh_customer_data(customer_id)


def _create(db, contract_type_id, core_banking, **overrides):
    base = dict(
        title="Vendor support",
        contract_type_id=contract_type_id,
        customer_id="CUS-12345",
        internal_department="Procurement",
        external_party="Vendor SA",
        start_date=TODAY,
        end_date=date(2024, 11, 30),
    )
    base.update(overrides)
    return contract_service.create_contract(
        db, ContractCreate(**base), core_banking=core_banking, username="tester", today=TODAY
    )


def _active(db, contract):
    return lifecycle.activate(db, contract, username="approver")


def test_create_rejects_inactive_customer(db_session, core_banking, software_license):
    with pytest.raises(CustomerInvalid, match="CUS-99999"):
        _create(db_session, software_license.id, core_banking, customer_id="CUS-99999")


def test_create_rejects_unknown_customer(db_session, core_banking, software_license):
    with pytest.raises(NotFound, match="Customer not found"):
        _create(db_session, software_license.id, core_banking, customer_id="CUS-00000")


def test_create_fails_when_core_banking_down(db_session, software_license):
    with pytest.raises(CoreBankingUnavailable):
        _create(db_session, software_license.id, MockCoreBankingService(available=False))


def test_connector_errors_are_mapped_to_unavailable(db_session, software_license):
    class BrokenCoreBanking(MockCoreBankingService):
        def get_customer_by_id(self, customer_id):
            raise ConnectionError("connection refused")

    with pytest.raises(CoreBankingUnavailable, match="connection refused"):
        _create(db_session, software_license.id, BrokenCoreBanking())


def test_create_requires_title(db_session, core_banking, software_license):
    with pytest.raises(MissingRequiredField) as excinfo:
        _create(db_session, software_license.id, core_banking, title=None)
    assert excinfo.value.field == "title"


def test_create_rejects_unknown_contract_type(db_session, core_banking):
    with pytest.raises(NotFound, match="ContractType not found: 999"):
        _create(db_session, 999, core_banking)


def test_create_uses_explicit_reminder_days_and_currency(db_session, core_banking, software_license):
    contract = _create(db_session, software_license.id, core_banking, reminder_days=45, currency="eur")

    assert contract.reminder_days == 45
    assert contract.currency == "EUR"


def test_lookup_by_number(db_session, core_banking, software_license):
    contract = _create(db_session, software_license.id, core_banking)

    assert contract_service.get_contract_by_number(db_session, contract.contract_number).id == contract.id
    assert contract_service.is_contract_number_available(db_session, contract.contract_number) is False
    assert contract_service.is_contract_number_available(db_session, "BP-2023-OTHER-0001") is True
    with pytest.raises(NotFound):
        contract_service.get_contract_by_number(db_session, "BP-2023-OTHER-0001")


def test_lifecycle_queries_use_derived_attributes(db_session, core_banking, software_license):
    soon = _active(db_session, _create(db_session, software_license.id, core_banking, end_date=date(2023, 12, 20)))
    later = _active(
        db_session,
        _create(
            db_session,
            software_license.id,
            core_banking,
            title="Later",
            renewal_date=date(2024, 2, 1),
        ),
    )
    draft = _create(db_session, software_license.id, core_banking, title="Draft", end_date=date(2023, 12, 15))

    assert [c.id for c in contract_service.expiring_contracts(db_session, days=30, today=TODAY)] == [soon.id]
    assert [c.id for c in contract_service.expired_contracts(db_session, today=date(2024, 1, 1))] == [soon.id]
    assert {c.id for c in contract_service.currently_active_contracts(db_session, today=TODAY)} == {
        soon.id,
        later.id,
    }
    assert [c.id for c in contract_service.renewal_reminders_due(db_session, today=TODAY)] == [soon.id]
    assert [c.id for c in contract_service.renewals_due(db_session, horizon_days=90, today=TODAY)] == [later.id]
    assert draft.id not in {c.id for c in contract_service.expired_contracts(db_session, today=date(2024, 1, 1))}


def test_financial_queries(db_session, core_banking, software_license):
    big = _create(db_session, software_license.id, core_banking, contract_value=Decimal("1500000"))
    small = _create(db_session, software_license.id, core_banking, title="Small", contract_value=Decimal("20000"))
    _create(db_session, software_license.id, core_banking, title="Unpriced")
    _active(db_session, big)

    assert [c.id for c in contract_service.high_value_contracts(db_session)] == [big.id]
    assert contract_service.total_contract_value(db_session) == Decimal("1520000")
    assert contract_service.total_contract_value(db_session, status=ContractStatus.ACTIVE) == Decimal("1500000")
    in_range = contract_service.contracts_in_value_range(
        db_session, min_value=Decimal("10000"), max_value=Decimal("100000")
    )
    assert [c.id for c in in_range] == [small.id]


def test_search_and_filters(db_session, core_banking, software_license):
    ms = _create(db_session, software_license.id, core_banking, title="Azure credits")
    ocp = _create(
        db_session,
        software_license.id,
        core_banking,
        title="Mining analytics",
        customer_id="CUS-67890",
        internal_department="Operations",
    )
    _active(db_session, ocp)

    assert [c.id for c in contract_service.search_contracts(db_session, "microsoft")] == [ms.id]
    assert [c.id for c in contract_service.search_contracts(db_session, "MINING")] == [ocp.id]
    assert [c.id for c in contract_service.contracts_by_customer(db_session, "CUS-67890")] == [ocp.id]
    assert [c.id for c in contract_service.contracts_by_department(db_session, "Operations")] == [ocp.id]
    assert [c.id for c in contract_service.contracts_by_t24_customer_id(db_session, "T24-CUS-001")] == [ms.id]
    assert len(contract_service.contracts_by_type(db_session, software_license.id)) == 2
    assert len(contract_service.contracts_by_source_system(db_session, "T24")) == 2

    criteria = ContractSearchCriteria(status=ContractStatus.ACTIVE, internal_department="Operations")
    assert [c.id for c in contract_service.find_by_criteria(db_session, criteria)] == [ocp.id]


def test_list_active_contracts_paginates(db_session, core_banking, software_license):
    for i in range(3):
        _create(db_session, software_license.id, core_banking, title=f"Contract {i}")

    first_page, total = contract_service.list_active_contracts(db_session, page=0, size=2)
    second_page, _ = contract_service.list_active_contracts(db_session, page=1, size=2)

    assert total == 3
    assert len(first_page) == 2
    assert len(second_page) == 1


def test_sync_customer_data_refreshes_snapshot(db_session, core_banking, software_license):
    contract = _create(db_session, software_license.id, core_banking)
    assert contract.last_modified_at is not None

    synced = contract_service.sync_customer_data(
        db_session, contract.id, core_banking=core_banking, username="sync-bot"
    )

    assert synced.source_system == "T24"
    assert synced.last_modified_by == "sync-bot"
    assert synced.last_modified_at is not None
    history = contract_service.contract_history(db_session, contract.id)
    assert history[0]["action"] == "contract.customer_synced"
    assert history[0]["payload"]["customer_id"] == "CUS-12345"


def test_contracts_needing_sync(db_session, core_banking, software_license):
    first = _create(db_session, software_license.id, core_banking)
    second = _create(db_session, software_license.id, core_banking, title="Second")

    # Freshly created contracts carry a modification time and are not stale yet.
    assert contract_service.contracts_needing_sync(db_session, stale_days=30, now=datetime.utcnow()) == []

    later = datetime.utcnow() + timedelta(days=31)
    stale = contract_service.contracts_needing_sync(db_session, stale_days=30, now=later)
    assert [c.id for c in stale] == [first.id, second.id]


def test_contracts_without_core_banking_id_always_need_sync(db_session, core_banking, software_license):
    contract = _create(db_session, software_license.id, core_banking)
    contract.t24_customer_id = None
    db_session.commit()

    stale = contract_service.contracts_needing_sync(db_session, stale_days=30, now=datetime.utcnow())
    assert [c.id for c in stale] == [contract.id]


def test_bulk_sync_counts_failures_without_aborting(db_session, core_banking, software_license):
    ok = _create(db_session, software_license.id, core_banking)
    failing = _create(db_session, software_license.id, core_banking, title="OCP", customer_id="CUS-67890")

    result = contract_service.bulk_sync_customer_data(
        db_session,
        core_banking=FlakyCoreBanking("CUS-67890"),
        username="sync-bot",
        contract_ids=[ok.id, failing.id],
    )

    assert result.total_processed == 2
    assert result.success_count == 1
    assert result.error_count == 1
    assert contract_service.get_contract(db_session, ok.id).last_modified_by == "sync-bot"
    assert contract_service.get_contract(db_session, failing.id).last_modified_by == "tester"


def test_bulk_sync_defaults_to_contracts_needing_sync(db_session, core_banking, software_license):
    _create(db_session, software_license.id, core_banking)
    _create(db_session, software_license.id, core_banking, title="Second")

    result = contract_service.bulk_sync_customer_data(
        db_session, core_banking=core_banking, username="sync-bot", now=datetime.utcnow() + timedelta(days=31)
    )

    assert (result.total_processed, result.success_count, result.error_count) == (2, 2, 0)


def test_history_of_unknown_contract(db_session):
    with pytest.raises(NotFound):
        contract_service.contract_history(db_session, 12345)
