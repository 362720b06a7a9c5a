import pytest

from contract_repository.core.errors import CoreBankingUnavailable, NotFound
from contract_repository.services.core_banking import (
    MockCoreBankingService,
    build_core_banking_service,
)


def test_lookup_known_customer():
    service = MockCoreBankingService()

    customer = service.get_customer_by_id("CUS-67890")

    assert customer.customer_name == "OCP Group"
    assert customer.t24_customer_id == "T24-CUS-002"
    assert customer.is_active is True


def test_lookup_unknown_customer_raises_not_found():
    with pytest.raises(NotFound, match="Customer not found: CUS-00000"):
        MockCoreBankingService().get_customer_by_id("CUS-00000")


def test_inactive_customer_is_not_valid():
    service = MockCoreBankingService()

    assert service.is_customer_valid("CUS-12345") is True
    assert service.is_customer_valid("CUS-99999") is False
    assert service.is_customer_valid("CUS-00000") is False


def test_search_is_case_insensitive():
    names = [c.customer_name for c in MockCoreBankingService().search_customers_by_name("bank")]
    assert names == ["Attijariwafa Bank"]


def test_accounts_are_scoped_to_customer():
    accounts = MockCoreBankingService().get_customer_accounts("CUS-11111")

    assert [a.account_id for a in accounts] == ["ACC-CUS-11111-001", "ACC-CUS-11111-002"]


def test_refresh_updates_sync_metadata():
    service = MockCoreBankingService()
    before = service.get_customer_by_id("CUS-99999").last_sync_date

    refreshed = service.refresh_customer_data("CUS-99999")

    assert refreshed.source_system == "MOCK"
    assert refreshed.last_sync_date > before
    assert "CUS-99999" not in service.get_customers_needing_refresh(30)


def test_stale_customers_need_refresh():
    assert MockCoreBankingService().get_customers_needing_refresh(30) == ["CUS-99999"]


def test_unavailable_connector():
    service = MockCoreBankingService(available=False)

    assert service.is_system_available() is False
    assert service.get_system_health().status == "DOWN"
    with pytest.raises(CoreBankingUnavailable):
        service.get_customer_by_id("CUS-12345")


def test_build_rejects_unknown_connector():
    assert isinstance(build_core_banking_service("MOCK"), MockCoreBankingService)
    with pytest.raises(ValueError, match="Unsupported core banking type"):
        build_core_banking_service("evolan")
