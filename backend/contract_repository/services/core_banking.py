"""Core banking (T24/Evolan) customer lookup.

Only the mock connector ships with this backend. Real connectors implement the
same ``CoreBankingService`` protocol and are selected via ``CORE_BANKING_TYPE``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import Decimal
from functools import lru_cache
from typing import Iterable, Optional, Protocol

from contract_repository.config import settings
from contract_repository.core.errors import CoreBankingUnavailable, NotFound

logger = logging.getLogger("contract_repository.core_banking")


@dataclass(frozen=True)
class CustomerRecord:
    customer_id: str
    customer_name: str
    customer_type: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    relationship_manager: Optional[str] = None
    account_manager: Optional[str] = None
    is_active: bool = True
    last_sync_date: Optional[datetime] = None
    t24_customer_id: Optional[str] = None
    source_system: Optional[str] = None
    risk_rating: Optional[str] = None
    sector: Optional[str] = None
    tax_id: Optional[str] = None


@dataclass(frozen=True)
class AccountSummary:
    account_id: str
    account_number: str
    account_type: str
    currency: str
    balance: Decimal
    status: str


@dataclass(frozen=True)
class SystemHealth:
    system_name: str
    available: bool
    status: str
    response_time_ms: int
    checked_at: str
    version: str


class CoreBankingService(Protocol):
    system_name: str

    def get_customer_by_id(self, customer_id: str) -> CustomerRecord: ...

    def search_customers_by_name(self, name: str) -> list[CustomerRecord]: ...

    def is_customer_valid(self, customer_id: str) -> bool: ...

    def get_customer_accounts(self, customer_id: str) -> list[AccountSummary]: ...

    def refresh_customer_data(self, customer_id: str) -> CustomerRecord: ...

    def bulk_refresh_customer_data(self, customer_ids: Iterable[str]) -> list[CustomerRecord]: ...

    def is_system_available(self) -> bool: ...

    def get_system_health(self) -> SystemHealth: ...

    def get_customers_needing_refresh(self, days_since_last_sync: int) -> list[str]: ...


def _mock_customers(now: datetime) -> dict[str, CustomerRecord]:
    records = [
        CustomerRecord(
            customer_id="CUS-12345",
            customer_name="Microsoft Maroc SARL",
            customer_type="CORPORATE",
            contact_person="Ahmed Benjelloun",
            contact_email="ahmed.benjelloun@microsoft.ma",
            contact_phone="+212 522 123 456",
            address="Twin Center, Boulevard Zerktouni",
            city="Casablanca",
            country="Morocco",
            relationship_manager="Fatima El Alami",
            account_manager="Youssef Sekkouri",
            t24_customer_id="T24-CUS-001",
            source_system="MOCK",
            risk_rating="LOW",
            sector="TECHNOLOGY",
            tax_id="123456789",
            last_sync_date=now,
        ),
        CustomerRecord(
            customer_id="CUS-67890",
            customer_name="OCP Group",
            customer_type="CORPORATE",
            contact_person="Youssef Sekkouri",
            contact_email="y.sekkouri@ocpgroup.ma",
            contact_phone="+212 537 680 000",
            address="Hay Riad",
            city="Rabat",
            country="Morocco",
            relationship_manager="Rachid Ouali",
            account_manager="Marie Hassan",
            t24_customer_id="T24-CUS-002",
            source_system="MOCK",
            risk_rating="MEDIUM",
            sector="MINING",
            tax_id="987654321",
            last_sync_date=now,
        ),
        CustomerRecord(
            customer_id="CUS-11111",
            customer_name="Attijariwafa Bank",
            customer_type="CORPORATE",
            contact_person="Nabil Benabdellah",
            contact_email="n.benabdellah@attijariwafa.ma",
            contact_phone="+212 522 477 474",
            address="2, Boulevard Moulay Youssef",
            city="Casablanca",
            country="Morocco",
            relationship_manager="Aicha Bennani",
            account_manager="Omar Fassi",
            t24_customer_id="T24-CUS-003",
            source_system="MOCK",
            risk_rating="LOW",
            sector="BANKING",
            tax_id="555666777",
            last_sync_date=now,
        ),
        # Closed relationship, kept to exercise the inactive-customer path.
        CustomerRecord(
            customer_id="CUS-99999",
            customer_name="Dormant Trading SA",
            customer_type="CORPORATE",
            city="Tangier",
            country="Morocco",
            relationship_manager="Karim Tazi",
            source_system="MOCK",
            risk_rating="HIGH",
            sector="TRADING",
            is_active=False,
            last_sync_date=now - timedelta(days=400),
        ),
    ]
    return {r.customer_id: r for r in records}


class MockCoreBankingService:
    """Fixed in-memory customer book used in dev and tests."""

    system_name = "MOCK"
    version = "1.0.0-MOCK"

    def __init__(self, customers: Optional[dict[str, CustomerRecord]] = None, *, available: bool = True):
        self._customers = dict(customers) if customers is not None else _mock_customers(datetime.utcnow())
        self._available = available

    def _ensure_available(self) -> None:
        if not self._available:
            raise CoreBankingUnavailable(self.system_name, "connector disabled")

    def get_customer_by_id(self, customer_id: str) -> CustomerRecord:
        self._ensure_available()
        customer = self._customers.get(str(customer_id))
        if customer is None:
            logger.warning("core_banking_customer_not_found", extra={"customer_id": customer_id})
            raise NotFound("Customer", customer_id)
        return customer

    def search_customers_by_name(self, name: str) -> list[CustomerRecord]:
        self._ensure_available()
        needle = str(name or "").strip().lower()
        results = [c for c in self._customers.values() if needle in c.customer_name.lower()]
        logger.info(
            "core_banking_customer_search",
            extra={"query": name, "results": len(results)},
        )
        return results

    def is_customer_valid(self, customer_id: str) -> bool:
        self._ensure_available()
        customer = self._customers.get(str(customer_id))
        return customer is not None and bool(customer.is_active)

    def get_customer_accounts(self, customer_id: str) -> list[AccountSummary]:
        customer = self.get_customer_by_id(customer_id)
        cid = customer.customer_id
        return [
            AccountSummary(
                account_id=f"ACC-{cid}-001",
                account_number="001234567890",
                account_type="CURRENT",
                currency="MAD",
                balance=Decimal("125000.00"),
                status="ACTIVE",
            ),
            AccountSummary(
                account_id=f"ACC-{cid}-002",
                account_number="001234567891",
                account_type="SAVINGS",
                currency="MAD",
                balance=Decimal("500000.00"),
                status="ACTIVE",
            ),
        ]

    def refresh_customer_data(self, customer_id: str) -> CustomerRecord:
        customer = self.get_customer_by_id(customer_id)
        refreshed = replace(customer, source_system=self.system_name, last_sync_date=datetime.utcnow())
        self._customers[refreshed.customer_id] = refreshed
        return refreshed

    def bulk_refresh_customer_data(self, customer_ids: Iterable[str]) -> list[CustomerRecord]:
        return [self.refresh_customer_data(cid) for cid in customer_ids]

    def is_system_available(self) -> bool:
        return self._available

    def get_system_health(self) -> SystemHealth:
        return SystemHealth(
            system_name=self.system_name,
            available=self._available,
            status="HEALTHY" if self._available else "DOWN",
            response_time_ms=5,
            checked_at=datetime.utcnow().isoformat(timespec="seconds") + "Z",
            version=self.version,
        )

    def get_customers_needing_refresh(self, days_since_last_sync: int) -> list[str]:
        self._ensure_available()
        threshold = datetime.utcnow() - timedelta(days=int(days_since_last_sync))
        return [
            c.customer_id
            for c in self._customers.values()
            if c.last_sync_date is None or c.last_sync_date < threshold
        ]


def build_core_banking_service(kind: str) -> CoreBankingService:
    kind = str(kind or "mock").strip().lower()
    if kind == "mock":
        return MockCoreBankingService()
    raise ValueError(f"Unsupported core banking type: {kind}")


@lru_cache(maxsize=1)
def get_core_banking_service() -> CoreBankingService:
    return build_core_banking_service(settings.core_banking_type)
