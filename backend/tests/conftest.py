import os
import tempfile

# Environment must be set BEFORE any contract_repository import: settings are
# read once at import time.
_TEST_DB_PATH = os.path.join(tempfile.gettempdir(), f"test_contract_repository_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{_TEST_DB_PATH}"
os.environ["ENVIRONMENT"] = "test"
os.environ["API_V1_STR"] = "/api"
os.environ["CORE_BANKING_TYPE"] = "mock"

from datetime import date, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from contract_repository.api.deps import get_core_banking  # noqa: E402
from contract_repository.database import Base, get_db  # noqa: E402
from contract_repository.database import engine as app_engine  # noqa: E402
from contract_repository.main import app  # noqa: E402
from contract_repository.models.domain import ContractCategory  # noqa: E402
from contract_repository.schemas import ContractCreate, ContractTypeCreate  # noqa: E402
from contract_repository.services import contract_types as type_service  # noqa: E402
from contract_repository.services import contracts as contract_service  # noqa: E402
from contract_repository.services.core_banking import MockCoreBankingService  # noqa: E402

TEST_ENGINE = app_engine

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=TEST_ENGINE, future=True)

# Fixed evaluation date for service-level tests.
TODAY = date(2023, 12, 1)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function", autouse=True)
def setup_test_database():
    """Fresh schema per test; dependency overrides restored afterwards."""
    original_overrides = dict(app.dependency_overrides)

    Base.metadata.drop_all(bind=TEST_ENGINE)
    Base.metadata.create_all(bind=TEST_ENGINE)

    yield

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def core_banking():
    return MockCoreBankingService()


@pytest.fixture
def client(core_banking):
    app.dependency_overrides[get_core_banking] = lambda: core_banking
    with TestClient(app) as c:
        yield c


@pytest.fixture
def software_license(db_session):
    return type_service.create_contract_type(
        db_session,
        ContractTypeCreate(
            type_code="SOFTWARE_LICENSE",
            type_name="Software License",
            category=ContractCategory.IT_SERVICES,
            requires_approval=True,
        ),
        username="tester",
    )


def contract_payload(contract_type_id, **overrides):
    base = dict(
        title="Microsoft 365 Enterprise",
        contract_type_id=contract_type_id,
        customer_id="CUS-12345",
        internal_department="IT",
        external_party="Microsoft Maroc SARL",
        start_date=TODAY,
        end_date=TODAY + timedelta(days=365),
        contract_value=Decimal("250000.00"),
    )
    base.update(overrides)
    return ContractCreate(**base)


@pytest.fixture
def make_contract(db_session, core_banking, software_license):
    def _make(**overrides):
        return contract_service.create_contract(
            db_session,
            contract_payload(software_license.id, **overrides),
            core_banking=core_banking,
            username="tester",
            today=TODAY,
        )

    return _make
