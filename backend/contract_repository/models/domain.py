# ruff: noqa: E501
import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from contract_repository.database import Base

TYPE_CODE_PATTERN = re.compile(r"^[A-Z_]+$")


class ContractStatus(PyEnum):
    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"
    RENEWED = "RENEWED"

    @property
    def display_name(self) -> str:
        return _STATUS_DISPLAY_NAMES[self]


_STATUS_DISPLAY_NAMES = {
    ContractStatus.DRAFT: "Draft",
    ContractStatus.PENDING_APPROVAL: "Pending Approval",
    ContractStatus.ACTIVE: "Active",
    ContractStatus.SUSPENDED: "Suspended",
    ContractStatus.EXPIRED: "Expired",
    ContractStatus.TERMINATED: "Terminated",
    ContractStatus.RENEWED: "Renewed",
}


class RiskLevel(PyEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ContractCategory(PyEnum):
    IT_SERVICES = "IT_SERVICES"
    VENDOR_SERVICES = "VENDOR_SERVICES"
    PROFESSIONAL_SERVICES = "PROFESSIONAL_SERVICES"
    FACILITY_MANAGEMENT = "FACILITY_MANAGEMENT"
    BANKING_SERVICES = "BANKING_SERVICES"
    LEGAL_SERVICES = "LEGAL_SERVICES"
    HUMAN_RESOURCES = "HUMAN_RESOURCES"
    MARKETING_SERVICES = "MARKETING_SERVICES"
    INSURANCE = "INSURANCE"
    REAL_ESTATE = "REAL_ESTATE"
    OTHER = "OTHER"

    @property
    def display_name(self) -> str:
        return _CATEGORY_DISPLAY_NAMES[self]


_CATEGORY_DISPLAY_NAMES = {
    ContractCategory.IT_SERVICES: "IT & Technology Services",
    ContractCategory.VENDOR_SERVICES: "Vendor & Supplier Services",
    ContractCategory.PROFESSIONAL_SERVICES: "Professional Services",
    ContractCategory.FACILITY_MANAGEMENT: "Facility Management",
    ContractCategory.BANKING_SERVICES: "Banking & Financial Services",
    ContractCategory.LEGAL_SERVICES: "Legal Services",
    ContractCategory.HUMAN_RESOURCES: "Human Resources",
    ContractCategory.MARKETING_SERVICES: "Marketing & Communications",
    ContractCategory.INSURANCE: "Insurance & Risk Management",
    ContractCategory.REAL_ESTATE: "Real Estate & Property",
    ContractCategory.OTHER: "Other Services",
}


class RiskCategory(PyEnum):
    LOW_RISK = "LOW_RISK"
    MEDIUM_RISK = "MEDIUM_RISK"
    HIGH_RISK = "HIGH_RISK"
    CRITICAL_RISK = "CRITICAL_RISK"


_DEFAULT_RISK_BY_CATEGORY = {
    ContractCategory.IT_SERVICES: RiskCategory.HIGH_RISK,
    ContractCategory.BANKING_SERVICES: RiskCategory.HIGH_RISK,
    ContractCategory.PROFESSIONAL_SERVICES: RiskCategory.MEDIUM_RISK,
    ContractCategory.LEGAL_SERVICES: RiskCategory.MEDIUM_RISK,
    ContractCategory.FACILITY_MANAGEMENT: RiskCategory.LOW_RISK,
    ContractCategory.MARKETING_SERVICES: RiskCategory.LOW_RISK,
    ContractCategory.INSURANCE: RiskCategory.CRITICAL_RISK,
}


def default_risk_category(category: ContractCategory | None) -> RiskCategory:
    return _DEFAULT_RISK_BY_CATEGORY.get(category, RiskCategory.MEDIUM_RISK)


DEFAULT_REMINDER_DAYS = 30
DEFAULT_DURATION_MONTHS = 12


def _immutable_once_set(obj, key: str, value):
    current = getattr(obj, key, None)
    if current is not None and value != current:
        raise ValueError(f"{type(obj).__name__}.{key} is immutable once set")
    return value


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False, default="contract")
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    username: Mapped[str | None] = mapped_column(String(100), nullable=True)
    payload_json: Mapped[str | None] = mapped_column(Text)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class ContractType(Base):
    __tablename__ = "contract_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    type_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500))
    category: Mapped[ContractCategory] = mapped_column(
        Enum(ContractCategory, native_enum=False, length=30), nullable=False, index=True
    )
    default_duration_months: Mapped[int | None] = mapped_column(Integer)
    default_reminder_days: Mapped[int | None] = mapped_column(Integer)
    requires_approval: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    auto_renewal_allowed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    financial_impact: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    risk_category: Mapped[RiskCategory | None] = mapped_column(
        Enum(RiskCategory, native_enum=False, length=20)
    )
    approval_workflow: Mapped[str | None] = mapped_column(String(200))
    required_documents: Mapped[str | None] = mapped_column(String(500))
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    created_by: Mapped[str | None] = mapped_column(String(100))
    last_modified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    last_modified_by: Mapped[str | None] = mapped_column(String(100))
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    contracts = relationship("Contract", back_populates="contract_type")

    __mapper_args__ = {"version_id_col": version}

    @validates("type_code")
    def _validate_type_code(self, key, value: str):
        value = str(value or "").strip()
        if not value or len(value) > 20 or not TYPE_CODE_PATTERN.match(value):
            raise ValueError("Type code must contain only uppercase letters and underscores")
        return _immutable_once_set(self, key, value)

    @validates("default_duration_months")
    def _validate_duration(self, _key, value: int | None):
        if value is not None and not 1 <= int(value) <= 1200:
            raise ValueError("Default duration must be between 1 and 1200 months")
        return value

    @validates("default_reminder_days")
    def _validate_reminder_days(self, _key, value: int | None):
        if value is not None and not 1 <= int(value) <= 365:
            raise ValueError("Default reminder days must be between 1 and 365")
        return value

    @property
    def effective_reminder_days(self) -> int:
        return self.default_reminder_days if self.default_reminder_days is not None else DEFAULT_REMINDER_DAYS

    @property
    def effective_duration_months(self) -> int:
        return (
            self.default_duration_months
            if self.default_duration_months is not None
            else DEFAULT_DURATION_MONTHS
        )

    @property
    def is_high_risk(self) -> bool:
        return self.risk_category in {RiskCategory.HIGH_RISK, RiskCategory.CRITICAL_RISK}

    @property
    def full_display_name(self) -> str:
        return f"{self.type_name} ({self.category.display_name})"

    def apply_creation_defaults(self) -> None:
        if self.requires_approval is None:
            self.requires_approval = False
        if self.auto_renewal_allowed is None:
            self.auto_renewal_allowed = False
        if self.financial_impact is None:
            self.financial_impact = False
        if self.display_order is None:
            self.display_order = 0
        if self.default_reminder_days is None:
            self.default_reminder_days = DEFAULT_REMINDER_DAYS
        if self.default_duration_months is None:
            self.default_duration_months = DEFAULT_DURATION_MONTHS
        if self.risk_category is None:
            self.risk_category = default_risk_category(self.category)


@event.listens_for(ContractType, "before_insert")
def _contract_type_before_insert(_mapper, _connection, target: ContractType):
    target.apply_creation_defaults()


class Contract(Base):
    __tablename__ = "contracts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contract_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000))
    contract_type_id: Mapped[int] = mapped_column(ForeignKey("contract_types.id"), nullable=False, index=True)
    status: Mapped[ContractStatus] = mapped_column(
        Enum(ContractStatus, native_enum=False, length=20),
        default=ContractStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Customer information, denormalised from the core banking system (T24/Evolan).
    customer_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_type: Mapped[str | None] = mapped_column(String(50))
    t24_customer_id: Mapped[str | None] = mapped_column(String(50), index=True)
    relationship_manager: Mapped[str | None] = mapped_column(String(100))
    source_system: Mapped[str | None] = mapped_column(String(50))  # T24 | EVOLAN | MOCK | MANUAL

    internal_department: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    external_party: Mapped[str] = mapped_column(String(200), nullable=False)
    business_owner: Mapped[str | None] = mapped_column(String(100))
    primary_contact: Mapped[str | None] = mapped_column(String(100))

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    renewal_date: Mapped[date | None] = mapped_column(Date)

    contract_value: Mapped[Decimal | None] = mapped_column(Numeric(17, 2))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MAD")
    payment_terms: Mapped[str | None] = mapped_column(String(100))
    risk_level: Mapped[RiskLevel | None] = mapped_column(Enum(RiskLevel, native_enum=False, length=20))

    auto_renewal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reminder_days: Mapped[int | None] = mapped_column(Integer)
    internal_notes: Mapped[str | None] = mapped_column(String(1000))
    compliance_notes: Mapped[str | None] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    created_by: Mapped[str | None] = mapped_column(String(100))
    last_modified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    last_modified_by: Mapped[str | None] = mapped_column(String(100))
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    contract_type = relationship("ContractType", back_populates="contracts")

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_contracts_end_after_start"),
        CheckConstraint("contract_value IS NULL OR contract_value > 0", name="ck_contracts_value_positive"),
    )
    __mapper_args__ = {"version_id_col": version}

    @validates("contract_number")
    def _validate_contract_number(self, key, value: str):
        value = str(value or "").strip()
        if not value or len(value) > 50:
            raise ValueError("Contract number is required and must not exceed 50 characters")
        return _immutable_once_set(self, key, value)

    @validates("status")
    def _validate_status(self, _key, value: str | ContractStatus | None):
        if value is None:
            return ContractStatus.DRAFT
        if isinstance(value, ContractStatus):
            return value
        try:
            return ContractStatus(str(value))
        except ValueError:
            raise ValueError(f"Invalid contract status: {value}") from None

    @validates("reminder_days")
    def _validate_reminder_days(self, _key, value: int | None):
        if value is not None and not 1 <= int(value) <= 365:
            raise ValueError("Reminder days must be between 1 and 365")
        return value

    def _validate_invariants(self) -> None:
        if self.start_date is not None and self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("Contract.end_date must not precede start_date")
        if self.contract_value is not None and Decimal(self.contract_value) <= 0:
            raise ValueError("Contract.contract_value must be positive")

    def soft_delete(self) -> None:
        self.is_active = False

    def restore(self) -> None:
        self.is_active = True


@event.listens_for(Contract, "before_insert")
def _contract_before_insert(_mapper, _connection, target: Contract):
    if target.currency is None:
        target.currency = "MAD"
    if target.reminder_days is None:
        target.reminder_days = DEFAULT_REMINDER_DAYS
    target._validate_invariants()


@event.listens_for(Contract, "before_update")
def _contract_before_update(_mapper, _connection, target: Contract):
    target._validate_invariants()
