from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from contract_repository.models.domain import ContractStatus, RiskLevel


def _upper_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip().upper()
    if len(s) != 3 or not s.isalpha():
        raise ValueError("currency must be a 3-letter ISO code")
    return s


class ContractCreate(BaseModel):
    contract_number: Optional[str] = Field(default=None, max_length=50)
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    contract_type_id: Optional[int] = None

    customer_id: Optional[str] = Field(default=None, max_length=50)
    internal_department: str = Field(min_length=1, max_length=100)
    external_party: str = Field(min_length=1, max_length=200)
    business_owner: Optional[str] = Field(default=None, max_length=100)
    primary_contact: Optional[str] = Field(default=None, max_length=100)

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    renewal_date: Optional[date] = None

    contract_value: Optional[Decimal] = None
    currency: Optional[str] = None
    payment_terms: Optional[str] = Field(default=None, max_length=100)
    risk_level: Optional[RiskLevel] = None

    auto_renewal: bool = False
    reminder_days: Optional[int] = Field(default=None, ge=1, le=365)
    internal_notes: Optional[str] = Field(default=None, max_length=1000)
    compliance_notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        return _upper_currency(v)


class ContractUpdate(BaseModel):
    """Partial update: only fields that are present and non-null overwrite."""

    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    contract_type_id: Optional[int] = None
    internal_department: Optional[str] = Field(default=None, max_length=100)
    external_party: Optional[str] = Field(default=None, max_length=200)
    business_owner: Optional[str] = Field(default=None, max_length=100)
    primary_contact: Optional[str] = Field(default=None, max_length=100)

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    renewal_date: Optional[date] = None

    contract_value: Optional[Decimal] = None
    currency: Optional[str] = None
    payment_terms: Optional[str] = Field(default=None, max_length=100)
    risk_level: Optional[RiskLevel] = None

    auto_renewal: Optional[bool] = None
    reminder_days: Optional[int] = Field(default=None, ge=1, le=365)
    internal_notes: Optional[str] = Field(default=None, max_length=1000)
    compliance_notes: Optional[str] = Field(default=None, max_length=1000)

    # Version the client last read; a mismatch is reported as a concurrent modification.
    version: Optional[int] = None

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        return _upper_currency(v)

    @field_validator("title", "internal_department", "external_party")
    @classmethod
    def required_text_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        s = v.strip()
        if not s:
            raise ValueError("must not be blank")
        return s


class ContractReasonRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class ContractRenewRequest(BaseModel):
    new_start_date: date
    new_end_date: date


class ContractExtendRequest(BaseModel):
    new_end_date: date


class ContractValueUpdate(BaseModel):
    contract_value: Decimal


class ContractSearchCriteria(BaseModel):
    contract_type_id: Optional[int] = None
    status: Optional[ContractStatus] = None
    customer_id: Optional[str] = None
    internal_department: Optional[str] = None
    start_date_from: Optional[date] = None
    end_date_to: Optional[date] = None


class ContractTypeMini(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type_code: str
    type_name: str


class ContractRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    contract_number: str
    title: str
    description: Optional[str] = None
    contract_type_id: int
    contract_type: Optional[ContractTypeMini] = None
    status: ContractStatus
    status_display_name: str

    customer_id: str
    customer_name: str
    customer_type: Optional[str] = None
    t24_customer_id: Optional[str] = None
    relationship_manager: Optional[str] = None
    source_system: Optional[str] = None

    internal_department: str
    external_party: str
    business_owner: Optional[str] = None
    primary_contact: Optional[str] = None

    start_date: date
    end_date: date
    renewal_date: Optional[date] = None

    contract_value: Optional[Decimal] = None
    currency: str
    payment_terms: Optional[str] = None
    risk_level: Optional[RiskLevel] = None

    auto_renewal: bool
    reminder_days: Optional[int] = None
    internal_notes: Optional[str] = None
    compliance_notes: Optional[str] = None

    is_active: bool
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    last_modified_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None
    version: int

    # Derived, recomputed on every read
    effective_status: ContractStatus
    currently_active: bool
    has_expired: bool
    is_expiring_soon: bool
    days_until_expiration: int
    contract_duration_days: int
    needs_renewal_reminder: bool
    formatted_value: str


class ContractSummary(BaseModel):
    id: int
    contract_number: str
    title: str
    status: ContractStatus
    effective_status: ContractStatus
    customer_name: str
    internal_department: str
    end_date: date
    formatted_value: str
    days_until_expiration: int
    is_expiring_soon: bool
    needs_renewal_reminder: bool


class ContractPage(BaseModel):
    items: list[ContractSummary]
    total: int
    page: int
    size: int


class ContractNumberAvailability(BaseModel):
    contract_number: str
    available: bool


class ContractHistoryEntry(BaseModel):
    id: int
    action: str
    username: Optional[str] = None
    payload: dict[str, Any]
    request_id: Optional[str] = None
    created_at: Optional[datetime] = None


class ContractRenewResponse(BaseModel):
    original: ContractRead
    renewed: ContractRead


class BulkSyncResult(BaseModel):
    total_processed: int
    success_count: int
    error_count: int
