from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: str
    customer_name: str
    customer_type: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    relationship_manager: Optional[str] = None
    account_manager: Optional[str] = None
    is_active: bool
    last_sync_date: Optional[datetime] = None
    t24_customer_id: Optional[str] = None
    source_system: Optional[str] = None
    risk_rating: Optional[str] = None
    sector: Optional[str] = None


class CustomerValidity(BaseModel):
    customer_id: str
    valid: bool


class AccountSummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: str
    account_number: str
    account_type: str
    currency: str
    balance: Decimal
    status: str


class SystemHealthRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    system_name: str
    available: bool
    status: str
    response_time_ms: int
    checked_at: str
    version: str
