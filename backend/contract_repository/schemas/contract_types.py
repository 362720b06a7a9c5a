from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from contract_repository.models.domain import ContractCategory, RiskCategory


class ContractTypeCreate(BaseModel):
    type_code: str = Field(min_length=1, max_length=20, pattern=r"^[A-Z_]+$")
    type_name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: ContractCategory
    default_duration_months: Optional[int] = Field(default=None, ge=1, le=1200)
    default_reminder_days: Optional[int] = Field(default=None, ge=1, le=365)
    requires_approval: bool = False
    auto_renewal_allowed: bool = False
    financial_impact: bool = False
    risk_category: Optional[RiskCategory] = None
    approval_workflow: Optional[str] = Field(default=None, max_length=200)
    required_documents: Optional[str] = Field(default=None, max_length=500)
    display_order: int = 0


class ContractTypeUpdate(BaseModel):
    # type_code cannot change after creation.
    type_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[ContractCategory] = None
    default_duration_months: Optional[int] = Field(default=None, ge=1, le=1200)
    default_reminder_days: Optional[int] = Field(default=None, ge=1, le=365)
    requires_approval: Optional[bool] = None
    auto_renewal_allowed: Optional[bool] = None
    financial_impact: Optional[bool] = None
    risk_category: Optional[RiskCategory] = None
    approval_workflow: Optional[str] = Field(default=None, max_length=200)
    required_documents: Optional[str] = Field(default=None, max_length=500)
    display_order: Optional[int] = None


class ContractTypeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type_code: str
    type_name: str
    description: Optional[str] = None
    category: ContractCategory
    default_duration_months: Optional[int] = None
    default_reminder_days: Optional[int] = None
    requires_approval: bool
    auto_renewal_allowed: bool
    financial_impact: bool
    risk_category: Optional[RiskCategory] = None
    approval_workflow: Optional[str] = None
    required_documents: Optional[str] = None
    display_order: int
    is_active: bool
    is_high_risk: bool
    full_display_name: str
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    last_modified_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None
    version: int


class CategoryCount(BaseModel):
    category: ContractCategory
    count: int
