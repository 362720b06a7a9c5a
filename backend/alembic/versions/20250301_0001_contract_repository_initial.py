"""contract repository initial schema

Revision ID: 20250301_0001_initial
Revises:
Create Date: 2025-03-01
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20250301_0001_initial"
down_revision = None
branch_labels = None
depends_on = None

_CONTRACT_STATUS = sa.Enum(
    "DRAFT",
    "PENDING_APPROVAL",
    "ACTIVE",
    "SUSPENDED",
    "EXPIRED",
    "TERMINATED",
    "RENEWED",
    name="contractstatus",
    native_enum=False,
    length=20,
)
_CATEGORY = sa.Enum(
    "IT_SERVICES",
    "VENDOR_SERVICES",
    "PROFESSIONAL_SERVICES",
    "FACILITY_MANAGEMENT",
    "BANKING_SERVICES",
    "LEGAL_SERVICES",
    "HUMAN_RESOURCES",
    "MARKETING_SERVICES",
    "INSURANCE",
    "REAL_ESTATE",
    "OTHER",
    name="contractcategory",
    native_enum=False,
    length=30,
)
_RISK_CATEGORY = sa.Enum(
    "LOW_RISK", "MEDIUM_RISK", "HIGH_RISK", "CRITICAL_RISK", name="riskcategory", native_enum=False, length=20
)
_RISK_LEVEL = sa.Enum("LOW", "MEDIUM", "HIGH", "CRITICAL", name="risklevel", native_enum=False, length=20)


def upgrade() -> None:
    op.create_table(
        "contract_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type_code", sa.String(length=20), nullable=False),
        sa.Column("type_name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500)),
        sa.Column("category", _CATEGORY, nullable=False),
        sa.Column("default_duration_months", sa.Integer()),
        sa.Column("default_reminder_days", sa.Integer()),
        sa.Column("requires_approval", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("auto_renewal_allowed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("financial_impact", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("risk_category", _RISK_CATEGORY),
        sa.Column("approval_workflow", sa.String(length=200)),
        sa.Column("required_documents", sa.String(length=500)),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_by", sa.String(length=100)),
        sa.Column("last_modified_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_modified_by", sa.String(length=100)),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_contract_types_type_code", "contract_types", ["type_code"], unique=True)
    op.create_index("ix_contract_types_category", "contract_types", ["category"])
    op.create_index("ix_contract_types_is_active", "contract_types", ["is_active"])

    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("contract_number", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=1000)),
        sa.Column("contract_type_id", sa.Integer(), sa.ForeignKey("contract_types.id"), nullable=False),
        sa.Column("status", _CONTRACT_STATUS, nullable=False, server_default="DRAFT"),
        sa.Column("customer_id", sa.String(length=50), nullable=False),
        sa.Column("customer_name", sa.String(length=200), nullable=False),
        sa.Column("customer_type", sa.String(length=50)),
        sa.Column("t24_customer_id", sa.String(length=50)),
        sa.Column("relationship_manager", sa.String(length=100)),
        sa.Column("source_system", sa.String(length=50)),
        sa.Column("internal_department", sa.String(length=100), nullable=False),
        sa.Column("external_party", sa.String(length=200), nullable=False),
        sa.Column("business_owner", sa.String(length=100)),
        sa.Column("primary_contact", sa.String(length=100)),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("renewal_date", sa.Date()),
        sa.Column("contract_value", sa.Numeric(17, 2)),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="MAD"),
        sa.Column("payment_terms", sa.String(length=100)),
        sa.Column("risk_level", _RISK_LEVEL),
        sa.Column("auto_renewal", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reminder_days", sa.Integer()),
        sa.Column("internal_notes", sa.String(length=1000)),
        sa.Column("compliance_notes", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_by", sa.String(length=100)),
        sa.Column("last_modified_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_modified_by", sa.String(length=100)),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("end_date >= start_date", name="ck_contracts_end_after_start"),
        sa.CheckConstraint(
            "contract_value IS NULL OR contract_value > 0", name="ck_contracts_value_positive"
        ),
    )
    op.create_index("ix_contracts_contract_number", "contracts", ["contract_number"], unique=True)
    op.create_index("ix_contracts_contract_type_id", "contracts", ["contract_type_id"])
    op.create_index("ix_contracts_status", "contracts", ["status"])
    op.create_index("ix_contracts_customer_id", "contracts", ["customer_id"])
    op.create_index("ix_contracts_t24_customer_id", "contracts", ["t24_customer_id"])
    op.create_index("ix_contracts_internal_department", "contracts", ["internal_department"])
    op.create_index("ix_contracts_end_date", "contracts", ["end_date"])
    op.create_index("ix_contracts_is_active", "contracts", ["is_active"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("username", sa.String(length=100), nullable=True),
        sa.Column("payload_json", sa.Text()),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])
    op.create_index("ix_audit_logs_request_id", "audit_logs", ["request_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("contracts")
    op.drop_table("contract_types")
