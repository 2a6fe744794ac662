"""Add CRM tables: properties, contacts, leads, pipelines, stages and deals

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def _tenant_id() -> sa.Column:
    return sa.Column(
        "tenant_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("tenants.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )


def _user_ref(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.user_id", ondelete="SET NULL"),
        nullable=True,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "properties",
        sa.Column("property_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("pincode", sa.String(20), nullable=True),
        sa.Column("property_type", sa.String(30), nullable=False),
        sa.Column("listing_type", sa.String(10), nullable=False),
        sa.Column("price", sa.Numeric(14, 2), nullable=False),
        sa.Column("rent_price", sa.Numeric(14, 2), nullable=True),
        sa.Column("area", sa.Integer, nullable=True),
        sa.Column("bedrooms", sa.Integer, nullable=True),
        sa.Column("bathrooms", sa.Integer, nullable=True),
        sa.Column("parking", sa.Integer, nullable=True),
        sa.Column("rera_id", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("amenities", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("images", postgresql.JSONB, nullable=False, server_default="[]"),
        _user_ref("created_by"),
        *_timestamps(),
    )
    op.create_index("ix_properties_tenant_id", "properties", ["tenant_id"])
    op.create_index("idx_property_tenant_status", "properties", ["tenant_id", "status"])

    op.create_table(
        "contacts",
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_id(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("alternate_phone", sa.String(30), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("contact_type", sa.String(20), nullable=False),
        sa.Column("source", sa.String(30), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        _user_ref("assigned_to"),
        *_timestamps(),
    )
    op.create_index("ix_contacts_tenant_id", "contacts", ["tenant_id"])

    op.create_table(
        "leads",
        sa.Column("lead_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_id(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("source", sa.String(30), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="new"),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("budget", sa.Numeric(14, 2), nullable=True),
        sa.Column("requirements", sa.Text, nullable=True),
        sa.Column("next_follow_up_at", sa.DateTime(timezone=True), nullable=True),
        _user_ref("assigned_to"),
        *_timestamps(),
    )
    op.create_index("ix_leads_tenant_id", "leads", ["tenant_id"])
    op.create_index("idx_lead_tenant_status", "leads", ["tenant_id", "status"])

    op.create_table(
        "pipelines",
        sa.Column("pipeline_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_pipelines_tenant_id", "pipelines", ["tenant_id"])

    op.create_table(
        "stages",
        sa.Column("stage_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_id(),
        sa.Column(
            "pipeline_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("pipelines.pipeline_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("color", sa.String(7), nullable=False, server_default="#6b7280"),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_stages_tenant_id", "stages", ["tenant_id"])
    op.create_index("idx_stage_pipeline_position", "stages", ["pipeline_id", "position"])

    op.create_table(
        "deals",
        sa.Column("deal_id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column(
            "pipeline_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("pipelines.pipeline_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "stage_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("stages.stage_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "property_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("properties.property_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "contact_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("contacts.contact_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("value", sa.Numeric(14, 2), nullable=False),
        sa.Column("probability", sa.Integer, nullable=True),
        sa.Column("expected_close_date", sa.Date, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        _user_ref("assigned_to"),
        *_timestamps(),
    )
    op.create_index("ix_deals_tenant_id", "deals", ["tenant_id"])
    op.create_index("idx_deal_tenant_stage", "deals", ["tenant_id", "stage_id"])
    # Closing-soon digest scans by close date
    op.create_index("idx_deal_expected_close", "deals", ["tenant_id", "expected_close_date"])


def downgrade() -> None:
    op.drop_table("deals")
    op.drop_table("stages")
    op.drop_table("pipelines")
    op.drop_table("leads")
    op.drop_table("contacts")
    op.drop_table("properties")
