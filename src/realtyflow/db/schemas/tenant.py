"""Pydantic schemas for tenant API validation."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from realtyflow.db.models.tenant import TenantStatus

# DNS label: lowercase alphanumeric with inner hyphens, 1-63 chars
SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")


def normalize_subdomain(v: str | None) -> str | None:
    """Lowercase and validate a subdomain label; empty strings become None."""
    if v is None:
        return None
    v = v.strip().lower()
    if not v:
        return None
    if not SUBDOMAIN_PATTERN.match(v):
        raise ValueError(
            "Subdomain must be lowercase alphanumeric with hyphens, "
            "cannot start or end with hyphen"
        )
    return v


class TenantCreate(BaseModel):
    """Schema for creating a new tenant."""

    name: str = Field(..., min_length=1, max_length=255, description="Brokerage display name")
    subdomain: str | None = Field(
        None, max_length=63, description="Optional host label, e.g. 'acme' for acme.example.com"
    )

    @field_validator("subdomain")
    @classmethod
    def validate_subdomain(cls, v: str | None) -> str | None:
        return normalize_subdomain(v)


class TenantUpdate(BaseModel):
    """Schema for the tenant profile update made by its own owners and admins."""

    name: str | None = Field(None, min_length=1, max_length=255)
    subdomain: str | None = Field(None, max_length=63)

    @field_validator("subdomain")
    @classmethod
    def validate_subdomain(cls, v: str | None) -> str | None:
        return normalize_subdomain(v)


class TenantAdminUpdate(BaseModel):
    """Schema for platform administrators changing status, plan and limits."""

    status: TenantStatus | None = None
    plan_name: str | None = Field(None, min_length=1, max_length=50)
    subscription_id: str | None = Field(None, max_length=255)
    trial_ends_at: datetime | None = None
    contact_limit: int | None = Field(None, ge=0)
    property_limit: int | None = Field(None, ge=0)
    deal_limit: int | None = Field(None, ge=0)


class PaymentRecord(BaseModel):
    """A payment received outside the billing providers (bank transfer, cheque)."""

    amount: float = Field(..., gt=0)
    reference: str | None = Field(None, max_length=255)
    plan_name: str | None = Field(None, min_length=1, max_length=50)
    notes: str | None = None


class TenantResponse(BaseModel):
    """Schema for tenant API responses."""

    tenant_id: UUID
    name: str
    subdomain: str | None
    status: TenantStatus
    plan_name: str
    subscription_id: str | None
    trial_ends_at: datetime | None
    contact_limit: int
    property_limit: int
    deal_limit: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
