"""Pydantic schemas for users, authentication and team membership."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from realtyflow.core.roles import Role

from .tenant import normalize_subdomain


class RegisterRequest(BaseModel):
    """Signup: creates the user, their first brokerage and the OWNER membership."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    company_name: str = Field(..., min_length=1, max_length=255)
    subdomain: str | None = Field(None, max_length=63)

    @field_validator("subdomain")
    @classmethod
    def validate_subdomain(cls, v: str | None) -> str | None:
        return normalize_subdomain(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class SwitchTenantRequest(BaseModel):
    tenant_id: UUID


class UserResponse(BaseModel):
    user_id: UUID
    email: str
    first_name: str
    last_name: str
    is_active: bool
    is_platform_admin: bool
    current_tenant_id: UUID | None

    model_config = {"from_attributes": True}


class MembershipSummary(BaseModel):
    """One tenant the user belongs to, with their role there."""

    tenant_id: UUID
    tenant_name: str
    subdomain: str | None
    status: str
    role: Role


class TokenResponse(BaseModel):
    """Session token plus the identity it was issued for."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse
    tenant_ids: list[UUID]
    current_tenant_id: UUID | None = None


class MeResponse(BaseModel):
    user: UserResponse
    memberships: list[MembershipSummary]
    current_tenant_id: UUID | None = Field(
        None, description="Tenant this request resolved to, if any"
    )
    role: Role | None = Field(None, description="Role in the resolved tenant")


class MemberCreate(BaseModel):
    """Add a user to the current tenant, creating the account when the email is new."""

    email: EmailStr
    role: Role
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    password: str | None = Field(
        None, min_length=8, max_length=128, description="Required when the email has no account"
    )


class MemberUpdate(BaseModel):
    role: Role


class MemberResponse(BaseModel):
    membership_id: UUID
    user_id: UUID
    email: str
    full_name: str
    role: Role
    is_active: bool
    created_at: datetime

    @classmethod
    def from_membership(cls, membership) -> "MemberResponse":
        return cls(
            membership_id=membership.membership_id,
            user_id=membership.user_id,
            email=membership.user.email,
            full_name=membership.user.full_name,
            role=Role(membership.role),
            is_active=membership.is_active,
            created_at=membership.created_at,
        )
