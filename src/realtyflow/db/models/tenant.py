"""Tenant model for multi-tenancy support."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, PortableUUID, TimestampMixin, UTCDateTime


class TenantStatus(str, Enum):
    """Billing lifecycle state of a tenant."""

    TRIAL = "trial"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    EXPIRED = "expired"


# Statuses that allow normal use of the product
USABLE_STATUSES: frozenset[TenantStatus] = frozenset({TenantStatus.TRIAL, TenantStatus.ACTIVE})


class Tenant(TimestampMixin, Base):
    """Brokerage account whose data is isolated from every other tenant.

    All CRM data is keyed by tenant_id. Status is changed only by billing
    webhooks, the trial-expiry job and platform administrators.
    """

    __tablename__ = "tenants"

    tenant_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subdomain: Mapped[str | None] = mapped_column(String(63), nullable=True, unique=True)

    # Billing
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TenantStatus.TRIAL.value
    )
    subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plan_name: Mapped[str] = mapped_column(String(50), nullable=False, default="free")
    trial_ends_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )

    # Plan limits
    contact_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=1000)
    property_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=500)
    deal_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=1000)

    __table_args__ = (
        Index("idx_tenant_status", "status"),
        Index("idx_tenant_subscription", "subscription_id"),
    )

    @property
    def tenant_status(self) -> TenantStatus:
        return TenantStatus(self.status)

    @property
    def is_usable(self) -> bool:
        """Whether the tenant's billing state allows normal use."""
        return self.tenant_status in USABLE_STATUSES

    def __repr__(self) -> str:
        return f"<Tenant(id={self.tenant_id}, name={self.name}, status={self.status})>"
