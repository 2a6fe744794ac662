"""Append-only audit trail.

Audit rows deliberately carry no foreign keys: the history of a tenant
outlives the tenant itself.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import Base, PortableJSON, PortableUUID, UTCDateTime


class AuditSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AuditEventType(str, Enum):
    """Event names, grouped by the aggregate they concern."""

    USER_REGISTERED = "user.registered"
    USER_LOGIN = "user.login"
    USER_LOGIN_FAILED = "user.login_failed"
    TENANT_SWITCHED = "user.tenant_switched"

    TENANT_CREATED = "tenant.created"
    TENANT_UPDATED = "tenant.updated"
    TENANT_STATUS_CHANGED = "tenant.status_changed"
    PAYMENT_RECORDED = "tenant.payment_recorded"

    MEMBER_ADDED = "membership.added"
    MEMBER_ROLE_CHANGED = "membership.role_changed"
    MEMBER_DEACTIVATED = "membership.deactivated"

    BILLING_WEBHOOK = "billing.webhook"
    CHECKOUT_REQUESTED = "billing.checkout_requested"

    AUTOMATION_RUN = "automation.run"

    @property
    def default_severity(self) -> AuditSeverity:
        return _DEFAULT_SEVERITY.get(self, AuditSeverity.INFO)


_DEFAULT_SEVERITY = {
    AuditEventType.USER_LOGIN_FAILED: AuditSeverity.WARNING,
    AuditEventType.MEMBER_DEACTIVATED: AuditSeverity.WARNING,
    AuditEventType.PAYMENT_RECORDED: AuditSeverity.WARNING,
}


class AuditEvent(Base):
    __tablename__ = "audit_events"

    audit_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    severity: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AuditSeverity.INFO.value
    )

    # Null tenant_id marks a platform-level event
    tenant_id: Mapped[UUID | None] = mapped_column(PortableUUID())
    user_id: Mapped[UUID | None] = mapped_column(PortableUUID())
    correlation_id: Mapped[UUID] = mapped_column(PortableUUID(), nullable=False)
    resource_type: Mapped[str | None] = mapped_column(String(50))
    resource_id: Mapped[str | None] = mapped_column(String(255))
    event_data: Mapped[dict] = mapped_column(PortableJSON(), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(45))
    user_agent: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_audit_tenant_created", "tenant_id", "created_at"),
        Index("idx_audit_event_type", "event_type"),
        Index("idx_audit_correlation", "correlation_id"),
        Index("idx_audit_resource", "resource_type", "resource_id"),
    )

    def __repr__(self) -> str:
        return f"<AuditEvent {self.event_type} tenant={self.tenant_id} at={self.created_at}>"
