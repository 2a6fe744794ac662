"""Database models for RealtyFlow."""

from .audit import AuditEvent, AuditEventType, AuditSeverity
from .base import Base, TenantScopedMixin, TimestampMixin
from .crm import (
    Contact,
    ContactType,
    Deal,
    Lead,
    LeadPriority,
    LeadSource,
    LeadStatus,
    ListingType,
    Pipeline,
    Property,
    PropertyStatus,
    PropertyType,
    Stage,
)
from .tenant import USABLE_STATUSES, Tenant, TenantStatus
from .user import User, UserTenant

__all__ = [
    "Base",
    "TenantScopedMixin",
    "TimestampMixin",
    "AuditEvent",
    "AuditEventType",
    "AuditSeverity",
    "Tenant",
    "TenantStatus",
    "USABLE_STATUSES",
    "User",
    "UserTenant",
    "Contact",
    "ContactType",
    "Deal",
    "Lead",
    "LeadPriority",
    "LeadSource",
    "LeadStatus",
    "ListingType",
    "Pipeline",
    "Property",
    "PropertyStatus",
    "PropertyType",
    "Stage",
]
