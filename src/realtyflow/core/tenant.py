"""Tenant management service for multi-tenancy support."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.config.settings import Settings
from realtyflow.core.audit import AuditLogger
from realtyflow.core.exceptions import SubdomainTakenError, TenantNotFoundError
from realtyflow.core.logging import get_logger
from realtyflow.core.roles import Role
from realtyflow.db.models.audit import AuditEventType, AuditSeverity
from realtyflow.db.models.tenant import Tenant, TenantStatus
from realtyflow.db.models.user import UserTenant
from realtyflow.db.repositories.accounts import MembershipRepository, TenantRepository
from realtyflow.db.schemas.tenant import PaymentRecord, TenantAdminUpdate, TenantUpdate

logger = get_logger(__name__)


class TenantService:
    """Service for tenant lifecycle operations.

    Creation, profile changes, status transitions and manual payments are
    all audit-logged.
    """

    def __init__(self, db: AsyncSession, settings: Settings):
        """Initialize tenant service with database session.

        Args:
            db: Async SQLAlchemy session for database operations
            settings: Application settings (trial length, default plan limits)
        """
        self.db = db
        self.settings = settings
        self.tenants = TenantRepository(db)
        self.memberships = MembershipRepository(db)
        self.audit = AuditLogger(db)

    async def create_tenant(
        self,
        name: str,
        owner_id: UUID,
        subdomain: str | None = None,
        now: datetime | None = None,
    ) -> tuple[Tenant, UserTenant]:
        """Create a tenant in trial with the given user as its OWNER.

        Args:
            name: Display name for the brokerage
            owner_id: User who becomes the tenant's OWNER
            subdomain: Optional host label (must be unique and not reserved)
            now: Current time, for computing the trial end

        Returns:
            The new tenant and the owner's membership

        Raises:
            SubdomainTakenError: If the subdomain is reserved or already used
        """
        if subdomain is not None:
            await self.ensure_subdomain_available(subdomain)

        now = now or datetime.now(UTC)
        limits = self.settings.plan_limits
        tenant = await self.tenants.add(
            Tenant(
                name=name,
                subdomain=subdomain,
                status=TenantStatus.TRIAL.value,
                plan_name=self.settings.default_plan_name,
                trial_ends_at=now + timedelta(days=self.settings.TRIAL_DAYS),
                contact_limit=limits.contact_limit,
                property_limit=limits.property_limit,
                deal_limit=limits.deal_limit,
            )
        )
        membership = await self.memberships.add(
            UserTenant(user_id=owner_id, tenant_id=tenant.tenant_id, role=Role.OWNER.value)
        )

        await self.audit.log_event(
            AuditEventType.TENANT_CREATED,
            {"name": name, "subdomain": subdomain, "owner_id": str(owner_id)},
            tenant_id=tenant.tenant_id,
            user_id=owner_id,
            resource_type="tenant",
            resource_id=tenant.tenant_id,
        )
        logger.info("tenant_created", new_tenant_id=str(tenant.tenant_id), subdomain=subdomain)
        return tenant, membership

    async def ensure_subdomain_available(
        self, subdomain: str, exclude_tenant_id: UUID | None = None
    ) -> None:
        """Raise SubdomainTakenError unless the label can be assigned."""
        if subdomain in self.settings.RESERVED_SUBDOMAINS:
            raise SubdomainTakenError(subdomain)
        existing = await self.tenants.get_by_subdomain(subdomain)
        if existing is not None and existing.tenant_id != exclude_tenant_id:
            raise SubdomainTakenError(subdomain)

    async def get_tenant(self, tenant_id: UUID) -> Tenant | None:
        return await self.tenants.get(tenant_id)

    async def get_tenant_or_raise(self, tenant_id: UUID) -> Tenant:
        """Get a tenant by ID, raising if not found.

        Raises:
            TenantNotFoundError: If tenant does not exist
        """
        tenant = await self.tenants.get(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        return tenant

    async def get_tenant_by_subscription(self, subscription_id: str) -> Tenant | None:
        return await self.tenants.get_by_subscription(subscription_id)

    async def list_tenants(
        self,
        status: TenantStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Tenant]:
        return await self.tenants.list_all(
            status=status.value if status else None, limit=limit, offset=offset
        )

    async def update_profile(self, tenant: Tenant, data: TenantUpdate) -> Tenant:
        """Apply a tenant's own profile changes (name, subdomain).

        Raises:
            SubdomainTakenError: If the new subdomain is reserved or already used
        """
        changes = data.model_dump(exclude_unset=True)
        if changes.get("subdomain") is not None:
            await self.ensure_subdomain_available(
                changes["subdomain"], exclude_tenant_id=tenant.tenant_id
            )
        if "name" in changes and changes["name"] is None:
            del changes["name"]

        for field, value in changes.items():
            setattr(tenant, field, value)
        await self.db.flush()
        await self.db.refresh(tenant)

        if changes:
            await self.audit.log_event(
                AuditEventType.TENANT_UPDATED,
                {"changes": _jsonable(changes)},
                tenant_id=tenant.tenant_id,
                resource_type="tenant",
                resource_id=tenant.tenant_id,
            )
        return tenant

    async def set_status(
        self,
        tenant: Tenant,
        status: TenantStatus,
        reason: str,
        subscription_id: str | None = None,
    ) -> Tenant:
        """Transition a tenant's billing status.

        The only writers are billing webhooks, the trial-expiry job and
        platform administrators. A no-op transition is not audited.
        """
        previous = tenant.status
        await self.tenants.update_status(tenant, status.value, subscription_id)
        if previous != status.value:
            await self.audit.log_event(
                AuditEventType.TENANT_STATUS_CHANGED,
                {"from": previous, "to": status.value, "reason": reason},
                severity=AuditSeverity.WARNING
                if status in (TenantStatus.SUSPENDED, TenantStatus.EXPIRED)
                else AuditSeverity.INFO,
                tenant_id=tenant.tenant_id,
                resource_type="tenant",
                resource_id=tenant.tenant_id,
            )
            logger.info(
                "tenant_status_changed",
                target_tenant_id=str(tenant.tenant_id),
                previous=previous,
                status=status.value,
                reason=reason,
            )
        return tenant

    async def admin_update(self, tenant: Tenant, data: TenantAdminUpdate) -> Tenant:
        """Platform administrator change of status, plan, subscription or limits."""
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        status = changes.pop("status", None)

        for field, value in changes.items():
            setattr(tenant, field, value)
        await self.db.flush()
        await self.db.refresh(tenant)

        if changes:
            await self.audit.log_event(
                AuditEventType.TENANT_UPDATED,
                {"changes": _jsonable(changes), "by": "platform_admin"},
                tenant_id=tenant.tenant_id,
                resource_type="tenant",
                resource_id=tenant.tenant_id,
            )
        if status is not None:
            await self.set_status(tenant, TenantStatus(status), reason="platform_admin")
        return tenant

    async def record_payment(self, tenant: Tenant, payment: PaymentRecord) -> Tenant:
        """Record a manual payment; the tenant becomes active."""
        if payment.plan_name:
            tenant.plan_name = payment.plan_name
        await self.audit.log_event(
            AuditEventType.PAYMENT_RECORDED,
            {
                "amount": payment.amount,
                "reference": payment.reference,
                "plan_name": tenant.plan_name,
                "notes": payment.notes,
            },
            tenant_id=tenant.tenant_id,
            resource_type="tenant",
            resource_id=tenant.tenant_id,
        )
        return await self.set_status(tenant, TenantStatus.ACTIVE, reason="manual_payment")


def _jsonable(values: dict[str, Any]) -> dict[str, Any]:
    return {
        k: v.isoformat() if isinstance(v, datetime) else v
        for k, v in values.items()
    }
