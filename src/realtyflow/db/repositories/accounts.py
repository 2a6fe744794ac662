"""Repositories for users, tenants and memberships.

These tables are not tenant-scoped themselves; they are the lookups the
tenant resolver and the gates perform on every request. Nothing here caches:
each call reads the current row.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.db.models.tenant import Tenant
from realtyflow.db.models.user import User, UserTenant


class UserRepository:
    """Lookups and writes on the users table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: UUID) -> User | None:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def set_current_tenant(self, user: User, tenant_id: UUID | None) -> None:
        user.current_tenant_id = tenant_id
        await self.db.flush()


class TenantRepository:
    """Lookups and writes on the tenants table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, tenant_id: UUID) -> Tenant | None:
        stmt = select(Tenant).where(Tenant.tenant_id == tenant_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_subdomain(self, subdomain: str) -> Tenant | None:
        stmt = select(Tenant).where(Tenant.subdomain == subdomain.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_subscription(self, subscription_id: str) -> Tenant | None:
        stmt = select(Tenant).where(Tenant.subscription_id == subscription_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def add(self, tenant: Tenant) -> Tenant:
        self.db.add(tenant)
        await self.db.flush()
        return tenant

    async def update_status(
        self,
        tenant: Tenant,
        status: str,
        subscription_id: str | None = None,
    ) -> Tenant:
        """Set a tenant's status and, when given, its subscription reference."""
        tenant.status = status
        if subscription_id is not None:
            tenant.subscription_id = subscription_id
        await self.db.flush()
        await self.db.refresh(tenant)
        return tenant

    async def list_all(
        self,
        status: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Tenant]:
        stmt = select(Tenant).order_by(Tenant.created_at.desc(), Tenant.tenant_id)
        if status is not None:
            stmt = stmt.where(Tenant.status == status)
        stmt = stmt.limit(min(limit, 1000)).offset(offset)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def trials_ended_before(self, moment: datetime) -> list[Tenant]:
        """Tenants still in trial whose trial ended before ``moment``."""
        stmt = (
            select(Tenant)
            .where(
                Tenant.status == "trial",
                Tenant.trial_ends_at.is_not(None),
                Tenant.trial_ends_at < moment,
            )
            .order_by(Tenant.trial_ends_at, Tenant.tenant_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def with_statuses(self, statuses: set[str]) -> list[Tenant]:
        stmt = (
            select(Tenant)
            .where(Tenant.status.in_(statuses))
            .order_by(Tenant.created_at, Tenant.tenant_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class MembershipRepository:
    """Lookups and writes on the user_tenants join table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: UUID, tenant_id: UUID) -> UserTenant | None:
        """Membership row for the (user, tenant) pair, active or not."""
        stmt = select(UserTenant).where(
            UserTenant.user_id == user_id,
            UserTenant.tenant_id == tenant_id,
        )
        result = await self.db.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def count_active_for_user(self, user_id: UUID) -> int:
        stmt = select(func.count(UserTenant.membership_id)).where(
            UserTenant.user_id == user_id,
            UserTenant.is_active.is_(True),
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def active_for_user(self, user_id: UUID) -> list[UserTenant]:
        """Active memberships of a user, oldest first."""
        stmt = (
            select(UserTenant)
            .where(UserTenant.user_id == user_id, UserTenant.is_active.is_(True))
            .order_by(UserTenant.created_at, UserTenant.membership_id)
        )
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def for_tenant(self, tenant_id: UUID, include_inactive: bool = False) -> list[UserTenant]:
        stmt = (
            select(UserTenant)
            .where(UserTenant.tenant_id == tenant_id)
            .order_by(UserTenant.created_at, UserTenant.membership_id)
        )
        if not include_inactive:
            stmt = stmt.where(UserTenant.is_active.is_(True))
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def count_active_owners(self, tenant_id: UUID) -> int:
        stmt = select(func.count(UserTenant.membership_id)).where(
            UserTenant.tenant_id == tenant_id,
            UserTenant.role == "OWNER",
            UserTenant.is_active.is_(True),
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def add(self, membership: UserTenant) -> UserTenant:
        self.db.add(membership)
        await self.db.flush()
        return membership
