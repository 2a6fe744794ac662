"""Role and subscription gates.

Both gates read the database on every call. Nothing about a user's role or
a tenant's status is cached between requests, so a membership removal or a
suspension takes effect on the very next request.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.core.exceptions import (
    InsufficientRoleError,
    MembershipNotFoundError,
    NoTenantContextError,
    SubscriptionInactiveError,
)
from realtyflow.core.logging import get_logger
from realtyflow.core.roles import Role, ordered
from realtyflow.db.models.tenant import Tenant
from realtyflow.db.models.user import UserTenant
from realtyflow.db.repositories.accounts import MembershipRepository

logger = get_logger(__name__)


class RoleGate:
    """Checks the user's role in the resolved tenant against an allow-list."""

    def __init__(self, db: AsyncSession):
        self.memberships = MembershipRepository(db)

    async def check(
        self,
        user_id: UUID,
        tenant_id: UUID | None,
        allowed: frozenset[Role],
    ) -> UserTenant:
        """Return the user's active membership if its role is allowed.

        Raises:
            NoTenantContextError: No tenant was resolved for the request
            MembershipNotFoundError: No active membership in the tenant
            InsufficientRoleError: The membership's role is not allowed
        """
        if not allowed:
            raise ValueError("Role allow-list must not be empty")
        if tenant_id is None:
            raise NoTenantContextError()

        membership = await self.memberships.get(user_id, tenant_id)
        if membership is None or not membership.is_active:
            raise MembershipNotFoundError(user_id, tenant_id)

        allowed_names = [role.value for role in ordered(allowed)]
        try:
            role = Role(membership.role)
        except ValueError:
            raise InsufficientRoleError(membership.role, allowed_names) from None
        if role not in allowed:
            logger.info(
                "role_denied",
                role=role.value,
                allowed=allowed_names,
            )
            raise InsufficientRoleError(role.value, allowed_names)
        return membership


class SubscriptionGate:
    """Rejects operations on tenants whose billing state is not usable."""

    def __init__(self, db: AsyncSession):
        self.memberships = MembershipRepository(db)

    async def check(self, user_id: UUID, tenant: Tenant | None) -> None:
        """Allow trial and active tenants.

        A user with no active membership at all passes regardless, so a new
        user can create their first brokerage.

        Raises:
            SubscriptionInactiveError: Tenant is suspended, expired or absent
        """
        if tenant is not None and tenant.is_usable:
            return
        if await self.memberships.count_active_for_user(user_id) == 0:
            return
        tenant_id = tenant.tenant_id if tenant is not None else None
        status = tenant.status if tenant is not None else None
        logger.info("subscription_denied", status=status)
        raise SubscriptionInactiveError(tenant_id, status)
