"""FastAPI dependencies for API endpoints.

Every protected route runs the same fixed chain, in this order:

    Authentication -> Tenant Resolver -> Role Gate -> Subscription Gate

``require_access`` builds one dependency that executes the chain for a route
class, so no route can reorder or skip a step. Routes declare their
resolution policy, their role allow-list and whether they mutate data:

    @router.post("/properties")
    async def create_property(access: Annotated[TenantAccess, Depends(CRM_WRITE)]): ...
"""

from dataclasses import dataclass
from typing import Annotated, Callable
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.config.settings import Settings, get_settings
from realtyflow.core.exceptions import (
    InvalidTokenError,
    NoTenantContextError,
    PlatformAdminRequiredError,
)
from realtyflow.core.gates import RoleGate, SubscriptionGate
from realtyflow.core.roles import ANY_MEMBER, FINANCE, OWNER_ADMIN, STAFF, Role
from realtyflow.core.security import TokenClaims
from realtyflow.core.tenancy import (
    TENANT_HEADER_ALIASES,
    ResolutionPolicy,
    ResolvedTenant,
    TenantResolver,
)
from realtyflow.db.config import get_db
from realtyflow.db.models.tenant import Tenant
from realtyflow.db.models.user import User, UserTenant
from realtyflow.db.repositories.accounts import UserRepository

__all__ = [
    "get_db",
    "get_app_settings",
    "get_token_claims",
    "get_current_user",
    "require_access",
    "require_platform_admin",
    "TenantAccess",
    "DbSession",
    "AppSettings",
    "CurrentUser",
    "Claims",
    "PlatformAdmin",
    "CrmRead",
    "CrmWrite",
    "CrmDelete",
    "AccountRead",
    "TeamRead",
    "AccountManage",
    "BillingAccess",
    "PlatformRead",
    "Onboarding",
]

DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with (tests pass their own)."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


AppSettings = Annotated[Settings, Depends(get_app_settings)]


def get_token_claims(request: Request) -> TokenClaims:
    """Claims decoded by AuthenticationMiddleware.

    Raises:
        InvalidTokenError: If the request carried no valid token
    """
    claims = getattr(request.state, "claims", None)
    if claims is None:
        raise InvalidTokenError("Authentication required")
    return claims


Claims = Annotated[TokenClaims, Depends(get_token_claims)]


async def get_current_user(db: DbSession, claims: Claims) -> User:
    """Reload the token's user; unknown or deactivated users are unauthenticated.

    Raises:
        InvalidTokenError: If the user no longer exists or is inactive
    """
    user = await UserRepository(db).get(claims.user_id)
    if user is None or not user.is_active:
        raise InvalidTokenError("User is no longer active")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def tenant_header_value(request: Request, settings: Settings) -> str | None:
    """The tenant header, accepting the alias spelling."""
    value = request.headers.get(settings.TENANT_HEADER)
    if value is None:
        for alias in TENANT_HEADER_ALIASES:
            value = request.headers.get(alias)
            if value is not None:
                break
    return value


# =============================================================================
# Access chain
# =============================================================================


@dataclass(frozen=True)
class TenantAccess:
    """Outcome of the access chain for one request."""

    user: User
    claims: TokenClaims
    resolved: ResolvedTenant
    membership: UserTenant | None

    @property
    def tenant(self) -> Tenant | None:
        return self.resolved.tenant

    @property
    def tenant_id(self) -> UUID | None:
        return self.resolved.tenant_id

    @property
    def role(self) -> Role | None:
        return Role(self.membership.role) if self.membership is not None else None

    def require_tenant(self) -> Tenant:
        if self.resolved.tenant is None:
            raise NoTenantContextError()
        return self.resolved.tenant


def require_access(
    policy: ResolutionPolicy,
    roles: frozenset[Role] | None = None,
    *,
    active_subscription: bool = False,
) -> Callable:
    """Build the dependency that runs the access chain for a route class.

    Args:
        policy: Tenant resolution policy for the route class
        roles: Role allow-list; None skips the Role Gate (PLATFORM routes only)
        active_subscription: Run the Subscription Gate (mutating routes)
    """
    if roles is not None and not roles:
        raise ValueError("Role allow-list must not be empty")

    async def access_chain(
        request: Request,
        db: DbSession,
        settings: AppSettings,
        user: CurrentUser,
        claims: Claims,
    ) -> TenantAccess:
        resolved = await TenantResolver(db, settings).resolve(
            user,
            claims,
            policy,
            header_value=tenant_header_value(request, settings),
            host=request.headers.get("Host"),
        )
        request.state.tenant_source = resolved.source

        membership = None
        if roles is not None:
            membership = await RoleGate(db).check(user.user_id, resolved.tenant_id, roles)

        if active_subscription:
            await SubscriptionGate(db).check(user.user_id, resolved.tenant)

        return TenantAccess(user=user, claims=claims, resolved=resolved, membership=membership)

    return access_chain


async def require_platform_admin(user: CurrentUser) -> User:
    """Platform administration routes; tenant membership plays no part.

    Raises:
        PlatformAdminRequiredError: If the user is not a platform administrator
    """
    if not user.is_platform_admin:
        raise PlatformAdminRequiredError()
    return user


PlatformAdmin = Annotated[User, Depends(require_platform_admin)]

# Route classes
CRM_READ_ROLES: frozenset[Role] = STAFF | {Role.ACCOUNT}

CRM_READ = require_access(ResolutionPolicy.TENANT, CRM_READ_ROLES)
CRM_WRITE = require_access(ResolutionPolicy.TENANT, STAFF, active_subscription=True)
CRM_DELETE = require_access(ResolutionPolicy.TENANT, OWNER_ADMIN, active_subscription=True)

ACCOUNT_READ = require_access(ResolutionPolicy.ACCOUNT, ANY_MEMBER)
TEAM_READ = require_access(ResolutionPolicy.ACCOUNT, STAFF)
ACCOUNT_MANAGE = require_access(ResolutionPolicy.ACCOUNT, OWNER_ADMIN, active_subscription=True)
BILLING = require_access(ResolutionPolicy.ACCOUNT, FINANCE)

PLATFORM_READ = require_access(ResolutionPolicy.PLATFORM)
ONBOARDING = require_access(ResolutionPolicy.PLATFORM, active_subscription=True)

CrmRead = Annotated[TenantAccess, Depends(CRM_READ)]
CrmWrite = Annotated[TenantAccess, Depends(CRM_WRITE)]
CrmDelete = Annotated[TenantAccess, Depends(CRM_DELETE)]
AccountRead = Annotated[TenantAccess, Depends(ACCOUNT_READ)]
TeamRead = Annotated[TenantAccess, Depends(TEAM_READ)]
AccountManage = Annotated[TenantAccess, Depends(ACCOUNT_MANAGE)]
BillingAccess = Annotated[TenantAccess, Depends(BILLING)]
PlatformRead = Annotated[TenantAccess, Depends(PLATFORM_READ)]
Onboarding = Annotated[TenantAccess, Depends(ONBOARDING)]
