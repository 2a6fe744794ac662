"""Core services: request context, tenancy, gates, authentication and billing."""

from .context import (
    ActorType,
    RequestContext,
    create_context,
    get_current_context,
    get_current_context_or_none,
    request_context,
)
from .exceptions import (
    AccessDeniedError,
    InactiveUserError,
    InsufficientRoleError,
    InvalidCredentialsError,
    InvalidTokenError,
    MembershipNotFoundError,
    NoTenantContextError,
    SubscriptionInactiveError,
    TenantExpiredError,
    TenantNotFoundError,
    TenantSuspendedError,
)
from .roles import FINANCE, OWNER_ADMIN, OWNER_ONLY, STAFF, Role

__all__ = [
    "ActorType",
    "RequestContext",
    "create_context",
    "get_current_context",
    "get_current_context_or_none",
    "request_context",
    "AccessDeniedError",
    "InactiveUserError",
    "InsufficientRoleError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "MembershipNotFoundError",
    "NoTenantContextError",
    "SubscriptionInactiveError",
    "TenantExpiredError",
    "TenantNotFoundError",
    "TenantSuspendedError",
    "FINANCE",
    "OWNER_ADMIN",
    "OWNER_ONLY",
    "STAFF",
    "Role",
]
