"""Tenant resolution.

Decides, once per request, which tenant an authenticated request acts on.
Candidates are tried in a fixed order and the first match wins:

    1. The tenant header (``X-Tenant-Id``), honoured only if the tenant is in
       the token's tenant list; anything else is an AccessDeniedError.
    2. The ``current_tenant_id`` carried by the token, if it is in the list.
    3. The host's leading label (hosts with three or more labels, reserved
       labels excluded). An unknown label is skipped; a known tenant outside
       the token's list is an AccessDeniedError.
    4. The first tenant id in the token's list.

The resolved tenant is bound to the request context and remembered as the
user's ``current_tenant_id``.
"""

import ipaddress
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.config.settings import Settings
from realtyflow.core.context import get_current_context_or_none
from realtyflow.core.exceptions import (
    AccessDeniedError,
    NoTenantContextError,
    TenantExpiredError,
    TenantNotFoundError,
    TenantSuspendedError,
)
from realtyflow.core.logging import get_logger
from realtyflow.core.security import TokenClaims
from realtyflow.db.models.tenant import Tenant, TenantStatus
from realtyflow.db.models.user import User
from realtyflow.db.repositories.accounts import TenantRepository, UserRepository

logger = get_logger(__name__)

# Accepted spelling of the tenant header besides the configured one
TENANT_HEADER_ALIASES: tuple[str, ...] = ("X-TenantId",)


class ResolutionPolicy(str, Enum):
    """How a route class treats an unresolved tenant and tenant status.

    TENANT: CRM data routes. No tenant is an error; suspended and expired
        tenants are rejected before the gates run.
    ACCOUNT: team, tenant profile and billing routes. No tenant is an error;
        status is left to the Subscription Gate so expired tenants can pay.
    PLATFORM: ``/me``, onboarding and platform administration. A request
        without any tenant proceeds tenant-less.
    """

    TENANT = "tenant"
    ACCOUNT = "account"
    PLATFORM = "platform"

    @property
    def requires_tenant(self) -> bool:
        return self is not ResolutionPolicy.PLATFORM

    @property
    def enforces_status(self) -> bool:
        return self is ResolutionPolicy.TENANT


class TenantSource(str, Enum):
    """Where the resolved tenant came from."""

    HEADER = "header"
    TOKEN = "token"
    HOST = "host"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ResolvedTenant:
    """Outcome of tenant resolution; ``tenant`` is None only under PLATFORM."""

    tenant: Tenant | None
    source: TenantSource | None
    policy: ResolutionPolicy

    @property
    def tenant_id(self) -> UUID | None:
        return self.tenant.tenant_id if self.tenant is not None else None


def subdomain_from_host(host: str | None, reserved: frozenset[str]) -> str | None:
    """Extract a tenant subdomain label from a Host header value.

    Returns the leading label of hosts with three or more labels, lowercased
    and with any port removed. Two-label hosts, IP addresses and reserved
    labels yield None.

    >>> subdomain_from_host("Acme.Example.com:8443", frozenset({"www"}))
    'acme'
    >>> subdomain_from_host("example.com", frozenset()) is None
    True
    """
    if not host:
        return None
    hostname = host.strip().lower()
    if hostname.startswith("["):
        return None  # IPv6 literal
    hostname = hostname.split(":", 1)[0].rstrip(".")
    try:
        ipaddress.ip_address(hostname)
        return None
    except ValueError:
        pass

    labels = hostname.split(".")
    if len(labels) < 3 or any(not label for label in labels):
        return None
    label = labels[0]
    if label in reserved:
        return None
    return label


def parse_tenant_header(value: str) -> UUID | None:
    try:
        return UUID(value.strip())
    except ValueError:
        return None


class TenantResolver:
    """Resolves the tenant of an authenticated request."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.tenants = TenantRepository(db)
        self.users = UserRepository(db)

    async def resolve(
        self,
        user: User,
        claims: TokenClaims,
        policy: ResolutionPolicy,
        *,
        header_value: str | None = None,
        host: str | None = None,
    ) -> ResolvedTenant:
        """Resolve the request's tenant under the given policy.

        Raises:
            AccessDeniedError: Header or host names a tenant outside the token's list
            TenantNotFoundError: A candidate tenant id has no stored tenant
            NoTenantContextError: Nothing resolved and the policy requires a tenant
            TenantSuspendedError: Resolved tenant is suspended (TENANT policy)
            TenantExpiredError: Resolved tenant is expired (TENANT policy)
        """
        tenant, source = await self._find_candidate(claims, header_value, host)

        if tenant is None:
            if policy.requires_tenant:
                raise NoTenantContextError()
            logger.debug("tenant_unresolved", policy=policy.value)
            return ResolvedTenant(tenant=None, source=None, policy=policy)

        if policy.enforces_status:
            status = tenant.status
            if status == TenantStatus.SUSPENDED.value:
                raise TenantSuspendedError(tenant.tenant_id)
            if status == TenantStatus.EXPIRED.value:
                raise TenantExpiredError(tenant.tenant_id)

        ctx = get_current_context_or_none()
        if ctx is not None:
            ctx.bind_tenant(tenant.tenant_id)

        if user.current_tenant_id != tenant.tenant_id:
            await self.users.set_current_tenant(user, tenant.tenant_id)

        logger.debug(
            "tenant_resolved",
            resolved_tenant_id=str(tenant.tenant_id),
            source=source.value if source else None,
            policy=policy.value,
        )
        return ResolvedTenant(tenant=tenant, source=source, policy=policy)

    async def _find_candidate(
        self,
        claims: TokenClaims,
        header_value: str | None,
        host: str | None,
    ) -> tuple[Tenant | None, TenantSource | None]:
        # 1. Explicit header
        if header_value is not None and header_value.strip():
            requested = parse_tenant_header(header_value)
            if requested is None or not claims.authorizes(requested):
                raise AccessDeniedError(header_value.strip(), TenantSource.HEADER.value)
            return await self._load(requested), TenantSource.HEADER

        # 2. Tenant recorded in the token
        if claims.current_tenant_id is not None and claims.authorizes(claims.current_tenant_id):
            return await self._load(claims.current_tenant_id), TenantSource.TOKEN

        # 3. Host subdomain
        label = subdomain_from_host(host, self.settings.RESERVED_SUBDOMAINS)
        if label is not None:
            tenant = await self.tenants.get_by_subdomain(label)
            if tenant is not None:
                if not claims.authorizes(tenant.tenant_id):
                    raise AccessDeniedError(tenant.tenant_id, TenantSource.HOST.value)
                return tenant, TenantSource.HOST

        # 4. First tenant in the token
        if claims.tenant_ids:
            return await self._load(claims.tenant_ids[0]), TenantSource.FALLBACK

        return None, None

    async def _load(self, tenant_id: UUID) -> Tenant:
        tenant = await self.tenants.get(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        return tenant
