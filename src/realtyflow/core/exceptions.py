"""Domain exceptions raised by the core services and the access gates.

Each one ends the current request. ErrorHandlingMiddleware maps the class to
an HTTP status and error code, and copies the public attributes set here
(tenant_id, role, allowed, ...) into the response ``details``.
"""

from uuid import UUID

from realtyflow.utils.exceptions import RealtyFlowError


class ContextNotSetError(RealtyFlowError):
    """Request-scoped code ran outside ``request_context()``; a bug, not a denial."""

    def __init__(self, message: str = "Request context is not set"):
        super().__init__(message)


# Authentication


class InvalidCredentialsError(RealtyFlowError):
    """Unknown email or wrong password; the two are deliberately indistinguishable."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class InactiveUserError(RealtyFlowError):
    def __init__(self, user_id: UUID | str):
        super().__init__(f"User account is deactivated: {user_id}")
        self.user_id = user_id


class InvalidTokenError(RealtyFlowError):
    """Bearer token missing, expired, tampered with, or naming a deactivated user."""

    def __init__(self, reason: str = "Invalid token"):
        super().__init__(reason)
        self.reason = reason


# Tenant resolution


class TenantNotFoundError(RealtyFlowError):
    def __init__(self, tenant_id: UUID | str):
        super().__init__(f"Tenant not found: {tenant_id}")
        self.tenant_id = tenant_id


class AccessDeniedError(RealtyFlowError):
    """An explicitly requested tenant is not one the caller belongs to.

    ``source`` records how it was requested: ``header``, ``host`` or
    ``switch``. Token and fallback candidates can never be denied since they
    come from the caller's own tenant list.
    """

    def __init__(self, tenant_id: UUID | str, source: str):
        super().__init__(f"Access denied to tenant {tenant_id} (requested via {source})")
        self.tenant_id = tenant_id
        self.source = source


class NoTenantContextError(RealtyFlowError):
    def __init__(self, message: str = "Tenant context required"):
        super().__init__(message)


class TenantSuspendedError(RealtyFlowError):
    def __init__(self, tenant_id: UUID | str):
        super().__init__(f"Tenant is suspended: {tenant_id}")
        self.tenant_id = tenant_id


class TenantExpiredError(RealtyFlowError):
    def __init__(self, tenant_id: UUID | str):
        super().__init__(f"Tenant subscription has expired: {tenant_id}")
        self.tenant_id = tenant_id


# Gates


class MembershipNotFoundError(RealtyFlowError):
    """No active membership for the caller in the resolved tenant.

    Raised both by the role gate and by team management when the target
    user belongs to another tenant.
    """

    def __init__(self, user_id: UUID | str, tenant_id: UUID | str):
        super().__init__(f"User {user_id} is not an active member of tenant {tenant_id}")
        self.user_id = user_id
        self.tenant_id = tenant_id


class InsufficientRoleError(RealtyFlowError):
    def __init__(self, role: str, allowed: list[str]):
        super().__init__(f"Role {role} is not permitted (requires one of: {', '.join(allowed)})")
        self.role = role
        self.allowed = allowed


class SubscriptionInactiveError(RealtyFlowError):
    """The caller's billing state does not cover the operation.

    ``tenant_id`` is None when the gate ran without a resolved tenant, as
    on onboarding routes.
    """

    def __init__(self, tenant_id: UUID | str | None, status: str | None):
        super().__init__("Tenant subscription is not active. Please upgrade to continue.")
        self.tenant_id = tenant_id
        self.status = status


class PlatformAdminRequiredError(RealtyFlowError):
    def __init__(self, message: str = "Platform administrator access required"):
        super().__init__(message)


class PlanLimitExceededError(RealtyFlowError):
    def __init__(self, resource: str, limit: int):
        super().__init__(f"Plan limit reached for {resource} ({limit})")
        self.resource = resource
        self.limit = limit


# Records


class ResourceNotFoundError(RealtyFlowError):
    """The record does not exist in the resolved tenant.

    Records of other tenants are reported the same way, so a caller cannot
    probe for ids outside its own tenant.
    """

    def __init__(self, resource: str, resource_id: UUID | str):
        super().__init__(f"{resource} not found: {resource_id}")
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(RealtyFlowError):
    pass


class EmailAlreadyRegisteredError(ConflictError):
    def __init__(self, email: str):
        super().__init__(f"Email is already registered: {email}")
        self.email = email


class SubdomainTakenError(ConflictError):
    def __init__(self, subdomain: str):
        super().__init__(f"Subdomain is already taken: {subdomain}")
        self.subdomain = subdomain


class MembershipExistsError(ConflictError):
    def __init__(self, user_id: UUID | str, tenant_id: UUID | str):
        super().__init__(f"User {user_id} is already a member of tenant {tenant_id}")
        self.user_id = user_id
        self.tenant_id = tenant_id


class LastOwnerError(ConflictError):
    """Demoting or removing this member would leave the tenant without an OWNER."""

    def __init__(self, tenant_id: UUID | str):
        super().__init__(f"Tenant {tenant_id} must keep at least one active OWNER")
        self.tenant_id = tenant_id


class InvalidRequestError(RealtyFlowError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


# Billing


class WebhookSignatureError(RealtyFlowError):
    """A provider callback failed verification; nothing in it is applied."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider} webhook rejected: {reason}")
        self.provider = provider
        self.reason = reason
