"""Plan limit enforcement for record creation."""

from realtyflow.core.exceptions import PlanLimitExceededError
from realtyflow.db.models.tenant import Tenant
from realtyflow.db.repositories.base import TenantScopedRepository

# Limited resource -> Tenant attribute holding its limit
LIMIT_FIELDS: dict[str, str] = {
    "contacts": "contact_limit",
    "properties": "property_limit",
    "deals": "deal_limit",
}


async def ensure_within_limit(
    tenant: Tenant,
    resource: str,
    repo: TenantScopedRepository,
) -> None:
    """Raise PlanLimitExceededError if creating one more record would pass the limit."""
    limit = getattr(tenant, LIMIT_FIELDS[resource])
    if await repo.count() >= limit:
        raise PlanLimitExceededError(resource, limit)
