"""Automation jobs.

These run outside the request cycle, either from the deal-move handler
(``process_stage_change``) or from cron through ``realtyflow-automation``.
They use the same tenant-scoped repositories as the API so a job can only
touch the tenant it is working on.
"""

from dataclasses import asdict, dataclass
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.config.settings import Settings
from realtyflow.core.audit import AuditLogger
from realtyflow.core.context import ActorType, create_context, request_context
from realtyflow.core.logging import get_logger
from realtyflow.core.tenant import TenantService
from realtyflow.db.models.audit import AuditEventType
from realtyflow.db.models.crm import Deal, PropertyStatus, Stage
from realtyflow.db.models.tenant import TenantStatus
from realtyflow.db.repositories.accounts import TenantRepository
from realtyflow.db.repositories.crm import DealRepository, LeadRepository, PropertyRepository

logger = get_logger(__name__)

# Stage names containing this word mean a token (booking) amount was paid
TOKEN_STAGE_KEYWORD = "token"

DIGEST_HORIZON_DAYS = 7


def is_token_stage(stage: Stage) -> bool:
    return TOKEN_STAGE_KEYWORD in stage.name.lower()


async def process_stage_change(
    db: AsyncSession,
    tenant_id: UUID,
    deal: Deal,
    stage: Stage,
) -> bool:
    """React to a deal entering a new stage.

    Entering a token stage puts the deal's property on hold. Properties
    already sold or rented are left alone.

    Returns:
        True if a property was put on hold
    """
    if not is_token_stage(stage) or deal.property_id is None:
        return False

    properties = PropertyRepository(db, tenant_id)
    prop = await properties.get(deal.property_id)
    if prop is None or prop.status != PropertyStatus.AVAILABLE.value:
        return False

    await properties.update(prop, {"status": PropertyStatus.HOLD.value})
    logger.info(
        "property_put_on_hold",
        property_id=str(prop.property_id),
        deal_id=str(deal.deal_id),
        stage=stage.name,
    )
    return True


async def expire_trials(
    db: AsyncSession,
    settings: Settings,
    now: datetime | None = None,
) -> list[UUID]:
    """Move tenants whose trial has ended from ``trial`` to ``expired``.

    Returns:
        Ids of the tenants that expired
    """
    now = now or datetime.now(UTC)
    service = TenantService(db, settings)
    expired: list[UUID] = []

    with structlog.contextvars.bound_contextvars(job="expire_trials"):
        for tenant in await TenantRepository(db).trials_ended_before(now):
            ctx = create_context(tenant_id=tenant.tenant_id, actor_type=ActorType.SYSTEM)
            with request_context(ctx):
                await service.set_status(tenant, TenantStatus.EXPIRED, reason="trial_ended")
            expired.append(tenant.tenant_id)

        await AuditLogger(db).log_event(
            AuditEventType.AUTOMATION_RUN,
            {"job": "expire_trials", "expired": [str(t) for t in expired]},
        )
        logger.info("trials_expired", count=len(expired))
    return expired


@dataclass(frozen=True)
class TenantDigest:
    """Morning summary for one tenant."""

    tenant_id: UUID
    tenant_name: str
    uncontacted_leads: int
    deals_closing_soon: int

    @property
    def is_empty(self) -> bool:
        return self.uncontacted_leads == 0 and self.deals_closing_soon == 0


async def daily_digest(
    db: AsyncSession,
    now: datetime | None = None,
) -> list[TenantDigest]:
    """Summarise, per usable tenant, leads not yet contacted and deals closing soon.

    Digests are logged for the delivery collaborators (email, WhatsApp);
    nothing is sent from here.
    """
    now = now or datetime.now(UTC)
    today: date = now.date()
    horizon = today + timedelta(days=DIGEST_HORIZON_DAYS)
    digests: list[TenantDigest] = []

    with structlog.contextvars.bound_contextvars(job="daily_digest"):
        usable = {TenantStatus.TRIAL.value, TenantStatus.ACTIVE.value}
        for tenant in await TenantRepository(db).with_statuses(usable):
            ctx = create_context(tenant_id=tenant.tenant_id, actor_type=ActorType.SYSTEM)
            with request_context(ctx):
                digest = TenantDigest(
                    tenant_id=tenant.tenant_id,
                    tenant_name=tenant.name,
                    uncontacted_leads=await LeadRepository(db, tenant.tenant_id).count_uncontacted(),
                    deals_closing_soon=await DealRepository(db, tenant.tenant_id).closing_between(
                        today, horizon
                    ),
                )
                if not digest.is_empty:
                    logger.info(
                        "daily_digest",
                        **{k: str(v) if isinstance(v, UUID) else v for k, v in asdict(digest).items()},
                    )
            digests.append(digest)

        await AuditLogger(db).log_event(
            AuditEventType.AUTOMATION_RUN,
            {"job": "daily_digest", "tenants": len(digests)},
        )
    return digests
