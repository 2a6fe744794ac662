"""Dashboard KPIs for the current brokerage."""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter

from realtyflow.api.dependencies import CrmRead, DbSession
from realtyflow.db.models.crm import PropertyStatus
from realtyflow.db.repositories.crm import (
    ContactRepository,
    DealRepository,
    LeadRepository,
    PropertyRepository,
    StageRepository,
)
from realtyflow.db.schemas.crm import DashboardStats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard statistics",
    description=(
        "Record counts, the total value of deals in active stages and the "
        "number of deals expected to close in the next seven days."
    ),
)
async def get_stats(access: CrmRead, db: DbSession) -> DashboardStats:
    tenant_id = access.tenant_id
    properties = PropertyRepository(db, tenant_id)
    leads = LeadRepository(db, tenant_id)
    deals = DealRepository(db, tenant_id)

    active_stages = await StageRepository(db, tenant_id).list(
        limit=1000, filters={"is_active": True}
    )
    stage_ids = {s.stage_id for s in active_stages}
    today = datetime.now(UTC).date()

    return DashboardStats(
        total_properties=await properties.count(),
        available_properties=await properties.count({"status": PropertyStatus.AVAILABLE.value}),
        total_contacts=await ContactRepository(db, tenant_id).count(),
        total_leads=await leads.count(),
        new_leads=await leads.count_uncontacted(),
        total_deals=await deals.count(),
        pipeline_value=await deals.total_value_in_stages(stage_ids),
        closing_this_week=await deals.closing_between(today, today + timedelta(days=6)),
    )
