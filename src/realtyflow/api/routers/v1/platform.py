"""Platform administration of brokerages.

Only platform administrators reach these routes; no tenant is resolved and
membership plays no part.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from realtyflow.api.dependencies import AppSettings, DbSession, PlatformAdmin
from realtyflow.core.tenant import TenantService
from realtyflow.db.models.tenant import TenantStatus
from realtyflow.db.schemas.tenant import PaymentRecord, TenantAdminUpdate, TenantResponse

router = APIRouter(prefix="/platform/tenants", tags=["platform"])


@router.get("", response_model=list[TenantResponse], summary="List brokerages")
async def list_tenants(
    admin: PlatformAdmin,
    db: DbSession,
    settings: AppSettings,
    status_filter: Annotated[TenantStatus | None, Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[TenantResponse]:
    tenants = await TenantService(db, settings).list_tenants(status_filter, limit, offset)
    return [TenantResponse.model_validate(t) for t in tenants]


@router.patch(
    "/{tenant_id}",
    response_model=TenantResponse,
    summary="Change status, plan or limits",
)
async def update_tenant(
    tenant_id: UUID,
    data: TenantAdminUpdate,
    admin: PlatformAdmin,
    db: DbSession,
    settings: AppSettings,
) -> TenantResponse:
    service = TenantService(db, settings)
    tenant = await service.get_tenant_or_raise(tenant_id)
    tenant = await service.admin_update(tenant, data)
    return TenantResponse.model_validate(tenant)


@router.post(
    "/{tenant_id}/record-payment",
    response_model=TenantResponse,
    summary="Record a manual payment",
    description="Bank transfers and cheques; the brokerage becomes active.",
)
async def record_payment(
    tenant_id: UUID,
    data: PaymentRecord,
    admin: PlatformAdmin,
    db: DbSession,
    settings: AppSettings,
) -> TenantResponse:
    service = TenantService(db, settings)
    tenant = await service.get_tenant_or_raise(tenant_id)
    tenant = await service.record_payment(tenant, data)
    return TenantResponse.model_validate(tenant)
