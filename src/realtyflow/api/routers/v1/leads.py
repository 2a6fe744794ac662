"""Leads: enquiries not yet qualified into contacts and deals."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from realtyflow.api.dependencies import CrmDelete, CrmRead, CrmWrite, DbSession
from realtyflow.core.membership import ensure_assignable
from realtyflow.db.models.crm import LeadPriority, LeadStatus
from realtyflow.db.repositories.crm import LeadRepository
from realtyflow.db.schemas.crm import LeadCreate, LeadResponse, LeadUpdate

router = APIRouter(prefix="/leads", tags=["leads"])


@router.get("", response_model=list[LeadResponse], summary="List leads")
async def list_leads(
    access: CrmRead,
    db: DbSession,
    status_filter: Annotated[LeadStatus | None, Query(alias="status")] = None,
    priority: Annotated[LeadPriority | None, Query()] = None,
    assigned_to: Annotated[UUID | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[LeadResponse]:
    leads = await LeadRepository(db, access.tenant_id).list(
        limit=limit,
        offset=offset,
        descending=True,
        filters={
            "status": status_filter.value if status_filter else None,
            "priority": priority.value if priority else None,
            "assigned_to": assigned_to,
        },
    )
    return [LeadResponse.model_validate(lead) for lead in leads]


@router.post(
    "",
    response_model=LeadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a lead",
)
async def create_lead(data: LeadCreate, access: CrmWrite, db: DbSession) -> LeadResponse:
    if data.assigned_to is not None:
        await ensure_assignable(db, access.tenant_id, data.assigned_to)
    values = data.model_dump()
    values["assigned_to"] = data.assigned_to or access.user.user_id
    lead = await LeadRepository(db, access.tenant_id).create(values)
    return LeadResponse.model_validate(lead)


@router.get("/{lead_id}", response_model=LeadResponse, summary="Get a lead")
async def get_lead(lead_id: UUID, access: CrmRead, db: DbSession) -> LeadResponse:
    lead = await LeadRepository(db, access.tenant_id).get_or_raise(lead_id)
    return LeadResponse.model_validate(lead)


@router.patch("/{lead_id}", response_model=LeadResponse, summary="Update a lead")
async def update_lead(
    lead_id: UUID,
    data: LeadUpdate,
    access: CrmWrite,
    db: DbSession,
) -> LeadResponse:
    repo = LeadRepository(db, access.tenant_id)
    lead = await repo.get_or_raise(lead_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("assigned_to") is not None:
        await ensure_assignable(db, access.tenant_id, changes["assigned_to"])
    lead = await repo.update(lead, changes)
    return LeadResponse.model_validate(lead)


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a lead")
async def delete_lead(lead_id: UUID, access: CrmDelete, db: DbSession) -> Response:
    await LeadRepository(db, access.tenant_id).delete_by_pk(lead_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
