"""Deals on the pipeline kanban board.

Moving a deal into a stage runs the stage-change automation in the same
unit of work: entering a "token" stage puts the deal's property on hold.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.api.dependencies import CrmDelete, CrmRead, CrmWrite, DbSession
from realtyflow.automation.jobs import process_stage_change
from realtyflow.core.limits import ensure_within_limit
from realtyflow.core.membership import ensure_assignable
from realtyflow.db.repositories.crm import (
    ContactRepository,
    DealRepository,
    PipelineRepository,
    PropertyRepository,
    StageRepository,
)
from realtyflow.db.schemas.crm import DealCreate, DealMove, DealResponse, DealUpdate

router = APIRouter(prefix="/deals", tags=["deals"])


async def _check_links(
    db: AsyncSession,
    tenant_id: UUID,
    property_id: UUID | None,
    contact_id: UUID | None,
) -> None:
    """Linked records must belong to the same tenant."""
    if property_id is not None:
        await PropertyRepository(db, tenant_id).get_or_raise(property_id)
    if contact_id is not None:
        await ContactRepository(db, tenant_id).get_or_raise(contact_id)


@router.get("", response_model=list[DealResponse], summary="List deals")
async def list_deals(
    access: CrmRead,
    db: DbSession,
    pipeline_id: Annotated[UUID | None, Query()] = None,
) -> list[DealResponse]:
    deals = await DealRepository(db, access.tenant_id).for_board(pipeline_id)
    return [DealResponse.model_validate(d) for d in deals]


@router.post(
    "",
    response_model=DealResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a deal",
    responses={402: {"description": "Deal limit of the plan reached"}},
)
async def create_deal(data: DealCreate, access: CrmWrite, db: DbSession) -> DealResponse:
    deals = DealRepository(db, access.tenant_id)
    await ensure_within_limit(access.require_tenant(), "deals", deals)

    await PipelineRepository(db, access.tenant_id).get_or_raise(data.pipeline_id)
    stage = await StageRepository(db, access.tenant_id).get_in_pipeline(
        data.stage_id, data.pipeline_id
    )
    await _check_links(db, access.tenant_id, data.property_id, data.contact_id)
    if data.assigned_to is not None:
        await ensure_assignable(db, access.tenant_id, data.assigned_to)

    position = await deals.count({"stage_id": stage.stage_id})
    values = data.model_dump()
    values["position"] = position
    values["assigned_to"] = data.assigned_to or access.user.user_id
    deal = await deals.create(values)
    await process_stage_change(db, access.tenant_id, deal, stage)
    return DealResponse.model_validate(deal)


@router.get("/{deal_id}", response_model=DealResponse, summary="Get a deal")
async def get_deal(deal_id: UUID, access: CrmRead, db: DbSession) -> DealResponse:
    deal = await DealRepository(db, access.tenant_id).get_or_raise(deal_id)
    return DealResponse.model_validate(deal)


@router.patch("/{deal_id}", response_model=DealResponse, summary="Update a deal")
async def update_deal(
    deal_id: UUID,
    data: DealUpdate,
    access: CrmWrite,
    db: DbSession,
) -> DealResponse:
    deals = DealRepository(db, access.tenant_id)
    deal = await deals.get_or_raise(deal_id)
    changes = data.model_dump(exclude_unset=True)
    await _check_links(db, access.tenant_id, changes.get("property_id"), changes.get("contact_id"))
    if changes.get("assigned_to") is not None:
        await ensure_assignable(db, access.tenant_id, changes["assigned_to"])
    deal = await deals.update(deal, changes)
    return DealResponse.model_validate(deal)


@router.post(
    "/{deal_id}/move",
    response_model=DealResponse,
    summary="Move a deal to another stage",
    responses={404: {"description": "Deal not found, or stage not in the deal's pipeline"}},
)
async def move_deal(
    deal_id: UUID,
    data: DealMove,
    access: CrmWrite,
    db: DbSession,
) -> DealResponse:
    deals = DealRepository(db, access.tenant_id)
    deal = await deals.get_or_raise(deal_id)
    stage = await StageRepository(db, access.tenant_id).get_in_pipeline(
        data.stage_id, deal.pipeline_id
    )
    deal = await deals.update(deal, {"stage_id": stage.stage_id, "position": data.position})
    await process_stage_change(db, access.tenant_id, deal, stage)
    return DealResponse.model_validate(deal)


@router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a deal")
async def delete_deal(deal_id: UUID, access: CrmDelete, db: DbSession) -> Response:
    await DealRepository(db, access.tenant_id).delete_by_pk(deal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
