"""Sales pipelines and their kanban stages."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.api.dependencies import CrmDelete, CrmRead, CrmWrite, DbSession
from realtyflow.core.exceptions import ConflictError
from realtyflow.db.models.crm import Pipeline
from realtyflow.db.repositories.crm import DealRepository, PipelineRepository, StageRepository
from realtyflow.db.schemas.crm import (
    PipelineCreate,
    PipelineResponse,
    PipelineUpdate,
    StageCreate,
    StageResponse,
    StageUpdate,
)

router = APIRouter(prefix="/pipelines", tags=["pipelines"])


async def _pipeline_response(
    db: AsyncSession, tenant_id: UUID, pipeline: Pipeline
) -> PipelineResponse:
    stages = await StageRepository(db, tenant_id).for_pipeline(pipeline.pipeline_id)
    return PipelineResponse(
        pipeline_id=pipeline.pipeline_id,
        tenant_id=pipeline.tenant_id,
        name=pipeline.name,
        description=pipeline.description,
        is_active=pipeline.is_active,
        created_at=pipeline.created_at,
        stages=[StageResponse.model_validate(s) for s in stages],
    )


async def _add_stage(
    stages: StageRepository, pipeline_id: UUID, data: StageCreate
):
    position = data.position
    if position is None:
        position = await stages.next_position(pipeline_id)
    return await stages.create(
        {"pipeline_id": pipeline_id, "name": data.name, "color": data.color, "position": position}
    )


@router.get("", response_model=list[PipelineResponse], summary="List pipelines")
async def list_pipelines(
    access: CrmRead,
    db: DbSession,
    include_inactive: Annotated[bool, Query()] = False,
) -> list[PipelineResponse]:
    pipelines = await PipelineRepository(db, access.tenant_id).list(
        order_by="created_at",
        filters=None if include_inactive else {"is_active": True},
    )
    return [await _pipeline_response(db, access.tenant_id, p) for p in pipelines]


@router.post(
    "",
    response_model=PipelineResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a pipeline",
    description="Stages given without a position are appended in order.",
)
async def create_pipeline(data: PipelineCreate, access: CrmWrite, db: DbSession) -> PipelineResponse:
    pipeline = await PipelineRepository(db, access.tenant_id).create(
        {"name": data.name, "description": data.description}
    )
    stages = StageRepository(db, access.tenant_id)
    for stage in data.stages:
        await _add_stage(stages, pipeline.pipeline_id, stage)
    return await _pipeline_response(db, access.tenant_id, pipeline)


@router.get("/{pipeline_id}", response_model=PipelineResponse, summary="Get a pipeline")
async def get_pipeline(pipeline_id: UUID, access: CrmRead, db: DbSession) -> PipelineResponse:
    pipeline = await PipelineRepository(db, access.tenant_id).get_or_raise(pipeline_id)
    return await _pipeline_response(db, access.tenant_id, pipeline)


@router.patch("/{pipeline_id}", response_model=PipelineResponse, summary="Update a pipeline")
async def update_pipeline(
    pipeline_id: UUID,
    data: PipelineUpdate,
    access: CrmWrite,
    db: DbSession,
) -> PipelineResponse:
    repo = PipelineRepository(db, access.tenant_id)
    pipeline = await repo.get_or_raise(pipeline_id)
    pipeline = await repo.update(pipeline, data.model_dump(exclude_unset=True))
    return await _pipeline_response(db, access.tenant_id, pipeline)


@router.delete(
    "/{pipeline_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a pipeline",
    responses={409: {"description": "The pipeline still has deals"}},
)
async def delete_pipeline(pipeline_id: UUID, access: CrmDelete, db: DbSession) -> Response:
    repo = PipelineRepository(db, access.tenant_id)
    pipeline = await repo.get_or_raise(pipeline_id)
    if await DealRepository(db, access.tenant_id).count({"pipeline_id": pipeline_id}):
        raise ConflictError("Pipeline still has deals; move or delete them first")
    await repo.delete(pipeline)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{pipeline_id}/stages",
    response_model=list[StageResponse],
    summary="List the stages of a pipeline",
)
async def list_stages(pipeline_id: UUID, access: CrmRead, db: DbSession) -> list[StageResponse]:
    await PipelineRepository(db, access.tenant_id).get_or_raise(pipeline_id)
    stages = await StageRepository(db, access.tenant_id).for_pipeline(pipeline_id)
    return [StageResponse.model_validate(s) for s in stages]


@router.post(
    "/{pipeline_id}/stages",
    response_model=StageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a stage",
)
async def add_stage(
    pipeline_id: UUID,
    data: StageCreate,
    access: CrmWrite,
    db: DbSession,
) -> StageResponse:
    await PipelineRepository(db, access.tenant_id).get_or_raise(pipeline_id)
    stage = await _add_stage(StageRepository(db, access.tenant_id), pipeline_id, data)
    return StageResponse.model_validate(stage)


@router.patch(
    "/{pipeline_id}/stages/{stage_id}",
    response_model=StageResponse,
    summary="Rename, recolour, reorder or deactivate a stage",
)
async def update_stage(
    pipeline_id: UUID,
    stage_id: UUID,
    data: StageUpdate,
    access: CrmWrite,
    db: DbSession,
) -> StageResponse:
    stages = StageRepository(db, access.tenant_id)
    stage = await stages.get_in_pipeline(stage_id, pipeline_id)
    stage = await stages.update(stage, data.model_dump(exclude_unset=True))
    return StageResponse.model_validate(stage)
