"""Property listings of the current brokerage."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from realtyflow.api.dependencies import CrmDelete, CrmRead, CrmWrite, DbSession
from realtyflow.core.limits import ensure_within_limit
from realtyflow.db.models.crm import PropertyStatus
from realtyflow.db.repositories.crm import PropertyRepository
from realtyflow.db.schemas.crm import PropertyCreate, PropertyResponse, PropertyUpdate

router = APIRouter(prefix="/properties", tags=["properties"])


@router.get("", response_model=list[PropertyResponse], summary="List properties")
async def list_properties(
    access: CrmRead,
    db: DbSession,
    status_filter: Annotated[PropertyStatus | None, Query(alias="status")] = None,
    city: Annotated[str | None, Query(max_length=100)] = None,
    q: Annotated[str | None, Query(max_length=100, description="Search title and address")] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[PropertyResponse]:
    repo = PropertyRepository(db, access.tenant_id)
    props = await repo.search(
        status=status_filter.value if status_filter else None,
        city=city,
        query=q,
        limit=limit,
        offset=offset,
    )
    return [PropertyResponse.model_validate(p) for p in props]


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a property",
    responses={402: {"description": "Property limit of the plan reached"}},
)
async def create_property(
    data: PropertyCreate,
    access: CrmWrite,
    db: DbSession,
) -> PropertyResponse:
    repo = PropertyRepository(db, access.tenant_id)
    await ensure_within_limit(access.require_tenant(), "properties", repo)
    prop = await repo.create({**data.model_dump(), "created_by": access.user.user_id})
    return PropertyResponse.model_validate(prop)


@router.get("/{property_id}", response_model=PropertyResponse, summary="Get a property")
async def get_property(property_id: UUID, access: CrmRead, db: DbSession) -> PropertyResponse:
    prop = await PropertyRepository(db, access.tenant_id).get_or_raise(property_id)
    return PropertyResponse.model_validate(prop)


@router.patch("/{property_id}", response_model=PropertyResponse, summary="Update a property")
async def update_property(
    property_id: UUID,
    data: PropertyUpdate,
    access: CrmWrite,
    db: DbSession,
) -> PropertyResponse:
    repo = PropertyRepository(db, access.tenant_id)
    prop = await repo.get_or_raise(property_id)
    prop = await repo.update(prop, data.model_dump(exclude_unset=True))
    return PropertyResponse.model_validate(prop)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a property",
)
async def delete_property(property_id: UUID, access: CrmDelete, db: DbSession) -> Response:
    await PropertyRepository(db, access.tenant_id).delete_by_pk(property_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
