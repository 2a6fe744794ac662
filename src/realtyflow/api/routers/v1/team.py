"""Team management for the current brokerage.

Listing is open to staff; adding, re-roling and deactivating members needs
OWNER or ADMIN, and anything that grants or revokes OWNER needs an OWNER.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from realtyflow.api.dependencies import AccountManage, AppSettings, DbSession, TeamRead
from realtyflow.core.membership import MembershipService
from realtyflow.db.schemas.user import MemberCreate, MemberResponse, MemberUpdate

router = APIRouter(prefix="/team", tags=["team"])


@router.get("", response_model=list[MemberResponse], summary="List members")
async def list_members(
    access: TeamRead,
    db: DbSession,
    settings: AppSettings,
    include_inactive: Annotated[bool, Query()] = False,
) -> list[MemberResponse]:
    service = MembershipService(db, settings, access.require_tenant().tenant_id)
    members = await service.list_members(include_inactive=include_inactive)
    return [MemberResponse.from_membership(m) for m in members]


@router.post(
    "",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a member",
    responses={
        403: {"description": "Only owners may add owners"},
        409: {"description": "Already an active member"},
    },
)
async def add_member(
    data: MemberCreate,
    access: AccountManage,
    db: DbSession,
    settings: AppSettings,
) -> MemberResponse:
    service = MembershipService(db, settings, access.require_tenant().tenant_id)
    membership = await service.add_member(access.membership, data)
    return MemberResponse.from_membership(membership)


@router.patch(
    "/{user_id}",
    response_model=MemberResponse,
    summary="Change a member's role",
    responses={
        403: {"description": "Only owners may change roles to or from OWNER"},
        409: {"description": "The last owner cannot be demoted"},
    },
)
async def change_member_role(
    user_id: UUID,
    data: MemberUpdate,
    access: AccountManage,
    db: DbSession,
    settings: AppSettings,
) -> MemberResponse:
    service = MembershipService(db, settings, access.require_tenant().tenant_id)
    membership = await service.change_role(access.membership, user_id, data.role)
    return MemberResponse.from_membership(membership)


@router.delete(
    "/{user_id}",
    response_model=MemberResponse,
    summary="Deactivate a member",
    responses={409: {"description": "The last owner cannot be deactivated"}},
)
async def deactivate_member(
    user_id: UUID,
    access: AccountManage,
    db: DbSession,
    settings: AppSettings,
) -> MemberResponse:
    service = MembershipService(db, settings, access.require_tenant().tenant_id)
    membership = await service.deactivate(access.membership, user_id)
    return MemberResponse.from_membership(membership)
