"""The authenticated user's identity and brokerages."""

from fastapi import APIRouter

from realtyflow.api.dependencies import DbSession, PlatformRead
from realtyflow.core.roles import Role
from realtyflow.db.repositories.accounts import MembershipRepository
from realtyflow.db.schemas.user import MembershipSummary, MeResponse, UserResponse

router = APIRouter(tags=["auth"])


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current user",
    description=(
        "Works for users without any brokerage. When the request resolves to "
        "a tenant, the user's role there is included."
    ),
)
async def get_me(access: PlatformRead, db: DbSession) -> MeResponse:
    memberships = await MembershipRepository(db).active_for_user(access.user.user_id)

    role = None
    for membership in memberships:
        if membership.tenant_id == access.tenant_id:
            role = Role(membership.role)

    return MeResponse(
        user=UserResponse.model_validate(access.user),
        memberships=[
            MembershipSummary(
                tenant_id=m.tenant_id,
                tenant_name=m.tenant.name,
                subdomain=m.tenant.subdomain,
                status=m.tenant.status,
                role=Role(m.role),
            )
            for m in memberships
        ],
        current_tenant_id=access.tenant_id,
        role=role,
    )
