"""Creating brokerages and managing the current one.

``POST /tenants`` runs under the PLATFORM policy so a user with no brokerage
yet can onboard. The Subscription Gate still applies: a user whose every
brokerage has lapsed cannot open new ones to dodge payment.
"""

from fastapi import APIRouter, status

from realtyflow.api.dependencies import (
    AccountManage,
    AccountRead,
    AppSettings,
    DbSession,
    Onboarding,
)
from realtyflow.api.routers.v1.auth import token_response
from realtyflow.core.auth import AuthService
from realtyflow.core.tenant import TenantService
from realtyflow.db.repositories.accounts import UserRepository
from realtyflow.db.schemas.tenant import TenantCreate, TenantResponse, TenantUpdate
from realtyflow.db.schemas.user import TokenResponse

router = APIRouter(tags=["tenants"])


@router.post(
    "/tenants",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a brokerage",
    description=(
        "Create a brokerage owned by the caller and switch to it. The response "
        "carries a new token that includes the new tenant."
    ),
    responses={
        402: {"description": "The caller's brokerages have no usable subscription"},
        409: {"description": "Subdomain taken"},
    },
)
async def create_tenant(
    data: TenantCreate,
    access: Onboarding,
    db: DbSession,
    settings: AppSettings,
) -> TokenResponse:
    tenant, _ = await TenantService(db, settings).create_tenant(
        name=data.name,
        owner_id=access.user.user_id,
        subdomain=data.subdomain,
    )
    await UserRepository(db).set_current_tenant(access.user, tenant.tenant_id)
    session = await AuthService(db, settings).issue_session(access.user)
    return token_response(session)


@router.get(
    "/tenant",
    response_model=TenantResponse,
    summary="Current brokerage",
    description="Readable by every member, including while the brokerage is suspended or expired.",
)
async def get_current_tenant(access: AccountRead) -> TenantResponse:
    return TenantResponse.model_validate(access.require_tenant())


@router.patch(
    "/tenant",
    response_model=TenantResponse,
    summary="Update current brokerage",
    responses={
        403: {"description": "Only owners and admins may update the brokerage"},
        409: {"description": "Subdomain taken"},
    },
)
async def update_current_tenant(
    data: TenantUpdate,
    access: AccountManage,
    db: DbSession,
    settings: AppSettings,
) -> TenantResponse:
    tenant = await TenantService(db, settings).update_profile(access.require_tenant(), data)
    return TenantResponse.model_validate(tenant)
