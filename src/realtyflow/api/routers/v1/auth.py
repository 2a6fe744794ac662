"""Authentication endpoints: signup, login and tenant switching.

Register and login are public. Switching tenant only needs a valid token:
the target membership is checked live, and the re-issued token carries the
user's current tenant list.
"""

from fastapi import APIRouter, status

from realtyflow.api.dependencies import AppSettings, CurrentUser, DbSession
from realtyflow.core.auth import AuthService, IssuedSession
from realtyflow.db.schemas.user import (
    LoginRequest,
    RegisterRequest,
    SwitchTenantRequest,
    TokenResponse,
    UserResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def token_response(session: IssuedSession) -> TokenResponse:
    return TokenResponse(
        access_token=session.token,
        expires_at=session.claims.expires_at,
        user=UserResponse.model_validate(session.user),
        tenant_ids=list(session.claims.tenant_ids),
        current_tenant_id=session.claims.current_tenant_id,
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="Create an account, its first brokerage (on trial) and the OWNER membership.",
    responses={
        409: {"description": "Email already registered or subdomain taken"},
        422: {"description": "Invalid request body"},
    },
)
async def register(
    data: RegisterRequest,
    db: DbSession,
    settings: AppSettings,
) -> TokenResponse:
    session, _ = await AuthService(db, settings).register(data)
    return token_response(session)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    responses={
        401: {"description": "Invalid email or password"},
        403: {"description": "Account deactivated"},
    },
)
async def login(
    data: LoginRequest,
    db: DbSession,
    settings: AppSettings,
) -> TokenResponse:
    session = await AuthService(db, settings).login(data.email, data.password)
    return token_response(session)


@router.post(
    "/switch-tenant",
    response_model=TokenResponse,
    summary="Switch current tenant",
    description="Make another brokerage the current one and re-issue the token.",
    responses={
        403: {"description": "No active membership in the tenant"},
    },
)
async def switch_tenant(
    data: SwitchTenantRequest,
    user: CurrentUser,
    db: DbSession,
    settings: AppSettings,
) -> TokenResponse:
    session = await AuthService(db, settings).switch_tenant(user, data.tenant_id)
    return token_response(session)
