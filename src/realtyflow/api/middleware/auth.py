"""Bearer token check for every non-public path."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from realtyflow.api.schemas.errors import ErrorCode, error_response
from realtyflow.config.settings import Settings, get_settings
from realtyflow.core.context import ActorType
from realtyflow.core.exceptions import InvalidTokenError
from realtyflow.core.security import decode_token

PUBLIC_PATHS = frozenset(
    {
        "/health",
        "/health/db",
        "/openapi.json",
        "/v1/auth/register",
        "/v1/auth/login",
    }
)
PUBLIC_PREFIXES = ("/docs", "/redoc")

# Provider callbacks authenticate with a signature over the body instead
WEBHOOK_PREFIX = "/v1/billing/webhooks"


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Verifies the session token's signature and expiry.

    The token is trusted for identity only. The user row, memberships and
    tenant status are re-read by the route dependencies on every request.

    Sets ``request.state.claims``, ``user_id`` and ``actor_type``.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        request.state.claims = None
        request.state.user_id = None

        if path.startswith(WEBHOOK_PREFIX):
            request.state.actor_type = ActorType.SERVICE
            return await call_next(request)
        if path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES):
            request.state.actor_type = ActorType.SYSTEM
            return await call_next(request)

        scheme, _, token = (request.headers.get("Authorization") or "").partition(" ")
        if not scheme:
            return _unauthorized(request, "Missing Authorization header")
        if scheme.lower() != "bearer" or not token.strip():
            return _unauthorized(request, "Invalid Authorization header format")

        try:
            claims = decode_token(token.strip(), _settings(request))
        except InvalidTokenError as e:
            return _unauthorized(request, e.reason)

        request.state.claims = claims
        request.state.user_id = claims.user_id
        request.state.actor_type = ActorType.HUMAN
        return await call_next(request)


def _settings(request: Request) -> Settings:
    # create_app(settings) stores an override on app state
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def _unauthorized(request: Request, message: str) -> Response:
    response = error_response(request, 401, ErrorCode.UNAUTHORIZED, message)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response
