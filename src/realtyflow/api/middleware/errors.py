"""Turns exceptions escaping a route into ``APIError`` responses."""

from typing import Any, Callable
from uuid import UUID

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.middleware.base import BaseHTTPMiddleware

from realtyflow.api.schemas.errors import ErrorCode, error_response
from realtyflow.core import exceptions as exc_types
from realtyflow.core.logging import get_logger

logger = get_logger(__name__)

# Checked in order, so a subclass must come before its base
EXCEPTION_MAP: dict[type[Exception], tuple[int, str]] = {
    exc_types.InvalidTokenError: (401, ErrorCode.UNAUTHORIZED),
    exc_types.InvalidCredentialsError: (401, ErrorCode.INVALID_CREDENTIALS),
    exc_types.InactiveUserError: (403, ErrorCode.INACTIVE_USER),
    exc_types.TenantNotFoundError: (404, ErrorCode.TENANT_NOT_FOUND),
    exc_types.AccessDeniedError: (403, ErrorCode.TENANT_ACCESS_DENIED),
    exc_types.NoTenantContextError: (403, ErrorCode.TENANT_REQUIRED),
    exc_types.TenantSuspendedError: (403, ErrorCode.TENANT_SUSPENDED),
    exc_types.TenantExpiredError: (402, ErrorCode.TENANT_EXPIRED),
    exc_types.MembershipNotFoundError: (403, ErrorCode.MEMBERSHIP_NOT_FOUND),
    exc_types.InsufficientRoleError: (403, ErrorCode.INSUFFICIENT_ROLE),
    exc_types.SubscriptionInactiveError: (402, ErrorCode.SUBSCRIPTION_INACTIVE),
    exc_types.PlatformAdminRequiredError: (403, ErrorCode.PLATFORM_ADMIN_REQUIRED),
    exc_types.PlanLimitExceededError: (402, ErrorCode.PLAN_LIMIT_EXCEEDED),
    exc_types.ResourceNotFoundError: (404, ErrorCode.NOT_FOUND),
    exc_types.ConflictError: (409, ErrorCode.CONFLICT),
    exc_types.InvalidRequestError: (400, ErrorCode.INVALID_REQUEST),
    exc_types.WebhookSignatureError: (400, ErrorCode.WEBHOOK_SIGNATURE_INVALID),
    ValidationError: (422, ErrorCode.VALIDATION_ERROR),
    IntegrityError: (409, ErrorCode.CONFLICT),
}

# Exception attributes that are safe to echo back to the caller
DETAIL_ATTRIBUTES = (
    "tenant_id",
    "source",
    "user_id",
    "role",
    "allowed",
    "status",
    "resource",
    "resource_id",
    "limit",
    "email",
    "subdomain",
    "provider",
    "field",
)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Maps domain exceptions to status codes via ``EXCEPTION_MAP``.

    Anything unmapped becomes a 500 ``internal_error``. That includes a
    database failure while a gate is looking up a membership: an outage is
    never reported to the caller as a denial.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return self._to_response(request, exc)

    def _to_response(self, request: Request, exc: Exception) -> JSONResponse:
        status_code, error_code, message, details = self._classify(request, exc)

        if status_code >= 500:
            logger.error(
                "request_failed",
                path=request.url.path,
                error_type=type(exc).__name__,
                exc_info=exc,
            )
        else:
            logger.info(
                "request_rejected",
                path=request.url.path,
                status_code=status_code,
                error_code=error_code,
            )

        response = error_response(request, status_code, error_code, message, details)
        if status_code == 401:
            response.headers["WWW-Authenticate"] = "Bearer"
        return response

    def _classify(
        self, request: Request, exc: Exception
    ) -> tuple[int, str, str, dict[str, Any] | None]:
        mapped = next(
            (codes for exc_type, codes in EXCEPTION_MAP.items() if isinstance(exc, exc_type)),
            None,
        )
        if mapped is None:
            settings = getattr(request.app.state, "settings", None)
            debug = settings is not None and settings.DEBUG
            return (
                500,
                ErrorCode.INTERNAL_ERROR,
                "Internal server error",
                {"type": type(exc).__name__} if debug else None,
            )

        status_code, error_code = mapped
        if isinstance(exc, ValidationError):
            errors = exc.errors(include_url=False, include_context=False)
            return status_code, error_code, "Request validation failed", {"errors": errors}
        if isinstance(exc, IntegrityError):
            return status_code, error_code, "Record conflicts with existing data", None
        return status_code, error_code, str(exc), _details(exc)


def _details(exc: Exception) -> dict[str, Any] | None:
    details: dict[str, Any] = {}
    for name in DETAIL_ATTRIBUTES:
        if not hasattr(exc, name):
            continue
        value = getattr(exc, name)
        if isinstance(value, UUID):
            value = str(value)
        elif isinstance(value, list):
            value = [str(v) for v in value]
        details[name] = value
    return details or None
