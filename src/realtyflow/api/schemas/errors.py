"""The single error body every RealtyFlow endpoint returns."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE_USER = "inactive_user"

    TENANT_NOT_FOUND = "tenant_not_found"
    TENANT_ACCESS_DENIED = "tenant_access_denied"
    TENANT_REQUIRED = "tenant_required"
    TENANT_SUSPENDED = "tenant_suspended"
    TENANT_EXPIRED = "tenant_expired"

    MEMBERSHIP_NOT_FOUND = "membership_not_found"
    INSUFFICIENT_ROLE = "insufficient_role"
    SUBSCRIPTION_INACTIVE = "subscription_inactive"
    PLATFORM_ADMIN_REQUIRED = "platform_admin_required"
    PLAN_LIMIT_EXCEEDED = "plan_limit_exceeded"

    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION_ERROR = "validation_error"
    WEBHOOK_SIGNATURE_INVALID = "webhook_signature_invalid"

    INTERNAL_ERROR = "internal_error"


class APIError(BaseModel):
    """Error body.

    ``error_code`` is stable and meant for clients to branch on; ``message``
    is for humans and may change.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str
    details: dict[str, Any] | None = Field(
        default=None, description="Structured context, e.g. the roles an operation allows"
    )
    request_id: str = Field(..., description="Same value as the X-Request-ID header")
    timestamp: datetime

    model_config = {
        "json_schema_extra": {
            "example": {
                "error_code": "insufficient_role",
                "message": "Role AGENT is not permitted (requires one of: OWNER, ADMIN)",
                "details": {"role": "AGENT", "allowed": ["OWNER", "ADMIN"]},
                "request_id": "019478f2-1234-7000-8000-abcdef123456",
                "timestamp": "2026-01-30T12:00:00Z",
            }
        }
    }


def error_response(
    request: Request,
    status_code: int,
    error_code: ErrorCode | str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Render an ``APIError`` tagged with the request's ID."""
    request_id = str(getattr(request.state, "request_id", None) or "unknown")
    body = APIError(
        error_code=ErrorCode(error_code).value,
        message=message,
        details=details,
        request_id=request_id,
        timestamp=datetime.now(UTC),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers={"X-Request-ID": request_id},
    )
