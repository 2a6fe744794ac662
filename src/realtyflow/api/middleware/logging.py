"""Access log for API requests.

One ``request_completed`` line per request, carrying the tenant the request
resolved to and where that tenant came from (header, token, host or
fallback). Health probes are logged at DEBUG so load balancers do not flood
the log.
"""

import time
from typing import Callable
from uuid import UUID

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from uuid_utils.compat import uuid7

from realtyflow.core.logging import get_logger

logger = get_logger("realtyflow.api.requests")

QUIET_PATHS = frozenset({"/health", "/health/db"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Outermost middleware: assigns the request ID and writes the access log.

    A caller-supplied ``X-Request-ID`` is kept when it is a UUID. The ID is
    bound into structlog's context variables for the life of the request so
    every line a handler logs carries it.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        request_id = self._incoming_request_id(request) or uuid7()
        request.state.request_id = request_id
        start = time.perf_counter()

        with structlog.contextvars.bound_contextvars(request_id=str(request_id)):
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            self._log(request, response.status_code, duration_ms)
        return response

    def _incoming_request_id(self, request: Request) -> UUID | None:
        value = request.headers.get("X-Request-ID")
        if not value:
            return None
        try:
            return UUID(value)
        except ValueError:
            return None

    def _log(self, request: Request, status_code: int, duration_ms: float) -> None:
        state = request.state
        tenant_id = getattr(state, "tenant_id", None)
        user_id = getattr(state, "user_id", None)
        source = getattr(state, "tenant_source", None)

        fields = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "user_id": str(user_id) if user_id else None,
            "tenant_id": str(tenant_id) if tenant_id else None,
            "tenant_source": source.value if source is not None else None,
            "client_ip": client_ip(request),
        }

        if request.url.path in QUIET_PATHS and status_code < 500:
            logger.debug("request_completed", **fields)
        elif status_code >= 500:
            logger.error("request_completed", **fields)
        elif status_code >= 400:
            logger.warning("request_completed", **fields)
        else:
            logger.info("request_completed", **fields)


def client_ip(request: Request) -> str | None:
    """Original client address, trusting the first X-Forwarded-For hop."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None
