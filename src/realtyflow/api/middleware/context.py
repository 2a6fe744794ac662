"""Opens the request context that logging, audit and the tenant resolver share."""

from typing import Callable
from uuid import UUID

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from realtyflow.api.middleware.logging import client_ip
from realtyflow.core.context import ActorType, create_context, request_context

SKIP_CONTEXT_PATHS = frozenset({"/health", "/openapi.json"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Innermost middleware; runs after authentication has identified the caller.

    The context opens without a tenant. The tenant resolver binds one during
    dependency resolution, and the bound tenant is copied back onto
    ``request.state.tenant_id`` for the access log once the route returns.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in SKIP_CONTEXT_PATHS or path.startswith(("/docs", "/redoc")):
            response = await call_next(request)
            response.headers["X-Request-ID"] = str(request.state.request_id)
            return response

        ctx = create_context(
            user_id=getattr(request.state, "user_id", None),
            actor_type=getattr(request.state, "actor_type", None) or ActorType.SYSTEM,
            correlation_id=_uuid_header(request, "X-Correlation-ID"),
            ip_address=client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        ctx.request_id = request.state.request_id

        with request_context(ctx):
            try:
                response = await call_next(request)
            finally:
                request.state.tenant_id = ctx.tenant_id

        response.headers["X-Request-ID"] = str(ctx.request_id)
        response.headers["X-Correlation-ID"] = str(ctx.correlation_id)
        return response


def _uuid_header(request: Request, name: str) -> UUID | None:
    try:
        return UUID(request.headers.get(name) or "")
    except ValueError:
        return None
