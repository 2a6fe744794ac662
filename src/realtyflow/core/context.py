"""Per-request context carried in a ``ContextVar``.

RequestContextMiddleware opens a context as soon as the caller is known.
The tenant is not known yet at that point: the tenant resolver binds it
once it has picked a candidate, and from then on logging, audit and the
automation hooks all see the same tenant. Background jobs open their own
context per tenant they work on.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_utils.compat import uuid7

from realtyflow.core.exceptions import ContextNotSetError, NoTenantContextError


class ActorType(str, Enum):
    HUMAN = "human"  # bearer token
    SERVICE = "service"  # billing provider webhook
    SYSTEM = "system"  # cron job or anonymous path


class RequestContext(BaseModel):
    """Who is calling, and for which tenant.

    Roles and subscription status are not cached here; the gates read them
    from the database on every request.
    """

    request_id: UUID = Field(default_factory=uuid7)
    correlation_id: UUID = Field(default_factory=uuid7)
    actor_type: ActorType = ActorType.HUMAN
    user_id: UUID | None = None
    tenant_id: UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def bind_tenant(self, tenant_id: UUID) -> None:
        self.tenant_id = tenant_id

    def require_tenant(self) -> UUID:
        if self.tenant_id is None:
            raise NoTenantContextError()
        return self.tenant_id


_current: ContextVar[RequestContext | None] = ContextVar("realtyflow_context", default=None)


def get_current_context_or_none() -> RequestContext | None:
    return _current.get()


def get_current_context() -> RequestContext:
    ctx = _current.get()
    if ctx is None:
        raise ContextNotSetError("No request context; wrap the call in request_context()")
    return ctx


@contextmanager
def request_context(ctx: RequestContext) -> Iterator[RequestContext]:
    """Make ``ctx`` current for the block; tasks spawned inside inherit it."""
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


def create_context(
    *,
    user_id: UUID | None = None,
    tenant_id: UUID | None = None,
    actor_type: ActorType = ActorType.HUMAN,
    correlation_id: UUID | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> RequestContext:
    ctx = RequestContext(
        user_id=user_id,
        tenant_id=tenant_id,
        actor_type=actor_type,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    if correlation_id is not None:
        ctx.correlation_id = correlation_id
    return ctx
