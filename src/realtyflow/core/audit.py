"""Audit trail writer.

Every event is written twice: as an ``audit_events`` row in the caller's
unit of work, and as an ``audit_event`` log line so it reaches the log
pipeline even when the transaction is later rolled back.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils.compat import uuid7

from realtyflow.core.context import get_current_context_or_none
from realtyflow.core.logging import get_logger
from realtyflow.db.models.audit import AuditEvent, AuditEventType, AuditSeverity

logger = get_logger(__name__)

_LOG_METHOD = {
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_event(
        self,
        event_type: AuditEventType,
        event_data: dict[str, Any],
        *,
        severity: AuditSeverity | None = None,
        tenant_id: UUID | None = None,
        user_id: UUID | None = None,
        resource_type: str | None = None,
        resource_id: UUID | str | None = None,
    ) -> AuditEvent:
        """Append an audit event and flush it.

        ``tenant_id`` and ``user_id`` default to the request context's values;
        the correlation ID, client address and user agent always come from it.
        Outside a request (the automation CLI) they are left empty and a fresh
        correlation ID is minted.

        Args:
            event_type: What happened
            event_data: JSON-serialisable details
            severity: Overrides the event type's default severity
            tenant_id: Tenant the event concerns, when not the resolved one
            user_id: Acting user, when not the authenticated one
            resource_type: Kind of record the event is about
            resource_id: Identifier of that record
        """
        severity = severity or event_type.default_severity
        ctx = get_current_context_or_none()

        event = AuditEvent(
            event_type=event_type.value,
            severity=severity.value,
            tenant_id=tenant_id if tenant_id is not None else ctx and ctx.tenant_id,
            user_id=user_id if user_id is not None else ctx and ctx.user_id,
            correlation_id=ctx.correlation_id if ctx else uuid7(),
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            event_data=event_data,
            ip_address=ctx.ip_address if ctx else None,
            user_agent=ctx.user_agent if ctx else None,
        )
        self.db.add(event)
        await self.db.flush()

        getattr(logger, _LOG_METHOD[severity])(
            "audit_event",
            event_type=event.event_type,
            audit_id=str(event.audit_id),
            target_tenant_id=str(event.tenant_id) if event.tenant_id else None,
            resource=f"{resource_type}:{event.resource_id}" if resource_type else None,
        )
        return event

    async def query_events(
        self,
        *,
        tenant_id: UUID | None = None,
        event_type: AuditEventType | None = None,
        resource_type: str | None = None,
        resource_id: UUID | str | None = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Audit events matching every given filter, newest first."""
        query = select(AuditEvent)
        if tenant_id is not None:
            query = query.where(AuditEvent.tenant_id == tenant_id)
        if event_type is not None:
            query = query.where(AuditEvent.event_type == event_type.value)
        if resource_type is not None:
            query = query.where(AuditEvent.resource_type == resource_type)
        if resource_id is not None:
            query = query.where(AuditEvent.resource_id == str(resource_id))

        # audit_id is a UUIDv7, so it breaks ties between equal timestamps
        query = query.order_by(AuditEvent.created_at.desc(), AuditEvent.audit_id.desc())
        result = await self.db.execute(query.limit(min(limit, 1000)))
        return list(result.scalars().all())
