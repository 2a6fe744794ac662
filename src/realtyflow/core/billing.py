"""Billing: checkout intents and provider webhooks.

Webhook payloads are verified with HMAC-SHA256 before they are parsed.
Verified events are mapped onto tenant status transitions:

    Stripe
        checkout.session.completed     -> active (tenant from metadata.tenant_id)
        invoice.payment_succeeded      -> active (tenant from subscription)
        customer.subscription.deleted  -> suspended
        invoice.payment_failed         -> suspended
    Razorpay
        subscription.activated / subscription.charged -> active
        subscription.halted / subscription.cancelled  -> suspended

Events outside these tables, or naming no known tenant, are acknowledged
and ignored so providers do not retry them.
"""

import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.config.settings import Settings
from realtyflow.core.audit import AuditLogger
from realtyflow.core.exceptions import WebhookSignatureError
from realtyflow.core.logging import get_logger
from realtyflow.core.tenant import TenantService
from realtyflow.db.models.audit import AuditEventType
from realtyflow.db.models.tenant import Tenant, TenantStatus
from realtyflow.db.schemas.billing import BillingProvider, CheckoutIntentResponse
from realtyflow.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

STRIPE_TRANSITIONS: dict[str, TenantStatus] = {
    "checkout.session.completed": TenantStatus.ACTIVE,
    "invoice.payment_succeeded": TenantStatus.ACTIVE,
    "customer.subscription.deleted": TenantStatus.SUSPENDED,
    "invoice.payment_failed": TenantStatus.SUSPENDED,
}

RAZORPAY_TRANSITIONS: dict[str, TenantStatus] = {
    "subscription.activated": TenantStatus.ACTIVE,
    "subscription.charged": TenantStatus.ACTIVE,
    "subscription.halted": TenantStatus.SUSPENDED,
    "subscription.cancelled": TenantStatus.SUSPENDED,
}


# =============================================================================
# Signature verification
# =============================================================================


def _secret_value(secret: SecretStr | None, provider: str) -> bytes:
    if secret is None or not secret.get_secret_value():
        raise ConfigurationError(f"{provider} webhook secret is not configured")
    return secret.get_secret_value().encode("utf-8")


def verify_stripe_signature(
    payload: bytes,
    signature_header: str | None,
    secret: SecretStr | None,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> None:
    """Verify a ``Stripe-Signature: t=<ts>,v1=<hex>[,v1=<hex>]`` header.

    The signed string is ``"{t}.{payload}"``. Any ``v1`` entry may match,
    which is how Stripe signs during secret rotation.

    Raises:
        WebhookSignatureError: Header missing or malformed, stale timestamp,
            or no matching signature
        ConfigurationError: The webhook secret is not configured
    """
    key = _secret_value(secret, "stripe")
    if not signature_header:
        raise WebhookSignatureError("stripe", "missing Stripe-Signature header")

    timestamp: str | None = None
    signatures: list[str] = []
    for part in signature_header.split(","):
        name, _, value = part.strip().partition("=")
        if name == "t":
            timestamp = value
        elif name == "v1":
            signatures.append(value)
    if timestamp is None or not timestamp.isdigit() or not signatures:
        raise WebhookSignatureError("stripe", "malformed Stripe-Signature header")

    current = time.time() if now is None else now
    if abs(current - int(timestamp)) > tolerance_seconds:
        raise WebhookSignatureError("stripe", "timestamp outside tolerance")

    signed = timestamp.encode("ascii") + b"." + payload
    expected = hmac.new(key, signed, hashlib.sha256).hexdigest()
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise WebhookSignatureError("stripe", "signature mismatch")


def verify_razorpay_signature(
    payload: bytes,
    signature_header: str | None,
    secret: SecretStr | None,
) -> None:
    """Verify an ``X-Razorpay-Signature`` header (hex HMAC-SHA256 of the body).

    Raises:
        WebhookSignatureError: Header missing or signature mismatch
        ConfigurationError: The webhook secret is not configured
    """
    key = _secret_value(secret, "razorpay")
    if not signature_header:
        raise WebhookSignatureError("razorpay", "missing X-Razorpay-Signature header")
    expected = hmac.new(key, payload, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, signature_header.strip()):
        raise WebhookSignatureError("razorpay", "signature mismatch")


def parse_event(payload: bytes, provider: str) -> dict[str, Any]:
    """Decode a verified webhook body.

    Raises:
        WebhookSignatureError: The body is not a JSON object
    """
    try:
        event = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise WebhookSignatureError(provider, "body is not valid JSON") from e
    if not isinstance(event, dict):
        raise WebhookSignatureError(provider, "body is not a JSON object")
    return event


# =============================================================================
# Event handling
# =============================================================================


@dataclass(frozen=True)
class WebhookOutcome:
    """What a webhook event did."""

    provider: BillingProvider
    event_type: str
    handled: bool
    tenant_id: UUID | None = None
    status: TenantStatus | None = None


def _member(value: Any, *keys: str) -> dict[str, Any]:
    """Nested JSON object under ``keys``; a missing key or a non-object yields {}."""
    for key in keys:
        value = value.get(key) if isinstance(value, dict) else None
    return value if isinstance(value, dict) else {}


def _as_uuid(value: Any) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


class BillingService:
    """Applies verified billing events to tenants."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.tenants = TenantService(db, settings)
        self.audit = AuditLogger(db)

    async def checkout_intent(
        self, tenant: Tenant, plan_name: str, provider: BillingProvider
    ) -> CheckoutIntentResponse:
        """Record the plan a tenant intends to buy and return checkout metadata."""
        await self.audit.log_event(
            AuditEventType.CHECKOUT_REQUESTED,
            {"plan_name": plan_name, "provider": provider.value},
            tenant_id=tenant.tenant_id,
            resource_type="tenant",
            resource_id=tenant.tenant_id,
        )
        return CheckoutIntentResponse(
            tenant_id=tenant.tenant_id,
            plan_name=plan_name,
            provider=provider,
            metadata={"tenant_id": str(tenant.tenant_id), "plan_name": plan_name},
        )

    async def handle_stripe_event(self, event: dict[str, Any]) -> WebhookOutcome:
        event_type = str(event.get("type", ""))
        obj = _member(event, "data", "object")
        target = STRIPE_TRANSITIONS.get(event_type)
        if target is None:
            return await self._ignored(BillingProvider.STRIPE, event_type)

        subscription_id = obj.get("subscription")
        if event_type == "customer.subscription.deleted":
            subscription_id = obj.get("id")

        tenant: Tenant | None = None
        if event_type == "checkout.session.completed":
            tenant_id = _as_uuid(_member(obj, "metadata").get("tenant_id"))
            if tenant_id is not None:
                tenant = await self.tenants.get_tenant(tenant_id)
        elif subscription_id:
            tenant = await self.tenants.get_tenant_by_subscription(str(subscription_id))

        return await self._apply(
            BillingProvider.STRIPE,
            event_type,
            tenant,
            target,
            subscription_id=str(subscription_id) if subscription_id else None,
            plan_name=_member(obj, "metadata").get("plan_name"),
        )

    async def handle_razorpay_event(self, event: dict[str, Any]) -> WebhookOutcome:
        event_type = str(event.get("event", ""))
        target = RAZORPAY_TRANSITIONS.get(event_type)
        if target is None:
            return await self._ignored(BillingProvider.RAZORPAY, event_type)

        entity = _member(event, "payload", "subscription", "entity")
        subscription_id = entity.get("id")
        notes = _member(entity, "notes")

        tenant: Tenant | None = None
        tenant_id = _as_uuid(notes.get("tenant_id"))
        if tenant_id is not None:
            tenant = await self.tenants.get_tenant(tenant_id)
        if tenant is None and subscription_id:
            tenant = await self.tenants.get_tenant_by_subscription(str(subscription_id))

        return await self._apply(
            BillingProvider.RAZORPAY,
            event_type,
            tenant,
            target,
            subscription_id=str(subscription_id) if subscription_id else None,
            plan_name=notes.get("plan_name"),
        )

    async def _apply(
        self,
        provider: BillingProvider,
        event_type: str,
        tenant: Tenant | None,
        target: TenantStatus,
        subscription_id: str | None,
        plan_name: str | None,
    ) -> WebhookOutcome:
        if tenant is None:
            logger.warning("webhook_tenant_unknown", provider=provider.value, event_type=event_type)
            return await self._ignored(provider, event_type)

        if target == TenantStatus.ACTIVE and plan_name:
            tenant.plan_name = str(plan_name)
        await self.tenants.set_status(
            tenant,
            target,
            reason=f"{provider.value}:{event_type}",
            subscription_id=subscription_id if target == TenantStatus.ACTIVE else None,
        )
        await self.audit.log_event(
            AuditEventType.BILLING_WEBHOOK,
            {"provider": provider.value, "event_type": event_type, "status": target.value},
            tenant_id=tenant.tenant_id,
            resource_type="tenant",
            resource_id=tenant.tenant_id,
        )
        return WebhookOutcome(
            provider=provider,
            event_type=event_type,
            handled=True,
            tenant_id=tenant.tenant_id,
            status=target,
        )

    async def _ignored(self, provider: BillingProvider, event_type: str) -> WebhookOutcome:
        logger.info("webhook_ignored", provider=provider.value, event_type=event_type)
        return WebhookOutcome(provider=provider, event_type=event_type, handled=False)
