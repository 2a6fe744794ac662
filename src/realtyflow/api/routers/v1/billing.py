"""Billing API endpoints.

- POST /v1/billing/checkout-intent - Record the plan a brokerage wants to buy
- POST /v1/billing/webhooks/stripe - Stripe events
- POST /v1/billing/webhooks/razorpay - Razorpay events

Checkout stays open to OWNER and ACCOUNT members of suspended or expired
brokerages, since paying is how they get out of that state. Webhooks carry
no session token; the provider signature is verified against the raw body
before anything is parsed.
"""

from fastapi import APIRouter, Request

from realtyflow.api.dependencies import AppSettings, BillingAccess, DbSession
from realtyflow.core.billing import (
    BillingService,
    WebhookOutcome,
    parse_event,
    verify_razorpay_signature,
    verify_stripe_signature,
)
from realtyflow.core.logging import get_logger
from realtyflow.db.schemas.billing import (
    BillingProvider,
    CheckoutIntentRequest,
    CheckoutIntentResponse,
    WebhookAck,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])


def _ack(outcome: WebhookOutcome) -> WebhookAck:
    return WebhookAck(
        event_type=outcome.event_type,
        handled=outcome.handled,
        tenant_id=outcome.tenant_id,
        status=outcome.status.value if outcome.status else None,
    )


@router.post(
    "/checkout-intent",
    response_model=CheckoutIntentResponse,
    summary="Start a checkout",
    description=(
        "Returns the metadata the payment page must attach to the provider's "
        "checkout so the resulting webhook can be matched to this brokerage."
    ),
    responses={403: {"description": "Only owners and accountants may buy plans"}},
)
async def checkout_intent(
    data: CheckoutIntentRequest,
    access: BillingAccess,
    db: DbSession,
    settings: AppSettings,
) -> CheckoutIntentResponse:
    return await BillingService(db, settings).checkout_intent(
        access.require_tenant(), data.plan_name, data.provider
    )


@router.post(
    "/webhooks/stripe",
    response_model=WebhookAck,
    summary="Receive Stripe webhook",
    responses={400: {"description": "Missing or invalid Stripe-Signature"}},
)
async def stripe_webhook(request: Request, db: DbSession, settings: AppSettings) -> WebhookAck:
    payload = await request.body()
    verify_stripe_signature(
        payload,
        request.headers.get("Stripe-Signature"),
        settings.STRIPE_WEBHOOK_SECRET,
        tolerance_seconds=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
    )
    event = parse_event(payload, BillingProvider.STRIPE.value)

    outcome = await BillingService(db, settings).handle_stripe_event(event)
    logger.info(
        "billing_webhook_received",
        provider="stripe",
        event_type=outcome.event_type,
        handled=outcome.handled,
    )
    return _ack(outcome)


@router.post(
    "/webhooks/razorpay",
    response_model=WebhookAck,
    summary="Receive Razorpay webhook",
    responses={400: {"description": "Missing or invalid X-Razorpay-Signature"}},
)
async def razorpay_webhook(request: Request, db: DbSession, settings: AppSettings) -> WebhookAck:
    payload = await request.body()
    verify_razorpay_signature(
        payload,
        request.headers.get("X-Razorpay-Signature"),
        settings.RAZORPAY_WEBHOOK_SECRET,
    )
    event = parse_event(payload, BillingProvider.RAZORPAY.value)

    outcome = await BillingService(db, settings).handle_razorpay_event(event)
    logger.info(
        "billing_webhook_received",
        provider="razorpay",
        event_type=outcome.event_type,
        handled=outcome.handled,
    )
    return _ack(outcome)
