"""Pydantic schemas for billing."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class BillingProvider(str, Enum):
    STRIPE = "stripe"
    RAZORPAY = "razorpay"


class CheckoutIntentRequest(BaseModel):
    plan_name: str = Field(..., min_length=1, max_length=50)
    provider: BillingProvider = BillingProvider.STRIPE


class CheckoutIntentResponse(BaseModel):
    """Metadata the payment page attaches to the provider's checkout session.

    ``metadata.tenant_id`` comes back on the provider's webhook and is how the
    payment is matched to a tenant.
    """

    tenant_id: UUID
    plan_name: str
    provider: BillingProvider
    metadata: dict[str, str]


class WebhookAck(BaseModel):
    received: bool = True
    event_type: str
    handled: bool
    tenant_id: UUID | None = None
    status: str | None = None
