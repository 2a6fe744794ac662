"""Integration tests for checkout intents and provider webhooks."""

import hashlib
import hmac
import json
import time

import pytest
from httpx import AsyncClient

from realtyflow.core.roles import Role
from realtyflow.db.models.tenant import TenantStatus

STRIPE_SECRET = "whsec_test"
RAZORPAY_SECRET = "rzp_test_secret"


def stripe_signed(event: dict, secret: str = STRIPE_SECRET) -> tuple[bytes, dict[str, str]]:
    body = json.dumps(event).encode()
    timestamp = int(time.time())
    digest = hmac.new(secret.encode(), f"{timestamp}.".encode() + body, hashlib.sha256).hexdigest()
    return body, {"Stripe-Signature": f"t={timestamp},v1={digest}", "Content-Type": "application/json"}


def razorpay_signed(event: dict, secret: str = RAZORPAY_SECRET) -> tuple[bytes, dict[str, str]]:
    body = json.dumps(event).encode()
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return body, {"X-Razorpay-Signature": digest, "Content-Type": "application/json"}


@pytest.mark.asyncio
class TestCheckoutIntent:
    @pytest.mark.parametrize("role", [Role.OWNER, Role.ADMIN, Role.ACCOUNT])
    async def test_finance_roles_allowed(self, test_client: AsyncClient, factory, role):
        tenant = await factory.tenant()
        member = await factory.member(tenant, role)

        response = await test_client.post(
            "/v1/billing/checkout-intent",
            json={"plan_name": "pro", "provider": "razorpay"},
            headers=factory.headers(member, [tenant]),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["provider"] == "razorpay"
        assert data["metadata"] == {"tenant_id": str(tenant.tenant_id), "plan_name": "pro"}

    @pytest.mark.parametrize("role", [Role.LISTING_MANAGER, Role.AGENT])
    async def test_other_roles_denied(self, test_client: AsyncClient, factory, role):
        tenant = await factory.tenant()
        member = await factory.member(tenant, role)

        response = await test_client.post(
            "/v1/billing/checkout-intent",
            json={"plan_name": "pro"},
            headers=factory.headers(member, [tenant]),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "insufficient_role"

    async def test_suspended_owner_can_pay(self, test_client: AsyncClient, factory):
        tenant = await factory.tenant(status=TenantStatus.SUSPENDED)
        owner = await factory.member(tenant, Role.OWNER)

        response = await test_client.post(
            "/v1/billing/checkout-intent",
            json={"plan_name": "pro"},
            headers=factory.headers(owner, [tenant]),
        )

        assert response.status_code == 200


@pytest.mark.asyncio
class TestStripeWebhook:
    async def test_checkout_completed_activates_tenant(
        self, test_client: AsyncClient, factory, db_session
    ):
        tenant = await factory.tenant(status=TenantStatus.EXPIRED)
        body, headers = stripe_signed(
            {
                "type": "checkout.session.completed",
                "data": {
                    "object": {
                        "subscription": "sub_123",
                        "metadata": {"tenant_id": str(tenant.tenant_id), "plan_name": "pro"},
                    }
                },
            }
        )

        response = await test_client.post(
            "/v1/billing/webhooks/stripe", content=body, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["handled"] is True
        assert response.json()["status"] == "active"
        await db_session.refresh(tenant)
        assert tenant.status == "active"
        assert tenant.subscription_id == "sub_123"
        assert tenant.plan_name == "pro"

    async def test_payment_failed_suspends_by_subscription(
        self, test_client: AsyncClient, factory, db_session
    ):
        tenant = await factory.tenant(status=TenantStatus.ACTIVE)
        tenant.subscription_id = "sub_456"
        await db_session.commit()
        body, headers = stripe_signed(
            {"type": "invoice.payment_failed", "data": {"object": {"subscription": "sub_456"}}}
        )

        response = await test_client.post(
            "/v1/billing/webhooks/stripe", content=body, headers=headers
        )

        assert response.json()["tenant_id"] == str(tenant.tenant_id)
        await db_session.refresh(tenant)
        assert tenant.status == "suspended"

    async def test_bad_signature_rejected(self, test_client: AsyncClient, factory, db_session):
        tenant = await factory.tenant(status=TenantStatus.EXPIRED)
        body, headers = stripe_signed(
            {
                "type": "checkout.session.completed",
                "data": {"object": {"metadata": {"tenant_id": str(tenant.tenant_id)}}},
            },
            secret="whsec_forged",
        )

        response = await test_client.post(
            "/v1/billing/webhooks/stripe", content=body, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "webhook_signature_invalid"
        await db_session.refresh(tenant)
        assert tenant.status == "expired"

    async def test_missing_signature(self, test_client: AsyncClient, test_engine):
        response = await test_client.post("/v1/billing/webhooks/stripe", content=b"{}")

        assert response.status_code == 400

    async def test_unknown_event_acknowledged(self, test_client: AsyncClient, test_engine):
        body, headers = stripe_signed({"type": "customer.created", "data": {"object": {}}})

        response = await test_client.post(
            "/v1/billing/webhooks/stripe", content=body, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["handled"] is False
        assert response.json()["event_type"] == "customer.created"

    async def test_non_object_data_acknowledged(self, test_client: AsyncClient, test_engine):
        body, headers = stripe_signed({"type": "checkout.session.completed", "data": "evt_1"})

        response = await test_client.post(
            "/v1/billing/webhooks/stripe", content=body, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["handled"] is False


@pytest.mark.asyncio
class TestRazorpayWebhook:
    async def test_charged_activates_tenant(self, test_client: AsyncClient, factory, db_session):
        tenant = await factory.tenant(status=TenantStatus.SUSPENDED)
        body, headers = razorpay_signed(
            {
                "event": "subscription.charged",
                "payload": {
                    "subscription": {
                        "entity": {
                            "id": "sub_rzp_1",
                            "notes": {"tenant_id": str(tenant.tenant_id)},
                        }
                    }
                },
            }
        )

        response = await test_client.post(
            "/v1/billing/webhooks/razorpay", content=body, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["handled"] is True
        await db_session.refresh(tenant)
        assert tenant.status == "active"
        assert tenant.subscription_id == "sub_rzp_1"

    async def test_tampered_body_rejected(self, test_client: AsyncClient, test_engine):
        body, headers = razorpay_signed({"event": "subscription.charged"})

        response = await test_client.post(
            "/v1/billing/webhooks/razorpay",
            content=body.replace(b"charged", b"halted!"),
            headers=headers,
        )

        assert response.status_code == 400

    async def test_unknown_tenant_acknowledged(self, test_client: AsyncClient, test_engine):
        body, headers = razorpay_signed(
            {
                "event": "subscription.halted",
                "payload": {"subscription": {"entity": {"id": "sub_nobody"}}},
            }
        )

        response = await test_client.post(
            "/v1/billing/webhooks/razorpay", content=body, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["handled"] is False
