"""Integration tests for the access chain: resolver, role gate, subscription gate."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from realtyflow.core.roles import Role
from realtyflow.core.security import issue_token
from realtyflow.db.models.tenant import TenantStatus

PROPERTY = {
    "title": "3BHK Sea View",
    "address": "12 Marine Drive",
    "city": "Mumbai",
    "state": "MH",
    "property_type": "apartment",
    "listing_type": "sale",
    "price": "25000000.00",
}


@pytest.fixture
async def two_tenant_user(factory):
    """User U with memberships {T1: AGENT, T2: OWNER}."""
    user = await factory.user()
    t1 = await factory.tenant(name="One", subdomain="one")
    t2 = await factory.tenant(name="Two", subdomain="two")
    await factory.membership(user, t1, Role.AGENT)
    await factory.membership(user, t2, Role.OWNER)
    return user, t1, t2


@pytest.mark.asyncio
class TestRoleGateScenarios:
    """The role in the resolved tenant decides, never the role elsewhere."""

    async def test_owner_in_header_tenant_allowed(
        self, test_client: AsyncClient, factory, two_tenant_user
    ):
        user, t1, t2 = two_tenant_user

        response = await test_client.patch(
            "/v1/tenant",
            json={"name": "Two Renamed"},
            headers=factory.headers(user, [t1, t2], tenant=t2),
        )

        assert response.status_code == 200
        assert response.json()["tenant_id"] == str(t2.tenant_id)
        assert response.json()["name"] == "Two Renamed"

    async def test_agent_in_header_tenant_denied(
        self, test_client: AsyncClient, factory, two_tenant_user
    ):
        user, t1, t2 = two_tenant_user

        response = await test_client.patch(
            "/v1/tenant",
            json={"name": "One Renamed"},
            headers=factory.headers(user, [t1, t2], tenant=t1),
        )

        assert response.status_code == 403
        body = response.json()
        assert body["error_code"] == "insufficient_role"
        assert body["details"]["role"] == "AGENT"
        assert body["details"]["allowed"] == ["OWNER", "ADMIN"]

    async def test_owner_only_delete(self, test_client: AsyncClient, factory, two_tenant_user):
        user, t1, t2 = two_tenant_user
        created = await test_client.post(
            "/v1/properties", json=PROPERTY, headers=factory.headers(user, [t1, t2], tenant=t1)
        )
        property_id = created.json()["property_id"]

        response = await test_client.delete(
            f"/v1/properties/{property_id}", headers=factory.headers(user, [t1, t2], tenant=t1)
        )

        assert created.status_code == 201
        assert response.status_code == 403
        assert response.json()["error_code"] == "insufficient_role"

    async def test_account_role_reads_but_cannot_write(self, test_client: AsyncClient, factory):
        tenant = await factory.tenant()
        accountant = await factory.member(tenant, Role.ACCOUNT)
        headers = factory.headers(accountant, [tenant])

        read = await test_client.get("/v1/properties", headers=headers)
        write = await test_client.post("/v1/properties", json=PROPERTY, headers=headers)
        team = await test_client.get("/v1/team", headers=headers)

        assert read.status_code == 200
        assert write.status_code == 403
        assert team.status_code == 403

    async def test_no_membership(self, test_client: AsyncClient, factory):
        """Test a token listing a tenant the user has left is refused."""
        tenant = await factory.tenant()
        user = await factory.user()
        await factory.membership(user, tenant, Role.AGENT, is_active=False)

        response = await test_client.get(
            "/v1/properties", headers=factory.headers(user, [tenant])
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "membership_not_found"

    async def test_role_change_applies_to_outstanding_token(
        self, test_client: AsyncClient, factory, db_session
    ):
        tenant = await factory.tenant()
        user = await factory.user()
        membership = await factory.membership(user, tenant, Role.ADMIN)
        headers = factory.headers(user, [tenant])
        assert (await test_client.get("/v1/team", headers=headers)).status_code == 200

        membership.role = Role.ACCOUNT.value
        await db_session.commit()

        response = await test_client.get("/v1/team", headers=headers)
        assert response.status_code == 403


@pytest.mark.asyncio
class TestTenantResolution:
    """Header, token, host and fallback candidates."""

    async def test_header_outside_token_rejected(
        self, test_client: AsyncClient, factory, two_tenant_user
    ):
        """Test a header tenant missing from the token is never redirected."""
        user, t1, t2 = two_tenant_user

        response = await test_client.get(
            "/v1/me",
            headers={**factory.headers(user, [t1]), "X-Tenant-Id": str(t2.tenant_id)},
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "tenant_access_denied"
        assert response.json()["details"]["source"] == "header"

    async def test_malformed_header_rejected(
        self, test_client: AsyncClient, factory, two_tenant_user
    ):
        user, t1, t2 = two_tenant_user

        response = await test_client.get(
            "/v1/properties",
            headers={**factory.headers(user, [t1, t2]), "X-Tenant-Id": "two"},
        )

        assert response.status_code == 403

    async def test_host_subdomain_resolves(
        self, test_client: AsyncClient, factory, two_tenant_user
    ):
        user, t1, t2 = two_tenant_user

        response = await test_client.get(
            "/v1/me",
            headers={**factory.headers(user, [t1, t2]), "Host": "two.realtyflow.in"},
        )

        assert response.status_code == 200
        assert response.json()["current_tenant_id"] == str(t2.tenant_id)
        assert response.json()["role"] == "OWNER"

    async def test_foreign_host_rejected(self, test_client: AsyncClient, factory):
        user = await factory.user()
        mine = await factory.tenant(name="Mine")
        await factory.tenant(name="Theirs", subdomain="theirs")
        await factory.membership(user, mine, Role.OWNER)

        response = await test_client.get(
            "/v1/me",
            headers={**factory.headers(user, [mine]), "Host": "theirs.realtyflow.in"},
        )

        assert response.status_code == 403
        assert response.json()["details"]["source"] == "host"

    @pytest.mark.parametrize("host", ["www.realtyflow.in", "two.in", "two", "127.0.0.1:8000"])
    async def test_reserved_and_short_hosts_not_resolved(
        self, test_client: AsyncClient, factory, two_tenant_user, host
    ):
        user, t1, t2 = two_tenant_user

        response = await test_client.get(
            "/v1/me", headers={**factory.headers(user, [t1, t2]), "Host": host}
        )

        assert response.json()["current_tenant_id"] == str(t1.tenant_id)

    async def test_token_current_tenant_preferred(
        self, test_client: AsyncClient, factory, two_tenant_user
    ):
        user, t1, t2 = two_tenant_user

        response = await test_client.get(
            "/v1/me",
            headers={
                **factory.headers(user, [t1, t2], current=t2),
                "Host": "one.realtyflow.in",
            },
        )

        assert response.json()["current_tenant_id"] == str(t2.tenant_id)

    async def test_header_alias_accepted(
        self, test_client: AsyncClient, factory, two_tenant_user
    ):
        user, t1, t2 = two_tenant_user

        response = await test_client.get(
            "/v1/me", headers={**factory.headers(user, [t1, t2]), "X-TenantId": str(t2.tenant_id)}
        )

        assert response.json()["current_tenant_id"] == str(t2.tenant_id)

    async def test_resolved_tenant_remembered(
        self, test_client: AsyncClient, factory, two_tenant_user, db_session
    ):
        user, t1, t2 = two_tenant_user

        await test_client.get("/v1/me", headers=factory.headers(user, [t1, t2], tenant=t2))

        await db_session.refresh(user)
        assert user.current_tenant_id == t2.tenant_id

    async def test_crm_route_without_tenant(self, test_client: AsyncClient, factory):
        user = await factory.user()

        response = await test_client.get("/v1/properties", headers=factory.headers(user, []))

        assert response.status_code == 403
        assert response.json()["error_code"] == "tenant_required"

    async def test_deleted_tenant_not_found(self, test_client: AsyncClient, factory):
        user = await factory.user()
        token, _ = issue_token(user.user_id, [uuid4()], factory.settings)
        headers = {"Authorization": f"Bearer {token}"}

        response = await test_client.get("/v1/properties", headers=headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "tenant_not_found"


@pytest.mark.asyncio
class TestSubscriptionScenarios:
    """Billing state blocks mutations regardless of role."""

    async def test_expired_owner_cannot_update_tenant(self, test_client: AsyncClient, factory):
        """Test role passes first, then the subscription gate denies."""
        owner = await factory.user()
        t3 = await factory.tenant(name="Three", status=TenantStatus.EXPIRED)
        await factory.membership(owner, t3, Role.OWNER)
        headers = factory.headers(owner, [t3])

        response = await test_client.patch("/v1/tenant", json={"name": "X"}, headers=headers)

        assert response.status_code == 402
        assert response.json()["error_code"] == "subscription_inactive"
        assert response.json()["details"]["status"] == "expired"

    async def test_expired_agent_hits_role_gate_first(self, test_client: AsyncClient, factory):
        t3 = await factory.tenant(name="Three", status=TenantStatus.EXPIRED)
        agent = await factory.member(t3, Role.AGENT)

        response = await test_client.patch(
            "/v1/tenant", json={"name": "X"}, headers=factory.headers(agent, [t3])
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "insufficient_role"

    async def test_expired_tenant_crm_blocked(self, test_client: AsyncClient, factory):
        t3 = await factory.tenant(name="Three", status=TenantStatus.EXPIRED)
        owner = await factory.member(t3, Role.OWNER)
        headers = factory.headers(owner, [t3])

        write = await test_client.post("/v1/properties", json=PROPERTY, headers=headers)
        read = await test_client.get("/v1/properties", headers=headers)

        assert write.status_code == 402
        assert write.json()["error_code"] == "tenant_expired"
        assert read.status_code == 402

    async def test_suspended_tenant_crm_forbidden(self, test_client: AsyncClient, factory):
        tenant = await factory.tenant(status=TenantStatus.SUSPENDED)
        owner = await factory.member(tenant, Role.OWNER)

        response = await test_client.get(
            "/v1/contacts", headers=factory.headers(owner, [tenant])
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "tenant_suspended"

    async def test_lapsed_tenant_still_readable_and_payable(
        self, test_client: AsyncClient, factory
    ):
        tenant = await factory.tenant(status=TenantStatus.EXPIRED)
        owner = await factory.member(tenant, Role.OWNER)
        headers = factory.headers(owner, [tenant])

        profile = await test_client.get("/v1/tenant", headers=headers)
        checkout = await test_client.post(
            "/v1/billing/checkout-intent", json={"plan_name": "pro"}, headers=headers
        )

        assert profile.status_code == 200
        assert profile.json()["status"] == "expired"
        assert checkout.status_code == 200

    async def test_suspension_applies_to_next_request(
        self, test_client: AsyncClient, factory, db_session
    ):
        tenant = await factory.tenant(status=TenantStatus.ACTIVE)
        owner = await factory.member(tenant, Role.OWNER)
        headers = factory.headers(owner, [tenant])
        assert (
            await test_client.post("/v1/properties", json=PROPERTY, headers=headers)
        ).status_code == 201

        tenant.status = TenantStatus.SUSPENDED.value
        await db_session.commit()

        response = await test_client.post("/v1/properties", json=PROPERTY, headers=headers)
        assert response.status_code == 403


@pytest.mark.asyncio
class TestOnboarding:
    """A user with no memberships passes the subscription gate to create a tenant."""

    async def test_zero_membership_round_trip(self, test_client: AsyncClient, factory):
        user = await factory.user()

        created = await test_client.post(
            "/v1/tenants",
            json={"name": "Fresh Homes", "subdomain": "fresh"},
            headers=factory.headers(user, []),
        )

        assert created.status_code == 201
        data = created.json()
        assert len(data["tenant_ids"]) == 1
        headers = {"Authorization": f"Bearer {data['access_token']}"}

        tenant = await test_client.get("/v1/tenant", headers=headers)
        prop = await test_client.post("/v1/properties", json=PROPERTY, headers=headers)
        me = await test_client.get("/v1/me", headers=headers)

        assert tenant.json()["name"] == "Fresh Homes"
        assert tenant.json()["status"] == "trial"
        assert prop.status_code == 201
        assert me.json()["role"] == "OWNER"

    async def test_lapsed_user_cannot_open_new_tenant(self, test_client: AsyncClient, factory):
        tenant = await factory.tenant(status=TenantStatus.EXPIRED)
        owner = await factory.member(tenant, Role.OWNER)

        response = await test_client.post(
            "/v1/tenants", json={"name": "Escape Hatch"}, headers=factory.headers(owner, [tenant])
        )

        assert response.status_code == 402
        assert response.json()["error_code"] == "subscription_inactive"

    async def test_active_user_can_open_second_tenant(self, test_client: AsyncClient, factory):
        tenant = await factory.tenant(status=TenantStatus.ACTIVE)
        owner = await factory.member(tenant, Role.AGENT)

        response = await test_client.post(
            "/v1/tenants", json={"name": "Second Office"}, headers=factory.headers(owner, [tenant])
        )

        assert response.status_code == 201
        assert len(response.json()["tenant_ids"]) == 2
