"""Unit tests for tenant-scoped repositories."""

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from realtyflow.core.exceptions import PlanLimitExceededError, ResourceNotFoundError
from realtyflow.core.limits import ensure_within_limit
from realtyflow.db.models.crm import ContactType, LeadStatus
from realtyflow.db.repositories.crm import ContactRepository, LeadRepository, PropertyRepository


def property_values(**overrides):
    values = {
        "title": "2BHK Garden Flat",
        "address": "4 Park Street",
        "city": "Pune",
        "state": "MH",
        "property_type": "apartment",
        "listing_type": "rent",
        "price": Decimal("9000000"),
    }
    values.update(overrides)
    return values


@pytest.mark.asyncio
class TestTenantScopedRepository:
    """Tests for tenant isolation in the base repository."""

    async def test_create_ignores_foreign_tenant_id(self, db_session, factory):
        mine = await factory.tenant(name="Mine")
        theirs = await factory.tenant(name="Theirs")

        prop = await PropertyRepository(db_session, mine.tenant_id).create(
            property_values(tenant_id=theirs.tenant_id)
        )

        assert prop.tenant_id == mine.tenant_id

    async def test_records_invisible_to_other_tenants(self, db_session, factory):
        mine = await factory.tenant(name="Mine")
        theirs = await factory.tenant(name="Theirs")
        prop = await PropertyRepository(db_session, mine.tenant_id).create(property_values())
        foreign = PropertyRepository(db_session, theirs.tenant_id)

        assert await foreign.get(prop.property_id) is None
        assert await foreign.list() == []
        assert await foreign.count() == 0
        with pytest.raises(ResourceNotFoundError):
            await foreign.delete_by_pk(prop.property_id)

    async def test_update_cannot_move_tenant(self, db_session, factory):
        mine = await factory.tenant(name="Mine")
        theirs = await factory.tenant(name="Theirs")
        repo = PropertyRepository(db_session, mine.tenant_id)
        prop = await repo.create(property_values())

        prop = await repo.update(prop, {"tenant_id": theirs.tenant_id, "city": "Nashik"})

        assert prop.tenant_id == mine.tenant_id
        assert prop.city == "Nashik"

    async def test_enum_values_stored_by_value(self, db_session, factory):
        tenant = await factory.tenant()

        contact = await ContactRepository(db_session, tenant.tenant_id).create(
            {
                "first_name": "Meera",
                "last_name": "Shah",
                "phone": "9811111111",
                "contact_type": ContactType.BUYER,
            }
        )

        assert contact.contact_type == "buyer"

    async def test_list_filters(self, db_session, factory):
        tenant = await factory.tenant()
        leads = LeadRepository(db_session, tenant.tenant_id)
        await leads.create({"first_name": "A", "phone": "900"})
        await leads.create({"first_name": "B", "phone": "901", "status": LeadStatus.QUALIFIED})

        qualified = await leads.list(filters={"status": "qualified", "priority": None})

        assert [lead.first_name for lead in qualified] == ["B"]
        assert await leads.count_uncontacted() == 1

    async def test_unknown_filter_rejected(self, db_session, factory):
        tenant = await factory.tenant()

        with pytest.raises(ValueError):
            await LeadRepository(db_session, tenant.tenant_id).list(filters={"colour": "red"})

    async def test_property_search(self, db_session, factory):
        tenant = await factory.tenant()
        repo = PropertyRepository(db_session, tenant.tenant_id)
        await repo.create(property_values(title="Lake View Villa", city="Pune"))
        await repo.create(property_values(title="City Studio", city="Mumbai", status="sold"))

        assert [p.title for p in await repo.search(query="lake")] == ["Lake View Villa"]
        assert [p.title for p in await repo.search(city="mumbai")] == ["City Studio"]
        assert [p.title for p in await repo.search(status="available")] == ["Lake View Villa"]


@pytest.mark.asyncio
class TestPlanLimits:
    async def test_limit_reached(self, db_session, factory):
        tenant = await factory.tenant(property_limit=1)
        repo = PropertyRepository(db_session, tenant.tenant_id)

        await ensure_within_limit(tenant, "properties", repo)
        await repo.create(property_values())

        with pytest.raises(PlanLimitExceededError) as exc_info:
            await ensure_within_limit(tenant, "properties", repo)

        assert exc_info.value.limit == 1


@pytest.mark.asyncio
class TestUTCDateTime:
    async def test_values_come_back_in_utc(self, db_session, factory):
        ist = timezone(timedelta(hours=5, minutes=30))
        ends = datetime(2026, 6, 1, 10, 0, tzinfo=ist)
        tenant = await factory.tenant(trial_ends_at=ends)

        db_session.expire(tenant)
        await db_session.refresh(tenant)

        assert tenant.trial_ends_at.tzinfo == UTC
        assert tenant.trial_ends_at == ends
        assert tenant.trial_ends_at.hour == 4
        assert tenant.created_at.tzinfo == UTC
