"""Repositories for CRM records."""

from datetime import date
from uuid import UUID

from sqlalchemy import func, or_, select

from realtyflow.core.exceptions import ResourceNotFoundError
from realtyflow.db.models.crm import (
    Contact,
    Deal,
    Lead,
    LeadStatus,
    Pipeline,
    Property,
    Stage,
)

from .base import TenantScopedRepository


class PropertyRepository(TenantScopedRepository[Property]):
    model = Property
    resource_name = "Property"

    async def search(
        self,
        *,
        status: str | None = None,
        city: str | None = None,
        query: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Property]:
        """Filter this tenant's properties by status, city and free text."""
        stmt = self._scoped()
        if status:
            stmt = stmt.where(Property.status == status)
        if city:
            stmt = stmt.where(func.lower(Property.city) == city.lower())
        if query:
            pattern = f"%{query.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Property.title).like(pattern),
                    func.lower(Property.address).like(pattern),
                )
            )
        stmt = stmt.order_by(Property.created_at.desc(), Property.property_id)
        stmt = stmt.limit(min(limit, 1000)).offset(offset)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class ContactRepository(TenantScopedRepository[Contact]):
    model = Contact
    resource_name = "Contact"

    async def search(
        self,
        *,
        contact_type: str | None = None,
        query: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Contact]:
        stmt = self._scoped()
        if contact_type:
            stmt = stmt.where(Contact.contact_type == contact_type)
        if query:
            pattern = f"%{query.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Contact.first_name).like(pattern),
                    func.lower(Contact.last_name).like(pattern),
                    func.lower(Contact.email).like(pattern),
                    Contact.phone.like(pattern),
                )
            )
        stmt = stmt.order_by(Contact.created_at.desc(), Contact.contact_id)
        stmt = stmt.limit(min(limit, 1000)).offset(offset)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class LeadRepository(TenantScopedRepository[Lead]):
    model = Lead
    resource_name = "Lead"

    async def count_uncontacted(self) -> int:
        """Leads still in the ``new`` status."""
        return await self.count({"status": LeadStatus.NEW.value})


class PipelineRepository(TenantScopedRepository[Pipeline]):
    model = Pipeline
    resource_name = "Pipeline"


class StageRepository(TenantScopedRepository[Stage]):
    model = Stage
    resource_name = "Stage"

    async def for_pipeline(self, pipeline_id: UUID) -> list[Stage]:
        """Active stages of a pipeline ordered by position."""
        stmt = (
            self._scoped()
            .where(Stage.pipeline_id == pipeline_id, Stage.is_active.is_(True))
            .order_by(Stage.position, Stage.stage_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def next_position(self, pipeline_id: UUID) -> int:
        stmt = select(func.max(Stage.position)).where(
            Stage.tenant_id == self.tenant_id, Stage.pipeline_id == pipeline_id
        )
        result = await self.db.execute(stmt)
        current = result.scalar()
        return 0 if current is None else current + 1

    async def get_in_pipeline(self, stage_id: UUID, pipeline_id: UUID) -> Stage:
        """Get a stage and check it belongs to the given pipeline.

        Raises:
            ResourceNotFoundError: If the stage is missing or in another pipeline
        """
        stage = await self.get_or_raise(stage_id)
        if stage.pipeline_id != pipeline_id:
            raise ResourceNotFoundError(self.resource_name, stage_id)
        return stage


class DealRepository(TenantScopedRepository[Deal]):
    model = Deal
    resource_name = "Deal"

    async def for_board(self, pipeline_id: UUID | None = None) -> list[Deal]:
        """Deals ordered for a kanban board: by stage, then position."""
        stmt = self._scoped()
        if pipeline_id is not None:
            stmt = stmt.where(Deal.pipeline_id == pipeline_id)
        stmt = stmt.order_by(Deal.stage_id, Deal.position, Deal.created_at)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def closing_between(self, start: date, end: date) -> int:
        """Number of deals expected to close in [start, end]."""
        stmt = select(func.count(Deal.deal_id)).where(
            Deal.tenant_id == self.tenant_id,
            Deal.expected_close_date.is_not(None),
            Deal.expected_close_date >= start,
            Deal.expected_close_date <= end,
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def total_value_in_stages(self, stage_ids: set[UUID]) -> float:
        if not stage_ids:
            return 0.0
        stmt = select(func.coalesce(func.sum(Deal.value), 0)).where(
            Deal.tenant_id == self.tenant_id, Deal.stage_id.in_(stage_ids)
        )
        result = await self.db.execute(stmt)
        return float(result.scalar() or 0)
