"""Tenant-scoped repository base.

A repository is bound to one tenant when it is constructed and every
statement it builds filters on that tenant. Route handlers construct them
with the tenant the access chain resolved, so a record of another tenant is
indistinguishable from one that does not exist.
"""

from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from realtyflow.core.exceptions import ResourceNotFoundError
from realtyflow.db.models.base import TenantScopedMixin

T = TypeVar("T", bound=TenantScopedMixin)

MAX_PAGE_SIZE = 1000


class TenantScopedRepository(Generic[T]):
    """CRUD for one tenant-owned model.

    Subclasses set ``model`` and ``resource_name``; the latter is what a
    404 reports (``"Property not found: ..."``).
    """

    model: ClassVar[type]
    resource_name: ClassVar[str]

    def __init__(self, db: AsyncSession, tenant_id: UUID):
        self.db = db
        self.tenant_id = tenant_id

    @property
    def _pk(self):
        return inspect(self.model).primary_key[0]

    def _scoped(self) -> Select:
        return select(self.model).where(self.model.tenant_id == self.tenant_id)

    def _where(self, stmt: Select, filters: dict[str, Any] | None) -> Select:
        """Add equality filters, skipping None values."""
        for name, value in (filters or {}).items():
            if value is None:
                continue
            if not hasattr(self.model, name):
                raise ValueError(f"{self.model.__name__} has no column {name!r}")
            stmt = stmt.where(getattr(self.model, name) == _stored(value))
        return stmt

    async def get(self, pk: UUID) -> T | None:
        return await self.db.scalar(self._scoped().where(self._pk == pk))

    async def get_or_raise(self, pk: UUID) -> T:
        record = await self.get(pk)
        if record is None:
            raise ResourceNotFoundError(self.resource_name, pk)
        return record

    async def list(
        self,
        *,
        limit: int = 100,
        offset: int = 0,
        order_by: str = "created_at",
        descending: bool = False,
        filters: dict[str, Any] | None = None,
    ) -> "list[T]":
        """One page of this tenant's records.

        The primary key is always the final sort key, so pages are stable
        when many rows share a timestamp.
        """
        column = getattr(self.model, order_by)
        stmt = (
            self._where(self._scoped(), filters)
            .order_by(column.desc() if descending else column.asc(), self._pk)
            .limit(min(limit, MAX_PAGE_SIZE))
            .offset(offset)
        )
        return list((await self.db.scalars(stmt)).all())

    async def count(self, filters: dict[str, Any] | None = None) -> int:
        stmt = select(func.count()).select_from(self.model)
        stmt = self._where(stmt.where(self.model.tenant_id == self.tenant_id), filters)
        return await self.db.scalar(stmt) or 0

    async def create(self, values: dict[str, Any]) -> T:
        """Insert a record owned by this repository's tenant.

        A ``tenant_id`` key in ``values`` is dropped rather than trusted.
        """
        values = {k: _stored(v) for k, v in values.items() if k != "tenant_id"}
        record = self.model(tenant_id=self.tenant_id, **values)
        self.db.add(record)
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def update(self, record: T, changes: dict[str, Any]) -> T:
        for name, value in changes.items():
            if name != "tenant_id" and hasattr(record, name):
                setattr(record, name, _stored(value))
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def delete(self, record: T) -> None:
        await self.db.delete(record)
        await self.db.flush()

    async def delete_by_pk(self, pk: UUID) -> None:
        await self.delete(await self.get_or_raise(pk))


def _stored(value: Any) -> Any:
    # Enum-valued fields live in plain string columns
    return value.value if isinstance(value, Enum) else value
