"""User and tenant membership models."""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid_utils.compat import uuid7

from .base import Base, PortableUUID, TimestampMixin
from .tenant import Tenant


class User(TimestampMixin, Base):
    """A person who can log in.

    Users are never hard-deleted; deactivation clears ``is_active``.
    """

    __tablename__ = "users"

    user_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    is_platform_admin: Mapped[bool] = mapped_column(default=False, nullable=False)

    # Last tenant the user resolved to; only a preference, never an authorization
    current_tenant_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(),
        ForeignKey("tenants.tenant_id", ondelete="SET NULL"),
        nullable=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User(id={self.user_id}, email={self.email})>"


class UserTenant(TimestampMixin, Base):
    """Membership of a user in a tenant, carrying the user's role there."""

    __tablename__ = "user_tenants"

    membership_id: Mapped[UUID] = mapped_column(
        PortableUUID(), primary_key=True, default=uuid7
    )
    user_id: Mapped[UUID] = mapped_column(
        PortableUUID(),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    tenant_id: Mapped[UUID] = mapped_column(
        PortableUUID(),
        ForeignKey("tenants.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(30), nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    user: Mapped[User] = relationship(lazy="joined")
    tenant: Mapped[Tenant] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_user_tenant"),
        Index("idx_user_tenant_tenant", "tenant_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserTenant(user={self.user_id}, tenant={self.tenant_id}, "
            f"role={self.role}, active={self.is_active})>"
        )
