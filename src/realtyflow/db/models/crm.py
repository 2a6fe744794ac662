"""CRM records: properties, contacts, leads, pipelines, stages and deals.

Every model here is tenant-scoped via TenantScopedMixin.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from uuid_utils.compat import uuid7

from .base import (
    Base,
    PortableJSON,
    PortableUUID,
    TenantScopedMixin,
    TimestampMixin,
    UTCDateTime,
)


class PropertyType(str, Enum):
    APARTMENT = "apartment"
    VILLA = "villa"
    PENTHOUSE = "penthouse"
    STUDIO = "studio"
    OFFICE = "office"
    COMMERCIAL = "commercial"


class ListingType(str, Enum):
    SALE = "sale"
    RENT = "rent"
    BOTH = "both"


class PropertyStatus(str, Enum):
    AVAILABLE = "available"
    HOLD = "hold"
    SOLD = "sold"
    RENTED = "rented"


class ContactType(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    TENANT = "tenant"
    LANDLORD = "landlord"
    INVESTOR = "investor"


class LeadSource(str, Enum):
    WEBSITE = "website"
    REFERRAL = "referral"
    ADVERTISEMENT = "advertisement"
    COLD_CALL = "cold_call"
    SOCIAL_MEDIA = "social_media"


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    UNQUALIFIED = "unqualified"
    CONVERTED = "converted"


class LeadPriority(str, Enum):
    HOT = "hot"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _user_fk() -> ForeignKey:
    return ForeignKey("users.user_id", ondelete="SET NULL")


class Property(TenantScopedMixin, TimestampMixin, Base):
    """A listing managed by the brokerage."""

    __tablename__ = "properties"

    property_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    pincode: Mapped[str | None] = mapped_column(String(20), nullable=True)

    property_type: Mapped[str] = mapped_column(String(30), nullable=False)
    listing_type: Mapped[str] = mapped_column(String(10), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    rent_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    area: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parking: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rera_id: Mapped[str | None] = mapped_column(String(50), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PropertyStatus.AVAILABLE.value
    )
    amenities: Mapped[list] = mapped_column(PortableJSON(), nullable=False, default=list)
    images: Mapped[list] = mapped_column(PortableJSON(), nullable=False, default=list)

    created_by: Mapped[UUID | None] = mapped_column(PortableUUID(), _user_fk(), nullable=True)

    __table_args__ = (Index("idx_property_tenant_status", "tenant_id", "status"),)


class Contact(TenantScopedMixin, TimestampMixin, Base):
    """A buyer, seller, tenant, landlord or investor."""

    __tablename__ = "contacts"

    contact_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    alternate_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contact_type: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[str | None] = mapped_column(String(30), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    assigned_to: Mapped[UUID | None] = mapped_column(PortableUUID(), _user_fk(), nullable=True)


class Lead(TenantScopedMixin, TimestampMixin, Base):
    """An inbound enquiry that has not yet become a contact or deal."""

    __tablename__ = "leads"

    lead_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    source: Mapped[str | None] = mapped_column(String(30), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=LeadStatus.NEW.value)
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default=LeadPriority.MEDIUM.value
    )
    budget: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    next_follow_up_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )

    assigned_to: Mapped[UUID | None] = mapped_column(PortableUUID(), _user_fk(), nullable=True)

    __table_args__ = (Index("idx_lead_tenant_status", "tenant_id", "status"),)


class Pipeline(TenantScopedMixin, TimestampMixin, Base):
    """A named sequence of deal stages (e.g. Sales, Rentals)."""

    __tablename__ = "pipelines"

    pipeline_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)


class Stage(TenantScopedMixin, TimestampMixin, Base):
    """One column of a pipeline's kanban board."""

    __tablename__ = "stages"

    stage_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    pipeline_id: Mapped[UUID] = mapped_column(
        PortableUUID(),
        ForeignKey("pipelines.pipeline_id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6b7280")
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    __table_args__ = (Index("idx_stage_pipeline_position", "pipeline_id", "position"),)


class Deal(TenantScopedMixin, TimestampMixin, Base):
    """An opportunity moving through a pipeline."""

    __tablename__ = "deals"

    deal_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid7)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    pipeline_id: Mapped[UUID] = mapped_column(
        PortableUUID(),
        ForeignKey("pipelines.pipeline_id", ondelete="CASCADE"),
        nullable=False,
    )
    stage_id: Mapped[UUID] = mapped_column(
        PortableUUID(),
        ForeignKey("stages.stage_id", ondelete="RESTRICT"),
        nullable=False,
    )
    property_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(),
        ForeignKey("properties.property_id", ondelete="SET NULL"),
        nullable=True,
    )
    contact_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(),
        ForeignKey("contacts.contact_id", ondelete="SET NULL"),
        nullable=True,
    )
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    probability: Mapped[int | None] = mapped_column(Integer, nullable=True)
    expected_close_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    assigned_to: Mapped[UUID | None] = mapped_column(PortableUUID(), _user_fk(), nullable=True)

    __table_args__ = (
        Index("idx_deal_tenant_stage", "tenant_id", "stage_id"),
        Index("idx_deal_expected_close", "tenant_id", "expected_close_date"),
    )
