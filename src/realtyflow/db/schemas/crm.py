"""Pydantic schemas for CRM records.

Create schemas never accept ``tenant_id``: ownership always comes from the
tenant the request resolved to.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from realtyflow.db.models.crm import (
    ContactType,
    LeadPriority,
    LeadSource,
    LeadStatus,
    ListingType,
    PropertyStatus,
    PropertyType,
)

_ORM = {"from_attributes": True}


class PartialUpdate(BaseModel):
    """PATCH body: omitted fields are left untouched.

    Fields listed in ``required`` back NOT NULL columns, so they may be
    omitted but never sent as an explicit null.
    """

    required: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_required_nulls(self):
        nulls = sorted(
            name for name in self.model_fields_set & self.required if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"Cannot be null: {', '.join(nulls)}")
        return self


# =============================================================================
# Properties
# =============================================================================


class PropertyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    pincode: str | None = Field(None, max_length=20)
    property_type: PropertyType
    listing_type: ListingType
    price: Decimal = Field(..., ge=0)
    rent_price: Decimal | None = Field(None, ge=0)
    area: int | None = Field(None, ge=0, description="Carpet area in square feet")
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: int | None = Field(None, ge=0)
    parking: int | None = Field(None, ge=0)
    rera_id: str | None = Field(None, max_length=50)
    status: PropertyStatus = PropertyStatus.AVAILABLE
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)


class PropertyUpdate(PartialUpdate):
    required = frozenset(
        {
            "title",
            "address",
            "city",
            "state",
            "property_type",
            "listing_type",
            "price",
            "status",
            "amenities",
            "images",
        }
    )

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    address: str | None = Field(None, min_length=1, max_length=500)
    city: str | None = Field(None, min_length=1, max_length=100)
    state: str | None = Field(None, min_length=1, max_length=100)
    pincode: str | None = Field(None, max_length=20)
    property_type: PropertyType | None = None
    listing_type: ListingType | None = None
    price: Decimal | None = Field(None, ge=0)
    rent_price: Decimal | None = Field(None, ge=0)
    area: int | None = Field(None, ge=0)
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: int | None = Field(None, ge=0)
    parking: int | None = Field(None, ge=0)
    rera_id: str | None = Field(None, max_length=50)
    status: PropertyStatus | None = None
    amenities: list[str] | None = None
    images: list[str] | None = None


class PropertyResponse(BaseModel):
    property_id: UUID
    tenant_id: UUID
    title: str
    description: str | None
    address: str
    city: str
    state: str
    pincode: str | None
    property_type: PropertyType
    listing_type: ListingType
    price: Decimal
    rent_price: Decimal | None
    area: int | None
    bedrooms: int | None
    bathrooms: int | None
    parking: int | None
    rera_id: str | None
    status: PropertyStatus
    amenities: list[str]
    images: list[str]
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = _ORM


# =============================================================================
# Contacts
# =============================================================================


class ContactCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str = Field(..., min_length=3, max_length=30)
    alternate_phone: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    contact_type: ContactType
    source: LeadSource | None = None
    notes: str | None = None
    assigned_to: UUID | None = None


class ContactUpdate(PartialUpdate):
    required = frozenset({"first_name", "last_name", "phone", "contact_type"})

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, min_length=3, max_length=30)
    alternate_phone: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    contact_type: ContactType | None = None
    source: LeadSource | None = None
    notes: str | None = None
    assigned_to: UUID | None = None


class ContactResponse(BaseModel):
    contact_id: UUID
    tenant_id: UUID
    first_name: str
    last_name: str
    email: str | None
    phone: str
    alternate_phone: str | None
    address: str | None
    city: str | None
    contact_type: ContactType
    source: LeadSource | None
    notes: str | None
    assigned_to: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = _ORM


# =============================================================================
# Leads
# =============================================================================


class LeadCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: EmailStr | None = None
    phone: str = Field(..., min_length=3, max_length=30)
    source: LeadSource | None = None
    status: LeadStatus = LeadStatus.NEW
    priority: LeadPriority = LeadPriority.MEDIUM
    budget: Decimal | None = Field(None, ge=0)
    requirements: str | None = None
    next_follow_up_at: datetime | None = None
    assigned_to: UUID | None = None


class LeadUpdate(PartialUpdate):
    required = frozenset({"first_name", "last_name", "phone", "status", "priority"})

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, min_length=3, max_length=30)
    source: LeadSource | None = None
    status: LeadStatus | None = None
    priority: LeadPriority | None = None
    budget: Decimal | None = Field(None, ge=0)
    requirements: str | None = None
    next_follow_up_at: datetime | None = None
    assigned_to: UUID | None = None


class LeadResponse(BaseModel):
    lead_id: UUID
    tenant_id: UUID
    first_name: str
    last_name: str
    email: str | None
    phone: str
    source: LeadSource | None
    status: LeadStatus
    priority: LeadPriority
    budget: Decimal | None
    requirements: str | None
    next_follow_up_at: datetime | None
    assigned_to: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = _ORM


# =============================================================================
# Pipelines and stages
# =============================================================================


class StageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field("#6b7280", pattern=r"^#[0-9a-fA-F]{6}$")
    position: int | None = Field(None, ge=0, description="Appended at the end when omitted")


class StageUpdate(PartialUpdate):
    required = frozenset({"name", "color", "position", "is_active"})

    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    position: int | None = Field(None, ge=0)
    is_active: bool | None = None


class StageResponse(BaseModel):
    stage_id: UUID
    pipeline_id: UUID
    name: str
    color: str
    position: int
    is_active: bool

    model_config = _ORM


class PipelineCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    stages: list[StageCreate] = Field(default_factory=list)


class PipelineUpdate(PartialUpdate):
    required = frozenset({"name", "is_active"})

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    is_active: bool | None = None


class PipelineResponse(BaseModel):
    pipeline_id: UUID
    tenant_id: UUID
    name: str
    description: str | None
    is_active: bool
    created_at: datetime
    stages: list[StageResponse] = Field(default_factory=list)


# =============================================================================
# Deals
# =============================================================================


class DealCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    pipeline_id: UUID
    stage_id: UUID
    property_id: UUID | None = None
    contact_id: UUID | None = None
    value: Decimal = Field(..., ge=0)
    probability: int | None = Field(None, ge=0, le=100)
    expected_close_date: date | None = None
    notes: str | None = None
    assigned_to: UUID | None = None


class DealUpdate(PartialUpdate):
    required = frozenset({"title", "value"})

    title: str | None = Field(None, min_length=1, max_length=255)
    property_id: UUID | None = None
    contact_id: UUID | None = None
    value: Decimal | None = Field(None, ge=0)
    probability: int | None = Field(None, ge=0, le=100)
    expected_close_date: date | None = None
    notes: str | None = None
    assigned_to: UUID | None = None


class DealMove(BaseModel):
    """Move a deal to another stage of its pipeline (kanban drag)."""

    stage_id: UUID
    position: int = Field(0, ge=0)


class DealResponse(BaseModel):
    deal_id: UUID
    tenant_id: UUID
    title: str
    pipeline_id: UUID
    stage_id: UUID
    property_id: UUID | None
    contact_id: UUID | None
    value: Decimal
    probability: int | None
    expected_close_date: date | None
    notes: str | None
    position: int
    assigned_to: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = _ORM


# =============================================================================
# Dashboard
# =============================================================================


class DashboardStats(BaseModel):
    total_properties: int
    available_properties: int
    total_contacts: int
    total_leads: int
    new_leads: int
    total_deals: int
    pipeline_value: float
    closing_this_week: int
