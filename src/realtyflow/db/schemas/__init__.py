"""Pydantic schemas for API validation."""

from .billing import (
    BillingProvider,
    CheckoutIntentRequest,
    CheckoutIntentResponse,
    WebhookAck,
)
from .crm import (
    ContactCreate,
    ContactResponse,
    ContactUpdate,
    DashboardStats,
    DealCreate,
    DealMove,
    DealResponse,
    DealUpdate,
    LeadCreate,
    LeadResponse,
    LeadUpdate,
    PipelineCreate,
    PipelineResponse,
    PipelineUpdate,
    PropertyCreate,
    PropertyResponse,
    PropertyUpdate,
    StageCreate,
    StageResponse,
    StageUpdate,
)
from .tenant import (
    PaymentRecord,
    TenantAdminUpdate,
    TenantCreate,
    TenantResponse,
    TenantUpdate,
)
from .user import (
    LoginRequest,
    MemberCreate,
    MemberResponse,
    MembershipSummary,
    MemberUpdate,
    MeResponse,
    RegisterRequest,
    SwitchTenantRequest,
    TokenResponse,
    UserResponse,
)

__all__ = [
    "BillingProvider",
    "CheckoutIntentRequest",
    "CheckoutIntentResponse",
    "WebhookAck",
    "ContactCreate",
    "ContactResponse",
    "ContactUpdate",
    "DashboardStats",
    "DealCreate",
    "DealMove",
    "DealResponse",
    "DealUpdate",
    "LeadCreate",
    "LeadResponse",
    "LeadUpdate",
    "PipelineCreate",
    "PipelineResponse",
    "PipelineUpdate",
    "PropertyCreate",
    "PropertyResponse",
    "PropertyUpdate",
    "StageCreate",
    "StageResponse",
    "StageUpdate",
    "PaymentRecord",
    "TenantAdminUpdate",
    "TenantCreate",
    "TenantResponse",
    "TenantUpdate",
    "LoginRequest",
    "MemberCreate",
    "MemberResponse",
    "MembershipSummary",
    "MemberUpdate",
    "MeResponse",
    "RegisterRequest",
    "SwitchTenantRequest",
    "TokenResponse",
    "UserResponse",
]
