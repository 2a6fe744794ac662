"""Database repositories for clean data access."""

from .accounts import MembershipRepository, TenantRepository, UserRepository
from .base import TenantScopedRepository
from .crm import (
    ContactRepository,
    DealRepository,
    LeadRepository,
    PipelineRepository,
    PropertyRepository,
    StageRepository,
)

__all__ = [
    "ContactRepository",
    "DealRepository",
    "LeadRepository",
    "MembershipRepository",
    "PipelineRepository",
    "PropertyRepository",
    "StageRepository",
    "TenantRepository",
    "TenantScopedRepository",
    "UserRepository",
]
