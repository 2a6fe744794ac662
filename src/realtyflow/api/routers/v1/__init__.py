"""API v1 routers."""

from fastapi import APIRouter

from .auth import router as auth_router
from .billing import router as billing_router
from .contacts import router as contacts_router
from .dashboard import router as dashboard_router
from .deals import router as deals_router
from .leads import router as leads_router
from .me import router as me_router
from .pipelines import router as pipelines_router
from .platform import router as platform_router
from .properties import router as properties_router
from .team import router as team_router
from .tenants import router as tenants_router

# Create v1 router that includes all v1 endpoints
router = APIRouter(prefix="/v1")

router.include_router(auth_router)
router.include_router(me_router)
router.include_router(tenants_router)
router.include_router(team_router)
router.include_router(properties_router)
router.include_router(contacts_router)
router.include_router(leads_router)
router.include_router(pipelines_router)
router.include_router(deals_router)
router.include_router(dashboard_router)
router.include_router(billing_router)
router.include_router(platform_router)

__all__ = [
    "router",
    "auth_router",
    "me_router",
    "tenants_router",
    "team_router",
    "properties_router",
    "contacts_router",
    "leads_router",
    "pipelines_router",
    "deals_router",
    "dashboard_router",
    "billing_router",
    "platform_router",
]
