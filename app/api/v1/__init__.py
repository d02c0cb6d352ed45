"""Version 1 API routes for the dealership reconditioning service."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.v1.admin import router as admin_router
from app.api.v1.contacts import catalog_router as contact_catalog_router
from app.api.v1.contacts import router as contacts_router
from app.api.v1.integrations import router as integrations_router
from app.api.v1.locations import catalog_router as location_catalog_router
from app.api.v1.locations import router as locations_router
from app.api.v1.registry import router as registry_router
from app.api.v1.todos import catalog_router as todo_catalog_router
from app.api.v1.todos import router as todos_router
from app.core.config import Settings, get_settings

router = APIRouter()
router.include_router(contact_catalog_router)
router.include_router(contacts_router)
router.include_router(todo_catalog_router)
router.include_router(todos_router)
router.include_router(location_catalog_router)
router.include_router(locations_router)
router.include_router(registry_router)
router.include_router(admin_router)
router.include_router(integrations_router)


@router.get("/health", tags=["health"])
async def health_check(settings: Settings = Depends(get_settings)) -> dict[str, dict[str, str]]:
    """Report the service health information."""
    return {"data": {"status": "ok", "version": settings.version, "environment": settings.app_env}}
