"""Platform-wide super-admin routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.common import data_response
from app.api.v1.registry import get_registry
from app.schemas.registry import DashboardOverview, Dealership, User
from app.services.registry import DealershipRegistry


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/overview")
async def overview(
    registry: DealershipRegistry = Depends(get_registry),
) -> dict[str, DashboardOverview]:
    """Tenant counts and estimated monthly revenue, excluding the platform tenant."""

    return data_response(await registry.get_dashboard_overview())


@router.get("/dealerships")
async def list_dealerships(
    registry: DealershipRegistry = Depends(get_registry),
) -> dict[str, list[Dealership]]:
    return data_response(await registry.get_all_dealerships_for_super_admin())


@router.get("/users")
async def list_users(registry: DealershipRegistry = Depends(get_registry)) -> dict[str, list[User]]:
    return data_response(await registry.get_all_users_for_super_admin())


@router.post("/dealerships/{dealership_id}/toggle")
async def toggle_dealership(
    dealership_id: str, registry: DealershipRegistry = Depends(get_registry)
) -> dict[str, Dealership]:
    dealership = await registry.toggle_dealership_status(dealership_id)
    if dealership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dealership not found")
    return data_response(dealership)


@router.post("/seed")
async def seed_demo_data(
    registry: DealershipRegistry = Depends(get_registry),
) -> dict[str, DashboardOverview]:
    """Replace the registry with the demo dealerships and users."""

    await registry.initialize_demo_data()
    return data_response(await registry.get_dashboard_overview())
