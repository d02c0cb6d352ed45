"""Lot location API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1.common import data_response, get_store
from app.schemas.location import (
    Location,
    LocationCreate,
    LocationSettings,
    LocationStats,
    LocationType,
    LocationUpdate,
)
from app.services.locations import LocationManager, get_location_type_config
from app.services.storage import KeyValueStore


router = APIRouter(prefix="/dealerships/{dealership_id}/locations", tags=["locations"])
catalog_router = APIRouter(prefix="/locations", tags=["locations"])


def get_location_manager(
    dealership_id: str, store: KeyValueStore = Depends(get_store)
) -> LocationManager:
    return LocationManager(store, dealership_id)


@catalog_router.get("/types")
async def list_location_types() -> dict[str, list[dict[str, str]]]:
    payload = [
        {"value": location_type.value, **get_location_type_config(location_type)}
        for location_type in LocationType
    ]
    return data_response(payload)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_location(
    payload: LocationCreate, manager: LocationManager = Depends(get_location_manager)
) -> dict[str, Location]:
    """Create a location, falling back to the dealership's default type."""

    if "type" not in payload.model_fields_set:
        settings = await manager.get_location_settings()
        payload = payload.model_copy(update={"type": settings.default_location_type})
    return data_response(await manager.add_location(payload))


@router.get("")
async def list_locations(
    location_type: LocationType | None = Query(None, alias="type"),
    active: bool = False,
    manager: LocationManager = Depends(get_location_manager),
) -> dict[str, list[Location]]:
    """List locations; a ``type`` filter only returns active ones."""

    if location_type is not None:
        locations = await manager.get_locations_by_type(location_type)
    elif active:
        locations = await manager.get_active_locations()
    else:
        locations = await manager.get_locations()
    return data_response(locations)


@router.get("/stats")
async def location_stats(
    manager: LocationManager = Depends(get_location_manager),
) -> dict[str, LocationStats]:
    return data_response(await manager.get_location_stats())


@router.get("/settings")
async def get_location_settings(
    manager: LocationManager = Depends(get_location_manager),
) -> dict[str, LocationSettings]:
    return data_response(await manager.get_location_settings())


@router.put("/settings")
async def update_location_settings(
    payload: LocationSettings, manager: LocationManager = Depends(get_location_manager)
) -> dict[str, LocationSettings]:
    await manager.save_location_settings(payload)
    return data_response(payload)


@router.post("/seed")
async def seed_locations(
    manager: LocationManager = Depends(get_location_manager),
) -> dict[str, list[Location]]:
    return data_response(await manager.initialize_defaults())


@router.get("/{location_id}")
async def retrieve_location(
    location_id: str, manager: LocationManager = Depends(get_location_manager)
) -> dict[str, Location]:
    location = await manager.get_location(location_id)
    if location is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return data_response(location)


@router.put("/{location_id}")
async def update_location(
    location_id: str,
    payload: LocationUpdate,
    manager: LocationManager = Depends(get_location_manager),
) -> dict[str, Location]:
    location = await manager.update_location(location_id, payload.model_dump(exclude_unset=True))
    if location is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return data_response(location)


@router.delete("/{location_id}")
async def delete_location(
    location_id: str, manager: LocationManager = Depends(get_location_manager)
) -> dict[str, dict[str, bool]]:
    if not await manager.delete_location(location_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return data_response({"deleted": True})
