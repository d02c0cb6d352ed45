"""Lot and storage locations for a dealership."""
from __future__ import annotations

import logging
from typing import Any

from app.schemas.location import (
    LOCATION_TYPE_CONFIGS,
    Location,
    LocationCreate,
    LocationSettings,
    LocationStats,
    LocationType,
)
from app.services.storage import KeyValueStore, generate_id, tenant_key, utcnow

LOCATIONS_KEY = "dealership_locations"
LOCATION_SETTINGS_KEY = "dealership_location_settings"

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS: list[dict[str, Any]] = [
    {
        "name": "Lot A",
        "type": LocationType.ON_SITE,
        "description": "Main front lot",
        "capacity": 50,
    },
    {"name": "Lot B", "type": LocationType.ON_SITE, "description": "Side lot", "capacity": 30},
    {
        "name": "Indoor Showroom",
        "type": LocationType.DISPLAY,
        "description": "Indoor display area",
        "capacity": 8,
    },
    {
        "name": "Service Bay",
        "type": LocationType.SERVICE,
        "description": "Service department",
        "capacity": 12,
    },
    {
        "name": "Test Drive",
        "type": LocationType.TEST_DRIVE,
        "description": "Vehicles out for test drives",
    },
    {
        "name": "Demo Fleet",
        "type": LocationType.DEMO,
        "description": "Demo vehicles",
        "capacity": 5,
    },
    {
        "name": "In-Transit",
        "type": LocationType.IN_TRANSIT,
        "description": "Vehicles being transported",
    },
]


def get_location_type_config(location_type: LocationType) -> dict[str, str]:
    return LOCATION_TYPE_CONFIGS[location_type]


class LocationManager:
    """CRUD and statistics for one dealership's lot locations."""

    def __init__(self, store: KeyValueStore, dealership_id: str):
        self.store = store
        self.dealership_id = dealership_id

    def _key(self, prefix: str) -> str:
        return tenant_key(prefix, self.dealership_id)

    async def initialize_defaults(self) -> list[Location]:
        existing = await self.get_locations()
        if existing:
            return existing

        timestamp = utcnow()
        locations = [
            Location(
                **LocationCreate(**data).model_dump(),
                id=generate_id("loc"),
                created_at=timestamp,
                updated_at=timestamp,
            )
            for data in DEFAULT_LOCATIONS
        ]
        await self.save_locations(locations)
        logger.info(
            "Seeded default locations",
            extra={"dealership_id": self.dealership_id, "count": len(locations)},
        )
        return locations

    async def get_locations(self) -> list[Location]:
        data = await self.store.get_json(self._key(LOCATIONS_KEY))
        if not data:
            return []
        return [Location.model_validate(item) for item in data]

    async def save_locations(self, locations: list[Location]) -> None:
        await self.store.set_json(
            self._key(LOCATIONS_KEY),
            [location.model_dump(mode="json") for location in locations],
        )

    async def get_location(self, location_id: str) -> Location | None:
        locations = await self.get_locations()
        return next((location for location in locations if location.id == location_id), None)

    async def add_location(self, payload: LocationCreate) -> Location:
        locations = await self.get_locations()
        timestamp = utcnow()
        location = Location(
            **payload.model_dump(),
            id=generate_id("loc"),
            created_at=timestamp,
            updated_at=timestamp,
        )
        locations.append(location)
        await self.save_locations(locations)
        return location

    async def update_location(self, location_id: str, updates: dict[str, Any]) -> Location | None:
        locations = await self.get_locations()
        for index, location in enumerate(locations):
            if location.id != location_id:
                continue
            merged = {**location.model_dump(), **updates, "updated_at": utcnow()}
            locations[index] = Location.model_validate(merged)
            await self.save_locations(locations)
            return locations[index]
        return None

    async def delete_location(self, location_id: str) -> bool:
        locations = await self.get_locations()
        remaining = [location for location in locations if location.id != location_id]
        if len(remaining) == len(locations):
            return False
        await self.save_locations(remaining)
        return True

    async def get_locations_by_type(self, location_type: LocationType) -> list[Location]:
        locations = await self.get_locations()
        return [loc for loc in locations if loc.type == location_type and loc.is_active]

    async def get_active_locations(self) -> list[Location]:
        return [loc for loc in await self.get_locations() if loc.is_active]

    async def get_location_stats(self) -> LocationStats:
        """Totals over all locations; ``by_type`` counts active ones only."""

        locations = await self.get_locations()
        active = [loc for loc in locations if loc.is_active]
        by_type = {location_type: 0 for location_type in LocationType}
        for location in active:
            by_type[location.type] += 1
        return LocationStats(total=len(locations), active=len(active), by_type=by_type)

    async def get_location_settings(self) -> LocationSettings:
        data = await self.store.get_json(self._key(LOCATION_SETTINGS_KEY))
        if data is not None:
            return LocationSettings.model_validate(data)

        settings = LocationSettings()
        await self.save_location_settings(settings)
        return settings

    async def save_location_settings(self, settings: LocationSettings) -> None:
        await self.store.set_json(
            self._key(LOCATION_SETTINGS_KEY), settings.model_dump(mode="json")
        )
