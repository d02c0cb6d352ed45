"""Pydantic schemas for dealership lot locations."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class LocationType(str, Enum):
    ON_SITE = "on-site"
    OFF_SITE = "off-site"
    TEST_DRIVE = "test-drive"
    DEMO = "demo"
    SERVICE = "service"
    STORAGE = "storage"
    DISPLAY = "display"
    SOLD = "sold"
    PENDING = "pending"
    IN_TRANSIT = "in-transit"
    OTHER = "other"


LOCATION_TYPE_CONFIGS: dict[LocationType, dict[str, str]] = {
    LocationType.ON_SITE: {"label": "On-Site", "description": "Vehicles on dealership premises"},
    LocationType.OFF_SITE: {"label": "Off-Site", "description": "Vehicles at external locations"},
    LocationType.TEST_DRIVE: {
        "label": "Test Drive",
        "description": "Vehicles currently on test drives",
    },
    LocationType.DEMO: {"label": "Demo", "description": "Demo vehicles for customer use"},
    LocationType.SERVICE: {"label": "Service", "description": "Vehicles in service department"},
    LocationType.STORAGE: {"label": "Storage", "description": "Long-term storage locations"},
    LocationType.DISPLAY: {"label": "Display", "description": "Showroom display vehicles"},
    LocationType.SOLD: {"label": "Sold", "description": "Vehicles that have been sold"},
    LocationType.PENDING: {"label": "Pending", "description": "Vehicles with pending status"},
    LocationType.IN_TRANSIT: {
        "label": "In-Transit",
        "description": "Vehicles being transported or moved",
    },
    LocationType.OTHER: {"label": "Other", "description": "Custom location type"},
}

Capacity = Annotated[int, Field(ge=0)]


class LocationCreate(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=80)]
    type: LocationType = LocationType.ON_SITE
    description: str | None = None
    is_active: bool = True
    capacity: Capacity | None = None


class LocationUpdate(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=80)] | None = None
    type: LocationType | None = None
    description: str | None = None
    is_active: bool | None = None
    capacity: Capacity | None = None

    @field_validator("name", "type", "is_active")
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        if value is None:
            msg = f"{info.field_name} must not be null"
            raise ValueError(msg)
        return value


class Location(BaseModel):
    """A lot location as stored in the dealership's locations slot."""

    id: str
    name: str
    type: LocationType
    description: str | None = None
    is_active: bool = True
    capacity: int | None = None
    created_at: datetime
    updated_at: datetime


class LocationSettings(BaseModel):
    default_location_type: LocationType = LocationType.ON_SITE
    allow_custom_locations: bool = True
    require_location_for_vehicles: bool = True
    auto_assign_location: bool = False
    location_capacity_tracking: bool = True


class LocationStats(BaseModel):
    total: int
    active: int
    by_type: dict[LocationType, int]
