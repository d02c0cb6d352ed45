"""Pydantic schemas for contact resources."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator


class ContactCategory(str, Enum):
    """Kinds of reconditioning vendors a dealership keeps on file."""

    BODY_SHOP = "body-shop"
    MECHANIC = "mechanic"
    DETAILING = "detailing"
    PARTS_SUPPLIER = "parts-supplier"
    TOWING = "towing"
    INSPECTION = "inspection"
    TRANSPORT = "transport"
    VENDOR = "vendor"
    OTHER = "other"


CONTACT_CATEGORY_CONFIGS: dict[ContactCategory, dict[str, str]] = {
    ContactCategory.BODY_SHOP: {
        "label": "Body Shop",
        "description": "Paint, bodywork, and collision repair",
    },
    ContactCategory.MECHANIC: {
        "label": "Mechanic",
        "description": "Engine, transmission, and mechanical repairs",
    },
    ContactCategory.DETAILING: {
        "label": "Detailing",
        "description": "Cleaning, waxing, and interior services",
    },
    ContactCategory.PARTS_SUPPLIER: {
        "label": "Parts Supplier",
        "description": "Auto parts and accessories",
    },
    ContactCategory.TOWING: {
        "label": "Towing",
        "description": "Vehicle towing and recovery services",
    },
    ContactCategory.INSPECTION: {
        "label": "Inspection",
        "description": "Vehicle inspection and certification",
    },
    ContactCategory.TRANSPORT: {
        "label": "Transport",
        "description": "Vehicle transportation services",
    },
    ContactCategory.VENDOR: {
        "label": "Vendor",
        "description": "General vendors and suppliers",
    },
    ContactCategory.OTHER: {
        "label": "Other",
        "description": "Other service providers",
    },
}

Specialty = Annotated[str, Field(min_length=1, max_length=60)]


class ContactBase(BaseModel):
    company: str | None = None
    title: str | None = None
    email: EmailStr | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    notes: str | None = None

    @field_validator("specialties", check_fields=False)
    @classmethod
    def validate_specialties(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        unique: list[str] = []
        for specialty in value:
            cleaned = specialty.strip()
            if not cleaned:
                msg = "Specialties must not be empty"
                raise ValueError(msg)
            if cleaned not in unique:
                unique.append(cleaned)
        return unique


class ContactCreate(ContactBase):
    name: Annotated[str, Field(min_length=1, max_length=120)]
    phone: Annotated[str, Field(min_length=1, max_length=32)]
    category: ContactCategory = ContactCategory.OTHER
    specialties: list[Specialty] = Field(default_factory=list)
    is_favorite: bool = False
    is_active: bool = True


class ContactUpdate(ContactBase):
    name: Annotated[str, Field(min_length=1, max_length=120)] | None = None
    phone: Annotated[str, Field(min_length=1, max_length=32)] | None = None
    category: ContactCategory | None = None
    specialties: list[Specialty] | None = None
    is_favorite: bool | None = None
    is_active: bool | None = None
    last_contacted: datetime | None = None

    @field_validator("name", "phone", "category", "specialties", "is_favorite", "is_active")
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        if value is None:
            msg = f"{info.field_name} must not be null"
            raise ValueError(msg)
        return value


class Contact(ContactBase):
    """A contact as stored in the dealership's contacts slot."""

    id: str
    name: str
    phone: str
    category: ContactCategory = ContactCategory.OTHER
    specialties: list[str] = Field(default_factory=list)
    is_favorite: bool = False
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
    last_contacted: datetime | None = None


class ContactSettings(BaseModel):
    default_category: ContactCategory = ContactCategory.OTHER
    auto_save_contacts: bool = True
    show_favorites_first: bool = True
    enable_call_logging: bool = True


class CallLogEntry(BaseModel):
    id: str
    contact_id: str
    timestamp: datetime
    contact_name: str


class ContactStats(BaseModel):
    total: int
    active: int
    favorites: int
    by_category: dict[ContactCategory, int]
