"""Contacts API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1.common import data_response, get_store
from app.schemas.contact import (
    CallLogEntry,
    Contact,
    ContactCategory,
    ContactCreate,
    ContactSettings,
    ContactStats,
    ContactUpdate,
)
from app.services.contacts import (
    ContactManager,
    format_phone_number,
    get_category_config,
    phone_call_uri,
)
from app.services.storage import KeyValueStore


router = APIRouter(prefix="/dealerships/{dealership_id}/contacts", tags=["contacts"])
catalog_router = APIRouter(prefix="/contacts", tags=["contacts"])


def get_contact_manager(
    dealership_id: str, store: KeyValueStore = Depends(get_store)
) -> ContactManager:
    return ContactManager(store, dealership_id)


@catalog_router.get("/categories")
async def list_categories() -> dict[str, list[dict[str, str]]]:
    """List the contact categories with their labels."""

    payload = [
        {"value": category.value, **get_category_config(category)} for category in ContactCategory
    ]
    return data_response(payload)


@catalog_router.get("/format-phone")
async def format_phone(phone: str = Query(..., min_length=1)) -> dict[str, dict[str, str]]:
    return data_response({"phone": format_phone_number(phone), "tel_uri": phone_call_uri(phone)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_contact(
    payload: ContactCreate, manager: ContactManager = Depends(get_contact_manager)
) -> dict[str, Contact]:
    """Create a new contact, falling back to the dealership's default category."""

    if "category" not in payload.model_fields_set:
        settings = await manager.get_contact_settings()
        payload = payload.model_copy(update={"category": settings.default_category})
    contact = await manager.add_contact(payload)
    return data_response(contact)


@router.get("")
async def list_contacts(
    q: str | None = None,
    category: ContactCategory | None = None,
    favorites: bool = False,
    manager: ContactManager = Depends(get_contact_manager),
) -> dict[str, list[Contact]]:
    """List contacts, optionally searched and narrowed by category or favourites.

    Any filter restricts the result to active contacts.
    """

    if q:
        contacts = await manager.search_contacts(q)
    elif category is not None:
        contacts = await manager.get_contacts_by_category(category)
    elif favorites:
        contacts = await manager.get_favorite_contacts()
    else:
        contacts = await manager.get_contacts()

    if category is not None:
        contacts = [contact for contact in contacts if contact.category == category]
    if favorites:
        contacts = [contact for contact in contacts if contact.is_favorite]

    settings = await manager.get_contact_settings()
    if settings.show_favorites_first:
        contacts.sort(key=lambda contact: not contact.is_favorite)
    return data_response(contacts)


@router.get("/call-log")
async def list_call_log(
    manager: ContactManager = Depends(get_contact_manager),
) -> dict[str, list[CallLogEntry]]:
    return data_response(await manager.get_call_log())


@router.get("/stats")
async def contact_stats(
    manager: ContactManager = Depends(get_contact_manager),
) -> dict[str, ContactStats]:
    return data_response(await manager.get_contact_stats())


@router.get("/settings")
async def get_contact_settings(
    manager: ContactManager = Depends(get_contact_manager),
) -> dict[str, ContactSettings]:
    return data_response(await manager.get_contact_settings())


@router.put("/settings")
async def update_contact_settings(
    payload: ContactSettings, manager: ContactManager = Depends(get_contact_manager)
) -> dict[str, ContactSettings]:
    await manager.save_contact_settings(payload)
    return data_response(payload)


@router.post("/seed")
async def seed_contacts(
    manager: ContactManager = Depends(get_contact_manager),
) -> dict[str, list[Contact]]:
    """Load the sample vendor list into an empty dealership."""

    return data_response(await manager.initialize_defaults())


@router.get("/{contact_id}")
async def retrieve_contact(
    contact_id: str, manager: ContactManager = Depends(get_contact_manager)
) -> dict[str, Contact]:
    return data_response(await _get_contact_or_404(manager, contact_id))


@router.put("/{contact_id}")
async def update_contact(
    contact_id: str,
    payload: ContactUpdate,
    manager: ContactManager = Depends(get_contact_manager),
) -> dict[str, Contact]:
    """Update the provided contact."""

    contact = await manager.update_contact(contact_id, payload.model_dump(exclude_unset=True))
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return data_response(contact)


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str, manager: ContactManager = Depends(get_contact_manager)
) -> dict[str, dict[str, bool]]:
    if not await manager.delete_contact(contact_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return data_response({"deleted": True})


@router.post("/{contact_id}/favorite")
async def toggle_favorite(
    contact_id: str, manager: ContactManager = Depends(get_contact_manager)
) -> dict[str, dict[str, str | bool]]:
    await _get_contact_or_404(manager, contact_id)
    is_favorite = await manager.toggle_favorite(contact_id)
    return data_response({"id": contact_id, "is_favorite": is_favorite})


@router.post("/{contact_id}/calls", status_code=status.HTTP_201_CREATED)
async def log_call(
    contact_id: str, manager: ContactManager = Depends(get_contact_manager)
) -> dict[str, CallLogEntry]:
    """Record a call; unknown contacts are logged under the name ``Unknown``."""

    return data_response(await manager.log_call(contact_id))


async def _get_contact_or_404(manager: ContactManager, contact_id: str) -> Contact:
    contact = await manager.get_contact(contact_id)
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return contact
