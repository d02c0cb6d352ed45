from __future__ import annotations

import json

import pytest

from app.models import StorageSlot
from app.services.contacts import (
    CALL_LOG_LIMIT,
    ContactManager,
    format_phone_number,
    phone_call_uri,
)

BASE_URL = "/api/v1/dealerships/dealer-1/contacts"


async def _create(client, payload):
    response = await client.post(BASE_URL, json=payload)
    assert response.status_code == 201
    return response.json()["data"]


@pytest.mark.anyio("asyncio")
async def test_contacts_crud_and_search(client):
    body_shop = await _create(
        client,
        {
            "name": "Mike's Auto Body",
            "company": "Mike's Auto Body Shop",
            "phone": "5551234567",
            "category": "body-shop",
            "specialties": ["Paint Work", "Dent Removal"],
        },
    )
    detailer = await _create(
        client,
        {
            "name": "Sarah Johnson",
            "phone": "(555) 987-6543",
            "email": "sarah@elitedetailing.com",
        },
    )

    assert body_shop["id"].startswith("contact-")
    assert body_shop["is_favorite"] is False
    assert body_shop["is_active"] is True
    assert detailer["category"] == "other"

    list_resp = await client.get(BASE_URL)
    assert [item["id"] for item in list_resp.json()["data"]] == [detailer["id"], body_shop["id"]]

    specialty_resp = await client.get(BASE_URL, params={"q": "PAINT"})
    assert [item["id"] for item in specialty_resp.json()["data"]] == [body_shop["id"]]

    phone_resp = await client.get(BASE_URL, params={"q": "987"})
    assert [item["id"] for item in phone_resp.json()["data"]] == [detailer["id"]]

    email_resp = await client.get(BASE_URL, params={"q": "SARAH@ELITE"})
    assert [item["id"] for item in email_resp.json()["data"]] == [detailer["id"]]

    category_resp = await client.get(BASE_URL, params={"category": "body-shop"})
    assert [item["id"] for item in category_resp.json()["data"]] == [body_shop["id"]]

    update_resp = await client.put(
        f"{BASE_URL}/{body_shop['id']}", json={"company": "Mike's Collision Center"}
    )
    assert update_resp.status_code == 200
    assert update_resp.json()["data"]["company"] == "Mike's Collision Center"
    assert update_resp.json()["data"]["name"] == "Mike's Auto Body"

    retrieve_resp = await client.get(f"{BASE_URL}/{body_shop['id']}")
    assert retrieve_resp.json()["data"]["company"] == "Mike's Collision Center"

    delete_resp = await client.delete(f"{BASE_URL}/{detailer['id']}")
    assert delete_resp.status_code == 200
    assert delete_resp.json()["data"] == {"deleted": True}

    missing_resp = await client.get(f"{BASE_URL}/{detailer['id']}")
    assert missing_resp.status_code == 404
    assert missing_resp.json()["error"] == {
        "code": "RESOURCE_NOT_FOUND",
        "message": "Contact not found",
    }


@pytest.mark.anyio("asyncio")
async def test_inactive_contacts_are_hidden_from_search(client):
    contact = await _create(
        client, {"name": "Quick Tow Services", "phone": "(555) 911-TOWS", "category": "towing"}
    )

    await client.put(f"{BASE_URL}/{contact['id']}", json={"is_active": False})

    search_resp = await client.get(BASE_URL, params={"q": "quick"})
    assert search_resp.json()["data"] == []

    all_resp = await client.get(BASE_URL)
    assert [item["id"] for item in all_resp.json()["data"]] == [contact["id"]]


@pytest.mark.anyio("asyncio")
async def test_contacts_are_scoped_per_dealership(client):
    await _create(client, {"name": "Tom's Transmission", "phone": "5554567890"})

    other_resp = await client.get("/api/v1/dealerships/dealer-2/contacts")
    assert other_resp.status_code == 200
    assert other_resp.json()["data"] == []


@pytest.mark.anyio("asyncio")
async def test_create_uses_default_category_from_settings(client):
    settings_resp = await client.put(
        f"{BASE_URL}/settings", json={"default_category": "mechanic"}
    )
    assert settings_resp.status_code == 200
    assert settings_resp.json()["data"]["show_favorites_first"] is True

    contact = await _create(client, {"name": "Tom's Transmission", "phone": "5554567890"})
    assert contact["category"] == "mechanic"

    explicit = await _create(
        client, {"name": "AutoParts Plus", "phone": "5553210987", "category": "parts-supplier"}
    )
    assert explicit["category"] == "parts-supplier"


@pytest.mark.anyio("asyncio")
async def test_settings_defaults_are_returned_on_first_read(client):
    response = await client.get(f"{BASE_URL}/settings")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "default_category": "other",
        "auto_save_contacts": True,
        "show_favorites_first": True,
        "enable_call_logging": True,
    }


@pytest.mark.anyio("asyncio")
async def test_favorites_toggle_and_ordering(client):
    older = await _create(client, {"name": "Elite Detailing", "phone": "5559876543"})
    newer = await _create(client, {"name": "City Inspection", "phone": "5551112222"})

    toggle_resp = await client.post(f"{BASE_URL}/{older['id']}/favorite")
    assert toggle_resp.status_code == 200
    assert toggle_resp.json()["data"] == {"id": older["id"], "is_favorite": True}

    list_resp = await client.get(BASE_URL)
    assert [item["id"] for item in list_resp.json()["data"]] == [older["id"], newer["id"]]

    favorites_resp = await client.get(BASE_URL, params={"favorites": "true"})
    assert [item["id"] for item in favorites_resp.json()["data"]] == [older["id"]]

    untoggle_resp = await client.post(f"{BASE_URL}/{older['id']}/favorite")
    assert untoggle_resp.json()["data"]["is_favorite"] is False

    missing_resp = await client.post(f"{BASE_URL}/contact-missing/favorite")
    assert missing_resp.status_code == 404


@pytest.mark.anyio("asyncio")
async def test_call_logging_stamps_contact_and_handles_unknown(client):
    contact = await _create(client, {"name": "Mike's Auto Body", "phone": "5551234567"})

    call_resp = await client.post(f"{BASE_URL}/{contact['id']}/calls")
    assert call_resp.status_code == 201
    entry = call_resp.json()["data"]
    assert entry["contact_id"] == contact["id"]
    assert entry["contact_name"] == "Mike's Auto Body"
    assert entry["id"].startswith("call-")

    retrieve_resp = await client.get(f"{BASE_URL}/{contact['id']}")
    assert retrieve_resp.json()["data"]["last_contacted"] is not None

    unknown_resp = await client.post(f"{BASE_URL}/contact-gone/calls")
    assert unknown_resp.status_code == 201
    assert unknown_resp.json()["data"]["contact_name"] == "Unknown"

    log_resp = await client.get(f"{BASE_URL}/call-log")
    names = [item["contact_name"] for item in log_resp.json()["data"]]
    assert names == ["Unknown", "Mike's Auto Body"]


@pytest.mark.anyio("asyncio")
async def test_call_log_is_capped(store):
    manager = ContactManager(store, "dealer-1")

    for index in range(CALL_LOG_LIMIT + 5):
        await manager.log_call(f"contact-{index}")

    call_log = await manager.get_call_log()
    assert len(call_log) == CALL_LOG_LIMIT
    assert call_log[0].contact_id == f"contact-{CALL_LOG_LIMIT + 4}"
    assert call_log[-1].contact_id == "contact-5"


@pytest.mark.anyio("asyncio")
async def test_stats_and_seed(client):
    seed_resp = await client.post(f"{BASE_URL}/seed")
    assert seed_resp.status_code == 200
    seeded = seed_resp.json()["data"]
    assert len(seeded) == 5

    reseed_resp = await client.post(f"{BASE_URL}/seed")
    assert [item["id"] for item in reseed_resp.json()["data"]] == [item["id"] for item in seeded]

    stats_resp = await client.get(f"{BASE_URL}/stats")
    stats = stats_resp.json()["data"]
    assert stats["total"] == 5
    assert stats["active"] == 5
    assert stats["favorites"] == 2
    assert stats["by_category"]["body-shop"] == 1
    assert stats["by_category"]["vendor"] == 0


@pytest.mark.anyio("asyncio")
async def test_contact_validation_errors(client):
    missing_phone = await client.post(BASE_URL, json={"name": "No Phone"})
    assert missing_phone.status_code == 422
    assert missing_phone.json()["error"]["code"] == "VALIDATION_ERROR"

    bad_category = await client.post(
        BASE_URL, json={"name": "Bad", "phone": "5551234567", "category": "florist"}
    )
    assert bad_category.status_code == 422


@pytest.mark.anyio("asyncio")
async def test_update_rejects_null_for_required_fields(client):
    contact = await _create(client, {"name": "Quick Tow", "phone": "5550001111"})

    response = await client.put(f"{BASE_URL}/{contact['id']}", json={"name": None})
    assert response.status_code == 422
    assert response.json()["error"] == {
        "code": "VALIDATION_ERROR",
        "message": "name must not be null",
    }

    favorite = await client.put(f"{BASE_URL}/{contact['id']}", json={"is_favorite": None})
    assert favorite.status_code == 422

    cleared = await client.put(f"{BASE_URL}/{contact['id']}", json={"email": None, "notes": None})
    assert cleared.status_code == 200
    assert cleared.json()["data"]["name"] == "Quick Tow"


@pytest.mark.anyio("asyncio")
async def test_category_catalog_and_phone_formatting(client):
    categories_resp = await client.get("/api/v1/contacts/categories")
    categories = categories_resp.json()["data"]
    assert len(categories) == 9
    assert categories[0] == {
        "value": "body-shop",
        "label": "Body Shop",
        "description": "Paint, bodywork, and collision repair",
    }

    phone_resp = await client.get(
        "/api/v1/contacts/format-phone", params={"phone": "555.123.4567"}
    )
    assert phone_resp.json()["data"] == {"phone": "(555) 123-4567", "tel_uri": "tel:5551234567"}


def test_format_phone_number_only_reformats_ten_digits():
    assert format_phone_number("5551234567") == "(555) 123-4567"
    assert format_phone_number("555-123-4567") == "(555) 123-4567"
    assert format_phone_number("+1 555 123 4567") == "+1 555 123 4567"
    assert format_phone_number("(555) 911-TOWS") == "(555) 911-TOWS"
    assert phone_call_uri("(555) 123-4567") == "tel:5551234567"


@pytest.mark.anyio("asyncio")
async def test_malformed_stored_contacts_raise(store):
    store.session.add(StorageSlot(key="dealership_contacts_dealer-1", value="{not json"))
    await store.session.commit()

    manager = ContactManager(store, "dealer-1")
    with pytest.raises(json.JSONDecodeError):
        await manager.get_contacts()
