"""Contact management over the dealership's key-value storage slots."""
from __future__ import annotations

import logging
import re
from typing import Any

from app.schemas.contact import (
    CONTACT_CATEGORY_CONFIGS,
    CallLogEntry,
    Contact,
    ContactCategory,
    ContactCreate,
    ContactSettings,
    ContactStats,
)
from app.services.storage import KeyValueStore, generate_id, tenant_key, utcnow

CONTACTS_KEY = "dealership_contacts"
CONTACT_SETTINGS_KEY = "dealership_contact_settings"
CALL_LOG_KEY = "contact_call_log"
CALL_LOG_LIMIT = 100

NON_DIGITS = re.compile(r"\D")

logger = logging.getLogger(__name__)

DEFAULT_CONTACTS: list[dict[str, Any]] = [
    {
        "name": "Mike's Auto Body",
        "company": "Mike's Auto Body Shop",
        "title": "Owner",
        "phone": "(555) 123-4567",
        "email": "mike@mikesautobody.com",
        "address": "123 Main Street",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "category": ContactCategory.BODY_SHOP,
        "specialties": ["Paint Work", "Collision Repair", "Dent Removal"],
        "notes": "Excellent paint matching. Quick turnaround on minor repairs.",
        "is_favorite": True,
    },
    {
        "name": "Sarah Johnson",
        "company": "Elite Detailing Services",
        "title": "Manager",
        "phone": "(555) 987-6543",
        "email": "sarah@elitedetailing.com",
        "category": ContactCategory.DETAILING,
        "specialties": ["Interior Cleaning", "Paint Correction", "Ceramic Coating"],
        "notes": "Premium detailing services. Great for high-end vehicles.",
        "is_favorite": True,
    },
    {
        "name": "Tom's Transmission",
        "company": "Tom's Transmission & Auto Repair",
        "title": "Lead Mechanic",
        "phone": "(555) 456-7890",
        "email": "info@tomstransmission.com",
        "category": ContactCategory.MECHANIC,
        "specialties": ["Transmission Repair", "Engine Diagnostics", "Brake Service"],
        "notes": "Reliable for complex mechanical issues. Fair pricing.",
    },
    {
        "name": "AutoParts Plus",
        "company": "AutoParts Plus Distribution",
        "title": "Sales Representative",
        "phone": "(555) 321-0987",
        "email": "orders@autopartsplus.com",
        "category": ContactCategory.PARTS_SUPPLIER,
        "specialties": ["OEM Parts", "Aftermarket Parts", "Fast Delivery"],
        "notes": "Good inventory and competitive prices. Next-day delivery available.",
    },
    {
        "name": "Quick Tow Services",
        "company": "Quick Tow & Recovery",
        "title": "Dispatcher",
        "phone": "(555) 911-TOWS",
        "email": "dispatch@quicktow.com",
        "category": ContactCategory.TOWING,
        "specialties": ["24/7 Service", "Flatbed Towing", "Vehicle Recovery"],
        "notes": "24/7 availability. Reliable for emergency situations.",
    },
]


def format_phone_number(phone: str) -> str:
    """Format exactly-10-digit numbers as ``(XXX) XXX-XXXX``.

    Any other digit count returns the input unchanged.
    """

    digits = NON_DIGITS.sub("", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone


def phone_call_uri(phone: str) -> str:
    """Return a ``tel:`` link for dialing the number from a device."""

    return f"tel:{NON_DIGITS.sub('', phone)}"


def get_category_config(category: ContactCategory) -> dict[str, str]:
    return CONTACT_CATEGORY_CONFIGS[category]


class ContactManager:
    """CRUD, search and statistics for one dealership's contacts."""

    def __init__(self, store: KeyValueStore, dealership_id: str):
        self.store = store
        self.dealership_id = dealership_id

    def _key(self, prefix: str) -> str:
        return tenant_key(prefix, self.dealership_id)

    async def initialize_defaults(self) -> list[Contact]:
        """Seed sample vendors when the dealership has no contacts yet."""

        existing = await self.get_contacts()
        if existing:
            return existing

        timestamp = utcnow()
        contacts = [
            Contact(
                **ContactCreate(**data).model_dump(),
                id=generate_id("contact"),
                created_at=timestamp,
                updated_at=timestamp,
            )
            for data in DEFAULT_CONTACTS
        ]
        await self.save_contacts(contacts)
        logger.info(
            "Seeded default contacts",
            extra={"dealership_id": self.dealership_id, "count": len(contacts)},
        )
        return contacts

    async def get_contacts(self) -> list[Contact]:
        data = await self.store.get_json(self._key(CONTACTS_KEY))
        if not data:
            return []
        return [Contact.model_validate(item) for item in data]

    async def save_contacts(self, contacts: list[Contact]) -> None:
        await self.store.set_json(
            self._key(CONTACTS_KEY),
            [contact.model_dump(mode="json") for contact in contacts],
        )

    async def get_contact(self, contact_id: str) -> Contact | None:
        contacts = await self.get_contacts()
        return next((contact for contact in contacts if contact.id == contact_id), None)

    async def add_contact(self, payload: ContactCreate) -> Contact:
        contacts = await self.get_contacts()
        timestamp = utcnow()
        contact = Contact(
            **payload.model_dump(),
            id=generate_id("contact"),
            created_at=timestamp,
            updated_at=timestamp,
        )
        contacts.insert(0, contact)
        await self.save_contacts(contacts)
        return contact

    async def update_contact(self, contact_id: str, updates: dict[str, Any]) -> Contact | None:
        """Merge ``updates`` into the stored contact; ``None`` when it does not exist."""

        contacts = await self.get_contacts()
        for index, contact in enumerate(contacts):
            if contact.id != contact_id:
                continue
            merged = {**contact.model_dump(), **updates, "updated_at": utcnow()}
            contacts[index] = Contact.model_validate(merged)
            await self.save_contacts(contacts)
            return contacts[index]
        return None

    async def delete_contact(self, contact_id: str) -> bool:
        contacts = await self.get_contacts()
        remaining = [contact for contact in contacts if contact.id != contact_id]
        if len(remaining) == len(contacts):
            return False
        await self.save_contacts(remaining)
        return True

    async def toggle_favorite(self, contact_id: str) -> bool:
        """Flip the favourite flag and return its new value (``False`` if missing)."""

        contacts = await self.get_contacts()
        contact = next((c for c in contacts if c.id == contact_id), None)
        if contact is None:
            return False

        contact.is_favorite = not contact.is_favorite
        contact.updated_at = utcnow()
        await self.save_contacts(contacts)
        return contact.is_favorite

    async def log_call(self, contact_id: str) -> CallLogEntry:
        """Stamp ``last_contacted`` and prepend an entry to the call log.

        The entry is written even when the contact no longer exists; its
        name is then recorded as ``Unknown``.
        """

        contacts = await self.get_contacts()
        contact = next((c for c in contacts if c.id == contact_id), None)
        timestamp = utcnow()

        if contact is not None:
            contact.last_contacted = timestamp
            contact.updated_at = timestamp
            await self.save_contacts(contacts)

        entry = CallLogEntry(
            id=generate_id("call", with_suffix=False),
            contact_id=contact_id,
            timestamp=timestamp,
            contact_name=contact.name if contact is not None else "Unknown",
        )
        call_log = await self.get_call_log()
        call_log.insert(0, entry)
        del call_log[CALL_LOG_LIMIT:]

        await self.store.set_json(
            self._key(CALL_LOG_KEY), [item.model_dump(mode="json") for item in call_log]
        )
        return entry

    async def get_call_log(self) -> list[CallLogEntry]:
        data = await self.store.get_json(self._key(CALL_LOG_KEY))
        if not data:
            return []
        return [CallLogEntry.model_validate(item) for item in data]

    async def get_contacts_by_category(self, category: ContactCategory) -> list[Contact]:
        contacts = await self.get_contacts()
        return [c for c in contacts if c.category == category and c.is_active]

    async def get_favorite_contacts(self) -> list[Contact]:
        contacts = await self.get_contacts()
        return [c for c in contacts if c.is_favorite and c.is_active]

    async def search_contacts(self, query: str) -> list[Contact]:
        """Case-insensitive search over active contacts.

        Name, company, email and specialties are matched case-insensitively;
        the phone number is matched as a raw substring.
        """

        contacts = await self.get_contacts()
        term = query.lower()

        def matches(contact: Contact) -> bool:
            return (
                term in contact.name.lower()
                or (contact.company is not None and term in contact.company.lower())
                or term in contact.phone
                or (contact.email is not None and term in contact.email.lower())
                or any(term in specialty.lower() for specialty in contact.specialties)
            )

        return [c for c in contacts if c.is_active and matches(c)]

    async def get_contact_stats(self) -> ContactStats:
        contacts = await self.get_contacts()
        active = [c for c in contacts if c.is_active]
        by_category = {category: 0 for category in ContactCategory}
        for contact in active:
            by_category[contact.category] += 1

        return ContactStats(
            total=len(contacts),
            active=len(active),
            favorites=sum(1 for c in active if c.is_favorite),
            by_category=by_category,
        )

    async def get_contact_settings(self) -> ContactSettings:
        """Return stored settings, persisting the defaults on first access."""

        data = await self.store.get_json(self._key(CONTACT_SETTINGS_KEY))
        if data is not None:
            return ContactSettings.model_validate(data)

        settings = ContactSettings()
        await self.save_contact_settings(settings)
        return settings

    async def save_contact_settings(self, settings: ContactSettings) -> None:
        await self.store.set_json(
            self._key(CONTACT_SETTINGS_KEY), settings.model_dump(mode="json")
        )
