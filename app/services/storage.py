"""JSON key-value storage on top of the ``storage_slots`` table."""
from __future__ import annotations

import json
import random
import string
import time
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import StorageSlot


_ID_ALPHABET = string.ascii_lowercase + string.digits


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""

    return datetime.now(UTC)


def generate_id(prefix: str, *, with_suffix: bool = True) -> str:
    """Build ids such as ``todo-1718000000000-k3j9x0a2b``."""

    millis = int(time.time() * 1000)
    if not with_suffix:
        return f"{prefix}-{millis}"
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}-{millis}-{suffix}"


def tenant_key(prefix: str, dealership_id: str) -> str:
    """Return the storage key of a dealership-scoped collection."""

    return f"{prefix}_{dealership_id}"


class KeyValueStore:
    """Get and set JSON documents by key; the last write wins.

    Every ``set_json``/``remove`` commits immediately. Stored values that are
    not valid JSON raise :class:`json.JSONDecodeError` on read.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_json(self, key: str) -> Any | None:
        slot = await self.session.get(StorageSlot, key)
        if slot is None:
            return None
        return json.loads(slot.value)

    async def set_json(self, key: str, value: Any) -> None:
        encoded = json.dumps(value, ensure_ascii=False)
        slot = await self.session.get(StorageSlot, key)
        if slot is None:
            self.session.add(StorageSlot(key=key, value=encoded))
        else:
            slot.value = encoded
        await self.session.commit()

    async def remove(self, key: str) -> None:
        slot = await self.session.get(StorageSlot, key)
        if slot is None:
            return
        await self.session.delete(slot)
        await self.session.commit()
