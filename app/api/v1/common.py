"""Common helpers for API responses and storage-backed dependencies."""
from __future__ import annotations

from typing import TypeVar

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_session
from app.services.storage import KeyValueStore


T = TypeVar("T")


def data_response(payload: T) -> dict[str, T]:
    """Wrap a payload in the standard data envelope."""

    return {"data": payload}


async def get_store(session: AsyncSession = Depends(get_session)) -> KeyValueStore:
    """Provide the request-scoped key-value store."""

    return KeyValueStore(session)
