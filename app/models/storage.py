"""Key-value storage slot model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class StorageSlot(Base):
    """A JSON document stored under a single key.

    Each entity collection of a dealership (contacts, todos, calendar events,
    settings) lives in its own slot, e.g. ``dealership_todos_<dealership id>``.
    """

    __tablename__ = "storage_slots"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
