"""Database models package for the dealership reconditioning manager."""

from .base import Base
from .storage import StorageSlot

__all__ = [
    "Base",
    "StorageSlot",
]
