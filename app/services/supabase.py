"""Supabase table client with a not-configured fallback."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from app.core.config import Settings, get_settings
from app.schemas.integrations import ConnectionCheck

SUPABASE_TABLES = frozenset({"dealerships", "users", "vehicles", "contacts", "todos", "locations"})
NOT_CONFIGURED_MESSAGE = "Supabase not configured"
NOT_CONFIGURED_HINT = (
    "Supabase not configured. Please update your .env file with actual credentials."
)

logger = logging.getLogger(__name__)


@dataclass
class SupabaseResult:
    """Outcome of a table operation; ``error`` holds the upstream message."""

    data: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _check_table(table: str) -> None:
    if table not in SUPABASE_TABLES:
        raise ValueError(f"Unknown Supabase table: {table}")


def _apply_filters(query: Any, filters: dict[str, Any] | None) -> Any:
    for column, value in (filters or {}).items():
        query = query.eq(column, value)
    return query


class SupabaseClient:
    """Table-level select/insert/update/delete over the Supabase client.

    The underlying ``AsyncClient`` is created on first use; pass ``client``
    to reuse an existing one.
    """

    def __init__(self, url: str, anon_key: str, *, client: AsyncClient | None = None):
        self.url = url
        self.anon_key = anon_key
        self._client = client

    async def get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await acreate_client(self.url, self.anon_key)
            logger.info("Supabase client initialized")
        return self._client

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> SupabaseResult:
        _check_table(table)

        def build(client: AsyncClient) -> Any:
            query = _apply_filters(client.table(table).select(columns), filters)
            if limit is not None:
                query = query.limit(limit)
            return query

        return await self._execute(table, build)

    async def insert(
        self, table: str, rows: dict[str, Any] | list[dict[str, Any]]
    ) -> SupabaseResult:
        _check_table(table)

        def build(client: AsyncClient) -> Any:
            return client.table(table).insert(rows)

        return await self._execute(table, build)

    async def update(
        self, table: str, values: dict[str, Any], *, filters: dict[str, Any]
    ) -> SupabaseResult:
        _check_table(table)

        def build(client: AsyncClient) -> Any:
            return _apply_filters(client.table(table).update(values), filters)

        return await self._execute(table, build)

    async def delete(self, table: str, *, filters: dict[str, Any]) -> SupabaseResult:
        _check_table(table)

        def build(client: AsyncClient) -> Any:
            return _apply_filters(client.table(table).delete(), filters)

        return await self._execute(table, build)

    async def _execute(self, table: str, build: Callable[[AsyncClient], Any]) -> SupabaseResult:
        try:
            client = await self.get_client()
        except Exception as exc:
            logger.error("Failed to create Supabase client", exc_info=exc)
            return SupabaseResult(error=f"Failed to create Supabase client: {exc}")

        try:
            response = await build(client).execute()
        except APIError as exc:
            logger.error(
                "Supabase API error",
                extra={"table": table, "code": exc.code, "details": exc.details},
            )
            return SupabaseResult(error=exc.message or "Supabase request failed")
        except httpx.HTTPError as exc:
            logger.error("Supabase request failed", extra={"table": table}, exc_info=exc)
            return SupabaseResult(error=str(exc) or "Connection failed")

        return SupabaseResult(data=response.data)


class MockSupabaseClient:
    """No-op stand-in used when Supabase credentials are missing."""

    async def select(self, table: str, columns: str = "*", **_: Any) -> SupabaseResult:
        _check_table(table)
        return SupabaseResult(data=[], error=NOT_CONFIGURED_MESSAGE)

    async def insert(self, table: str, rows: Any) -> SupabaseResult:
        _check_table(table)
        return SupabaseResult(error=NOT_CONFIGURED_MESSAGE)

    async def update(self, table: str, values: dict[str, Any], **_: Any) -> SupabaseResult:
        _check_table(table)
        return SupabaseResult(error=NOT_CONFIGURED_MESSAGE)

    async def delete(self, table: str, **_: Any) -> SupabaseResult:
        _check_table(table)
        return SupabaseResult(error=NOT_CONFIGURED_MESSAGE)


def is_supabase_configured(settings: Settings | None = None) -> bool:
    return (settings or get_settings()).supabase_configured


def get_supabase_client(settings: Settings | None = None) -> SupabaseClient | MockSupabaseClient:
    settings = settings or get_settings()
    if not settings.supabase_configured:
        return MockSupabaseClient()
    return SupabaseClient(settings.supabase_url, settings.supabase_anon_key)


async def check_supabase_connection(
    client: SupabaseClient | MockSupabaseClient | None = None,
    settings: Settings | None = None,
) -> ConnectionCheck:
    """Query the ``dealerships`` table and report the outcome."""

    settings = settings or get_settings()
    if not settings.supabase_configured:
        return ConnectionCheck(success=False, message=NOT_CONFIGURED_HINT)

    client = client or get_supabase_client(settings)
    result = await client.select("dealerships", "id", limit=1)
    if not result.ok:
        return ConnectionCheck(success=False, message=result.error or "Connection failed")
    return ConnectionCheck(success=True, message="Connected successfully")
