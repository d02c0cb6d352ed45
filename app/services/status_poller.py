"""Independent interval polling for the external status panels.

Each panel owns its own asyncio task and its own cached result; there is no
shared coordinator. Stopping a panel cancels its task.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from pydantic import BaseModel

from app.core.config import Settings
from app.schemas.integrations import PanelSnapshot
from app.services.deployment import get_deployment_status
from app.services.storage import utcnow
from app.services.supabase import check_supabase_connection

StatusCheck = Callable[[], Awaitable[BaseModel]]

logger = logging.getLogger(__name__)


class StatusPanel:
    def __init__(self, name: str, check: StatusCheck, *, interval_seconds: float = 30.0):
        self.name = name
        self.check = check
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self._result: BaseModel | None = None
        self._error: str | None = None
        self._checked_at: datetime | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> PanelSnapshot:
        return PanelSnapshot(
            name=self.name,
            interval_seconds=self.interval_seconds,
            running=self.running,
            checked_at=self._checked_at,
            result=self._result.model_dump(mode="json") if self._result is not None else None,
            error=self._error,
        )

    async def refresh(self) -> PanelSnapshot:
        """Run the check once and cache its outcome."""

        try:
            result = await self.check()
        except Exception as exc:
            logger.exception("Status check failed", extra={"panel": self.name})
            self._error = str(exc) or "Status check failed"
        else:
            self._result = result
            self._error = None
        self._checked_at = utcnow()
        return self.snapshot()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"status-panel-{self.name}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self.interval_seconds)


def build_status_panels(settings: Settings) -> dict[str, StatusPanel]:
    interval = settings.status_poll_interval
    return {
        "supabase": StatusPanel(
            "supabase", check_supabase_connection, interval_seconds=interval
        ),
        "deployment": StatusPanel(
            "deployment", get_deployment_status, interval_seconds=interval
        ),
    }
