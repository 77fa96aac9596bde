from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import Any

import aiohttp

from core.config import WebhookLogConfig

LOGGER = logging.getLogger(__name__)


async def best_effort(call: Awaitable[Any], description: str, **context: Any) -> bool:
    """Await a non-essential platform call; failures are logged and reported as False."""
    try:
        await call
    except Exception:
        LOGGER.warning("Best-effort call failed: %s %s", description, context or "", exc_info=True)
        return False
    return True


class BackgroundNotifier:
    """Runs best-effort calls off the interaction path and keeps their task handles alive."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, call: Awaitable[Any], description: str, **context: Any) -> asyncio.Task[bool]:
        task = asyncio.create_task(best_effort(call, description, **context), name=f"notify:{description}")
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task[bool]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            LOGGER.warning("Background call cancelled: %s", task.get_name())

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class WebhookLogger:
    def __init__(self, config: WebhookLogConfig) -> None:
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.url)

    async def send(self, title: str, payload: dict[str, Any]) -> None:
        if not self.enabled:
            return
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.config.url,
                    json={
                        "content": None,
                        "embeds": [
                            {
                                "title": title,
                                "description": f"```json\n{json.dumps(payload, indent=2)[:3500]}\n```",
                                "timestamp": datetime.now(UTC).isoformat(),
                            }
                        ],
                    },
                    timeout=aiohttp.ClientTimeout(total=10),
                ) as response:
                    if response.status >= 400:
                        LOGGER.warning("Webhook log rejected with status %s", response.status)
        except (aiohttp.ClientError, TimeoutError):
            LOGGER.exception("Failed to send webhook ticket log")
