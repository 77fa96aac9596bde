from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

LOGGER = logging.getLogger(__name__)


class CounterStoreError(RuntimeError):
    pass


class TicketCounterStore:
    """Per-guild ticket numbers persisted as a flat JSON object of guild id -> int.

    ``allocate`` bumps the in-memory value before its first suspension point, so
    concurrent allocations for the same guild can never observe the same number.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._counters: dict[str, int] = {}
        self._save_lock = asyncio.Lock()

    def snapshot(self) -> dict[str, int]:
        return dict(self._counters)

    def current(self, guild_id: int) -> int:
        return self._counters.get(str(guild_id), 0)

    async def load(self) -> dict[str, int]:
        if not self.path.exists():
            await self.save()
            LOGGER.info("Created new ticket counters file at %s", self.path)
            return self.snapshot()
        raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        try:
            payload = json.loads(raw or "{}")
        except json.JSONDecodeError as exc:
            raise CounterStoreError(f"Ticket counters file is corrupt: {self.path}") from exc
        if not isinstance(payload, dict):
            raise CounterStoreError("Ticket counters file must contain a JSON object")
        try:
            self._counters = {str(key): int(value) for key, value in payload.items()}
        except (TypeError, ValueError) as exc:
            raise CounterStoreError(f"Ticket counters file holds a non-integer value: {self.path}") from exc
        LOGGER.info("Loaded ticket counters for %s guild(s)", len(self._counters))
        return self.snapshot()

    async def save(self) -> None:
        async with self._save_lock:
            data = json.dumps(self.snapshot())
            await asyncio.to_thread(self._write, data)

    def _write(self, data: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(data, encoding="utf-8")
        os.replace(tmp_path, self.path)

    async def allocate(self, guild_id: int) -> int:
        key = str(guild_id)
        number = self._counters.get(key, 0) + 1
        self._counters[key] = number
        try:
            await self.save()
        except OSError:
            # The number stays allocated in memory; only durability is lost.
            LOGGER.exception("Error saving ticket counters (guild=%s number=%s)", guild_id, number)
        return number
