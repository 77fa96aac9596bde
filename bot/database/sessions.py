from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol

import redis.asyncio as redis

from core.config import RedisConfig
from database.models import PendingTicket, TicketDraft


class SessionBackend(Protocol):
    async def get(self, key: str) -> dict[str, Any] | None: ...
    async def set(self, key: str, value: dict[str, Any]) -> None: ...
    async def delete(self, *keys: str) -> None: ...
    async def keys(self, prefix: str) -> list[str]: ...
    async def close(self) -> None: ...


class MemorySessionBackend(SessionBackend):
    """Process-local backend. Pending tickets and drafts are lost on restart."""

    def __init__(self) -> None:
        self._store: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> dict[str, Any] | None:
        async with self._lock:
            value = self._store.get(key)
            return dict(value) if value is not None else None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        async with self._lock:
            self._store[key] = dict(value)

    async def delete(self, *keys: str) -> None:
        async with self._lock:
            for key in keys:
                self._store.pop(key, None)

    async def keys(self, prefix: str) -> list[str]:
        async with self._lock:
            return [key for key in self._store if key.startswith(prefix)]

    async def close(self) -> None:
        self._store.clear()


class RedisSessionBackend(SessionBackend):
    def __init__(self, url: str) -> None:
        self._client = redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> dict[str, Any] | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: dict[str, Any]) -> None:
        await self._client.set(key, json.dumps(value, ensure_ascii=True, separators=(",", ":")))

    async def delete(self, *keys: str) -> None:
        if keys:
            await self._client.delete(*keys)

    async def keys(self, prefix: str) -> list[str]:
        return [key async for key in self._client.scan_iter(match=f"{prefix}*")]

    async def close(self) -> None:
        await self._client.aclose()


class SessionStore:
    """Owner of per-channel PendingTicket and TicketDraft state."""

    def __init__(self, backend: SessionBackend, key_prefix: str = "tickets") -> None:
        self.backend = backend
        self.key_prefix = key_prefix

    def _pending_key(self, channel_id: int) -> str:
        return f"{self.key_prefix}:pending:{channel_id}"

    def _draft_key(self, channel_id: int) -> str:
        return f"{self.key_prefix}:draft:{channel_id}"

    async def get_pending(self, channel_id: int) -> PendingTicket | None:
        data = await self.backend.get(self._pending_key(channel_id))
        return PendingTicket.from_dict(data) if data else None

    async def put_pending(self, pending: PendingTicket) -> None:
        await self.backend.set(self._pending_key(pending.channel_id), pending.to_dict())

    async def has_pending(self, channel_id: int) -> bool:
        return await self.get_pending(channel_id) is not None

    async def get_draft(self, channel_id: int) -> TicketDraft | None:
        data = await self.backend.get(self._draft_key(channel_id))
        return TicketDraft.from_dict(data) if data else None

    async def put_draft(self, draft: TicketDraft) -> None:
        await self.backend.set(self._draft_key(draft.channel_id), draft.to_dict())

    async def remove(self, channel_id: int) -> None:
        await self.backend.delete(self._pending_key(channel_id), self._draft_key(channel_id))

    async def owner_of(self, channel_id: int) -> int | None:
        pending = await self.get_pending(channel_id)
        if pending:
            return pending.user_id
        draft = await self.get_draft(channel_id)
        return draft.user_id if draft else None

    async def list_pending(self, guild_id: int | None = None) -> list[PendingTicket]:
        rows: list[PendingTicket] = []
        for key in await self.backend.keys(f"{self.key_prefix}:pending:"):
            data = await self.backend.get(key)
            if not data:
                continue
            pending = PendingTicket.from_dict(data)
            if guild_id is None or pending.guild_id == guild_id:
                rows.append(pending)
        return sorted(rows, key=lambda row: row.ticket_number)

    async def close(self) -> None:
        await self.backend.close()


def build_session_store(config: RedisConfig) -> SessionStore:
    if config.enabled:
        return SessionStore(RedisSessionBackend(config.url), key_prefix=config.key_prefix)
    return SessionStore(MemorySessionBackend(), key_prefix=config.key_prefix)
