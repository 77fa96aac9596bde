from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from core.config import CommunityConfig
from database.models import TicketSummary


@dataclass(frozen=True, slots=True)
class OwnerNotice:
    guild_id: int
    channel_name: str
    closed_by_id: int
    closed_by_name: str


class TicketPlatform(Protocol):
    """Chat-platform operations the ticket lifecycle depends on.

    ``get_channel_name`` returning None means the channel no longer exists.
    ``delete_channel`` must treat an already-deleted channel as success and
    report it by returning False.
    """

    async def find_ticket_channel(self, guild_id: int, user_id: int) -> int | None: ...

    async def get_channel_name(self, guild_id: int, channel_id: int) -> str | None: ...

    async def channel_owner(self, guild_id: int, channel_id: int) -> int | None: ...

    async def create_ticket_channel(self, community: CommunityConfig, name: str, owner_id: int) -> int: ...

    async def post_welcome(self, channel_id: int, owner_id: int, ticket_number: int) -> None: ...

    async def remove_welcome(self, channel_id: int) -> None: ...

    async def grant_access(self, guild_id: int, channel_id: int, user_id: int) -> None: ...

    async def post_summary(self, summary: TicketSummary) -> None: ...

    async def post_log(self, community: CommunityConfig, summary: TicketSummary) -> None: ...

    async def delete_channel(self, guild_id: int, channel_id: int, reason: str) -> bool: ...

    async def notify_owner(self, user_id: int, notice: OwnerNotice) -> None: ...
