from __future__ import annotations

import pytest

from database.models import PendingTicket, TicketDraft
from database.sessions import MemorySessionBackend, SessionStore
from services.idle_guard import IdleChannelGuard
from utils.constants import Reason


def _store() -> SessionStore:
    return SessionStore(MemorySessionBackend(), key_prefix="test")


@pytest.mark.asyncio
async def test_pending_and_draft_round_trip() -> None:
    store = _store()
    await store.put_pending(PendingTicket(channel_id=1, user_id=2, ticket_number=3, guild_id=4))
    await store.put_draft(
        TicketDraft(channel_id=1, user_id=2, guild_id=4, reason=Reason.SUPPORT, details={"support_details": "x"})
    )

    draft = await store.get_draft(1)
    assert draft is not None and draft.reason is Reason.SUPPORT
    assert draft.details == {"support_details": "x"}
    assert await store.owner_of(1) == 2


@pytest.mark.asyncio
async def test_remove_purges_both_records() -> None:
    store = _store()
    await store.put_pending(PendingTicket(channel_id=1, user_id=2, ticket_number=3, guild_id=4))
    await store.put_draft(TicketDraft(channel_id=1, user_id=2, guild_id=4))

    await store.remove(1)

    assert await store.get_pending(1) is None
    assert await store.get_draft(1) is None
    assert await store.owner_of(1) is None


@pytest.mark.asyncio
async def test_list_pending_filters_by_guild() -> None:
    store = _store()
    await store.put_pending(PendingTicket(channel_id=11, user_id=1, ticket_number=5, guild_id=100))
    await store.put_pending(PendingTicket(channel_id=12, user_id=2, ticket_number=2, guild_id=100))
    await store.put_pending(PendingTicket(channel_id=13, user_id=3, ticket_number=1, guild_id=200))

    rows = await store.list_pending(100)

    assert [row.ticket_number for row in rows] == [2, 5]


@pytest.mark.asyncio
async def test_idle_guard_only_suppresses_humans_in_pending_channels() -> None:
    store = _store()
    await store.put_pending(PendingTicket(channel_id=1, user_id=2, ticket_number=3, guild_id=4))
    guard = IdleChannelGuard(store, reminder_seconds=5.0)

    assert await guard.should_suppress(1, author_is_bot=False, is_system=False)
    assert not await guard.should_suppress(1, author_is_bot=True, is_system=False)
    assert not await guard.should_suppress(1, author_is_bot=False, is_system=True)
    assert not await guard.should_suppress(99, author_is_bot=False, is_system=False)

    await store.remove(1)
    assert not await guard.should_suppress(1, author_is_bot=False, is_system=False)
