from __future__ import annotations

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from discord import app_commands

from cogs.events import EventsCog
from cogs.tickets import TicketsCog
from core.config import AppConfig, CommunityConfig, DiscordConfig
from core.errors import GENERIC_RETRY_MESSAGE, CommunityNotConfiguredError, handle_app_command_error
from database.models import PendingTicket
from database.sessions import MemorySessionBackend, SessionStore
from services.actions import CancelClose, CreateTicket, create_id
from services.discord_platform import DiscordTicketPlatform
from services.idle_guard import IdleChannelGuard
from views.prompts import modal_values

GUILD_ID = 111111111111111111
OWNER_ID = 222222222222222222


def _config() -> AppConfig:
    return AppConfig(
        discord=DiscordConfig(token="x"),
        communities={
            GUILD_ID: CommunityConfig(guild_id=GUILD_ID, panel_channel_id=1, category_id=2, staff_role_id=3)
        },
    )


def _http_error(cls: type[discord.HTTPException], code: int, message: str) -> discord.HTTPException:
    response = MagicMock(status=404, reason="Not Found")
    return cls(response, {"code": code, "message": message})


def _interaction() -> MagicMock:
    interaction = MagicMock()
    interaction.guild_id = GUILD_ID
    interaction.channel_id = 444
    interaction.user.id = OWNER_ID
    interaction.response.is_done = MagicMock(return_value=False)
    interaction.response.send_message = AsyncMock()
    interaction.response.edit_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


@pytest.mark.asyncio
async def test_find_ticket_channel_matches_owner_topic() -> None:
    guild = MagicMock()
    guild.text_channels = [
        SimpleNamespace(id=1, name="general", topic=str(OWNER_ID)),
        SimpleNamespace(id=2, name="ticket-4", topic="999"),
        SimpleNamespace(id=3, name="ticket-5", topic=str(OWNER_ID)),
    ]
    bot = MagicMock()
    bot.get_guild = MagicMock(return_value=guild)
    platform = DiscordTicketPlatform(bot, _config())

    assert await platform.find_ticket_channel(GUILD_ID, OWNER_ID) == 3
    assert await platform.find_ticket_channel(GUILD_ID, 12345) is None


@pytest.mark.asyncio
async def test_create_ticket_channel_hides_channel_until_finalized() -> None:
    member = MagicMock()
    member.id = OWNER_ID
    staff_role = MagicMock()
    category = MagicMock(spec=discord.CategoryChannel)

    guild = MagicMock()
    guild.id = GUILD_ID
    guild.default_role = MagicMock()
    guild.me = MagicMock()
    guild.get_member = MagicMock(return_value=member)
    guild.get_role = MagicMock(return_value=staff_role)
    guild.get_channel = MagicMock(return_value=category)
    guild.create_text_channel = AsyncMock(return_value=SimpleNamespace(id=987654321))
    bot = MagicMock()
    bot.get_guild = MagicMock(return_value=guild)
    config = _config()
    platform = DiscordTicketPlatform(bot, config)

    channel_id = await platform.create_ticket_channel(config.communities[GUILD_ID], "ticket-7", OWNER_ID)

    assert channel_id == 987654321
    kwargs = guild.create_text_channel.await_args.kwargs
    assert kwargs["name"] == "ticket-7"
    assert kwargs["topic"] == str(OWNER_ID)
    assert kwargs["category"] is category
    overwrites = kwargs["overwrites"]
    assert overwrites[guild.default_role].view_channel is False
    assert overwrites[member].view_channel is True
    assert overwrites[member].send_messages is False
    assert overwrites[staff_role].send_messages is True


@pytest.mark.asyncio
async def test_delete_channel_ignores_unknown_channel() -> None:
    channel = MagicMock(spec=discord.TextChannel)
    channel.delete = AsyncMock(side_effect=_http_error(discord.NotFound, 10003, "Unknown Channel"))
    guild = MagicMock()
    guild.get_channel = MagicMock(return_value=channel)
    bot = MagicMock()
    bot.get_guild = MagicMock(return_value=guild)
    platform = DiscordTicketPlatform(bot, _config())

    assert await platform.delete_channel(GUILD_ID, 5, reason="test") is False

    guild.get_channel = MagicMock(return_value=None)
    assert await platform.delete_channel(GUILD_ID, 5, reason="test") is False


def test_modal_values_flattens_action_rows() -> None:
    data = {
        "custom_id": "ticket:form:paypal_details:1",
        "components": [
            {"type": 1, "components": [{"type": 4, "custom_id": "paypal_id", "value": "me@example.com"}]},
            {"type": 18, "component": {"type": 4, "custom_id": "note", "value": "hi"}},
        ],
    }
    assert modal_values(data) == {"paypal_id": "me@example.com", "note": "hi"}
    assert modal_values(None) == {}


@pytest.mark.asyncio
async def test_dispatch_reports_configuration_error() -> None:
    bot = MagicMock()
    bot.ticket_service.community_for = MagicMock(side_effect=CommunityNotConfiguredError())
    cog = TicketsCog(bot)
    interaction = _interaction()

    await cog.dispatch(interaction, CreateTicket())

    embed = interaction.response.send_message.await_args.kwargs["embed"]
    assert embed.description == CommunityNotConfiguredError.user_message
    assert interaction.response.send_message.await_args.kwargs["ephemeral"] is True


@pytest.mark.asyncio
async def test_dispatch_hides_unexpected_errors() -> None:
    bot = MagicMock()
    bot.ticket_service.community_for = MagicMock(return_value=_config().communities[GUILD_ID])
    bot.ticket_service.create_ticket = AsyncMock(side_effect=RuntimeError("boom"))
    cog = TicketsCog(bot)
    interaction = _interaction()

    await cog.dispatch(interaction, CreateTicket())

    embed = interaction.response.send_message.await_args.kwargs["embed"]
    assert embed.description == GENERIC_RETRY_MESSAGE


@pytest.mark.asyncio
async def test_cancel_close_edits_confirmation() -> None:
    bot = MagicMock()
    bot.ticket_service.community_for = MagicMock(return_value=_config().communities[GUILD_ID])
    cog = TicketsCog(bot)
    interaction = _interaction()

    await cog.dispatch(interaction, CancelClose())

    kwargs = interaction.response.edit_message.await_args.kwargs
    assert kwargs["embed"].title == "Closure Cancelled"
    assert kwargs["view"] is None
    interaction.response.send_message.assert_not_awaited()


def _events_bot() -> MagicMock:
    bot = MagicMock()
    bot.config = _config()
    bot.user.id = 999
    return bot


def _text_channel(channel_id: int) -> MagicMock:
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = channel_id
    channel.send = AsyncMock()
    return channel


def _human_message(channel: MagicMock, *, bot_author: bool = False) -> MagicMock:
    message = MagicMock()
    message.channel = channel
    message.author.bot = bot_author
    message.author.mention = f"<@{OWNER_ID}>"
    message.is_system = MagicMock(return_value=False)
    message.delete = AsyncMock()
    return message


async def _pending_store(channel_id: int) -> SessionStore:
    store = SessionStore(MemorySessionBackend())
    await store.put_pending(PendingTicket(channel_id=channel_id, user_id=OWNER_ID, ticket_number=1, guild_id=GUILD_ID))
    return store


@pytest.mark.asyncio
async def test_message_in_pending_ticket_is_removed_with_reminder() -> None:
    bot = _events_bot()
    bot.sessions = await _pending_store(444)
    bot.idle_guard = IdleChannelGuard(bot.sessions, 5.0)
    cog = EventsCog(bot)
    channel = _text_channel(444)
    message = _human_message(channel)

    await cog.on_message(message)

    message.delete.assert_awaited_once()
    kwargs = channel.send.await_args.kwargs
    assert kwargs["delete_after"] == 5.0
    assert kwargs["embed"].title == "Please Complete Ticket Creation"


@pytest.mark.asyncio
async def test_bot_message_in_pending_ticket_is_left_alone() -> None:
    bot = _events_bot()
    bot.sessions = await _pending_store(444)
    bot.idle_guard = IdleChannelGuard(bot.sessions, 5.0)
    cog = EventsCog(bot)
    channel = _text_channel(444)
    message = _human_message(channel, bot_author=True)

    await cog.on_message(message)

    message.delete.assert_not_awaited()
    channel.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_reminder_is_sent_when_message_already_gone() -> None:
    bot = _events_bot()
    bot.sessions = await _pending_store(444)
    bot.idle_guard = IdleChannelGuard(bot.sessions, 5.0)
    cog = EventsCog(bot)
    channel = _text_channel(444)
    message = _human_message(channel)
    message.delete.side_effect = _http_error(discord.NotFound, 10008, "Unknown Message")

    await cog.on_message(message)

    channel.send.assert_awaited_once()


def _panel_channel(history: list[MagicMock]) -> MagicMock:
    channel = _text_channel(1)

    async def _history(*_: object, **__: object):
        for message in history:
            yield message

    channel.history = _history
    return channel


@pytest.mark.asyncio
async def test_deploy_panel_edits_existing_panel() -> None:
    bot = _events_bot()
    existing = MagicMock()
    existing.author.id = 999
    existing.components = [SimpleNamespace(children=[SimpleNamespace(custom_id=create_id())])]
    existing.edit = AsyncMock()
    unrelated = MagicMock()
    unrelated.author.id = 5
    unrelated.components = []
    channel = _panel_channel([unrelated, existing])
    bot.get_guild.return_value.get_channel.return_value = channel
    cog = EventsCog(bot)

    await cog.deploy_panel(bot.config.communities[GUILD_ID])

    existing.edit.assert_awaited_once()
    assert existing.edit.await_args.kwargs["embed"].title == "📩 Support Ticket System"
    channel.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_deploy_panel_sends_new_panel_when_none_found() -> None:
    bot = _events_bot()
    stranger = MagicMock()
    stranger.author.id = 999
    stranger.components = []
    channel = _panel_channel([stranger])
    bot.get_guild.return_value.get_channel.return_value = channel
    cog = EventsCog(bot)

    await cog.deploy_panel(bot.config.communities[GUILD_ID])

    channel.send.assert_awaited_once()
    assert channel.send.await_args.kwargs["view"] is not None


@pytest.mark.asyncio
async def test_panel_failure_in_one_guild_does_not_stop_others() -> None:
    bot = _events_bot()
    second = CommunityConfig(guild_id=GUILD_ID + 1, panel_channel_id=4, category_id=5, staff_role_id=6)
    bot.config.communities[second.guild_id] = second
    cog = EventsCog(bot)
    cog.deploy_panel = AsyncMock(side_effect=[_http_error(discord.Forbidden, 50013, "Missing Permissions"), None])

    await cog.on_ready()

    assert cog.deploy_panel.await_count == 2
    assert cog.deploy_panel.await_args.args[0] is second


@pytest.mark.asyncio
async def test_deleted_ticket_channel_drops_its_session() -> None:
    bot = _events_bot()
    bot.sessions = await _pending_store(444)
    cog = EventsCog(bot)
    channel = MagicMock()
    channel.id = 444
    channel.guild.id = GUILD_ID

    await cog.on_guild_channel_delete(channel)

    assert not await bot.sessions.has_pending(444)


@pytest.mark.asyncio
async def test_channel_delete_in_unconfigured_guild_is_ignored() -> None:
    bot = _events_bot()
    bot.sessions = await _pending_store(444)
    cog = EventsCog(bot)
    channel = MagicMock()
    channel.id = 444
    channel.guild.id = 999999

    await cog.on_guild_channel_delete(channel)

    assert await bot.sessions.has_pending(444)


@pytest.mark.asyncio
async def test_refused_slash_command_is_not_logged_as_error(caplog: pytest.LogCaptureFixture) -> None:
    interaction = _interaction()
    error = app_commands.CommandInvokeError(SimpleNamespace(name="ticket"), CommunityNotConfiguredError())

    with caplog.at_level(logging.INFO, logger="core.errors"):
        await handle_app_command_error(interaction, error)

    assert not [record for record in caplog.records if record.levelno >= logging.ERROR]
    assert any("Slash command refused" in record.getMessage() for record in caplog.records)
    embed = interaction.response.send_message.await_args.kwargs["embed"]
    assert embed.description == CommunityNotConfiguredError.user_message


@pytest.mark.asyncio
async def test_unexpected_slash_command_failure_is_logged_as_error(caplog: pytest.LogCaptureFixture) -> None:
    interaction = _interaction()
    error = app_commands.CommandInvokeError(SimpleNamespace(name="ticket"), RuntimeError("boom"))

    with caplog.at_level(logging.INFO, logger="core.errors"):
        await handle_app_command_error(interaction, error)

    assert any(record.levelno == logging.ERROR for record in caplog.records)
