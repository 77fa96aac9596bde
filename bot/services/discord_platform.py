from __future__ import annotations

import logging

import discord
from discord.ext import commands

from core.config import AppConfig, CommunityConfig
from database.models import TicketSummary
from services.actions import delete_id
from services.platform import OwnerNotice, TicketPlatform
from utils.constants import UNKNOWN_CHANNEL_CODE
from views.ticket_controls import (
    TicketControlsView,
    WelcomeView,
    log_embed,
    owner_notice_embed,
    summary_content,
    summary_embed,
    welcome_embed,
)

LOGGER = logging.getLogger(__name__)


class DiscordTicketPlatform(TicketPlatform):
    def __init__(self, bot: commands.Bot, config: AppConfig) -> None:
        self.bot = bot
        self.config = config

    def _guild(self, guild_id: int) -> discord.Guild:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            raise RuntimeError(f"Guild {guild_id} is not available")
        return guild

    def _text_channel(self, guild_id: int, channel_id: int) -> discord.TextChannel | None:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            return None
        channel = guild.get_channel(channel_id)
        return channel if isinstance(channel, discord.TextChannel) else None

    def _channel_by_id(self, channel_id: int) -> discord.TextChannel | None:
        channel = self.bot.get_channel(channel_id)
        return channel if isinstance(channel, discord.TextChannel) else None

    async def _member(self, guild: discord.Guild, user_id: int) -> discord.Member:
        member = guild.get_member(user_id)
        if member is None:
            member = await guild.fetch_member(user_id)
        return member

    async def find_ticket_channel(self, guild_id: int, user_id: int) -> int | None:
        guild = self._guild(guild_id)
        prefix = self.config.tickets.channel_prefix
        for channel in guild.text_channels:
            if channel.name.startswith(prefix) and channel.topic == str(user_id):
                return channel.id
        return None

    async def get_channel_name(self, guild_id: int, channel_id: int) -> str | None:
        channel = self._text_channel(guild_id, channel_id)
        return channel.name if channel else None

    async def channel_owner(self, guild_id: int, channel_id: int) -> int | None:
        channel = self._text_channel(guild_id, channel_id)
        if channel is None or not channel.topic or not channel.topic.isdigit():
            return None
        return int(channel.topic)

    async def create_ticket_channel(self, community: CommunityConfig, name: str, owner_id: int) -> int:
        guild = self._guild(community.guild_id)
        owner = await self._member(guild, owner_id)
        overwrites: dict[discord.abc.Snowflake, discord.PermissionOverwrite] = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
            owner: discord.PermissionOverwrite(
                view_channel=True,
                read_message_history=True,
                send_messages=False,
            ),
            guild.me: discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                read_message_history=True,
                manage_channels=True,
                manage_messages=True,
            ),
        }
        staff_role = guild.get_role(community.staff_role_id)
        if staff_role is not None:
            overwrites[staff_role] = discord.PermissionOverwrite(view_channel=True, send_messages=True)
        else:
            LOGGER.warning("Staff role %s not found in guild %s", community.staff_role_id, guild.id)

        category = guild.get_channel(community.category_id)
        if not isinstance(category, discord.CategoryChannel):
            category = None

        channel = await guild.create_text_channel(
            name=name,
            category=category,
            topic=str(owner_id),
            overwrites=overwrites,
            reason=f"Ticket created by {owner} ({owner.id})",
        )
        return channel.id

    async def post_welcome(self, channel_id: int, owner_id: int, ticket_number: int) -> None:
        channel = self._channel_by_id(channel_id)
        if channel is None:
            return
        await channel.send(embed=welcome_embed(owner_id, ticket_number), view=WelcomeView(channel_id))

    async def remove_welcome(self, channel_id: int) -> None:
        channel = self._channel_by_id(channel_id)
        if channel is None or self.bot.user is None:
            return
        async for message in channel.history(limit=50):
            if message.author.id != self.bot.user.id or not message.components:
                continue
            children = getattr(message.components[0], "children", [])
            if children and getattr(children[0], "custom_id", None) == delete_id(channel_id):
                await message.delete()
                return

    async def grant_access(self, guild_id: int, channel_id: int, user_id: int) -> None:
        channel = self._text_channel(guild_id, channel_id)
        if channel is None:
            return
        member = await self._member(channel.guild, user_id)
        await channel.set_permissions(
            member,
            view_channel=True,
            send_messages=True,
            read_message_history=True,
            attach_files=True,
        )

    async def post_summary(self, summary: TicketSummary) -> None:
        channel = self._text_channel(summary.guild_id, summary.channel_id)
        if channel is None:
            raise RuntimeError(f"Ticket channel {summary.channel_id} disappeared before finalize")
        await channel.send(
            content=summary_content(summary),
            embed=summary_embed(summary),
            view=TicketControlsView(summary.channel_id),
        )

    async def post_log(self, community: CommunityConfig, summary: TicketSummary) -> None:
        if not community.log_channel_id:
            return
        guild = self._guild(community.guild_id)
        log_channel = guild.get_channel(community.log_channel_id)
        if log_channel is None:
            log_channel = await guild.fetch_channel(community.log_channel_id)
        if not isinstance(log_channel, discord.TextChannel):
            LOGGER.warning("Log channel %s is not a text channel", community.log_channel_id)
            return
        owner = guild.get_member(summary.owner_id)
        await log_channel.send(embed=log_embed(summary, owner))

    async def delete_channel(self, guild_id: int, channel_id: int, reason: str) -> bool:
        channel = self._text_channel(guild_id, channel_id)
        if channel is None:
            return False
        try:
            await channel.delete(reason=reason)
        except discord.NotFound:
            return False
        except discord.HTTPException as exc:
            if exc.code == UNKNOWN_CHANNEL_CODE:
                return False
            raise
        return True

    async def notify_owner(self, user_id: int, notice: OwnerNotice) -> None:
        user = self.bot.get_user(user_id) or await self.bot.fetch_user(user_id)
        guild = self.bot.get_guild(notice.guild_id)
        guild_name = guild.name if guild else "the server"
        await user.send(embed=owner_notice_embed(notice, guild_name))
