from __future__ import annotations

import logging

import discord
from discord.ext import commands

from core.bot import TicketBot
from core.config import CommunityConfig
from views.ticket_controls import idle_reminder_embed
from views.ticket_panel import TicketPanelView, is_panel_message, panel_embed

LOGGER = logging.getLogger(__name__)


class EventsCog(commands.Cog):
    def __init__(self, bot: TicketBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        for community in self.bot.config.communities.values():
            try:
                await self.deploy_panel(community)
            except (discord.HTTPException, RuntimeError):
                LOGGER.exception("Error sending ticket panel", extra={"guild_id": community.guild_id})

    async def deploy_panel(self, community: CommunityConfig) -> None:
        """Edit the most recent panel in the panel channel, or post a fresh one."""
        guild = self.bot.get_guild(community.guild_id)
        if guild is None:
            LOGGER.warning("Guild %s not available for ticket panel", community.guild_id)
            return
        channel = guild.get_channel(community.panel_channel_id)
        if not isinstance(channel, discord.TextChannel):
            LOGGER.warning("Panel channel %s not found in guild %s", community.panel_channel_id, guild.id)
            return

        bot_user_id = self.bot.user.id if self.bot.user else 0
        async for message in channel.history(limit=self.bot.config.tickets.panel_history_limit):
            if is_panel_message(message, bot_user_id):
                await message.edit(embed=panel_embed(), view=TicketPanelView())
                LOGGER.info("Updated existing ticket panel in guild %s", guild.id)
                return

        await channel.send(embed=panel_embed(), view=TicketPanelView())
        LOGGER.info("Sent new ticket panel in guild %s", guild.id)

    @commands.Cog.listener()
    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel) -> None:
        if self.bot.config.community(channel.guild.id) is None:
            return
        await self.bot.sessions.remove(channel.id)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if not message.guild or not isinstance(message.channel, discord.TextChannel):
            return
        suppress = await self.bot.idle_guard.should_suppress(
            message.channel.id,
            author_is_bot=message.author.bot,
            is_system=message.is_system(),
        )
        if not suppress:
            return

        try:
            await message.delete()
        except discord.NotFound:
            pass
        except discord.HTTPException:
            LOGGER.warning("Could not remove message in pending ticket %s", message.channel.id, exc_info=True)

        try:
            await message.channel.send(
                embed=idle_reminder_embed(message.author),
                delete_after=self.bot.idle_guard.reminder_seconds,
            )
        except discord.HTTPException:
            LOGGER.warning("Could not send idle reminder in %s", message.channel.id, exc_info=True)


async def setup(bot: TicketBot) -> None:
    await bot.add_cog(EventsCog(bot))
