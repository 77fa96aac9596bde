from __future__ import annotations

import logging
from pathlib import Path

import discord
from discord.ext import commands

from core.config import AppConfig
from core.errors import handle_app_command_error
from database.counters import TicketCounterStore
from database.sessions import SessionStore, build_session_store
from services.discord_platform import DiscordTicketPlatform
from services.idle_guard import IdleChannelGuard
from services.notifications import WebhookLogger
from services.ticket_service import TicketService, TicketServiceDeps

LOGGER = logging.getLogger(__name__)


async def load_extensions(bot: commands.Bot, extension_names: list[str]) -> None:
    for ext in extension_names:
        try:
            await bot.load_extension(ext)
            LOGGER.info("Loaded extension: %s", ext)
        except commands.ExtensionAlreadyLoaded:
            LOGGER.warning("Extension already loaded: %s", ext)
        except commands.ExtensionError:
            LOGGER.exception("Failed to load extension: %s", ext)


class TicketBot(commands.Bot):
    def __init__(self, config: AppConfig) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True
        intents.messages = True
        intents.message_content = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            application_id=config.discord.application_id,
            allowed_mentions=discord.AllowedMentions(everyone=False, roles=True, users=True, replied_user=False),
            help_command=None,
        )
        self.config = config
        self.root_dir = Path(__file__).resolve().parent.parent
        self.counters = TicketCounterStore(Path(config.tickets.counters_path))

        # Services are initialized during setup_hook.
        self.sessions: SessionStore
        self.ticket_service: TicketService
        self.idle_guard: IdleChannelGuard

    async def setup_hook(self) -> None:
        await self.counters.load()
        self.sessions = build_session_store(self.config.redis)

        deps = TicketServiceDeps(
            counters=self.counters,
            sessions=self.sessions,
            platform=DiscordTicketPlatform(self, self.config),
            webhook=WebhookLogger(self.config.webhook_log),
        )
        self.ticket_service = TicketService(self.config, deps)
        self.idle_guard = IdleChannelGuard(self.sessions, self.config.tickets.idle_reminder_seconds)

        await load_extensions(self, self.config.enabled_extensions)
        self.tree.on_error = handle_app_command_error  # type: ignore[assignment]

        if self.config.discord.sync_commands_on_start:
            await self.sync_guild_commands()

    async def sync_guild_commands(self) -> None:
        for guild_id in self.config.communities:
            guild = discord.Object(id=guild_id)
            try:
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                LOGGER.info("Synced %s application commands for guild %s", len(synced), guild_id)
            except discord.HTTPException:
                LOGGER.exception("Error registering commands for guild %s", guild_id)

    async def on_ready(self) -> None:
        LOGGER.info("Bot ready as %s (%s)", self.user, self.user.id if self.user else "n/a")
        activity_type = self.config.discord.activity_type.lower()
        if activity_type == "playing":
            activity = discord.Game(name=self.config.discord.status_text)
        elif activity_type == "listening":
            activity = discord.Activity(
                type=discord.ActivityType.listening, name=self.config.discord.status_text
            )
        else:
            activity = discord.Activity(
                type=discord.ActivityType.watching, name=self.config.discord.status_text
            )
        await self.change_presence(status=discord.Status.online, activity=activity)

    async def close(self) -> None:
        if hasattr(self, "ticket_service"):
            await self.ticket_service.background.drain()
        await super().close()
        if hasattr(self, "sessions"):
            await self.sessions.close()
