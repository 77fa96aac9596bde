from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from utils.embeds import error_embed

LOGGER = logging.getLogger(__name__)

GENERIC_RETRY_MESSAGE = "An error occurred while processing your request. Please try again."


class BotError(RuntimeError):
    user_message: str = "An unexpected error occurred."

    def __init__(self, user_message: str | None = None) -> None:
        if user_message is not None:
            self.user_message = user_message
        super().__init__(self.user_message)


class CommunityNotConfiguredError(BotError):
    user_message = "This server is not configured for tickets. Please contact an administrator."


class DuplicateTicketError(BotError):
    def __init__(self, channel_id: int) -> None:
        self.channel_id = channel_id
        super().__init__(
            f"You already have an open ticket: <#{channel_id}>\n\n"
            "Please use your existing ticket or close it before creating a new one."
        )


class TicketCreationInProgressError(BotError):
    user_message = "Your ticket is already being created. Please wait a moment."


class PermissionDeniedError(BotError):
    user_message = "Only the ticket creator, server admins, or server owner can manage this ticket."


class SessionExpiredError(BotError):
    user_message = "Ticket data not found. Please create a new ticket."


class TicketChannelMissingError(BotError):
    user_message = "Ticket channel not found. Please create a new ticket."


class InvalidTicketChannelError(BotError):
    user_message = "This command can only be used in ticket channels."


class InvalidSelectionError(BotError):
    user_message = "That option is no longer available. Please try again."


class FinalizeError(BotError):
    user_message = "Failed to finalize ticket. Please try again."


async def send_error_response(
    target: commands.Context[commands.Bot] | discord.Interaction[commands.Bot], message: str
) -> None:
    embed = error_embed(message)
    if isinstance(target, commands.Context):
        await target.reply(embed=embed, mention_author=False)
        return
    if target.response.is_done():
        await target.followup.send(embed=embed, ephemeral=True)
    else:
        await target.response.send_message(embed=embed, ephemeral=True)


async def handle_app_command_error(
    interaction: discord.Interaction[commands.Bot], error: app_commands.AppCommandError
) -> None:
    message = "An unexpected slash-command error occurred."
    original = getattr(error, "original", error)
    if isinstance(error, app_commands.CheckFailure):
        message = "You are not authorized for this command."
    elif isinstance(original, BotError):
        message = original.user_message

    command_name = getattr(interaction.command, "qualified_name", None)
    guild_id = getattr(interaction.guild, "id", None)
    user_id = interaction.user.id if interaction.user else None
    if isinstance(original, BotError):
        LOGGER.info(
            "Slash command refused. command=%s guild=%s user=%s: %s", command_name, guild_id, user_id, original
        )
    else:
        LOGGER.exception(
            "Slash command failed. command=%s guild=%s user=%s",
            command_name,
            guild_id,
            user_id,
            exc_info=error,
        )
    try:
        await send_error_response(interaction, message)
    except discord.HTTPException:
        LOGGER.warning("Could not deliver slash-command error response")
