from __future__ import annotations

import logging
from typing import Any

import discord
from discord import app_commands
from discord.ext import commands

from core.bot import TicketBot
from core.errors import GENERIC_RETRY_MESSAGE, BotError, SessionExpiredError, send_error_response
from services.actions import (
    CancelClose,
    CloseTicket,
    ConfirmClose,
    CreateTicket,
    DeleteTicket,
    DetailSubmission,
    QuestionnaireStep,
    TicketAction,
    decode_action,
)
from services.questionnaire import FormPrompt, OptionsPrompt, Step
from services.ticket_service import (
    Actor,
    PromptNext,
    TicketCreated,
    TicketFinalized,
    TicketOutcome,
)
from utils.embeds import success_embed
from views.prompts import form_modal, modal_values, options_prompt_message
from views.ticket_controls import ConfirmCloseView, close_cancelled_embed, confirm_close_embed
from views.ticket_panel import CreateTicketView, slash_prompt_embed

LOGGER = logging.getLogger(__name__)

_HANDLED_TYPES = (discord.InteractionType.component, discord.InteractionType.modal_submit)


def _actor(interaction: discord.Interaction[Any]) -> Actor:
    user = interaction.user
    is_admin = isinstance(user, discord.Member) and user.guild_permissions.administrator
    is_owner = interaction.guild is not None and interaction.guild.owner_id == user.id
    return Actor(
        user_id=user.id,
        display_name=str(user),
        is_admin=is_admin,
        is_guild_owner=is_owner,
    )


class TicketsCog(commands.Cog):
    def __init__(self, bot: TicketBot) -> None:
        self.bot = bot

    @app_commands.command(name="ticket", description="Create a new support ticket")
    @app_commands.guild_only()
    async def ticket(self, interaction: discord.Interaction[TicketBot]) -> None:
        self.bot.ticket_service.community_for(interaction.guild_id)
        await interaction.response.send_message(
            embed=slash_prompt_embed(),
            view=CreateTicketView(),
            ephemeral=True,
        )

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction[TicketBot]) -> None:
        if interaction.type not in _HANDLED_TYPES:
            return
        data: dict[str, Any] = dict(interaction.data or {})
        custom_id = data.get("custom_id")
        if not custom_id:
            return
        fields = modal_values(data) if interaction.type is discord.InteractionType.modal_submit else None
        action = decode_action(str(custom_id), data.get("values"), fields)
        if action is None:
            return
        await self.dispatch(interaction, action)

    async def dispatch(self, interaction: discord.Interaction[TicketBot], action: TicketAction) -> None:
        context = {
            "guild_id": interaction.guild_id,
            "channel_id": interaction.channel_id,
            "user_id": interaction.user.id,
        }
        try:
            await self._handle(interaction, action)
        except BotError as exc:
            LOGGER.info("Ticket action %s refused: %s", type(action).__name__, exc, extra=context)
            await self._reply_error(interaction, exc.user_message)
        except Exception:
            LOGGER.exception("Ticket action %s failed", type(action).__name__, extra=context)
            await self._reply_error(interaction, GENERIC_RETRY_MESSAGE)

    async def _handle(self, interaction: discord.Interaction[TicketBot], action: TicketAction) -> None:
        service = self.bot.ticket_service
        community = service.community_for(interaction.guild_id)
        guild_id = community.guild_id
        user_id = interaction.user.id

        match action:
            case CreateTicket(preset=preset):
                created: TicketCreated = await service.create_ticket(guild_id, user_id, preset)
                await self._render_step(interaction, created.channel_id, created.step, edit=False)
            case QuestionnaireStep(channel_id=channel_id, node=node, value=value):
                outcome = await service.select(guild_id, channel_id, user_id, node, value)
                await self._render_outcome(interaction, outcome, edit=True)
            case DetailSubmission(channel_id=channel_id, node=node, fields=fields):
                await interaction.response.defer(ephemeral=True, thinking=True)
                outcome = await service.submit_details(guild_id, channel_id, user_id, node, fields)
                await self._render_outcome(interaction, outcome, edit=False)
            case DeleteTicket(channel_id=channel_id):
                await interaction.response.defer(ephemeral=True, thinking=True)
                deleted = await service.delete_ticket(guild_id, channel_id, _actor(interaction))
                if deleted.already_gone:
                    embed = success_embed("This ticket channel has already been deleted.", title="Ticket Already Closed")
                else:
                    embed = success_embed(
                        f"The ticket has been successfully cancelled by {interaction.user.mention}.",
                        title="Ticket Cancelled",
                    )
                await self._send_quietly(interaction, embed, ephemeral=True)
            case CloseTicket():
                channel_id = interaction.channel_id or 0
                requested = await service.request_close(guild_id, channel_id, _actor(interaction))
                await interaction.response.send_message(
                    embed=confirm_close_embed(),
                    view=ConfirmCloseView(requested.channel_id),
                )
            case ConfirmClose(channel_id=channel_id):
                await interaction.response.defer(thinking=True)
                closed = await service.confirm_close(guild_id, channel_id, _actor(interaction))
                if closed.already_gone:
                    embed = success_embed("This ticket channel has already been deleted.", title="Ticket Already Closed")
                    await self._send_quietly(interaction, embed, ephemeral=True)
                else:
                    embed = success_embed("This ticket has been successfully closed.", title="Ticket Closed")
                    await self._send_quietly(interaction, embed, ephemeral=False)
            case CancelClose():
                service.cancel_close()
                await interaction.response.edit_message(embed=close_cancelled_embed(), view=None)

    async def _render_step(
        self, interaction: discord.Interaction[TicketBot], channel_id: int, step: Step, *, edit: bool
    ) -> None:
        match step:
            case OptionsPrompt():
                embed, view = options_prompt_message(step, channel_id)
                if edit:
                    await interaction.response.edit_message(embed=embed, view=view)
                else:
                    await interaction.response.send_message(embed=embed, view=view, ephemeral=True)
            case FormPrompt():
                await interaction.response.send_modal(form_modal(step, channel_id))
            case _:
                raise SessionExpiredError()

    async def _render_outcome(
        self, interaction: discord.Interaction[TicketBot], outcome: TicketOutcome, *, edit: bool
    ) -> None:
        match outcome:
            case PromptNext(channel_id=channel_id, step=step):
                await self._render_step(interaction, channel_id, step, edit=edit)
            case TicketFinalized(channel_id=channel_id):
                embed = success_embed(
                    f"Your ticket has been successfully created: <#{channel_id}>",
                    title="Ticket Created",
                )
                if interaction.response.is_done():
                    await interaction.edit_original_response(embed=embed, view=None)
                elif edit:
                    await interaction.response.edit_message(embed=embed, view=None)
                else:
                    await interaction.response.send_message(embed=embed, ephemeral=True)
            case _:
                raise SessionExpiredError()

    async def _send_quietly(
        self, interaction: discord.Interaction[TicketBot], embed: discord.Embed, *, ephemeral: bool
    ) -> None:
        # The reply may target the channel that was just deleted.
        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=ephemeral)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=ephemeral)
        except discord.HTTPException as exc:
            LOGGER.debug("Confirmation not delivered: %s", exc)

    async def _reply_error(self, interaction: discord.Interaction[TicketBot], message: str) -> None:
        try:
            await send_error_response(interaction, message)
        except discord.HTTPException:
            LOGGER.warning("Could not deliver ticket error response")


async def setup(bot: TicketBot) -> None:
    await bot.add_cog(TicketsCog(bot))
