from __future__ import annotations

from datetime import UTC, datetime

import discord

from database.models import TicketSummary
from services.actions import cancel_close_id, close_id, confirm_close_id, delete_id
from services.platform import OwnerNotice
from utils.embeds import make_embed, success_embed, warning_embed


class WelcomeView(discord.ui.View):
    def __init__(self, channel_id: int) -> None:
        super().__init__(timeout=None)
        self.add_item(
            discord.ui.Button(
                label="Cancel Ticket",
                emoji="❌",
                style=discord.ButtonStyle.secondary,
                custom_id=delete_id(channel_id),
            )
        )


def welcome_embed(owner_id: int, ticket_number: int) -> discord.Embed:
    return make_embed(
        title=f"Ticket #{ticket_number}",
        description=(
            f"<@{owner_id}>, please complete the ticket creation process below.\n\n"
            "You can cancel this ticket using the button below if needed."
        ),
        footer="This process helps us serve you better",
    )


class TicketControlsView(discord.ui.View):
    def __init__(self, channel_id: int) -> None:
        super().__init__(timeout=None)
        self.add_item(
            discord.ui.Button(
                label="Close Ticket",
                emoji="🔒",
                style=discord.ButtonStyle.danger,
                custom_id=close_id(),
            )
        )
        self.add_item(
            discord.ui.Button(
                label="Delete Ticket",
                emoji="❌",
                style=discord.ButtonStyle.secondary,
                custom_id=delete_id(channel_id),
            )
        )


def summary_content(summary: TicketSummary) -> str:
    proof = ""
    if summary.proof_required:
        proof = "\n\n**Please attach proof of your participation by sending an image in this channel.**"
    lines = [
        f"Hello <@{summary.owner_id}>, thank you for creating a ticket.{proof}",
        "",
        "**Ticket Details:**",
        f"- **Ticket #**: {summary.ticket_number}",
        f"- **Reason**: {summary.reason_label}",
    ]
    lines.extend(f"- **{label}**: {value}" for label, value in summary.fields)
    lines.extend(
        [
            "",
            "A staff member will assist you shortly.",
            "",
            "You can close this ticket when your issue is resolved by clicking the button below.",
        ]
    )
    return "\n".join(lines)[:2000]


def summary_embed(summary: TicketSummary) -> discord.Embed:
    embed = make_embed(
        title=f"Ticket #{summary.ticket_number}",
        description=f"A new ticket has been created by <@{summary.owner_id}>",
        footer=f"User ID: {summary.owner_id}",
    )
    embed.add_field(name="Reason", value=summary.reason_label, inline=True)
    embed.add_field(name="Created At", value=discord.utils.format_dt(datetime.now(UTC), style="f"), inline=True)
    return embed


def log_embed(summary: TicketSummary, owner: discord.abc.User | None) -> discord.Embed:
    embed = make_embed(title=f"Ticket #{summary.ticket_number} Created", timestamp=True)
    user_value = f"<@{summary.owner_id}>"
    if owner is not None:
        user_value = f"{owner.mention} ({owner})"
    embed.add_field(name="User", value=user_value, inline=True)
    embed.add_field(name="Channel", value=f"<#{summary.channel_id}>", inline=True)
    embed.add_field(name="Reason", value=summary.reason_label, inline=False)
    return embed


class ConfirmCloseView(discord.ui.View):
    def __init__(self, channel_id: int) -> None:
        super().__init__(timeout=300)
        self.add_item(
            discord.ui.Button(
                label="Confirm Close",
                emoji="🔒",
                style=discord.ButtonStyle.danger,
                custom_id=confirm_close_id(channel_id),
            )
        )
        self.add_item(
            discord.ui.Button(
                label="Cancel",
                emoji="❌",
                style=discord.ButtonStyle.secondary,
                custom_id=cancel_close_id(),
            )
        )


def confirm_close_embed() -> discord.Embed:
    return warning_embed(
        "Are you sure you want to close this ticket? This action cannot be undone.",
        title="Confirm Ticket Closure",
    )


def close_cancelled_embed() -> discord.Embed:
    return success_embed("The ticket will remain open.", title="Closure Cancelled")


def owner_notice_embed(notice: OwnerNotice, guild_name: str) -> discord.Embed:
    embed = warning_embed(
        f"Your ticket in {guild_name} was closed by <@{notice.closed_by_id}>.",
        title="Your Ticket Was Closed",
    )
    embed.add_field(name="Ticket Channel", value=notice.channel_name, inline=True)
    embed.add_field(name="Closed By", value=notice.closed_by_name or str(notice.closed_by_id), inline=True)
    return embed


def idle_reminder_embed(author: discord.abc.User) -> discord.Embed:
    return warning_embed(
        f"{author.mention}, please finish setting up your ticket before sending messages.",
        title="Please Complete Ticket Creation",
    )
