from __future__ import annotations

import discord

from services.actions import create_id
from utils.constants import Reason
from utils.embeds import make_embed

# Components here carry only custom ids; clicks are routed by the tickets cog dispatcher.


def panel_embed() -> discord.Embed:
    embed = make_embed(
        title="📩 Support Ticket System",
        description="Please select the appropriate ticket type below. Our support team will assist you shortly.",
        footer="Response time: Typically within 24 hours",
    )
    embed.add_field(name="🎫 General Inquiry", value="For any general questions or assistance", inline=True)
    embed.add_field(name="🎁 Giveaway Claim", value="To claim your giveaway prize or reward", inline=True)
    embed.add_field(name="🆘 Technical Support", value="For technical issues or account problems", inline=True)
    return embed


class TicketPanelView(discord.ui.View):
    def __init__(self) -> None:
        super().__init__(timeout=None)
        self.add_item(
            discord.ui.Button(
                label="General Inquiry",
                emoji="🎫",
                style=discord.ButtonStyle.primary,
                custom_id=create_id(),
            )
        )
        self.add_item(
            discord.ui.Button(
                label="Giveaway/Event Claim",
                emoji="🎁",
                style=discord.ButtonStyle.success,
                custom_id=create_id(Reason.GIVEAWAY_REWARD),
            )
        )
        self.add_item(
            discord.ui.Button(
                label="Tech Support",
                emoji="🆘",
                style=discord.ButtonStyle.danger,
                custom_id=create_id(Reason.SUPPORT),
            )
        )


def is_panel_message(message: discord.Message, bot_user_id: int) -> bool:
    if message.author.id != bot_user_id or not message.components:
        return False
    first_row = message.components[0]
    children = getattr(first_row, "children", [])
    return any(getattr(child, "custom_id", None) == create_id() for child in children)


def slash_prompt_embed() -> discord.Embed:
    return make_embed(
        title="Ticket Creation",
        description="Click the button below to create a new support ticket.",
        footer="You can have one open ticket at a time",
    )


class CreateTicketView(discord.ui.View):
    def __init__(self) -> None:
        super().__init__(timeout=300)
        self.add_item(
            discord.ui.Button(
                label="Create Ticket",
                emoji="🎫",
                style=discord.ButtonStyle.primary,
                custom_id=create_id(),
            )
        )
