from __future__ import annotations

from datetime import UTC, datetime

import discord


def make_embed(
    title: str,
    description: str | None = None,
    color: discord.Color | None = None,
    footer: str | None = None,
    timestamp: bool = False,
) -> discord.Embed:
    resolved_color = color if color is not None else discord.Color.blurple()
    embed = discord.Embed(
        title=title,
        description=description,
        color=resolved_color,
        timestamp=datetime.now(UTC) if timestamp else None,
    )
    if footer:
        embed.set_footer(text=footer)
    return embed


def success_embed(message: str, title: str = "Success") -> discord.Embed:
    return make_embed(title=title, description=message, color=discord.Color.green())


def warning_embed(message: str, title: str) -> discord.Embed:
    return make_embed(title=title, description=message, color=discord.Color.orange())


def error_embed(message: str, title: str = "Error") -> discord.Embed:
    return make_embed(title=title, description=message, color=discord.Color.red())
