from __future__ import annotations

from typing import Any

import discord

from services.actions import form_id, step_id
from services.questionnaire import FormPrompt, Node, OptionsPrompt
from utils.embeds import make_embed


class QuestionnaireSelectView(discord.ui.View):
    def __init__(self, prompt: OptionsPrompt, channel_id: int) -> None:
        super().__init__(timeout=900)
        self.add_item(
            discord.ui.Select(
                custom_id=step_id(prompt.node, channel_id),
                placeholder=prompt.placeholder,
                min_values=1,
                max_values=1,
                options=[
                    discord.SelectOption(label=option.label, emoji=option.emoji, value=option.value)
                    for option in prompt.options
                ],
            )
        )


def options_prompt_message(prompt: OptionsPrompt, channel_id: int) -> tuple[discord.Embed, discord.ui.View]:
    color = discord.Color.blurple() if prompt.node is Node.REASON else discord.Color.gold()
    embed = make_embed(title=prompt.title, description=prompt.description, color=color)
    return embed, QuestionnaireSelectView(prompt, channel_id)


def form_modal(prompt: FormPrompt, channel_id: int) -> discord.ui.Modal:
    modal = discord.ui.Modal(title=prompt.title[:45], custom_id=form_id(prompt.node, channel_id), timeout=900)
    for form_field in prompt.fields:
        modal.add_item(
            discord.ui.TextInput(
                custom_id=form_field.key,
                label=form_field.label[:45],
                style=discord.TextStyle.paragraph if form_field.multiline else discord.TextStyle.short,
                required=True,
                min_length=form_field.min_length,
                max_length=form_field.max_length,
                placeholder=form_field.placeholder[:100] or None,
            )
        )
    return modal


def _collect_inputs(components: list[dict[str, Any]], values: dict[str, str]) -> None:
    for component in components:
        if "components" in component:
            _collect_inputs(component["components"], values)
        elif "component" in component:
            _collect_inputs([component["component"]], values)
        elif "custom_id" in component and "value" in component:
            values[str(component["custom_id"])] = str(component["value"] or "")


def modal_values(data: dict[str, Any] | None) -> dict[str, str]:
    """Flatten a modal-submit payload into custom_id -> value."""
    values: dict[str, str] = {}
    if data:
        _collect_inputs(list(data.get("components", [])), values)
    return values
