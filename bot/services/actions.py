from __future__ import annotations

from dataclasses import dataclass, field

from services.questionnaire import Node
from utils.constants import Reason

PREFIX = "ticket"


@dataclass(frozen=True, slots=True)
class CreateTicket:
    preset: Reason | None = None


@dataclass(frozen=True, slots=True)
class DeleteTicket:
    channel_id: int


@dataclass(frozen=True, slots=True)
class CloseTicket:
    pass


@dataclass(frozen=True, slots=True)
class ConfirmClose:
    channel_id: int


@dataclass(frozen=True, slots=True)
class CancelClose:
    pass


@dataclass(frozen=True, slots=True)
class QuestionnaireStep:
    channel_id: int
    node: Node
    value: str


@dataclass(frozen=True, slots=True)
class DetailSubmission:
    channel_id: int
    node: Node
    fields: dict[str, str] = field(default_factory=dict, hash=False)


TicketAction = (
    CreateTicket
    | DeleteTicket
    | CloseTicket
    | ConfirmClose
    | CancelClose
    | QuestionnaireStep
    | DetailSubmission
)


def create_id(preset: Reason | None = None) -> str:
    return f"{PREFIX}:create:{preset.value}" if preset else f"{PREFIX}:create"


def delete_id(channel_id: int) -> str:
    return f"{PREFIX}:delete:{channel_id}"


def close_id() -> str:
    return f"{PREFIX}:close"


def confirm_close_id(channel_id: int) -> str:
    return f"{PREFIX}:close:confirm:{channel_id}"


def cancel_close_id() -> str:
    return f"{PREFIX}:close:cancel"


def step_id(node: Node, channel_id: int) -> str:
    return f"{PREFIX}:step:{node.value}:{channel_id}"


def form_id(node: Node, channel_id: int) -> str:
    return f"{PREFIX}:form:{node.value}:{channel_id}"


def decode_action(
    custom_id: str,
    values: list[str] | None = None,
    fields: dict[str, str] | None = None,
) -> TicketAction | None:
    """Translate a component/modal custom id into an action, or None if it is not ours."""
    parts = custom_id.split(":")
    if len(parts) < 2 or parts[0] != PREFIX:
        return None
    try:
        match parts[1:]:
            case ["create"]:
                return CreateTicket()
            case ["create", preset]:
                return CreateTicket(preset=Reason(preset))
            case ["delete", channel_id]:
                return DeleteTicket(channel_id=int(channel_id))
            case ["close"]:
                return CloseTicket()
            case ["close", "confirm", channel_id]:
                return ConfirmClose(channel_id=int(channel_id))
            case ["close", "cancel"]:
                return CancelClose()
            case ["step", node, channel_id] if values and Node(node).is_selection:
                return QuestionnaireStep(channel_id=int(channel_id), node=Node(node), value=values[0])
            case ["form", node, channel_id] if not Node(node).is_selection:
                return DetailSubmission(channel_id=int(channel_id), node=Node(node), fields=dict(fields or {}))
    except ValueError:
        return None
    return None
