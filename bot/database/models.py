from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from utils.constants import Reason


@dataclass(slots=True)
class PendingTicket:
    channel_id: int
    user_id: int
    ticket_number: int
    guild_id: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingTicket:
        return cls(
            channel_id=int(data["channel_id"]),
            user_id=int(data["user_id"]),
            ticket_number=int(data["ticket_number"]),
            guild_id=int(data["guild_id"]),
        )


@dataclass(slots=True)
class TicketDraft:
    channel_id: int
    user_id: int
    guild_id: int
    reason: Reason | None = None
    details: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "user_id": self.user_id,
            "guild_id": self.guild_id,
            "reason": self.reason.value if self.reason else None,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TicketDraft:
        reason = data.get("reason")
        return cls(
            channel_id=int(data["channel_id"]),
            user_id=int(data["user_id"]),
            guild_id=int(data["guild_id"]),
            reason=Reason(reason) if reason else None,
            details={str(k): str(v) for k, v in dict(data.get("details") or {}).items()},
        )

    def answers(self) -> dict[str, str]:
        """Flattened view of everything collected so far."""
        flat: dict[str, str] = {}
        if self.reason is not None:
            flat["reason"] = self.reason.value
        flat.update(self.details)
        return flat


@dataclass(slots=True)
class TicketSummary:
    ticket_number: int
    guild_id: int
    channel_id: int
    owner_id: int
    reason: Reason
    reason_label: str
    fields: list[tuple[str, str]] = field(default_factory=list)
    proof_required: bool = False
