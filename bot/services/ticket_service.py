from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from core.config import AppConfig, CommunityConfig
from core.errors import (
    CommunityNotConfiguredError,
    DuplicateTicketError,
    FinalizeError,
    InvalidTicketChannelError,
    PermissionDeniedError,
    SessionExpiredError,
    TicketChannelMissingError,
    TicketCreationInProgressError,
)
from database.counters import TicketCounterStore
from database.models import PendingTicket, TicketDraft
from database.sessions import SessionStore
from services import questionnaire
from services.notifications import BackgroundNotifier, WebhookLogger, best_effort
from services.platform import OwnerNotice, TicketPlatform
from services.questionnaire import DraftExpired, Node, ReadyToFinalize, Step
from services.summary import build_summary
from utils.constants import Reason

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class TicketServiceDeps:
    counters: TicketCounterStore
    sessions: SessionStore
    platform: TicketPlatform
    webhook: WebhookLogger


@dataclass(frozen=True, slots=True)
class Actor:
    user_id: int
    display_name: str = ""
    is_admin: bool = False
    is_guild_owner: bool = False


@dataclass(frozen=True, slots=True)
class TicketCreated:
    channel_id: int
    ticket_number: int
    step: Step


@dataclass(frozen=True, slots=True)
class PromptNext:
    channel_id: int
    step: Step


@dataclass(frozen=True, slots=True)
class TicketFinalized:
    channel_id: int
    ticket_number: int


@dataclass(frozen=True, slots=True)
class TicketDeleted:
    channel_id: int
    already_gone: bool = False


@dataclass(frozen=True, slots=True)
class CloseRequested:
    channel_id: int


@dataclass(frozen=True, slots=True)
class TicketClosed:
    channel_id: int
    already_gone: bool = False


@dataclass(frozen=True, slots=True)
class CloseCancelled:
    pass


TicketOutcome = (
    TicketCreated
    | PromptNext
    | TicketFinalized
    | TicketDeleted
    | CloseRequested
    | TicketClosed
    | CloseCancelled
)


class TicketService:
    """Lifecycle of a ticket channel: pending -> questionnaire -> finalized -> closed.

    Cancellation (delete) is reachable from any state. Per-channel state lives
    only in the session store; the channel itself is the source of truth for
    existence, so a vanished channel always short-circuits to cleanup.
    """

    def __init__(self, config: AppConfig, deps: TicketServiceDeps) -> None:
        self.config = config
        self.deps = deps
        self._creating: set[tuple[int, int]] = set()
        self.background = BackgroundNotifier()
        self._name_pattern = re.compile(rf"^{re.escape(config.tickets.channel_prefix)}\d+$")

    def community_for(self, guild_id: int | None) -> CommunityConfig:
        community = self.config.community(guild_id)
        if community is None:
            raise CommunityNotConfiguredError()
        return community

    def channel_name(self, ticket_number: int) -> str:
        return f"{self.config.tickets.channel_prefix}{ticket_number}"

    def is_ticket_channel_name(self, name: str | None) -> bool:
        return bool(name) and bool(self._name_pattern.match(name))

    async def create_ticket(self, guild_id: int, user_id: int, preset: Reason | None = None) -> TicketCreated:
        community = self.community_for(guild_id)
        key = (guild_id, user_id)
        if key in self._creating:
            raise TicketCreationInProgressError()
        self._creating.add(key)
        try:
            existing = await self.deps.platform.find_ticket_channel(guild_id, user_id)
            if existing is not None:
                raise DuplicateTicketError(existing)

            ticket_number = await self.deps.counters.allocate(guild_id)
            channel_id = await self.deps.platform.create_ticket_channel(
                community, self.channel_name(ticket_number), user_id
            )
            await self.deps.sessions.put_pending(
                PendingTicket(
                    channel_id=channel_id,
                    user_id=user_id,
                    ticket_number=ticket_number,
                    guild_id=guild_id,
                )
            )
        finally:
            self._creating.discard(key)

        LOGGER.info(
            "Ticket channel created guild=%s channel=%s number=%s user=%s",
            guild_id,
            channel_id,
            ticket_number,
            user_id,
        )
        await best_effort(
            self.deps.platform.post_welcome(channel_id, user_id, ticket_number),
            "post welcome",
            channel_id=channel_id,
        )

        draft: TicketDraft | None = None
        if preset is not None:
            draft = TicketDraft(channel_id=channel_id, user_id=user_id, guild_id=guild_id, reason=preset)
            await self.deps.sessions.put_draft(draft)
        return TicketCreated(channel_id=channel_id, ticket_number=ticket_number, step=questionnaire.enter(draft))

    async def _load_for_step(self, guild_id: int, channel_id: int, user_id: int, node: Node) -> TicketDraft | None:
        self.community_for(guild_id)
        if await self.deps.platform.get_channel_name(guild_id, channel_id) is None:
            await self.deps.sessions.remove(channel_id)
            raise TicketChannelMissingError()

        draft = await self.deps.sessions.get_draft(channel_id)
        if draft is None and node is Node.REASON:
            pending = await self.deps.sessions.get_pending(channel_id)
            if pending is not None:
                draft = TicketDraft(channel_id=channel_id, user_id=pending.user_id, guild_id=guild_id)
        if draft is not None and draft.user_id != user_id:
            raise PermissionDeniedError("Only the ticket creator can answer these questions.")
        return draft

    async def _after_step(self, guild_id: int, channel_id: int, draft: TicketDraft | None, step: Step) -> TicketOutcome:
        if isinstance(step, DraftExpired) or draft is None:
            raise SessionExpiredError()
        await self.deps.sessions.put_draft(draft)
        if isinstance(step, ReadyToFinalize):
            return await self.finalize(guild_id, channel_id)
        return PromptNext(channel_id=channel_id, step=step)

    async def select(self, guild_id: int, channel_id: int, user_id: int, node: Node, value: str) -> TicketOutcome:
        draft = await self._load_for_step(guild_id, channel_id, user_id, node)
        step = questionnaire.advance(draft, node, value)
        return await self._after_step(guild_id, channel_id, draft, step)

    async def submit_details(
        self, guild_id: int, channel_id: int, user_id: int, node: Node, fields: dict[str, str]
    ) -> TicketOutcome:
        draft = await self._load_for_step(guild_id, channel_id, user_id, node)
        step = questionnaire.submit_form(draft, node, fields)
        return await self._after_step(guild_id, channel_id, draft, step)

    async def finalize(self, guild_id: int, channel_id: int) -> TicketFinalized:
        community = self.community_for(guild_id)
        pending = await self.deps.sessions.get_pending(channel_id)
        draft = await self.deps.sessions.get_draft(channel_id)
        channel_name = await self.deps.platform.get_channel_name(guild_id, channel_id)
        if pending is None or draft is None or draft.reason is None or channel_name is None:
            LOGGER.warning(
                "Finalize refused channel=%s pending=%s draft=%s channel_exists=%s",
                channel_id,
                pending is not None,
                draft is not None,
                channel_name is not None,
            )
            raise FinalizeError()

        await best_effort(
            self.deps.platform.grant_access(guild_id, channel_id, pending.user_id),
            "grant access",
            channel_id=channel_id,
        )
        await best_effort(self.deps.platform.remove_welcome(channel_id), "remove welcome", channel_id=channel_id)

        summary = build_summary(pending, draft)
        try:
            await self.deps.platform.post_summary(summary)
        except Exception as exc:
            LOGGER.exception("Error finalizing ticket channel=%s", channel_id)
            raise FinalizeError(
                "An error occurred while finalizing your ticket. Please contact staff for assistance."
            ) from exc

        await self.deps.sessions.remove(channel_id)
        LOGGER.info("Ticket #%s finalized guild=%s channel=%s", pending.ticket_number, guild_id, channel_id)

        if community.log_channel_id:
            self.background.spawn(self.deps.platform.post_log(community, summary), "post log", channel_id=channel_id)
        self.background.spawn(
            self.deps.webhook.send(
                f"Ticket #{pending.ticket_number} Created",
                {"guild_id": guild_id, "channel_id": channel_id, "user_id": pending.user_id, **draft.answers()},
            ),
            "webhook log",
            channel_id=channel_id,
        )
        return TicketFinalized(channel_id=channel_id, ticket_number=pending.ticket_number)

    async def _authorize(self, guild_id: int, channel_id: int, actor: Actor) -> int | None:
        owner_id = await self.deps.sessions.owner_of(channel_id)
        if owner_id is None:
            owner_id = await self.deps.platform.channel_owner(guild_id, channel_id)
        if actor.user_id == owner_id or actor.is_admin or actor.is_guild_owner:
            return owner_id
        raise PermissionDeniedError()

    async def delete_ticket(self, guild_id: int, channel_id: int, actor: Actor) -> TicketDeleted:
        self.community_for(guild_id)
        channel_name = await self.deps.platform.get_channel_name(guild_id, channel_id)
        if channel_name is None:
            await self.deps.sessions.remove(channel_id)
            return TicketDeleted(channel_id=channel_id, already_gone=True)

        owner_id = await self._authorize(guild_id, channel_id, actor)
        deleted = await self.deps.platform.delete_channel(
            guild_id, channel_id, reason=f"Ticket cancelled by {actor.display_name} ({actor.user_id})"
        )
        await self.deps.sessions.remove(channel_id)
        LOGGER.info("Ticket channel %s deleted by %s", channel_id, actor.user_id)

        if owner_id is not None and owner_id != actor.user_id:
            self.background.spawn(
                self.deps.platform.notify_owner(
                    owner_id,
                    OwnerNotice(
                        guild_id=guild_id,
                        channel_name=channel_name,
                        closed_by_id=actor.user_id,
                        closed_by_name=actor.display_name,
                    ),
                ),
                "notify owner",
                owner_id=owner_id,
            )
        self.background.spawn(
            self.deps.webhook.send(
                "Ticket Cancelled",
                {"guild_id": guild_id, "channel": channel_name, "actor_id": actor.user_id, "owner_id": owner_id},
            ),
            "webhook log",
            channel_id=channel_id,
        )
        return TicketDeleted(channel_id=channel_id, already_gone=not deleted)

    async def request_close(self, guild_id: int, channel_id: int, actor: Actor) -> CloseRequested:
        self.community_for(guild_id)
        channel_name = await self.deps.platform.get_channel_name(guild_id, channel_id)
        if not self.is_ticket_channel_name(channel_name):
            raise InvalidTicketChannelError()
        await self._authorize(guild_id, channel_id, actor)
        return CloseRequested(channel_id=channel_id)

    async def confirm_close(self, guild_id: int, channel_id: int, actor: Actor) -> TicketClosed:
        self.community_for(guild_id)
        channel_name = await self.deps.platform.get_channel_name(guild_id, channel_id)
        if channel_name is None:
            await self.deps.sessions.remove(channel_id)
            return TicketClosed(channel_id=channel_id, already_gone=True)

        await self._authorize(guild_id, channel_id, actor)
        deleted = await self.deps.platform.delete_channel(
            guild_id, channel_id, reason=f"Ticket closed by {actor.display_name} ({actor.user_id})"
        )
        await self.deps.sessions.remove(channel_id)
        LOGGER.info("Ticket channel %s closed by %s", channel_id, actor.user_id)
        self.background.spawn(
            self.deps.webhook.send(
                "Ticket Closed",
                {"guild_id": guild_id, "channel": channel_name, "actor_id": actor.user_id},
            ),
            "webhook log",
            channel_id=channel_id,
        )
        return TicketClosed(channel_id=channel_id, already_gone=not deleted)

    def cancel_close(self) -> CloseCancelled:
        return CloseCancelled()
