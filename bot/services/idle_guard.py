from __future__ import annotations

from database.sessions import SessionStore


class IdleChannelGuard:
    """Keeps a ticket channel quiet until its questionnaire is complete."""

    def __init__(self, sessions: SessionStore, reminder_seconds: float = 5.0) -> None:
        self.sessions = sessions
        self.reminder_seconds = reminder_seconds

    async def should_suppress(self, channel_id: int, *, author_is_bot: bool, is_system: bool) -> bool:
        if author_is_bot or is_system:
            return False
        return await self.sessions.has_pending(channel_id)
