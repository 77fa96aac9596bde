from __future__ import annotations

from fastapi import FastAPI, Header, HTTPException

from core.bot import TicketBot


def _auth(x_api_key: str | None, expected: str) -> None:
    if not expected:
        return
    if x_api_key != expected:
        raise HTTPException(status_code=401, detail="Unauthorized")


def create_api_app(bot: TicketBot) -> FastAPI:
    app = FastAPI(title="Support Ticket Bot API", version="1.0.0")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/guilds/{guild_id}/tickets/pending")
    async def pending_tickets(guild_id: int, x_api_key: str | None = Header(default=None)) -> dict[str, object]:
        _auth(x_api_key, bot.config.fastapi.api_key)
        if bot.config.community(guild_id) is None:
            raise HTTPException(status_code=404, detail="Guild is not configured")
        items = []
        for pending in await bot.sessions.list_pending(guild_id):
            draft = await bot.sessions.get_draft(pending.channel_id)
            items.append(
                {
                    "channel_id": pending.channel_id,
                    "ticket_number": pending.ticket_number,
                    "user_id": pending.user_id,
                    "reason": draft.reason.value if draft and draft.reason else None,
                }
            )
        return {"items": items}

    @app.get("/guilds/{guild_id}/counter")
    async def counter(guild_id: int, x_api_key: str | None = Header(default=None)) -> dict[str, int]:
        _auth(x_api_key, bot.config.fastapi.api_key)
        if bot.config.community(guild_id) is None:
            raise HTTPException(status_code=404, detail="Guild is not configured")
        return {"guild_id": guild_id, "last_ticket_number": bot.counters.current(guild_id)}

    return app
