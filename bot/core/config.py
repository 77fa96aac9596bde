from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

SNOWFLAKE_PATTERN = re.compile(r"^\d{17,20}$")


class ConfigError(RuntimeError):
    pass


@dataclass(slots=True)
class DiscordConfig:
    token: str
    application_id: int | None = None
    sync_commands_on_start: bool = True
    status_text: str = "Support tickets"
    activity_type: str = "watching"


@dataclass(slots=True)
class RedisConfig:
    enabled: bool = False
    url: str = "redis://localhost:6379/0"
    key_prefix: str = "tickets"


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    directory: str | None = "logs"
    file_name: str = "bot.log"
    max_bytes: int = 10_000_000
    backup_count: int = 10
    json_console: bool = False


@dataclass(slots=True)
class WebhookLogConfig:
    enabled: bool = False
    url: str = ""


@dataclass(slots=True)
class FastApiConfig:
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    api_key: str = ""


@dataclass(slots=True)
class TicketConfig:
    counters_path: str = "ticketCounters.json"
    channel_prefix: str = "ticket-"
    idle_reminder_seconds: float = 5.0
    panel_history_limit: int = 10


@dataclass(frozen=True, slots=True)
class CommunityConfig:
    guild_id: int
    panel_channel_id: int
    category_id: int
    staff_role_id: int
    log_channel_id: int | None = None


@dataclass(slots=True)
class AppConfig:
    discord: DiscordConfig
    redis: RedisConfig = field(default_factory=RedisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    webhook_log: WebhookLogConfig = field(default_factory=WebhookLogConfig)
    fastapi: FastApiConfig = field(default_factory=FastApiConfig)
    tickets: TicketConfig = field(default_factory=TicketConfig)
    communities: dict[int, CommunityConfig] = field(default_factory=dict)
    enabled_extensions: list[str] = field(default_factory=lambda: ["cogs.events", "cogs.tickets"])

    def community(self, guild_id: int | None) -> CommunityConfig | None:
        if guild_id is None:
            return None
        return self.communities.get(guild_id)


def is_snowflake(value: Any) -> bool:
    if value is None:
        return False
    return bool(SNOWFLAKE_PATTERN.match(str(value).strip()))


def _get_env_str(key: str, fallback: str | None = None) -> str | None:
    value = os.getenv(key)
    if value is None:
        return fallback
    cleaned = value.strip()
    return cleaned if cleaned else fallback


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _deep_get(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    node: Any = data
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")
    return raw


def build_community(
    guild_id: Any,
    panel_channel_id: Any,
    category_id: Any,
    staff_role_id: Any,
    log_channel_id: Any = None,
) -> CommunityConfig | None:
    """Validate one community row; any bad required ID rejects the whole row."""
    required = (guild_id, panel_channel_id, category_id, staff_role_id)
    if not all(is_snowflake(value) for value in required):
        return None
    return CommunityConfig(
        guild_id=int(str(guild_id).strip()),
        panel_channel_id=int(str(panel_channel_id).strip()),
        category_id=int(str(category_id).strip()),
        staff_role_id=int(str(staff_role_id).strip()),
        log_channel_id=int(str(log_channel_id).strip()) if is_snowflake(log_channel_id) else None,
    )


def _load_env_communities() -> dict[int, CommunityConfig]:
    communities: dict[int, CommunityConfig] = {}
    raw_ids = _get_env_str("SERVER_IDS", "") or ""
    for raw_id in raw_ids.split(","):
        server_id = raw_id.strip()
        if not server_id:
            continue
        community = build_community(
            server_id,
            _get_env_str(f"{server_id}_PANEL_CHANNEL_ID"),
            _get_env_str(f"{server_id}_CATEGORY_ID"),
            _get_env_str(f"{server_id}_STAFF_ROLE_ID"),
            _get_env_str(f"{server_id}_LOG_CHANNEL_ID"),
        )
        if community is None:
            LOGGER.warning("Skipping server %s due to invalid configuration", server_id)
            continue
        communities[community.guild_id] = community
        LOGGER.info("Loaded configuration for server %s", server_id)
    return communities


def _load_yaml_communities(rows: list[dict[str, Any]]) -> dict[int, CommunityConfig]:
    communities: dict[int, CommunityConfig] = {}
    for row in rows:
        if not isinstance(row, dict):
            continue
        community = build_community(
            row.get("guild_id"),
            row.get("panel_channel_id"),
            row.get("category_id"),
            row.get("staff_role_id"),
            row.get("log_channel_id"),
        )
        if community is None:
            LOGGER.warning("Skipping server %s due to invalid configuration", row.get("guild_id"))
            continue
        communities[community.guild_id] = community
    return communities


def load_config(config_path: Path) -> AppConfig:
    env_path = config_path.parent.parent / ".env"
    load_dotenv(env_path)
    raw = _load_yaml(config_path)

    discord_token = _get_env_str("DISCORD_TOKEN", _deep_get(raw, "discord", "token"))
    if not discord_token or "${" in discord_token:
        raise ConfigError("DISCORD_TOKEN is required")

    application_id = _get_env_str("APPLICATION_ID", _get_env_str("DISCORD_APPLICATION_ID"))
    discord_cfg = DiscordConfig(
        token=discord_token,
        application_id=(
            int(application_id) if application_id else _deep_get(raw, "discord", "application_id")
        ),
        sync_commands_on_start=_as_bool(
            _get_env_str("SYNC_COMMANDS"),
            _as_bool(_deep_get(raw, "discord", "sync_commands_on_start"), True),
        ),
        status_text=str(_deep_get(raw, "discord", "status_text", default="Support tickets")),
        activity_type=str(_deep_get(raw, "discord", "activity_type", default="watching")),
    )

    redis_cfg = RedisConfig(
        enabled=_as_bool(_get_env_str("REDIS_ENABLED"), _as_bool(_deep_get(raw, "redis", "enabled"), False)),
        url=str(_get_env_str("REDIS_URL", _deep_get(raw, "redis", "url", default="redis://localhost:6379/0"))),
        key_prefix=str(_deep_get(raw, "redis", "key_prefix", default="tickets")),
    )

    logging_cfg = LoggingConfig(
        level=str(_get_env_str("LOG_LEVEL", _deep_get(raw, "logging", "level", default="INFO"))),
        directory=_deep_get(raw, "logging", "directory", default="logs"),
        file_name=str(_deep_get(raw, "logging", "file_name", default="bot.log")),
        max_bytes=_as_int(_deep_get(raw, "logging", "max_bytes"), 10_000_000),
        backup_count=_as_int(_deep_get(raw, "logging", "backup_count"), 10),
        json_console=_as_bool(_deep_get(raw, "logging", "json_console"), False),
    )

    webhook_cfg = WebhookLogConfig(
        enabled=_as_bool(_deep_get(raw, "webhook_log", "enabled"), False),
        url=str(_get_env_str("WEBHOOK_LOG_URL", _deep_get(raw, "webhook_log", "url", default=""))),
    )

    fastapi_cfg = FastApiConfig(
        enabled=_as_bool(_deep_get(raw, "fastapi", "enabled"), False),
        host=str(_deep_get(raw, "fastapi", "host", default="0.0.0.0")),
        port=_as_int(_deep_get(raw, "fastapi", "port"), 8000),
        api_key=str(_get_env_str("DASHBOARD_API_KEY", _deep_get(raw, "fastapi", "api_key", default=""))),
    )

    tickets_cfg = TicketConfig(
        counters_path=str(
            _get_env_str(
                "TICKET_COUNTERS_PATH",
                _deep_get(raw, "tickets", "counters_path", default="ticketCounters.json"),
            )
        ),
        channel_prefix=str(_deep_get(raw, "tickets", "channel_prefix", default="ticket-")),
        idle_reminder_seconds=_as_float(_deep_get(raw, "tickets", "idle_reminder_seconds"), 5.0),
        panel_history_limit=_as_int(_deep_get(raw, "tickets", "panel_history_limit"), 10),
    )

    communities = _load_yaml_communities(list(_deep_get(raw, "communities", default=[])))
    # Environment rows win over YAML rows for the same guild.
    communities.update(_load_env_communities())

    enabled_extensions = [
        str(ext)
        for ext in list(_deep_get(raw, "enabled_extensions", default=["cogs.events", "cogs.tickets"]))
    ]

    return AppConfig(
        discord=discord_cfg,
        redis=redis_cfg,
        logging=logging_cfg,
        webhook_log=webhook_cfg,
        fastapi=fastapi_cfg,
        tickets=tickets_cfg,
        communities=communities,
        enabled_extensions=enabled_extensions,
    )
