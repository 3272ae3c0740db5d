"""Unified configuration schema for discussion_sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for GitHub, Discord, sync behaviour, the webhook server and
logging.

Usage:
    from discussion_sync.config_schema import build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class GitHubConfig(BaseModel):
    """GitHub repository settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    token: str | None = Field(default=None, description="GitHub token")
    owner: str | None = Field(default=None, description="Repository owner")
    repo: str | None = Field(default=None, description="Repository name")
    category: str | None = Field(
        default=None, description="Discussion category to mirror"
    )
    webhook_secret: str | None = Field(
        default=None, description="Secret used to sign webhook deliveries"
    )

    model_config = {"frozen": True}


class DiscordConfig(BaseModel):
    """Discord bot settings."""

    token: str | None = Field(default=None, description="Bot token")
    forum_channel_id: int | None = Field(
        default=None, description="Forum channel mirroring the category"
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Sync engine behaviour.

    Attributes:
        dry_run: Log writes instead of performing them.
        pacing_interval: Minimum seconds between mutating calls (0 disables).
        pacing_burst: Writes allowed back to back before pacing applies.
        startup_reconcile: Run the catch-up pass before serving triggers.
    """

    dry_run: bool = Field(default=False, description="Suppress all writes")
    pacing_interval: float = Field(
        default=1.0,
        ge=0,
        le=60,
        description="Minimum seconds between mutating calls (0-60)",
    )
    pacing_burst: int = Field(
        default=1,
        ge=1,
        le=50,
        description="Writes allowed back to back (1 keeps a fixed interval)",
    )
    startup_reconcile: bool = Field(
        default=True, description="Catch up every pair at startup"
    )

    model_config = {"frozen": True}


class ServerConfig(BaseModel):
    """Webhook HTTP server settings."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Bind port")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(
        default="text", description="text or json"
    )

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Raises:
        pydantic.ValidationError: If a present value has the wrong type
            or is out of range.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> flat fallbacks for load_config()
# ---------------------------------------------------------------------------


def to_fallbacks(unified: UnifiedConfig) -> dict:
    """Flatten *unified* into the keyword names used by ``Config``.

    Unset (``None``) values are dropped so that they never shadow an
    environment variable.
    """
    flat = {
        "github_token": unified.github.token,
        "github_owner": unified.github.owner,
        "github_repo": unified.github.repo,
        "category_name": unified.github.category,
        "webhook_secret": unified.github.webhook_secret,
        "discord_token": unified.discord.token,
        "forum_channel_id": unified.discord.forum_channel_id,
        "dry_run": unified.sync.dry_run,
        "pacing_interval": unified.sync.pacing_interval,
        "pacing_burst": unified.sync.pacing_burst,
        "startup_reconcile": unified.sync.startup_reconcile,
        "host": unified.server.host,
        "port": unified.server.port,
    }
    return {k: v for k, v in flat.items() if v is not None}
