"""Service configuration.

Reads GitHub and Discord settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    GITHUB_TOKEN: GitHub token with discussion read/write scope (required)
    GITHUB_OWNER: Repository owner (required)
    GITHUB_REPO: Repository name (required)
    CATEGORY_NAME: Discussion category to mirror (optional, default: General)
    GITHUB_WEBHOOK_SECRET: Webhook signing secret (optional)
    DISCORD_TOKEN: Discord bot token (required)
    FORUM_CHANNEL_ID: Discord forum channel id (required)
    DRY_RUN: Log writes instead of performing them (optional, default: false)
    SYNC_PACING_INTERVAL: Seconds between writes (optional, default: 1.0)
    SYNC_PACING_BURST: Writes allowed back to back (optional, default: 1)
    SYNC_STARTUP_RECONCILE: Catch up all pairs at startup (optional, default: true)
    HOST: Webhook bind address (optional, default: 0.0.0.0)
    PORT: Webhook bind port (optional, default: 3000)
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class Config:
    github_token: str
    github_owner: str
    github_repo: str
    discord_token: str
    forum_channel_id: int
    category_name: str = "General"
    webhook_secret: str | None = None
    dry_run: bool = False
    pacing_interval: float = 1.0
    pacing_burst: int = 1
    startup_reconcile: bool = True
    host: str = "0.0.0.0"
    port: int = 3000


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If a credential is empty or a value is out of range.
    """
    for field_name, env_name in (
        ("github_token", "GITHUB_TOKEN"),
        ("github_owner", "GITHUB_OWNER"),
        ("github_repo", "GITHUB_REPO"),
        ("discord_token", "DISCORD_TOKEN"),
    ):
        value = getattr(config, field_name).strip()
        if not value:
            raise ValueError(
                f"{env_name} cannot be empty. Set the {env_name} environment variable."
            )
        setattr(config, field_name, value)

    if "/" in config.github_repo:
        raise ValueError(
            f"Invalid GITHUB_REPO '{config.github_repo}': use the bare repository "
            "name and set GITHUB_OWNER separately"
        )

    config.category_name = config.category_name.strip()
    if not config.category_name:
        raise ValueError("CATEGORY_NAME cannot be empty")

    if config.forum_channel_id <= 0:
        raise ValueError(
            f"Invalid FORUM_CHANNEL_ID '{config.forum_channel_id}': must be a positive id"
        )

    if not (0 <= config.pacing_interval <= 60):
        raise ValueError(
            f"Invalid SYNC_PACING_INTERVAL '{config.pacing_interval}': must be between 0 and 60"
        )

    if not (1 <= config.pacing_burst <= 50):
        raise ValueError(
            f"Invalid SYNC_PACING_BURST '{config.pacing_burst}': must be between 1 and 50"
        )

    if not (1 <= config.port <= 65535):
        raise ValueError(
            f"Invalid PORT '{config.port}': must be between 1 and 65535"
        )

    if config.pacing_interval == 0:
        logger.warning(
            "WARNING: write pacing disabled (SYNC_PACING_INTERVAL=0). "
            "Expect rate-limit errors on busy pairs."
        )
    if not config.webhook_secret:
        logger.warning(
            "WARNING: GITHUB_WEBHOOK_SECRET not set; webhook deliveries are not verified."
        )


def get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _require(value: str | None, env_name: str, yaml_key: str) -> str:
    if not value:
        raise ValueError(
            f"{env_name} not found. Set the {env_name} environment variable "
            f"or add '{yaml_key}' to config.yml."
        )
    return value.strip()


def _int_value(raw: str, env_name: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {env_name} '{raw}': must be a whole number"
        ) from None


def load_config(
    github_token: str | None = None,
    github_owner: str | None = None,
    github_repo: str | None = None,
    category_name: str | None = None,
    forum_channel_id: int | None = None,
    dry_run: bool = False,
    host: str | None = None,
    port: int | None = None,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.
    Tokens have no CLI flag so they never show up in the process list.

    Args:
        github_token: Override GitHub token.
        github_owner: Override repository owner.
        github_repo: Override repository name.
        category_name: Override discussion category.
        forum_channel_id: Override Discord forum channel id.
        dry_run: Suppress writes (CLI flag).
        host: Override webhook bind address.
        port: Override webhook bind port.
        yaml_fallbacks: Flat dict from ``config_schema.to_fallbacks()``.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required config is missing after checking all
            sources, or a value is malformed.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > error/default ---

    final_token = _require(
        github_token or os.getenv("GITHUB_TOKEN") or fb.get("github_token"),
        "GITHUB_TOKEN",
        "github.token",
    )
    final_owner = _require(
        github_owner or os.getenv("GITHUB_OWNER") or fb.get("github_owner"),
        "GITHUB_OWNER",
        "github.owner",
    )
    final_repo = _require(
        github_repo or os.getenv("GITHUB_REPO") or fb.get("github_repo"),
        "GITHUB_REPO",
        "github.repo",
    )
    final_discord_token = _require(
        os.getenv("DISCORD_TOKEN") or fb.get("discord_token"),
        "DISCORD_TOKEN",
        "discord.token",
    )
    final_category = (
        category_name
        or os.getenv("CATEGORY_NAME")
        or fb.get("category_name")
        or "General"
    )
    final_secret = os.getenv("GITHUB_WEBHOOK_SECRET") or fb.get(
        "webhook_secret"
    )
    final_host = host or os.getenv("HOST") or fb.get("host") or "0.0.0.0"

    # --- Numeric fields: CLI > env > YAML > default ---

    if forum_channel_id is not None:
        final_channel = forum_channel_id
    elif os.getenv("FORUM_CHANNEL_ID"):
        final_channel = _int_value(
            os.environ["FORUM_CHANNEL_ID"], "FORUM_CHANNEL_ID"
        )
    elif fb.get("forum_channel_id") is not None:
        final_channel = int(fb["forum_channel_id"])
    else:
        raise ValueError(
            "FORUM_CHANNEL_ID not found. Set the FORUM_CHANNEL_ID environment "
            "variable or add 'discord.forum_channel_id' to config.yml."
        )

    if port is not None:
        final_port = port
    elif os.getenv("PORT"):
        final_port = _int_value(os.environ["PORT"], "PORT")
    else:
        final_port = int(fb.get("port", 3000))

    pacing_raw = os.getenv("SYNC_PACING_INTERVAL")
    if pacing_raw is not None:
        try:
            final_pacing = float(pacing_raw)
        except ValueError:
            raise ValueError(
                f"Invalid SYNC_PACING_INTERVAL '{pacing_raw}': must be a number between 0 and 60"
            ) from None
    else:
        final_pacing = float(fb.get("pacing_interval", 1.0))

    if os.getenv("SYNC_PACING_BURST"):
        final_burst = _int_value(
            os.environ["SYNC_PACING_BURST"], "SYNC_PACING_BURST"
        )
    else:
        final_burst = int(fb.get("pacing_burst", 1))

    # --- Boolean fields: CLI > env > YAML > default ---

    if dry_run:
        final_dry_run = True
    else:
        env_dry_run = get_bool_env("DRY_RUN")
        if env_dry_run is not None:
            final_dry_run = env_dry_run
        else:
            final_dry_run = bool(fb.get("dry_run", False))

    env_reconcile = get_bool_env("SYNC_STARTUP_RECONCILE")
    if env_reconcile is not None:
        final_reconcile = env_reconcile
    else:
        final_reconcile = bool(fb.get("startup_reconcile", True))

    config = Config(
        github_token=final_token,
        github_owner=final_owner,
        github_repo=final_repo,
        discord_token=final_discord_token,
        forum_channel_id=final_channel,
        category_name=final_category,
        webhook_secret=final_secret,
        dry_run=final_dry_run,
        pacing_interval=final_pacing,
        pacing_burst=final_burst,
        startup_reconcile=final_reconcile,
        host=final_host,
        port=final_port,
    )

    validate_config(config)

    return config
