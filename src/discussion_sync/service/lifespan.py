"""Lifespan management for service startup and shutdown."""

import asyncio
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import discord
from dotenv import load_dotenv

from ..config import Config, load_config
from ..config_loader import discover_config_files, load_hierarchical_config
from ..config_schema import LoggingConfig, build_config, to_fallbacks
from ..core.async_utils import run_sync
from ..core.discord_chat import DiscordChat
from ..core.github import GitHubForum
from ..core.github_client import GitHubClient
from ..sync import (
    SyncContext,
    SyncOrchestrator,
    SyncSettings,
    build_pacer,
    format_sync_report,
)
from .gateway import BridgeClient

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback."""
    print(msg, file=sys.stderr, flush=True)


def load_logging_config() -> LoggingConfig:
    """Return the ``logging:`` section of the YAML config, or its defaults.

    Runs before logging is configured.  A config file that fails
    validation yields the defaults here; ``resolve_config`` reports it.
    """
    load_dotenv()
    if not discover_config_files():
        return LoggingConfig()
    try:
        return build_config(load_hierarchical_config()).logging
    except ValueError:
        return LoggingConfig()


def resolve_config(config_overrides: dict[str, Any] | None = None) -> Config:
    """Merge .env, YAML and CLI overrides into a validated ``Config``.

    Raises:
        ValueError: If configuration is missing or invalid.
    """
    # .env first so that ${VAR} interpolation in YAML can use its values
    load_dotenv()

    yaml_fallbacks: dict[str, Any] | None = None
    sources = []
    config_files = discover_config_files()
    if config_files:
        unified = build_config(load_hierarchical_config())
        yaml_fallbacks = to_fallbacks(unified)
        sources.append(f"config file: {config_files[0]}")

    overrides = config_overrides or {}
    config = load_config(
        github_owner=overrides.get("owner"),
        github_repo=overrides.get("repo"),
        category_name=overrides.get("category"),
        forum_channel_id=overrides.get("forum_channel_id"),
        dry_run=overrides.get("dry_run", False),
        host=overrides.get("host"),
        port=overrides.get("port"),
        yaml_fallbacks=yaml_fallbacks,
    )

    if set(overrides) - {"debug", "log_file", "log_format"}:
        sources.append("CLI arguments")
    sources.append("environment variables")
    logger.info("Configuration loaded from: %s", ", ".join(sources))
    return config


async def check_github(client: GitHubClient, category_name: str) -> str:
    """Verify repository access and return the category node id.

    Raises:
        RuntimeError: If the repository is unreachable, has discussions
            disabled, or lacks the category.
    """
    try:
        repository = await run_sync(client.fetch_repository)
    except Exception as e:
        raise RuntimeError(f"Repository check failed: {e}") from e
    if not repository.get("hasDiscussionsEnabled"):
        raise RuntimeError(
            f"Discussions are not enabled on repository {client.owner}/{client.repo}. "
            "Enable them in repository settings."
        )
    try:
        return await run_sync(client.resolve_category_id, category_name)
    except Exception as e:
        raise RuntimeError(
            f"Failed to fetch category '{category_name}': {e}"
        ) from e


async def connect_discord(bot: BridgeClient, token: str) -> asyncio.Task:
    """Log in, open the gateway and wait until the client is ready.

    Returns:
        The task running the gateway connection.

    Raises:
        RuntimeError: If login fails or the gateway closes before ready.
    """
    try:
        await bot.login(token)
    except discord.LoginFailure as e:
        raise RuntimeError(f"Discord login failed: {e}") from e
    except discord.HTTPException as e:
        raise RuntimeError(f"Discord login failed: {e}") from e

    gateway = asyncio.create_task(bot.connect(), name="discord-gateway")
    ready = asyncio.create_task(bot.wait_until_ready())
    await asyncio.wait({gateway, ready}, return_when=asyncio.FIRST_COMPLETED)
    if not ready.done():
        ready.cancel()
        exc = gateway.exception()
        raise RuntimeError(f"Discord gateway closed before ready: {exc}") from exc
    return gateway


@asynccontextmanager
async def service_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage service startup and shutdown lifecycle.

    On startup:
    - Load .env, YAML config and CLI overrides into one ``Config``
    - Check the repository and resolve the discussion category
    - Connect to Discord and check the forum channel
    - Run the startup reconcile pass (unless disabled)
    - Attach the orchestrator to the gateway client

    On shutdown:
    - Close the Discord connection

    Args:
        config_overrides: Optional dict with config values from CLI.

    Yields:
        Dict with 'config', 'orchestrator', 'bot' and 'report' (the
        startup reconcile report, or None).

    Raises:
        RuntimeError: If configuration is invalid or a platform check fails.
    """
    logger.info("discussion-sync starting...")
    _stderr_print("discussion-sync starting...")

    try:
        config = resolve_config(config_overrides)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    _stderr_print(
        f"  Repository: {config.github_owner}/{config.github_repo} "
        f"(category '{config.category_name}')"
    )
    if config.dry_run:
        _stderr_print("  DRY RUN: no writes will be made")

    github = GitHubClient(config)
    try:
        category_id = await check_github(github, config.category_name)
    except RuntimeError as e:
        logger.error("%s", e)
        _stderr_print(f"ERROR: {e}")
        raise
    logger.info("GitHub ready: category %s", category_id)

    bot = BridgeClient(config.forum_channel_id)
    gateway: asyncio.Task | None = None
    try:
        gateway = await connect_discord(bot, config.discord_token)
        chat = DiscordChat(bot, config.forum_channel_id)
        try:
            forum = await chat.forum()
        except Exception as e:
            raise RuntimeError(f"Forum channel check failed: {e}") from e
        logger.info("Discord ready: forum %s (%s)", forum.id, forum.name)
        _stderr_print(f"  Discord forum: {forum.name}")

        context = SyncContext(
            forum=GitHubForum(github),
            chat=chat,
            category_id=category_id,
            settings=SyncSettings(
                category_name=config.category_name, dry_run=config.dry_run
            ),
            pacer=build_pacer(config.pacing_interval, config.pacing_burst),
        )
        orchestrator = SyncOrchestrator(context)

        report = None
        if config.startup_reconcile:
            _stderr_print("  Reconciling existing threads and discussions...")
            report = await orchestrator.reconcile_all()
            logger.info("%s", format_sync_report(report))

        bot.attach(orchestrator)
        _stderr_print(
            f"Ready. Listening for webhooks on {config.host}:{config.port}"
        )
        yield {
            "config": config,
            "orchestrator": orchestrator,
            "bot": bot,
            "report": report,
        }
    except RuntimeError as e:
        logger.error("%s", e)
        _stderr_print(f"ERROR: {e}")
        raise
    finally:
        logger.info("discussion-sync shutting down")
        await bot.close()
        if gateway is not None and not gateway.done():
            gateway.cancel()
