"""Service entry point: webhook server plus Discord gateway.

The startup lifespan connects both platforms and runs the reconcile
pass; uvicorn then serves the webhook app on the same event loop as the
Discord gateway.
"""

import argparse
import asyncio
import logging
import sys

import uvicorn

from .. import __version__
from ..logger import setup_logging
from .lifespan import load_logging_config, service_lifespan
from .webhook import create_app

logger = logging.getLogger(__name__)


async def main(config_overrides: dict | None = None) -> None:
    """Start the service and serve until interrupted.

    Args:
        config_overrides: Optional dict with values from the CLI
            (owner, repo, category, forum_channel_id, dry_run, host,
            port, debug, log_file, log_format).
    """
    overrides = config_overrides or {}
    file_logging = load_logging_config()
    setup_logging(
        debug=overrides.get("debug", False),
        log_file=overrides.get("log_file"),
        log_format=overrides.get("log_format") or file_logging.format,
        level=file_logging.level,
        fallback_file=file_logging.file,
    )

    async with service_lifespan(config_overrides=overrides) as ctx:
        config = ctx["config"]
        app = create_app(
            ctx["orchestrator"], config.webhook_secret, ctx["report"]
        )
        server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=config.host,
                port=config.port,
                log_config=None,
            )
        )
        logger.info(
            "Webhook server listening on %s:%d%s",
            config.host,
            config.port,
            " (dry run mode)" if config.dry_run else "",
        )
        await server.serve()


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    parser = argparse.ArgumentParser(
        description="discussion-sync - mirror GitHub Discussions with a Discord forum channel",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with settings from .env / config.yml
  discussion-sync

  # Preview what a first run would do without writing anything
  discussion-sync --dry-run --debug

  # Override the mirrored category and the webhook port
  discussion-sync --category Q&A --port 8080

Tokens are read from GITHUB_TOKEN and DISCORD_TOKEN only.
        """,
    )

    parser.add_argument("--owner", help="Override repository owner (GITHUB_OWNER)")
    parser.add_argument("--repo", help="Override repository name (GITHUB_REPO)")
    parser.add_argument(
        "--category", help="Override discussion category (CATEGORY_NAME)"
    )
    parser.add_argument(
        "--forum-channel-id",
        type=int,
        help="Override Discord forum channel id (FORUM_CHANNEL_ID)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log every write instead of performing it",
    )
    parser.add_argument("--host", help="Webhook bind address (default: 0.0.0.0)")
    parser.add_argument(
        "--port", type=int, help="Webhook bind port (default: 3000)"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        help="Log output format (default: config file, else text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"discussion-sync version {__version__}",
    )

    args = parser.parse_args()

    config_overrides: dict = {}
    if args.owner:
        config_overrides["owner"] = args.owner
    if args.repo:
        config_overrides["repo"] = args.repo
    if args.category:
        config_overrides["category"] = args.category
    if args.forum_channel_id is not None:
        config_overrides["forum_channel_id"] = args.forum_channel_id
    if args.dry_run:
        config_overrides["dry_run"] = True
    if args.host:
        config_overrides["host"] = args.host
    if args.port is not None:
        config_overrides["port"] = args.port
    if args.debug:
        config_overrides["debug"] = True
    if args.log_file:
        config_overrides["log_file"] = args.log_file
    if args.log_format:
        config_overrides["log_format"] = args.log_format

    try:
        asyncio.run(main(config_overrides=config_overrides))
    except RuntimeError:
        # Error already printed to stderr by the lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
