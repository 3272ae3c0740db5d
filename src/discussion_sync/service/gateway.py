"""Discord gateway client turning forum activity into sync triggers."""

from __future__ import annotations

import logging

import discord

from ..converters import is_attributed
from ..core.discord_chat import thread_from_channel
from ..sync.engine import SyncOrchestrator

logger = logging.getLogger(__name__)


def build_intents() -> discord.Intents:
    # Message content is a privileged intent; enable it in the developer portal.
    intents = discord.Intents.default()
    intents.guilds = True
    intents.guild_messages = True
    intents.message_content = True
    return intents


def should_sync_thread(
    thread: discord.Thread, own_id: int | None, forum_channel_id: int
) -> bool:
    """True for threads opened by someone else in the mirrored forum."""
    if thread.parent_id != forum_channel_id:
        return False
    return own_id is None or thread.owner_id != own_id


def should_mirror_message(
    message: discord.Message, own_id: int | None, forum_channel_id: int
) -> bool:
    """True for human messages posted in a thread of the mirrored forum.

    Messages written by this bot, by any other bot, and messages that
    already start with an attribution header are never mirrored back.
    """
    if getattr(message.channel, "parent_id", None) != forum_channel_id:
        return False
    if own_id is not None and message.author.id == own_id:
        return False
    if message.author.bot:
        return False
    return not is_attributed(message.content or "")


class BridgeClient(discord.Client):
    """Gateway connection for the mirrored forum channel.

    Events that arrive before ``attach`` are dropped; the startup
    reconcile pass covers them.

    Args:
        forum_channel_id: Id of the mirrored forum channel.
    """

    def __init__(self, forum_channel_id: int, **options) -> None:
        super().__init__(intents=build_intents(), **options)
        self.forum_channel_id = forum_channel_id
        self.orchestrator: SyncOrchestrator | None = None

    @property
    def own_id(self) -> int | None:
        return self.user.id if self.user else None

    def attach(self, orchestrator: SyncOrchestrator) -> None:
        self.orchestrator = orchestrator

    async def on_ready(self) -> None:
        logger.info("Discord ready as %s", self.user)

    async def on_thread_create(self, thread: discord.Thread) -> None:
        if not should_sync_thread(thread, self.own_id, self.forum_channel_id):
            return
        logger.info("Thread created: %s (%s)", thread.id, thread.name)
        await self._sync(thread)

    async def on_message(self, message: discord.Message) -> None:
        if not should_mirror_message(message, self.own_id, self.forum_channel_id):
            return
        logger.info(
            "Message %s by %s in thread %s",
            message.id,
            message.author.name,
            message.channel.id,
        )
        await self._sync(message.channel)

    async def _sync(self, channel: discord.Thread) -> None:
        if self.orchestrator is None:
            logger.debug("Ignoring event for %s before startup finished", channel.id)
            return
        try:
            await self.orchestrator.sync_thread_side(thread_from_channel(channel))
        except Exception as exc:
            logger.error("Error syncing thread %s: %s", channel.id, exc)
