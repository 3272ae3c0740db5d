"""Chat-side collaborator backed by a Discord forum channel.

Requires the privileged *Message Content* intent; without it every
message body arrives empty and nothing useful gets mirrored.
"""

from __future__ import annotations

import logging

import discord

from ..converters import is_attributed
from ..sync.models import Message, Thread
from .errors import NotFoundError, translate_discord_error

logger = logging.getLogger(__name__)

# Message types that carry user content.  Pins, joins and the like are
# system messages and never count towards the sequence.
CONTENT_MESSAGE_TYPES = frozenset(
    {discord.MessageType.default, discord.MessageType.reply}
)


def thread_from_channel(thread: discord.Thread) -> Thread:
    return Thread(
        id=str(thread.id),
        name=thread.name,
        guild_id=str(thread.guild.id) if thread.guild else None,
        owner_id=str(thread.owner_id) if thread.owner_id else None,
        url=thread.jump_url,
    )


def message_text(message: discord.Message) -> str:
    """Message content with attachment URLs appended, one per line."""
    parts = [message.content] if message.content else []
    parts.extend(attachment.url for attachment in message.attachments)
    return "\n".join(parts)


def message_from_discord(
    message: discord.Message, position: int, own_id: int | None = None
) -> Message:
    text = message_text(message)
    return Message(
        id=str(message.id),
        author=message.author.name,
        text=text,
        mirrored=is_attributed(text)
        or (own_id is not None and message.author.id == own_id),
        position=position,
        url=message.jump_url,
    )


class DiscordChat:
    """Async ``ChatPlatform`` implementation over a ``discord.Client``.

    Args:
        client: Logged-in Discord client.
        forum_channel_id: Id of the forum channel that mirrors the category.
    """

    def __init__(self, client: discord.Client, forum_channel_id: int) -> None:
        self.client = client
        self.forum_channel_id = forum_channel_id

    @property
    def own_id(self) -> int | None:
        return self.client.user.id if self.client.user else None

    async def forum(self) -> discord.ForumChannel:
        channel = self.client.get_channel(self.forum_channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(self.forum_channel_id)
            except discord.HTTPException as exc:
                raise translate_discord_error(exc) from exc
        if not isinstance(channel, discord.ForumChannel):
            raise NotFoundError(
                f"Channel {self.forum_channel_id} is not a forum channel",
                platform="discord",
            )
        return channel

    async def _thread_channel(self, thread_id: str) -> discord.Thread:
        channel = self.client.get_channel(int(thread_id))
        if isinstance(channel, discord.Thread):
            return channel
        try:
            channel = await self.client.fetch_channel(int(thread_id))
        except discord.HTTPException as exc:
            raise translate_discord_error(exc) from exc
        if not isinstance(channel, discord.Thread):
            raise NotFoundError(
                f"Channel {thread_id} is not a thread", platform="discord"
            )
        return channel

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_threads(self) -> list[Thread]:
        """Active and archived threads of the forum channel."""
        forum = await self.forum()
        seen: dict[int, discord.Thread] = {}
        try:
            for thread in await forum.guild.active_threads():
                if thread.parent_id == forum.id:
                    seen[thread.id] = thread
            async for thread in forum.archived_threads(limit=None):
                seen.setdefault(thread.id, thread)
        except discord.HTTPException as exc:
            raise translate_discord_error(exc) from exc
        logger.debug("Listed %d threads in forum %s", len(seen), forum.id)
        return [thread_from_channel(thread) for thread in seen.values()]

    async def list_thread_messages(self, thread: Thread) -> list[Message]:
        channel = await self._thread_channel(thread.id)
        messages: list[Message] = []
        try:
            async for message in channel.history(limit=None, oldest_first=True):
                # The starter message shares the thread's id.
                if message.id == channel.id:
                    continue
                if message.type not in CONTENT_MESSAGE_TYPES:
                    continue
                messages.append(
                    message_from_discord(message, len(messages), self.own_id)
                )
        except discord.HTTPException as exc:
            raise translate_discord_error(exc) from exc
        return messages

    async def fetch_seed_message(self, thread: Thread) -> Message | None:
        channel = await self._thread_channel(thread.id)
        try:
            message = await channel.fetch_message(channel.id)
        except discord.NotFound:
            logger.warning("Starter message of thread %s was deleted", thread.id)
            return None
        except discord.HTTPException as exc:
            raise translate_discord_error(exc) from exc
        return message_from_discord(message, 0, self.own_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_thread(self, title: str, body: str) -> Thread:
        forum = await self.forum()
        try:
            created = await forum.create_thread(name=title[:100], content=body)
        except discord.HTTPException as exc:
            raise translate_discord_error(exc) from exc
        logger.info("Created thread %s in forum %s", created.thread.id, forum.id)
        return thread_from_channel(created.thread)

    async def send_thread_message(self, thread_id: str, body: str) -> str:
        channel = await self._thread_channel(thread_id)
        try:
            message = await channel.send(body)
        except discord.HTTPException as exc:
            raise translate_discord_error(exc) from exc
        return str(message.id)
