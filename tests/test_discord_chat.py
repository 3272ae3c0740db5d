"""Tests for the Discord chat adapter against mocked discord.py objects."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, Mock

import discord
import pytest

from discussion_sync.core.discord_chat import (
    DiscordChat,
    message_from_discord,
    message_text,
    thread_from_channel,
)
from discussion_sync.core.errors import NotFoundError, PermissionDeniedError
from discussion_sync.sync import Thread

FORUM_ID = 555
BOT_ID = 7


async def _aiter(items):
    for item in items:
        yield item


def _http_response(status):
    return Mock(status=status, reason="error")


def _thread_channel(thread_id=1001, parent_id=FORUM_ID, history=()):
    channel = MagicMock(spec=discord.Thread)
    channel.id = thread_id
    channel.name = f"thread {thread_id}"
    channel.parent_id = parent_id
    channel.owner_id = 42
    channel.guild = SimpleNamespace(id=900)
    channel.jump_url = f"https://discord.com/channels/900/{thread_id}"
    channel.history = MagicMock(side_effect=lambda **_: _aiter(history))
    channel.send = AsyncMock(return_value=SimpleNamespace(id=3003))
    return channel


def _message(message_id, content="hi", author_id=42, kind=discord.MessageType.default):
    return SimpleNamespace(
        id=message_id,
        type=kind,
        content=content,
        attachments=[],
        author=SimpleNamespace(id=author_id, name="member"),
        jump_url=f"https://discord.com/channels/900/1001/{message_id}",
    )


def _forum():
    forum = MagicMock(spec=discord.ForumChannel)
    forum.id = FORUM_ID
    forum.guild = SimpleNamespace(active_threads=AsyncMock(return_value=[]))
    forum.archived_threads = MagicMock(side_effect=lambda **_: _aiter([]))
    return forum


def _client(channels):
    client = MagicMock()
    client.user = SimpleNamespace(id=BOT_ID)
    client.get_channel.side_effect = channels.get
    client.fetch_channel = AsyncMock(
        side_effect=discord.NotFound(_http_response(404), "Unknown Channel")
    )
    return client


def _linked_thread(thread_id=1001):
    return Thread(id=str(thread_id), name="t")


class TestConversions:
    def test_message_text_appends_attachments(self):
        message = _message(1, content="look")
        message.attachments = [SimpleNamespace(url="https://cdn.discordapp.com/a.png")]

        assert message_text(message) == "look\nhttps://cdn.discordapp.com/a.png"

    def test_message_text_attachment_only(self):
        message = _message(1, content="")
        message.attachments = [SimpleNamespace(url="https://cdn.discordapp.com/a.png")]

        assert message_text(message) == "https://cdn.discordapp.com/a.png"

    def test_own_messages_are_mirrored(self):
        assert message_from_discord(_message(1, author_id=BOT_ID), 0, BOT_ID).mirrored
        assert not message_from_discord(_message(1), 0, BOT_ID).mirrored

    def test_thread_from_channel(self):
        thread = thread_from_channel(_thread_channel())

        assert thread.id == "1001"
        assert thread.guild_id == "900"
        assert thread.owner_id == "42"


class TestDiscordChat:
    async def test_forum_must_be_forum_channel(self):
        chat = DiscordChat(_client({FORUM_ID: _thread_channel()}), FORUM_ID)

        with pytest.raises(NotFoundError, match="not a forum channel"):
            await chat.forum()

    async def test_missing_forum_translates_not_found(self):
        chat = DiscordChat(_client({}), FORUM_ID)

        with pytest.raises(NotFoundError):
            await chat.forum()

    async def test_list_threads_merges_active_and_archived(self):
        forum = _forum()
        active = _thread_channel(1001)
        elsewhere = _thread_channel(1002, parent_id=1)
        archived = _thread_channel(1003)
        forum.guild.active_threads.return_value = [active, elsewhere]
        forum.archived_threads.side_effect = lambda **_: _aiter([active, archived])
        chat = DiscordChat(_client({FORUM_ID: forum}), FORUM_ID)

        threads = await chat.list_threads()

        assert [t.id for t in threads] == ["1001", "1003"]

    async def test_list_thread_messages_skips_starter_and_system(self):
        channel = _thread_channel(
            history=[
                _message(1001, content="starter"),
                _message(2001, content="first"),
                _message(2002, kind=discord.MessageType.pins_add),
                _message(2003, content="second", kind=discord.MessageType.reply),
            ]
        )
        chat = DiscordChat(_client({1001: channel}), FORUM_ID)

        messages = await chat.list_thread_messages(_linked_thread())

        assert [m.text for m in messages] == ["first", "second"]
        assert [m.position for m in messages] == [0, 1]
        channel.history.assert_called_once_with(limit=None, oldest_first=True)

    async def test_fetch_seed_message(self):
        channel = _thread_channel()
        channel.fetch_message = AsyncMock(return_value=_message(1001, content="seed"))
        chat = DiscordChat(_client({1001: channel}), FORUM_ID)

        seed = await chat.fetch_seed_message(_linked_thread())

        channel.fetch_message.assert_awaited_once_with(1001)
        assert seed.text == "seed"

    async def test_deleted_seed_is_none(self):
        channel = _thread_channel()
        channel.fetch_message = AsyncMock(
            side_effect=discord.NotFound(_http_response(404), "Unknown Message")
        )
        chat = DiscordChat(_client({1001: channel}), FORUM_ID)

        assert await chat.fetch_seed_message(_linked_thread()) is None

    async def test_create_thread_truncates_title(self):
        forum = _forum()
        created = _thread_channel(1005)
        forum.create_thread = AsyncMock(return_value=SimpleNamespace(thread=created))
        chat = DiscordChat(_client({FORUM_ID: forum}), FORUM_ID)

        thread = await chat.create_thread("T" * 150, "seed body")

        forum.create_thread.assert_awaited_once_with(name="T" * 100, content="seed body")
        assert thread.id == "1005"

    async def test_send_thread_message(self):
        channel = _thread_channel()
        chat = DiscordChat(_client({1001: channel}), FORUM_ID)

        assert await chat.send_thread_message("1001", "hello") == "3003"
        channel.send.assert_awaited_once_with("hello")

    async def test_send_forbidden_translates(self):
        channel = _thread_channel()
        channel.send.side_effect = discord.Forbidden(_http_response(403), "Missing Access")
        chat = DiscordChat(_client({1001: channel}), FORUM_ID)

        with pytest.raises(PermissionDeniedError):
            await chat.send_thread_message("1001", "hello")
