"""Shared pytest fixtures for discussion-sync tests."""

from __future__ import annotations

import asyncio
import itertools

import pytest

from discussion_sync.config import Config
from discussion_sync.converters import is_attributed
from discussion_sync.core.errors import TransientError
from discussion_sync.sync import (
    Discussion,
    Message,
    NoPacing,
    SyncContext,
    SyncOrchestrator,
    SyncSettings,
    Thread,
)
from discussion_sync.sync.markers import format_marker

CATEGORY_ID = "DIC_general"
GUILD_ID = "900"


class _FailureInjector:
    """Raise ``TransientError`` on the N-th call of a named operation."""

    def __init__(self, platform: str) -> None:
        self.platform = platform
        self.fail_at: dict[str, int] = {}
        self._counts: dict[str, int] = {}

    async def check(self, op: str) -> None:
        # Give other tasks a chance to interleave, like real network I/O.
        await asyncio.sleep(0)
        count = self._counts.get(op, 0) + 1
        self._counts[op] = count
        if self.fail_at.get(op) == count:
            raise TransientError(f"{op} failed", platform=self.platform)


class FakeForum:
    """In-memory ``ForumPlatform``.

    Mutating calls are recorded in ``writes`` as ``(op, *args)`` tuples.
    """

    def __init__(self) -> None:
        self.discussions: dict[str, Discussion] = {}
        self.comments: dict[str, list[Message]] = {}
        self.writes: list[tuple] = []
        self.reads: list[tuple] = []
        self.failures = _FailureInjector("github")
        self._numbers = itertools.count(1)
        self._ids = itertools.count(1)

    def add_discussion(
        self,
        body: str = "",
        comments: list[str] | None = None,
        title: str = "A discussion",
        author: str = "octocat",
        category: str | None = "General",
    ) -> Discussion:
        number = next(self._numbers)
        discussion = Discussion(
            id=f"D_{number}",
            number=number,
            title=title,
            body=body,
            author=author,
            category=category,
            url=f"https://github.com/o/r/discussions/{number}",
        )
        self.discussions[discussion.id] = discussion
        self.comments[discussion.id] = []
        for text in comments or []:
            self._append(discussion.id, text, author="commenter")
        return discussion

    def _append(self, discussion_id: str, text: str, author: str) -> Message:
        existing = self.comments[discussion_id]
        comment_id = f"DC_{next(self._ids)}"
        message = Message(
            id=comment_id,
            author=author,
            text=text,
            mirrored=is_attributed(text),
            position=len(existing),
            url=f"https://github.com/o/r/discussions/x#{comment_id}",
        )
        existing.append(message)
        return message

    async def list_discussions(self, category_id: str) -> list[Discussion]:
        self.reads.append(("list_discussions", category_id))
        await self.failures.check("list_discussions")
        return list(self.discussions.values())

    async def list_comments(self, discussion: Discussion) -> list[Message]:
        self.reads.append(("list_comments", discussion.id))
        await self.failures.check("list_comments")
        return list(self.comments[discussion.id])

    async def create_discussion(
        self, category_id: str, title: str, body: str
    ) -> Discussion:
        await self.failures.check("create_discussion")
        self.writes.append(("create_discussion", category_id, title, body))
        discussion = self.add_discussion(body=body, title=title, author="sync-bot")
        return discussion

    async def add_comment(self, discussion_id: str, body: str) -> str:
        await self.failures.check("add_comment")
        self.writes.append(("add_comment", discussion_id, body))
        return self._append(discussion_id, body, author="sync-bot").id

    async def update_discussion_body(self, discussion_id: str, body: str) -> None:
        await self.failures.check("update_discussion_body")
        self.writes.append(("update_discussion_body", discussion_id, body))
        self.discussions[discussion_id] = self.discussions[
            discussion_id
        ].model_copy(update={"body": body})

    def discussion_url(self, discussion: Discussion) -> str:
        return f"https://github.com/o/r/discussions/{discussion.number}"


class FakeChat:
    """In-memory ``ChatPlatform`` with numeric thread ids."""

    def __init__(self) -> None:
        self.threads: dict[str, Thread] = {}
        self.seeds: dict[str, Message | None] = {}
        self.messages: dict[str, list[Message]] = {}
        self.writes: list[tuple] = []
        self.reads: list[tuple] = []
        self.failures = _FailureInjector("discord")
        self._ids = itertools.count(1001)

    def _url(self, thread_id: str, message_id: str | None = None) -> str:
        url = f"https://discord.com/channels/{GUILD_ID}/{thread_id}"
        return f"{url}/{message_id}" if message_id else url

    def add_thread(
        self,
        name: str = "A thread",
        seed: str | None = "Opening message",
        messages: list[str] | None = None,
        author: str = "wumpus",
    ) -> Thread:
        thread_id = str(next(self._ids))
        thread = Thread(
            id=thread_id,
            name=name,
            guild_id=GUILD_ID,
            owner_id="42",
            url=self._url(thread_id),
        )
        self.threads[thread_id] = thread
        self.seeds[thread_id] = (
            Message(
                id=thread_id,
                author=author,
                text=seed,
                url=self._url(thread_id, thread_id),
            )
            if seed is not None
            else None
        )
        self.messages[thread_id] = []
        for text in messages or []:
            self._append(thread_id, text, author="member")
        return thread

    def _append(self, thread_id: str, text: str, author: str) -> Message:
        existing = self.messages[thread_id]
        message_id = str(next(self._ids))
        message = Message(
            id=message_id,
            author=author,
            text=text,
            mirrored=is_attributed(text),
            position=len(existing),
            url=self._url(thread_id, message_id),
        )
        existing.append(message)
        return message

    async def list_threads(self) -> list[Thread]:
        self.reads.append(("list_threads",))
        await self.failures.check("list_threads")
        return list(self.threads.values())

    async def list_thread_messages(self, thread: Thread) -> list[Message]:
        self.reads.append(("list_thread_messages", thread.id))
        await self.failures.check("list_thread_messages")
        return list(self.messages[thread.id])

    async def fetch_seed_message(self, thread: Thread) -> Message | None:
        self.reads.append(("fetch_seed_message", thread.id))
        await self.failures.check("fetch_seed_message")
        return self.seeds.get(thread.id)

    async def create_thread(self, title: str, body: str) -> Thread:
        await self.failures.check("create_thread")
        self.writes.append(("create_thread", title, body))
        return self.add_thread(name=title, seed=body, author="sync-bot")

    async def send_thread_message(self, thread_id: str, body: str) -> str:
        await self.failures.check("send_thread_message")
        self.writes.append(("send_thread_message", thread_id, body))
        return self._append(thread_id, body, author="sync-bot").id


def link(forum: FakeForum, chat: FakeChat, discussion: Discussion, thread: Thread) -> Discussion:
    """Write the link marker for *thread* into *discussion* (setup helper)."""
    linked = discussion.model_copy(
        update={"body": f"{discussion.body}\n\n{format_marker(thread.id)}"}
    )
    forum.discussions[linked.id] = linked
    return linked


@pytest.fixture
def forum() -> FakeForum:
    return FakeForum()


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def settings() -> SyncSettings:
    return SyncSettings(category_name="General", dry_run=False)


@pytest.fixture
def context(forum, chat, settings) -> SyncContext:
    return SyncContext(
        forum=forum,
        chat=chat,
        category_id=CATEGORY_ID,
        settings=settings,
        pacer=NoPacing(),
    )


@pytest.fixture
def orchestrator(context) -> SyncOrchestrator:
    return SyncOrchestrator(context)


@pytest.fixture
def mock_config() -> Config:
    """A valid Config for adapter tests."""
    return Config(
        github_token="ghp_test",
        github_owner="octo-org",
        github_repo="hello-world",
        discord_token="discord-test",
        forum_channel_id=1375527112521552003,
    )
