"""Collaborator contracts consumed by the sync core.

The core never talks to a platform SDK directly; it calls these narrow
async protocols.  ``core.github.GitHubForum`` and
``core.discord_chat.DiscordChat`` implement them for production, and the
tests provide in-memory fakes.

Adapters raise ``core.errors.CollaboratorError`` subclasses on failure.
"""

from __future__ import annotations

from typing import Protocol

from .models import Discussion, Message, Thread


class ForumPlatform(Protocol):
    """Discussion-side operations (GitHub Discussions)."""

    async def list_discussions(self, category_id: str) -> list[Discussion]:
        ...  # pragma: no cover

    async def list_comments(self, discussion: Discussion) -> list[Message]:
        """Comments oldest-first, all pages.  The opening post is not a comment."""
        ...  # pragma: no cover

    async def create_discussion(
        self, category_id: str, title: str, body: str
    ) -> Discussion:
        ...  # pragma: no cover

    async def add_comment(self, discussion_id: str, body: str) -> str:
        """Post a comment and return its id."""
        ...  # pragma: no cover

    async def update_discussion_body(
        self, discussion_id: str, body: str
    ) -> None:
        ...  # pragma: no cover

    def discussion_url(self, discussion: Discussion) -> str:
        ...  # pragma: no cover


class ChatPlatform(Protocol):
    """Thread-side operations (Discord forum channel)."""

    async def list_threads(self) -> list[Thread]:
        ...  # pragma: no cover

    async def list_thread_messages(self, thread: Thread) -> list[Message]:
        """Messages oldest-first with the thread's starter message excluded."""
        ...  # pragma: no cover

    async def fetch_seed_message(self, thread: Thread) -> Message | None:
        """The message that opened *thread*, if it still exists."""
        ...  # pragma: no cover

    async def create_thread(self, title: str, body: str) -> Thread:
        ...  # pragma: no cover

    async def send_thread_message(self, thread_id: str, body: str) -> str:
        """Post a message and return its id."""
        ...  # pragma: no cover
