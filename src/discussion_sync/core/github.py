"""Forum-side collaborator backed by the GitHub GraphQL API."""

from __future__ import annotations

import logging

from ..converters import is_attributed
from ..sync.models import Discussion, Message
from .async_utils import run_sync
from .github_client import GitHubClient

logger = logging.getLogger(__name__)


def _login(node: dict) -> str:
    # Deleted accounts come back with a null author.
    author = node.get("author") or {}
    return author.get("login") or "ghost"


def discussion_from_node(node: dict) -> Discussion:
    category = node.get("category") or {}
    return Discussion(
        id=node["id"],
        number=int(node["number"]),
        title=node.get("title") or "",
        body=node.get("body") or "",
        author=_login(node),
        category=category.get("name"),
        url=node.get("url"),
    )


def message_from_comment(node: dict, position: int) -> Message:
    body = node.get("body") or ""
    return Message(
        id=node["id"],
        author=_login(node),
        text=body,
        mirrored=is_attributed(body),
        position=position,
        url=node.get("url"),
    )


class GitHubForum:
    """Async ``ForumPlatform`` implementation over ``GitHubClient``."""

    def __init__(self, client: GitHubClient) -> None:
        self.client = client

    async def list_discussions(self, category_id: str) -> list[Discussion]:
        nodes = await run_sync(self.client.list_discussions, category_id)
        return [discussion_from_node(node) for node in nodes]

    async def list_comments(self, discussion: Discussion) -> list[Message]:
        nodes = await run_sync(self.client.list_comments, discussion.number)
        return [
            message_from_comment(node, position)
            for position, node in enumerate(nodes)
        ]

    async def create_discussion(
        self, category_id: str, title: str, body: str
    ) -> Discussion:
        node = await run_sync(
            self.client.create_discussion, category_id, title, body
        )
        discussion = discussion_from_node(node)
        logger.info(
            "Created discussion #%d (%s)", discussion.number, discussion.id
        )
        return discussion

    async def add_comment(self, discussion_id: str, body: str) -> str:
        return await run_sync(self.client.add_comment, discussion_id, body)

    async def update_discussion_body(self, discussion_id: str, body: str) -> None:
        await run_sync(self.client.update_discussion_body, discussion_id, body)

    def discussion_url(self, discussion: Discussion) -> str:
        if discussion.url:
            return discussion.url
        return (
            f"https://github.com/{self.client.owner}/{self.client.repo}"
            f"/discussions/{discussion.number}"
        )
