"""Tests for the GitHub forum adapter (node mapping and async wrapping)."""

from unittest.mock import MagicMock

import pytest

from discussion_sync.core.github import (
    GitHubForum,
    discussion_from_node,
    message_from_comment,
)
from discussion_sync.sync import Discussion

_NODE = {
    "id": "D_kwDO",
    "number": 12,
    "title": "How do I X?",
    "body": "Question",
    "url": "https://github.com/octo-org/hello-world/discussions/12",
    "author": {"login": "octocat"},
    "category": {"name": "General"},
}


class TestNodeMapping:
    def test_discussion_from_node(self):
        discussion = discussion_from_node(_NODE)

        assert discussion.id == "D_kwDO"
        assert discussion.number == 12
        assert discussion.author == "octocat"
        assert discussion.category == "General"
        assert discussion.url.endswith("/discussions/12")

    def test_deleted_author_is_ghost(self):
        discussion = discussion_from_node({**_NODE, "author": None, "body": None})

        assert discussion.author == "ghost"
        assert discussion.body == ""

    def test_comment_mapping(self):
        message = message_from_comment(
            {"id": "DC_1", "body": "hello", "author": {"login": "hubot"}}, 3
        )

        assert message.position == 3
        assert message.author == "hubot"
        assert message.mirrored is False
        assert message.url is None

    def test_mirrored_comment_flagged(self):
        body = "💬 **wumpus** on [Discord](https://discord.com/channels/1/2/3) wrote:\n\nhi"
        message = message_from_comment({"id": "DC_2", "body": body}, 0)

        assert message.mirrored is True


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.owner = "octo-org"
    client.repo = "hello-world"
    return client


class TestGitHubForum:
    async def test_list_discussions(self, client):
        client.list_discussions.return_value = [_NODE]

        discussions = await GitHubForum(client).list_discussions("DIC_1")

        client.list_discussions.assert_called_once_with("DIC_1")
        assert [d.number for d in discussions] == [12]

    async def test_list_comments_positions(self, client):
        client.list_comments.return_value = [
            {"id": "DC_1", "body": "a"},
            {"id": "DC_2", "body": "b"},
        ]

        messages = await GitHubForum(client).list_comments(discussion_from_node(_NODE))

        client.list_comments.assert_called_once_with(12)
        assert [m.position for m in messages] == [0, 1]

    async def test_create_discussion(self, client):
        client.create_discussion.return_value = _NODE

        discussion = await GitHubForum(client).create_discussion("DIC_1", "T", "B")

        client.create_discussion.assert_called_once_with("DIC_1", "T", "B")
        assert discussion.id == "D_kwDO"

    async def test_writes_delegate(self, client):
        client.add_comment.return_value = "DC_9"
        forum = GitHubForum(client)

        assert await forum.add_comment("D_1", "hi") == "DC_9"
        await forum.update_discussion_body("D_1", "body")

        client.update_discussion_body.assert_called_once_with("D_1", "body")

    def test_discussion_url_prefers_node_url(self, client):
        forum = GitHubForum(client)

        assert forum.discussion_url(discussion_from_node(_NODE)) == _NODE["url"]
        assert forum.discussion_url(Discussion(id="D", number=4)) == (
            "https://github.com/octo-org/hello-world/discussions/4"
        )
