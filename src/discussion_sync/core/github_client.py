import logging
import threading
from typing import Any

import requests

from ..config import Config
from .errors import (
    CollaboratorError,
    NotFoundError,
    translate_graphql_errors,
    translate_http_error,
)

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"
PAGE_SIZE = 100

_REPOSITORY_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    id
    hasDiscussionsEnabled
  }
}
"""

_CATEGORIES_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    discussionCategories(first: 50) {
      nodes {
        id
        name
      }
    }
  }
}
"""

_DISCUSSIONS_QUERY = """
query($owner: String!, $repo: String!, $categoryId: ID!, $after: String) {
  repository(owner: $owner, name: $repo) {
    discussions(categoryId: $categoryId, first: 100, after: $after) {
      nodes {
        id
        number
        title
        body
        url
        author {
          login
        }
        category {
          name
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""

_COMMENTS_QUERY = """
query($owner: String!, $repo: String!, $number: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    discussion(number: $number) {
      comments(first: 100, after: $after) {
        nodes {
          id
          body
          url
          author {
            login
          }
        }
        pageInfo {
          hasNextPage
          endCursor
        }
      }
    }
  }
}
"""

_CREATE_DISCUSSION_MUTATION = """
mutation($repositoryId: ID!, $categoryId: ID!, $title: String!, $body: String!) {
  createDiscussion(input: {
    repositoryId: $repositoryId,
    categoryId: $categoryId,
    title: $title,
    body: $body
  }) {
    discussion {
      id
      number
      title
      body
      url
      author {
        login
      }
      category {
        name
      }
    }
  }
}
"""

_ADD_COMMENT_MUTATION = """
mutation($discussionId: ID!, $body: String!) {
  addDiscussionComment(input: {discussionId: $discussionId, body: $body}) {
    comment {
      id
    }
  }
}
"""

_UPDATE_DISCUSSION_MUTATION = """
mutation($discussionId: ID!, $body: String!) {
  updateDiscussion(input: {discussionId: $discussionId, body: $body}) {
    discussion {
      id
    }
  }
}
"""


class GitHubClient:
    """Blocking GitHub GraphQL client for one repository.

    Returns raw GraphQL nodes (dicts); ``core.github.GitHubForum`` turns
    them into sync models.  Every failure is raised as a
    ``CollaboratorError`` subclass.
    """

    def __init__(self, config: Config):
        self.config = config
        self.owner = config.github_owner
        self.repo = config.github_repo
        self._thread_local = threading.local()
        self._repository_id: str | None = None

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"bearer {self.config.github_token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "discussion-sync",
            }
        )
        return session

    def graphql(self, query: str, **variables: Any) -> dict:
        """Execute one GraphQL request and return its ``data`` object.

        Raises:
            CollaboratorError: On transport failure or GraphQL errors.
        """
        session = self._get_session()
        try:
            response = session.post(
                GRAPHQL_URL,
                json={"query": query, "variables": variables},
                timeout=(10, 60),
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise translate_http_error(exc) from exc
        except ValueError as exc:
            raise CollaboratorError(
                f"Invalid JSON from GitHub: {exc}", platform="github"
            ) from exc

        if payload.get("errors"):
            raise translate_graphql_errors(payload["errors"])
        return payload.get("data") or {}

    def _repository(self, data: dict) -> dict:
        repository = data.get("repository")
        if not repository:
            raise NotFoundError(
                f"Repository {self.owner}/{self.repo} not found. "
                "Check your GITHUB_OWNER and GITHUB_REPO settings.",
                platform="github",
            )
        return repository

    # ------------------------------------------------------------------
    # Startup checks
    # ------------------------------------------------------------------

    def fetch_repository(self) -> dict:
        """Return ``{"id", "hasDiscussionsEnabled"}`` for the repository."""
        data = self.graphql(_REPOSITORY_QUERY, owner=self.owner, repo=self.repo)
        repository = self._repository(data)
        self._repository_id = repository["id"]
        return repository

    def repository_id(self) -> str:
        if self._repository_id is None:
            self.fetch_repository()
        assert self._repository_id is not None
        return self._repository_id

    def resolve_category_id(self, name: str) -> str:
        """Return the node id of the discussion category called *name*.

        Raises:
            NotFoundError: If the repository has no category by that name.
        """
        data = self.graphql(_CATEGORIES_QUERY, owner=self.owner, repo=self.repo)
        nodes = self._repository(data)["discussionCategories"]["nodes"]
        for node in nodes:
            if node["name"] == name:
                return node["id"]
        raise NotFoundError(
            f"Category '{name}' not found in repository {self.owner}/{self.repo}",
            platform="github",
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_discussions(self, category_id: str) -> list[dict]:
        """All discussions of a category, every page."""
        nodes: list[dict] = []
        after: str | None = None
        while True:
            data = self.graphql(
                _DISCUSSIONS_QUERY,
                owner=self.owner,
                repo=self.repo,
                categoryId=category_id,
                after=after,
            )
            page = self._repository(data)["discussions"]
            nodes.extend(page["nodes"])
            if not page["pageInfo"]["hasNextPage"]:
                break
            after = page["pageInfo"]["endCursor"]
        logger.debug(
            "Listed %d discussions in category %s", len(nodes), category_id
        )
        return nodes

    def list_comments(self, number: int) -> list[dict]:
        """All top-level comments of discussion *number*, oldest first."""
        nodes: list[dict] = []
        after: str | None = None
        while True:
            data = self.graphql(
                _COMMENTS_QUERY,
                owner=self.owner,
                repo=self.repo,
                number=number,
                after=after,
            )
            discussion = self._repository(data).get("discussion")
            if discussion is None:
                raise NotFoundError(
                    f"Discussion #{number} not found", platform="github"
                )
            page = discussion["comments"]
            nodes.extend(page["nodes"])
            if not page["pageInfo"]["hasNextPage"]:
                break
            after = page["pageInfo"]["endCursor"]
        return nodes

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_discussion(self, category_id: str, title: str, body: str) -> dict:
        data = self.graphql(
            _CREATE_DISCUSSION_MUTATION,
            repositoryId=self.repository_id(),
            categoryId=category_id,
            title=title,
            body=body,
        )
        return data["createDiscussion"]["discussion"]

    def add_comment(self, discussion_id: str, body: str) -> str:
        data = self.graphql(
            _ADD_COMMENT_MUTATION, discussionId=discussion_id, body=body
        )
        return data["addDiscussionComment"]["comment"]["id"]

    def update_discussion_body(self, discussion_id: str, body: str) -> None:
        self.graphql(
            _UPDATE_DISCUSSION_MUTATION, discussionId=discussion_id, body=body
        )
