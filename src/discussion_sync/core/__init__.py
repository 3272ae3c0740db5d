"""Platform adapters shared by the sync engine and the service layer."""

from .async_utils import run_sync
from .discord_chat import DiscordChat
from .errors import (
    CollaboratorError,
    NotFoundError,
    PayloadError,
    PermissionDeniedError,
    TransientError,
)
from .github import GitHubForum
from .github_client import GitHubClient

__all__ = [
    "CollaboratorError",
    "DiscordChat",
    "GitHubClient",
    "GitHubForum",
    "NotFoundError",
    "PayloadError",
    "PermissionDeniedError",
    "TransientError",
    "run_sync",
]
