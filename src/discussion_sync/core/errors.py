"""Collaborator failure types and translation helpers.

Platform adapters translate their transport-level failures into one of
three distinguishable kinds so that callers can tell a missing entity
from a transient outage or a permission problem.  The sync core never
retries; it lets these propagate to the pair boundary.
"""

from __future__ import annotations

import discord
import requests


class CollaboratorError(Exception):
    """A platform call failed.

    Attributes:
        kind: Error category (``not_found``, ``transient``,
            ``permission_denied`` or ``server_error``).
        platform: Which side raised it (``github`` or ``discord``).
    """

    kind = "server_error"

    def __init__(self, message: str, platform: str = "") -> None:
        super().__init__(message)
        self.platform = platform

    def __str__(self) -> str:
        base = super().__str__()
        if self.platform:
            return f"[{self.platform}] {self.kind}: {base}"
        return f"{self.kind}: {base}"


class NotFoundError(CollaboratorError):
    kind = "not_found"


class TransientError(CollaboratorError):
    kind = "transient"


class PermissionDeniedError(CollaboratorError):
    kind = "permission_denied"


class PayloadError(ValueError):
    """A recognized trigger payload is missing required fields."""


# ---------------------------------------------------------------------------
# GitHub translation
# ---------------------------------------------------------------------------

_GRAPHQL_ERROR_TYPES: dict[str, type[CollaboratorError]] = {
    "NOT_FOUND": NotFoundError,
    "FORBIDDEN": PermissionDeniedError,
    "INSUFFICIENT_SCOPES": PermissionDeniedError,
    "RATE_LIMITED": TransientError,
    "SERVICE_UNAVAILABLE": TransientError,
}


def translate_http_error(exc: requests.RequestException) -> CollaboratorError:
    """Map a ``requests`` failure onto a collaborator error kind."""
    match exc:
        case requests.Timeout() | requests.ConnectionError():
            return TransientError(str(exc), platform="github")
        case requests.HTTPError(response=response) if response is not None:
            status = response.status_code
            if status in (401, 403):
                return PermissionDeniedError(str(exc), platform="github")
            if status == 404:
                return NotFoundError(str(exc), platform="github")
            if status == 429 or status >= 500:
                return TransientError(str(exc), platform="github")
            return CollaboratorError(str(exc), platform="github")
        case _:
            return CollaboratorError(str(exc), platform="github")


def translate_graphql_errors(errors: list[dict]) -> CollaboratorError:
    """Map the ``errors`` array of a GraphQL response onto an error kind.

    The first error with a recognized ``type`` decides the kind; the
    message joins every error message.
    """
    message = "; ".join(
        str(err.get("message", "unknown error")) for err in errors
    ) or "unknown error"
    for err in errors:
        cls = _GRAPHQL_ERROR_TYPES.get(str(err.get("type", "")).upper())
        if cls is not None:
            return cls(message, platform="github")
    return CollaboratorError(message, platform="github")


# ---------------------------------------------------------------------------
# Discord translation
# ---------------------------------------------------------------------------


def translate_discord_error(exc: discord.HTTPException) -> CollaboratorError:
    """Map a ``discord.py`` HTTP failure onto a collaborator error kind."""
    message = exc.text or str(exc)
    match exc:
        case discord.NotFound():
            return NotFoundError(message, platform="discord")
        case discord.Forbidden():
            return PermissionDeniedError(message, platform="discord")
        case discord.DiscordServerError():
            return TransientError(message, platform="discord")
        case _ if exc.status == 429:
            return TransientError(message, platform="discord")
        case _:
            return CollaboratorError(message, platform="discord")
