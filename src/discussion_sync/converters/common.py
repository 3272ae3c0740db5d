"""Common types and constants for cross-platform message conversion."""

import re
from dataclasses import dataclass
from enum import Enum


class SyncDirection(str, Enum):
    """Direction of a sync pass, named after the side that receives.

    ``TO_CHAT`` mirrors GitHub content into Discord, ``TO_FORUM`` mirrors
    Discord content into GitHub.
    """

    NONE = "none"
    TO_CHAT = "to_chat"
    TO_FORUM = "to_forum"


# =============================================================================
# Platform limits
# =============================================================================

# Hard per-message ceilings enforced by each platform's API.
DISCORD_MAX_LENGTH = 2000
GITHUB_MAX_LENGTH = 65536

CONTINUATION_MARKER = "\n(continued...)"
EMPTY_PLACEHOLDER = "(no text content)"

# =============================================================================
# URL namespaces
# =============================================================================

# GitHub serves pasted images from this namespace.  Discord only embeds a
# bare URL when it stands on its own line.
ATTACHMENT_URL_PATTERN = (
    r"https://github\.com/user-attachments/assets/[A-Za-z0-9-]+"
)
_ATTACHMENT_URL_RE = re.compile(rf"^{ATTACHMENT_URL_PATTERN}$")

_IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {"png", "jpg", "jpeg", "gif", "webp", "bmp", "svg", "avif"}
)


def max_length_for(direction: SyncDirection) -> int:
    """Return the per-message ceiling of the platform receiving *direction*."""
    if direction == SyncDirection.TO_CHAT:
        return DISCORD_MAX_LENGTH
    return GITHUB_MAX_LENGTH


def is_attachment_url(url: str) -> bool:
    """Whether *url* belongs to GitHub's user-attachments namespace."""
    return _ATTACHMENT_URL_RE.match(url) is not None


def is_image_url(url: str) -> bool:
    """Heuristic: does *url* point at an image?

    True for GitHub attachment URLs and for any URL whose path ends in a
    known image extension (query string and fragment ignored).

    Examples:
        >>> is_image_url("https://cdn.discordapp.com/attachments/1/2/a.PNG?ex=1")
        True
        >>> is_image_url("https://example.com/page.html")
        False
    """
    if is_attachment_url(url):
        return True
    path = re.split(r"[?#]", url, maxsplit=1)[0]
    _, dot, ext = path.rpartition(".")
    if not dot or "/" in ext:
        return False
    return ext.lower() in _IMAGE_EXTENSIONS


@dataclass(frozen=True)
class RenderedMessage:
    """An outgoing message split into its attribution header and body."""

    header: str
    body: str

    @property
    def text(self) -> str:
        return self.header + self.body
