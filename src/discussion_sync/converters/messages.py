"""Attribution headers and length clamping for mirrored messages.

Every message this system writes starts with an attribution header
naming the source platform, the original author and a link back to the
original.  The header doubles as the loop guard: incoming messages that
already carry one are never mirrored again.
"""

import re

from .common import (
    CONTINUATION_MARKER,
    EMPTY_PLACEHOLDER,
    RenderedMessage,
    SyncDirection,
    max_length_for,
)
from .images import image_normalize

# Matches headers produced by attribution_header() in either direction.
_HEADER_RE = re.compile(
    r"^💬 \*\*(?P<author>.+?)\*\* on \[(?P<source>GitHub|Discord)\]\(<?(?P<url>[^)>\s]*)>?\) wrote:\n"
)

_MARKDOWN_SPECIALS = re.compile(r"([\\*_`~|])")


def _escape_author(author: str) -> str:
    """Escape Markdown so a handle like ``__init__`` renders literally."""
    return _MARKDOWN_SPECIALS.sub(r"\\\1", author.strip() or "unknown")


def attribution_header(
    direction: SyncDirection, author: str, back_link_url: str
) -> str:
    """Build the prefix line for a message mirrored in *direction*.

    Discord gets the link wrapped in ``<...>`` to suppress its preview
    embed; GitHub gets an extra blank line so the body starts a new
    paragraph.

    Args:
        direction: ``TO_CHAT`` for GitHub -> Discord, ``TO_FORUM`` for
            Discord -> GitHub.
        author: Handle of the original author.
        back_link_url: URL of the original message or discussion.

    Returns:
        Header string ending in a newline.

    Raises:
        ValueError: If *direction* is ``NONE``.

    Examples:
        >>> attribution_header(SyncDirection.TO_CHAT, "octocat", "https://github.com/o/r/discussions/1")
        '💬 **octocat** on [GitHub](<https://github.com/o/r/discussions/1>) wrote:\\n'
    """
    name = _escape_author(author)
    if direction == SyncDirection.TO_CHAT:
        return f"💬 **{name}** on [GitHub](<{back_link_url}>) wrote:\n"
    if direction == SyncDirection.TO_FORUM:
        return f"💬 **{name}** on [Discord]({back_link_url}) wrote:\n\n"
    raise ValueError(f"No attribution header for direction '{direction}'")


def is_attributed(text: str) -> bool:
    """Whether *text* starts with a header built by ``attribution_header``."""
    return _HEADER_RE.match(text) is not None


def length_clamp(rendered: RenderedMessage, max_length: int) -> str:
    """Fit *rendered* into *max_length* characters.

    The body is truncated (never the header) and ``CONTINUATION_MARKER``
    appended if, and only if, truncation happened.  This never raises:

    - an empty message becomes ``EMPTY_PLACEHOLDER`` so it stays postable;
    - a header that leaves no room for the marker is itself cut, since
      there is nothing else left to cut;
    - a ceiling shorter than the marker yields a plain prefix.

    Examples:
        >>> length_clamp(RenderedMessage("h:", "abcdef"), 8)
        'h:abcdef'
        >>> len(length_clamp(RenderedMessage("h:", "x" * 50), 20))
        20
    """
    if max_length <= 0:
        return ""

    header, body = rendered.header, rendered.body
    if not (header + body).strip():
        body = EMPTY_PLACEHOLDER

    text = header + body
    if len(text) <= max_length:
        return text

    room = max_length - len(header) - len(CONTINUATION_MARKER)
    if room >= 0:
        return header + body[:room] + CONTINUATION_MARKER
    if max_length >= len(CONTINUATION_MARKER):
        return header[: max_length - len(CONTINUATION_MARKER)] + CONTINUATION_MARKER
    return text[:max_length]


def render_message(
    direction: SyncDirection,
    author: str,
    back_link_url: str,
    body: str,
    max_length: int | None = None,
) -> str:
    """Render one outgoing message for *direction*.

    Applies each transform exactly once, in order: header, image
    normalization of the body, then clamping to the receiving platform's
    ceiling.
    """
    header = attribution_header(direction, author, back_link_url)
    normalized = image_normalize(direction, body)
    limit = max_length if max_length is not None else max_length_for(direction)
    return length_clamp(RenderedMessage(header, normalized), limit)
