"""Bidirectional image-syntax conversion between GitHub and Discord.

GitHub renders Markdown images (``![alt](url)``) and inline ``<img>``
tags; Discord renders neither but auto-embeds a bare image URL that sits
on its own line.  Each direction is a single left-to-right tokenizing
scan: text between tokens is copied verbatim and every token is
rewritten into a fresh output list, so no index bookkeeping is needed.

The conversions are not idempotent across directions.  Callers must
apply ``image_normalize`` exactly once per outgoing message.
"""

import re
from typing import Callable

from .common import (
    ATTACHMENT_URL_PATTERN,
    SyncDirection,
    is_attachment_url,
    is_image_url,
)

GENERIC_IMAGE_LABEL = "Image"

_MD_IMAGE = r"!\[(?P<alt>[^\]\n]*)\]\((?P<img_url>https?://[^\s)]+)(?:\s+\"[^\"\n]*\")?\)"
_MD_LINK = r"\[(?P<label>[^\]\n]*)\]\((?P<link_url>[^\s)]+)\)"
_HTML_IMG = r"<img\b(?P<attrs>[^>]*)>"
_ANGLE_URL = r"<(?P<angle_url>https?://[^\s>]+)>"
_BARE_URL = r"(?P<url>https?://[^\s<>()\[\]\"']+)"

_TO_CHAT_RE = re.compile(
    "|".join(
        [
            _MD_IMAGE,
            _MD_LINK,
            _HTML_IMG,
            rf"(?P<attachment>{ATTACHMENT_URL_PATTERN})",
        ]
    ),
    re.IGNORECASE,
)

_TO_FORUM_RE = re.compile(
    "|".join([_MD_IMAGE, _MD_LINK, _HTML_IMG, _ANGLE_URL, _BARE_URL]),
    re.IGNORECASE,
)

# Attribute values may be double-quoted, single-quoted or unquoted.
_ATTR_VALUE = r"\s*=\s*(?:([\"'])(?P<value>.*?)\1|(?P<bare>[^\s\"'>]+))"
_SRC_ATTR = re.compile(r"\bsrc" + _ATTR_VALUE, re.IGNORECASE)
_ALT_ATTR = re.compile(r"\balt" + _ATTR_VALUE, re.IGNORECASE)

# Punctuation that ends a sentence rather than a URL.
_TRAILING_PUNCTUATION = ".,;:!?"

# A piece is (text, isolated): isolated pieces must stand on their own line.
_Piece = tuple[str, bool]


def _attr(pattern: re.Pattern, attrs: str) -> str | None:
    match = pattern.search(attrs)
    if not match:
        return None
    if match.group("value") is not None:
        return match.group("value")
    return match.group("bare")


def _isolate(pieces: list[_Piece]) -> str:
    """Join pieces, putting every isolated piece on a line of its own.

    Spaces and tabs that would otherwise dangle next to the inserted line
    breaks are dropped.
    """
    out: list[str] = []
    after_isolated = False
    for text, isolated in pieces:
        if not text:
            continue
        if isolated:
            while out and not out[-1].rstrip(" \t"):
                out.pop()
            if out:
                out[-1] = out[-1].rstrip(" \t")
                if not out[-1].endswith("\n"):
                    out.append("\n")
            out.append(text)
            after_isolated = True
            continue
        if after_isolated:
            text = text.lstrip(" \t")
            if text and not text.startswith("\n"):
                out.append("\n")
        after_isolated = False
        out.append(text)
    return "".join(out)


def _scan(
    pattern: re.Pattern,
    body: str,
    rewrite: Callable[[re.Match], list[_Piece]],
) -> list[_Piece]:
    pieces: list[_Piece] = []
    pos = 0
    for match in pattern.finditer(body):
        if match.start() > pos:
            pieces.append((body[pos : match.start()], False))
        pieces.extend(rewrite(match))
        pos = match.end()
    if pos < len(body):
        pieces.append((body[pos:], False))
    return pieces


# ---------------------------------------------------------------------------
# GitHub -> Discord
# ---------------------------------------------------------------------------


def _rewrite_for_chat(match: re.Match) -> list[_Piece]:
    if match.group("img_url"):
        return [(match.group("img_url"), True)]
    if match.group("link_url") is not None:
        url = match.group("link_url")
        if is_attachment_url(url):
            return [(url, True)]
        return [(match.group(0), False)]
    if match.group("attrs") is not None:
        src = _attr(_SRC_ATTR, match.group("attrs"))
        if src and src.lower().startswith(("http://", "https://")):
            return [(src, True)]
        return [(match.group(0), False)]
    return [(match.group("attachment"), True)]


def images_to_chat(body: str) -> str:
    """Rewrite GitHub image syntax into bare, line-isolated URLs.

    Examples:
        >>> images_to_chat("look ![shot](https://x.io/a.png) here")
        'look\\nhttps://x.io/a.png\\nhere'
    """
    return _isolate(_scan(_TO_CHAT_RE, body, _rewrite_for_chat))


# ---------------------------------------------------------------------------
# Discord -> GitHub
# ---------------------------------------------------------------------------


def _markdown_image(label: str, url: str) -> str:
    return f"![{label or GENERIC_IMAGE_LABEL}]({url})"


def _rewrite_for_forum(match: re.Match) -> list[_Piece]:
    if match.group("img_url") or match.group("link_url") is not None:
        # Already Markdown: never wrap twice.
        return [(match.group(0), False)]
    if match.group("attrs") is not None:
        attrs = match.group("attrs")
        src = _attr(_SRC_ATTR, attrs)
        if not src:
            return [(match.group(0), False)]
        return [(_markdown_image(_attr(_ALT_ATTR, attrs) or "", src), False)]
    if match.group("angle_url"):
        return [(match.group(0), False)]

    url = match.group("url")
    stripped = url.rstrip(_TRAILING_PUNCTUATION)
    tail = url[len(stripped) :]
    if not is_image_url(stripped):
        return [(url, False)]
    return [(_markdown_image("", stripped), False), (tail, False)]


def images_to_forum(body: str) -> str:
    """Rewrite bare image URLs and ``<img>`` tags into Markdown images.

    Examples:
        >>> images_to_forum("https://cdn.discordapp.com/attachments/1/2/cat.png")
        '![Image](https://cdn.discordapp.com/attachments/1/2/cat.png)'
        >>> images_to_forum("![Image](https://x.io/a.png)")
        '![Image](https://x.io/a.png)'
    """
    return "".join(
        text for text, _ in _scan(_TO_FORUM_RE, body, _rewrite_for_forum)
    )


def image_normalize(direction: SyncDirection, body: str) -> str:
    """Convert image syntax in *body* for the platform receiving *direction*."""
    if direction == SyncDirection.TO_CHAT:
        return images_to_chat(body)
    if direction == SyncDirection.TO_FORUM:
        return images_to_forum(body)
    return body
