"""Link marker embedded in discussion bodies.

There is no local database.  A discussion is linked to a thread by a
hidden HTML comment in its body::

    <!-- Discord:1375561398364668025 -->

A body holds at most one marker.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_MARKER_RE = re.compile(r"<!-- Discord:(\d+) -->")
# Anything that looks like an attempt at a marker, valid or not.
_ANY_MARKER_RE = re.compile(r"\n*<!-- Discord:[^>]*-->")


def format_marker(thread_id: str) -> str:
    return f"<!-- Discord:{thread_id} -->"


def extract_marker(body: str | None) -> str | None:
    """Return the thread id encoded in *body*, or ``None``.

    Examples:
        >>> extract_marker("hello\\n\\n<!-- Discord:42 -->")
        '42'
        >>> extract_marker("<!-- Discord:not-a-number -->") is None
        True
    """
    ids = _MARKER_RE.findall(body or "")
    if not ids:
        return None
    if len(set(ids)) > 1:
        logger.warning(
            "Body carries %d different link markers; using the first (%s)",
            len(set(ids)),
            ids[0],
        )
    return ids[0]


def has_marker(body: str | None, thread_id: str) -> bool:
    return format_marker(thread_id) in (body or "")


def embed_marker(body: str | None, thread_id: str) -> str:
    """Return *body* linked to *thread_id*, with exactly one marker.

    Any previous marker (including a dangling or malformed one) is
    replaced.  Embedding the marker a body already carries returns the
    body unchanged.
    """
    body = body or ""
    if has_marker(body, thread_id) and len(_ANY_MARKER_RE.findall(body)) == 1:
        return body
    stripped = _ANY_MARKER_RE.sub("", body).rstrip()
    if not stripped:
        return format_marker(thread_id)
    return f"{stripped}\n\n{format_marker(thread_id)}"


def strip_markers(body: str | None) -> str:
    """Remove every marker from *body* (for text shown on the chat side)."""
    return _ANY_MARKER_RE.sub("", body or "").rstrip()
