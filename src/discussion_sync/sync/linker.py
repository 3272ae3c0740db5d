"""Counterpart resolution via the Link marker embedded in discussion bodies.

A missing, malformed or dangling marker (one naming a thread that no
longer exists) all mean the same thing: unlinked.  Callers then create
a new counterpart, which for a dangling marker can duplicate a
conversation whose thread was deleted.

Both lookups are linear scans over the counterpart collection.  That is
fine at the scale of one category and one forum channel.
"""

from __future__ import annotations

import logging

from .context import DiscussionListing
from .markers import extract_marker, has_marker
from .models import Discussion, Thread
from .ports import ChatPlatform

logger = logging.getLogger(__name__)


class EntityLinker:
    """Resolve the counterpart of a discussion or a thread.

    Args:
        chat: Collaborator used to list threads.
        listing: Cached discussion listing for the configured category.
    """

    def __init__(self, chat: ChatPlatform, listing: DiscussionListing) -> None:
        self.chat = chat
        self.listing = listing

    async def resolve_thread_for(self, discussion: Discussion) -> Thread | None:
        """Find the thread named by *discussion*'s marker.

        Returns ``None`` when the body has no valid marker or the marker
        names a thread that is not among those listed.
        """
        thread_id = extract_marker(discussion.body)
        if thread_id is None:
            logger.debug("Discussion #%d has no link marker", discussion.number)
            return None

        for thread in await self.chat.list_threads():
            if thread.id == thread_id:
                return thread

        logger.warning(
            "Discussion #%d links to thread %s which no longer exists; treating as unlinked",
            discussion.number,
            thread_id,
        )
        return None

    async def resolve_discussion_for(self, thread: Thread) -> Discussion | None:
        """Find the cached discussion whose marker references *thread*."""
        for discussion in await self.listing.get():
            if has_marker(discussion.body, thread.id):
                return discussion
        logger.debug("Thread %s has no linked discussion", thread.id)
        return None
