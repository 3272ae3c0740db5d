"""Explicit service context threaded through every sync call.

Everything the engine needs that outlives a single trigger lives on one
``SyncContext`` built at startup: the two collaborators, the resolved
category id, the discussion listing snapshot, the pacing policy and the
per-pair locks.  Nothing is kept in module globals.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .locks import PairLocks
from .markers import extract_marker
from .models import Discussion
from .pacing import MinIntervalPacer, Pacer
from .ports import ChatPlatform, ForumPlatform

logger = logging.getLogger(__name__)


class DiscussionListing:
    """Process-lifetime snapshot of the category's discussions.

    The remote listing is fetched once, on first read, and never fetched
    again.  Discussions this process creates or updates, and discussions
    seen in webhook payloads, are recorded into the snapshot so links
    made during this process lifetime stay resolvable.
    """

    def __init__(self, forum: ForumPlatform, category_id: str) -> None:
        self._forum = forum
        self._category_id = category_id
        self._items: list[Discussion] | None = None
        self._pending: list[Discussion] = []
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._items is not None

    async def get(self) -> list[Discussion]:
        if self._items is None:
            async with self._lock:
                if self._items is None:
                    items = await self._forum.list_discussions(
                        self._category_id
                    )
                    logger.info(
                        "Cached %d discussions from category %s",
                        len(items),
                        self._category_id,
                    )
                    self._items = list(items)
                    for discussion in self._pending:
                        self._store(discussion)
                    self._pending.clear()
        return list(self._items)

    def remember(self, discussion: Discussion) -> Discussion:
        """Record *discussion* in the snapshot and return the stored copy.

        A copy whose body lacks a link marker never overwrites a known
        body that has one: webhook payloads can predate the marker write.
        """
        known = self.lookup(discussion.id)
        if known is not None:
            discussion = _merge(known, discussion)
        if self._items is None:
            self._pending.append(discussion)
        else:
            self._store(discussion)
        return discussion

    def lookup(self, discussion_id: str) -> Discussion | None:
        for known in reversed(self._pending):
            if known.id == discussion_id:
                return known
        for known in self._items or ():
            if known.id == discussion_id:
                return known
        return None

    def _store(self, discussion: Discussion) -> None:
        assert self._items is not None
        for idx, known in enumerate(self._items):
            if known.id == discussion.id:
                self._items[idx] = _merge(known, discussion)
                return
        self._items.append(discussion)


def _merge(known: Discussion, incoming: Discussion) -> Discussion:
    if extract_marker(known.body) and not extract_marker(incoming.body):
        return incoming.model_copy(update={"body": known.body})
    return incoming


@dataclass
class SyncSettings:
    """Engine behaviour switches (a subset of ``config.Config``)."""

    category_name: str = "General"
    dry_run: bool = False


@dataclass
class SyncContext:
    """Everything one sync routine needs, built once at startup."""

    forum: ForumPlatform
    chat: ChatPlatform
    category_id: str
    settings: SyncSettings = field(default_factory=SyncSettings)
    pacer: Pacer = field(default_factory=MinIntervalPacer)
    locks: PairLocks = field(default_factory=PairLocks)
    listing: DiscussionListing = field(init=False)

    def __post_init__(self) -> None:
        self.listing = DiscussionListing(self.forum, self.category_id)
