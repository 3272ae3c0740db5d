"""Keyed mutual exclusion for sync routines.

Triggers run independently: a startup scan, a webhook delivery and a
gateway event can all target the same linked pair at once.  Each sync
routine holds the lock for the entity it is about to mutate so that two
routines never compute a diff against the same stale observation.

Keys are ``"thread:<id>"`` for a linked pair and ``"discussion:<id>"``
while a discussion is still looking for (or creating) its thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


def thread_key(thread_id: str) -> str:
    return f"thread:{thread_id}"


def discussion_key(discussion_id: str) -> str:
    return f"discussion:{discussion_id}"


class PairLocks:
    """Registry of ``asyncio.Lock`` objects created on demand per key.

    Locks are dropped again once no routine holds or waits on them, so
    the registry does not grow with the number of pairs ever seen.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        if lock.locked():
            logger.debug("Waiting for %s", key)
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]
