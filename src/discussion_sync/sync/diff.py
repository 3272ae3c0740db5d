"""Position-based message diffing for a linked pair.

Both sequences are oldest-first with their seed message already
removed.  The comparison is purely by count: whatever the longer side
holds beyond the length of the shorter side is the surplus to push.

This assumes neither side is ever reordered, edited or deleted, and
that messages pushed earlier permanently occupy the front of the
behind side.  Deleting a message on one side therefore makes the next
pass duplicate (or skip) content.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .models import Message, SyncDirection, SyncPlan

logger = logging.getLogger(__name__)


def compute_plan(
    chat_messages: Sequence[Message],
    forum_messages: Sequence[Message],
) -> SyncPlan:
    """Decide which side is behind and what it is missing.

    Args:
        chat_messages: Thread messages (Discord side), seed excluded.
        forum_messages: Discussion comments (GitHub side), seed excluded.

    Returns:
        A ``SyncPlan``.  Equal counts yield ``SyncDirection.NONE`` and no
        surplus; otherwise the surplus is the tail of the longer
        sequence starting at the shorter one's length, in order.
    """
    chat_count = len(chat_messages)
    forum_count = len(forum_messages)

    if chat_count == forum_count:
        return SyncPlan()

    if chat_count < forum_count:
        surplus = tuple(forum_messages[chat_count:])
        direction = SyncDirection.TO_CHAT
    else:
        surplus = tuple(chat_messages[forum_count:])
        direction = SyncDirection.TO_FORUM

    logger.debug(
        "Diff: %d chat vs %d forum messages -> %d to push (%s, %d mirrored)",
        chat_count,
        forum_count,
        len(surplus),
        direction.value,
        sum(1 for message in surplus if message.mirrored),
    )
    return SyncPlan(direction=direction, surplus=surplus)
