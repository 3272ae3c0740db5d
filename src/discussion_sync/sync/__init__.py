"""Discussion/thread sync engine.

Public API for mirroring GitHub Discussions in one category with the
threads of one Discord forum channel.

Architecture
------------
There is no local state.  A discussion is linked to its thread by a
hidden marker in the discussion body, and the catch-up set is computed
from message counts alone: whichever side has fewer messages receives
the other side's surplus, oldest first.

Modules:

- ``engine``   -- ``SyncOrchestrator``: the per-entity sync routines.
- ``linker``   -- ``EntityLinker``: marker-based counterpart resolution.
- ``diff``     -- ``compute_plan``: count-based catch-up planning.
- ``markers``  -- Link marker helpers.
- ``context``  -- ``SyncContext``, ``SyncSettings``, ``DiscussionListing``.
- ``locks``    -- ``PairLocks``: keyed locks shared by all triggers.
- ``pacing``   -- Pacing policies applied before every write.
- ``ports``    -- ``ForumPlatform`` / ``ChatPlatform`` protocols.
- ``models``   -- ``Discussion``, ``Thread``, ``Message``, ``SyncPlan``,
  ``SyncResult``, ``SyncReport``.
- ``reporter`` -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from discussion_sync.sync import SyncContext, SyncOrchestrator
    from discussion_sync.sync import format_sync_report

    context = SyncContext(forum=forum, chat=chat, category_id=category_id)
    orchestrator = SyncOrchestrator(context)

    report = await orchestrator.reconcile_all()
    print(format_sync_report(report))
"""

from .context import DiscussionListing, SyncContext, SyncSettings
from .diff import compute_plan
from .engine import SyncOrchestrator
from .linker import EntityLinker
from .locks import PairLocks
from .models import (
    Discussion,
    Message,
    SyncDirection,
    SyncPlan,
    SyncReport,
    SyncResult,
    Thread,
)
from .pacing import MinIntervalPacer, NoPacing, TokenBucketPacer, build_pacer
from .reporter import format_sync_report, report_to_json

__all__ = [
    "Discussion",
    "DiscussionListing",
    "EntityLinker",
    "Message",
    "MinIntervalPacer",
    "NoPacing",
    "PairLocks",
    "SyncContext",
    "SyncDirection",
    "SyncOrchestrator",
    "SyncPlan",
    "SyncReport",
    "SyncResult",
    "SyncSettings",
    "Thread",
    "TokenBucketPacer",
    "build_pacer",
    "compute_plan",
    "format_sync_report",
    "report_to_json",
]
