"""Pydantic models for the discussion/thread sync engine.

Defines the core data contracts used across all sync modules:

- ``Discussion``: A forum-side topic (GitHub Discussions).
- ``Thread``: A chat-side forum thread (Discord).
- ``Message``: Unified view of one comment or chat message.
- ``SyncDirection``: Which side is behind in a sync pass (re-exported
  from ``converters.common``).
- ``SyncPlan``: Output of the diff engine.
- ``SyncResult``: Outcome of syncing one linked pair.
- ``SyncReport``: Aggregate results for a reconciliation pass.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from pydantic import BaseModel

from ..converters.common import SyncDirection

__all__ = [
    "Discussion",
    "Message",
    "SyncDirection",
    "SyncPlan",
    "SyncReport",
    "SyncResult",
    "Thread",
]


class Discussion(BaseModel):
    """A discussion in the configured category.

    Attributes:
        id: GraphQL node id (used for mutations).
        number: Repository-scoped discussion number.
        title: Discussion title.
        body: Opening post; the only field that persists linkage.
        author: Login of the author.
        category: Category name, when known.
        url: HTML URL of the discussion, when known.
    """

    id: str
    number: int
    title: str = ""
    body: str = ""
    author: str = "ghost"
    category: str | None = None
    url: str | None = None

    model_config = {"frozen": True}


class Thread(BaseModel):
    """A thread in the configured forum channel."""

    id: str
    name: str = ""
    guild_id: str | None = None
    owner_id: str | None = None
    url: str | None = None

    model_config = {"frozen": True}


class Message(BaseModel):
    """One entry of an ordered, seed-excluded message sequence.

    Attributes:
        id: Platform id of the comment or message.
        author: Display handle of the author.
        text: Raw message text.
        mirrored: True when the text was produced by this system.
        position: 0-based index in the sequence.
        url: Back-link to the message, when the platform has one.
    """

    id: str
    author: str
    text: str = ""
    mirrored: bool = False
    position: int = 0
    url: str | None = None

    model_config = {"frozen": True}


class SyncPlan(BaseModel):
    """Catch-up set computed for one linked pair."""

    direction: SyncDirection = SyncDirection.NONE
    surplus: tuple[Message, ...] = ()

    model_config = {"frozen": True}

    @property
    def push_count(self) -> int:
        return len(self.surplus)

    @property
    def is_noop(self) -> bool:
        return self.direction == SyncDirection.NONE or not self.surplus


class SyncResult(BaseModel):
    """Result of syncing one linked pair.

    Attributes:
        discussion_id: Node id of the discussion, if resolved.
        thread_id: Id of the thread, if resolved.
        direction: Direction of the catch-up pass.
        created_counterpart: Whether a missing counterpart was created
            (or would have been, in dry-run).
        planned: Number of messages the diff selected.
        pushed: Number of messages actually written.
        dry_run: Whether writes were suppressed.
        skipped: Reason the pair was skipped, if it was.
        success: Whether the routine completed.
        error: Error message if the routine failed.
    """

    discussion_id: str | None = None
    thread_id: str | None = None
    direction: SyncDirection = SyncDirection.NONE
    created_counterpart: bool = False
    planned: int = 0
    pushed: int = 0
    dry_run: bool = False
    skipped: str | None = None
    success: bool = True
    error: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a reconciliation pass."""

    dry_run: bool = False
    results: list[SyncResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def created(self) -> list[SyncResult]:
        return [r for r in self.results if r.created_counterpart]

    @property
    def to_chat(self) -> list[SyncResult]:
        return [
            r for r in self.results if r.direction == SyncDirection.TO_CHAT
        ]

    @property
    def to_forum(self) -> list[SyncResult]:
        return [
            r for r in self.results if r.direction == SyncDirection.TO_FORUM
        ]

    @property
    def skipped(self) -> list[SyncResult]:
        return [r for r in self.results if r.skipped]

    @property
    def errors(self) -> list[SyncResult]:
        return [r for r in self.results if not r.success]

    @property
    def messages_pushed(self) -> int:
        return sum(r.pushed for r in self.results)
