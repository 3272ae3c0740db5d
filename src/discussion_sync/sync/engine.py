"""Sync orchestrator: keeps each discussion and its thread in lockstep.

The ``SyncOrchestrator`` ties together the linker, the diff engine and
the message converters.  Each entry point handles one native entity:

1. Resolve the counterpart via the Link marker.
2. Create the counterpart if it is missing.
3. Fetch both message sequences and compute the catch-up plan.
4. Push every surplus message, oldest first, one write per message.

Creating a thread for a discussion takes two writes (create the thread,
then write the marker onto the discussion body).  A crash between them
leaves an orphan thread and the next trigger creates another one.
Creating a discussion for a thread is a single write because the marker
goes straight into the new body.

Collaborator failures propagate out of ``sync_discussion_side`` and
``sync_thread_side``; callers catch them per pair.  ``reconcile_all``
does exactly that for the startup pass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime, timezone

from ..converters import GITHUB_MAX_LENGTH, render_message
from .context import SyncContext
from .diff import compute_plan
from .linker import EntityLinker
from .locks import discussion_key, thread_key
from .markers import embed_marker, format_marker, strip_markers
from .models import (
    Discussion,
    Message,
    SyncDirection,
    SyncPlan,
    SyncReport,
    SyncResult,
    Thread,
)

logger = logging.getLogger(__name__)

# Room kept free in a new discussion body for "\n\n" + marker.
_MARKER_ALLOWANCE = len(format_marker("0" * 20)) + 2


class SyncOrchestrator:
    """Entry points invoked by triggers and by the startup pass.

    Args:
        context: Service context built at startup.
    """

    def __init__(self, context: SyncContext) -> None:
        self.ctx = context
        self.linker = EntityLinker(context.chat, context.listing)

    @property
    def dry_run(self) -> bool:
        return self.ctx.settings.dry_run

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def sync_discussion_side(self, discussion: Discussion) -> SyncResult:
        """Mirror *discussion* into the forum channel and catch up."""
        category = self.ctx.settings.category_name
        if discussion.category is not None and discussion.category != category:
            logger.info(
                "Skipping discussion #%d in category '%s' (syncing '%s')",
                discussion.number,
                discussion.category,
                category,
            )
            return SyncResult(
                discussion_id=discussion.id,
                skipped=f"category '{discussion.category}'",
                dry_run=self.dry_run,
            )

        created = False
        async with self.ctx.locks.hold(discussion_key(discussion.id)):
            discussion = self.ctx.listing.remember(discussion)
            thread = await self.linker.resolve_thread_for(discussion)
            if thread is None:
                if self.dry_run:
                    return await self._preview_thread_creation(discussion)
                thread = await self._create_thread_for(discussion)
                created = True

        async with self.ctx.locks.hold(thread_key(thread.id)):
            return await self._catch_up(thread, discussion, created)

    async def sync_thread_side(self, thread: Thread) -> SyncResult:
        """Mirror *thread* into the discussion category and catch up."""
        async with self.ctx.locks.hold(thread_key(thread.id)):
            created = False
            discussion = await self.linker.resolve_discussion_for(thread)
            if discussion is None:
                seed = await self.ctx.chat.fetch_seed_message(thread)
                if seed is None:
                    logger.warning(
                        "Thread %s has no starter message; cannot create a discussion",
                        thread.id,
                    )
                    return SyncResult(
                        thread_id=thread.id,
                        skipped="no starter message",
                        dry_run=self.dry_run,
                    )
                if self.dry_run:
                    return await self._preview_discussion_creation(thread, seed)
                discussion = await self._create_discussion_for(thread, seed)
                created = True

            return await self._catch_up(thread, discussion, created)

    async def reconcile_all(self) -> SyncReport:
        """Startup catch-up over every known thread, then every discussion.

        Pairs are processed one at a time.  A failing pair is logged and
        recorded; it never stops the pass.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        results: list[SyncResult] = []

        try:
            threads = await self.ctx.chat.list_threads()
        except Exception as exc:
            logger.error("Failed to list threads: %s", exc)
            threads = []

        logger.info("Reconciling %d existing threads", len(threads))
        for thread in threads:
            logger.info("Syncing thread %s (%s)", thread.id, thread.name)
            results.append(
                await self._guarded(
                    self.sync_thread_side(thread), thread_id=thread.id
                )
            )

        try:
            discussions = await self.ctx.listing.get()
        except Exception as exc:
            logger.error("Failed to list discussions: %s", exc)
            discussions = []

        logger.info("Reconciling %d existing discussions", len(discussions))
        for discussion in discussions:
            logger.info("Syncing discussion #%d", discussion.number)
            results.append(
                await self._guarded(
                    self.sync_discussion_side(discussion),
                    discussion_id=discussion.id,
                )
            )

        return SyncReport(
            dry_run=self.dry_run,
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    # ------------------------------------------------------------------
    # Counterpart creation
    # ------------------------------------------------------------------

    async def _create_thread_for(self, discussion: Discussion) -> Thread:
        forum, chat = self.ctx.forum, self.ctx.chat
        seed = render_message(
            SyncDirection.TO_CHAT,
            discussion.author,
            forum.discussion_url(discussion),
            strip_markers(discussion.body),
        )

        logger.info(
            "Creating thread for discussion #%d: %s",
            discussion.number,
            discussion.title,
        )
        await self.ctx.pacer.wait()
        thread = await chat.create_thread(discussion.title, seed)

        new_body = embed_marker(discussion.body, thread.id)
        logger.info(
            "Linking discussion #%d to thread %s", discussion.number, thread.id
        )
        await self.ctx.pacer.wait()
        await forum.update_discussion_body(discussion.id, new_body)
        self.ctx.listing.remember(
            discussion.model_copy(update={"body": new_body})
        )
        return thread

    async def _create_discussion_for(
        self, thread: Thread, seed: Message
    ) -> Discussion:
        body = render_message(
            SyncDirection.TO_FORUM,
            seed.author,
            seed.url or thread.url or "",
            seed.text,
            max_length=GITHUB_MAX_LENGTH - _MARKER_ALLOWANCE,
        )
        body = embed_marker(body, thread.id)

        logger.info("Creating discussion for thread %s: %s", thread.id, thread.name)
        await self.ctx.pacer.wait()
        discussion = await self.ctx.forum.create_discussion(
            self.ctx.category_id, thread.name, body
        )
        if not discussion.body:
            discussion = discussion.model_copy(update={"body": body})
        return self.ctx.listing.remember(discussion)

    async def _preview_thread_creation(self, discussion: Discussion) -> SyncResult:
        logger.info(
            "Dry run: would create thread '%s' for discussion #%d and write its link marker",
            discussion.title,
            discussion.number,
        )
        comments = await self.ctx.forum.list_comments(discussion)
        plan = compute_plan([], comments)
        self._log_preview(plan, f"new thread for discussion #{discussion.number}")
        return SyncResult(
            discussion_id=discussion.id,
            direction=plan.direction,
            created_counterpart=True,
            planned=plan.push_count,
            dry_run=True,
        )

    async def _preview_discussion_creation(
        self, thread: Thread, seed: Message
    ) -> SyncResult:
        logger.info(
            "Dry run: would create discussion '%s' from message %s of thread %s",
            thread.name,
            seed.id,
            thread.id,
        )
        messages = await self.ctx.chat.list_thread_messages(thread)
        plan = compute_plan(messages, [])
        self._log_preview(plan, f"new discussion for thread {thread.id}")
        return SyncResult(
            thread_id=thread.id,
            direction=plan.direction,
            created_counterpart=True,
            planned=plan.push_count,
            dry_run=True,
        )

    # ------------------------------------------------------------------
    # Message catch-up
    # ------------------------------------------------------------------

    async def _catch_up(
        self, thread: Thread, discussion: Discussion, created: bool
    ) -> SyncResult:
        logger.info(
            "Loading messages from thread %s & discussion #%d",
            thread.id,
            discussion.number,
        )
        chat_messages, forum_messages = await asyncio.gather(
            self.ctx.chat.list_thread_messages(thread),
            self.ctx.forum.list_comments(discussion),
        )
        plan = compute_plan(chat_messages, forum_messages)

        result = SyncResult(
            discussion_id=discussion.id,
            thread_id=thread.id,
            direction=plan.direction,
            created_counterpart=created,
            planned=plan.push_count,
            dry_run=self.dry_run,
        )

        if plan.is_noop:
            logger.info(
                "No new messages between thread %s & discussion #%d",
                thread.id,
                discussion.number,
            )
            return result

        if self.dry_run:
            self._log_preview(
                plan, f"thread {thread.id} / discussion #{discussion.number}"
            )
            return result

        logger.info(
            "Pushing %d messages %s (thread %s, discussion #%d)",
            plan.push_count,
            "GitHub -> Discord"
            if plan.direction == SyncDirection.TO_CHAT
            else "Discord -> GitHub",
            thread.id,
            discussion.number,
        )
        for pushed, message in enumerate(plan.surplus):
            try:
                await self._push(plan.direction, message, thread, discussion)
            except Exception:
                logger.error(
                    "Stopped after %d of %d messages (thread %s, discussion #%d)",
                    pushed,
                    plan.push_count,
                    thread.id,
                    discussion.number,
                )
                raise

        return result.model_copy(update={"pushed": plan.push_count})

    async def _push(
        self,
        direction: SyncDirection,
        message: Message,
        thread: Thread,
        discussion: Discussion,
    ) -> None:
        if direction == SyncDirection.TO_CHAT:
            back_link = message.url or self.ctx.forum.discussion_url(discussion)
            body = render_message(direction, message.author, back_link, message.text)
            logger.info(
                "Sending comment %s by %s to thread %s",
                message.id,
                message.author,
                thread.id,
            )
            await self.ctx.pacer.wait()
            await self.ctx.chat.send_thread_message(thread.id, body)
        else:
            back_link = message.url or thread.url or ""
            body = render_message(direction, message.author, back_link, message.text)
            logger.info(
                "Sending message %s by %s to discussion #%d",
                message.id,
                message.author,
                discussion.number,
            )
            await self.ctx.pacer.wait()
            await self.ctx.forum.add_comment(discussion.id, body)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _log_preview(self, plan: SyncPlan, target: str) -> None:
        if plan.is_noop:
            logger.info("Dry run: nothing to push for %s", target)
            return
        side = "thread" if plan.direction == SyncDirection.TO_CHAT else "discussion"
        for message in plan.surplus:
            logger.info(
                "Dry run: would push message %s (position %d, by %s) to %s for %s",
                message.id,
                message.position,
                message.author,
                side,
                target,
            )

    async def _guarded(
        self,
        routine: Awaitable[SyncResult],
        discussion_id: str | None = None,
        thread_id: str | None = None,
    ) -> SyncResult:
        try:
            return await routine
        except Exception as exc:
            logger.error(
                "Error syncing discussion=%s thread=%s: %s",
                discussion_id,
                thread_id,
                exc,
            )
            return SyncResult(
                discussion_id=discussion_id,
                thread_id=thread_id,
                dry_run=self.dry_run,
                success=False,
                error=str(exc),
            )
