"""Sync report formatting functions.

- ``format_sync_report`` -- post-reconcile summary for the log.
- ``report_to_json`` -- structured dict for the health endpoint.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport, SyncResult


def _pair_label(result: SyncResult) -> str:
    return f"discussion={result.discussion_id or '-'} thread={result.thread_id or '-'}"


def format_sync_report(report: SyncReport) -> str:
    """Format a reconcile report as human-readable text.

    Sections are only included when they contain at least one result.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = "Reconcile report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    verb = "planned" if report.dry_run else "pushed"
    count = (
        sum(r.planned for r in report.results)
        if report.dry_run
        else report.messages_pushed
    )
    lines.append(
        f"Checked {len(report.results)} pairs: "
        f"{len(report.created)} created, "
        f"{count} messages {verb}, "
        f"{len(report.errors)} errors"
    )
    lines.append("")

    if report.created:
        lines.append("Created counterparts:")
        for r in report.created:
            lines.append(f"  {_pair_label(r)}")
        lines.append("")

    if report.to_chat:
        lines.append("GitHub -> Discord:")
        for r in report.to_chat:
            lines.append(f"  {_pair_label(r)}: {r.pushed}/{r.planned}")
        lines.append("")

    if report.to_forum:
        lines.append("Discord -> GitHub:")
        for r in report.to_forum:
            lines.append(f"  {_pair_label(r)}: {r.pushed}/{r.planned}")
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {_pair_label(r)}: {r.error}")
        lines.append("")

    if report.skipped:
        lines.append(f"Skipped: {len(report.skipped)} pairs")
        lines.append("")

    return "\n".join(lines).rstrip()


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation."""
    results_list = []
    for r in report.results:
        entry: dict = {
            "discussion_id": r.discussion_id,
            "thread_id": r.thread_id,
            "direction": r.direction.value,
            "created_counterpart": r.created_counterpart,
            "planned": r.planned,
            "pushed": r.pushed,
            "success": r.success,
        }
        if r.skipped:
            entry["skipped"] = r.skipped
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "created": len(report.created),
            "to_chat": len(report.to_chat),
            "to_forum": len(report.to_forum),
            "messages_pushed": report.messages_pushed,
            "errors": len(report.errors),
            "skipped": len(report.skipped),
        },
        "results": results_list,
    }
