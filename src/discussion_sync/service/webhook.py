"""GitHub webhook receiver.

``POST /webhook`` accepts ``discussion`` and ``discussion_comment``
deliveries.  Only the ``created`` action of those two events triggers a
sync; every other delivery is acknowledged and ignored.

Response codes:

- 200: ignored, or synced successfully.
- 400: a recognized event whose payload is missing required fields.
- 401: signature check failed (only when a secret is configured).
- 500: the sync routine failed; GitHub shows the delivery as failed and
  it can be redelivered from the repository settings.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.errors import PayloadError
from ..sync.engine import SyncOrchestrator
from ..sync.models import Discussion, SyncReport
from ..sync.reporter import report_to_json

logger = logging.getLogger(__name__)

SYNC_EVENTS = frozenset({"discussion", "discussion_comment"})
SYNC_ACTIONS = frozenset({"created"})


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check an ``X-Hub-Signature-256`` header against *body*."""
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"sha256={expected}", signature)


def parse_discussion_payload(event: str | None, payload: dict) -> Discussion | None:
    """Extract the discussion a delivery refers to.

    Args:
        event: Value of the ``X-GitHub-Event`` header.
        payload: Decoded JSON body.

    Returns:
        The discussion to sync, or ``None`` when the delivery is not a
        sync trigger.

    Raises:
        PayloadError: If a recognized delivery lacks required fields.
    """
    if event not in SYNC_EVENTS:
        return None
    if payload.get("action") not in SYNC_ACTIONS:
        return None

    raw = payload.get("discussion")
    if not isinstance(raw, dict):
        raise PayloadError(f"'{event}' delivery has no discussion object")

    missing = [key for key in ("node_id", "number") if raw.get(key) is None]
    if missing:
        raise PayloadError(
            f"'{event}' delivery discussion is missing {', '.join(missing)}"
        )

    user = raw.get("user") or {}
    category = raw.get("category") or {}
    try:
        number = int(raw["number"])
    except (TypeError, ValueError):
        raise PayloadError(
            f"'{event}' delivery has a non-numeric discussion number"
        ) from None

    return Discussion(
        id=str(raw["node_id"]),
        number=number,
        title=raw.get("title") or "",
        body=raw.get("body") or "",
        author=user.get("login") or "ghost",
        category=category.get("name"),
        url=raw.get("html_url"),
    )


def create_app(
    orchestrator: SyncOrchestrator,
    webhook_secret: str | None = None,
    startup_report: SyncReport | None = None,
) -> FastAPI:
    """Build the webhook application around a started orchestrator.

    When *startup_report* is given, ``GET /health`` also returns it under
    ``"startup"``.
    """
    app = FastAPI(title="discussion-sync", docs_url=None, redoc_url=None)
    app.state.orchestrator = orchestrator

    @app.get("/health")
    async def health() -> dict:
        if startup_report is None:
            return {"status": "ok"}
        return {"status": "ok", "startup": report_to_json(startup_report)}

    @app.post("/webhook")
    async def webhook(request: Request) -> JSONResponse:
        body = await request.body()
        if webhook_secret and not verify_signature(
            webhook_secret, body, request.headers.get("X-Hub-Signature-256")
        ):
            logger.warning("Rejected webhook delivery with a bad signature")
            return JSONResponse({"error": "invalid signature"}, status_code=401)

        event = request.headers.get("X-GitHub-Event")
        if event not in SYNC_EVENTS:
            logger.debug("Ignoring '%s' delivery", event)
            return JSONResponse({"status": "ignored"})

        try:
            payload = json.loads(body or b"{}")
            if not isinstance(payload, dict):
                raise PayloadError("delivery body is not a JSON object")
            discussion = parse_discussion_payload(event, payload)
        except ValueError as exc:
            logger.error("Bad '%s' delivery: %s", event, exc)
            return JSONResponse({"error": str(exc)}, status_code=400)

        if discussion is None:
            logger.debug(
                "Ignoring '%s' delivery with action '%s'",
                event,
                payload.get("action"),
            )
            return JSONResponse({"status": "ignored"})

        logger.info(
            "Received '%s' for discussion #%d", event, discussion.number
        )
        try:
            result = await orchestrator.sync_discussion_side(discussion)
        except Exception as exc:
            logger.error(
                "Error syncing discussion #%d: %s", discussion.number, exc
            )
            return JSONResponse({"error": str(exc)}, status_code=500)

        return JSONResponse(
            {"status": "synced", "result": result.model_dump(mode="json")}
        )

    return app
