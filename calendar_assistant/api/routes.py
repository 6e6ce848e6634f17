"""FastAPI route definitions: health check and the LINE webhook."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from calendar_assistant.api.schemas import HealthResponse, WebhookPayload
from calendar_assistant.config import LINE_CHANNEL_SECRET, LINE_VERIFY_SIGNATURE
from calendar_assistant.services.line_client import verify_signature
from calendar_assistant.webhook import EventHandler

logger = logging.getLogger(__name__)

router = APIRouter()
webhook_router = APIRouter()


def _get_handler(request: Request) -> EventHandler:
    """Retrieve the event handler built during the FastAPI lifespan."""
    handler = getattr(request.app.state, "handler", None)
    if handler is None:
        raise HTTPException(
            status_code=503,
            detail="The service is still starting up. Please try again in a moment.",
        )
    return handler


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


@webhook_router.post("/webhook", response_class=PlainTextResponse)
async def line_webhook(http_request: Request):
    """Receive a LINE webhook delivery.

    Verification pings and deliveries without events are acknowledged with
    200.  Events are processed concurrently; if any of them raises, the
    others still finish and the response is a bare 500.
    """
    request_id = getattr(http_request.state, "request_id", "?")
    body = await http_request.body()

    if LINE_VERIFY_SIGNATURE and not verify_signature(
        body, http_request.headers.get("X-Line-Signature"), LINE_CHANNEL_SECRET,
    ):
        logger.warning("[%s] Rejected webhook with invalid signature", request_id)
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = WebhookPayload.model_validate_json(body or b"{}")
    except ValidationError:
        logger.info("[%s] Ignoring malformed webhook body", request_id)
        return PlainTextResponse("OK")

    if not payload.events:
        return PlainTextResponse("OK")

    handler = _get_handler(http_request)
    logger.info("[%s] Processing %d event(s)", request_id, len(payload.events))
    try:
        await handler.handle_all(payload.events)
    except Exception:
        # Full detail goes to the log only
        logger.exception("[%s] Error processing events", request_id)
        return PlainTextResponse("Internal Server Error", status_code=500)

    return PlainTextResponse("OK")
