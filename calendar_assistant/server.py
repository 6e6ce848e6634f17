"""FastAPI server for the LINE Calendar Assistant.

Run with:
    uvicorn calendar_assistant.server:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response

from calendar_assistant.api.routes import router, webhook_router
from calendar_assistant.calendar_ops import CalendarOperations
from calendar_assistant.config import APP_ENV, SERVER_HOST, SERVER_PORT
from calendar_assistant.services.calendar_client import GoogleCalendarClient
from calendar_assistant.services.intent_parser import IntentParser
from calendar_assistant.services.line_client import LineMessagingClient
from calendar_assistant.webhook import EventHandler

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: initialise / tear-down shared clients ──────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Build the model, calendar and LINE clients once per process.

    They hold no per-request state, so every webhook call shares them.
    """
    logger.info("Starting calendar assistant (env=%s)…", APP_ENV)
    calendar_client = GoogleCalendarClient()
    line_client = LineMessagingClient()
    application.state.handler = EventHandler(
        IntentParser(),
        CalendarOperations(calendar_client),
        line_client,
    )
    logger.info("Handler ready.")
    yield
    application.state.handler = None
    calendar_client.close()
    line_client.close()


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="LINE Calendar Assistant",
    description=(
        "LINE bot that turns chat messages into Google Calendar events "
        "and lists upcoming events."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Tag each request with an ID for log correlation (``X-Request-ID``)."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Register routes ──────────────────────────────────────────────────
app.include_router(router, prefix="/api")
app.include_router(webhook_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "LINE Calendar Assistant",
        "version": "1.0.0",
        "webhook": "/webhook",
        "health": "/api/health",
    }


if __name__ == "__main__":
    logger.info("Starting LINE webhook server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "calendar_assistant.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=False,
    )
