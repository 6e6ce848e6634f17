"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class WebhookPayload(BaseModel):
    """A LINE webhook delivery.

    Events stay as raw dicts here; each one is validated on its own so a
    single odd event cannot reject the whole delivery.
    """

    destination: str | None = Field(None, description="Bot user ID that received the events")
    events: list[Any] | None = Field(None, description="Webhook event objects")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "line-calendar-bot"
