"""Calendar operations used by the dispatcher.

Both operations return a result object instead of raising: a failed Google
call becomes ``success=False`` with a message that includes Google's error
text, so one bad request never takes down the webhook invocation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from calendar_assistant.config import HOME_TIMEZONE_NAME
from calendar_assistant.intents import CreateEventParams
from calendar_assistant.services.calendar_client import CalendarAPIError, GoogleCalendarClient
from calendar_assistant.services.metrics import metrics
from calendar_assistant.time_normalizer import (
    DEFAULT_SPAN_DAYS,
    event_end_instant,
    normalize_range,
)

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = 20
MAX_DISPLAY_EVENTS = 10


@dataclass(frozen=True)
class CreateResult:
    success: bool
    event: dict[str, Any] | None = None
    message: str = ""

    @classmethod
    def ok(cls, event: dict[str, Any]) -> CreateResult:
        return cls(success=True, event=event)

    @classmethod
    def fail(cls, message: str) -> CreateResult:
        return cls(success=False, message=message)


@dataclass(frozen=True)
class ListResult:
    success: bool
    events: list[dict[str, Any]] = field(default_factory=list)
    message: str = ""

    @classmethod
    def ok(cls, events: list[dict[str, Any]]) -> ListResult:
        return cls(success=True, events=events)

    @classmethod
    def fail(cls, message: str) -> ListResult:
        return cls(success=False, message=message)


def build_event_body(params: CreateEventParams) -> dict[str, Any]:
    """Map create params onto the ``events.insert`` request body."""
    return {
        "summary": params.title,
        "location": params.location or "",
        "description": params.description or "",
        "start": {"dateTime": params.start_time, "timeZone": HOME_TIMEZONE_NAME},
        "end": {"dateTime": params.end_time, "timeZone": HOME_TIMEZONE_NAME},
    }


def filter_future_events(events: list[dict[str, Any]], now: datetime) -> list[dict[str, Any]]:
    """Keep events that end strictly after *now*, in their original order.

    Events whose end cannot be read are dropped.
    """
    upcoming = []
    for event in events:
        end = event_end_instant(event)
        if end is not None and end > now:
            upcoming.append(event)
    return upcoming


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CalendarOperations:
    """Async facade over :class:`GoogleCalendarClient`.

    The client is synchronous; calls run in worker threads so concurrent
    inserts from a batch do not block the event loop.
    """

    def __init__(
        self,
        client: GoogleCalendarClient,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._client = client
        self._clock = clock

    async def create_event(self, params: CreateEventParams) -> CreateResult:
        body = build_event_body(params)
        try:
            with metrics.track("google_calendar", "events.insert"):
                event = await asyncio.to_thread(self._client.insert_event, body)
        except CalendarAPIError as exc:
            logger.error("Failed to create event %r: %s", params.title, exc)
            return CreateResult.fail(str(exc))

        logger.info("Created event %r (%s)", params.title, event.get("id", "?"))
        return CreateResult.ok(event)

    async def list_events(
        self,
        time_min: str | None = None,
        time_max: str | None = None,
    ) -> ListResult:
        """List upcoming events in the (possibly open) window.

        Already-finished events inside the window are filtered out using a
        second ``now`` taken after the response arrives; that capture is the
        authoritative one.
        """
        window = normalize_range(time_min, time_max, DEFAULT_SPAN_DAYS, now=self._clock())
        try:
            with metrics.track("google_calendar", "events.list"):
                items = await asyncio.to_thread(
                    self._client.list_events,
                    time_min=window.time_min,
                    time_max=window.time_max,
                    max_results=LIST_PAGE_SIZE,
                )
        except CalendarAPIError as exc:
            logger.error("Failed to list events: %s", exc)
            return ListResult.fail(str(exc))

        upcoming = filter_future_events(items, self._clock())
        logger.info(
            "Listed %d event(s) between %s and %s, %d still upcoming",
            len(items), window.time_min, window.time_max, len(upcoming),
        )
        return ListResult.ok(upcoming[:MAX_DISPLAY_EVENTS])
