"""Per-event processing for LINE webhook deliveries.

Flow for one event:
    text-message filter -> trigger-word gate -> intent parser -> dispatcher
    -> LINE reply

A delivery can carry several events.  They run concurrently and all of them
settle before the webhook answers, so one failing event never prevents its
siblings from replying.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from calendar_assistant.calendar_ops import CalendarOperations
from calendar_assistant.config import TRIGGER_WORD
from calendar_assistant.dispatcher import dispatch
from calendar_assistant.services.intent_parser import IntentParser
from calendar_assistant.services.line_client import LineMessagingClient
from calendar_assistant.services.metrics import metrics

logger = logging.getLogger(__name__)

MULTI_PARTY_SOURCES = frozenset({"group", "room"})


# ── Webhook event shapes (only the fields we read) ──────────────────


class _LineModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LineMessage(_LineModel):
    type: str
    text: str | None = None


class LineSource(_LineModel):
    type: str = "user"


class LineEvent(_LineModel):
    type: str
    message: LineMessage | None = None
    source: LineSource = Field(default_factory=LineSource)
    reply_token: str | None = Field(None, alias="replyToken")


class EventBatchError(Exception):
    """One or more events in a webhook delivery raised."""

    def __init__(self, errors: list[BaseException]):
        self.errors = errors
        super().__init__(f"{len(errors)} event(s) failed: {errors[0]!r}")


def apply_trigger_gate(text: str, source_type: str, trigger_word: str) -> str | None:
    """Return the text to parse, or ``None`` if the message should be ignored.

    Group and room messages must start with *trigger_word*; it is removed
    together with the whitespace after it.  One-to-one chats pass through.
    """
    if source_type not in MULTI_PARTY_SOURCES:
        return text
    if not text.startswith(trigger_word):
        return None
    remainder = text[len(trigger_word):].lstrip()
    return remainder or None


class EventHandler:
    """Holds the process-wide clients and processes webhook events."""

    def __init__(
        self,
        parser: IntentParser,
        operations: CalendarOperations,
        line_client: LineMessagingClient | None = None,
        *,
        trigger_word: str = TRIGGER_WORD,
    ):
        self._parser = parser
        self._operations = operations
        self._line_client = line_client
        self._trigger_word = trigger_word

    async def respond(self, text: str, source_type: str = "user") -> dict[str, Any] | None:
        """Gate, parse and dispatch one message; return the reply or ``None``."""
        gated = apply_trigger_gate(text, source_type, self._trigger_word)
        if gated is None:
            logger.debug("Ignoring %s message without trigger word", source_type)
            return None

        logger.info("Received %s message: %r", source_type, gated[:100])
        intent = await asyncio.to_thread(self._parser.parse, gated)
        return await dispatch(intent, self._operations)

    async def handle(self, raw_event: Any) -> dict[str, Any] | None:
        """Process one webhook event and send its reply, if any."""
        try:
            event = LineEvent.model_validate(raw_event)
        except ValidationError:
            logger.debug("Skipping malformed event: %r", raw_event)
            return None

        if event.type != "message" or event.message is None or event.message.type != "text":
            return None
        if not event.message.text:
            return None

        reply = await self.respond(event.message.text, event.source.type)
        if reply is None:
            return None
        if self._line_client is None or not event.reply_token:
            logger.warning("Reply produced but there is no way to send it")
            return reply

        with metrics.track("line", "reply"):
            await asyncio.to_thread(self._line_client.reply, event.reply_token, [reply])
        return reply

    async def handle_all(self, events: list[Any]) -> list[dict[str, Any] | None]:
        """Process every event concurrently; raise after all settle if any failed."""
        results = await asyncio.gather(
            *(self.handle(event) for event in events), return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        for error in errors:
            logger.error("Event processing failed", exc_info=error)
        if errors:
            raise EventBatchError(errors)
        return results
