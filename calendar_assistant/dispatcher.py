"""Routes a parsed :data:`Intent` to its side effect and builds the reply.

Each call produces exactly one LINE message dict, or ``None`` meaning
"do not reply".

Routing:
    create        -> one insert; confirmation card or failure text
    batch_create  -> concurrent inserts; success/failure counts
    query         -> list upcoming; overview card or failure text
    delete        -> fixed refusal, calendar untouched
    chat          -> echo the model's response
    unknown/None  -> no reply
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from calendar_assistant.calendar_ops import CalendarOperations, CreateResult
from calendar_assistant.intents import (
    BatchCreateIntent,
    ChatIntent,
    CreateIntent,
    DeleteIntent,
    Intent,
    QueryIntent,
)
from calendar_assistant.presentation import (
    CREATE_FAILED_PREFIX,
    DELETE_REFUSAL_TEXT,
    QUERY_FAILED_PREFIX,
    batch_summary_message,
    build_create_success_flex,
    build_overview_flex,
    text_message,
)

logger = logging.getLogger(__name__)


async def _create(intent: CreateIntent, operations: CalendarOperations) -> dict[str, Any]:
    result = await operations.create_event(intent.params)
    if result.success:
        return build_create_success_flex(intent.params)
    return text_message(f"{CREATE_FAILED_PREFIX}{result.message}")


async def _batch_create(intent: BatchCreateIntent, operations: CalendarOperations) -> dict[str, Any]:
    results = await asyncio.gather(
        *(operations.create_event(params) for params in intent.params.events),
        return_exceptions=True,
    )
    succeeded = sum(1 for r in results if isinstance(r, CreateResult) and r.success)
    failed = len(results) - succeeded
    for r in results:
        if isinstance(r, BaseException):
            logger.error("Batch insert raised unexpectedly: %r", r)
    logger.info("Batch create finished: %d succeeded, %d failed", succeeded, failed)
    return batch_summary_message(succeeded, failed)


async def _query(intent: QueryIntent, operations: CalendarOperations) -> dict[str, Any]:
    result = await operations.list_events(intent.params.time_min, intent.params.time_max)
    if result.success:
        return build_overview_flex(result.events)
    return text_message(f"{QUERY_FAILED_PREFIX}{result.message}")


async def dispatch(intent: Intent | None, operations: CalendarOperations) -> dict[str, Any] | None:
    """Perform the action for *intent* and return the reply message, or ``None``."""
    if isinstance(intent, CreateIntent):
        return await _create(intent, operations)
    if isinstance(intent, BatchCreateIntent):
        return await _batch_create(intent, operations)
    if isinstance(intent, QueryIntent):
        return await _query(intent, operations)
    if isinstance(intent, DeleteIntent):
        return text_message(DELETE_REFUSAL_TEXT)
    if isinstance(intent, ChatIntent):
        return text_message(intent.params.response)

    logger.debug("No reply for intent %r", intent)
    return None
