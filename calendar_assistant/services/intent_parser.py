"""Turns free text into a typed :data:`Intent` with one LLM call.

The contract is fail-soft: a model error, non-JSON output, or JSON that does
not match any intent variant all yield ``None``, and the caller stays silent
instead of replying to every utterance it could not understand.  There is no
retry; one request per message.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import BaseMessage, HumanMessage
from pydantic import ValidationError

from calendar_assistant.config import ANTHROPIC_API_KEY, MODEL_NAME
from calendar_assistant.intents import Intent, parse_intent_json
from calendar_assistant.prompts import get_intent_prompt
from calendar_assistant.services.metrics import metrics

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers the model adds despite being told not to."""
    return _CODE_FENCE_RE.sub("", text).strip()


def _message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    # Content-block form: [{"type": "text", "text": "..."}, ...]
    return "".join(
        block.get("text", "") if isinstance(block, dict) else str(block)
        for block in content
    )


def _build_llm() -> ChatAnthropic:
    """Build the extraction LLM (no tools, deterministic)."""
    return ChatAnthropic(
        model=MODEL_NAME,
        api_key=ANTHROPIC_API_KEY,
        temperature=0.0,
        max_tokens=1024,
    )


class IntentParser:
    """Prompt -> model -> strict parse."""

    def __init__(self, llm=None):
        self._llm = llm or _build_llm()

    def parse(self, user_text: str, now: datetime | None = None) -> Intent | None:
        prompt = get_intent_prompt(user_text, now)

        try:
            with metrics.track("anthropic", "intent_parse"):
                response = self._llm.invoke([HumanMessage(content=prompt)])
        except Exception as exc:
            logger.warning("Intent model call failed (%s): %s", type(exc).__name__, exc)
            return None

        raw = strip_code_fences(_message_text(response))
        try:
            intent = parse_intent_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Discarding model output that is not a valid intent (%d error(s)): %r",
                exc.error_count(), raw[:200],
            )
            return None

        logger.info("Parsed intent: %s", intent.action)
        return intent
