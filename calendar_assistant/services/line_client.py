"""Minimal LINE Messaging API client: reply messages and webhook signatures.

API docs: https://developers.line.biz/en/reference/messaging-api/
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from typing import Any

import httpx

from calendar_assistant.config import LINE_API_BASE_URL, LINE_CHANNEL_ACCESS_TOKEN

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 10.0
MAX_MESSAGES_PER_REPLY = 5


class LineAPIError(Exception):
    """Raised when the LINE platform rejects a request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


def verify_signature(body: bytes, signature: str | None, channel_secret: str) -> bool:
    """Check ``X-Line-Signature``: base64(HMAC-SHA256(channel_secret, body))."""
    if not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected, signature)


class LineMessagingClient:
    """Sends reply messages with a long-lived channel access token."""

    def __init__(self, access_token: str | None = None, base_url: str | None = None):
        self._client = httpx.Client(
            base_url=base_url or LINE_API_BASE_URL,
            headers={
                "Authorization": f"Bearer {access_token or LINE_CHANNEL_ACCESS_TOKEN}",
                "Content-Type": "application/json",
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    def reply(self, reply_token: str, messages: list[dict[str, Any]]) -> None:
        """Reply to a webhook event.  A reply token can be used only once."""
        if not messages:
            return
        if len(messages) > MAX_MESSAGES_PER_REPLY:
            raise ValueError(f"LINE accepts at most {MAX_MESSAGES_PER_REPLY} messages per reply")

        try:
            response = self._client.post(
                "/v2/bot/message/reply",
                json={"replyToken": reply_token, "messages": messages},
            )
        except httpx.HTTPError as exc:
            raise LineAPIError(f"LINE reply failed ({type(exc).__name__}): {exc}") from exc

        if response.status_code >= 400:
            raise LineAPIError(
                f"LINE reply error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        logger.debug("Replied with %d message(s)", len(messages))

    def close(self) -> None:
        self._client.close()
