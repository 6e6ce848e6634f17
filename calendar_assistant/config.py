"""Centralized configuration for the LINE Calendar Assistant.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (``.env`` is skipped when
     ``APP_ENV=production``)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/line-calendar-bot/<VARIABLE_NAME>``.
"""

from __future__ import annotations

import logging
import os
from datetime import timedelta, timezone

from dotenv import load_dotenv

# ── Execution mode ───────────────────────────────────────────────────
APP_ENV: str = os.getenv("APP_ENV", "development").lower()
IS_PRODUCTION: bool = APP_ENV == "production"

if not IS_PRODUCTION:
    load_dotenv()

logger = logging.getLogger(__name__)

_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))
_SSM_PREFIX = "/line-calendar-bot"


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 is
    unavailable.  Errors are logged but never raised so that the
    env-var path keeps working locally.
    """
    try:
        import boto3  # noqa: PLC0415 (lazy import, only needed on AWS)

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"{_SSM_PREFIX}/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed", name)
        return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _ON_AWS:
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value

    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store {_SSM_PREFIX}/{name} (AWS)."
    )


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


# ── LINE Messaging API ──────────────────────────────────────────────
LINE_CHANNEL_ACCESS_TOKEN: str = _require_env("LINE_CHANNEL_ACCESS_TOKEN")
LINE_CHANNEL_SECRET: str = _require_env("LINE_CHANNEL_SECRET")
LINE_VERIFY_SIGNATURE: bool = _env_flag("LINE_VERIFY_SIGNATURE")
LINE_API_BASE_URL: str = "https://api.line.me"

# Prefix required on messages from group chats and multi-person rooms
TRIGGER_WORD: str = os.getenv("TRIGGER_WORD", "@bot")

# ── LLM ─────────────────────────────────────────────────────────────
ANTHROPIC_API_KEY: str = _require_env("ANTHROPIC_API_KEY")
MODEL_NAME: str = os.getenv("MODEL_NAME", "claude-haiku-4-5")

# ── Google Calendar ─────────────────────────────────────────────────
GOOGLE_CALENDAR_ID: str = _require_env("GOOGLE_CALENDAR_ID")
GOOGLE_CALENDAR_SCOPES: list[str] = ["https://www.googleapis.com/auth/calendar"]

# Taipei has no DST, so a fixed offset is exact
HOME_TIMEZONE_NAME: str = "Asia/Taipei"
HOME_TZ = timezone(timedelta(hours=8), HOME_TIMEZONE_NAME)

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8080"))
