"""Date/time normalization for model-extracted time strings.

The model returns ISO-8601-ish strings that may be missing, malformed, or
missing a timezone.  These helpers turn them into timezone-aware instants
that Google Calendar accepts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from calendar_assistant.config import HOME_TZ

DEFAULT_SPAN_DAYS = 7

HOME_OFFSET_SUFFIX = "+08:00"

_OFFSET_SUFFIX_RE = re.compile(r"[+-]\d{2}:?\d{2}$")


@dataclass(frozen=True)
class NormalizedTimeRange:
    """An absolute ``[start, end]`` window, both ends timezone-aware."""

    start: datetime
    end: datetime

    @property
    def time_min(self) -> str:
        return to_rfc3339(self.start)

    @property
    def time_max(self) -> str:
        return to_rfc3339(self.end)


def parse_instant(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 date or date-time into an aware ``datetime``.

    ``Z`` suffixes and explicit offsets are honoured.  Naive values and bare
    dates are read as home-timezone (Taipei) wall-clock time.  Returns
    ``None`` for absent or unparseable input instead of raising.
    """
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None
    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=HOME_TZ)
    return parsed


def to_rfc3339(value: datetime) -> str:
    """Serialize as UTC with an explicit ``+00:00`` offset."""
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def normalize_range(
    time_min_raw: str | None,
    time_max_raw: str | None,
    default_span_days: int = DEFAULT_SPAN_DAYS,
    *,
    now: datetime | None = None,
) -> NormalizedTimeRange:
    """Resolve a possibly-partial query window.

    - missing/invalid ``time_min_raw`` -> start is *now*
    - missing/invalid ``time_max_raw`` -> end is start + ``default_span_days``
    """
    if now is None:
        now = datetime.now(timezone.utc)

    start = parse_instant(time_min_raw) or now
    end = parse_instant(time_max_raw) or start + timedelta(days=default_span_days)
    return NormalizedTimeRange(start=start, end=end)


def apply_home_offset(time_str: str) -> str:
    """Append ``+08:00`` to a date-time that carries no timezone marker.

    The model sometimes drops the offset from the times it extracts; read as
    UTC those would render eight hours late.  Strings ending in ``Z`` or an
    explicit offset, and bare dates, are returned unchanged.

    Known fragility: this assumes the model's implicit timezone is always
    Taipei.
    """
    if not time_str:
        return time_str
    stripped = time_str.strip()
    if "T" not in stripped.upper():
        return time_str
    if stripped[-1] in ("Z", "z") or _OFFSET_SUFFIX_RE.search(stripped):
        return time_str
    return stripped + HOME_OFFSET_SUFFIX


def to_home_time(time_str: str) -> datetime | None:
    """Parse a create-time string for display, in Taipei local time."""
    parsed = parse_instant(apply_home_offset(time_str))
    if parsed is None:
        return None
    return parsed.astimezone(HOME_TZ)


def event_end_instant(event: dict) -> datetime | None:
    """Return when a Google Calendar event ends.

    All-day events only carry ``end.date`` (exclusive); that is read as local
    midnight of the given day.
    """
    end = event.get("end") or {}
    return parse_instant(end.get("dateTime") or end.get("date"))
