"""LINE message builders: plain text and Flex Message "bubble" cards.

Flex reference: https://developers.line.biz/en/docs/messaging-api/flex-message-elements/
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from calendar_assistant.config import HOME_TZ
from calendar_assistant.intents import CreateEventParams
from calendar_assistant.time_normalizer import parse_instant, to_home_time

NO_EVENTS_TEXT = "📅 目前沒有找到相關行程喔！"
DELETE_REFUSAL_TEXT = "🗑️ 目前還不支援透過聊天刪除行程，請直接到 Google 日曆手動刪除喔！"
CREATE_FAILED_PREFIX = "❌ 建立失敗: "
QUERY_FAILED_PREFIX = "❌ 查詢失敗: "

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/u/0/r"
CALENDAR_ICON_URL = "https://cdn-icons-png.flaticon.com/512/2693/2693507.png"

BRAND_COLOR = "#2B3467"
IMPORTANT_COLOR = "#E63946"
SUCCESS_COLOR = "#1DB446"
IMPORTANT_KEYWORDS = ("重要", "Important")

_EN_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_ZH_WEEKDAYS = ("一", "二", "三", "四", "五", "六", "日")


def text_message(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


def batch_summary_message(succeeded: int, failed: int) -> dict[str, Any]:
    return text_message(
        f"📦 批次建立完成\n✅ 成功：{succeeded} 筆\n❌ 失敗：{failed} 筆"
    )


def _short_date(value: datetime, weekdays: tuple[str, ...]) -> str:
    return f"{value.month}/{value.day} ({weekdays[value.weekday()]})"


# ── Upcoming-events overview ────────────────────────────────────────


def format_event_data(event: dict[str, Any]) -> dict[str, Any] | None:
    """Flatten a Google event into the fields the overview card shows.

    Returns ``None`` when the start cannot be read.
    """
    start = event.get("start") or {}
    is_all_day = not start.get("dateTime")
    start_at = parse_instant(start.get("dateTime") or start.get("date"))
    if start_at is None:
        return None
    local = start_at.astimezone(HOME_TZ)

    summary = event.get("summary") or "(No Title)"
    return {
        "date_key": local.strftime("%Y-%m-%d"),
        "display_date": _short_date(local, _EN_WEEKDAYS),
        "time": "All Day" if is_all_day else local.strftime("%H:%M"),
        "summary": summary,
        "location": event.get("location") or "",
        "is_important": any(keyword in summary for keyword in IMPORTANT_KEYWORDS),
    }


def _event_row(item: dict[str, Any]) -> dict[str, Any]:
    title_color = IMPORTANT_COLOR if item["is_important"] else "#111111"
    time_color = IMPORTANT_COLOR if item["is_important"] else "#888888"

    details: list[dict[str, Any]] = [
        {
            "type": "text",
            "text": item["summary"],
            "size": "sm",
            "color": title_color,
            "wrap": True,
            "weight": "bold" if item["is_important"] else "regular",
        }
    ]
    if item["location"]:
        details.append(
            {
                "type": "text",
                "text": item["location"],
                "size": "xs",
                "color": "#aaaaaa",
                "margin": "xs",
                "wrap": True,
            }
        )

    return {
        "type": "box",
        "layout": "horizontal",
        "contents": [
            {
                "type": "text",
                "text": item["time"],
                "size": "sm",
                "color": time_color,
                "flex": 0,
                "gravity": "top",
                "weight": "bold",
                "margin": "xs",
            },
            {
                "type": "box",
                "layout": "vertical",
                "contents": details,
                "flex": 1,
                "margin": "md",
            },
        ],
        "margin": "lg",
    }


def build_overview_flex(events: list[dict[str, Any]]) -> dict[str, Any]:
    """Timeline card of upcoming events grouped by local date.

    An empty list yields a plain "no events" text message instead.
    """
    groups: dict[str, dict[str, Any]] = {}
    for event in events:
        item = format_event_data(event)
        if item is None:
            continue
        group = groups.setdefault(
            item["date_key"], {"label": item["display_date"], "items": []},
        )
        group["items"].append(item)

    if not groups:
        return text_message(NO_EVENTS_TEXT)

    keys = sorted(groups)
    first_label, last_label = groups[keys[0]]["label"], groups[keys[-1]]["label"]
    date_range = f"{first_label} - {last_label}" if len(keys) > 1 else first_label

    body: list[dict[str, Any]] = []
    for index, key in enumerate(keys):
        group = groups[key]
        body.append(
            {
                "type": "box",
                "layout": "vertical",
                "contents": [
                    {
                        "type": "text",
                        "text": group["label"],
                        "weight": "bold",
                        "size": "sm",
                        "color": BRAND_COLOR,
                    },
                    {"type": "separator", "margin": "sm", "color": BRAND_COLOR},
                ],
                "margin": "none" if index == 0 else "xl",
            }
        )
        body.extend(_event_row(item) for item in group["items"])

    shown = sum(len(group["items"]) for group in groups.values())
    return {
        "type": "flex",
        "altText": f"📅 未來行程總覽 ({shown})",
        "contents": {
            "type": "bubble",
            "size": "mega",
            "header": {
                "type": "box",
                "layout": "vertical",
                "contents": [
                    {
                        "type": "box",
                        "layout": "horizontal",
                        "contents": [
                            {
                                "type": "image",
                                "url": CALENDAR_ICON_URL,
                                "flex": 0,
                                "aspectMode": "fit",
                                "size": "sm",
                            },
                            {
                                "type": "text",
                                "text": "未來行程總覽",
                                "weight": "bold",
                                "color": "#ffffff",
                                "size": "lg",
                                "gravity": "center",
                                "margin": "md",
                                "flex": 1,
                            },
                        ],
                    },
                    {
                        "type": "text",
                        "text": date_range,
                        "color": "#b7c0ce",
                        "size": "xs",
                        "margin": "sm",
                    },
                ],
                "backgroundColor": BRAND_COLOR,
                "paddingAll": "20px",
                "paddingBottom": "15px",
            },
            "body": {"type": "box", "layout": "vertical", "contents": body},
            "footer": {
                "type": "box",
                "layout": "vertical",
                "contents": [
                    {
                        "type": "button",
                        "action": {
                            "type": "uri",
                            "label": "打開 Google 日曆",
                            "uri": GOOGLE_CALENDAR_URL,
                        },
                        "style": "primary",
                        "color": BRAND_COLOR,
                        "height": "sm",
                    }
                ],
                "backgroundColor": "#f8f9fa",
            },
        },
    }


# ── Create confirmation ─────────────────────────────────────────────


def build_create_success_flex(params: CreateEventParams) -> dict[str, Any]:
    """Confirmation card built from the submitted params, not re-read from Google."""
    start = to_home_time(params.start_time)
    if start is None:
        date_text, time_text = params.start_time, ""
    else:
        date_text, time_text = _short_date(start, _ZH_WEEKDAYS), start.strftime("%H:%M")

    schedule_row: list[dict[str, Any]] = [
        {"type": "text", "text": date_text, "size": "sm", "color": "#666666", "flex": 0},
    ]
    if time_text:
        schedule_row.append(
            {
                "type": "text",
                "text": time_text,
                "size": "sm",
                "color": "#111111",
                "weight": "bold",
                "align": "end",
            }
        )

    contents: list[dict[str, Any]] = [
        {
            "type": "text",
            "text": "✅ 行程已建立",
            "weight": "bold",
            "color": SUCCESS_COLOR,
            "size": "sm",
        },
        {
            "type": "text",
            "text": params.title,
            "weight": "bold",
            "size": "xl",
            "margin": "md",
            "wrap": True,
        },
        {"type": "box", "layout": "horizontal", "margin": "md", "contents": schedule_row},
    ]
    if params.location:
        contents.append(
            {
                "type": "text",
                "text": f"📍 {params.location}",
                "size": "sm",
                "color": "#888888",
                "margin": "md",
                "wrap": True,
            }
        )

    return {
        "type": "flex",
        "altText": f"✅ 行程已建立：{params.title}",
        "contents": {
            "type": "bubble",
            "size": "mega",
            "body": {
                "type": "box",
                "layout": "vertical",
                "contents": contents,
                "paddingAll": "20px",
            },
            "styles": {"footer": {"separator": True}},
        },
    }
