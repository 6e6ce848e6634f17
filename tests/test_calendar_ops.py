"""Tests for calendar create/list operations."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from googleapiclient.discovery import build
from googleapiclient.http import HttpMockSequence

from calendar_assistant.calendar_ops import (
    LIST_PAGE_SIZE,
    MAX_DISPLAY_EVENTS,
    CalendarOperations,
    build_event_body,
    filter_future_events,
)
from calendar_assistant.intents import CreateEventParams
from calendar_assistant.services.calendar_client import CalendarAPIError, GoogleCalendarClient

# 12:00 in Taipei
NOW = datetime(2025, 12, 10, 4, 0, tzinfo=UTC)
CALENDAR_ID = "team@group.calendar.google.com"


def _params(**overrides) -> CreateEventParams:
    data = {
        "title": "Dinner",
        "startTime": "2025-12-12T19:00:00",
        "endTime": "2025-12-12T20:00:00",
    }
    data.update(overrides)
    return CreateEventParams.model_validate(data)


def _timed(summary: str, start: str, end: str) -> dict:
    return {"summary": summary, "start": {"dateTime": start}, "end": {"dateTime": end}}


def _html_service():
    """Calendar resource that answers its one request with a 200 HTML page."""
    http = HttpMockSequence([({"status": "200"}, b"<html>proxy</html>")])
    return build("calendar", "v3", http=http, cache_discovery=False)


def _operations(client: MagicMock, clock=lambda: NOW) -> CalendarOperations:
    return CalendarOperations(client, clock=clock)


# ── Tests: build_event_body ──────────────────────────────────────────


class TestBuildEventBody:
    def test_uses_home_timezone_and_empty_defaults(self):
        body = build_event_body(_params())
        assert body == {
            "summary": "Dinner",
            "location": "",
            "description": "",
            "start": {"dateTime": "2025-12-12T19:00:00", "timeZone": "Asia/Taipei"},
            "end": {"dateTime": "2025-12-12T20:00:00", "timeZone": "Asia/Taipei"},
        }

    def test_passes_location_and_description(self):
        body = build_event_body(_params(location="Taipei 101", description="Bring gift"))
        assert body["location"] == "Taipei 101"
        assert body["description"] == "Bring gift"


# ── Tests: create_event ──────────────────────────────────────────────


class TestCreateEvent:
    def test_success_returns_event(self):
        client = MagicMock()
        client.insert_event.return_value = {"id": "evt-1", "htmlLink": "https://x"}
        params = _params()

        result = asyncio.run(_operations(client).create_event(params))

        assert result.success is True
        assert result.event["id"] == "evt-1"
        client.insert_event.assert_called_once_with(build_event_body(params))

    def test_failure_carries_error_text(self):
        client = MagicMock()
        client.insert_event.side_effect = CalendarAPIError(
            "Google Calendar error 403: Forbidden", status_code=403,
        )

        result = asyncio.run(_operations(client).create_event(_params()))

        assert result.success is False
        assert "Forbidden" in result.message
        assert result.event is None

    def test_unreadable_success_body_is_failure_result(self):
        client = GoogleCalendarClient(CALENDAR_ID, service=_html_service())

        result = asyncio.run(_operations(client).create_event(_params()))

        assert result.success is False
        assert "invalid response" in result.message


# ── Tests: list_events ───────────────────────────────────────────────


class TestListEvents:
    def test_queries_normalized_default_window(self):
        client = MagicMock()
        client.list_events.return_value = []

        result = asyncio.run(_operations(client).list_events())

        assert result.success is True
        assert result.events == []
        client.list_events.assert_called_once_with(
            time_min="2025-12-10T04:00:00+00:00",
            time_max="2025-12-17T04:00:00+00:00",
            max_results=LIST_PAGE_SIZE,
        )

    def test_invalid_time_max_falls_back_to_seven_days(self):
        client = MagicMock()
        client.list_events.return_value = []

        asyncio.run(
            _operations(client).list_events("2025-12-12T00:00:00+08:00", "not-a-date")
        )

        kwargs = client.list_events.call_args.kwargs
        assert kwargs["time_min"] == "2025-12-11T16:00:00+00:00"
        assert kwargs["time_max"] == "2025-12-18T16:00:00+00:00"

    def test_finished_events_are_filtered_out_in_order(self):
        client = MagicMock()
        client.list_events.return_value = [
            _timed("Breakfast", "2025-12-10T08:00:00+08:00", "2025-12-10T09:00:00+08:00"),
            _timed("Standup", "2025-12-10T10:00:00+08:00", "2025-12-10T11:00:00+08:00"),
            _timed("Workshop", "2025-12-10T11:30:00+08:00", "2025-12-10T13:00:00+08:00"),
            _timed("Dinner", "2025-12-11T19:00:00+08:00", "2025-12-11T20:00:00+08:00"),
            {"summary": "Trip", "start": {"date": "2025-12-12"}, "end": {"date": "2025-12-13"}},
        ]

        result = asyncio.run(_operations(client).list_events())

        assert result.success is True
        assert [e["summary"] for e in result.events] == ["Workshop", "Dinner", "Trip"]

    def test_failure_carries_error_text(self):
        client = MagicMock()
        client.list_events.side_effect = CalendarAPIError("Google Calendar error 404: Not Found", 404)

        result = asyncio.run(_operations(client).list_events())

        assert result.success is False
        assert "Not Found" in result.message

    def test_unreadable_success_body_is_failure_result(self):
        client = GoogleCalendarClient(CALENDAR_ID, service=_html_service())

        result = asyncio.run(_operations(client).list_events())

        assert result.success is False
        assert "invalid response" in result.message

    def test_result_is_capped_for_display(self):
        client = MagicMock()
        base = datetime(2025, 12, 11, 9, 0, tzinfo=UTC)
        client.list_events.return_value = [
            _timed(
                f"Event {i}",
                (base + timedelta(hours=i)).isoformat(),
                (base + timedelta(hours=i, minutes=30)).isoformat(),
            )
            for i in range(MAX_DISPLAY_EVENTS + 5)
        ]

        result = asyncio.run(_operations(client).list_events())

        assert len(result.events) == MAX_DISPLAY_EVENTS
        assert result.events[0]["summary"] == "Event 0"

    def test_second_now_capture_is_authoritative(self):
        client = MagicMock()
        client.list_events.return_value = [
            _timed("Ends soon", "2025-12-10T11:00:00+08:00", "2025-12-10T12:30:00+08:00"),
            _timed("Later", "2025-12-10T15:00:00+08:00", "2025-12-10T16:00:00+08:00"),
        ]
        clock = MagicMock(side_effect=[NOW, NOW + timedelta(hours=1)])

        result = asyncio.run(_operations(client, clock=clock).list_events())

        assert [e["summary"] for e in result.events] == ["Later"]
        assert clock.call_count == 2


class TestFilterFutureEvents:
    def test_event_ending_exactly_now_is_dropped(self):
        events = [_timed("Edge", "2025-12-10T11:00:00+08:00", "2025-12-10T12:00:00+08:00")]
        assert filter_future_events(events, NOW) == []

    def test_event_with_unreadable_end_is_dropped(self):
        events = [{"summary": "Broken", "end": {"dateTime": "garbage"}}, {"summary": "No end"}]
        assert filter_future_events(events, NOW) == []

    def test_in_progress_event_is_kept(self):
        events = [_timed("Now", "2025-12-10T11:00:00+08:00", "2025-12-10T12:00:01+08:00")]
        assert filter_future_events(events, NOW) == events
