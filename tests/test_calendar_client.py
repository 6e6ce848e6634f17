"""Tests for the GoogleCalendarClient service."""

from __future__ import annotations

import json
import threading
from unittest.mock import MagicMock, patch

import httplib2
import pytest
from google.auth.exceptions import RefreshError
from googleapiclient.discovery import build
from googleapiclient.http import HttpMockSequence

from calendar_assistant.services.calendar_client import CalendarAPIError, GoogleCalendarClient

CALENDAR_ID = "team@group.calendar.google.com"


def _mock_service() -> MagicMock:
    """Calendar resource stand-in: ``service.events().<method>(...).execute()``."""
    service = MagicMock()
    _execute(service, "insert").return_value = {"id": "evt-0"}
    _execute(service, "list").return_value = {"items": []}
    return service


def _execute(service: MagicMock, method: str) -> MagicMock:
    return getattr(service.events.return_value, method).return_value.execute


def _http_service(*responses: tuple[dict, str]):
    """A real Calendar resource whose HTTP layer replays canned responses."""
    canned = [(headers, content.encode("utf-8")) for headers, content in responses]
    return build("calendar", "v3", http=HttpMockSequence(canned), cache_discovery=False)


def _make_client(service=None) -> GoogleCalendarClient:
    return GoogleCalendarClient(CALENDAR_ID, service=service or _mock_service())


# ── Tests: insert_event ──────────────────────────────────────────────


class TestInsertEvent:
    def test_inserts_body_into_configured_calendar(self):
        service = _mock_service()
        _execute(service, "insert").return_value = {"id": "evt-1"}
        client = _make_client(service)
        body = {"summary": "Dinner"}

        event = client.insert_event(body)

        assert event == {"id": "evt-1"}
        service.events.return_value.insert.assert_called_once_with(
            calendarId=CALENDAR_ID, body=body,
        )

    def test_parses_json_response_over_http(self):
        client = _make_client(_http_service(({"status": "200"}, json.dumps({"id": "evt-9"}))))
        assert client.insert_event({"summary": "Dinner"}) == {"id": "evt-9"}


# ── Tests: list_events ───────────────────────────────────────────────


class TestListEvents:
    def test_sends_single_events_ordered_query(self):
        service = _mock_service()
        items = [{"summary": "A"}, {"summary": "B"}]
        _execute(service, "list").return_value = {"items": items}
        client = _make_client(service)

        result = client.list_events(
            time_min="2025-12-10T04:00:00+00:00",
            time_max="2025-12-17T04:00:00+00:00",
            max_results=20,
        )

        assert result == items
        service.events.return_value.list.assert_called_once_with(
            calendarId=CALENDAR_ID,
            timeMin="2025-12-10T04:00:00+00:00",
            timeMax="2025-12-17T04:00:00+00:00",
            singleEvents=True,
            orderBy="startTime",
            maxResults=20,
        )

    def test_missing_items_is_empty_list(self):
        service = _mock_service()
        _execute(service, "list").return_value = {}
        client = _make_client(service)

        assert client.list_events(time_min="a", time_max="b", max_results=5) == []

    def test_non_list_items_is_invalid_response(self):
        service = _mock_service()
        _execute(service, "list").return_value = {"items": "oops"}
        client = _make_client(service)

        with pytest.raises(CalendarAPIError, match="invalid response"):
            client.list_events(time_min="a", time_max="b", max_results=5)


# ── Tests: errors ────────────────────────────────────────────────────


class TestErrors:
    def test_google_error_message_is_surfaced(self):
        error_body = {"error": {"code": 403, "message": "Insufficient permissions"}}
        client = _make_client(
            _http_service(({"status": "403", "reason": "Forbidden"}, json.dumps(error_body)))
        )

        with pytest.raises(CalendarAPIError) as exc_info:
            client.insert_event({"summary": "x"})

        assert exc_info.value.status_code == 403
        assert "Insufficient permissions" in str(exc_info.value)

    def test_non_json_success_body_is_calendar_error(self):
        client = _make_client(_http_service(({"status": "200"}, "<html>proxy</html>")))

        with pytest.raises(CalendarAPIError, match="invalid response"):
            client.insert_event({"summary": "x"})

    def test_non_object_success_body_is_calendar_error(self):
        client = _make_client(_http_service(({"status": "200"}, "[1, 2]")))

        with pytest.raises(CalendarAPIError, match="invalid response"):
            client.list_events(time_min="a", time_max="b", max_results=5)

    def test_transport_error_is_wrapped_and_not_retried(self):
        service = _mock_service()
        execute = _execute(service, "insert")
        execute.side_effect = httplib2.ServerNotFoundError("refused")
        client = _make_client(service)

        with pytest.raises(CalendarAPIError) as exc_info:
            client.insert_event({"summary": "x"})

        assert "ServerNotFoundError" in str(exc_info.value)
        assert exc_info.value.status_code is None
        assert execute.call_count == 1

    def test_timeout_is_wrapped(self):
        service = _mock_service()
        _execute(service, "list").side_effect = TimeoutError("timed out")
        client = _make_client(service)

        with pytest.raises(CalendarAPIError, match="TimeoutError"):
            client.list_events(time_min="a", time_max="b", max_results=5)

    def test_refresh_failure_becomes_calendar_error(self):
        service = _mock_service()
        _execute(service, "insert").side_effect = RefreshError("invalid_grant")
        client = _make_client(service)

        with pytest.raises(CalendarAPIError) as exc_info:
            client.insert_event({"summary": "x"})

        assert "authentication" in str(exc_info.value).lower()


# ── Tests: credentials and service construction ──────────────────────


class TestServiceConstruction:
    def test_application_default_credentials_resolved_lazily(self):
        creds = MagicMock()
        service = _mock_service()
        _execute(service, "insert").return_value = {"id": "evt-1"}

        with patch(
            "calendar_assistant.services.calendar_client.google.auth.default",
            return_value=(creds, "my-project"),
        ) as mock_default, patch(
            "calendar_assistant.services.calendar_client.build", return_value=service,
        ) as mock_build:
            client = GoogleCalendarClient(CALENDAR_ID)
            mock_default.assert_not_called()

            client.insert_event({"summary": "x"})
            client.insert_event({"summary": "y"})

        mock_default.assert_called_once()
        mock_build.assert_called_once()
        assert mock_build.call_args.args == ("calendar", "v3")

    def test_each_thread_gets_its_own_service(self):
        with patch(
            "calendar_assistant.services.calendar_client.build",
            side_effect=lambda *a, **kw: _mock_service(),
        ) as mock_build:
            client = GoogleCalendarClient(CALENDAR_ID, credentials=MagicMock())
            client.insert_event({"summary": "main"})

            worker = threading.Thread(target=client.insert_event, args=({"summary": "w"},))
            worker.start()
            worker.join()

            client.insert_event({"summary": "main again"})

        assert mock_build.call_count == 2

    def test_close_closes_built_services(self):
        service = _mock_service()
        with patch("calendar_assistant.services.calendar_client.build", return_value=service):
            client = GoogleCalendarClient(CALENDAR_ID, credentials=MagicMock())
            client.insert_event({"summary": "x"})

        client.close()

        service.close.assert_called_once()
