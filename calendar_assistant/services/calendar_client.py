"""Client for the Google Calendar API v3, built on ``googleapiclient``.

Authenticates with Application Default Credentials (a service account on
Cloud Run / Lambda, ``gcloud auth application-default login`` locally).
The target calendar must be shared with that identity.

API docs: https://developers.google.com/calendar/api/v3/reference/events

Every request is attempted exactly once.  Failures surface as
:class:`CalendarAPIError` carrying the message Google returned.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

import google.auth
import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from calendar_assistant.config import GOOGLE_CALENDAR_ID, GOOGLE_CALENDAR_SCOPES

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15


class CalendarAPIError(Exception):
    """Raised when a Google Calendar call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class GoogleCalendarClient:
    """Thin wrapper around ``events.insert`` and ``events.list``.

    ``httplib2`` connections are not thread-safe, so each worker thread
    builds its own service object.  Credentials are resolved lazily on the
    first call and shared; ``AuthorizedHttp`` refreshes them when they expire.

    Pass *service* to use a pre-built Calendar resource for every call.
    """

    def __init__(
        self,
        calendar_id: str | None = None,
        *,
        credentials: Any = None,
        service: Any = None,
    ):
        self._calendar_id = calendar_id or GOOGLE_CALENDAR_ID
        self._credentials = credentials
        self._credentials_lock = threading.Lock()
        self._shared_service = service
        self._local = threading.local()
        self._built: list[Any] = []

    @property
    def calendar_id(self) -> str:
        return self._calendar_id

    # ── Internal helpers ─────────────────────────────────────────────

    def _get_credentials(self) -> Any:
        with self._credentials_lock:
            if self._credentials is None:
                self._credentials, _ = google.auth.default(scopes=GOOGLE_CALENDAR_SCOPES)
            return self._credentials

    def _service(self) -> Any:
        if self._shared_service is not None:
            return self._shared_service

        service = getattr(self._local, "service", None)
        if service is None:
            http = google_auth_httplib2.AuthorizedHttp(
                self._get_credentials(),
                http=httplib2.Http(timeout=REQUEST_TIMEOUT_SECONDS),
            )
            service = build("calendar", "v3", http=http, cache_discovery=False)
            self._local.service = service
            with self._credentials_lock:
                self._built.append(service)
        return service

    def _execute(self, make_request: Callable[[Any], Any]) -> dict[str, Any]:
        """Build and run one API request, translating every failure mode."""
        try:
            result = make_request(self._service().events()).execute()
        except HttpError as exc:
            raise CalendarAPIError(
                f"Google Calendar error {exc.status_code}: {exc.reason}",
                status_code=exc.status_code,
            ) from exc
        except GoogleAuthError as exc:
            raise CalendarAPIError(f"Google authentication failed: {exc}") from exc
        except (httplib2.HttpLib2Error, OSError) as exc:
            raise CalendarAPIError(
                f"Google Calendar request failed ({type(exc).__name__}): {exc}"
            ) from exc
        except ValueError as exc:
            raise CalendarAPIError(f"Google Calendar returned an invalid response: {exc}") from exc

        if not isinstance(result, dict):
            raise CalendarAPIError(
                f"Google Calendar returned an invalid response: expected an object, "
                f"got {type(result).__name__}"
            )
        return result

    # ── Public API methods ───────────────────────────────────────────

    def insert_event(self, body: dict[str, Any]) -> dict[str, Any]:
        """Create an event and return the event resource Google stored."""
        return self._execute(
            lambda events: events.insert(calendarId=self._calendar_id, body=body)
        )

    def list_events(
        self,
        *,
        time_min: str,
        time_max: str,
        max_results: int,
    ) -> list[dict[str, Any]]:
        """List single (recurrence-expanded) events ordered by start time.

        Args:
            time_min: RFC 3339 lower bound on event end time.
            time_max: RFC 3339 upper bound on event start time.
            max_results: Page-size cap; only the first page is read.
        """
        data = self._execute(
            lambda events: events.list(
                calendarId=self._calendar_id,
                timeMin=time_min,
                timeMax=time_max,
                singleEvents=True,
                orderBy="startTime",
                maxResults=max_results,
            )
        )
        items = data.get("items") or []
        if not isinstance(items, list):
            raise CalendarAPIError("Google Calendar returned an invalid response: items is not a list")
        return items

    def close(self) -> None:
        services = [self._shared_service] if self._shared_service is not None else []
        with self._credentials_lock:
            services.extend(self._built)
            self._built.clear()
        for service in services:
            service.close()
