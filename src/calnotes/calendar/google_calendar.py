"""
calnotes Google Calendar Adapter

EventSource and BlockerStore implementations over the Calendar v3 API.

Usage:
    from googleapiclient.discovery import build
    from calnotes.calendar.google_calendar import GoogleCalendarClient

    service = build("calendar", "v3", credentials=creds)
    client = GoogleCalendarClient(service)
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from googleapiclient.errors import HttpError

from calnotes.calendar.models import EventPage
from calnotes.calendar.ports import BlockerStore, CalendarEntry, EventSource
from calnotes.exceptions import SyncError, SyncTokenInvalidated

logger = logging.getLogger(__name__)

SERVICE_NAME = "Google Calendar"
INVALID_TOKEN_MESSAGE = "Sync token is no longer valid"
GONE = 410
NOT_FOUND = 404


def _is_token_invalidation(error: HttpError) -> bool:
    status = getattr(error.resp, "status", None)
    return status == GONE or INVALID_TOKEN_MESSAGE in str(error)


def _rfc3339(value: datetime) -> str:
    return value.isoformat()


class GoogleCalendarEntry(CalendarEntry):
    """One event resource, patched in place."""

    def __init__(self, client: "GoogleCalendarClient", resource: Dict[str, Any]):
        self.client = client
        self.resource = resource

    @property
    def id(self) -> str:
        return self.resource.get("id", "")

    @property
    def title(self) -> str:
        return self.resource.get("summary") or ""

    @property
    def description(self) -> str:
        return self.resource.get("description") or ""

    def get_color(self) -> str:
        return self.resource.get("colorId") or ""

    def set_color(self, color_id: str):
        self.resource = self.client._patch(self.id, {"colorId": color_id})

    def delete(self):
        try:
            self.client.service.events().delete(
                calendarId=self.client.calendar_id, eventId=self.id
            ).execute()
        except HttpError as e:
            raise SyncError(f"Cannot delete event {self.id}", service=SERVICE_NAME, details=str(e))


class GoogleCalendarClient(EventSource, BlockerStore):
    """Calendar API wrapper used both as event source and blocker store."""

    def __init__(self, service, calendar_id: str = "primary"):
        self.service = service
        self.calendar_id = calendar_id

    def list_events(
        self,
        sync_token: Optional[str] = None,
        page_token: Optional[str] = None,
        time_min: Optional[datetime] = None,
        time_max: Optional[datetime] = None,
        max_results: int = 10,
    ) -> EventPage:
        params: Dict[str, Any] = {
            "calendarId": self.calendar_id,
            "maxResults": max_results,
            "eventTypes": "default",
            "singleEvents": False,
            "showDeleted": False,
        }
        if sync_token:
            params["syncToken"] = sync_token
        else:
            if time_min is not None:
                params["timeMin"] = _rfc3339(time_min)
            if time_max is not None:
                params["timeMax"] = _rfc3339(time_max)
        if page_token:
            params["pageToken"] = page_token

        try:
            response = self.service.events().list(**params).execute()
        except HttpError as e:
            if sync_token and _is_token_invalidation(e):
                raise SyncTokenInvalidated()
            raise SyncError("Event listing failed", service=SERVICE_NAME, details=str(e))

        return EventPage.from_api(response)

    def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.service.events().get(calendarId=self.calendar_id, eventId=event_id).execute()
        except HttpError as e:
            logger.debug("Event %s unavailable: %s", event_id, e)
            return None

    def _patch(self, event_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return self.service.events().patch(
                calendarId=self.calendar_id, eventId=event_id, body=body
            ).execute()
        except HttpError as e:
            raise SyncError(f"Cannot update event {event_id}", service=SERVICE_NAME, details=str(e))

    def update_extended_fields(self, event_id: str, fields: Dict[str, str]):
        self._patch(event_id, {"extendedProperties": {"private": dict(fields)}})

    def create_event(
        self,
        title: str,
        start: datetime,
        end: datetime,
        description: str = ""
    ) -> CalendarEntry:
        body = {
            "summary": title,
            "description": description,
            "start": {"dateTime": _rfc3339(start)},
            "end": {"dateTime": _rfc3339(end)},
        }
        try:
            resource = self.service.events().insert(calendarId=self.calendar_id, body=body).execute()
        except HttpError as e:
            raise SyncError("Cannot create event", service=SERVICE_NAME, details=str(e))
        return GoogleCalendarEntry(self, resource)

    def get_event_by_id(self, event_id: str) -> Optional[CalendarEntry]:
        try:
            resource = self.service.events().get(
                calendarId=self.calendar_id, eventId=event_id
            ).execute()
        except HttpError as e:
            if getattr(e.resp, "status", None) in (NOT_FOUND, GONE):
                return None
            raise SyncError(f"Cannot look up event {event_id}", service=SERVICE_NAME, details=str(e))
        if resource.get("status") == "cancelled":
            return None
        return GoogleCalendarEntry(self, resource)

    def find_events(self, start: datetime, end: datetime, title_filter: str) -> List[CalendarEntry]:
        entries: List[CalendarEntry] = []
        page_token = None
        while True:
            try:
                response = self.service.events().list(
                    calendarId=self.calendar_id,
                    timeMin=_rfc3339(start),
                    timeMax=_rfc3339(end),
                    q=title_filter,
                    singleEvents=True,
                    pageToken=page_token,
                ).execute()
            except HttpError as e:
                raise SyncError("Blocker search failed", service=SERVICE_NAME, details=str(e))
            for resource in response.get("items", []):
                if (resource.get("summary") or "").strip() == title_filter:
                    entries.append(GoogleCalendarEntry(self, resource))
            page_token = response.get("nextPageToken")
            if not page_token:
                break
        return entries
