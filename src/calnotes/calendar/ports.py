"""
calnotes Calendar Ports

Abstract interfaces for the event source and the blocker store. The Google
Calendar adapter implements both; tests use in-memory fakes.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from calnotes.calendar.models import EventPage


class CalendarEntry(ABC):
    """Handle on one calendar event that can be recolored or deleted."""

    id: str
    title: str
    description: str

    @abstractmethod
    def get_color(self) -> str:
        """Color id of the event, empty string for the calendar default."""

    @abstractmethod
    def set_color(self, color_id: str):
        pass

    @abstractmethod
    def delete(self):
        pass


class BlockerStore(ABC):
    """Placeholder event storage."""

    @abstractmethod
    def create_event(
        self,
        title: str,
        start: datetime,
        end: datetime,
        description: str = ""
    ) -> CalendarEntry:
        pass

    @abstractmethod
    def get_event_by_id(self, event_id: str) -> Optional[CalendarEntry]:
        """Return the event, or None if it does not exist (or was deleted)."""

    @abstractmethod
    def find_events(self, start: datetime, end: datetime, title_filter: str) -> List[CalendarEntry]:
        pass


class EventSource(ABC):
    """Paginated, token-based event listing."""

    @abstractmethod
    def list_events(
        self,
        sync_token: Optional[str] = None,
        page_token: Optional[str] = None,
        time_min: Optional[datetime] = None,
        time_max: Optional[datetime] = None,
        max_results: int = 10,
    ) -> EventPage:
        """Fetch one page.

        Raises:
            SyncTokenInvalidated: If the server rejected ``sync_token``.
            SyncError: For any other failure.
        """

    @abstractmethod
    def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        """Full event resource by id, None if unavailable."""

    @abstractmethod
    def update_extended_fields(self, event_id: str, fields: Dict[str, str]):
        """Merge ``fields`` into the event's private extended properties."""
