"""
calnotes Calendar Models

Immutable snapshots of calendar events as seen by one fetch, plus the sync
cursor and page containers.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from calnotes.domains.resolver import DomainResolver
from calnotes.state import PAGE_TOKEN_KEY, SYNC_TOKEN_KEY, StateStore

BLOCKER_TITLE = "block"
BLOCKER_ID_FIELD = "blockerId"
NOTE_ID_FIELD = "noteId"

TITLE_STRIP_RE = re.compile(r"[/:|#<>\[\]]")


class EventStatus(str, Enum):
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Optional[str]) -> "EventStatus":
        try:
            return cls(value or cls.CONFIRMED.value)
        except ValueError:
            return cls.CONFIRMED


@dataclass(frozen=True)
class TimedSpan:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class AllDaySpan:
    start: date
    end: date


Span = Union[TimedSpan, AllDaySpan]


@dataclass(frozen=True)
class Attendee:
    """One participant address, classified for this run."""
    address: str
    root_domain: str
    is_external: bool
    display_name: str = ""
    is_self: bool = False


@dataclass(frozen=True)
class SyncCursor:
    """Continuation state of the incremental sync."""
    sync_token: Optional[str] = None
    page_token: Optional[str] = None

    @classmethod
    def load(cls, store: StateStore) -> "SyncCursor":
        return cls(
            sync_token=store.get(SYNC_TOKEN_KEY) or None,
            page_token=store.get(PAGE_TOKEN_KEY) or None,
        )


@dataclass
class EventPage:
    """One page of an event listing."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    next_page_token: Optional[str] = None
    next_sync_token: Optional[str] = None

    @classmethod
    def from_api(cls, response: Dict[str, Any]) -> "EventPage":
        return cls(
            items=list(response.get("items") or []),
            next_page_token=response.get("nextPageToken") or None,
            next_sync_token=response.get("nextSyncToken") or None,
        )

    def unique_items(self) -> List[Dict[str, Any]]:
        """Items deduplicated by id, first occurrence wins."""
        seen = set()
        unique = []
        for item in self.items:
            event_id = item.get("id")
            if event_id in seen:
                continue
            seen.add(event_id)
            unique.append(item)
        return unique


def format_title(summary: str) -> str:
    """Strip characters that are unsafe in file names from a meeting title."""
    return TITLE_STRIP_RE.sub("", summary).replace("&", "and", 1).strip()


def parse_datetime(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_span(event: Dict[str, Any]) -> Optional[Span]:
    """Timing variant of an event payload, None when it carries no timing."""
    start = event.get("start") or {}
    end = event.get("end") or {}
    if start.get("dateTime"):
        start_dt = parse_datetime(start["dateTime"])
        end_dt = parse_datetime(end["dateTime"]) if end.get("dateTime") else start_dt
        return TimedSpan(start=start_dt, end=end_dt)
    if start.get("date"):
        start_d = date.fromisoformat(start["date"])
        end_d = date.fromisoformat(end["date"]) if end.get("date") else start_d
        return AllDaySpan(start=start_d, end=end_d)
    return None


@dataclass(frozen=True)
class MeetingEvent:
    """A calendar event and its classified participants."""
    id: str
    summary: str
    status: EventStatus
    span: Optional[Span]
    attendees: Tuple[Attendee, ...] = ()
    invitees: Tuple[Attendee, ...] = ()
    organizer: Optional[Attendee] = None
    creator: Optional[Attendee] = None
    extended_fields: Mapping[str, str] = field(default_factory=dict)
    color_id: str = ""

    @property
    def title(self) -> str:
        return format_title(self.summary)

    @property
    def is_cancelled(self) -> bool:
        return self.status is EventStatus.CANCELLED

    @property
    def is_placeholder(self) -> bool:
        return self.title == BLOCKER_TITLE

    @property
    def is_all_day(self) -> bool:
        return isinstance(self.span, AllDaySpan)

    @property
    def is_timed(self) -> bool:
        return isinstance(self.span, TimedSpan)

    @property
    def has_external_attendees(self) -> bool:
        return any(a.is_external for a in self.attendees)

    @property
    def is_one_to_one(self) -> bool:
        return len(self.attendees) == 2

    @property
    def blocker_id(self) -> Optional[str]:
        return self.extended_fields.get(BLOCKER_ID_FIELD) or None

    @property
    def note_id(self) -> Optional[str]:
        return self.extended_fields.get(NOTE_ID_FIELD) or None

    def with_extended_field(self, key: str, value: str) -> "MeetingEvent":
        fields = dict(self.extended_fields)
        fields[key] = value
        return replace(self, extended_fields=fields)

    def start_date(self, tz: tzinfo) -> Optional[date]:
        if isinstance(self.span, TimedSpan):
            return self.span.start.astimezone(tz).date()
        if isinstance(self.span, AllDaySpan):
            return self.span.start
        return None

    def file_name(self, tz: tzinfo) -> Optional[str]:
        """Note file name: ``YYYY-MM-DD_Title_With_Underscores.md``."""
        day = self.start_date(tz)
        if day is None:
            return None
        return f"{day.isoformat()}_{self.title.replace(' ', '_')}.md"

    @classmethod
    def from_api(cls, event: Dict[str, Any], resolver: DomainResolver) -> "MeetingEvent":
        """Build a snapshot from a Calendar API event resource."""

        def person(raw: Optional[Dict[str, Any]]) -> Optional[Attendee]:
            if not raw or not raw.get("email"):
                return None
            address = raw["email"].strip()
            return Attendee(
                address=address,
                root_domain=resolver.root_domain(address),
                is_external=resolver.is_external(address),
                display_name=raw.get("displayName") or "",
                is_self=bool(raw.get("self", False)),
            )

        invitees = tuple(
            a for a in (person(raw) for raw in event.get("attendees") or []) if a is not None
        )
        organizer = person(event.get("organizer"))
        creator = person(event.get("creator"))

        attendees: List[Attendee] = []
        seen = set()
        for candidate in list(invitees) + [creator, organizer]:
            if candidate is None or candidate.address in seen:
                continue
            seen.add(candidate.address)
            attendees.append(candidate)

        private = (event.get("extendedProperties") or {}).get("private") or {}

        return cls(
            id=event.get("id", ""),
            summary=event.get("summary") or "",
            status=EventStatus.parse(event.get("status")),
            span=parse_span(event),
            attendees=tuple(attendees),
            invitees=invitees,
            organizer=organizer,
            creator=creator,
            extended_fields=dict(private),
            color_id=event.get("colorId") or "",
        )
