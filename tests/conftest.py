"""Shared fixtures and in-memory fakes for calnotes tests."""

from datetime import datetime
from typing import Dict, Iterator, List, Optional
from zoneinfo import ZoneInfo

import pytest

from calnotes.calendar.models import EventPage
from calnotes.calendar.ports import BlockerStore, CalendarEntry, EventSource
from calnotes.domains.accounts import AccountCache, AccountDirectory, AccountRecord
from calnotes.domains.resolver import DomainResolver
from calnotes.domains.tld import TldTable
from calnotes.notes.merger import NoteMerger
from calnotes.notes.stores import Document, DocumentStore

SELF_ADDRESS = "me@mycompany.com"

SUFFIX_RULES = """// This Source Code Form is subject to the terms of the Mozilla Public
// License, v. 2.0.
local
// ===BEGIN ICANN DOMAINS===
com
de
br
com.br
// South Africa
*.za
// ===END ICANN DOMAINS===
"""


class FakeEntry(CalendarEntry):
    def __init__(self, calendar, event_id, title="", description="", start=None, end=None, color=""):
        self.calendar = calendar
        self.id = event_id
        self.title = title
        self.description = description
        self.start = start
        self.end = end
        self.color = color
        self.deleted = False

    def get_color(self) -> str:
        return self.color

    def set_color(self, color_id: str):
        self.color = color_id

    def delete(self):
        self.deleted = True


class FakeCalendar(EventSource, BlockerStore):
    """Scripted event source plus in-memory blocker store.

    ``pages`` is consumed in order; an Exception in the list is raised
    instead of returned. Once exhausted, ``default_page`` is returned.
    """

    def __init__(self, pages=None, events=None):
        self.pages: List = list(pages or [])
        self.default_page: Optional[EventPage] = None
        self.calls: List[Dict] = []
        self.events: Dict[str, Dict] = dict(events or {})
        self.entries: Dict[str, FakeEntry] = {}
        self.extended: Dict[str, Dict[str, str]] = {}

    def list_events(self, sync_token=None, page_token=None, time_min=None, time_max=None, max_results=10):
        self.calls.append({
            "sync_token": sync_token,
            "page_token": page_token,
            "time_min": time_min,
            "time_max": time_max,
            "max_results": max_results,
        })
        page = self.pages.pop(0) if self.pages else (self.default_page or EventPage())
        if isinstance(page, Exception):
            raise page
        return page

    def get_event(self, event_id):
        return self.events.get(event_id)

    def update_extended_fields(self, event_id, fields):
        self.extended.setdefault(event_id, {}).update(fields)

    def add_entry(self, event_id, title="", description="", start=None, end=None, color="") -> FakeEntry:
        entry = FakeEntry(self, event_id, title, description, start, end, color)
        self.entries[event_id] = entry
        return entry

    def create_event(self, title, start, end, description=""):
        return self.add_entry(f"blocker-{len(self.entries) + 1}", title, description, start, end)

    def get_event_by_id(self, event_id):
        entry = self.entries.get(event_id)
        if entry is None or entry.deleted:
            return None
        return entry

    def find_events(self, start, end, title_filter):
        return [
            e for e in self.entries.values()
            if not e.deleted and e.title == title_filter
            and e.start is not None and e.start < end and e.end > start
        ]


class FakeDocument(Document):
    def __init__(self, doc_id, name, content):
        self.id = doc_id
        self.name = name
        self.content = content
        self.trashed = False

    def read(self) -> str:
        return self.content

    def write(self, name: str, content: str):
        self.name = name
        self.content = content

    def trash(self):
        self.trashed = True


class FakeDocumentStore(DocumentStore):
    def __init__(self):
        self.documents: Dict[str, FakeDocument] = {}

    def add(self, name: str, content: str) -> FakeDocument:
        document = FakeDocument(f"doc-{len(self.documents) + 1}", name, content)
        self.documents[document.id] = document
        return document

    def create_document(self, name: str, content: str) -> Document:
        return self.add(name, content)

    def get_document_by_id(self, document_id: str) -> Optional[Document]:
        document = self.documents.get(document_id)
        if document is None or document.trashed:
            return None
        return document

    def find_documents_by_name(self, name: str) -> Iterator[Document]:
        for document in list(self.documents.values()):
            if document.name == name and not document.trashed:
                yield document


def make_event(
    event_id: str = "evt1",
    summary: str = "Customer Call",
    attendees=(SELF_ADDRESS, "jane.doe@acme.com"),
    start: str = "2024-01-15T14:00:00+01:00",
    end: str = "2024-01-15T15:00:00+01:00",
    status: str = "confirmed",
    all_day: bool = False,
    organizer: Optional[str] = SELF_ADDRESS,
    private: Optional[Dict[str, str]] = None,
    color_id: Optional[str] = None,
) -> Dict:
    """Calendar API style event resource."""
    event = {
        "id": event_id,
        "summary": summary,
        "status": status,
        "attendees": [
            {"email": a, "self": a == SELF_ADDRESS} for a in attendees
        ],
    }
    if all_day:
        event["start"] = {"date": start[:10]}
        event["end"] = {"date": end[:10]}
    else:
        event["start"] = {"dateTime": start}
        event["end"] = {"dateTime": end}
    if organizer:
        event["organizer"] = {"email": organizer, "self": organizer == SELF_ADDRESS}
        event["creator"] = {"email": organizer, "self": organizer == SELF_ADDRESS}
    if private:
        event["extendedProperties"] = {"private": dict(private)}
    if color_id:
        event["colorId"] = color_id
    return event


@pytest.fixture
def tz():
    return ZoneInfo("CET")


@pytest.fixture
def tld_table():
    return TldTable.parse(SUFFIX_RULES)


@pytest.fixture
def resolver(tld_table):
    return DomainResolver(blacklist_domains=["mycompany.com"], table=tld_table)


@pytest.fixture
def accounts():
    cache = AccountCache(None)
    cache.set(AccountRecord(domain="acme.com", name="Acme Corp", label="Accounts/Acme Corp"))
    return AccountDirectory(cache)


@pytest.fixture
def merger(tz, accounts):
    return NoteMerger(tz, accounts)


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def documents():
    return FakeDocumentStore()


@pytest.fixture
def meeting_start():
    return datetime.fromisoformat("2024-01-15T14:00:00+01:00")
