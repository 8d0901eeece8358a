"""
calnotes Note Template

Builds the machine-owned part of a meeting note from a MeetingEvent.
"""

import re
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import List, Optional

from calnotes.calendar.models import AllDaySpan, Attendee, MeetingEvent, TimedSpan
from calnotes.notes.parser import DELIMITER, FRONTMATTER_MARKER, NoteField

DATETIME_FORMAT = "%Y-%m-%d %H:%M"
NOTE_TAG = "meeting"


@dataclass
class NoteTemplate:
    """Freshly generated frontmatter, structured fields and heading."""
    frontmatter: List[NoteField] = field(default_factory=list)
    fields: List[NoteField] = field(default_factory=list)
    title: str = ""

    def frontmatter_lines(self) -> List[str]:
        lines: List[str] = []
        for item in self.frontmatter:
            lines.extend(item.render())
        return lines

    def field_lines(self) -> List[str]:
        lines: List[str] = []
        for item in self.fields:
            lines.extend(item.render())
        return lines

    def render(self) -> str:
        header = "\n".join([DELIMITER] + self.frontmatter_lines() + [DELIMITER])
        parts = [header]
        parts.extend("\n".join(item.render()) for item in self.fields)
        parts.append(f"# {self.title}")
        return "\n\n".join(parts)


def title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def format_attendee(attendee: Attendee) -> str:
    """``[[Display Name]] address``; the name falls back to the address local part."""
    name = attendee.display_name.strip()
    if not name:
        parts = re.split(r"[._-]", attendee.address.split("@")[0])
        first = parts[0]
        last = parts[1] if len(parts) > 1 else ""
        name = f"{first} {last}"
    return f"[[{title_case(name)}]] {attendee.address}"


def list_attendees(meeting: MeetingEvent) -> List[str]:
    """Every non-self invitee, plus the organizer unless it is self."""
    people = [a for a in meeting.invitees if not a.is_self]
    organizer = meeting.organizer
    if organizer is not None and not organizer.is_self:
        if all(p.address != organizer.address for p in people):
            people.append(organizer)
    return [format_attendee(p) for p in people]


def format_when(meeting: MeetingEvent, tz: tzinfo, end: bool = False) -> str:
    span = meeting.span
    if isinstance(span, TimedSpan):
        moment = span.end if end else span.start
        return moment.astimezone(tz).strftime(DATETIME_FORMAT)
    if isinstance(span, AllDaySpan):
        return (span.end if end else span.start).isoformat()
    return ""


def external_domains(meeting: MeetingEvent) -> List[str]:
    domains: List[str] = []
    for attendee in meeting.attendees:
        if attendee.is_external and attendee.root_domain not in domains:
            domains.append(attendee.root_domain)
    return domains


def build_template(
    meeting: MeetingEvent,
    tz: tzinfo,
    company_names: Optional[List[str]] = None
) -> NoteTemplate:
    """Render the template for a meeting.

    Args:
        meeting: The meeting snapshot
        tz: Timezone used for start/end dates
        company_names: Organization names for the ``account`` field

    Returns:
        NoteTemplate ready to render or merge
    """
    frontmatter = [
        NoteField("start_date", f'"{format_when(meeting, tz)}"', marker=FRONTMATTER_MARKER),
        NoteField("end_date", f'"{format_when(meeting, tz, end=True)}"', marker=FRONTMATTER_MARKER),
        NoteField("tags", "", separator="", continuation=[f"  - {NOTE_TAG}"], marker=FRONTMATTER_MARKER),
    ]

    accounts = ",".join(f"[[{name}]]" for name in company_names or [])
    fields = [
        NoteField("account", accounts),
        NoteField("oppy", "", manual=True),
        NoteField("Attendees", "", continuation=[f"- {line}" for line in list_attendees(meeting)]),
    ]

    return NoteTemplate(frontmatter=frontmatter, fields=fields, title=meeting.summary)
