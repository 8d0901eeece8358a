"""
calnotes Note Merger

Updates the machine-owned regions of an existing note (frontmatter and
``key::`` fields) from a fresh template while leaving everything from the
first heading onward untouched.
"""

from datetime import tzinfo
from typing import Dict, List, Optional

from calnotes.calendar.models import MeetingEvent
from calnotes.domains.accounts import AccountDirectory
from calnotes.notes.parser import (
    DELIMITER,
    NoteField,
    parse_frontmatter,
    parse_structured,
    split_sections,
)
from calnotes.notes.template import NoteTemplate, build_template, external_domains

CANCELLED_KEY = "cancelled"
CANCELLED_LINE = f"{CANCELLED_KEY}: true"


def _replace_frontmatter_field(existing: NoteField, new: NoteField) -> NoteField:
    """New value and continuation, existing key and colon spacing."""
    if not new.value:
        separator = ""
    elif existing.value:
        separator = existing.separator
    else:
        separator = new.separator
    return NoteField(
        key=existing.key,
        value=new.value,
        separator=separator,
        continuation=list(new.continuation),
        marker=existing.marker,
    )


def merge_frontmatter(lines: List[str], template: List[NoteField]) -> List[str]:
    """Merge template fields into existing frontmatter lines.

    Known keys get the template value, custom fields stay where they are,
    keys only the template knows are appended.
    """
    wanted: Dict[str, NoteField] = {f.key: f for f in template}
    present = set()
    merged: List[str] = []

    for block in parse_frontmatter(lines):
        if isinstance(block, NoteField) and block.key in wanted:
            present.add(block.key)
            merged.extend(_replace_frontmatter_field(block, wanted[block.key]).render())
        elif isinstance(block, NoteField):
            merged.extend(block.lines())
        else:
            merged.append(block)

    for item in template:
        if item.key not in present:
            merged.extend(item.render())
    return merged


def merge_structured(lines: List[str], template: List[NoteField]) -> List[str]:
    """Merge template fields into the structured region.

    A matched field's whole block (continuation lines included) is replaced
    by the template block, except manual fields that already hold a value.
    Missing fields are appended before any trailing blank lines.
    """
    wanted: Dict[str, NoteField] = {f.key: f for f in template}
    present = set()
    merged: List[str] = []

    for block in parse_structured(lines):
        if isinstance(block, NoteField) and block.key in wanted:
            present.add(block.key)
            new = wanted[block.key]
            if new.manual and block.has_value:
                merged.extend(block.lines())
            else:
                merged.extend(new.render())
        elif isinstance(block, NoteField):
            merged.extend(block.lines())
        else:
            merged.append(block)

    missing: List[str] = []
    for item in template:
        if item.key not in present:
            missing.extend(item.render())
    if not missing:
        return merged

    trailing = len(merged)
    while trailing > 0 and not merged[trailing - 1].strip():
        trailing -= 1
    return merged[:trailing] + missing + merged[trailing:]


def merge_note(existing_text: str, template: NoteTemplate) -> str:
    """Produce the text to persist for an existing note.

    Without frontmatter, fresh frontmatter is synthesized and prepended and
    any lines before the first heading are merged as the structured region.
    """
    sections = split_sections(existing_text)

    if sections.has_frontmatter:
        frontmatter = merge_frontmatter(sections.frontmatter, template.frontmatter)
    else:
        frontmatter = template.frontmatter_lines()
    structured = merge_structured(sections.structured, template.fields)

    lines = [DELIMITER] + frontmatter + [DELIMITER] + structured + sections.user_content
    return "\n".join(lines)


def mark_cancelled(text: str) -> str:
    """Add ``cancelled: true`` to the frontmatter unless a cancelled key exists.

    Never touches anything else; a note without frontmatter gets a minimal
    frontmatter block prepended.
    """
    sections = split_sections(text)

    if not sections.has_frontmatter:
        return "\n".join([DELIMITER, CANCELLED_LINE, DELIMITER]) + "\n" + text

    if any(line.strip().startswith(f"{CANCELLED_KEY}:") for line in sections.frontmatter):
        return text

    lines = text.split("\n")
    closing = 1 + len(sections.frontmatter)
    return "\n".join(lines[:closing] + [CANCELLED_LINE] + lines[closing:])


class NoteMerger:
    """Materializes and merges meeting notes."""

    def __init__(self, tz: tzinfo, accounts: Optional[AccountDirectory] = None):
        self.tz = tz
        self.accounts = accounts

    def template(self, meeting: MeetingEvent) -> NoteTemplate:
        names: List[str] = []
        if self.accounts is not None:
            names = self.accounts.company_names(external_domains(meeting))
        return build_template(meeting, self.tz, names)

    def materialize(self, meeting: MeetingEvent) -> str:
        return self.template(meeting).render()

    def merge(self, existing_text: str, meeting: MeetingEvent) -> str:
        return merge_note(existing_text, self.template(meeting))
