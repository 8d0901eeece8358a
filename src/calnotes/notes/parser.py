"""
calnotes Note Scanner

Line scanner that splits a note into its three regions and parses the two
machine-owned regions into field blocks.

A note looks like::

    ---
    start_date: "2024-01-15 14:00"      <- frontmatter (key: value)
    tags:
      - meeting
    ---

    account:: [[Acme]]                  <- structured fields (key:: value)
    Attendees::
    - [[Jane Doe]] jane@acme.com

    # Meeting title                     <- user content, never modified
    ...

The merge code only ever works on the structures returned here.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

DELIMITER = "---"
FRONTMATTER_MARKER = ":"
STRUCTURED_MARKER = "::"

HEADING_RE = re.compile(r"^#{1,6}(\s|$)")
FRONTMATTER_FIELD_RE = re.compile(r"^([A-Za-z0-9_][\w\-.]*):(?!:)([ \t]*)(.*)$")
STRUCTURED_FIELD_RE = re.compile(r"^([^\s:#][^:]*?)::([ \t]*)(.*)$")


def is_heading(line: str) -> bool:
    return bool(HEADING_RE.match(line.strip()))


def is_delimiter(line: str) -> bool:
    return line.strip() == DELIMITER


@dataclass
class NoteField:
    """A ``key: value`` or ``key:: value`` line plus its continuation lines.

    ``source`` holds the lines exactly as read so untouched fields can be
    written back byte-for-byte. ``manual`` marks template fields a human
    owns once they hold a value.
    """
    key: str
    value: str = ""
    separator: str = " "
    continuation: List[str] = field(default_factory=list)
    marker: str = STRUCTURED_MARKER
    manual: bool = False
    source: Optional[List[str]] = None

    @property
    def has_value(self) -> bool:
        return bool(self.value.strip()) or any(line.strip() for line in self.continuation)

    def render(self) -> List[str]:
        return [f"{self.key}{self.marker}{self.separator}{self.value}"] + list(self.continuation)

    def lines(self) -> List[str]:
        if self.source is not None:
            return list(self.source)
        return self.render()


Block = Union[NoteField, str]


@dataclass
class NoteSections:
    """The three regions of a note, as lists of lines.

    ``frontmatter`` is None when the document has no delimiter pair.
    """
    frontmatter: Optional[List[str]]
    structured: List[str]
    user_content: List[str]

    @property
    def has_frontmatter(self) -> bool:
        return self.frontmatter is not None


def _first_heading(lines: List[str]) -> Optional[int]:
    for index, line in enumerate(lines):
        if is_heading(line):
            return index
    return None


def split_sections(text: str) -> NoteSections:
    """Split raw note text into frontmatter, structured fields and user content.

    Without a frontmatter block, lines before the first heading form the
    structured region; a document without any heading is user content in
    its entirety.
    """
    lines = text.split("\n")

    if lines and is_delimiter(lines[0]):
        for index in range(1, len(lines)):
            if is_delimiter(lines[index]):
                rest = lines[index + 1:]
                boundary = _first_heading(rest)
                if boundary is None:
                    return NoteSections(lines[1:index], rest, [])
                return NoteSections(lines[1:index], rest[:boundary], rest[boundary:])

    boundary = _first_heading(lines)
    if boundary is None:
        return NoteSections(None, [], lines)
    return NoteSections(None, lines[:boundary], lines[boundary:])


def parse_frontmatter(lines: List[str]) -> List[Block]:
    """Parse frontmatter lines into fields and raw lines.

    Only single-colon lines starting at column 0 open a field; indented or
    ``- `` list lines directly below belong to it.
    """
    blocks: List[Block] = []
    current: Optional[NoteField] = None

    for line in lines:
        match = FRONTMATTER_FIELD_RE.match(line)
        if match:
            current = NoteField(
                key=match.group(1),
                separator=match.group(2),
                value=match.group(3),
                marker=FRONTMATTER_MARKER,
                source=[line],
            )
            blocks.append(current)
            continue
        if current is not None and line.strip() and (line[:1].isspace() or line.startswith("- ")):
            current.continuation.append(line)
            current.source.append(line)
            continue
        current = None
        blocks.append(line)

    return blocks


def parse_structured(lines: List[str]) -> List[Block]:
    """Parse the structured region into ``key::`` fields and raw lines.

    Non-empty, non-heading, non-field lines directly after a field are its
    continuation (multi-entry fields such as ``Attendees::``). A blank line
    ends the block.
    """
    blocks: List[Block] = []
    current: Optional[NoteField] = None

    for line in lines:
        match = STRUCTURED_FIELD_RE.match(line)
        if match:
            current = NoteField(
                key=match.group(1),
                separator=match.group(2),
                value=match.group(3),
                marker=STRUCTURED_MARKER,
                source=[line],
            )
            blocks.append(current)
            continue
        if current is not None and line.strip() and not is_heading(line):
            current.continuation.append(line)
            current.source.append(line)
            continue
        current = None
        blocks.append(line)

    return blocks
