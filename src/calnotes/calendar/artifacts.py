"""
calnotes Artifact Manager

Finds the blocker and note linked to a meeting and carries out the actions
chosen by the ReconciliationEngine. In debug mode every mutation is logged
instead of performed.
"""

import logging
from collections import Counter
from datetime import timedelta, tzinfo
from typing import FrozenSet, List, Optional

from calnotes.calendar.models import (
    BLOCKER_ID_FIELD,
    BLOCKER_TITLE,
    NOTE_ID_FIELD,
    MeetingEvent,
    TimedSpan,
)
from calnotes.calendar.ports import BlockerStore, CalendarEntry, EventSource
from calnotes.calendar.reconcile import Action, ActionKind, ColorTag
from calnotes.notes.merger import NoteMerger, mark_cancelled
from calnotes.notes.stores import Document, DocumentStore

logger = logging.getLogger(__name__)

BLOCKER_DURATION = timedelta(minutes=10)

# Calendar palette ids: PALE_RED and PALE_GREEN
COLOR_IDS = {
    ColorTag.EXTERNAL: "4",
    ColorTag.ONE_TO_ONE: "2",
}


class ArtifactManager:
    """Blocker and note side effects for one meeting at a time.

    ``apply`` returns a Counter keyed by SyncReport field names so the
    coordinator can keep running totals.
    """

    def __init__(
        self,
        blockers: BlockerStore,
        source: EventSource,
        documents: Optional[DocumentStore],
        merger: NoteMerger,
        tz: tzinfo,
        debug: bool = False,
        keep_cancelled_notes: bool = False,
    ):
        self.blockers = blockers
        self.source = source
        self.documents = documents
        self.merger = merger
        self.tz = tz
        self.debug = debug
        self.keep_cancelled_notes = keep_cancelled_notes

    # ----- lookup -----

    def find_blockers(self, meeting: MeetingEvent) -> List[CalendarEntry]:
        """Blockers linked by id, else blockers in the slot after the meeting.

        Only external meetings own blockers, so the slot is searched for them
        alone, and only blockers described with this meeting's title match.
        """
        if meeting.blocker_id:
            entry = self.blockers.get_event_by_id(meeting.blocker_id)
            if entry is not None:
                return [entry]
            logger.debug("Blocker %s of %s is gone, searching by slot", meeting.blocker_id, meeting.title)

        if not isinstance(meeting.span, TimedSpan) or not meeting.has_external_attendees:
            return []
        start = meeting.span.end
        entries = self.blockers.find_events(start, start + BLOCKER_DURATION, BLOCKER_TITLE)
        if meeting.title:
            entries = [e for e in entries if e.description == meeting.title]
        return entries

    def find_note(self, meeting: MeetingEvent) -> Optional[Document]:
        """Note linked by id, else the note with the expected file name."""
        if self.documents is None:
            return None

        if meeting.note_id:
            document = self.documents.get_document_by_id(meeting.note_id)
            if document is not None:
                return document
            logger.debug("Note %s of %s is gone, searching by name", meeting.note_id, meeting.title)

        name = meeting.file_name(self.tz)
        if not name:
            return None
        return next(iter(self.documents.find_documents_by_name(name)), None)

    # ----- actions -----

    def apply(
        self,
        meeting: MeetingEvent,
        actions: FrozenSet[Action],
        blockers: Optional[List[CalendarEntry]] = None,
        note: Optional[Document] = None,
    ) -> Counter:
        counts: Counter = Counter()
        kinds = {action.kind for action in actions}

        for action in actions:
            if action.kind is ActionKind.COLORIZE:
                self.colorize(meeting, action.tag)

        if ActionKind.CREATE_BLOCKER in kinds:
            meeting = self.create_blocker(meeting)
            counts["blockers_created"] += 1
        if ActionKind.SKIP_BLOCKER in kinds:
            logger.info("Blocker for %s already exists", meeting.title)
        if ActionKind.REMOVE_BLOCKER in kinds:
            counts["blockers_removed"] += self.remove_blockers(meeting, blockers or [])

        if ActionKind.CREATE_NOTE in kinds:
            if self.create_note(meeting):
                counts["notes_created"] += 1
        if ActionKind.UPDATE_NOTE in kinds:
            if self.update_note(meeting, note):
                counts["notes_updated"] += 1
        if ActionKind.REMOVE_NOTE in kinds:
            if self.remove_note(meeting, note):
                counts["notes_removed"] += 1

        if ActionKind.SKIP_ALL_DAY in kinds:
            logger.info("Skipping all-day event %s", meeting.title)
            counts["skipped_all_day"] += 1
        if ActionKind.IGNORE in kinds:
            logger.debug("Ignoring %s", meeting.title or meeting.id)
            counts["ignored"] += 1

        return counts

    def _link(self, meeting: MeetingEvent, key: str, value: str) -> MeetingEvent:
        linked = meeting.with_extended_field(key, value)
        self.source.update_extended_fields(meeting.id, dict(linked.extended_fields))
        return linked

    def colorize(self, meeting: MeetingEvent, tag: Optional[ColorTag]):
        color_id = COLOR_IDS.get(tag) if tag is not None else None
        if color_id is None:
            return
        entry = self.blockers.get_event_by_id(meeting.id)
        if entry is None:
            return
        current = entry.get_color()
        logger.debug("Colorize %s %s", meeting.title, current)
        if current:
            return
        if self.debug:
            logger.info("Colorize %s as %s", meeting.title, tag.value)
            return
        entry.set_color(color_id)

    def create_blocker(self, meeting: MeetingEvent) -> MeetingEvent:
        if self.debug:
            logger.info("Create blocker for event %s", meeting.title)
            return meeting
        start = meeting.span.end
        entry = self.blockers.create_event(
            BLOCKER_TITLE, start, start + BLOCKER_DURATION, description=meeting.title
        )
        logger.debug("Created blocker %s for %s", entry.id, meeting.title)
        return self._link(meeting, BLOCKER_ID_FIELD, entry.id)

    def remove_blockers(self, meeting: MeetingEvent, blockers: List[CalendarEntry]) -> int:
        removed = 0
        for entry in blockers:
            title = meeting.title or entry.description
            if self.debug:
                logger.info("Remove blocker for event %s", title)
            else:
                entry.delete()
                logger.info("Removed blocker for event %s", title)
            removed += 1
        return removed

    def create_note(self, meeting: MeetingEvent) -> bool:
        name = meeting.file_name(self.tz)
        if self.documents is None or not name:
            return False

        content = self.merger.materialize(meeting)
        if self.debug:
            logger.info("Create note %s\n\n%s", name, content)
            return True

        existing = next(iter(self.documents.find_documents_by_name(name)), None)
        if existing is not None:
            logger.info("Note %s already exists, linking it", name)
            self._link(meeting, NOTE_ID_FIELD, existing.id)
            return False

        document = self.documents.create_document(name, content)
        logger.info("Create note %s", name)
        self._link(meeting, NOTE_ID_FIELD, document.id)
        return True

    def update_note(self, meeting: MeetingEvent, note: Optional[Document]) -> bool:
        name = meeting.file_name(self.tz) or (note.name if note else "")
        if note is None:
            logger.warning("Cannot update note %s - file not found", name)
            return False
        if self.debug:
            logger.info("Update note %s", name)
            return True

        merged = self.merger.merge(note.read(), meeting)
        note.write(name, merged)
        logger.info("Updated note %s", name)
        if meeting.note_id != note.id:
            self._link(meeting, NOTE_ID_FIELD, note.id)
        return True

    def remove_note(self, meeting: MeetingEvent, note: Optional[Document]) -> bool:
        if note is None:
            return False
        if self.debug:
            logger.info("Delete note %s", note.name)
            return True
        if self.keep_cancelled_notes:
            note.write(note.name, mark_cancelled(note.read()))
            logger.info("Marked note %s as cancelled", note.name)
        else:
            note.trash()
            logger.info("Deleted note %s", note.name)
        return True
