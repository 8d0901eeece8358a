"""
calnotes Sync Coordinator

Drives paginated, token-based retrieval of changed events and hands each
meeting to the reconciliation engine.

One call to ``sync`` is one time-boxed run: at most ``max_pages`` pages are
processed and the cursor is persisted after every page, so the next run
resumes where this one stopped.
"""

import logging
from dataclasses import dataclass, fields
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, Optional

from calnotes.calendar.artifacts import ArtifactManager
from calnotes.calendar.models import EventPage, MeetingEvent, SyncCursor
from calnotes.calendar.ports import EventSource
from calnotes.calendar.reconcile import ReconciliationEngine
from calnotes.domains.resolver import DomainResolver
from calnotes.exceptions import SyncError, SyncTokenInvalidated
from calnotes.state import PAGE_TOKEN_KEY, SYNC_TOKEN_KEY, StateStore

logger = logging.getLogger(__name__)

PAGE_SIZE = 10
MAX_PAGES = 5
WINDOW_DAYS = 5


class SyncMode(str, Enum):
    INCREMENTAL = "incremental"
    FULL_RESYNC = "full_resync"


@dataclass
class SyncReport:
    """Running totals of one sync run."""
    mode: SyncMode = SyncMode.INCREMENTAL
    resynced: bool = False
    pages: int = 0
    events_processed: int = 0
    blockers_created: int = 0
    blockers_removed: int = 0
    notes_created: int = 0
    notes_updated: int = 0
    notes_removed: int = 0
    skipped_all_day: int = 0
    ignored: int = 0

    def add(self, counts: Dict[str, int]):
        for key, value in counts.items():
            setattr(self, key, getattr(self, key) + value)

    def counters(self) -> Dict[str, int]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in ("mode", "resynced")
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncCoordinator:
    """Incremental calendar sync with a single full-resync fallback.

    Modes:
        INCREMENTAL: a stored sync token exists; only the delta is fetched.
        FULL_RESYNC: no token (or forced); the next ``window_days`` days are
            listed from now.

    The only transition is INCREMENTAL -> FULL_RESYNC, taken when the server
    rejects the sync token. It happens at most once per ``sync`` call.
    """

    def __init__(
        self,
        source: EventSource,
        state: StateStore,
        resolver: DomainResolver,
        engine: ReconciliationEngine,
        artifacts: ArtifactManager,
        debug: bool = False,
        page_size: int = PAGE_SIZE,
        max_pages: int = MAX_PAGES,
        window_days: int = WINDOW_DAYS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.source = source
        self.state = state
        self.resolver = resolver
        self.engine = engine
        self.artifacts = artifacts
        self.debug = debug
        self.page_size = page_size
        self.max_pages = max_pages
        self.window_days = window_days
        self.clock = clock or _utcnow

    def sync(self, force_full_resync: bool = False) -> SyncReport:
        """Run one bounded sync.

        Args:
            force_full_resync: Discard the stored cursor and list the window

        Returns:
            SyncReport with the run's counters

        Raises:
            SyncError: For any event source failure other than a single
                sync token invalidation
        """
        cursor = SyncCursor.load(self.state)
        if cursor.sync_token and not force_full_resync:
            mode = SyncMode.INCREMENTAL
        else:
            mode = SyncMode.FULL_RESYNC
        report = SyncReport(mode=mode)

        try:
            self._run(mode, cursor, force_full_resync, report)
        except SyncTokenInvalidated as e:
            if mode is SyncMode.FULL_RESYNC:
                raise SyncError(e.message, service="Google Calendar")
            logger.debug(e.message)
            report.mode = SyncMode.FULL_RESYNC
            report.resynced = True
            self._run(SyncMode.FULL_RESYNC, SyncCursor(), True, report)

        logger.info("%d blockers created", report.blockers_created)
        logger.info("%d notes created", report.notes_created)
        return report

    def _run(self, mode: SyncMode, cursor: SyncCursor, force: bool, report: SyncReport):
        sync_token = None
        time_min = time_max = None

        if mode is SyncMode.INCREMENTAL:
            sync_token = cursor.sync_token
            page_token = cursor.page_token
            if page_token:
                logger.debug("Resuming incremental sync")
        else:
            if force:
                self._clear_cursor()
                page_token = None
                logger.debug("Performing full sync")
            else:
                page_token = cursor.page_token
                logger.debug("Resuming sync" if page_token else "Performing full sync")
            time_min = self.clock()
            time_max = time_min + timedelta(days=self.window_days)

        pages = 0
        while True:
            page = self.source.list_events(
                sync_token=sync_token,
                page_token=page_token,
                time_min=time_min,
                time_max=time_max,
                max_results=self.page_size,
            )
            pages += 1
            report.pages += 1

            self._process_page(page, report)
            self._persist(page)

            page_token = page.next_page_token
            if not page_token or pages >= self.max_pages:
                break

    def _clear_cursor(self):
        if self.debug:
            return
        self.state.delete(SYNC_TOKEN_KEY)
        self.state.delete(PAGE_TOKEN_KEY)

    def _persist(self, page: EventPage):
        if self.debug:
            return
        if page.next_page_token:
            self.state.set(PAGE_TOKEN_KEY, page.next_page_token)
        else:
            self.state.delete(PAGE_TOKEN_KEY)
        if page.next_sync_token:
            self.state.set(SYNC_TOKEN_KEY, page.next_sync_token)
            logger.debug("Sync token updated: %s", page.next_sync_token)

    def _process_page(self, page: EventPage, report: SyncReport):
        items = page.unique_items()
        if items:
            logger.info("%d events to process", len(items))
        else:
            logger.info("No events found.")

        for item in items:
            meeting = MeetingEvent.from_api(item, self.resolver)
            report.events_processed += 1
            report.add(self.process_meeting(meeting))

    def _refetch(self, meeting: MeetingEvent) -> MeetingEvent:
        """Full resource of a cancelled event; delta payloads omit most fields."""
        event = self.source.get_event(meeting.id)
        if not event:
            return meeting
        return MeetingEvent.from_api(event, self.resolver)

    def process_meeting(self, meeting: MeetingEvent) -> Dict[str, int]:
        """Reconcile one meeting and apply the resulting actions."""
        if meeting.is_cancelled and not (meeting.blocker_id or meeting.note_id):
            meeting = self._refetch(meeting)

        logger.debug("Processing meeting %s: %s", meeting.title, meeting.status.value)

        relevant = not meeting.is_placeholder and (
            meeting.is_cancelled or meeting.has_external_attendees or meeting.is_one_to_one
        )
        blockers = []
        note = None
        if relevant and self.engine.blocker:
            blockers = self.artifacts.find_blockers(meeting)
        if relevant and self.engine.meeting_to_note:
            note = self.artifacts.find_note(meeting)

        actions = self.engine.reconcile(
            meeting,
            has_existing_note=note is not None,
            has_existing_blocker=bool(blockers),
        )
        logger.debug("Actions for %s: %s", meeting.title, ", ".join(sorted(str(a) for a in actions)))

        if meeting.is_cancelled:
            logger.debug("Meeting %s was cancelled", meeting.title)

        return self.artifacts.apply(meeting, actions, blockers=blockers, note=note)
