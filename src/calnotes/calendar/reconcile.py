"""
calnotes Reconciliation

Maps one meeting's current state, plus the existence of its artifacts, to
the side effects a sync must perform. Pure: no I/O happens here.

Classification precedence (first match wins):
1. Placeholder title          -> Ignore
2. Cancelled                  -> Remove* for artifacts that exist
3. External, all-day          -> SkipAllDay
4. External, timed            -> Create/Skip blocker, Create/Update note
   (external without any timing -> Ignore)
5. Internal one-to-one        -> Create/Update note
6. Anything else              -> Ignore

Colorize is emitted alongside for every non-cancelled meeting that has a
color tag.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Set

from calnotes.calendar.models import MeetingEvent
from calnotes.config import CalnotesSettings


class ActionKind(str, Enum):
    CREATE_BLOCKER = "create_blocker"
    SKIP_BLOCKER = "skip_blocker"
    REMOVE_BLOCKER = "remove_blocker"
    CREATE_NOTE = "create_note"
    UPDATE_NOTE = "update_note"
    REMOVE_NOTE = "remove_note"
    COLORIZE = "colorize"
    SKIP_ALL_DAY = "skip_all_day"
    IGNORE = "ignore"


class ColorTag(str, Enum):
    EXTERNAL = "external"
    ONE_TO_ONE = "one_to_one"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    tag: Optional[ColorTag] = None

    def __str__(self) -> str:
        if self.tag is not None:
            return f"{self.kind.value}({self.tag.value})"
        return self.kind.value


CREATE_BLOCKER = Action(ActionKind.CREATE_BLOCKER)
SKIP_BLOCKER = Action(ActionKind.SKIP_BLOCKER)
REMOVE_BLOCKER = Action(ActionKind.REMOVE_BLOCKER)
CREATE_NOTE = Action(ActionKind.CREATE_NOTE)
UPDATE_NOTE = Action(ActionKind.UPDATE_NOTE)
REMOVE_NOTE = Action(ActionKind.REMOVE_NOTE)
SKIP_ALL_DAY = Action(ActionKind.SKIP_ALL_DAY)
IGNORE = Action(ActionKind.IGNORE)

BLOCKER_KINDS = {ActionKind.CREATE_BLOCKER, ActionKind.SKIP_BLOCKER, ActionKind.REMOVE_BLOCKER}
NOTE_KINDS = {ActionKind.CREATE_NOTE, ActionKind.UPDATE_NOTE, ActionKind.REMOVE_NOTE}


def colorize(tag: ColorTag) -> Action:
    return Action(ActionKind.COLORIZE, tag)


def color_tag(meeting: MeetingEvent) -> Optional[ColorTag]:
    if meeting.has_external_attendees:
        return ColorTag.EXTERNAL
    if meeting.is_one_to_one:
        return ColorTag.ONE_TO_ONE
    return None


class ReconciliationEngine:
    """Decides blocker/note/color actions for one meeting at a time.

    Feature toggles remove whole action families: a disabled blocker
    feature never creates, skips or removes blockers.
    """

    def __init__(
        self,
        blocker: bool = True,
        meeting_to_note: bool = True,
        colorize: bool = True,
    ):
        self.blocker = blocker
        self.meeting_to_note = meeting_to_note
        self.colorize = colorize

    @classmethod
    def from_settings(cls, settings: CalnotesSettings) -> "ReconciliationEngine":
        return cls(
            blocker=settings.blocker,
            meeting_to_note=settings.meeting_to_note,
            colorize=settings.colorize,
        )

    def reconcile(
        self,
        meeting: MeetingEvent,
        has_existing_note: bool,
        has_existing_blocker: bool,
    ) -> FrozenSet[Action]:
        if meeting.is_placeholder:
            return frozenset({IGNORE})

        actions: Set[Action] = set()

        if meeting.is_cancelled:
            if has_existing_blocker:
                actions.add(REMOVE_BLOCKER)
            if has_existing_note:
                actions.add(REMOVE_NOTE)
            return self._filter(actions)

        tag = color_tag(meeting)
        if tag is not None:
            actions.add(colorize(tag))

        note_action = UPDATE_NOTE if has_existing_note else CREATE_NOTE

        if meeting.has_external_attendees:
            if meeting.is_all_day:
                actions.add(SKIP_ALL_DAY)
            elif not meeting.is_timed:
                actions.add(IGNORE)
            else:
                actions.add(SKIP_BLOCKER if has_existing_blocker else CREATE_BLOCKER)
                actions.add(note_action)
        elif meeting.is_one_to_one:
            actions.add(note_action)
        else:
            actions.add(IGNORE)

        return self._filter(actions)

    def _filter(self, actions: Set[Action]) -> FrozenSet[Action]:
        kept = set()
        for action in actions:
            if action.kind in BLOCKER_KINDS and not self.blocker:
                continue
            if action.kind in NOTE_KINDS and not self.meeting_to_note:
                continue
            if action.kind is ActionKind.COLORIZE and not self.colorize:
                continue
            kept.add(action)
        return frozenset(kept)
