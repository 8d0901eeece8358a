"""
calnotes Calendar

Meeting snapshots, reconciliation rules and the Google Calendar adapter.
The sync coordinator lives in ``calnotes.calendar.sync``.
"""

from calnotes.calendar.models import (
    AllDaySpan,
    Attendee,
    EventPage,
    MeetingEvent,
    SyncCursor,
    TimedSpan,
)
from calnotes.calendar.reconcile import Action, ActionKind, ColorTag, ReconciliationEngine

__all__ = [
    'AllDaySpan',
    'Attendee',
    'EventPage',
    'MeetingEvent',
    'SyncCursor',
    'TimedSpan',
    'Action',
    'ActionKind',
    'ColorTag',
    'ReconciliationEngine',
]
