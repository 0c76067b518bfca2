from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from app.domain.entities.calendar_event import CalendarEvent
from app.domain.entities.room_status import OccupiedSpan

logger = logging.getLogger(__name__)


def sorted_events(events: Iterable[CalendarEvent]) -> list[CalendarEvent]:
    """Well-formed events ordered by start. Stable, so ties keep provider order."""
    kept: list[CalendarEvent] = []
    for event in events:
        if not event.is_well_formed:
            logger.warning("Skipping malformed event", extra={"reason": "start after end", "subject": event.subject})
            continue
        kept.append(event)
    return sorted(kept, key=lambda e: e.start)


def find_covering_event(events: list[CalendarEvent], reference: datetime) -> CalendarEvent | None:
    for event in events:
        if event.start <= reference < event.end:
            return event
    return None


def reduce_occupied_span(events: Iterable[CalendarEvent], reference: datetime) -> OccupiedSpan | None:
    """
    Merge the chain of events occupying the room at ``reference``.

    Starts from the first event covering ``reference`` and keeps absorbing the
    earliest event that extends past the running end, as long as it starts at
    or before that end. A zero gap merges; any positive gap stops the chain.
    Returns None when nothing covers ``reference``.
    """
    ordered = sorted_events(events)
    covering = find_covering_event(ordered, reference)
    if covering is None:
        return None

    end = covering.end
    organizer = covering.organizer_name

    while True:
        # Events ending at or before the running end cannot extend the span.
        extending = [e for e in ordered if e.end > end]
        if not extending:
            break
        nxt = extending[0]
        if nxt.start > end:
            break
        end = max(end, nxt.end)
        organizer = nxt.organizer_name

    return OccupiedSpan(start=covering.start, end=end, last_organizer=organizer)


def next_event_after(events: Iterable[CalendarEvent], reference: datetime) -> CalendarEvent | None:
    """Earliest well-formed event starting at or after ``reference``."""
    for event in sorted_events(events):
        if event.start >= reference:
            return event
    return None


def conflicting_events(
    events: Iterable[CalendarEvent], start: datetime, end: datetime
) -> list[CalendarEvent]:
    """Events overlapping the half-open interval [start, end). Touching is not overlap."""
    return [e for e in sorted_events(events) if start < e.end and end > e.start]
