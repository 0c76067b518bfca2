from __future__ import annotations

from datetime import datetime
from typing import Iterable

from app.application.utils.interval_reducer import next_event_after, reduce_occupied_span
from app.domain.entities.calendar_event import CalendarEvent
from app.domain.entities.room_status import RoomStatus


def resolve_room_status(room_name: str, events: Iterable[CalendarEvent], reference: datetime) -> RoomStatus:
    """Busy until the end of the current span, or free until the next event starts."""
    events = tuple(events)
    span = reduce_occupied_span(events, reference)
    if span is not None:
        return RoomStatus(
            room_name=room_name,
            is_in_use=True,
            end_time=span.end,
            organizer_name=span.last_organizer,
        )

    upcoming = next_event_after(events, reference)
    if upcoming is None:
        return RoomStatus(room_name=room_name, is_in_use=False)
    return RoomStatus(
        room_name=room_name,
        is_in_use=False,
        end_time=upcoming.start,
        organizer_name=upcoming.organizer_name,
    )
