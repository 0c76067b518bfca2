from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Iterable

from app.application.exceptions import InvalidRoom
from app.application.ports.calendar import CalendarProviderPort
from app.domain.entities.calendar_event import CalendarEvent


class MockCalendar(CalendarProviderPort):
    def __init__(
        self,
        rooms: Iterable[str] | None = None,
        events: dict[str, list[CalendarEvent]] | None = None,
    ) -> None:
        self._rooms = {r.lower() for r in rooms} if rooms is not None else None
        self._events: dict[str, list[CalendarEvent]] = {k.lower(): list(v) for k, v in (events or {}).items()}
        self._counter = 0
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _check_room(self, room_id: str) -> str:
        key = room_id.lower()
        if self._rooms is not None and key not in self._rooms:
            raise InvalidRoom(f"unknown room {room_id!r}")
        return key

    def fetch_events(
        self,
        room_id: str,
        window_start: datetime,
        window_end: datetime,
        limit: int = 30,
    ) -> list[CalendarEvent]:
        key = self._check_room(room_id)
        with self._lock:
            events = list(self._events.get(key, []))
        matching = [e for e in events if e.start < window_end and e.end > window_start]
        matching.sort(key=lambda e: e.start)
        return matching[:limit]

    def create_event(self, room_id: str, requester_id: str, start: datetime, end: datetime) -> str:
        key = self._check_room(room_id)
        with self._lock:
            self._counter += 1
            event_id = f"mock_event_{self._counter}"
            self._events.setdefault(key, []).append(
                CalendarEvent(
                    organizer_name=requester_id,
                    organizer_email=requester_id,
                    subject="Mock reservation",
                    start=start,
                    end=end,
                )
            )
        self._logger.info(
            "Mock room reserved",
            extra={
                "event_id": event_id,
                "room": room_id,
                "requester": requester_id,
                "start": start.isoformat(),
                "end": end.isoformat(),
            },
        )
        return event_id
