from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.application.exceptions import InvalidRoom
from app.application.ports.calendar import CalendarProviderPort
from app.application.utils.date_parser import local_day_bounds
from app.domain.entities.calendar_event import EventSet, to_utc


class RoomScheduleUseCase:
    def __init__(
        self,
        calendar: CalendarProviderPort,
        rooms: list[str],
        timezone: ZoneInfo,
        event_limit: int = 30,
    ) -> None:
        self._calendar = calendar
        self._rooms = [r.lower() for r in rooms]
        self._timezone = timezone
        self._event_limit = event_limit

    def list_rooms(self) -> list[str]:
        return list(self._rooms)

    def is_known(self, room: str) -> bool:
        return room.lower() in self._rooms

    def list_events(
        self,
        room: str,
        start: datetime | None = None,
        end: datetime | None = None,
        require_known: bool = True,
        limit: int | None = None,
    ) -> EventSet:
        """Events for ``room`` in [start, end); defaults to the current local day."""
        if require_known and not self.is_known(room):
            raise InvalidRoom(f"unknown room {room!r}")
        if start is None or end is None:
            start, end = local_day_bounds(datetime.now(self._timezone).date(), self._timezone)
        return self._fetch(room, to_utc(start), to_utc(end), limit)

    def list_day(
        self,
        room: str,
        day: date,
        from_time: datetime | None = None,
        limit: int | None = None,
    ) -> EventSet:
        """A room's events on a local calendar day, optionally only from ``from_time`` on."""
        start, end = local_day_bounds(day, self._timezone)
        if from_time is not None:
            start = max(start, to_utc(from_time))
        return self._fetch(room, start, end, limit)

    def _fetch(self, room: str, start: datetime, end: datetime, limit: int | None) -> EventSet:
        events = self._calendar.fetch_events(room, start, end, limit or self._event_limit)
        return EventSet.build(room, start, end, events)
