from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities.calendar_event import CalendarEvent


class CalendarProviderPort(ABC):
    @abstractmethod
    def fetch_events(
        self,
        room_id: str,
        window_start: datetime,
        window_end: datetime,
        limit: int = 30,
    ) -> list[CalendarEvent]:
        """
        Events on the room's calendar intersecting [window_start, window_end).

        Raises ProviderUnavailable, AuthenticationFailure or InvalidRoom.
        """
        raise NotImplementedError

    @abstractmethod
    def create_event(self, room_id: str, requester_id: str, start: datetime, end: datetime) -> str:
        """Book the room on behalf of the requester. Returns event_id."""
        raise NotImplementedError
